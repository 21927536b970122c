"""
Virtual Model Definitions

User-declared structure layered over the real metadata tree: a model root
per data source, virtual containers, entities, attributes, constraints,
foreign keys and transform settings.
"""
from __future__ import annotations

import threading
import weakref
from typing import Any, Dict, Iterable, List, Optional, Set

from ..config import get_config
from ..schema.base import (
    ConstraintType,
    DataSource,
    EntityAssociation,
    EntityConstraint,
    ProgressMonitor,
    SchemaAttribute,
    SchemaContainer,
    SchemaEntity,
    SchemaObject,
    VoidProgressMonitor,
    object_full_id,
)
from ..utils import get_logger

logger = get_logger(__name__)


class TransformSettings:
    """
    Transformer options plus an explicit allow/deny list

    ``filter_transformers`` returns None when no explicit filter is declared,
    so callers can fall back to the default policy.
    """

    def __init__(
        self,
        custom_transformer: Optional[str] = None,
        included: Optional[Iterable[str]] = None,
        excluded: Optional[Iterable[str]] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        self._lock = threading.Lock()
        self.custom_transformer = custom_transformer
        self.included: Set[str] = set(included or ())
        self.excluded: Set[str] = set(excluded or ())
        self.transform_options: Dict[str, Any] = dict(options or {})

    def has_filter(self) -> bool:
        return bool(self.custom_transformer or self.included or self.excluded)

    def has_values(self) -> bool:
        return self.has_filter() or bool(self.transform_options)

    def include(self, transformer_id: str) -> None:
        with self._lock:
            self.excluded.discard(transformer_id)
            self.included.add(transformer_id)

    def exclude(self, transformer_id: str) -> None:
        with self._lock:
            self.included.discard(transformer_id)
            self.excluded.add(transformer_id)

    def get_transform_option(self, name: str, default: Any = None) -> Any:
        return self.transform_options.get(name, default)

    def set_transform_option(self, name: str, value: Any) -> None:
        with self._lock:
            if value is None:
                self.transform_options.pop(name, None)
            else:
                self.transform_options[name] = value

    def filter_transformers(self, descriptors: List[Any]) -> Optional[List[Any]]:
        """
        Apply the declared allow/deny list to candidate descriptors

        Included ids and the custom transformer are kept, excluded ids are
        dropped and anything not mentioned follows the default policy.
        Relative order is preserved.
        """
        with self._lock:
            if not self.has_filter():
                return None
            result = []
            for descriptor in descriptors:
                if descriptor.id in self.included or descriptor.id == self.custom_transformer:
                    result.append(descriptor)
                elif descriptor.id in self.excluded:
                    continue
                elif not descriptor.is_custom() and descriptor.is_applicable_by_default():
                    result.append(descriptor)
            return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "custom_transformer": self.custom_transformer,
            "included": sorted(self.included),
            "excluded": sorted(self.excluded),
            "options": dict(self.transform_options),
        }


class VirtualObject:
    """Base of every overlay object: a weak parent link and a settings slot"""

    is_virtual = True

    def __init__(self, name: str, parent: Optional["VirtualObject"] = None):
        self.name = name
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self._transform_settings: Optional[TransformSettings] = None
        self._slot_lock = threading.Lock()

    @property
    def parent(self) -> Optional["VirtualObject"]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def transform_settings(self) -> Optional[TransformSettings]:
        return self._transform_settings

    @transform_settings.setter
    def transform_settings(self, settings: Optional[TransformSettings]) -> None:
        with self._slot_lock:
            self._transform_settings = settings

    def compare_and_set_transform_settings(
        self,
        expected: Optional[TransformSettings],
        settings: Optional[TransformSettings]
    ) -> bool:
        """Install ``settings`` only if the slot still holds ``expected``"""
        with self._slot_lock:
            if self._transform_settings is not expected:
                return False
            self._transform_settings = settings
            return True

    @property
    def model(self) -> Optional["VirtualModel"]:
        obj: Optional[VirtualObject] = self
        while obj is not None:
            if isinstance(obj, VirtualModel):
                return obj
            obj = obj.parent
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class VirtualContainer(VirtualObject):
    """Overlay of a catalog or schema"""


class VirtualAttribute(VirtualObject):
    """Overlay of a real or purely virtual column"""

    def __init__(
        self,
        name: str,
        entity: "VirtualEntity",
        data_type: Optional[str] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(name, entity)
        self.data_type = data_type
        self.expression = expression

    @property
    def entity(self) -> Optional["VirtualEntity"]:
        return self.parent


class VirtualConstraint(EntityConstraint):
    """User-declared key, merged next to real constraints"""

    is_virtual = True

    def __init__(
        self,
        name: str,
        entity: "VirtualEntity",
        attribute_names: List[str],
        constraint_type: ConstraintType = ConstraintType.VIRTUAL_KEY,
    ):
        super().__init__(name, entity, constraint_type, attribute_names)


class VirtualForeignKey(EntityAssociation):
    """User-declared association, merged next to real foreign keys"""

    is_virtual = True

    def __init__(
        self,
        name: str,
        entity: "VirtualEntity",
        attribute_names: List[str],
        referenced_entity: Any,
        referenced_attribute_names: List[str],
    ):
        super().__init__(
            name, entity, attribute_names, referenced_entity, referenced_attribute_names
        )


class VirtualEntity(VirtualObject):
    """
    Overlay of one table-like entity, or of an ad-hoc data container

    Orphan entities (created for containers without schema identity) have no
    ``real_path`` and never resolve to a real entity.
    """

    def __init__(
        self,
        parent: VirtualObject,
        name: str,
        description: str = "",
        real_entity: Optional[SchemaEntity] = None,
    ):
        super().__init__(name, parent)
        self.description = description
        self.attributes: List[VirtualAttribute] = []
        self.constraints: List[VirtualConstraint] = []
        self.foreign_keys: List[VirtualForeignKey] = []
        self.description_column_names: Optional[str] = None
        self._lock = threading.RLock()
        if real_entity is not None:
            self.real_id: Optional[str] = object_full_id(real_entity)
            self.real_path: Optional[List[str]] = real_entity.path
            self._real_ref = weakref.ref(real_entity)
        else:
            self.real_id = None
            self.real_path = None
            self._real_ref = None

    @property
    def is_orphan(self) -> bool:
        return self.real_path is None

    def _attribute_key(self, name: str) -> str:
        return name if get_config().case_sensitive_attributes else name.lower()

    def get_virtual_attribute(self, source: Any, create: bool = False) -> Optional[VirtualAttribute]:
        """
        Find the overlay of an attribute by name

        Args:
            source: Attribute name, schema attribute, binding or column
            create: Register a new attribute overlay if none exists
        """
        name = source if isinstance(source, str) else source.name
        key = self._attribute_key(name)
        with self._lock:
            for attribute in self.attributes:
                if self._attribute_key(attribute.name) == key:
                    return attribute
            if not create:
                return None
            attribute = VirtualAttribute(
                name, self, data_type=getattr(source, "data_type", None) or None
            )
            self.attributes.append(attribute)
            logger.debug(f"Created virtual attribute {self.name}.{name}")
            return attribute

    def add_attribute(
        self,
        name: str,
        data_type: Optional[str] = None,
        expression: Optional[str] = None
    ) -> VirtualAttribute:
        """Declare a purely virtual column"""
        with self._lock:
            attribute = VirtualAttribute(name, self, data_type=data_type, expression=expression)
            self.attributes.append(attribute)
            return attribute

    def add_constraint(
        self,
        name: str,
        attribute_names: List[str],
        constraint_type: ConstraintType = ConstraintType.VIRTUAL_KEY,
    ) -> VirtualConstraint:
        with self._lock:
            constraint = VirtualConstraint(name, self, attribute_names, constraint_type)
            self.constraints.append(constraint)
            return constraint

    def add_foreign_key(
        self,
        name: str,
        attribute_names: List[str],
        referenced_entity: Any,
        referenced_attribute_names: List[str],
    ) -> VirtualForeignKey:
        with self._lock:
            foreign_key = VirtualForeignKey(
                name, self, attribute_names, referenced_entity, referenced_attribute_names
            )
            self.foreign_keys.append(foreign_key)
            return foreign_key

    def get_real_entity(self, monitor: Optional[ProgressMonitor] = None) -> Optional[SchemaEntity]:
        """
        Locate the backing real entity

        Follows the weak reference first, then asks the data source to find
        the entity by path. Orphans always return None.
        """
        if self.is_orphan:
            return None
        entity = self._real_ref() if self._real_ref is not None else None
        if entity is not None:
            return entity
        model = self.model
        data_source = model.data_source if model is not None else None
        if data_source is None:
            return None
        entity = data_source.find_entity(self.real_path, monitor or VoidProgressMonitor())
        if entity is not None:
            self._real_ref = weakref.ref(entity)
        return entity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "real_id": self.real_id,
            "attributes": [a.name for a in self.attributes],
            "constraints": [c.to_dict() for c in self.constraints],
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "description_columns": self.description_column_names,
            "transform_settings": (
                self.transform_settings.to_dict() if self.transform_settings else None
            ),
        }


class VirtualModel(VirtualObject):
    """
    Root of the overlay of one data source

    Containers and entities are kept in separate arenas keyed by the full
    identity of the real object they shadow, so a schema and a table sharing
    a name never share an overlay. The key separator is fixed when the model
    is created.
    """

    def __init__(self, data_source: DataSource):
        super().__init__(data_source.name)
        self._data_source_ref = weakref.ref(data_source)
        self._key_separator = get_config().orphan_key_separator
        self._containers: Dict[str, VirtualContainer] = {}
        self._entities: Dict[str, VirtualEntity] = {}
        self._lock = threading.RLock()

    @property
    def data_source(self) -> Optional[DataSource]:
        return self._data_source_ref()

    @property
    def entities(self) -> List[VirtualEntity]:
        with self._lock:
            return list(self._entities.values())

    def find_object(self, source: SchemaObject, create: bool = False) -> Optional[VirtualObject]:
        """
        Find the overlay of any real object

        Data sources map to the model root, containers to virtual containers,
        entities to virtual entities and attributes to virtual attributes.
        Other objects have no overlay here.
        """
        if isinstance(source, DataSource):
            return self
        if isinstance(source, SchemaEntity):
            return self.find_entity(source, create)
        if isinstance(source, SchemaAttribute):
            entity = self.find_entity(source.parent, create) if source.parent is not None else None
            return entity.get_virtual_attribute(source, create) if entity is not None else None
        if isinstance(source, SchemaContainer):
            return self._find_container(source, create)
        return None

    def find_entity(self, entity: SchemaEntity, create: bool = False) -> Optional[VirtualEntity]:
        key = object_full_id(entity, self._key_separator)
        with self._lock:
            existing = self._entities.get(key)
            if existing is not None or not create:
                return existing
            parent = self._find_parent(entity)
            virtual_entity = VirtualEntity(parent, entity.name, real_entity=entity)
            self._entities[key] = virtual_entity
            logger.debug(f"Created virtual entity {key}")
            return virtual_entity

    def _find_container(self, container: SchemaContainer, create: bool) -> Optional[VirtualContainer]:
        key = object_full_id(container, self._key_separator)
        with self._lock:
            existing = self._containers.get(key)
            if existing is not None or not create:
                return existing
            virtual_container = VirtualContainer(container.name, self._find_parent(container))
            self._containers[key] = virtual_container
            return virtual_container

    def _find_parent(self, source: SchemaObject) -> VirtualObject:
        parent = source.parent
        if isinstance(parent, SchemaContainer):
            return self._find_container(parent, True)
        return self
