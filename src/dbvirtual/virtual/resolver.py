"""
Virtual Object Resolver

Maps schema objects to their virtual counterparts and resolves inherited
transform settings.

Usage:
    resolver = VirtualResolver()
    v_entity = resolver.resolve_virtual_entity(table, create=True)
    settings = resolver.resolve_transform_settings(binding, create=False)
"""
from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from ..schema.base import (
    AttributeBinding,
    DataContainer,
    SchemaEntity,
    SchemaObject,
    object_full_id,
)
from ..utils import ResolutionError, get_logger
from .model import TransformSettings, VirtualAttribute, VirtualEntity, VirtualObject
from .orphans import OrphanEntityCache, get_orphan_cache

logger = get_logger(__name__)

_EMPTY_OPTIONS: Mapping[str, Any] = MappingProxyType({})


def _is_virtual(source: Any) -> bool:
    return bool(getattr(source, "is_virtual", False))


class VirtualResolver:
    """
    Resolves virtual entities, objects and transform settings

    The orphan cache is injected so tests can use a fresh one; by default the
    process-wide cache is used.
    """

    def __init__(self, orphan_cache: Optional[OrphanEntityCache] = None):
        self.orphan_cache = orphan_cache if orphan_cache is not None else get_orphan_cache()

    def resolve_virtual_entity(
        self,
        source: Union[VirtualEntity, SchemaEntity, DataContainer, AttributeBinding],
        create: bool = False
    ) -> Optional[VirtualEntity]:
        """
        Get the virtual entity of an entity, data container or attribute binding

        Args:
            source: Object to resolve
            create: Create and register an empty overlay if none exists

        Returns:
            The virtual entity, or None if it does not exist and create is False
        """
        if _is_virtual(source):
            if isinstance(source, VirtualEntity):
                return source
            raise ResolutionError(f"{source!r} is a virtual object but not an entity")
        if isinstance(source, AttributeBinding):
            return self._resolve_binding_entity(source, create)
        if isinstance(source, SchemaEntity):
            return self._resolve_schema_entity(source, create)
        if isinstance(source, DataContainer):
            return self._resolve_orphan_entity(source, create)
        raise ResolutionError(
            f"Cannot resolve virtual entity of {source!r}",
            object_id=getattr(source, "name", None),
        )

    def _resolve_binding_entity(self, binding: AttributeBinding, create: bool) -> Optional[VirtualEntity]:
        entity_attribute = binding.entity_attribute
        if entity_attribute is not None and isinstance(entity_attribute.parent, SchemaEntity):
            return self._resolve_schema_entity(entity_attribute.parent, create)
        return self.resolve_virtual_entity(binding.data_container, create)

    def _resolve_schema_entity(self, entity: SchemaEntity, create: bool) -> Optional[VirtualEntity]:
        data_source = entity.data_source
        if data_source is None:
            raise ResolutionError(
                f"Entity {entity.name} is detached from its data source",
                object_id=entity.name,
            )
        return data_source.virtual_model.find_entity(entity, create)

    def _resolve_orphan_entity(self, container: DataContainer, create: bool) -> Optional[VirtualEntity]:
        data_source = container.data_source
        if data_source is None:
            raise ResolutionError(
                f"Data container {container.name} is detached from its data source",
                object_id=container.name,
            )
        key = object_full_id(container, self.orphan_cache.key_separator)
        model = data_source.virtual_model
        return self.orphan_cache.get_or_create(
            key,
            lambda: VirtualEntity(model, container.name, ""),
            create,
        )

    def resolve_virtual_object(self, source: SchemaObject, create: bool = False) -> Optional[VirtualObject]:
        """Get the overlay of any schema object"""
        if _is_virtual(source):
            return source
        data_source = source.data_source
        if data_source is None:
            return None
        return data_source.virtual_model.find_object(source, create)

    def resolve_transform_settings(
        self,
        target: Union[VirtualAttribute, AttributeBinding],
        create: bool = False
    ) -> Optional[TransformSettings]:
        """
        Find the transform settings of an attribute

        An attribute owning settings returns them. Otherwise, with create set,
        empty settings are attached to the attribute; without it the parent
        chain (entity, container, model) is searched for the nearest settings.
        """
        if isinstance(target, AttributeBinding):
            entity = self.resolve_virtual_entity(target, create)
            if entity is None:
                return None
            attribute = entity.get_virtual_attribute(target, create)
            if attribute is None:
                # Entity-scope settings apply to columns without their own overlay
                return self._find_inherited_settings(entity)
            return self.resolve_transform_settings(attribute, create)

        own = target.transform_settings
        if own is not None:
            return own
        if create:
            if target.compare_and_set_transform_settings(None, TransformSettings()):
                logger.debug(f"Created transform settings for {target.name}")
            return target.transform_settings
        return self._find_inherited_settings(target.parent)

    @staticmethod
    def _find_inherited_settings(obj: Optional[VirtualObject]) -> Optional[TransformSettings]:
        while obj is not None:
            if obj.transform_settings is not None:
                return obj.transform_settings
            obj = obj.parent
        return None

    def collect_transform_options(self, binding: AttributeBinding) -> Mapping[str, Any]:
        """Transform options of a binding; never None"""
        settings = self.resolve_transform_settings(binding, create=False)
        if settings is not None:
            return settings.transform_options
        return _EMPTY_OPTIONS


_resolver: Optional[VirtualResolver] = None
_resolver_lock = threading.Lock()


def get_resolver() -> VirtualResolver:
    """Get the process-wide resolver bound to the process-wide orphan cache"""
    global _resolver
    with _resolver_lock:
        if _resolver is None:
            _resolver = VirtualResolver()
        return _resolver


def resolve_virtual_entity(source: Any, create: bool = False) -> Optional[VirtualEntity]:
    return get_resolver().resolve_virtual_entity(source, create)


def resolve_virtual_object(source: SchemaObject, create: bool = False) -> Optional[VirtualObject]:
    return get_resolver().resolve_virtual_object(source, create)


def resolve_transform_settings(target: Any, create: bool = False) -> Optional[TransformSettings]:
    return get_resolver().resolve_transform_settings(target, create)


def collect_transform_options(binding: AttributeBinding) -> Mapping[str, Any]:
    return get_resolver().collect_transform_options(binding)
