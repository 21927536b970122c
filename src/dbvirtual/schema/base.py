"""
Base Schema Layer Module
Defines the interfaces of the real metadata tree the overlay is attached to:
data sources, containers, entities, attributes, constraints, result sets and
value handlers.
"""
from __future__ import annotations

import hashlib
import re
import threading
import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from ..config import get_config

if TYPE_CHECKING:
    from ..virtual.model import VirtualModel


class DisplayFormat(str, Enum):
    """Value display formats"""
    UI = "ui"
    EDIT = "edit"
    NATIVE = "native"


class DataKind(str, Enum):
    """Coarse value kinds used to pick handlers and transformers"""
    STRING = "string"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    BINARY = "binary"
    ARRAY = "array"
    STRUCT = "struct"
    OBJECT = "object"
    UNKNOWN = "unknown"


class ConstraintType(str, Enum):
    """Kinds of entity constraints"""
    PRIMARY_KEY = "primary_key"
    UNIQUE_KEY = "unique_key"
    VIRTUAL_KEY = "virtual_key"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"


_KIND_PATTERNS = [
    (DataKind.ARRAY, re.compile(r"(\[\]$|^_|array)")),
    (DataKind.STRUCT, re.compile(r"(struct|record|row|json|map)")),
    (DataKind.BOOLEAN, re.compile(r"^(bool|boolean|bit)$")),
    (DataKind.DATETIME, re.compile(r"(date|time|interval)")),
    (DataKind.NUMERIC, re.compile(r"(int|serial|numeric|decimal|number|float|double|real|money)")),
    (DataKind.BINARY, re.compile(r"(blob|binary|bytea|raw|image)")),
    (DataKind.STRING, re.compile(r"(char|text|string|clob|uuid|enum|name)")),
]


def infer_data_kind(data_type: Optional[str]) -> DataKind:
    """Infer the value kind from a database type name"""
    if not data_type:
        return DataKind.UNKNOWN
    type_name = data_type.strip().lower()
    for kind, pattern in _KIND_PATTERNS:
        if pattern.search(type_name):
            return kind
    return DataKind.UNKNOWN


class ProgressMonitor(ABC):
    """Cooperative cancellation token polled by long-running scans"""

    @abstractmethod
    def is_canceled(self) -> bool:
        pass


class VoidProgressMonitor(ProgressMonitor):
    """Monitor that is never canceled"""

    def is_canceled(self) -> bool:
        return False


class CancellableProgressMonitor(ProgressMonitor):
    """Monitor that can be canceled from any thread"""

    def __init__(self):
        self._canceled = threading.Event()

    def cancel(self) -> None:
        self._canceled.set()

    def is_canceled(self) -> bool:
        return self._canceled.is_set()


class SchemaObject:
    """
    Handle to any object of the real metadata tree

    The parent link is a weak reference: it is used for navigation only and
    never keeps the parent alive.
    """

    is_virtual = False

    def __init__(self, name: str, parent: Optional["SchemaObject"] = None):
        self._name = name
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    @property
    def name(self) -> str:
        return self._name

    @property
    def parent(self) -> Optional["SchemaObject"]:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def data_source(self) -> Optional["DataSource"]:
        obj: Optional[SchemaObject] = self
        while obj is not None:
            if isinstance(obj, DataSource):
                return obj
            obj = obj.parent
        return None

    @property
    def path(self) -> List[str]:
        """Names from the data source (exclusive) down to this object"""
        names = []
        obj: Optional[SchemaObject] = self
        while obj is not None and not isinstance(obj, DataSource):
            names.append(obj.name)
            obj = obj.parent
        names.reverse()
        return names

    @property
    def full_id(self) -> str:
        return object_full_id(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.full_id!r})"


def _quote_path_segment(name: str) -> str:
    # SQL-style quoting, only where a segment needs it
    if "." not in name and '"' not in name:
        return name
    return '"' + name.replace('"', '""') + '"'


def object_full_id(obj: SchemaObject, separator: Optional[str] = None) -> str:
    """
    Build the derived full identity of a schema object

    The identity is "<data-source-id><separator><dotted path>". Path segments
    containing dots or quotes are double-quoted, so ``a."b.c"`` and ``a.b.c``
    stay distinct. Objects may override ``_identity_path`` to provide their
    own path component. ``separator`` defaults to the configured
    ``orphan_key_separator``; long-lived keyed stores pass the one they
    captured at construction.
    """
    if separator is None:
        separator = get_config().orphan_key_separator
    data_source = obj.data_source
    ds_id = data_source.id if data_source is not None else "?"
    if obj is data_source:
        return ds_id
    path = getattr(obj, "_identity_path", None)
    if path is None:
        path = ".".join(_quote_path_segment(name) for name in obj.path)
    return f"{ds_id}{separator}{path}"


class DataSource(SchemaObject):
    """Root of a real metadata tree (one per connection)"""

    def __init__(self, id: str, name: Optional[str] = None):
        super().__init__(name or id)
        self.id = id
        self._virtual_model: Optional["VirtualModel"] = None
        self._model_lock = threading.Lock()

    @property
    def data_source(self) -> "DataSource":
        return self

    @property
    def virtual_model(self) -> "VirtualModel":
        """Virtual model of this connection, created on first access"""
        with self._model_lock:
            if self._virtual_model is None:
                from ..virtual.model import VirtualModel
                self._virtual_model = VirtualModel(self)
            return self._virtual_model

    def find_entity(
        self,
        path: Sequence[str],
        monitor: Optional[ProgressMonitor] = None
    ) -> Optional["SchemaEntity"]:
        """Locate an entity by its path; data sources without navigation return None"""
        return None


class SchemaContainer(SchemaObject):
    """Grouping object such as a catalog or schema"""


class DataContainer(SchemaObject):
    """Anything rows can be read from"""


class QueryContainer(DataContainer):
    """
    Data container of an ad-hoc query

    It has no stable place in the schema tree, so its identity is derived
    from a digest of the normalised query text.
    """

    def __init__(self, data_source: DataSource, query_text: str, name: Optional[str] = None):
        super().__init__(name or query_text, data_source)
        self.query_text = query_text

    @staticmethod
    def normalize_query(query_text: str) -> str:
        return " ".join(query_text.split()).rstrip(";").strip()

    @property
    def _identity_path(self) -> str:
        digest = hashlib.sha1(
            self.normalize_query(self.query_text).encode("utf-8")
        ).hexdigest()
        return f"query:{digest}"


class SchemaAttribute(SchemaObject):
    """Column of a real entity"""

    def __init__(
        self,
        name: str,
        parent: "SchemaEntity",
        data_type: str = "",
        data_kind: Optional[DataKind] = None,
        ordinal: int = 0,
        nullable: bool = True,
    ):
        super().__init__(name, parent)
        self.data_type = data_type
        self.data_kind = data_kind or infer_data_kind(data_type)
        self.ordinal = ordinal
        self.nullable = nullable


class SchemaEntity(DataContainer, ABC):
    """Table or view like object with attributes and constraints"""

    @abstractmethod
    def get_attributes(self, monitor: ProgressMonitor) -> List[SchemaAttribute]:
        pass

    @abstractmethod
    def get_constraints(self, monitor: ProgressMonitor) -> List["EntityConstraint"]:
        pass

    @abstractmethod
    def get_associations(self, monitor: ProgressMonitor) -> List["EntityAssociation"]:
        """Outgoing foreign keys"""
        pass

    @abstractmethod
    def get_references(self, monitor: ProgressMonitor) -> List["EntityAssociation"]:
        """Incoming foreign keys of other entities"""
        pass

    def get_attribute(self, monitor: ProgressMonitor, name: str) -> Optional[SchemaAttribute]:
        for attribute in self.get_attributes(monitor):
            if attribute.name.lower() == name.lower():
                return attribute
        return None


class EntityConstraint:
    """Key or check constraint of an entity"""

    is_virtual = False

    def __init__(
        self,
        name: str,
        parent: Optional[Any],
        constraint_type: ConstraintType,
        attribute_names: Optional[List[str]] = None,
    ):
        self.name = name
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self.constraint_type = constraint_type
        self.attribute_names = list(attribute_names or [])

    @property
    def parent(self) -> Optional[Any]:
        return self._parent_ref() if self._parent_ref is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.constraint_type.value,
            "attributes": self.attribute_names,
            "virtual": self.is_virtual,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class EntityAssociation(EntityConstraint):
    """Foreign key relationship between two entities"""

    def __init__(
        self,
        name: str,
        parent: Optional[Any],
        attribute_names: List[str],
        referenced_entity: Optional[Any],
        referenced_attribute_names: List[str],
        on_delete: Optional[str] = None,
        on_update: Optional[str] = None,
    ):
        super().__init__(name, parent, ConstraintType.FOREIGN_KEY, attribute_names)
        self._referenced_ref = (
            weakref.ref(referenced_entity) if referenced_entity is not None else None
        )
        self.referenced_attribute_names = list(referenced_attribute_names)
        self.on_delete = on_delete
        self.on_update = on_update

    @property
    def referenced_entity(self) -> Optional[Any]:
        return self._referenced_ref() if self._referenced_ref is not None else None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        referenced = self.referenced_entity
        data.update({
            "referenced_entity": referenced.name if referenced is not None else None,
            "referenced_attributes": self.referenced_attribute_names,
            "on_delete": self.on_delete,
            "on_update": self.on_update,
        })
        return data


@dataclass
class ColumnMeta:
    """Metadata of one result set column"""
    name: str
    data_type: str = ""
    ordinal: int = 0
    data_kind: DataKind = DataKind.UNKNOWN
    entity_attribute: Optional[SchemaAttribute] = None

    def __post_init__(self):
        if self.data_kind == DataKind.UNKNOWN and self.data_type:
            self.data_kind = infer_data_kind(self.data_type)


@dataclass
class ResultSetMeta:
    """Column metadata of a result set"""
    attributes: List[ColumnMeta] = field(default_factory=list)


class ResultSet(ABC):
    """Forward-only cursor over query rows"""

    @property
    @abstractmethod
    def meta(self) -> ResultSetMeta:
        pass

    @abstractmethod
    def next_row(self) -> bool:
        """Advance to the next row; False when exhausted"""
        pass

    @abstractmethod
    def get_value(self, index: int) -> Any:
        """Raw value of column ``index`` in the current row"""
        pass


def is_null_value(value: Any) -> bool:
    """True for None and for value objects reporting themselves as null"""
    if value is None:
        return True
    is_null = getattr(value, "is_null", None)
    if callable(is_null):
        return bool(is_null())
    return False


class ValueHandler(ABC):
    """Fetches and formats values of one column"""

    @abstractmethod
    def fetch_value(
        self,
        session: "ExecutionSession",
        result_set: ResultSet,
        column: Any,
        index: int
    ) -> Any:
        pass

    @abstractmethod
    def display_string(self, column: Any, value: Any, display_format: DisplayFormat) -> str:
        pass


class DefaultValueHandler(ValueHandler):
    """Reads raw values and renders them with ``str``"""

    def fetch_value(self, session, result_set, column, index):
        return result_set.get_value(index)

    def display_string(self, column, value, display_format=DisplayFormat.UI):
        if is_null_value(value):
            return get_config().null_display_string
        if isinstance(value, (bytes, bytearray)):
            return value.hex()
        if isinstance(value, (datetime, date, time)):
            if display_format == DisplayFormat.NATIVE:
                return value.isoformat()
            return str(value)
        if isinstance(value, bool) and display_format == DisplayFormat.NATIVE:
            return "true" if value else "false"
        return str(value)


class ExecutionSession:
    """Execution context of a scan: data source, monitor and value handlers"""

    def __init__(
        self,
        data_source: Optional[DataSource] = None,
        progress_monitor: Optional[ProgressMonitor] = None,
        value_handlers: Optional[Dict[DataKind, ValueHandler]] = None,
    ):
        self.data_source = data_source
        self.progress_monitor = progress_monitor or VoidProgressMonitor()
        self.value_handlers = dict(value_handlers or {})
        self._default_handler = DefaultValueHandler()

    def find_value_handler(self, column: Any) -> ValueHandler:
        kind = getattr(column, "data_kind", DataKind.UNKNOWN)
        return self.value_handlers.get(kind, self._default_handler)


class AttributeBinding:
    """
    Binds a result set column to the schema

    ``entity_attribute`` is set when the column maps to a real table column;
    columns of ad-hoc queries only know their ``data_container``.
    """

    def __init__(
        self,
        attribute: Any,
        data_container: DataContainer,
        entity_attribute: Optional[SchemaAttribute] = None,
        name: Optional[str] = None,
    ):
        self.attribute = attribute
        self.data_container = data_container
        self.entity_attribute = entity_attribute
        self.name = name or getattr(attribute, "name", "")

    @property
    def data_source(self) -> Optional[DataSource]:
        return self.data_container.data_source

    @property
    def data_kind(self) -> DataKind:
        return getattr(self.attribute, "data_kind", DataKind.UNKNOWN)

    def __repr__(self) -> str:
        return f"AttributeBinding({self.name!r})"
