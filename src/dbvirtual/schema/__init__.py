"""
Schema Layer Package
Real metadata tree interfaces and an in-memory implementation
"""
from .base import (
    AttributeBinding,
    CancellableProgressMonitor,
    ColumnMeta,
    ConstraintType,
    DataContainer,
    DataKind,
    DataSource,
    DefaultValueHandler,
    DisplayFormat,
    EntityAssociation,
    EntityConstraint,
    ExecutionSession,
    ProgressMonitor,
    QueryContainer,
    ResultSet,
    ResultSetMeta,
    SchemaAttribute,
    SchemaContainer,
    SchemaEntity,
    SchemaObject,
    ValueHandler,
    VoidProgressMonitor,
    infer_data_kind,
    is_null_value,
    object_full_id,
)
from .memory import (
    MemoryContainer,
    MemoryDataSource,
    MemoryTable,
    QueryResultSet,
)

__all__ = [
    "AttributeBinding",
    "CancellableProgressMonitor",
    "ColumnMeta",
    "ConstraintType",
    "DataContainer",
    "DataKind",
    "DataSource",
    "DefaultValueHandler",
    "DisplayFormat",
    "EntityAssociation",
    "EntityConstraint",
    "ExecutionSession",
    "ProgressMonitor",
    "QueryContainer",
    "ResultSet",
    "ResultSetMeta",
    "SchemaAttribute",
    "SchemaContainer",
    "SchemaEntity",
    "SchemaObject",
    "ValueHandler",
    "VoidProgressMonitor",
    "infer_data_kind",
    "is_null_value",
    "object_full_id",
    # In-memory implementation
    "MemoryContainer",
    "MemoryDataSource",
    "MemoryTable",
    "QueryResultSet",
]
