"""
DB Virtual Model
================

A metadata overlay resolver: attaches user-defined ("virtual") columns,
keys, foreign keys, description columns and value-transform settings to
tables, views and ad-hoc queries discovered from a live data source, without
touching the real schema.

Quick Start:
------------

    from dbvirtual import MemoryDataSource, VirtualResolver, merge_constraints

    ds = MemoryDataSource("pg-main")
    orders = ds.add_container("public").add_table("orders")
    orders.add_column("id", "integer")
    orders.add_primary_key("orders_pk", ["id"])

    resolver = VirtualResolver()
    v_orders = resolver.resolve_virtual_entity(orders, create=True)
    v_orders.add_constraint("orders_vk", ["id"])

    merge_constraints(orders, resolver=resolver)   # [orders_pk, orders_vk]
"""

__version__ = "1.0.0"

# Configuration
from .config import (
    LogLevel,
    OverlayConfig,
    get_config,
    set_config,
    reset_config,
)

# Schema layer
from .schema import (
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
    MemoryContainer,
    MemoryDataSource,
    MemoryTable,
    ProgressMonitor,
    QueryContainer,
    QueryResultSet,
    SchemaAttribute,
    SchemaEntity,
    ValueHandler,
    VoidProgressMonitor,
    object_full_id,
)

# Transformers
from .transformers import (
    AttributeTransformer,
    TransformerDescriptor,
    TransformerRegistry,
    register_transformer,
    transformer_registry,
)

# Virtual model
from .virtual import (
    LabelValuePair,
    OrphanEntityCache,
    TransformSettings,
    VirtualAttribute,
    VirtualConstraint,
    VirtualEntity,
    VirtualForeignKey,
    VirtualModel,
    VirtualResolver,
    collect_transform_options,
    get_dictionary_description_columns,
    get_resolver,
    merge_associations,
    merge_constraints,
    merge_references,
    read_dictionary_rows,
    require_real_entity,
    resolve_transform_settings,
    resolve_virtual_entity,
    resolve_virtual_object,
    select_transformers,
    try_real_entity,
)

# Utilities
from .utils import (
    setup_logging,
    setup_logging_from_config,
    get_logger,
    VirtualModelError,
    ResolutionError,
    DataAccessError,
    MetadataAccessError,
    ConfigurationError,
)

__all__ = [
    "__version__",
    # Configuration
    "LogLevel",
    "OverlayConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Schema layer
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
    "MemoryContainer",
    "MemoryDataSource",
    "MemoryTable",
    "ProgressMonitor",
    "QueryContainer",
    "QueryResultSet",
    "SchemaAttribute",
    "SchemaEntity",
    "ValueHandler",
    "VoidProgressMonitor",
    "object_full_id",
    # Transformers
    "AttributeTransformer",
    "TransformerDescriptor",
    "TransformerRegistry",
    "register_transformer",
    "transformer_registry",
    # Virtual model
    "LabelValuePair",
    "OrphanEntityCache",
    "TransformSettings",
    "VirtualAttribute",
    "VirtualConstraint",
    "VirtualEntity",
    "VirtualForeignKey",
    "VirtualModel",
    "VirtualResolver",
    "collect_transform_options",
    "get_dictionary_description_columns",
    "get_resolver",
    "merge_associations",
    "merge_constraints",
    "merge_references",
    "read_dictionary_rows",
    "require_real_entity",
    "resolve_transform_settings",
    "resolve_virtual_entity",
    "resolve_virtual_object",
    "select_transformers",
    "try_real_entity",
    # Utilities
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    "VirtualModelError",
    "ResolutionError",
    "DataAccessError",
    "MetadataAccessError",
    "ConfigurationError",
]
