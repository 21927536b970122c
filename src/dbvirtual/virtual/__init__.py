"""
Virtual Model Package

Overlay objects and the operations that resolve, select and merge them.
"""
from .model import (
    TransformSettings,
    VirtualAttribute,
    VirtualConstraint,
    VirtualContainer,
    VirtualEntity,
    VirtualForeignKey,
    VirtualModel,
    VirtualObject,
)
from .orphans import OrphanEntityCache, get_orphan_cache
from .resolver import (
    VirtualResolver,
    collect_transform_options,
    get_resolver,
    resolve_transform_settings,
    resolve_virtual_entity,
    resolve_virtual_object,
)
from .selector import select_transformers
from .dictionary import (
    LabelValuePair,
    get_default_description_column,
    get_dictionary_description_columns,
    read_dictionary_rows,
)
from .merge import (
    merge_associations,
    merge_constraints,
    merge_references,
    require_real_entity,
    try_real_entity,
)

__all__ = [
    # Model
    "TransformSettings",
    "VirtualAttribute",
    "VirtualConstraint",
    "VirtualContainer",
    "VirtualEntity",
    "VirtualForeignKey",
    "VirtualModel",
    "VirtualObject",
    # Orphans
    "OrphanEntityCache",
    "get_orphan_cache",
    # Resolution
    "VirtualResolver",
    "collect_transform_options",
    "get_resolver",
    "resolve_transform_settings",
    "resolve_virtual_entity",
    "resolve_virtual_object",
    # Transformers
    "select_transformers",
    # Dictionaries
    "LabelValuePair",
    "get_default_description_column",
    "get_dictionary_description_columns",
    "read_dictionary_rows",
    # Merging
    "merge_associations",
    "merge_constraints",
    "merge_references",
    "require_real_entity",
    "try_real_entity",
]
