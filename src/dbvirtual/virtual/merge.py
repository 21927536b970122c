"""
Metadata Merging

Unified views of real and virtual constraints and associations, plus the
unwrapping of virtual entities into their real counterparts.
"""
from __future__ import annotations

from typing import Any, Callable, List, Optional

from ..schema.base import (
    EntityAssociation,
    EntityConstraint,
    ProgressMonitor,
    SchemaEntity,
    VoidProgressMonitor,
)
from ..utils import (
    MetadataAccessError,
    ResolutionError,
    VirtualModelError,
    get_logger,
    log_operation,
    wrap_error,
)
from .model import VirtualEntity
from .resolver import VirtualResolver, get_resolver

logger = get_logger(__name__)


def _fetch_real(
    entity: Any,
    fetch: Callable[[ProgressMonitor], Any],
    monitor: ProgressMonitor,
    what: str
) -> List[Any]:
    # Virtual entities have no real metadata of their own
    if getattr(entity, "is_virtual", False):
        return []
    try:
        real = fetch(monitor)
    except Exception as e:
        raise wrap_error(
            e,
            MetadataAccessError,
            f"Unable to read {what} of {entity.name}",
            entity_name=entity.name,
        )
    return list(real or [])


def merge_constraints(
    entity: Any,
    monitor: Optional[ProgressMonitor] = None,
    resolver: Optional[VirtualResolver] = None,
) -> List[EntityConstraint]:
    """
    Real constraints followed by the virtual ones, in declaration order

    Raises:
        MetadataAccessError: If the real constraints cannot be read
    """
    resolver = resolver or get_resolver()
    monitor = monitor or VoidProgressMonitor()
    with log_operation(logger, "merge_constraints", entity=entity.name) as ctx:
        result = _fetch_real(
            entity, getattr(entity, "get_constraints", None), monitor, "constraints"
        )
        virtual_entity = resolver.resolve_virtual_entity(entity, create=False)
        if virtual_entity is not None and virtual_entity.constraints:
            result.extend(virtual_entity.constraints)
        ctx['count'] = len(result)
    return result


def merge_associations(
    entity: Any,
    monitor: Optional[ProgressMonitor] = None,
    resolver: Optional[VirtualResolver] = None,
) -> List[EntityAssociation]:
    """
    Real foreign keys followed by the virtual ones, in declaration order

    Raises:
        MetadataAccessError: If the real associations cannot be read
    """
    resolver = resolver or get_resolver()
    monitor = monitor or VoidProgressMonitor()
    with log_operation(logger, "merge_associations", entity=entity.name) as ctx:
        result = _fetch_real(
            entity, getattr(entity, "get_associations", None), monitor, "associations"
        )
        virtual_entity = resolver.resolve_virtual_entity(entity, create=False)
        if virtual_entity is not None and virtual_entity.foreign_keys:
            result.extend(virtual_entity.foreign_keys)
        ctx['count'] = len(result)
    return result


def merge_references(
    entity: Any,
    monitor: Optional[ProgressMonitor] = None,
    resolver: Optional[VirtualResolver] = None,
) -> List[EntityAssociation]:
    """
    Incoming references of an entity

    Virtual foreign keys are not overlay-aware in this direction, so only the
    real references are returned.

    Raises:
        MetadataAccessError: If the real references cannot be read
    """
    monitor = monitor or VoidProgressMonitor()
    with log_operation(logger, "merge_references", entity=entity.name) as ctx:
        result = _fetch_real(
            entity, getattr(entity, "get_references", None), monitor, "references"
        )
        ctx['count'] = len(result)
    return result


def require_real_entity(entity: Any, monitor: Optional[ProgressMonitor] = None) -> SchemaEntity:
    """
    Unwrap a virtual entity into the real entity it shadows

    Raises:
        ResolutionError: If the virtual entity has no backing real entity
    """
    if not isinstance(entity, VirtualEntity):
        return entity
    object_id = entity.real_id or entity.name
    try:
        real_entity = entity.get_real_entity(monitor or VoidProgressMonitor())
    except Exception as e:
        raise wrap_error(e, ResolutionError, f"Can't locate real entity for {object_id}")
    if real_entity is None:
        raise ResolutionError(f"Can't locate real entity for {object_id}", object_id=object_id)
    return real_entity


def try_real_entity(entity: Any) -> Any:
    """Best-effort variant of require_real_entity; returns the input on failure"""
    try:
        return require_real_entity(entity)
    except VirtualModelError as e:
        logger.warning(f"Can't get real entity from virtual entity {entity.name}: {e}", exc_info=True)
        return entity
