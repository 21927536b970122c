"""
Dictionary Reader

Turns a key/description result set into (label, value) pairs for enumeration
and foreign-key lookup display.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config import get_config
from ..schema.base import (
    DataKind,
    DisplayFormat,
    ExecutionSession,
    ProgressMonitor,
    ResultSet,
    SchemaAttribute,
    SchemaEntity,
    ValueHandler,
    VoidProgressMonitor,
    is_null_value,
)
from ..utils import DataAccessError, get_logger, log_operation, wrap_error
from .resolver import VirtualResolver, get_resolver

logger = get_logger(__name__)


@dataclass(frozen=True)
class LabelValuePair:
    """One dictionary row"""
    label: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value}


def read_dictionary_rows(
    session: ExecutionSession,
    key_attribute: Any,
    key_handler: ValueHandler,
    result_set: ResultSet,
) -> List[LabelValuePair]:
    """
    Read enumeration values and (optionally) their descriptions

    The first result column holds the key, the others the description. With
    a single column the label is the key's display string, otherwise the
    description values joined with the configured separator. Only the first
    null key is kept. Cancellation of the session monitor stops the scan and
    returns the rows read so far.

    Raises:
        DataAccessError: If reading the result set fails
    """
    separator = get_config().label_separator
    values: List[LabelValuePair] = []

    with log_operation(logger, "read_dictionary_rows", key=getattr(key_attribute, "name", None)) as ctx:
        try:
            meta_columns = result_set.meta.attributes
            col_handlers = [session.find_value_handler(col) for col in meta_columns]
        except Exception as e:
            raise wrap_error(e, DataAccessError, "Unable to read result set metadata")

        has_nulls = False
        canceled = False
        while _next_row(result_set):
            if session.progress_monitor.is_canceled():
                canceled = True
                break
            key_value = _fetch(key_handler, session, result_set, key_attribute, 0)
            if is_null_value(key_value):
                if has_nulls:
                    continue
                has_nulls = True

            if len(meta_columns) > 1:
                parts = []
                for i in range(1, len(col_handlers)):
                    column = meta_columns[i]
                    desc_value = _fetch(col_handlers[i], session, result_set, column, i)
                    parts.append(
                        col_handlers[i].display_string(column, desc_value, DisplayFormat.NATIVE)
                    )
                label = separator.join(parts)
            else:
                label = key_handler.display_string(key_attribute, key_value, DisplayFormat.NATIVE)
            values.append(LabelValuePair(label, key_value))

        ctx['rows'] = len(values)
        ctx['canceled'] = canceled

    if canceled:
        logger.info(f"Dictionary read canceled after {len(values)} rows")
    return values


def _next_row(result_set: ResultSet) -> bool:
    try:
        return result_set.next_row()
    except Exception as e:
        raise wrap_error(e, DataAccessError, "Unable to fetch next dictionary row")


def _fetch(handler: ValueHandler, session, result_set, column, index: int) -> Any:
    try:
        return handler.fetch_value(session, result_set, column, index)
    except Exception as e:
        raise wrap_error(
            e,
            DataAccessError,
            f"Unable to fetch column {index}",
            column_name=getattr(column, "name", None),
        )


def get_default_description_column(
    monitor: ProgressMonitor,
    attribute: SchemaAttribute
) -> str:
    """
    Guess the description column of the entity owning ``attribute``

    Prefers configured candidate names, then the first textual column other
    than the key itself; falls back to the key attribute.
    """
    entity = attribute.parent
    if not isinstance(entity, SchemaEntity):
        return attribute.name

    candidates = get_config().description_column_candidates
    others = [
        a for a in entity.get_attributes(monitor)
        if a.name.lower() != attribute.name.lower()
    ]
    for candidate in candidates:
        for other in others:
            if other.name.lower() == candidate:
                return other.name
    for other in others:
        if other.data_kind == DataKind.STRING:
            return other.name
    return attribute.name


def get_dictionary_description_columns(
    attribute: SchemaAttribute,
    monitor: Optional[ProgressMonitor] = None,
    resolver: Optional[VirtualResolver] = None,
) -> str:
    """
    Description columns of the dictionary a key attribute belongs to

    The virtual entity's declaration wins over the guessed default.
    """
    resolver = resolver or get_resolver()
    monitor = monitor or VoidProgressMonitor()

    description_columns = None
    parent = attribute.parent
    if parent is not None:
        dictionary = resolver.resolve_virtual_entity(parent, create=False)
        if dictionary is not None:
            description_columns = dictionary.description_column_names
    if description_columns is None:
        description_columns = get_default_description_column(monitor, attribute)
    return description_columns
