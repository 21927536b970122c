"""
Built-in attribute transformers
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, List, Mapping, Tuple

from ..schema.base import DataKind, is_null_value
from ..utils.errors import ConfigurationError
from .base import AttributeTransformer, register_transformer


@register_transformer(
    "array",
    name="Complex type",
    description="Expands arrays and structures into nested (name, value) pairs",
    data_kinds=(DataKind.ARRAY, DataKind.STRUCT),
)
class ComplexTypeTransformer(AttributeTransformer):
    """Unpacks array elements and structure fields"""

    def transform_value(self, value: Any, options: Mapping[str, Any]) -> List[Tuple[str, Any]]:
        if is_null_value(value):
            return []
        max_items = options.get("max_items")
        if isinstance(value, Mapping):
            items = [(str(k), v) for k, v in value.items()]
        elif isinstance(value, (list, tuple)):
            items = [(f"[{i}]", v) for i, v in enumerate(value)]
        else:
            items = [("value", value)]
        if max_items is not None:
            items = items[:int(max_items)]
        return items


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_UNIT_DIVISORS = {
    "s": 1,
    "ms": 1_000,
    "us": 1_000_000,
    "ns": 1_000_000_000,
}


@register_transformer(
    "epoch_time",
    name="Epoch time",
    description="Shows integer timestamps as date/time values",
    custom=True,
    applicable_by_default=False,
    data_kinds=(DataKind.NUMERIC,),
)
class EpochTimeTransformer(AttributeTransformer):
    """Converts seconds/milliseconds since the epoch into UTC datetimes"""

    def transform_value(self, value: Any, options: Mapping[str, Any]) -> Any:
        if is_null_value(value):
            return None
        unit = str(options.get("unit", "ms")).lower()
        divisor = _UNIT_DIVISORS.get(unit)
        if divisor is None:
            raise ConfigurationError(f"Unsupported epoch unit: {unit}", config_key="unit")
        return _EPOCH + timedelta(seconds=int(value) / divisor)
