"""
Attribute Transformer Registry
Descriptors and a registry of value transformers, looked up per attribute
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type

from ..schema.base import DataKind


class AttributeTransformer(ABC):
    """Turns a raw attribute value into its presented form"""

    @abstractmethod
    def transform_value(self, value: Any, options: Mapping[str, Any]) -> Any:
        pass


TransformerClass = Type[AttributeTransformer]


class TransformerDescriptor:
    """Registration record of one transformer"""

    def __init__(
        self,
        id: str,
        transformer_class: TransformerClass,
        name: Optional[str] = None,
        description: str = "",
        custom: bool = False,
        applicable_by_default: bool = True,
        data_kinds: Iterable[DataKind] = (),
    ):
        self.id = id
        self.transformer_class = transformer_class
        self.name = name or id
        self.description = description
        self.custom = custom
        self.applicable_by_default = applicable_by_default
        self.data_kinds = frozenset(data_kinds)

    def is_custom(self) -> bool:
        return self.custom

    def is_applicable_by_default(self) -> bool:
        return self.applicable_by_default

    def applies_to(self, attribute: Any) -> bool:
        """An empty kind set means the transformer applies to every attribute"""
        if not self.data_kinds:
            return True
        return getattr(attribute, "data_kind", DataKind.UNKNOWN) in self.data_kinds

    def instantiate(self) -> AttributeTransformer:
        return self.transformer_class()

    def __repr__(self) -> str:
        return f"TransformerDescriptor({self.id!r})"


class TransformerRegistry:
    """Thread-safe registry of transformer descriptors, in registration order"""

    def __init__(self):
        self._descriptors: Dict[str, TransformerDescriptor] = {}
        self._lock = threading.Lock()

    def register(self, descriptor: TransformerDescriptor) -> None:
        with self._lock:
            self._descriptors[descriptor.id] = descriptor

    def unregister(self, transformer_id: str) -> None:
        with self._lock:
            self._descriptors.pop(transformer_id, None)

    def get(self, transformer_id: str) -> Optional[TransformerDescriptor]:
        with self._lock:
            return self._descriptors.get(transformer_id)

    def descriptors(self) -> List[TransformerDescriptor]:
        with self._lock:
            return list(self._descriptors.values())

    def find_transformers(
        self,
        data_source: Any,
        attribute: Any,
        custom: Optional[bool] = None
    ) -> List[TransformerDescriptor]:
        """
        Get transformers applicable to an attribute

        Args:
            data_source: Data source of the attribute
            attribute: Attribute or result column; its data_kind is matched
            custom: If set, only descriptors with this custom flag are returned

        Returns:
            A new list the caller may modify
        """
        result = []
        for descriptor in self.descriptors():
            if custom is not None and descriptor.custom != custom:
                continue
            if descriptor.applies_to(attribute):
                result.append(descriptor)
        return result


# Process-wide registry the built-in transformers register into
transformer_registry = TransformerRegistry()


def register_transformer(
    id: str,
    name: Optional[str] = None,
    description: str = "",
    custom: bool = False,
    applicable_by_default: bool = True,
    data_kinds: Iterable[DataKind] = (),
    registry: Optional[TransformerRegistry] = None,
) -> Callable[[TransformerClass], TransformerClass]:
    """Decorator to register a transformer class"""
    def decorator(cls: TransformerClass) -> TransformerClass:
        (registry or transformer_registry).register(
            TransformerDescriptor(
                id,
                cls,
                name=name,
                description=description,
                custom=custom,
                applicable_by_default=applicable_by_default,
                data_kinds=data_kinds,
            )
        )
        return cls
    return decorator
