"""
Transformer Selection

Picks the value transformers that apply to an attribute binding, honouring
the allow/deny list of its (possibly inherited) transform settings.
"""
from __future__ import annotations

from typing import List, Optional

from ..schema.base import AttributeBinding
from ..transformers import AttributeTransformer, TransformerRegistry, transformer_registry
from ..utils import get_logger
from .resolver import VirtualResolver, get_resolver

logger = get_logger(__name__)


def select_transformers(
    binding: AttributeBinding,
    custom: Optional[bool] = None,
    resolver: Optional[VirtualResolver] = None,
    registry: Optional[TransformerRegistry] = None,
) -> Optional[List[AttributeTransformer]]:
    """
    Instantiate the transformers applicable to a binding

    Args:
        binding: Attribute binding to find transformers for
        custom: Restrict candidates to custom (True) or standard (False) ones
        resolver: Resolver used to find transform settings
        registry: Transformer registry to query

    Returns:
        Transformer instances in candidate order, or None if none apply
    """
    resolver = resolver or get_resolver()
    registry = registry or transformer_registry

    candidates = registry.find_transformers(binding.data_source, binding.attribute, custom)
    if not candidates:
        return None

    selected = None
    settings = resolver.resolve_transform_settings(binding, create=False)
    if settings is not None:
        selected = settings.filter_transformers(candidates)

    if selected is None:
        # Leave only default transformers
        selected = [
            descriptor for descriptor in candidates
            if not descriptor.is_custom() and descriptor.is_applicable_by_default()
        ]

    if not selected:
        return None

    logger.debug(
        f"Selected transformers for {binding.name}: {[d.id for d in selected]}"
    )
    return [descriptor.instantiate() for descriptor in selected]
