"""
Attribute Transformers Package
"""
from .base import (
    AttributeTransformer,
    TransformerDescriptor,
    TransformerRegistry,
    register_transformer,
    transformer_registry,
)

# Import built-ins to register them
from .builtin import ComplexTypeTransformer, EpochTimeTransformer

__all__ = [
    "AttributeTransformer",
    "TransformerDescriptor",
    "TransformerRegistry",
    "register_transformer",
    "transformer_registry",
    "ComplexTypeTransformer",
    "EpochTimeTransformer",
]
