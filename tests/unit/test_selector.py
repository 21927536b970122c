"""
Unit Tests for Transformer Selection and the Transformer Registry
"""
import pytest
from datetime import datetime, timezone
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from dbvirtual.schema import AttributeBinding, ColumnMeta, DataKind, MemoryDataSource
from dbvirtual.transformers import (
    AttributeTransformer,
    ComplexTypeTransformer,
    EpochTimeTransformer,
    TransformerDescriptor,
    TransformerRegistry,
    register_transformer,
    transformer_registry,
)
from dbvirtual.utils import ConfigurationError
from dbvirtual.virtual import (
    OrphanEntityCache,
    TransformSettings,
    VirtualResolver,
    select_transformers,
)


class UpperTransformer(AttributeTransformer):
    def transform_value(self, value, options):
        return str(value).upper()


class LowerTransformer(AttributeTransformer):
    def transform_value(self, value, options):
        return str(value).lower()


class ReverseTransformer(AttributeTransformer):
    def transform_value(self, value, options):
        return str(value)[::-1]


@pytest.fixture
def registry():
    """Registry with one default, one custom and one non-default transformer"""
    reg = TransformerRegistry()
    reg.register(TransformerDescriptor(
        "upper", UpperTransformer, custom=False, applicable_by_default=True
    ))
    reg.register(TransformerDescriptor(
        "lower", LowerTransformer, custom=True, applicable_by_default=True
    ))
    reg.register(TransformerDescriptor(
        "reverse", ReverseTransformer, custom=False, applicable_by_default=False
    ))
    return reg


@pytest.fixture
def data_source():
    ds = MemoryDataSource("pg-main")
    users = ds.add_table("users")
    users.add_column("login", "varchar(32)")
    return ds


@pytest.fixture
def resolver():
    return VirtualResolver(orphan_cache=OrphanEntityCache())


@pytest.fixture
def binding(data_source):
    users = data_source.tables["users"]
    column = users.columns[0]
    return AttributeBinding(ColumnMeta("login", "varchar(32)"), users, entity_attribute=column)


class TestDefaultPolicy:
    """Tests for selection without settings"""

    def test_only_standard_default_transformers(self, binding, resolver, registry):
        """Test custom and non-default candidates are discarded"""
        result = select_transformers(binding, resolver=resolver, registry=registry)
        assert len(result) == 1
        assert isinstance(result[0], UpperTransformer)

    def test_no_candidates(self, binding, resolver):
        assert select_transformers(binding, resolver=resolver, registry=TransformerRegistry()) is None

    def test_nothing_survives(self, binding, resolver):
        reg = TransformerRegistry()
        reg.register(TransformerDescriptor("lower", LowerTransformer, custom=True))
        assert select_transformers(binding, resolver=resolver, registry=reg) is None

    def test_custom_flag_restricts_candidates(self, binding, resolver, registry):
        """Test custom=True leaves only custom candidates, which the default policy drops"""
        assert select_transformers(binding, custom=True, resolver=resolver, registry=registry) is None

    def test_new_instances_per_call(self, binding, resolver, registry):
        first = select_transformers(binding, resolver=resolver, registry=registry)
        second = select_transformers(binding, resolver=resolver, registry=registry)
        assert first[0] is not second[0]


class TestSettingsFilter:
    """Tests for selection driven by transform settings"""

    def test_included_custom_transformer(self, binding, resolver, registry):
        """Test settings can enable a custom transformer"""
        settings = resolver.resolve_transform_settings(binding, create=True)
        settings.include("lower")
        result = select_transformers(binding, resolver=resolver, registry=registry)
        assert [type(t) for t in result] == [UpperTransformer, LowerTransformer]

    def test_custom_transformer_id(self, binding, resolver, registry):
        settings = resolver.resolve_transform_settings(binding, create=True)
        settings.custom_transformer = "reverse"
        result = select_transformers(binding, resolver=resolver, registry=registry)
        assert [type(t) for t in result] == [UpperTransformer, ReverseTransformer]

    def test_excluded_default_transformer(self, binding, resolver, registry):
        settings = resolver.resolve_transform_settings(binding, create=True)
        settings.exclude("upper")
        assert select_transformers(binding, resolver=resolver, registry=registry) is None

    def test_inherited_filter(self, data_source, binding, resolver, registry):
        """Test entity-level filter applies to its attributes"""
        v_entity = resolver.resolve_virtual_entity(data_source.tables["users"], create=True)
        v_entity.transform_settings = TransformSettings(included=["reverse"])
        v_entity.get_virtual_attribute("login", create=True)
        result = select_transformers(binding, resolver=resolver, registry=registry)
        assert [type(t) for t in result] == [UpperTransformer, ReverseTransformer]

    def test_empty_settings_use_default_policy(self, binding, resolver, registry):
        resolver.resolve_transform_settings(binding, create=True)
        result = select_transformers(binding, resolver=resolver, registry=registry)
        assert [type(t) for t in result] == [UpperTransformer]


class TestRegistry:
    """Tests for TransformerRegistry"""

    def test_find_by_data_kind(self):
        reg = TransformerRegistry()
        reg.register(TransformerDescriptor(
            "epoch", EpochTimeTransformer, data_kinds=[DataKind.NUMERIC]
        ))
        assert reg.find_transformers(None, ColumnMeta("n", "integer")) != []
        assert reg.find_transformers(None, ColumnMeta("s", "text")) == []

    def test_find_returns_copy(self, registry):
        found = registry.find_transformers(None, ColumnMeta("s", "text"))
        found.clear()
        assert len(registry.find_transformers(None, ColumnMeta("s", "text"))) == 3

    def test_find_custom_filter(self, registry):
        ids = [d.id for d in registry.find_transformers(None, ColumnMeta("s"), custom=False)]
        assert ids == ["upper", "reverse"]

    def test_unregister(self, registry):
        registry.unregister("upper")
        assert registry.get("upper") is None

    def test_decorator(self):
        reg = TransformerRegistry()

        @register_transformer("shout", custom=True, registry=reg)
        class Shout(UpperTransformer):
            pass

        descriptor = reg.get("shout")
        assert descriptor.is_custom()
        assert isinstance(descriptor.instantiate(), Shout)

    def test_builtins_registered(self):
        assert transformer_registry.get("array") is not None
        assert transformer_registry.get("epoch_time").is_custom()


class TestBuiltinTransformers:
    """Tests for the built-in transformers"""

    def test_array_unpacking(self):
        result = ComplexTypeTransformer().transform_value([10, 20, 30], {"max_items": 2})
        assert result == [("[0]", 10), ("[1]", 20)]

    def test_struct_unpacking(self):
        result = ComplexTypeTransformer().transform_value({"x": 1}, {})
        assert result == [("x", 1)]

    def test_epoch_milliseconds(self):
        value = EpochTimeTransformer().transform_value(86_400_000, {})
        assert value == datetime(1970, 1, 2, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        value = EpochTimeTransformer().transform_value(60, {"unit": "s"})
        assert value == datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc)

    def test_epoch_null(self):
        assert EpochTimeTransformer().transform_value(None, {}) is None

    def test_epoch_bad_unit(self):
        with pytest.raises(ConfigurationError):
            EpochTimeTransformer().transform_value(1, {"unit": "fortnight"})

    def test_array_selected_by_default_for_arrays(self, resolver):
        ds = MemoryDataSource("pg-main")
        table = ds.add_table("t")
        column = table.add_column("tags", "text[]")
        binding = AttributeBinding(ColumnMeta("tags", "text[]"), table, entity_attribute=column)
        result = select_transformers(binding, resolver=resolver)
        assert [type(t) for t in result] == [ComplexTypeTransformer]
