"""
Unit Tests for Transform Settings Inheritance
"""
import pytest
import threading
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from dbvirtual.schema import AttributeBinding, ColumnMeta, MemoryDataSource, QueryContainer
from dbvirtual.transformers import TransformerDescriptor, ComplexTypeTransformer
from dbvirtual.virtual import OrphanEntityCache, TransformSettings, VirtualResolver


@pytest.fixture
def data_source():
    ds = MemoryDataSource("pg-main")
    events = ds.add_container("public").add_table("events")
    events.add_column("id", "integer")
    events.add_column("created", "bigint")
    events.add_column("updated", "bigint")
    return ds


@pytest.fixture
def resolver():
    return VirtualResolver(orphan_cache=OrphanEntityCache())


@pytest.fixture
def events(data_source):
    return data_source.containers["public"].tables["events"]


def _binding(table, column_name):
    column = next(c for c in table.columns if c.name == column_name)
    return AttributeBinding(
        ColumnMeta(column.name, column.data_type), table, entity_attribute=column
    )


class TestSettingsInheritance:
    """Tests for the ancestor walk"""

    def test_attribute_inherits_entity_settings(self, events, resolver):
        """Test attribute without settings sees entity settings"""
        v_entity = resolver.resolve_virtual_entity(events, create=True)
        entity_settings = TransformSettings(options={"unit": "s"})
        v_entity.transform_settings = entity_settings
        created = v_entity.get_virtual_attribute("created", create=True)

        assert resolver.resolve_transform_settings(created, create=False) is entity_settings

    def test_create_attaches_own_settings(self, events, resolver):
        """Test creation shadows entity settings for that attribute only"""
        v_entity = resolver.resolve_virtual_entity(events, create=True)
        entity_settings = TransformSettings(options={"unit": "s"})
        v_entity.transform_settings = entity_settings
        created = v_entity.get_virtual_attribute("created", create=True)
        updated = v_entity.get_virtual_attribute("updated", create=True)

        own = resolver.resolve_transform_settings(created, create=True)
        assert own is not entity_settings
        assert not own.has_values()
        assert created.transform_settings is own
        assert resolver.resolve_transform_settings(created, create=False) is own
        assert resolver.resolve_transform_settings(updated, create=False) is entity_settings
        assert v_entity.transform_settings is entity_settings

    def test_own_settings_returned_for_any_create_flag(self, events, resolver):
        v_entity = resolver.resolve_virtual_entity(events, create=True)
        created = v_entity.get_virtual_attribute("created", create=True)
        first = resolver.resolve_transform_settings(created, create=True)
        assert resolver.resolve_transform_settings(created, create=True) is first
        assert resolver.resolve_transform_settings(created, create=False) is first

    def test_container_and_model_scopes(self, data_source, events, resolver):
        """Test coarser scopes apply when nearer ones are absent"""
        model_settings = TransformSettings(options={"scope": "model"})
        data_source.virtual_model.transform_settings = model_settings
        v_entity = resolver.resolve_virtual_entity(events, create=True)
        created = v_entity.get_virtual_attribute("created", create=True)
        assert resolver.resolve_transform_settings(created) is model_settings

        container_settings = TransformSettings(options={"scope": "container"})
        v_entity.parent.transform_settings = container_settings
        assert resolver.resolve_transform_settings(created) is container_settings

    def test_no_settings_anywhere(self, events, resolver):
        v_entity = resolver.resolve_virtual_entity(events, create=True)
        created = v_entity.get_virtual_attribute("created", create=True)
        assert resolver.resolve_transform_settings(created, create=False) is None

    def test_concurrent_create_single_winner(self, events, resolver):
        """Test racing creators all observe one settings instance"""
        v_entity = resolver.resolve_virtual_entity(events, create=True)
        created = v_entity.get_virtual_attribute("created", create=True)
        workers = 12
        barrier = threading.Barrier(workers)

        def create():
            barrier.wait()
            return resolver.resolve_transform_settings(created, create=True)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda _: create(), range(workers)))

        assert len({id(r) for r in results}) == 1
        assert created.transform_settings is results[0]


class TestBindingSettings:
    """Tests for settings resolved through bindings"""

    def test_binding_without_overlay(self, events, resolver):
        binding = _binding(events, "created")
        assert resolver.resolve_transform_settings(binding, create=False) is None
        assert resolver.resolve_virtual_entity(events, create=False) is None

    def test_binding_uses_entity_settings_without_attribute_overlay(self, events, resolver):
        """Test entity-scope settings reach columns that have no overlay of their own"""
        v_entity = resolver.resolve_virtual_entity(events, create=True)
        entity_settings = TransformSettings(options={"unit": "s"})
        v_entity.transform_settings = entity_settings
        binding = _binding(events, "created")
        assert resolver.resolve_transform_settings(binding, create=False) is entity_settings
        assert v_entity.get_virtual_attribute("created") is None

    def test_binding_create(self, events, resolver):
        binding = _binding(events, "created")
        settings = resolver.resolve_transform_settings(binding, create=True)
        assert settings is not None
        v_attr = resolver.resolve_virtual_entity(events).get_virtual_attribute("created")
        assert v_attr.transform_settings is settings

    def test_attribute_lookup_is_case_insensitive(self, events, resolver):
        settings = resolver.resolve_transform_settings(_binding(events, "created"), create=True)
        v_entity = resolver.resolve_virtual_entity(events)
        assert v_entity.get_virtual_attribute("CREATED").transform_settings is settings

    def test_orphan_binding(self, data_source, resolver):
        query = QueryContainer(data_source, "SELECT 1 AS one")
        binding = AttributeBinding(ColumnMeta("one", "integer"), query)
        settings = resolver.resolve_transform_settings(binding, create=True)
        settings.set_transform_option("unit", "ms")
        assert resolver.collect_transform_options(binding) == {"unit": "ms"}


class TestTransformOptions:
    """Tests for collect_transform_options"""

    def test_empty_mapping_when_no_settings(self, events, resolver):
        options = resolver.collect_transform_options(_binding(events, "created"))
        assert options == {}
        assert isinstance(options, MappingProxyType)
        with pytest.raises(TypeError):
            options["unit"] = "s"

    def test_inherited_options(self, events, resolver):
        v_entity = resolver.resolve_virtual_entity(events, create=True)
        v_entity.transform_settings = TransformSettings(options={"unit": "s"})
        v_entity.get_virtual_attribute("created", create=True)
        options = resolver.collect_transform_options(_binding(events, "created"))
        assert options == {"unit": "s"}


class TestTransformSettings:
    """Tests for the settings object itself"""

    def test_option_set_and_remove(self):
        settings = TransformSettings()
        settings.set_transform_option("unit", "ms")
        assert settings.get_transform_option("unit") == "ms"
        settings.set_transform_option("unit", None)
        assert settings.get_transform_option("unit", "s") == "s"

    def test_include_exclude_are_exclusive(self):
        settings = TransformSettings()
        settings.include("array")
        settings.exclude("array")
        assert "array" in settings.excluded
        assert "array" not in settings.included
        assert settings.has_filter()

    def test_no_filter_declared(self):
        descriptor = TransformerDescriptor("array", ComplexTypeTransformer)
        assert TransformSettings(options={"a": 1}).filter_transformers([descriptor]) is None

    def test_to_dict(self):
        settings = TransformSettings(custom_transformer="epoch_time", excluded=["array"])
        assert settings.to_dict() == {
            "custom_transformer": "epoch_time",
            "included": [],
            "excluded": ["array"],
            "options": {},
        }
