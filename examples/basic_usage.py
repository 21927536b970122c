"""
Basic Usage Example for the Virtual Model Overlay

Declares a virtual foreign key, reads a dictionary for it and enables a
timestamp transformer on an integer column.
"""
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from dbvirtual import (
    AttributeBinding,
    ColumnMeta,
    DefaultValueHandler,
    ExecutionSession,
    MemoryDataSource,
    OverlayConfig,
    QueryResultSet,
    VirtualResolver,
    get_dictionary_description_columns,
    merge_associations,
    read_dictionary_rows,
    select_transformers,
    setup_logging_from_config,
)


def build_schema() -> MemoryDataSource:
    ds = MemoryDataSource("shop-db", "Shop")
    sales = ds.add_container("sales")

    statuses = sales.add_table("order_statuses")
    statuses.add_column("id", "integer")
    statuses.add_column("name", "varchar(50)")
    statuses.add_primary_key("order_statuses_pk", ["id"])

    orders = sales.add_table("orders")
    orders.add_column("id", "integer")
    orders.add_column("status_id", "integer")
    orders.add_column("created_ms", "bigint")
    orders.add_primary_key("orders_pk", ["id"])
    return ds


def example_virtual_foreign_key(ds: MemoryDataSource, resolver: VirtualResolver):
    """Declare a foreign key the database does not have"""
    print("\n" + "=" * 60)
    print("Example 1: Virtual foreign key")
    print("=" * 60)

    sales = ds.containers["sales"]
    orders = sales.tables["orders"]
    statuses = sales.tables["order_statuses"]

    v_orders = resolver.resolve_virtual_entity(orders, create=True)
    v_orders.add_foreign_key("orders_status_vfk", ["status_id"], statuses, ["id"])

    for association in merge_associations(orders, resolver=resolver):
        kind = "virtual" if association.is_virtual else "real"
        print(f"  {association.name} ({kind}) -> {association.referenced_entity.name}")

    key = statuses.columns[0]
    print(f"  Description columns: {get_dictionary_description_columns(key, resolver=resolver)}")

    result_set = QueryResultSet.from_rows(
        ["id", "name"],
        [(1, "new"), (2, "paid"), (3, "shipped"), (None, None)],
        ["integer", "varchar(50)"],
    )
    rows = read_dictionary_rows(
        ExecutionSession(ds), ColumnMeta("id", "integer"), DefaultValueHandler(), result_set
    )
    for row in rows:
        print(f"  {row.value!r:>6} = {row.label}")


def example_timestamp_transformer(ds: MemoryDataSource, resolver: VirtualResolver):
    """Show an integer column as a timestamp"""
    print("\n" + "=" * 60)
    print("Example 2: Epoch time transformer")
    print("=" * 60)

    orders = ds.containers["sales"].tables["orders"]
    column = orders.columns[2]
    binding = AttributeBinding(ColumnMeta(column.name, column.data_type), orders, entity_attribute=column)

    settings = resolver.resolve_transform_settings(binding, create=True)
    settings.custom_transformer = "epoch_time"
    settings.set_transform_option("unit", "ms")

    options = resolver.collect_transform_options(binding)
    for transformer in select_transformers(binding, resolver=resolver) or []:
        print(f"  {type(transformer).__name__}: {transformer.transform_value(1700000000000, options)}")


def main():
    config = OverlayConfig.from_env()
    setup_logging_from_config(config)

    ds = build_schema()
    resolver = VirtualResolver()
    example_virtual_foreign_key(ds, resolver)
    example_timestamp_transformer(ds, resolver)


if __name__ == "__main__":
    main()
