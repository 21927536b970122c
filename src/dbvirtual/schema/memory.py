"""
In-memory Schema Layer

A navigable metadata tree that lives entirely in memory. Hosts without a
live connection and the test-suite use it as the real schema the overlay is
attached to.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from .base import (
    ColumnMeta,
    ConstraintType,
    DataKind,
    DataSource,
    EntityAssociation,
    EntityConstraint,
    ProgressMonitor,
    ResultSet,
    ResultSetMeta,
    SchemaAttribute,
    SchemaContainer,
    SchemaEntity,
)


class MemoryDataSource(DataSource):
    """Data source holding its containers and tables in dictionaries"""

    def __init__(self, id: str, name: Optional[str] = None):
        super().__init__(id, name)
        self.containers: Dict[str, MemoryContainer] = {}
        self.tables: Dict[str, MemoryTable] = {}

    def add_container(self, name: str) -> "MemoryContainer":
        container = MemoryContainer(name, self)
        self.containers[name] = container
        return container

    def add_table(self, name: str, is_view: bool = False) -> "MemoryTable":
        """Add a table directly under the data source"""
        table = MemoryTable(name, self, is_view=is_view)
        self.tables[name] = table
        return table

    def find_entity(
        self,
        path: Sequence[str],
        monitor: Optional[ProgressMonitor] = None
    ) -> Optional["MemoryTable"]:
        if not path:
            return None
        if len(path) == 1:
            return self.tables.get(path[0])
        container = self.containers.get(path[0])
        if container is None:
            return None
        return container.find_entity(path[1:])


class MemoryContainer(SchemaContainer):
    """Catalog or schema"""

    def __init__(self, name: str, parent: Any):
        super().__init__(name, parent)
        self.containers: Dict[str, MemoryContainer] = {}
        self.tables: Dict[str, MemoryTable] = {}

    def add_container(self, name: str) -> "MemoryContainer":
        container = MemoryContainer(name, self)
        self.containers[name] = container
        return container

    def add_table(self, name: str, is_view: bool = False) -> "MemoryTable":
        table = MemoryTable(name, self, is_view=is_view)
        self.tables[name] = table
        return table

    def find_entity(self, path: Sequence[str]) -> Optional["MemoryTable"]:
        if len(path) == 1:
            return self.tables.get(path[0])
        child = self.containers.get(path[0])
        return child.find_entity(path[1:]) if child is not None else None


class MemoryTable(SchemaEntity):
    """Table or view with columns, keys and foreign keys"""

    def __init__(self, name: str, parent: Any, is_view: bool = False):
        super().__init__(name, parent)
        self.is_view = is_view
        self.columns: List[SchemaAttribute] = []
        self.constraints: List[EntityConstraint] = []
        self.associations: List[EntityAssociation] = []
        self.references: List[EntityAssociation] = []

    def add_column(
        self,
        name: str,
        data_type: str = "",
        data_kind: Optional[DataKind] = None,
        nullable: bool = True,
    ) -> SchemaAttribute:
        column = SchemaAttribute(
            name,
            self,
            data_type=data_type,
            data_kind=data_kind,
            ordinal=len(self.columns),
            nullable=nullable,
        )
        self.columns.append(column)
        return column

    def add_primary_key(self, name: str, columns: List[str]) -> EntityConstraint:
        constraint = EntityConstraint(name, self, ConstraintType.PRIMARY_KEY, columns)
        self.constraints.append(constraint)
        return constraint

    def add_unique_key(self, name: str, columns: List[str]) -> EntityConstraint:
        constraint = EntityConstraint(name, self, ConstraintType.UNIQUE_KEY, columns)
        self.constraints.append(constraint)
        return constraint

    def add_foreign_key(
        self,
        name: str,
        columns: List[str],
        referenced_table: "MemoryTable",
        referenced_columns: List[str],
        on_delete: Optional[str] = None,
        on_update: Optional[str] = None,
    ) -> EntityAssociation:
        """Add an outgoing foreign key; it also becomes a reference of the target"""
        association = EntityAssociation(
            name,
            self,
            columns,
            referenced_table,
            referenced_columns,
            on_delete=on_delete,
            on_update=on_update,
        )
        self.associations.append(association)
        referenced_table.references.append(association)
        return association

    def get_attributes(self, monitor: ProgressMonitor) -> List[SchemaAttribute]:
        return list(self.columns)

    def get_constraints(self, monitor: ProgressMonitor) -> List[EntityConstraint]:
        return list(self.constraints)

    def get_associations(self, monitor: ProgressMonitor) -> List[EntityAssociation]:
        return list(self.associations)

    def get_references(self, monitor: ProgressMonitor) -> List[EntityAssociation]:
        return list(self.references)


class QueryResultSet(ResultSet):
    """Result set over rows already held in memory"""

    def __init__(self, columns: List[ColumnMeta], rows: List[Tuple[Any, ...]]):
        self._meta = ResultSetMeta(attributes=list(columns))
        self._rows = list(rows)
        self._position = -1

    @classmethod
    def from_rows(
        cls,
        column_names: List[str],
        rows: List[Tuple[Any, ...]],
        data_types: Optional[List[str]] = None,
    ) -> "QueryResultSet":
        types = data_types or [""] * len(column_names)
        columns = [
            ColumnMeta(name=name, data_type=data_type, ordinal=i)
            for i, (name, data_type) in enumerate(zip(column_names, types))
        ]
        return cls(columns, rows)

    @property
    def meta(self) -> ResultSetMeta:
        return self._meta

    def next_row(self) -> bool:
        if self._position + 1 >= len(self._rows):
            self._position = len(self._rows)
            return False
        self._position += 1
        return True

    def get_value(self, index: int) -> Any:
        if not 0 <= self._position < len(self._rows):
            raise IndexError("Result set is not positioned on a row")
        return self._rows[self._position][index]
