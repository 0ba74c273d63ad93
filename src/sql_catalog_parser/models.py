"""
Catalog data model for parsed SQL schemas.

This module defines the records produced by the DDL parser: tables with
their columns, indexes and relationships, enums, functions, composite
types and views, plus the Catalog aggregate that holds them.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass, field


@dataclass
class ColumnReference:
    """Target of an inline REFERENCES clause on a column."""
    table: str
    column: Optional[str] = None
    schema: Optional[str] = None


@dataclass
class Column:
    """A single table or view column."""
    name: str
    type: str  # Declared type as written, without the array suffix
    nullable: bool = True
    default_value: Optional[str] = None
    is_array: bool = False
    is_primary_key: bool = False
    is_unique: bool = False
    comment: Optional[str] = None
    foreign_key: Optional[ColumnReference] = None


@dataclass
class Index:
    """Represents a CREATE INDEX statement attached to its table."""
    name: str
    table_name: str
    columns: List[str] = field(default_factory=list)
    is_unique: bool = False
    method: Optional[str] = None
    where_clause: Optional[str] = None
    schema: Optional[str] = None

    def covers_only(self, column_name: str) -> bool:
        """Return True if the index is built on exactly this one column."""
        return len(self.columns) == 1 and self.columns[0] == column_name


@dataclass
class Relationship:
    """A foreign key from a table to a referenced relation."""
    foreign_key_name: str
    columns: List[str]
    referenced_relation: str
    referenced_columns: List[str]
    is_one_to_one: bool = False
    referenced_schema: Optional[str] = None


@dataclass
class Table:
    """Complete definition of a table with everything attached to it."""

    # Identification
    schema: str
    name: str

    # Structure
    columns: List[Column] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)

    comment: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        """Return fully qualified table name."""
        return f"{self.schema}.{self.name}"

    def get_column(self, name: str) -> Optional[Column]:
        """Find a column by exact, case-sensitive name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None


@dataclass
class EnumType:
    """CREATE TYPE ... AS ENUM."""
    schema: str
    name: str
    values: List[str] = field(default_factory=list)


@dataclass
class FunctionArg:
    name: str
    type: str
    has_default: bool = False
    mode: Optional[str] = None


@dataclass
class Function:
    """CREATE [OR REPLACE] FUNCTION signature."""
    schema: str
    name: str
    args: List[FunctionArg] = field(default_factory=list)
    returns: str = ""


@dataclass
class CompositeAttribute:
    name: str
    type: str


@dataclass
class CompositeType:
    """CREATE TYPE ... AS (...)."""
    schema: str
    name: str
    attributes: List[CompositeAttribute] = field(default_factory=list)


@dataclass
class View:
    """A plain or materialized view."""
    schema: str
    name: str
    definition: str = ""
    columns: List[Column] = field(default_factory=list)
    is_materialized: bool = False
    comment: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"


@dataclass
class Catalog:
    """
    Resolved schema model.

    Sequences keep the order in which objects were defined so that output
    built from a catalog is deterministic.
    """
    tables: List[Table] = field(default_factory=list)
    enums: List[EnumType] = field(default_factory=list)
    functions: List[Function] = field(default_factory=list)
    composite_types: List[CompositeType] = field(default_factory=list)
    views: List[View] = field(default_factory=list)

    def extend(self, other: 'Catalog') -> None:
        """Append every object of another catalog. No de-duplication."""
        self.tables.extend(other.tables)
        self.enums.extend(other.enums)
        self.functions.extend(other.functions)
        self.composite_types.extend(other.composite_types)
        self.views.extend(other.views)

    def summary(self) -> Dict[str, int]:
        """Count of objects per artifact kind."""
        return {
            'tables': len(self.tables),
            'enums': len(self.enums),
            'functions': len(self.functions),
            'composite_types': len(self.composite_types),
            'views': len(self.views),
        }

    def get_table(self, name: str, schema: Optional[str] = None) -> Optional[Table]:
        """Return the first table with this name (and schema, if given)."""
        for table in self.tables:
            if table.name == name and (schema is None or table.schema == schema):
                return table
        return None

    def get_view(self, name: str, schema: Optional[str] = None) -> Optional[View]:
        for view in self.views:
            if view.name == name and (schema is None or view.schema == schema):
                return view
        return None

    def is_empty(self) -> bool:
        return not any(self.summary().values())
