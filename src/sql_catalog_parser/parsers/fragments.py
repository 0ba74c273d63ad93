"""
Parsed statement fragments.

A fragment is the transient result of one recognized statement before it is
applied to the per-file symbol table. Every fragment carries a FragmentKind
tag that the resolution engine dispatches on.
"""

from typing import List, Optional, Union
from dataclasses import dataclass, field
from enum import Enum

from ..models import CompositeType, EnumType, Function, Index, Table, View


class FragmentKind(Enum):
    """Statement kinds, in recognizer priority order."""
    TABLE = "TABLE"
    ENUM = "ENUM"
    FUNCTION = "FUNCTION"
    COMPOSITE_TYPE = "COMPOSITE_TYPE"
    VIEW = "VIEW"
    INDEX = "INDEX"
    ALTER_FOREIGN_KEY = "ALTER_FOREIGN_KEY"
    ALTER_UNIQUE = "ALTER_UNIQUE"
    TABLE_COMMENT = "TABLE_COMMENT"
    COLUMN_COMMENT = "COLUMN_COMMENT"
    VIEW_COMMENT = "VIEW_COMMENT"


@dataclass
class TableFragment:
    table: Table
    kind: FragmentKind = field(default=FragmentKind.TABLE, init=False)


@dataclass
class EnumFragment:
    enum: EnumType
    kind: FragmentKind = field(default=FragmentKind.ENUM, init=False)


@dataclass
class FunctionFragment:
    function: Function
    kind: FragmentKind = field(default=FragmentKind.FUNCTION, init=False)


@dataclass
class CompositeTypeFragment:
    composite_type: CompositeType
    kind: FragmentKind = field(default=FragmentKind.COMPOSITE_TYPE, init=False)


@dataclass
class ViewFragment:
    view: View
    # Parenthesised column list after the view name, if one was written
    column_names: List[str] = field(default_factory=list)
    kind: FragmentKind = field(default=FragmentKind.VIEW, init=False)


@dataclass
class IndexFragment:
    index: Index
    table_schema: Optional[str]  # None when the table name was unqualified
    kind: FragmentKind = field(default=FragmentKind.INDEX, init=False)


@dataclass
class ForeignKeyFragment:
    """ALTER TABLE ... ADD CONSTRAINT ... FOREIGN KEY ... REFERENCES ..."""
    table_name: str
    table_schema: Optional[str]
    constraint_name: str
    columns: List[str]
    referenced_table: str
    referenced_schema: Optional[str]
    referenced_columns: List[str]
    kind: FragmentKind = field(default=FragmentKind.ALTER_FOREIGN_KEY, init=False)


@dataclass
class UniqueConstraintFragment:
    """ALTER TABLE ... ADD [CONSTRAINT ...] UNIQUE (...)"""
    table_name: str
    table_schema: Optional[str]
    columns: List[str]
    kind: FragmentKind = field(default=FragmentKind.ALTER_UNIQUE, init=False)


@dataclass
class TableCommentFragment:
    table_name: str
    table_schema: Optional[str]
    comment: str
    kind: FragmentKind = field(default=FragmentKind.TABLE_COMMENT, init=False)


@dataclass
class ColumnCommentFragment:
    table_name: str
    table_schema: Optional[str]
    column_name: str
    comment: str
    kind: FragmentKind = field(default=FragmentKind.COLUMN_COMMENT, init=False)


@dataclass
class ViewCommentFragment:
    view_name: str
    view_schema: Optional[str]
    comment: str
    kind: FragmentKind = field(default=FragmentKind.VIEW_COMMENT, init=False)


Fragment = Union[
    TableFragment,
    EnumFragment,
    FunctionFragment,
    CompositeTypeFragment,
    ViewFragment,
    IndexFragment,
    ForeignKeyFragment,
    UniqueConstraintFragment,
    TableCommentFragment,
    ColumnCommentFragment,
    ViewCommentFragment,
]
