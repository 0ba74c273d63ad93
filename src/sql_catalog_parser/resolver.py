"""
Per-file resolution of statement fragments into a catalog.

Fragments are applied strictly in statement order. Anything that refers to a
table or view (indexes, constraints, comments) is attached only if its target
was defined earlier in the same file; otherwise it is dropped.
"""

import logging
from typing import Callable, Dict, Iterable, Optional, Tuple

from .models import Catalog, CompositeType, EnumType, Function, Relationship, Table, View
from .parsers.fragments import (
    ColumnCommentFragment,
    CompositeTypeFragment,
    EnumFragment,
    ForeignKeyFragment,
    Fragment,
    FragmentKind,
    FunctionFragment,
    IndexFragment,
    TableCommentFragment,
    TableFragment,
    UniqueConstraintFragment,
    ViewCommentFragment,
    ViewFragment,
)
from .parsers.recognizers import recognize_statement
from .parsers.view_parser import infer_view_columns


class SymbolTable:
    """
    Objects defined so far in one file, keyed by (schema, name).

    Registering a name that already exists replaces the earlier record and
    moves it to the end, so the catalog reflects the last definition.
    """

    def __init__(self, default_schema: str = "public"):
        self.default_schema = default_schema
        self.tables: Dict[Tuple[str, str], Table] = {}
        self.views: Dict[Tuple[str, str], View] = {}
        self.enums: Dict[Tuple[str, str], EnumType] = {}
        self.composite_types: Dict[Tuple[str, str], CompositeType] = {}
        # Overloads are distinct functions, so argument types are part of the key
        self.functions: Dict[Tuple[str, str, Tuple[str, ...]], Function] = {}

    @staticmethod
    def _replace(registry: dict, key, record) -> None:
        registry.pop(key, None)
        registry[key] = record

    def register_table(self, table: Table) -> None:
        self._replace(self.tables, (table.schema, table.name), table)

    def register_view(self, view: View) -> None:
        self._replace(self.views, (view.schema, view.name), view)

    def register_enum(self, enum: EnumType) -> None:
        self._replace(self.enums, (enum.schema, enum.name), enum)

    def register_composite_type(self, composite_type: CompositeType) -> None:
        self._replace(self.composite_types, (composite_type.schema, composite_type.name), composite_type)

    def register_function(self, function: Function) -> None:
        key = (function.schema, function.name, tuple(arg.type for arg in function.args))
        self._replace(self.functions, key, function)

    def find_table(self, name: str, schema: Optional[str] = None) -> Optional[Table]:
        """
        Look up a table.

        An unqualified name is tried in the default schema first, then against
        the most recently registered table with that name in any schema.
        """
        return self._find(self.tables, name, schema)

    def find_view(self, name: str, schema: Optional[str] = None) -> Optional[View]:
        return self._find(self.views, name, schema)

    def _find(self, registry: dict, name: str, schema: Optional[str]):
        record = registry.get((schema or self.default_schema, name))
        if record is not None or schema is not None:
            return record
        for candidate in reversed(list(registry.values())):
            if candidate.name == name:
                return candidate
        return None

    def to_catalog(self) -> Catalog:
        return Catalog(
            tables=list(self.tables.values()),
            enums=list(self.enums.values()),
            functions=list(self.functions.values()),
            composite_types=list(self.composite_types.values()),
            views=list(self.views.values()),
        )


class ResolutionEngine:
    """
    Apply recognized statements of one file to a fresh symbol table.

    The engine keeps no state between calls to resolve(), so the same input
    always yields the same catalog.
    """

    def __init__(self, schema: str = "public", include_comments: bool = True):
        self.schema = schema
        self.include_comments = include_comments
        self.logger = logging.getLogger(self.__class__.__name__)

        self._handlers: Dict[FragmentKind, Callable[[SymbolTable, Fragment], None]] = {
            FragmentKind.TABLE: self._apply_table,
            FragmentKind.ENUM: self._apply_enum,
            FragmentKind.FUNCTION: self._apply_function,
            FragmentKind.COMPOSITE_TYPE: self._apply_composite_type,
            FragmentKind.VIEW: self._apply_view,
            FragmentKind.INDEX: self._apply_index,
            FragmentKind.ALTER_FOREIGN_KEY: self._apply_foreign_key,
            FragmentKind.ALTER_UNIQUE: self._apply_unique,
            FragmentKind.TABLE_COMMENT: self._apply_table_comment,
            FragmentKind.COLUMN_COMMENT: self._apply_column_comment,
            FragmentKind.VIEW_COMMENT: self._apply_view_comment,
        }

    def resolve(self, statements: Iterable[str]) -> Catalog:
        """Resolve one file's statements, in order, into a catalog."""
        symbols = SymbolTable(self.schema)
        for statement in statements:
            fragment = recognize_statement(statement, self.schema, self.include_comments)
            if fragment is None:
                continue
            self.apply(symbols, fragment)
        return symbols.to_catalog()

    def apply(self, symbols: SymbolTable, fragment: Fragment) -> None:
        self._handlers[fragment.kind](symbols, fragment)

    # Definitions

    def _apply_table(self, symbols: SymbolTable, fragment: TableFragment) -> None:
        symbols.register_table(fragment.table)

    def _apply_enum(self, symbols: SymbolTable, fragment: EnumFragment) -> None:
        symbols.register_enum(fragment.enum)

    def _apply_function(self, symbols: SymbolTable, fragment: FunctionFragment) -> None:
        symbols.register_function(fragment.function)

    def _apply_composite_type(self, symbols: SymbolTable, fragment: CompositeTypeFragment) -> None:
        symbols.register_composite_type(fragment.composite_type)

    def _apply_view(self, symbols: SymbolTable, fragment: ViewFragment) -> None:
        view = fragment.view
        view.columns = infer_view_columns(
            view.definition,
            symbols.tables.values(),
            default_schema=self.schema,
            column_names=fragment.column_names,
        )
        symbols.register_view(view)

    # Attachments

    def _apply_index(self, symbols: SymbolTable, fragment: IndexFragment) -> None:
        index = fragment.index
        table = symbols.find_table(index.table_name, fragment.table_schema)
        if table is None:
            self.logger.debug(f"Dropping index {index.name}: table {index.table_name} not defined yet")
            return
        index.schema = table.schema
        table.indexes.append(index)

    def _apply_unique(self, symbols: SymbolTable, fragment: UniqueConstraintFragment) -> None:
        table = symbols.find_table(fragment.table_name, fragment.table_schema)
        if table is None:
            self.logger.debug(f"Dropping unique constraint: table {fragment.table_name} not defined yet")
            return
        for column_name in fragment.columns:
            column = table.get_column(column_name)
            if column:
                column.is_unique = True

    def _apply_foreign_key(self, symbols: SymbolTable, fragment: ForeignKeyFragment) -> None:
        table = symbols.find_table(fragment.table_name, fragment.table_schema)
        if table is None:
            self.logger.debug(
                f"Dropping foreign key {fragment.constraint_name}: "
                f"table {fragment.table_name} not defined yet"
            )
            return

        table.relationships.append(Relationship(
            foreign_key_name=fragment.constraint_name,
            columns=list(fragment.columns),
            referenced_relation=fragment.referenced_table,
            referenced_columns=list(fragment.referenced_columns),
            is_one_to_one=self._is_one_to_one(table, fragment.columns),
            referenced_schema=fragment.referenced_schema,
        ))

    @staticmethod
    def _is_one_to_one(table: Table, columns) -> bool:
        """A single-column FK whose column is already known to be unique."""
        if len(columns) != 1:
            return False

        column_name = columns[0]
        column = table.get_column(column_name)
        if column is not None and column.is_unique:
            return True

        return any(index.is_unique and index.covers_only(column_name) for index in table.indexes)

    # Comments

    def _apply_table_comment(self, symbols: SymbolTable, fragment: TableCommentFragment) -> None:
        table = symbols.find_table(fragment.table_name, fragment.table_schema)
        if table is None:
            self.logger.debug(f"Dropping comment on missing table {fragment.table_name}")
            return
        table.comment = fragment.comment

    def _apply_column_comment(self, symbols: SymbolTable, fragment: ColumnCommentFragment) -> None:
        table = symbols.find_table(fragment.table_name, fragment.table_schema)
        column = table.get_column(fragment.column_name) if table else None
        if column is None:
            self.logger.debug(
                f"Dropping comment on missing column {fragment.table_name}.{fragment.column_name}"
            )
            return
        column.comment = fragment.comment

    def _apply_view_comment(self, symbols: SymbolTable, fragment: ViewCommentFragment) -> None:
        view = symbols.find_view(fragment.view_name, fragment.view_schema)
        if view is None:
            self.logger.debug(f"Dropping comment on missing view {fragment.view_name}")
            return
        view.comment = fragment.comment
