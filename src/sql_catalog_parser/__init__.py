"""
Parse SQL DDL files into a resolved catalog of tables, types, functions and views.
"""

from .models import (
    Catalog,
    Column,
    ColumnReference,
    CompositeAttribute,
    CompositeType,
    EnumType,
    Function,
    FunctionArg,
    Index,
    Relationship,
    Table,
    View,
)
from .resolver import ResolutionEngine, SymbolTable
from .schema_parser import FileError, ParseResult, SchemaParser, describe_error, parse_sql_files

__version__ = '0.1.0'

__all__ = [
    'Catalog',
    'Column',
    'ColumnReference',
    'CompositeAttribute',
    'CompositeType',
    'EnumType',
    'Function',
    'FunctionArg',
    'Index',
    'Relationship',
    'Table',
    'View',
    'ResolutionEngine',
    'SymbolTable',
    'FileError',
    'ParseResult',
    'SchemaParser',
    'describe_error',
    'parse_sql_files',
]
