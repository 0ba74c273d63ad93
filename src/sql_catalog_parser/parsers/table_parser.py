"""
CREATE TABLE recognizer.

Extracts the column list of a table together with per-column nullability,
default expression, array suffix and inline PRIMARY KEY / UNIQUE /
REFERENCES constraints.
"""

import re
from typing import List, Optional, Set

from ..models import Column, ColumnReference, Table
from .fragments import TableFragment
from .sql_utils import (
    IDENT,
    QUALIFIED_IDENT,
    find_closing_paren,
    mask_nested,
    normalize_whitespace,
    parse_identifier_list,
    parse_qualified_name,
    split_top_level,
    unquote_identifier,
)


CREATE_TABLE = re.compile(
    r'^\s*CREATE\s+(?:(?:GLOBAL|LOCAL)\s+)?(?:(?:TEMP|TEMPORARY|UNLOGGED)\s+)?'
    r'TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?'
    rf'(?P<name>{QUALIFIED_IDENT})\s*\(',
    re.IGNORECASE
)

# Table level elements that are not column definitions
TABLE_CONSTRAINT = re.compile(
    rf'^(?:CONSTRAINT\s+{IDENT}\s+)?'
    r'(?P<kind>PRIMARY\s+KEY|UNIQUE|FOREIGN\s+KEY|CHECK|EXCLUDE)\b',
    re.IGNORECASE
)
TABLE_LIKE = re.compile(r'^LIKE\s+', re.IGNORECASE)

COLUMN_NAME = re.compile(
    rf'^(?P<name>{IDENT})\s+(?P<rest>.+)$',
    re.IGNORECASE | re.DOTALL
)

COLUMN_TYPE = re.compile(
    r'(?P<type>'
    r'(?:timestamp|time)(?:\s*\(\s*\d+\s*\))?\s+with(?:out)?\s+time\s+zone'
    r'|double\s+precision'
    r'|character\s+varying(?:\s*\([^)]*\))?'
    r'|bit\s+varying(?:\s*\([^)]*\))?'
    rf'|{IDENT}(?:\s*\.\s*{IDENT})?(?:\s*\([^)]*\))?'
    r')'
    r'(?P<array>(?:\s*\[\s*\d*\s*\])+|\s+ARRAY\b(?:\s*\[\s*\d*\s*\])?)?',
    re.IGNORECASE
)

NOT_NULL = re.compile(r'\bNOT\s+NULL\b', re.IGNORECASE)
PRIMARY_KEY = re.compile(r'\bPRIMARY\s+KEY\b', re.IGNORECASE)
UNIQUE = re.compile(r'\bUNIQUE\b', re.IGNORECASE)
DEFAULT = re.compile(r'\bDEFAULT\b', re.IGNORECASE)
REFERENCES = re.compile(r'\bREFERENCES\b', re.IGNORECASE)

# Keywords that end a DEFAULT expression
CONSTRAINT_KEYWORD = re.compile(
    r'\b(?:NOT\s+NULL|NULL|PRIMARY\s+KEY|UNIQUE|REFERENCES|CHECK|CONSTRAINT|'
    r'GENERATED|COLLATE)\b',
    re.IGNORECASE
)

COLUMN_REFERENCES = re.compile(
    rf'REFERENCES\s+(?P<table>{QUALIFIED_IDENT})\s*(?:\(\s*(?P<column>{IDENT})\s*\))?',
    re.IGNORECASE
)


def parse_table_definition(statement: str, schema: str = "public") -> Optional[TableFragment]:
    """
    Recognize a CREATE TABLE statement.

    Returns:
        TableFragment, or None when the statement is not a CREATE TABLE with
        at least one column
    """
    match = CREATE_TABLE.match(statement)
    if not match:
        return None

    open_pos = match.end() - 1
    close_pos = find_closing_paren(statement, open_pos)
    if close_pos < 0:
        return None

    body = statement[open_pos + 1:close_pos]
    if not body.strip():
        return None

    name, table_schema = parse_qualified_name(match.group('name'))

    columns: List[Column] = []
    primary_key_columns: Set[str] = set()
    unique_columns: Set[str] = set()

    for element in split_top_level(body):
        element = normalize_whitespace(element)

        constraint = TABLE_CONSTRAINT.match(element)
        if constraint:
            kind = constraint.group('kind').upper()
            if kind.startswith('PRIMARY'):
                primary_key_columns.update(_constraint_columns(element, constraint.end()))
            elif kind == 'UNIQUE':
                unique_columns.update(_constraint_columns(element, constraint.end()))
            continue

        if TABLE_LIKE.match(element):
            continue

        column = parse_column_definition(element)
        if column:
            columns.append(column)

    if not columns:
        return None

    for column in columns:
        if column.name in primary_key_columns:
            column.is_primary_key = True
            column.nullable = False
        if column.name in unique_columns:
            column.is_unique = True

    return TableFragment(table=Table(
        schema=table_schema or schema,
        name=name,
        columns=columns,
    ))


def _constraint_columns(element: str, start: int) -> List[str]:
    """Column list of a table level PRIMARY KEY / UNIQUE element."""
    open_pos = element.find('(', start)
    if open_pos < 0:
        return []
    close_pos = find_closing_paren(element, open_pos)
    if close_pos < 0:
        return []
    return parse_identifier_list(element[open_pos + 1:close_pos])


def parse_column_definition(column_def: str) -> Optional[Column]:
    """
    Parse one column definition from a CREATE TABLE body.

    Examples:
        "id uuid PRIMARY KEY"                -> type uuid, primary key
        "tags text[] NOT NULL DEFAULT '{}'"  -> array of text, default '{}'
        "owner uuid REFERENCES users(id)"    -> foreign_key users.id
    """
    match = COLUMN_NAME.match(column_def.strip())
    if not match:
        return None

    name = unquote_identifier(match.group('name'))
    rest = match.group('rest').strip()

    type_match = COLUMN_TYPE.match(rest)
    if not type_match:
        return None

    col_type = type_match.group('type').replace('"', '').strip()
    is_array = bool(type_match.group('array'))
    constraints = rest[type_match.end():].strip()

    masked = mask_nested(constraints)
    is_primary_key = bool(PRIMARY_KEY.search(masked))
    not_null = bool(NOT_NULL.search(masked))
    is_unique = bool(UNIQUE.search(masked)) and not is_primary_key

    return Column(
        name=name,
        type=col_type,
        nullable=not not_null and not is_primary_key,
        default_value=_extract_default(constraints, masked),
        is_array=is_array,
        is_primary_key=is_primary_key,
        is_unique=is_unique,
        foreign_key=_extract_reference(constraints, masked),
    )


def _extract_default(constraints: str, masked: str) -> Optional[str]:
    match = DEFAULT.search(masked)
    if not match:
        return None

    expr_start = match.end()
    while expr_start < len(masked) and masked[expr_start].isspace():
        expr_start += 1

    # Search past the first character so that DEFAULT NULL keeps its value
    end = CONSTRAINT_KEYWORD.search(masked, expr_start + 1)
    expr_end = end.start() if end else len(constraints)

    default_value = constraints[expr_start:expr_end].strip()
    return default_value or None


def _extract_reference(constraints: str, masked: str) -> Optional[ColumnReference]:
    match = REFERENCES.search(masked)
    if not match:
        return None

    ref = COLUMN_REFERENCES.match(constraints, match.start())
    if not ref:
        return None

    table, ref_schema = parse_qualified_name(ref.group('table'))
    column = unquote_identifier(ref.group('column')) if ref.group('column') else None
    return ColumnReference(table=table, column=column, schema=ref_schema)
