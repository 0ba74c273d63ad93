"""
CREATE INDEX recognizer.
"""

import re
from typing import List, Optional

from ..models import Index
from .fragments import IndexFragment
from .sql_utils import (
    IDENT,
    QUALIFIED_IDENT,
    find_closing_paren,
    mask_nested,
    normalize_whitespace,
    parse_qualified_name,
    split_top_level,
    unquote_identifier,
)


CREATE_INDEX = re.compile(
    r'^\s*CREATE\s+(?P<unique>UNIQUE\s+)?INDEX\s+(?:CONCURRENTLY\s+)?(?:IF\s+NOT\s+EXISTS\s+)?'
    rf'(?:(?P<name>{QUALIFIED_IDENT})\s+)?ON\s+(?:ONLY\s+)?(?P<table>{QUALIFIED_IDENT})\s*'
    r'(?:USING\s+(?P<method>\w+)\s*)?\(',
    re.IGNORECASE
)

# A plain column, possibly followed by COLLATE / opclass / ASC / DESC / NULLS
INDEX_COLUMN = re.compile(rf'^(?P<column>{IDENT})(?:\s+.*)?$', re.DOTALL)
WHERE_KEYWORD = re.compile(r'\bWHERE\b', re.IGNORECASE)


def parse_index_definition(statement: str, schema: str = "public") -> Optional[IndexFragment]:
    """
    Recognize CREATE [UNIQUE] INDEX [name] ON table [USING method] (...) [WHERE ...].

    Unnamed indexes get the name PostgreSQL would generate: <table>_<cols>_idx.
    """
    match = CREATE_INDEX.match(statement)
    if not match:
        return None

    open_pos = match.end() - 1
    close_pos = find_closing_paren(statement, open_pos)
    if close_pos < 0:
        return None

    columns = parse_index_columns(statement[open_pos + 1:close_pos])
    if not columns:
        return None

    table_name, table_schema = parse_qualified_name(match.group('table'))

    if match.group('name'):
        index_name, _ = parse_qualified_name(match.group('name'))
    else:
        index_name = f"{table_name}_{'_'.join(columns)}_idx"

    where_clause = None
    tail = statement[close_pos + 1:]
    where = WHERE_KEYWORD.search(mask_nested(tail))
    if where:
        where_clause = normalize_whitespace(tail[where.end():]) or None

    return IndexFragment(
        index=Index(
            name=index_name,
            table_name=table_name,
            columns=columns,
            is_unique=bool(match.group('unique')),
            method=match.group('method').lower() if match.group('method') else None,
            where_clause=where_clause,
            schema=table_schema or schema,
        ),
        table_schema=table_schema,
    )


def parse_index_columns(text: str) -> List[str]:
    """Column names of an index; expressions are kept as written."""
    columns = []
    for part in split_top_level(text):
        part = normalize_whitespace(part)
        plain = INDEX_COLUMN.match(part)
        columns.append(unquote_identifier(plain.group('column')) if plain else part)
    return columns
