"""
ALTER TABLE constraint recognizers: foreign keys and unique constraints.
"""

import re
from typing import Optional

from .fragments import ForeignKeyFragment, UniqueConstraintFragment
from .sql_utils import IDENT, QUALIFIED_IDENT, parse_identifier_list, parse_qualified_name, unquote_identifier


ALTER_TABLE = (
    r'^\s*ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?'
    rf'(?P<table>{QUALIFIED_IDENT})\s+'
)

ALTER_FOREIGN_KEY = re.compile(
    ALTER_TABLE
    + rf'ADD\s+CONSTRAINT\s+(?P<constraint>{IDENT})\s+'
    r'FOREIGN\s+KEY\s*\((?P<columns>[^)]+)\)\s*'
    rf'REFERENCES\s+(?P<ref_table>{QUALIFIED_IDENT})\s*'
    r'(?:\((?P<ref_columns>[^)]+)\))?',
    re.IGNORECASE
)

ALTER_UNIQUE = re.compile(
    ALTER_TABLE
    + rf'ADD\s+(?:CONSTRAINT\s+{IDENT}\s+)?'
    r'UNIQUE\s*(?:NULLS\s+(?:NOT\s+)?DISTINCT\s*)?\((?P<columns>[^)]+)\)',
    re.IGNORECASE
)


def parse_alter_table_foreign_key(statement: str, schema: str = "public") -> Optional[ForeignKeyFragment]:
    """Recognize ALTER TABLE t ADD CONSTRAINT c FOREIGN KEY (...) REFERENCES r (...)."""
    match = ALTER_FOREIGN_KEY.match(statement)
    if not match:
        return None

    columns = parse_identifier_list(match.group('columns'))
    if not columns:
        return None

    table_name, table_schema = parse_qualified_name(match.group('table'))
    ref_table, ref_schema = parse_qualified_name(match.group('ref_table'))
    ref_columns = parse_identifier_list(match.group('ref_columns') or '')

    return ForeignKeyFragment(
        table_name=table_name,
        table_schema=table_schema,
        constraint_name=unquote_identifier(match.group('constraint')),
        columns=columns,
        referenced_table=ref_table,
        referenced_schema=ref_schema,
        referenced_columns=ref_columns,
    )


def parse_alter_table_unique(statement: str, schema: str = "public") -> Optional[UniqueConstraintFragment]:
    """Recognize ALTER TABLE t ADD [CONSTRAINT c] UNIQUE (...)."""
    match = ALTER_UNIQUE.match(statement)
    if not match:
        return None

    columns = parse_identifier_list(match.group('columns'))
    if not columns:
        return None

    table_name, table_schema = parse_qualified_name(match.group('table'))
    return UniqueConstraintFragment(
        table_name=table_name,
        table_schema=table_schema,
        columns=columns,
    )
