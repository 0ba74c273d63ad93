"""
COMMENT ON {TABLE|COLUMN|VIEW} recognizers.
"""

import re
from typing import Optional

from .fragments import ColumnCommentFragment, TableCommentFragment, ViewCommentFragment
from .sql_utils import IDENT, QUALIFIED_IDENT, parse_qualified_name, split_name_parts, unescape_string_literal


COMMENT_TEXT = r"\s+IS\s+'(?P<comment>(?:[^']|'')*)'\s*$"

TABLE_COMMENT = re.compile(
    rf'^\s*COMMENT\s+ON\s+TABLE\s+(?P<target>{QUALIFIED_IDENT})' + COMMENT_TEXT,
    re.IGNORECASE | re.DOTALL
)

# table.column or schema.table.column
COLUMN_COMMENT = re.compile(
    rf'^\s*COMMENT\s+ON\s+COLUMN\s+(?P<target>{IDENT}(?:\s*\.\s*{IDENT}){{1,2}})' + COMMENT_TEXT,
    re.IGNORECASE | re.DOTALL
)

VIEW_COMMENT = re.compile(
    rf'^\s*COMMENT\s+ON\s+(?:MATERIALIZED\s+)?VIEW\s+(?P<target>{QUALIFIED_IDENT})' + COMMENT_TEXT,
    re.IGNORECASE | re.DOTALL
)


def parse_table_comment(statement: str, schema: str = "public") -> Optional[TableCommentFragment]:
    match = TABLE_COMMENT.match(statement)
    if not match:
        return None

    name, table_schema = parse_qualified_name(match.group('target'))
    return TableCommentFragment(
        table_name=name,
        table_schema=table_schema,
        comment=unescape_string_literal(match.group('comment')),
    )


def parse_column_comment(statement: str, schema: str = "public") -> Optional[ColumnCommentFragment]:
    match = COLUMN_COMMENT.match(statement)
    if not match:
        return None

    parts = split_name_parts(match.group('target'))
    table_schema = parts[0] if len(parts) == 3 else None
    return ColumnCommentFragment(
        table_name=parts[-2],
        table_schema=table_schema,
        column_name=parts[-1],
        comment=unescape_string_literal(match.group('comment')),
    )


def parse_view_comment(statement: str, schema: str = "public") -> Optional[ViewCommentFragment]:
    match = VIEW_COMMENT.match(statement)
    if not match:
        return None

    name, view_schema = parse_qualified_name(match.group('target'))
    return ViewCommentFragment(
        view_name=name,
        view_schema=view_schema,
        comment=unescape_string_literal(match.group('comment')),
    )
