"""
CREATE TYPE recognizers: enums and composite types.

Both grammars start with CREATE TYPE <name> AS, so the enum recognizer must
run first. The composite recognizer refuses anything followed by ENUM.
"""

import re
from typing import Optional

from ..models import CompositeAttribute, CompositeType, EnumType
from .fragments import CompositeTypeFragment, EnumFragment
from .sql_utils import (
    IDENT,
    QUALIFIED_IDENT,
    SINGLE_QUOTE_STRING,
    find_closing_paren,
    normalize_whitespace,
    parse_qualified_name,
    split_top_level,
    unescape_string_literal,
    unquote_identifier,
)


CREATE_ENUM = re.compile(
    rf'^\s*CREATE\s+TYPE\s+(?P<name>{QUALIFIED_IDENT})\s+AS\s+ENUM\s*\(',
    re.IGNORECASE
)

CREATE_COMPOSITE = re.compile(
    rf'^\s*CREATE\s+TYPE\s+(?P<name>{QUALIFIED_IDENT})\s+AS\s*\(',
    re.IGNORECASE
)

ATTRIBUTE = re.compile(
    rf'^(?P<name>{IDENT})\s+(?P<type>.+?)(?:\s+COLLATE\s+.+)?$',
    re.IGNORECASE | re.DOTALL
)


def parse_enum_definition(statement: str, schema: str = "public") -> Optional[EnumFragment]:
    """Recognize CREATE TYPE ... AS ENUM ('a', 'b', ...)."""
    match = CREATE_ENUM.match(statement)
    if not match:
        return None

    open_pos = match.end() - 1
    close_pos = find_closing_paren(statement, open_pos)
    if close_pos < 0:
        return None

    values = [
        unescape_string_literal(m.group(1))
        for m in SINGLE_QUOTE_STRING.finditer(statement[open_pos + 1:close_pos])
    ]
    if not values:
        return None

    name, enum_schema = parse_qualified_name(match.group('name'))
    return EnumFragment(enum=EnumType(
        schema=enum_schema or schema,
        name=name,
        values=values,
    ))


def parse_composite_type(statement: str, schema: str = "public") -> Optional[CompositeTypeFragment]:
    """Recognize CREATE TYPE ... AS (attr type, ...)."""
    match = CREATE_COMPOSITE.match(statement)
    if not match:
        return None

    open_pos = match.end() - 1
    close_pos = find_closing_paren(statement, open_pos)
    if close_pos < 0:
        return None

    attributes = []
    for part in split_top_level(statement[open_pos + 1:close_pos]):
        attr = ATTRIBUTE.match(normalize_whitespace(part))
        if attr:
            attributes.append(CompositeAttribute(
                name=unquote_identifier(attr.group('name')),
                type=attr.group('type').strip(),
            ))

    if not attributes:
        return None

    name, type_schema = parse_qualified_name(match.group('name'))
    return CompositeTypeFragment(composite_type=CompositeType(
        schema=type_schema or schema,
        name=name,
        attributes=attributes,
    ))
