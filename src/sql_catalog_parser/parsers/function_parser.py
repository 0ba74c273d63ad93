"""
CREATE FUNCTION recognizer.

Only the signature is captured: the argument list and the RETURNS clause.
Function bodies are ignored.
"""

import re
from typing import List, Optional

from ..models import Function, FunctionArg
from .fragments import FunctionFragment
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


CREATE_FUNCTION = re.compile(
    rf'^\s*CREATE\s+(?:OR\s+REPLACE\s+)?FUNCTION\s+(?P<name>{QUALIFIED_IDENT})\s*\(',
    re.IGNORECASE
)

# RETURNS runs until the first function option keyword
RETURNS_CLAUSE = re.compile(
    r'^\s*RETURNS\s+(?P<returns>.+?)'
    r'(?=\s+(?:LANGUAGE|AS|SECURITY|STABLE|IMMUTABLE|VOLATILE|STRICT|LEAKPROOF|'
    r'NOT\s+LEAKPROOF|CALLED|RETURNS\s+NULL|PARALLEL|COST|ROWS|SUPPORT|WINDOW|'
    r'SET|BEGIN|EXTERNAL|TRANSFORM)\b|\s*$)',
    re.IGNORECASE | re.DOTALL
)

ARG_MODE = re.compile(r'^(?P<mode>IN|OUT|INOUT|VARIADIC)\s+', re.IGNORECASE)
ARG_DEFAULT = re.compile(r'\s+DEFAULT\b|\s*=', re.IGNORECASE)
NAMED_ARG = re.compile(rf'^(?P<name>{IDENT})\s+(?P<type>.+)$', re.DOTALL)

# Argument text starting with one of these is an unnamed, multi-word type
MULTI_WORD_TYPE = re.compile(
    r'^(?:double\s+precision|character\s+varying|bit\s+varying|'
    r'(?:timestamp|time)(?:\s*\(\s*\d+\s*\))?\s+with(?:out)?\s+time\s+zone)\b',
    re.IGNORECASE
)


def parse_function_definition(statement: str, schema: str = "public") -> Optional[FunctionFragment]:
    """Recognize CREATE [OR REPLACE] FUNCTION name(args) RETURNS type ..."""
    match = CREATE_FUNCTION.match(statement)
    if not match:
        return None

    open_pos = match.end() - 1
    close_pos = find_closing_paren(statement, open_pos)
    if close_pos < 0:
        return None

    tail = statement[close_pos + 1:]
    returns = RETURNS_CLAUSE.match(mask_nested(tail))
    if not returns:
        return None

    returns_type = normalize_whitespace(tail[returns.start('returns'):returns.end('returns')])
    returns_type = returns_type.strip('"\'')

    name, func_schema = parse_qualified_name(match.group('name'))
    return FunctionFragment(function=Function(
        schema=func_schema or schema,
        name=name,
        args=parse_function_args(statement[open_pos + 1:close_pos]),
        returns=returns_type,
    ))


def parse_function_args(args_text: str) -> List[FunctionArg]:
    """
    Parse a function argument list.

    Unnamed arguments are named by position ($1, $2, ...), the way
    PostgreSQL refers to them inside a function body.
    """
    args = []
    for position, part in enumerate(split_top_level(args_text), start=1):
        part = normalize_whitespace(part)

        mode = None
        mode_match = ARG_MODE.match(part)
        if mode_match:
            mode = mode_match.group('mode').upper()
            part = part[mode_match.end():]

        default = ARG_DEFAULT.search(mask_nested(part))
        has_default = bool(default)
        if default:
            part = part[:default.start()].strip()

        named = NAMED_ARG.match(part)
        if named and not MULTI_WORD_TYPE.match(part):
            arg_name = unquote_identifier(named.group('name'))
            arg_type = named.group('type')
        else:
            arg_name = f"${position}"
            arg_type = part

        if not arg_type:
            continue

        args.append(FunctionArg(
            name=arg_name,
            type=arg_type.replace('"', '').strip(),
            has_default=has_default,
            mode=mode,
        ))
    return args
