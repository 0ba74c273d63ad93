"""
Low-level helpers shared by the statement recognizers.

Identifiers, string literals and parenthesised groups are handled here so
that each recognizer only has to describe its own grammar.
"""

import re
from typing import List, Optional, Tuple


# Regex building blocks. An identifier is either "quoted" or a bare word,
# optionally prefixed by a schema.
IDENT = r'(?:"(?:[^"]|"")+"|\w+)'
QUALIFIED_IDENT = rf'{IDENT}(?:\s*\.\s*{IDENT})?'

SINGLE_QUOTE_STRING = re.compile(r"'((?:[^']|'')*)'")


def unquote_identifier(identifier: Optional[str]) -> str:
    """Strip surrounding double quotes. Identifiers are never case folded."""
    if not identifier:
        return ""
    identifier = identifier.strip()
    if len(identifier) >= 2 and identifier.startswith('"') and identifier.endswith('"'):
        return identifier[1:-1].replace('""', '"')
    return identifier


def parse_qualified_name(qualified_name: str) -> Tuple[str, Optional[str]]:
    """
    Split a possibly schema-qualified name.

    Returns:
        (name, schema) where schema is None for unqualified names

    Example:
        parse_qualified_name('"auth".users') -> ('users', 'auth')
    """
    if not qualified_name:
        return "", None

    parts = _split_outside_quotes(qualified_name.strip(), '.')
    if len(parts) >= 2:
        return unquote_identifier(parts[-1]), unquote_identifier(parts[-2])
    return unquote_identifier(parts[0]), None


def split_name_parts(dotted_name: str) -> List[str]:
    """Split 'schema.table.column' into unquoted parts."""
    return [unquote_identifier(p) for p in _split_outside_quotes(dotted_name.strip(), '.')]


def _split_outside_quotes(text: str, delim: str) -> List[str]:
    parts, buf, in_dq = [], [], False
    for ch in text:
        if ch == '"':
            in_dq = not in_dq
        if ch == delim and not in_dq:
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
    parts.append("".join(buf).strip())
    return parts


def unescape_string_literal(body: str) -> str:
    """Collapse doubled single quotes inside a literal body."""
    return body.replace("''", "'")


def skip_quoted(text: str, start: int) -> int:
    """
    Return the index just past the quoted literal or identifier at start.

    Handles 'string' and "identifier" quoting with doubled-quote escapes,
    plus backslash escapes inside E'...' literals. An unterminated quote
    runs to the end of the text.
    """
    quote = text[start]
    escapes = (
        quote == "'" and start > 0 and text[start - 1] in 'eE'
        and not (start > 1 and _is_word_char(text[start - 2]))
    )
    n = len(text)
    j = start + 1
    while j < n:
        c = text[j]
        if escapes and c == '\\':
            j += 2
            continue
        if c == quote:
            if j + 1 < n and text[j + 1] == quote:
                j += 2
                continue
            return j + 1
        j += 1
    return n


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == '_'


def find_closing_paren(text: str, open_pos: int) -> int:
    """
    Find the parenthesis matching the one at open_pos.

    Quoted literals and identifiers are skipped. Returns -1 when the group is
    not balanced.
    """
    depth = 0
    i = open_pos
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in ("'", '"'):
            i = skip_quoted(text, i)
            continue
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def split_top_level(text: str, delim: str = ',') -> List[str]:
    """Split on delim outside parentheses and quotes. Empty parts are dropped."""
    parts, buf, depth = [], [], 0
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in ("'", '"'):
            end = skip_quoted(text, i)
            buf.append(text[i:end])
            i = end
            continue
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        if ch == delim and depth == 0:
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
        i += 1
    parts.append("".join(buf).strip())
    return [p for p in parts if p]


def mask_nested(text: str) -> str:
    """
    Blank out string literals and parenthesised groups.

    The result has the same length as the input, so positions of keywords
    found in the mask can be used to slice the original text.
    """
    out = []
    depth = 0
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in ("'", '"'):
            end = skip_quoted(text, i)
            if depth == 0:
                # keep the delimiters so quoted spans stay visible
                body = ' ' * max(end - i - 2, 0)
                out.append(ch + body + (text[end - 1] if end - i >= 2 else ''))
            else:
                out.append(' ' * (end - i))
            i = end
            continue
        if ch == '(':
            depth += 1
            out.append(ch if depth == 1 else ' ')
        elif ch == ')':
            out.append(ch if depth == 1 else ' ')
            depth = max(depth - 1, 0)
        else:
            out.append(ch if depth == 0 else ' ')
        i += 1
    return "".join(out)


def parse_identifier_list(text: str) -> List[str]:
    """Parse a comma separated column list such as '"a", b'."""
    return [unquote_identifier(part) for part in split_top_level(text)]


def normalize_whitespace(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()
