"""
Statement splitter for SQL files.

Turns the raw text of one file into an ordered, lazy sequence of statements.
Semicolons only terminate a statement when they are outside parentheses,
string literals, quoted identifiers and dollar-quoted bodies. Comments are
removed on the way so they never reach the recognizers.

A statement left unbalanced by a stray parenthesis or quote is cut at the
next semicolon that ends a line followed by a line starting with CREATE,
ALTER or COMMENT, so the statements after it are still split.
"""

import re
from typing import Iterator, List

from .sql_utils import skip_quoted


DOLLAR_QUOTE_TAG = re.compile(r'\$(?:[A-Za-z_][A-Za-z0-9_]*)?\$')

# ';' at end of line, next line opens a DDL statement in column 0
RESUME_POINT = re.compile(
    r';[ \t]*\r?\n(?=(?:CREATE|ALTER|COMMENT)\b)',
    re.IGNORECASE
)


def split_statements(content: str) -> Iterator[str]:
    """
    Yield the statements of a SQL script in source order.

    Args:
        content: Full text of one SQL file

    Yields:
        Each statement, stripped, without its terminating semicolon.
        Statements that are empty after trimming are skipped.
    """
    buf: List[str] = []
    depth = 0
    i = 0
    n = len(content)

    while i < n:
        ch = content[i]
        nxt = content[i + 1] if i + 1 < n else ''

        if ch == '-' and nxt == '-':
            newline = content.find('\n', i)
            i = n if newline == -1 else newline
            continue

        if ch == '/' and nxt == '*':
            i = _skip_block_comment(content, i)
            buf.append(' ')
            continue

        if ch in ("'", '"'):
            end = _resume_before(content, i, skip_quoted(content, i))
            buf.append(content[i:end])
            i = end
            continue

        if ch == '$' and not (i > 0 and _is_word_char(content[i - 1])):
            match = DOLLAR_QUOTE_TAG.match(content, i)
            if match:
                tag = match.group(0)
                close = content.find(tag, match.end())
                if close == -1:
                    end = _resume_before(content, i, n)
                else:
                    end = close + len(tag)
                buf.append(content[i:end])
                i = end
                continue

        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        elif ch == ';' and (depth <= 0 or RESUME_POINT.match(content, i)):
            statement = "".join(buf).strip()
            if statement:
                yield statement
            buf = []
            depth = 0
            i += 1
            continue

        buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _resume_before(content: str, start: int, end: int) -> int:
    """Cut a quoted span short at the first resume point inside it."""
    match = RESUME_POINT.search(content, start, end)
    return match.start() if match else end


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == '_'


def _skip_block_comment(content: str, start: int) -> int:
    """Skip a /* */ comment. PostgreSQL allows these to nest."""
    depth = 0
    n = len(content)
    j = start
    while j < n:
        pair = content[j:j + 2]
        if pair == '/*':
            depth += 1
            j += 2
        elif pair == '*/':
            depth -= 1
            j += 2
            if depth == 0:
                return j
        else:
            j += 1
    return n
