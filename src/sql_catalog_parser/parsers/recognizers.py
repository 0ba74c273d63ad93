"""
Fixed-priority recognizer chain.

Some grammars are textual prefixes of others (CREATE TYPE ... AS ENUM versus
CREATE TYPE ... AS (...)), so the order below is significant: the first
recognizer that returns a fragment wins.
"""

from typing import Callable, List, Optional

from .comment_parser import parse_column_comment, parse_table_comment, parse_view_comment
from .constraint_parser import parse_alter_table_foreign_key, parse_alter_table_unique
from .fragments import Fragment
from .function_parser import parse_function_definition
from .index_parser import parse_index_definition
from .table_parser import parse_table_definition
from .type_parser import parse_composite_type, parse_enum_definition
from .view_parser import parse_view_definition


Recognizer = Callable[[str, str], Optional[Fragment]]

RECOGNIZERS: List[Recognizer] = [
    parse_table_definition,
    parse_enum_definition,
    parse_function_definition,
    parse_composite_type,
    parse_view_definition,
    parse_index_definition,
    parse_alter_table_foreign_key,
    parse_alter_table_unique,
]

COMMENT_RECOGNIZERS: List[Recognizer] = [
    parse_table_comment,
    parse_column_comment,
    parse_view_comment,
]


def recognize_statement(statement: str, schema: str = "public",
                        include_comments: bool = True) -> Optional[Fragment]:
    """Offer a statement to each recognizer in turn. None if nothing matched."""
    chain = RECOGNIZERS + COMMENT_RECOGNIZERS if include_comments else RECOGNIZERS
    for recognizer in chain:
        fragment = recognizer(statement, schema)
        if fragment is not None:
            return fragment
    return None
