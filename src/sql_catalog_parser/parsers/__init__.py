from .fragments import Fragment, FragmentKind
from .recognizers import COMMENT_RECOGNIZERS, RECOGNIZERS, recognize_statement
from .statement_splitter import split_statements

__all__ = [
    'Fragment',
    'FragmentKind',
    'COMMENT_RECOGNIZERS',
    'RECOGNIZERS',
    'recognize_statement',
    'split_statements',
]
