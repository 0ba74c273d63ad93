"""
CREATE [MATERIALIZED] VIEW recognizer and view column inference.

The recognizer only captures the view name, flags and SELECT body. Column
inference needs the tables seen so far in the file, so the resolution engine
calls infer_view_columns() when it registers the view.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import Column, Table, View
from .fragments import ViewFragment
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


CREATE_VIEW = re.compile(
    r'^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:TEMP|TEMPORARY)\s+)?(?:RECURSIVE\s+)?'
    r'(?P<materialized>MATERIALIZED\s+)?VIEW\s+(?:IF\s+NOT\s+EXISTS\s+)?'
    rf'(?P<name>{QUALIFIED_IDENT})',
    re.IGNORECASE
)

AS_KEYWORD = re.compile(r'\bAS\b', re.IGNORECASE)
TRAILING_VIEW_OPTIONS = re.compile(
    r'\s+WITH\s+(?:NO\s+DATA|DATA|(?:CASCADED\s+|LOCAL\s+)?CHECK\s+OPTION)\s*$',
    re.IGNORECASE
)

SELECT_KEYWORD = re.compile(r'\bSELECT\s+(?:ALL\s+|DISTINCT(?:\s+ON\s*\(\s*\))?\s+)?', re.IGNORECASE)
FROM_KEYWORD = re.compile(r'\bFROM\b', re.IGNORECASE)
FROM_CLAUSE_END = re.compile(
    r'\b(?:WHERE|GROUP|HAVING|ORDER|LIMIT|OFFSET|FETCH|WINDOW|UNION|INTERSECT|EXCEPT)\b',
    re.IGNORECASE
)
FROM_ITEM_SEPARATOR = re.compile(
    r',|\b(?:NATURAL\s+)?(?:(?:LEFT|RIGHT|FULL)(?:\s+OUTER)?\s+|INNER\s+|CROSS\s+)?JOIN\b',
    re.IGNORECASE
)
JOIN_CONDITION = re.compile(r'\b(?:ON|USING)\b', re.IGNORECASE)
FROM_ITEM = re.compile(
    rf'^\s*(?:ONLY\s+)?(?:LATERAL\s+)?(?P<table>{QUALIFIED_IDENT})(?:\s+(?:AS\s+)?(?P<alias>{IDENT}))?\s*$',
    re.IGNORECASE
)

CAST_SUFFIX = re.compile(r'^(?P<expr>.+?)::(?P<type>[\w\s\[\]]+)$', re.IGNORECASE | re.DOTALL)
CAST_FUNCTION = re.compile(r'^CAST\s*\((?P<expr>.+?)\s+AS\s+(?P<type>[\w\s\[\]]+)\)$', re.IGNORECASE | re.DOTALL)
ALIASED = re.compile(rf'^(?P<expr>.+)\s+AS\s+(?P<alias>{IDENT})$', re.IGNORECASE | re.DOTALL)
COLUMN_REF = re.compile(rf'(?:(?P<qualifier>{IDENT})\.)?(?P<column>{IDENT}|\*)$')

# (pattern, type, is_array) for expressions whose type can be guessed
EXPRESSION_TYPES: List[Tuple[re.Pattern, str, bool]] = [
    (re.compile(r'^count\s*\(', re.I), 'bigint', False),
    (re.compile(r'^(?:sum|avg)\s*\(', re.I), 'numeric', False),
    (re.compile(r'^(?:min|max)\s*\(', re.I), 'unknown', False),
    (re.compile(r'^array_agg\s*\(', re.I), 'unknown', True),
    (re.compile(r'^string_agg\s*\(', re.I), 'text', False),
    (re.compile(r'^bool_(?:and|or)\s*\(', re.I), 'boolean', False),
    (re.compile(r'^jsonb_(?:object_)?agg\s*\(', re.I), 'jsonb', False),
    (re.compile(r'^json_(?:object_)?agg\s*\(', re.I), 'json', False),
    (re.compile(r'^(?:now\s*\(\s*\)|current_timestamp)', re.I), 'timestamp with time zone', False),
    (re.compile(r'^current_date', re.I), 'date', False),
    (re.compile(r'^current_time', re.I), 'time with time zone', False),
    (re.compile(r'^case\s+', re.I), 'unknown', False),
    (re.compile(r'^\d+$'), 'integer', False),
    (re.compile(r'^\d+\.\d+$'), 'numeric', False),
    (re.compile(r"^'.*'$", re.S), 'text', False),
    (re.compile(r'^(?:true|false)$', re.I), 'boolean', False),
]


def parse_view_definition(statement: str, schema: str = "public") -> Optional[ViewFragment]:
    """Recognize CREATE [MATERIALIZED] VIEW name [(cols)] [options] AS query."""
    match = CREATE_VIEW.match(statement)
    if not match:
        return None

    rest = statement[match.end():]
    column_names: List[str] = []

    stripped = rest.lstrip()
    if stripped.startswith('('):
        open_pos = len(rest) - len(stripped)
        close_pos = find_closing_paren(rest, open_pos)
        if close_pos < 0:
            return None
        column_names = parse_identifier_list(rest[open_pos + 1:close_pos])
        rest = rest[close_pos + 1:]

    as_match = AS_KEYWORD.search(mask_nested(rest))
    if not as_match:
        return None

    definition = TRAILING_VIEW_OPTIONS.sub('', rest[as_match.end():].strip()).strip()
    if not definition:
        return None

    name, view_schema = parse_qualified_name(match.group('name'))
    return ViewFragment(
        view=View(
            schema=view_schema or schema,
            name=name,
            definition=definition,
            is_materialized=bool(match.group('materialized')),
        ),
        column_names=column_names,
    )


def infer_view_columns(definition: str, tables: Iterable[Table],
                       default_schema: str = "public",
                       column_names: Optional[List[str]] = None) -> List[Column]:
    """
    Infer the output columns of a view from its SELECT list.

    Column references are resolved against the given tables; anything else
    gets a type guessed from the expression, or 'unknown'.
    """
    masked = mask_nested(definition)

    select = SELECT_KEYWORD.search(masked)
    if not select:
        return []

    from_match = FROM_KEYWORD.search(masked, select.end())
    select_end = from_match.start() if from_match else len(definition)
    select_list = definition[select.end():select_end]

    referenced: Dict[str, Table] = {}
    if from_match:
        referenced = _referenced_tables(definition, masked, from_match.end(),
                                        list(tables), default_schema)

    columns: List[Column] = []
    for expr in split_top_level(select_list):
        columns.extend(_infer_column(normalize_whitespace(expr), referenced))

    for column, new_name in zip(columns, column_names or []):
        column.name = new_name
    return columns


def _referenced_tables(definition: str, masked: str, start: int,
                       tables: List[Table], default_schema: str) -> Dict[str, Table]:
    """Map every alias and name in the FROM clause to a known table."""
    end_match = FROM_CLAUSE_END.search(masked, start)
    end = end_match.start() if end_match else len(definition)

    referenced: Dict[str, Table] = {}
    item_start = start
    separators = list(FROM_ITEM_SEPARATOR.finditer(masked, start, end))
    for boundary in separators + [None]:
        item_end = boundary.start() if boundary else end
        item_masked = masked[item_start:item_end]
        condition = JOIN_CONDITION.search(item_masked)
        if condition:
            item_end = item_start + condition.start()

        item = FROM_ITEM.match(definition[item_start:item_end])
        if item:
            name, ref_schema = parse_qualified_name(item.group('table'))
            table = _find_table(tables, name, ref_schema, default_schema)
            if table:
                alias = unquote_identifier(item.group('alias')) if item.group('alias') else name
                referenced[alias] = table
                referenced.setdefault(name, table)

        if boundary:
            item_start = boundary.end()

    return referenced


def _find_table(tables: List[Table], name: str, ref_schema: Optional[str],
                default_schema: str) -> Optional[Table]:
    wanted = ref_schema or default_schema
    for table in tables:
        if table.name == name and table.schema == wanted:
            return table
    if ref_schema is None:
        for table in tables:
            if table.name == name:
                return table
    return None


def _copy_column(name: str, source: Column) -> Column:
    return Column(
        name=name,
        type=source.type,
        nullable=source.nullable,
        is_array=source.is_array,
    )


def _cast_column(name: str, type_text: str) -> Column:
    type_text = type_text.strip()
    return Column(
        name=name,
        type=type_text.replace('[]', '').strip(),
        is_array='[' in type_text,
    )


def _infer_column(expr: str, referenced: Dict[str, Table]) -> List[Column]:
    if expr == '*':
        seen = []
        for table in referenced.values():
            if table not in seen:
                seen.append(table)
        return [_copy_column(c.name, c) for table in seen for c in table.columns]

    if expr.endswith('.*'):
        qualifier = unquote_identifier(expr[:-2].split('.')[-1])
        table = referenced.get(qualifier)
        return [_copy_column(c.name, c) for c in table.columns] if table else []

    aliased = ALIASED.match(expr)
    if not aliased:
        cast = CAST_SUFFIX.match(expr) or CAST_FUNCTION.match(expr)
        if cast:
            return [_cast_column(_bare_name(cast.group('expr')), cast.group('type'))]

        column = _lookup_reference(expr, expr, referenced)
        if column:
            return [column]

        ref = COLUMN_REF.search(expr)
        fallback_name = unquote_identifier(ref.group('column')) if ref else ''
        type_name, is_array = infer_type_from_expression(expr)
        return [Column(name=fallback_name or _bare_name(expr) or 'column',
                       type=type_name, is_array=is_array)]

    alias = unquote_identifier(aliased.group('alias'))
    source = aliased.group('expr').strip()

    cast = CAST_SUFFIX.match(source) or CAST_FUNCTION.match(source)
    if cast:
        return [_cast_column(alias, cast.group('type'))]

    column = _lookup_reference(source, alias, referenced)
    if column:
        return [column]

    type_name, is_array = infer_type_from_expression(source)
    return [Column(name=alias, type=type_name, is_array=is_array)]


def _lookup_reference(expr: str, name: str, referenced: Dict[str, Table]) -> Optional[Column]:
    """Resolve 'alias.column' or 'column' against the referenced tables."""
    ref = re.fullmatch(rf'(?:(?P<qualifier>{IDENT})\.)?(?P<column>{IDENT})', expr)
    if not ref:
        return None

    column_name = unquote_identifier(ref.group('column'))
    qualifier = ref.group('qualifier')
    if qualifier:
        candidates = [referenced.get(unquote_identifier(qualifier))]
    else:
        candidates = list(referenced.values())

    for table in candidates:
        if table is None:
            continue
        source = table.get_column(column_name)
        if source:
            return _copy_column(unquote_identifier(name.split('.')[-1]), source)
    return None


def _bare_name(expr: str) -> str:
    """Strip qualifiers and call arguments: 'u.email' -> 'email'."""
    expr = re.sub(r'\(.*\)', '', expr.strip(), flags=re.DOTALL).strip()
    return unquote_identifier(expr.split('.')[-1])


def infer_type_from_expression(expr: str) -> Tuple[str, bool]:
    """Guess the type of a SELECT expression. Returns (type, is_array)."""
    expr = expr.strip()
    for pattern, type_name, is_array in EXPRESSION_TYPES:
        if pattern.match(expr):
            return type_name, is_array
    return 'unknown', False
