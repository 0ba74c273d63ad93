"""Tests for the view recognizer and view column inference."""
import pytest

from sql_catalog_parser.models import Column, Table
from sql_catalog_parser.parsers.fragments import FragmentKind
from sql_catalog_parser.parsers.view_parser import (
    infer_type_from_expression,
    infer_view_columns,
    parse_view_definition,
)


@pytest.fixture
def tables():
    return [
        Table(schema="public", name="users", columns=[
            Column(name="id", type="uuid", nullable=False, is_primary_key=True),
            Column(name="email", type="text", nullable=False),
            Column(name="nickname", type="text"),
        ]),
        Table(schema="public", name="posts", columns=[
            Column(name="id", type="bigint", nullable=False),
            Column(name="author_id", type="uuid"),
            Column(name="tags", type="text", is_array=True),
        ]),
    ]


class TestViewDefinition:

    def test_simple_view(self):
        fragment = parse_view_definition("CREATE VIEW active_users AS SELECT id, email FROM users WHERE active")
        assert fragment.kind is FragmentKind.VIEW
        assert fragment.view.name == "active_users"
        assert fragment.view.schema == "public"
        assert fragment.view.definition == "SELECT id, email FROM users WHERE active"
        assert fragment.view.is_materialized is False
        assert fragment.column_names == []

    def test_materialized_view_with_data_clause(self):
        fragment = parse_view_definition(
            "CREATE MATERIALIZED VIEW IF NOT EXISTS stats.daily AS SELECT 1 AS one WITH NO DATA"
        )
        assert fragment.view.is_materialized is True
        assert fragment.view.schema == "stats"
        assert fragment.view.definition == "SELECT 1 AS one"

    def test_or_replace_with_options_and_column_list(self):
        fragment = parse_view_definition(
            "CREATE OR REPLACE VIEW v (a, b) WITH (security_invoker = true) AS SELECT id, email FROM users"
        )
        assert fragment.column_names == ["a", "b"]
        assert fragment.view.definition == "SELECT id, email FROM users"

    def test_not_a_view(self):
        assert parse_view_definition("CREATE TABLE v (id int)") is None
        assert parse_view_definition("CREATE VIEW v") is None


class TestInferViewColumns:

    def test_plain_columns_copy_source_types(self, tables):
        columns = infer_view_columns("SELECT id, email FROM users", tables)
        assert [(c.name, c.type, c.nullable) for c in columns] == [
            ("id", "uuid", False),
            ("email", "text", False),
        ]

    def test_aliases_and_joins(self, tables):
        columns = infer_view_columns(
            "SELECT u.email AS author_email, p.tags FROM posts p JOIN users u ON u.id = p.author_id",
            tables,
        )
        assert [(c.name, c.type, c.is_array) for c in columns] == [
            ("author_email", "text", False),
            ("tags", "text", True),
        ]

    def test_star_expansion(self, tables):
        columns = infer_view_columns("SELECT * FROM users", tables)
        assert [c.name for c in columns] == ["id", "email", "nickname"]

    def test_qualified_star(self, tables):
        columns = infer_view_columns("SELECT p.*, u.email FROM posts p, users u", tables)
        assert [c.name for c in columns] == ["id", "author_id", "tags", "email"]

    def test_casts(self, tables):
        columns = infer_view_columns(
            "SELECT id::text, CAST(email AS varchar) AS mail, nickname::text[] AS names FROM users",
            tables,
        )
        assert [(c.name, c.type, c.is_array) for c in columns] == [
            ("id", "text", False),
            ("mail", "varchar", False),
            ("names", "text", True),
        ]

    def test_expression_types(self, tables):
        columns = infer_view_columns(
            "SELECT count(*) AS total, array_agg(id) AS ids, now() AS at FROM users",
            tables,
        )
        assert [(c.name, c.type, c.is_array) for c in columns] == [
            ("total", "bigint", False),
            ("ids", "unknown", True),
            ("at", "timestamp with time zone", False),
        ]

    def test_unknown_table(self):
        columns = infer_view_columns("SELECT a.x FROM missing a", [])
        assert [(c.name, c.type) for c in columns] == [("x", "unknown")]

    def test_explicit_column_names_rename(self, tables):
        columns = infer_view_columns("SELECT id, email FROM users", tables, column_names=["user_id", "mail"])
        assert [c.name for c in columns] == ["user_id", "mail"]

    def test_no_select(self):
        assert infer_view_columns("VALUES (1), (2)", []) == []


class TestInferTypeFromExpression:

    @pytest.mark.parametrize("expr, expected", [
        ("count(id)", ("bigint", False)),
        ("sum(amount)", ("numeric", False)),
        ("string_agg(name, ',')", ("text", False)),
        ("jsonb_agg(row)", ("jsonb", False)),
        ("42", ("integer", False)),
        ("3.14", ("numeric", False)),
        ("'label'", ("text", False)),
        ("true", ("boolean", False)),
        ("coalesce(a, b)", ("unknown", False)),
    ])
    def test_expressions(self, expr, expected):
        assert infer_type_from_expression(expr) == expected
