"""Tests for COMMENT ON recognizers."""
from sql_catalog_parser.parsers.comment_parser import (
    parse_column_comment,
    parse_table_comment,
    parse_view_comment,
)
from sql_catalog_parser.parsers.fragments import FragmentKind


class TestTableComment:

    def test_table_comment(self):
        fragment = parse_table_comment("COMMENT ON TABLE users IS 'Registered users'")
        assert fragment.kind is FragmentKind.TABLE_COMMENT
        assert fragment.table_name == "users"
        assert fragment.table_schema is None
        assert fragment.comment == "Registered users"

    def test_escaped_quotes_and_schema(self):
        fragment = parse_table_comment("COMMENT ON TABLE auth.users IS 'User''s accounts; primary store'")
        assert fragment.table_schema == "auth"
        assert fragment.comment == "User's accounts; primary store"

    def test_column_comment_is_not_a_table_comment(self):
        assert parse_table_comment("COMMENT ON COLUMN users.email IS 'x'") is None


class TestColumnComment:

    def test_table_and_column(self):
        fragment = parse_column_comment("COMMENT ON COLUMN users.email IS 'Login address'")
        assert fragment.kind is FragmentKind.COLUMN_COMMENT
        assert fragment.table_name == "users"
        assert fragment.table_schema is None
        assert fragment.column_name == "email"
        assert fragment.comment == "Login address"

    def test_schema_table_and_column(self):
        fragment = parse_column_comment('COMMENT ON COLUMN public."Users"."createdAt" IS \'When\'')
        assert fragment.table_schema == "public"
        assert fragment.table_name == "Users"
        assert fragment.column_name == "createdAt"

    def test_unqualified_column_is_not_a_match(self):
        assert parse_column_comment("COMMENT ON COLUMN email IS 'x'") is None


class TestViewComment:

    def test_view_comment(self):
        fragment = parse_view_comment("COMMENT ON VIEW active_users IS 'Users seen this week'")
        assert fragment.kind is FragmentKind.VIEW_COMMENT
        assert fragment.view_name == "active_users"
        assert fragment.comment == "Users seen this week"

    def test_materialized_view_comment(self):
        fragment = parse_view_comment("COMMENT ON MATERIALIZED VIEW stats.daily IS 'Daily rollup'")
        assert fragment.view_schema == "stats"
        assert fragment.view_name == "daily"

    def test_table_comment_is_not_a_view_comment(self):
        assert parse_view_comment("COMMENT ON TABLE users IS 'x'") is None
