"""Tests for the CREATE TABLE recognizer."""
import pytest

from sql_catalog_parser.models import ColumnReference
from sql_catalog_parser.parsers.fragments import FragmentKind
from sql_catalog_parser.parsers.table_parser import parse_column_definition, parse_table_definition


def columns_by_name(fragment):
    return {c.name: c for c in fragment.table.columns}


# =============================================================================
# CREATE TABLE
# =============================================================================

class TestCreateTable:
    """Test table-level parsing."""

    def test_simple_table(self):
        """Should parse columns in order with their declared types."""
        fragment = parse_table_definition("""
            CREATE TABLE users (
                id UUID PRIMARY KEY,
                email TEXT NOT NULL,
                name TEXT
            )
        """)

        assert fragment is not None
        assert fragment.kind is FragmentKind.TABLE
        assert fragment.table.name == "users"
        assert fragment.table.schema == "public"
        assert [c.name for c in fragment.table.columns] == ["id", "email", "name"]
        assert [c.type for c in fragment.table.columns] == ["UUID", "TEXT", "TEXT"]
        assert fragment.table.relationships == []
        assert fragment.table.indexes == []

    def test_default_schema_is_applied(self):
        fragment = parse_table_definition("CREATE TABLE t (id int)", schema="app")
        assert fragment.table.schema == "app"

    def test_schema_qualified_name_wins(self):
        fragment = parse_table_definition("CREATE TABLE auth.sessions (id uuid)", schema="app")
        assert fragment.table.schema == "auth"
        assert fragment.table.name == "sessions"

    def test_quoted_identifiers_keep_case(self):
        fragment = parse_table_definition('CREATE TABLE "Auth"."UserProfiles" ("DisplayName" text)')
        assert fragment.table.schema == "Auth"
        assert fragment.table.name == "UserProfiles"
        assert fragment.table.columns[0].name == "DisplayName"

    @pytest.mark.parametrize("prefix", [
        "CREATE TABLE IF NOT EXISTS",
        "CREATE TEMP TABLE",
        "CREATE TEMPORARY TABLE",
        "CREATE UNLOGGED TABLE",
        "create table",
    ])
    def test_table_variants(self, prefix):
        fragment = parse_table_definition(f"{prefix} items (id int)")
        assert fragment is not None
        assert fragment.table.name == "items"

    def test_not_a_table(self):
        assert parse_table_definition("CREATE INDEX idx ON t (id)") is None
        assert parse_table_definition("ALTER TABLE t ADD COLUMN x int") is None

    def test_zero_columns_is_not_a_match(self):
        assert parse_table_definition("CREATE TABLE t ()") is None
        assert parse_table_definition("CREATE TABLE t (PRIMARY KEY (id))") is None

    def test_unbalanced_parentheses_is_not_a_match(self):
        assert parse_table_definition("CREATE TABLE t (id int") is None

    def test_table_constraints_are_not_columns(self):
        """Should skip CONSTRAINT / CHECK / FOREIGN KEY elements."""
        fragment = parse_table_definition("""
            CREATE TABLE orders (
                id bigint,
                user_id uuid,
                total numeric(10, 2),
                CONSTRAINT orders_total_check CHECK (total >= 0),
                FOREIGN KEY (user_id) REFERENCES users (id)
            )
        """)
        assert [c.name for c in fragment.table.columns] == ["id", "user_id", "total"]
        assert fragment.table.relationships == []

    def test_table_level_primary_key(self):
        """Should flag columns named in a table-level PRIMARY KEY."""
        fragment = parse_table_definition("""
            CREATE TABLE memberships (
                org_id uuid,
                user_id uuid,
                role text,
                PRIMARY KEY (org_id, user_id)
            )
        """)
        cols = columns_by_name(fragment)
        assert cols["org_id"].is_primary_key and not cols["org_id"].nullable
        assert cols["user_id"].is_primary_key and not cols["user_id"].nullable
        assert not cols["role"].is_primary_key and cols["role"].nullable

    def test_table_level_unique(self):
        fragment = parse_table_definition("""
            CREATE TABLE profiles (
                id uuid,
                handle text,
                CONSTRAINT profiles_handle_key UNIQUE (handle)
            )
        """)
        cols = columns_by_name(fragment)
        assert cols["handle"].is_unique
        assert not cols["id"].is_unique

    def test_backslash_escaped_default(self):
        """Should keep splitting columns after an E'' literal with an escaped quote."""
        fragment = parse_table_definition(r"CREATE TABLE t (a text DEFAULT E'it\'s', b int UNIQUE)")
        assert fragment is not None
        cols = columns_by_name(fragment)
        assert list(cols) == ["a", "b"]
        assert cols["a"].default_value == r"E'it\'s'"
        assert cols["b"].is_unique

    def test_escaped_literal_with_comma_and_parenthesis(self):
        fragment = parse_table_definition(r"CREATE TABLE t (a text DEFAULT E'x\', (y', b int NOT NULL)")
        cols = columns_by_name(fragment)
        assert cols["a"].default_value == r"E'x\', (y'"
        assert cols["b"].nullable is False


# =============================================================================
# Column definitions
# =============================================================================

class TestColumnDefinition:
    """Test single column parsing."""

    def test_nullable_by_default(self):
        column = parse_column_definition("name text")
        assert column.nullable is True
        assert column.default_value is None

    def test_not_null(self):
        assert parse_column_definition("email text NOT NULL").nullable is False

    def test_inline_primary_key(self):
        """A primary key column is non-null and not separately flagged unique."""
        column = parse_column_definition("id uuid PRIMARY KEY")
        assert column.is_primary_key is True
        assert column.nullable is False
        assert column.is_unique is False

    def test_inline_unique(self):
        column = parse_column_definition("user_id UUID UNIQUE")
        assert column.is_unique is True
        assert column.is_primary_key is False

    def test_default_expression(self):
        column = parse_column_definition("id uuid DEFAULT gen_random_uuid() PRIMARY KEY")
        assert column.default_value == "gen_random_uuid()"

    def test_default_string_literal(self):
        column = parse_column_definition("status text NOT NULL DEFAULT 'draft'")
        assert column.default_value == "'draft'"
        assert column.nullable is False

    def test_default_null(self):
        assert parse_column_definition("deleted_at timestamptz DEFAULT NULL").default_value == "NULL"

    def test_default_containing_keyword_in_literal(self):
        column = parse_column_definition("note text DEFAULT 'NOT NULL UNIQUE'")
        assert column.default_value == "'NOT NULL UNIQUE'"
        assert column.nullable is True
        assert column.is_unique is False

    @pytest.mark.parametrize("definition, expected_type", [
        ("tags text[]", "text"),
        ("matrix integer[][]", "integer"),
        ("scores int[3]", "int"),
        ("labels varchar(20) ARRAY", "varchar(20)"),
    ])
    def test_array_suffix(self, definition, expected_type):
        column = parse_column_definition(definition)
        assert column.is_array is True
        assert column.type == expected_type

    @pytest.mark.parametrize("definition, expected_type", [
        ("created_at timestamp with time zone DEFAULT now()", "timestamp with time zone"),
        ("ratio double precision", "double precision"),
        ("title character varying(255)", "character varying(255)"),
        ("price numeric(10, 2)", "numeric(10, 2)"),
        ("status public.order_status", "public.order_status"),
    ])
    def test_type_text_is_raw(self, definition, expected_type):
        column = parse_column_definition(definition)
        assert column.type == expected_type
        assert column.is_array is False

    def test_inline_references(self):
        """Should record an inline REFERENCES target on the column."""
        column = parse_column_definition("owner_id uuid NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE")
        assert column.foreign_key == ColumnReference(table="users", column="id", schema="auth")
        assert column.nullable is False

    def test_references_without_column(self):
        column = parse_column_definition("team_id int REFERENCES teams")
        assert column.foreign_key == ColumnReference(table="teams", column=None, schema=None)

    def test_not_a_column(self):
        assert parse_column_definition("justname") is None
