"""Tests for the CREATE FUNCTION recognizer."""
from sql_catalog_parser.models import FunctionArg
from sql_catalog_parser.parsers.fragments import FragmentKind
from sql_catalog_parser.parsers.function_parser import parse_function_args, parse_function_definition


class TestFunctionDefinition:

    def test_simple_function(self):
        fragment = parse_function_definition("""
            CREATE OR REPLACE FUNCTION public.get_user_count(active_only boolean)
            RETURNS integer
            LANGUAGE sql STABLE
            AS $$ SELECT count(*)::int FROM users; $$
        """)
        assert fragment.kind is FragmentKind.FUNCTION
        function = fragment.function
        assert function.schema == "public"
        assert function.name == "get_user_count"
        assert function.args == [FunctionArg(name="active_only", type="boolean")]
        assert function.returns == "integer"

    def test_no_arguments(self):
        fragment = parse_function_definition(
            "CREATE FUNCTION now_utc() RETURNS timestamp with time zone AS $$ SELECT now() $$ LANGUAGE sql"
        )
        assert fragment.function.args == []
        assert fragment.function.returns == "timestamp with time zone"

    def test_returns_table(self):
        fragment = parse_function_definition(
            "CREATE FUNCTION search(q text) RETURNS TABLE(id uuid, title text) LANGUAGE sql AS $$ SELECT 1 $$"
        )
        assert fragment.function.returns == "TABLE(id uuid, title text)"

    def test_returns_setof(self):
        fragment = parse_function_definition(
            "CREATE FUNCTION active_users() RETURNS SETOF users AS $$ SELECT * FROM users $$ LANGUAGE sql"
        )
        assert fragment.function.returns == "SETOF users"

    def test_returns_at_end_of_statement(self):
        fragment = parse_function_definition("CREATE FUNCTION f(a int) RETURNS void")
        assert fragment.function.returns == "void"

    def test_missing_returns_is_not_a_match(self):
        assert parse_function_definition("CREATE FUNCTION f(a int) LANGUAGE sql AS $$ $$") is None

    def test_not_a_function(self):
        assert parse_function_definition("CREATE TABLE f (a int)") is None

    def test_default_schema(self):
        fragment = parse_function_definition("CREATE FUNCTION f() RETURNS int AS $$ SELECT 1 $$ LANGUAGE sql", schema="api")
        assert fragment.function.schema == "api"


class TestFunctionArgs:

    def test_modes_and_defaults(self):
        args = parse_function_args("IN a integer, OUT b text, INOUT c jsonb DEFAULT '{}', VARIADIC d int[]")
        assert args == [
            FunctionArg(name="a", type="integer", mode="IN"),
            FunctionArg(name="b", type="text", mode="OUT"),
            FunctionArg(name="c", type="jsonb", has_default=True, mode="INOUT"),
            FunctionArg(name="d", type="int[]", mode="VARIADIC"),
        ]

    def test_equals_default(self):
        args = parse_function_args("page int = 1, size int = 20")
        assert [(a.name, a.has_default) for a in args] == [("page", True), ("size", True)]

    def test_unnamed_arguments(self):
        """Should name unnamed arguments by position."""
        args = parse_function_args("uuid, text")
        assert args == [FunctionArg(name="$1", type="uuid"), FunctionArg(name="$2", type="text")]

    def test_unnamed_multiword_type(self):
        args = parse_function_args("double precision, timestamp with time zone")
        assert [a.name for a in args] == ["$1", "$2"]
        assert [a.type for a in args] == ["double precision", "timestamp with time zone"]

    def test_named_multiword_type(self):
        args = parse_function_args("since timestamp with time zone, amount numeric(10, 2)")
        assert args == [
            FunctionArg(name="since", type="timestamp with time zone"),
            FunctionArg(name="amount", type="numeric(10, 2)"),
        ]

    def test_quoted_names(self):
        args = parse_function_args('"userId" uuid')
        assert args == [FunctionArg(name="userId", type="uuid")]
