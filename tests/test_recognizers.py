"""Tests for the recognizer chain."""
import pytest

from sql_catalog_parser.parsers import recognizers
from sql_catalog_parser.parsers.fragments import FragmentKind
from sql_catalog_parser.parsers.recognizers import recognize_statement


class TestRecognizeStatement:

    @pytest.mark.parametrize("statement, kind", [
        ("CREATE TABLE t (id int)", FragmentKind.TABLE),
        ("CREATE TYPE mood AS ENUM ('ok')", FragmentKind.ENUM),
        ("CREATE FUNCTION f() RETURNS int AS $$ SELECT 1 $$ LANGUAGE sql", FragmentKind.FUNCTION),
        ("CREATE TYPE pair AS (a int, b int)", FragmentKind.COMPOSITE_TYPE),
        ("CREATE VIEW v AS SELECT 1", FragmentKind.VIEW),
        ("CREATE INDEX idx ON t (id)", FragmentKind.INDEX),
        ("ALTER TABLE t ADD CONSTRAINT fk FOREIGN KEY (a) REFERENCES u (id)", FragmentKind.ALTER_FOREIGN_KEY),
        ("ALTER TABLE t ADD UNIQUE (a)", FragmentKind.ALTER_UNIQUE),
        ("COMMENT ON TABLE t IS 'x'", FragmentKind.TABLE_COMMENT),
        ("COMMENT ON COLUMN t.a IS 'x'", FragmentKind.COLUMN_COMMENT),
        ("COMMENT ON VIEW v IS 'x'", FragmentKind.VIEW_COMMENT),
    ])
    def test_each_kind(self, statement, kind):
        assert recognize_statement(statement).kind is kind

    @pytest.mark.parametrize("statement", [
        "INSERT INTO t VALUES (1)",
        "GRANT SELECT ON t TO anon",
        "CREATE EXTENSION IF NOT EXISTS pgcrypto",
        "ALTER TABLE t ENABLE ROW LEVEL SECURITY",
        "CREATE TABLE broken (",
        "nonsense",
    ])
    def test_unrecognized_statements(self, statement):
        """Should return None instead of raising."""
        assert recognize_statement(statement) is None

    def test_enum_takes_priority_over_composite(self):
        fragment = recognize_statement("CREATE TYPE mood AS ENUM ('sad', 'happy')")
        assert fragment.kind is FragmentKind.ENUM

    def test_ddl_inside_function_body_is_not_a_table(self):
        fragment = recognize_statement(
            "CREATE FUNCTION mk() RETURNS void AS $$ CREATE TABLE inner_t (id int) $$ LANGUAGE sql"
        )
        assert fragment.kind is FragmentKind.FUNCTION

    def test_comments_disabled(self):
        assert recognize_statement("COMMENT ON TABLE t IS 'x'", include_comments=False) is None

    def test_comment_recognizers_never_invoked_when_disabled(self, monkeypatch):
        calls = []

        def spy(statement, schema):
            calls.append(statement)
            return None

        monkeypatch.setattr(recognizers, "COMMENT_RECOGNIZERS", [spy])

        recognize_statement("COMMENT ON TABLE t IS 'x'", include_comments=False)
        assert calls == []

        recognize_statement("COMMENT ON TABLE t IS 'x'", include_comments=True)
        assert calls == ["COMMENT ON TABLE t IS 'x'"]

    def test_schema_is_passed_through(self):
        fragment = recognize_statement("CREATE TABLE t (id int)", schema="tenant")
        assert fragment.table.schema == "tenant"
