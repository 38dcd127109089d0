"""Unit tests for the statement splitter and parse orchestrator."""

import pytest

from sql_prettify.errors import StatementParseError
from sql_prettify.parser.orchestrator import SQLParser
from sql_prettify.sql_tree.nodes import (
    CommentStatement,
    CreateStatement,
    GrantStatement,
    InsertStatement,
    OpaqueStatement,
    SelectStatement,
)


@pytest.fixture
def parser() -> SQLParser:
    """Create a parser with the generic dialect."""
    return SQLParser()


class TestSplit:
    """Tests for statement splitting."""

    def test_split_terminates_each_piece(self, parser):
        """Test that pieces are trimmed and end with a semicolon."""
        assert parser.split("SELECT 1;  SELECT 2 ;\n") == ["SELECT 1;", "SELECT 2;"]

    def test_split_without_terminator(self, parser):
        """Test that a single unterminated statement gets a semicolon."""
        assert parser.split("SELECT 1") == ["SELECT 1;"]

    def test_split_ignores_semicolons_in_literals(self, parser):
        """Test that semicolons inside strings do not split statements."""
        assert parser.split("SELECT 'a;b' FROM t; SELECT 2") == [
            "SELECT 'a;b' FROM t;",
            "SELECT 2;",
        ]

    def test_split_empty(self, parser):
        """Test that blank input yields no statements."""
        assert parser.split("  ;  ; ") == []


def test_parse_single_statement(parser):
    """Test that a single statement becomes the document tree itself."""
    document = parser.parse("select a from t")

    assert document.kind == "sql"
    assert isinstance(document.tree, SelectStatement)
    assert document.original_text == "select a from t"


def test_parse_multiple_statements(parser):
    """Test that several statements become a list in source order."""
    document = parser.parse("SELECT a FROM t; INSERT INTO u SELECT b FROM v;")

    assert isinstance(document.tree, list)
    assert [type(s) for s in document.tree] == [SelectStatement, InsertStatement]


def test_parse_empty_input(parser):
    """Test that empty input yields an empty statement list."""
    document = parser.parse("   \n")

    assert document.tree == []
    assert document.statements == []


def test_parse_span(parser):
    """Test that the document span covers the original text."""
    document = parser.parse("SELECT a\nFROM t")

    assert document.span.start_line == 1
    assert document.span.end_line == 2
    assert document.span.end_column == len("FROM t")


def test_parse_grant(parser):
    """Test that a single GRANT bypasses the grammar."""
    document = parser.parse("grant usage on schema s to role r")

    assert isinstance(document.tree, GrantStatement)
    assert document.tree.privilege == "USAGE"


def test_parse_create_or_replace(parser):
    """Test that the replace flag survives the grammar round trip."""
    document = parser.parse("CREATE OR REPLACE TABLE t (a int)")

    assert isinstance(document.tree, CreateStatement)
    assert document.tree.replace is True
    assert document.tree.columns[0].data_type.name == "INT"


def test_leading_comment_becomes_statement(parser):
    """Test that comment lines before a statement are kept as a comment node."""
    document = parser.parse("-- header\n-- second line\nSELECT a FROM t; SELECT b FROM u;")

    kinds = [type(s) for s in document.statements]
    assert kinds == [CommentStatement, SelectStatement, SelectStatement]
    assert document.statements[0].text == "-- header\n-- second line"


def test_trailing_comment_only_piece(parser):
    """Test that a comment after the last statement is kept on its own."""
    document = parser.parse("SELECT a FROM t;\n-- done")

    assert isinstance(document.statements[-1], CommentStatement)
    assert document.statements[-1].text == "-- done"


def test_unrendered_statement_is_opaque(parser):
    """Test that statements without a dedicated node are kept as opaque."""
    document = parser.parse("DROP TABLE t")

    assert isinstance(document.tree, OpaqueStatement)
    assert document.tree.kind == "DROP"


def test_syntax_error_single_statement(parser):
    """Test that grammar errors name the offending statement."""
    with pytest.raises(StatementParseError) as exc_info:
        parser.parse("SELECT a FROM t WHERE (a = 1")

    error = exc_info.value
    assert error.statement == "SELECT a FROM t WHERE (a = 1"
    assert str(error).startswith("Failed to parse SQL:\n\nSELECT a FROM t WHERE (a = 1")


def test_syntax_error_in_multi_statement_input(parser):
    """Test that the failing statement is identified within several."""
    with pytest.raises(StatementParseError) as exc_info:
        parser.parse("SELECT a FROM t; SELECT a FROM t WHERE (a = 1;")

    assert exc_info.value.statement == "SELECT a FROM t WHERE (a = 1;"
    assert str(exc_info.value).startswith("Failed to parse statement:")
