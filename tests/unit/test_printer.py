"""Unit tests for the SQL printer.

Nodes are built by hand so each layout rule is tested independently of the
grammar.
"""

import logging

import pytest

from sql_prettify.config import FormatterConfig
from sql_prettify.errors import UnsupportedStatementError
from sql_prettify.printer.doc import render
from sql_prettify.printer.printer import SQLPrinter
from sql_prettify.preprocess.records import DynamicTableRecord
from sql_prettify.sql_tree.nodes import (
    AggregateCall,
    ArrayIndex,
    Assignment,
    BinaryExpression,
    CaseExpression,
    CastExpression,
    ColumnDefinition,
    ColumnRef,
    CommentStatement,
    CreateStatement,
    DataTypeSpec,
    DeleteStatement,
    DerivedTable,
    FunctionCall,
    GrantStatement,
    InsertStatement,
    Literal,
    OpaqueStatement,
    OrderItem,
    SelectItem,
    SelectStatement,
    SourceDocument,
    SourceSpan,
    Star,
    TableRef,
    UpdateStatement,
    WhenClause,
    WindowFunction,
)


def col(name: str, qualifier: str = None) -> ColumnRef:
    return ColumnRef(name=name, qualifier=qualifier)


def num(value: str) -> Literal:
    return Literal(value=value, kind="number")


def text(value: str) -> Literal:
    return Literal(value=value, kind="string")


def eq(left, right) -> BinaryExpression:
    return BinaryExpression(operator="=", left=left, right=right)


def document(*statements) -> SourceDocument:
    return SourceDocument(
        tree=list(statements), original_text="", span=SourceSpan(end_line=1, end_column=0)
    )


def select(*names: str, table: str = "t", **kwargs) -> SelectStatement:
    return SelectStatement(
        columns=[SelectItem(expression=col(name)) for name in names],
        from_sources=[TableRef(name=table)],
        **kwargs,
    )


@pytest.fixture
def printer() -> SQLPrinter:
    """Create a printer with default configuration."""
    return SQLPrinter(FormatterConfig(_env_file=None))


def print_one(printer: SQLPrinter, statement) -> str:
    return render(printer.print_statement(statement))


class TestSelect:
    """Tests for SELECT layout."""

    def test_columns_are_aligned(self, printer):
        """Test that continuation columns start with the alignment padding."""
        result = print_one(printer, select("id", "name", "email", table="USERS"))
        assert result == "SELECT id\n     , name\n     , email\nFROM users\n;"

    def test_where_chain_breaks_before_operators(self, printer):
        """Test that AND/OR operands after the first go on their own lines."""
        condition = BinaryExpression(
            operator="OR",
            left=BinaryExpression(operator="AND", left=eq(col("a"), num("1")), right=eq(col("b"), num("2"))),
            right=eq(col("c"), num("3")),
        )
        result = print_one(printer, select("a", where=condition))
        assert result == "SELECT a\nFROM t\nWHERE a = 1\n  AND b = 2\n  OR c = 3\n;"

    def test_column_names_lowercased_unless_quoted(self, printer):
        """Test identifier casing."""
        statement = SelectStatement(
            columns=[
                SelectItem(expression=ColumnRef(name="ID", qualifier="u")),
                SelectItem(expression=ColumnRef(name='"Name"', quoted=True)),
            ]
        )
        assert print_one(printer, statement) == 'SELECT u.id\n     , "Name"\n;'

    def test_derived_table_uses_tab_width(self):
        """Test that nested queries are indented by the configured tab width."""
        printer = SQLPrinter(FormatterConfig(_env_file=None, tab_width=2))
        statement = SelectStatement(
            columns=[SelectItem(expression=col("a"))],
            from_sources=[DerivedTable(query=select("a", "b"), alias="s")],
        )
        result = render(printer.print_statement(statement), tab_width=2)
        assert result == "SELECT a\nFROM (\n  SELECT a\n       , b\n  FROM t\n) s\n;"

    def test_set_operation(self, printer):
        """Test that the set operator sits on its own line."""
        statement = select("a", set_operator="UNION ALL", next_query=select("a", table="u"))
        assert print_one(printer, statement) == "SELECT a\nFROM t\nUNION ALL\nSELECT a\nFROM u\n;"

    def test_order_and_limit(self, printer):
        """Test ORDER BY directions, NULLS ordering and LIMIT."""
        statement = select(
            "a",
            order_by=[
                OrderItem(expression=col("a"), descending=True, nulls="LAST"),
                OrderItem(expression=col("b"), descending=False),
                OrderItem(expression=col("c")),
            ],
            limit=num("10"),
        )
        result = print_one(printer, statement)
        assert result == "SELECT a\nFROM t\nORDER BY a DESC NULLS LAST, b ASC, c\nLIMIT 10\n;"

    def test_group_by_all(self, printer):
        """Test GROUP BY ALL rendering."""
        statement = SelectStatement(
            columns=[
                SelectItem(expression=col("col1")),
                SelectItem(expression=AggregateCall(name="count", argument=Star())),
            ],
            from_sources=[TableRef(name="table1")],
            group_by_all=True,
        )
        assert print_one(printer, statement) == (
            "SELECT col1\n     , COUNT(*)\nFROM table1\nGROUP BY ALL\n;"
        )


class TestExpressions:
    """Tests for expression rendering."""

    def test_case_single_branch_inline(self, printer):
        """Test that one WHEN with an ELSE stays on one line."""
        case = CaseExpression(
            whens=[WhenClause(condition=eq(col("a"), num("1")), result=text("x"))],
            default=text("y"),
        )
        assert render(case.accept(printer)) == "CASE WHEN a = 1 THEN 'x' ELSE 'y' END"

    def test_case_multi_branch_aligned(self, printer):
        """Test that further branches are aligned on continuation lines."""
        case = CaseExpression(
            whens=[
                WhenClause(condition=eq(col("a"), num("1")), result=text("x")),
                WhenClause(condition=eq(col("a"), num("2")), result=text("y")),
            ],
            default=text("z"),
        )
        statement = SelectStatement(columns=[SelectItem(expression=case, alias="c")])
        assert print_one(printer, statement) == (
            "SELECT CASE WHEN a = 1 THEN 'x'\n"
            "            WHEN a = 2 THEN 'y'\n"
            "            ELSE 'z'\n"
            "            END AS c\n"
            ";"
        )

    def test_window_function(self, printer):
        """Test OVER clause rendering."""
        window = WindowFunction(
            function=FunctionCall(name="rank"),
            partition_by=[col("country")],
            order_by=[
                OrderItem(expression=col("created_at"), descending=True),
                OrderItem(expression=col("name")),
            ],
        )
        assert render(window.accept(printer)) == (
            "RANK() OVER (PARTITION BY country ORDER BY created_at DESC, name)"
        )

    def test_array_index(self, printer):
        """Test that indexed calls keep the subscript."""
        node = ArrayIndex(call=FunctionCall(name="split", args=[col("name"), text(",")]), index=0)
        assert render(node.accept(printer)) == "SPLIT(name, ',')[0]"

    def test_casts(self, printer):
        """Test shorthand and function-style casts."""
        shorthand = CastExpression(
            expression=col("created_at"), data_type=DataTypeSpec(name="DATE"), shorthand=True
        )
        full = CastExpression(
            expression=col("x"), data_type=DataTypeSpec(name="decimal", length="10", scale="2")
        )
        assert render(shorthand.accept(printer)) == "created_at::DATE"
        assert render(full.accept(printer)) == "CAST(x AS DECIMAL(10,2))"

    def test_distinct_aggregate(self, printer):
        """Test DISTINCT inside an aggregate."""
        node = AggregateCall(name="count", argument=col("email"), distinct=True)
        assert render(node.accept(printer)) == "COUNT(DISTINCT email)"

    def test_string_literal_quotes_are_escaped(self, printer):
        """Test that single quotes inside strings are doubled."""
        assert render(text("it's").accept(printer)) == "'it''s'"


class TestStatements:
    """Tests for DDL and DML layout."""

    def test_create_table(self, printer):
        """Test column definitions inside the indented block."""
        statement = CreateStatement(
            object_kind="TABLE",
            target=TableRef(name="Users"),
            replace=True,
            columns=[
                ColumnDefinition(name="ID", data_type=DataTypeSpec(name="INT"), not_null=True),
                ColumnDefinition(
                    name="created_at",
                    data_type=DataTypeSpec(name="TIMESTAMP"),
                    default=FunctionCall(name="CURRENT_TIMESTAMP", no_parentheses=True),
                ),
                ColumnDefinition(
                    name="note", data_type=DataTypeSpec(name="VARCHAR", length="100"), comment="it's"
                ),
            ],
            primary_key=["ID"],
        )
        assert print_one(printer, statement) == (
            "CREATE OR REPLACE TABLE users (\n"
            "      id INT NOT NULL\n"
            "    , created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP()\n"
            "    , note VARCHAR(100) COMMENT 'it''s'\n"
            "    , PRIMARY KEY (id)\n"
            ")\n"
            ";"
        )

    def test_create_view(self, printer):
        """Test that the view query starts on the line after AS."""
        statement = CreateStatement(
            object_kind="VIEW", target=TableRef(name="active_users"), query=select("id")
        )
        assert print_one(printer, statement) == "CREATE VIEW active_users AS\nSELECT id\nFROM t\n;"

    def test_create_dynamic_table(self, printer):
        """Test that refresh properties print one per line in a fixed order."""
        statement = CreateStatement(
            object_kind="DYNAMIC TABLE",
            replace=True,
            target=TableRef(name="daily", schema_name="analytics"),
            query=select("id"),
            dynamic_options=DynamicTableRecord(
                table_name="analytics.daily", warehouse="wh", target_lag="1 hour"
            ),
        )
        assert print_one(printer, statement) == (
            "CREATE OR REPLACE DYNAMIC TABLE analytics.daily\n"
            "TARGET_LAG = '1 hour'\n"
            "WAREHOUSE = wh\n"
            "AS\n"
            "SELECT id\n"
            "FROM t\n"
            ";"
        )

    def test_create_schema(self, printer):
        """Test the single-line CREATE SCHEMA form."""
        statement = CreateStatement(
            object_kind="SCHEMA", target=TableRef(name="analytics"), if_not_exists=True
        )
        assert print_one(printer, statement) == "CREATE SCHEMA IF NOT EXISTS analytics;"

    def test_insert_values(self, printer):
        """Test that long column lists expand and rows align."""
        statement = InsertStatement(
            target=TableRef(name="t"),
            columns=["a", "b", "c"],
            values=[[num("1"), text("x"), num("2")], [num("3"), text("y"), num("4")]],
        )
        assert print_one(printer, statement) == (
            "INSERT INTO t (\n"
            "      a\n"
            "    , b\n"
            "    , c\n"
            ")\n"
            "VALUES (1, 'x', 2)\n"
            "     , (3, 'y', 4)\n"
            ";"
        )

    def test_insert_short_column_list_inline(self, printer):
        """Test that two columns stay on the INSERT line."""
        statement = InsertStatement(
            target=TableRef(name="users", schema_name="public"),
            columns=["id", "name"],
            query=select("id", "name", table="temp_users"),
        )
        assert print_one(printer, statement) == (
            "INSERT INTO public.users (id, name)\n"
            "SELECT id\n"
            "     , name\n"
            "FROM temp_users\n"
            ";"
        )

    def test_update(self, printer):
        """Test SET alignment."""
        statement = UpdateStatement(
            target=TableRef(name="player", schema_name="public"),
            assignments=[
                Assignment(column=col("birthday"), value=FunctionCall(name="CURRENT_DATE", no_parentheses=True)),
                Assignment(column=col("score"), value=num("0")),
            ],
            where=BinaryExpression(operator=">", left=col("id"), right=num("1000")),
        )
        assert print_one(printer, statement) == (
            "UPDATE public.player\n"
            "   SET birthday = CURRENT_DATE\n"
            "     , score = 0\n"
            "WHERE id > 1000\n"
            ";"
        )

    def test_delete_using(self, printer):
        """Test DELETE with a USING clause."""
        statement = DeleteStatement(
            target=TableRef(name="t"),
            using=[TableRef(name="x")],
            where=eq(col("id", "t"), col("id", "x")),
        )
        assert print_one(printer, statement) == "DELETE FROM t\nUSING x\nWHERE t.id = x.id\n;"

    def test_grant(self, printer):
        """Test structured and verbatim GRANT rendering."""
        structured = GrantStatement(
            privilege="SELECT",
            on_type="FUTURE",
            on_name="TABLES",
            in_type="SCHEMA",
            in_name="instat",
            to_type="ROLE",
            to_name="READERS",
        )
        fallback = GrantStatement(statement="GRANT SELECT, INSERT ON t TO ROLE r")
        assert print_one(printer, structured) == (
            "GRANT SELECT ON FUTURE TABLES IN SCHEMA instat TO ROLE READERS;"
        )
        assert print_one(printer, fallback) == "GRANT SELECT, INSERT ON t TO ROLE r;"


class TestDocument:
    """Tests for statement separation and unsupported statements."""

    def test_blank_line_between_statements(self, printer):
        """Test that statements are separated by one blank line."""
        result = printer.print_document(document(select("a"), select("b", table="u")))
        assert result == "SELECT a\nFROM t\n;\n\nSELECT b\nFROM u\n;\n"

    def test_grants_and_comments_are_not_separated(self, printer):
        """Test that grants follow each other and comments stick to their statement."""
        grant = GrantStatement(
            privilege="USAGE", on_type="SCHEMA", on_name="s", to_type="ROLE", to_name="r"
        )
        result = printer.print_document(
            document(CommentStatement(text="-- access\n-- rules"), grant, grant)
        )
        assert result == (
            "-- access\n-- rules\n"
            "GRANT USAGE ON SCHEMA s TO ROLE r;\n"
            "GRANT USAGE ON SCHEMA s TO ROLE r;\n"
        )

    def test_empty_document(self, printer):
        """Test that an empty document renders to an empty string."""
        assert printer.print_document(document()) == ""

    def test_opaque_statement_dropped(self, printer, caplog):
        """Test that unsupported statements are left out with a warning."""
        opaque = OpaqueStatement(statement_kind="Drop", sql="DROP TABLE t")

        with caplog.at_level(logging.WARNING, logger="sql_prettify.printer.printer"):
            result = printer.print_document(document(select("a"), opaque, select("b")))

        assert result == "SELECT a\nFROM t\n;\n\nSELECT b\nFROM t\n;\n"
        assert "DROP TABLE t" in caplog.text

    def test_opaque_statement_strict(self):
        """Test that strict mode raises for unsupported statements."""
        printer = SQLPrinter(FormatterConfig(_env_file=None, strict=True))
        opaque = OpaqueStatement(statement_kind="Drop", sql="DROP TABLE t")

        with pytest.raises(UnsupportedStatementError) as exc_info:
            printer.print_document(document(opaque))

        assert exc_info.value.kind == "DROP"
        assert exc_info.value.sql == "DROP TABLE t"
