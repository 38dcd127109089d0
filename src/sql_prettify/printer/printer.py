"""SQL printer: renders SQL tree nodes as canonical, aligned SQL.

The printer is a :class:`SqlTreeVisitor` that turns every node into a layout
document (see :mod:`sql_prettify.printer.doc`). Statement visitors return the
statement with its terminating ``;``; nested queries are rendered through
:meth:`SQLPrinter.print_query`, which never adds one.

House style, in short:

- keywords and function names upper-cased, column names lower-cased;
- one projected column per line, continuation lines start with ``     , ``;
- FROM, each JOIN, WHERE, GROUP BY, ... on their own line;
- AND/OR chains in WHERE/HAVING/QUALIFY break before every operator;
- nested queries indented one level inside their parentheses;
- the terminating ``;`` on its own line.
"""

import logging
from typing import List, Optional

from sql_prettify.config import FormatterConfig
from sql_prettify.errors import UnsupportedStatementError
from sql_prettify.printer.doc import HARDLINE, Doc, Indent, join, render
from sql_prettify.sql_tree.nodes import (
    AggregateCall,
    ArrayIndex,
    Between,
    BinaryExpression,
    CaseExpression,
    CastExpression,
    ColumnDefinition,
    ColumnRef,
    CommentStatement,
    CommonTableExpression,
    CreateStatement,
    DataTypeSpec,
    DeleteStatement,
    DerivedTable,
    Exists,
    ExpressionNode,
    FunctionCall,
    GrantStatement,
    InList,
    InsertStatement,
    InSubquery,
    IsNull,
    JoinClause,
    Literal,
    OpaqueStatement,
    OrderItem,
    Parenthesized,
    RawExpression,
    SelectStatement,
    SourceDocument,
    Star,
    StatementNode,
    SubqueryExpression,
    TableRef,
    TableSource,
    UnaryExpression,
    UpdateStatement,
    WindowFunction,
)
from sql_prettify.sql_tree.visitor import SqlTreeVisitor

logger = logging.getLogger(__name__)

# "SELECT" plus one space: continuation columns line up under the first one
COLUMN_CONTINUATION = "     , "
CONDITION_CONTINUATION = "  "
CASE_CONTINUATION = " " * 12


class SQLPrinter(SqlTreeVisitor):
    """Renders a SourceDocument as formatted SQL text.

    Args:
        config: Formatter configuration; ``tab_width`` and ``strict`` are used
    """

    def __init__(self, config: Optional[FormatterConfig] = None):
        self.config = config or FormatterConfig()

    def print_document(self, document: SourceDocument) -> str:
        """Render every statement of ``document``.

        Statements are separated by a blank line, except after a comment and
        between consecutive GRANT statements, where a single line break is
        used. Statements that render to nothing are left out.

        Args:
            document: The parsed document

        Returns:
            The formatted SQL, ending with a newline (empty for no output)

        Raises:
            UnsupportedStatementError: In strict mode, for statements without a renderer.
        """
        parts: List[Doc] = []
        previous: Optional[StatementNode] = None
        for statement in document.statements:
            rendered = self.print_statement(statement)
            if not rendered:
                continue
            if previous is not None:
                parts.append(self._separator(previous, statement))
            parts.append(rendered)
            previous = statement

        text = render(parts, tab_width=self.config.tab_width)
        return text + "\n" if text else ""

    def print_statement(self, statement: StatementNode) -> Doc:
        """Build the layout document for one statement."""
        return statement.accept(self)

    def print_query(self, node: SelectStatement) -> Doc:
        """Build the document for a query without its terminating ``;``."""
        parts: List[Doc] = []
        if node.ctes:
            parts.extend([self._with_block(node.ctes), HARDLINE])

        parts.append("SELECT DISTINCT" if node.distinct else "SELECT")
        for index, item in enumerate(node.columns):
            parts.append(" " if index == 0 else [HARDLINE, COLUMN_CONTINUATION])
            parts.append(item.expression.accept(self))
            if item.alias:
                parts.append(f" AS {item.alias}")

        if node.from_sources:
            parts.extend([HARDLINE, "FROM ", self._from_list(node.from_sources)])
        for join_clause in node.joins:
            parts.extend([HARDLINE, join_clause.accept(self)])

        if node.where is not None:
            parts.extend([HARDLINE, "WHERE", self._condition(node.where)])
        if node.group_by_all:
            parts.extend([HARDLINE, "GROUP BY ALL"])
        elif node.group_by:
            parts.extend([HARDLINE, "GROUP BY ", self._expression_list(node.group_by)])
        if node.having is not None:
            parts.extend([HARDLINE, "HAVING", self._condition(node.having)])
        if node.qualify is not None:
            parts.extend([HARDLINE, "QUALIFY", self._condition(node.qualify)])
        if node.order_by:
            parts.extend([HARDLINE, "ORDER BY ", self._order_items(node.order_by)])
        if node.limit is not None:
            parts.extend([HARDLINE, "LIMIT ", node.limit.accept(self)])
        if node.offset is not None:
            parts.extend([HARDLINE, "OFFSET ", node.offset.accept(self)])

        if node.set_operator and node.next_query is not None:
            parts.extend([HARDLINE, node.set_operator, HARDLINE, self.print_query(node.next_query)])
        return parts

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def visit_select(self, node: SelectStatement) -> Doc:
        return [self.print_query(node), HARDLINE, ";"]

    def visit_create(self, node: CreateStatement) -> Doc:
        parts: List[Doc] = ["CREATE "]
        if node.replace:
            parts.append("OR REPLACE ")
        parts.append(f"{node.object_kind} ")
        if node.if_not_exists:
            parts.append("IF NOT EXISTS ")

        if node.object_kind == "SCHEMA":
            parts.extend([node.target.qualified_name, ";"])
            return parts

        if node.object_kind == "DYNAMIC TABLE":
            parts.append(self._view_name(node.target))
            options = node.dynamic_options
            if options is not None:
                if options.target_lag is not None:
                    parts.extend([HARDLINE, f"TARGET_LAG = {self._quote(options.target_lag)}"])
                if options.refresh_mode:
                    parts.extend([HARDLINE, f"REFRESH_MODE = {options.refresh_mode}"])
                if options.initialize:
                    parts.extend([HARDLINE, f"INITIALIZE = {options.initialize}"])
                if options.warehouse:
                    parts.extend([HARDLINE, f"WAREHOUSE = {options.warehouse}"])
            parts.extend([HARDLINE, "AS", HARDLINE])
            if node.query is not None:
                parts.append(self.print_query(node.query))
            parts.extend([HARDLINE, ";"])
            return parts

        if node.object_kind == "VIEW":
            parts.extend([self._view_name(node.target), " AS", HARDLINE])
            if node.query is not None:
                parts.append(self.print_query(node.query))
            parts.extend([HARDLINE, ";"])
            return parts

        parts.append(self._lowercase_name(node.target))
        if node.like is not None:
            parts.extend([" LIKE ", node.like.qualified_name])
        if node.columns:
            definitions: List[Doc] = []
            for index, column in enumerate(node.columns):
                definitions.extend([HARDLINE, "  " if index == 0 else ", ", self._column_definition(column)])
            if node.primary_key:
                keys = ", ".join(self._lowercase_identifier(key) for key in node.primary_key)
                definitions.extend([HARDLINE, f", PRIMARY KEY ({keys})"])
            parts.extend([" (", Indent(definitions), HARDLINE, ")"])
        if node.query is not None:
            parts.extend([" AS", HARDLINE, self.print_query(node.query)])
        parts.extend([HARDLINE, ";"])
        return parts

    def visit_insert(self, node: InsertStatement) -> Doc:
        parts: List[Doc] = ["INSERT OVERWRITE INTO " if node.overwrite else "INSERT INTO "]
        parts.append(node.target.qualified_name)

        if node.columns:
            has_cte = node.query is not None and bool(node.query.ctes)
            if len(node.columns) <= 2 and not has_cte:
                parts.append(f" ({', '.join(node.columns)})")
            else:
                parts.extend(
                    [
                        " (",
                        HARDLINE,
                        "      ",
                        join([HARDLINE, "    , "], list(node.columns)),
                        HARDLINE,
                        ")",
                    ]
                )

        if node.query is not None:
            parts.extend([HARDLINE, self.print_query(node.query)])
        elif node.values:
            parts.extend([HARDLINE, "VALUES "])
            for index, row in enumerate(node.values):
                if index:
                    parts.extend([HARDLINE, COLUMN_CONTINUATION])
                parts.extend(["(", self._expression_list(row), ")"])
        parts.extend([HARDLINE, ";"])
        return parts

    def visit_update(self, node: UpdateStatement) -> Doc:
        parts: List[Doc] = ["UPDATE ", node.target.accept(self)]
        for index, assignment in enumerate(node.assignments):
            parts.append([HARDLINE, "   SET "] if index == 0 else [HARDLINE, COLUMN_CONTINUATION])
            parts.extend([assignment.column.accept(self), " = ", assignment.value.accept(self)])
        if node.from_sources:
            parts.extend([HARDLINE, "FROM ", self._from_list(node.from_sources)])
        if node.where is not None:
            parts.extend([HARDLINE, "WHERE", self._condition(node.where)])
        parts.extend([HARDLINE, ";"])
        return parts

    def visit_delete(self, node: DeleteStatement) -> Doc:
        parts: List[Doc] = ["DELETE FROM ", node.target.accept(self)]
        if node.using:
            parts.extend([HARDLINE, "USING ", join(", ", [source.accept(self) for source in node.using])])
        if node.where is not None:
            parts.extend([HARDLINE, "WHERE", self._condition(node.where)])
        parts.extend([HARDLINE, ";"])
        return parts

    def visit_grant(self, node: GrantStatement) -> Doc:
        if node.is_fallback:
            text = node.statement
            return text if text.endswith(";") else text + ";"

        parts = [f"GRANT {node.privilege} ON {node.on_type} {node.on_name}"]
        if node.in_type:
            parts.append(f" IN {node.in_type} {node.in_name}")
        parts.append(f" TO {node.to_type} {node.to_name};")
        return "".join(parts)

    def visit_comment(self, node: CommentStatement) -> Doc:
        return join(HARDLINE, [line.strip() for line in node.text.splitlines() if line.strip()])

    def visit_opaque(self, node: OpaqueStatement) -> Doc:
        if self.config.strict:
            raise UnsupportedStatementError(node.kind, node.sql)
        logger.warning("Dropping %s statement without a renderer: %s", node.kind, node.sql)
        return ""

    # ------------------------------------------------------------------
    # Clauses
    # ------------------------------------------------------------------

    def visit_table_ref(self, node: TableRef) -> Doc:
        return self._table_source(node, node.qualified_name)

    def visit_derived_table(self, node: DerivedTable) -> Doc:
        parts: List[Doc] = ["(", self._nested_query(node.query), ")"]
        if node.alias:
            parts.append(f" {node.alias}")
        if node.pivot:
            parts.extend([HARDLINE, node.pivot])
        return parts

    def visit_join(self, node: JoinClause) -> Doc:
        parts: List[Doc] = [node.keyword, " ", node.source.accept(self)]
        if node.on is not None:
            parts.extend([" ON ", node.on.accept(self)])
        elif node.using:
            parts.append(f" USING({', '.join(node.using)})")
        return parts

    def _with_block(self, ctes: List[CommonTableExpression]) -> Doc:
        parts: List[Doc] = []
        for index, cte in enumerate(ctes):
            parts.append("WITH " if index == 0 else [HARDLINE, ", "])
            parts.append(cte.name)
            if cte.columns:
                parts.append(f" ({', '.join(cte.columns)})")
            parts.extend([" AS (", self._nested_query(cte.query), ")"])
        return parts

    def _from_list(self, sources: List[TableSource]) -> Doc:
        rendered = []
        for source in sources:
            if isinstance(source, TableRef):
                rendered.append(self._table_source(source, self._lowercase_name(source)))
            else:
                rendered.append(source.accept(self))
        return join(", ", rendered)

    @staticmethod
    def _table_source(node: TableRef, name: str) -> Doc:
        parts: List[Doc] = [name]
        if node.alias:
            parts.append(f" {node.alias}")
        if node.pivot:
            parts.extend([HARDLINE, node.pivot])
        return parts

    def _condition(self, node: ExpressionNode) -> Doc:
        """Render a WHERE/HAVING/QUALIFY condition, starting with a space.

        An AND/OR chain keeps its first operand on the keyword line; every
        further operand goes on its own line, indented two spaces before the
        operator.
        """
        operands = self._boolean_chain(node)
        parts: List[Doc] = [" ", operands[0][1].accept(self)]
        for operator, operand in operands[1:]:
            parts.extend([HARDLINE, CONDITION_CONTINUATION, operator, " ", operand.accept(self)])
        return parts

    def _boolean_chain(self, node: ExpressionNode) -> List[tuple]:
        """Flatten unparenthesized AND/OR nesting into (operator, operand) pairs."""
        if not (isinstance(node, BinaryExpression) and node.is_boolean):
            return [(None, node)]
        left = self._boolean_chain(node.left)
        right = self._boolean_chain(node.right)
        return left + [(node.operator, right[0][1])] + right[1:]

    def _column_definition(self, column: ColumnDefinition) -> Doc:
        parts: List[Doc] = [self._lowercase_identifier(column.name)]
        if column.data_type is not None:
            parts.append(f" {self._data_type(column.data_type)}")
        if column.primary_key:
            parts.append(" PRIMARY KEY")
        if column.not_null:
            parts.append(" NOT NULL")
        if column.default is not None:
            parts.extend([" DEFAULT ", self._default_value(column.default)])
        if column.comment is not None:
            parts.append(f" COMMENT {self._quote(column.comment)}")
        if column.references is not None:
            reference = column.references
            parts.append(f" REFERENCES {reference.table}")
            if reference.columns:
                parts.append(f"({', '.join(reference.columns)})")
        for constraint in column.extra_constraints:
            parts.append(f" {constraint}")
        return parts

    def _default_value(self, node: ExpressionNode) -> Doc:
        # Keyword functions get parentheses in DEFAULT clauses
        if isinstance(node, FunctionCall) and node.no_parentheses:
            return f"{node.name.upper()}()"
        return node.accept(self)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def visit_column_ref(self, node: ColumnRef) -> Doc:
        name = node.name if node.quoted else node.name.lower()
        return f"{node.qualifier}.{name}" if node.qualifier else name

    def visit_literal(self, node: Literal) -> Doc:
        if node.kind == "string":
            return self._quote(node.value)
        return node.value

    def visit_star(self, node: Star) -> Doc:
        return f"{node.qualifier}.*" if node.qualifier else "*"

    def visit_function_call(self, node: FunctionCall) -> Doc:
        name = node.name.upper()
        if node.no_parentheses:
            return name
        return [name, "(", self._expression_list(node.args), ")"]

    def visit_aggregate_call(self, node: AggregateCall) -> Doc:
        parts: List[Doc] = [node.name.upper(), "("]
        if node.distinct:
            parts.append("DISTINCT ")
        if node.argument is not None:
            parts.append(node.argument.accept(self))
        parts.append(")")
        return parts

    def visit_array_index(self, node: ArrayIndex) -> Doc:
        return [node.call.accept(self), f"[{node.index}]"]

    def visit_binary_expression(self, node: BinaryExpression) -> Doc:
        return [node.left.accept(self), f" {node.operator} ", node.right.accept(self)]

    def visit_unary_expression(self, node: UnaryExpression) -> Doc:
        if node.operator == "-":
            return ["-", node.operand.accept(self)]
        return [node.operator, " ", node.operand.accept(self)]

    def visit_parenthesized(self, node: Parenthesized) -> Doc:
        return ["(", node.expression.accept(self), ")"]

    def visit_between(self, node: Between) -> Doc:
        keyword = " NOT BETWEEN " if node.negated else " BETWEEN "
        return [node.subject.accept(self), keyword, node.low.accept(self), " AND ", node.high.accept(self)]

    def visit_in_list(self, node: InList) -> Doc:
        keyword = " NOT IN (" if node.negated else " IN ("
        return [node.subject.accept(self), keyword, self._expression_list(node.values), ")"]

    def visit_in_subquery(self, node: InSubquery) -> Doc:
        keyword = " NOT IN (" if node.negated else " IN ("
        return [node.subject.accept(self), keyword, self._nested_query(node.query), ")"]

    def visit_is_null(self, node: IsNull) -> Doc:
        return [node.subject.accept(self), " IS NOT NULL" if node.negated else " IS NULL"]

    def visit_exists(self, node: Exists) -> Doc:
        keyword = "NOT EXISTS (" if node.negated else "EXISTS ("
        return [keyword, self._nested_query(node.query), ")"]

    def visit_case(self, node: CaseExpression) -> Doc:
        """Render CASE on one line for a single WHEN with ELSE, else aligned.

        Multi-branch form::

            CASE WHEN a THEN 1
                        WHEN b THEN 2
                        ELSE 3
                        END
        """
        head: List[Doc] = ["CASE"]
        if node.operand is not None:
            head.extend([" ", node.operand.accept(self)])
        branches: List[Doc] = [
            ["WHEN ", when.condition.accept(self), " THEN ", when.result.accept(self)]
            for when in node.whens
        ]
        if node.default is not None:
            branches.append(["ELSE ", node.default.accept(self)])

        if len(node.whens) == 1 and node.default is not None:
            return [head, " ", join(" ", branches), " END"]

        parts: List[Doc] = [head]
        for index, branch in enumerate(branches):
            parts.append(" " if index == 0 else [HARDLINE, CASE_CONTINUATION])
            parts.append(branch)
        parts.extend([HARDLINE, CASE_CONTINUATION, "END"])
        return parts

    def visit_cast(self, node: CastExpression) -> Doc:
        data_type = self._data_type(node.data_type)
        if node.shorthand:
            return [node.expression.accept(self), f"::{data_type}"]
        keyword = "TRY_CAST(" if node.safe else "CAST("
        return [keyword, node.expression.accept(self), f" AS {data_type})"]

    def visit_window(self, node: WindowFunction) -> Doc:
        specification: List[Doc] = []
        if node.partition_by:
            specification.append(["PARTITION BY ", self._expression_list(node.partition_by)])
        if node.order_by:
            specification.append(["ORDER BY ", self._order_items(node.order_by)])
        if node.frame:
            specification.append(node.frame)
        return [node.function.accept(self), " OVER (", join(" ", specification), ")"]

    def visit_subquery(self, node: SubqueryExpression) -> Doc:
        return ["(", self._nested_query(node.query), ")"]

    def visit_raw_expression(self, node: RawExpression) -> Doc:
        return node.sql

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _nested_query(self, query: SelectStatement) -> Doc:
        """The query indented one level, between line breaks."""
        return [Indent([HARDLINE, self.print_query(query)]), HARDLINE]

    def _expression_list(self, nodes: List[ExpressionNode]) -> Doc:
        return join(", ", [node.accept(self) for node in nodes])

    def _order_items(self, items: List[OrderItem]) -> Doc:
        rendered = []
        for item in items:
            parts: List[Doc] = [item.expression.accept(self)]
            if item.descending is True:
                parts.append(" DESC")
            elif item.descending is False:
                parts.append(" ASC")
            if item.nulls:
                parts.append(f" NULLS {item.nulls}")
            rendered.append(parts)
        return join(", ", rendered)

    @staticmethod
    def _data_type(data_type: DataTypeSpec) -> str:
        text = data_type.name.upper()
        if data_type.length is not None and data_type.scale is not None:
            return f"{text}({data_type.length},{data_type.scale})"
        if data_type.length is not None:
            return f"{text}({data_type.length})"
        return text

    @staticmethod
    def _quote(value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    @staticmethod
    def _lowercase_identifier(name: str) -> str:
        return name if name[:1] in ('"', "`", "[") else name.lower()

    @staticmethod
    def _lowercase_name(table: TableRef) -> str:
        return table.qualified_name if table.quoted else table.qualified_name.lower()

    @staticmethod
    def _view_name(table: TableRef) -> str:
        """Schema-qualified names are lower-cased; bare names keep their case."""
        name = table.qualified_name
        if table.schema_name and not table.quoted:
            return name.lower()
        return name

    @staticmethod
    def _separator(previous: StatementNode, current: StatementNode) -> Doc:
        if isinstance(previous, CommentStatement):
            return HARDLINE
        if isinstance(previous, GrantStatement) and isinstance(current, GrantStatement):
            return HARDLINE
        return [HARDLINE, HARDLINE]
