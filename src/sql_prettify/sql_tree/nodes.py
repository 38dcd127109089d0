"""SQL tree node definitions consumed by the printer.

This module defines a closed set of node types for the statements and
expressions the formatter renders. The external grammar's generic tree is
converted into these nodes by :mod:`sql_prettify.sql_tree.builder`; anything
without a dedicated node becomes an ``OpaqueStatement`` or ``RawExpression``.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Literal as TypingLiteral, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from sql_prettify.preprocess.records import ArrayAccessRecord, CustomTypeRecord, DynamicTableRecord

if TYPE_CHECKING:
    from sql_prettify.sql_tree.visitor import SqlTreeVisitor


class SqlNode(ABC, BaseModel):
    """Base class for all SQL tree nodes.

    Nodes are mutable so the restoration pass can re-attach dialect semantics
    after the grammar has built the tree.
    """

    model_config = ConfigDict(frozen=False)

    @abstractmethod
    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        """Accept a visitor for the visitor pattern.

        Args:
            visitor: The visitor to accept

        Returns:
            Result of the visitor's visit operation
        """
        pass


class ExpressionNode(SqlNode):
    """Base class for value expressions."""


class StatementNode(SqlNode):
    """Base class for top-level statements.

    Attributes:
        array_accesses: Array-index restoration records of the statement
    """

    array_accesses: List[ArrayAccessRecord] = Field(
        default_factory=list, description="Array-index records of this statement"
    )

    @property
    def kind(self) -> str:
        """Short statement kind name used in logs and summaries."""
        return type(self).__name__.replace("Statement", "").upper()


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


class ColumnRef(ExpressionNode):
    """A column reference, optionally qualified (``t.col``, ``db.t.col``).

    Quoted identifiers keep their quote characters in ``name``.
    """

    name: str = Field(..., description="Column name")
    qualifier: Optional[str] = Field(default=None, description="Table or db.table qualifier")
    quoted: bool = Field(default=False, description="Whether the column name is quoted")

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_column_ref(self)


class Literal(ExpressionNode):
    """A numeric, string, boolean or NULL literal.

    ``value`` holds the unquoted text; string literals are re-quoted by the printer.
    """

    value: str = Field(..., description="Literal text without quotes")
    kind: TypingLiteral["number", "string", "boolean", "null"] = Field(
        ..., description="Literal kind"
    )

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_literal(self)


class Star(ExpressionNode):
    """``*`` or ``t.*``."""

    qualifier: Optional[str] = None

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_star(self)


class FunctionCall(ExpressionNode):
    """A function call with a flat argument list.

    Attributes:
        name: Function name as written or as canonicalized by the grammar
        args: Positional arguments
        no_parentheses: Niladic keyword functions such as CURRENT_DATE
    """

    name: str = Field(..., description="Function name")
    args: List[ExpressionNode] = Field(default_factory=list, description="Arguments")
    no_parentheses: bool = Field(default=False, description="Render without ()")

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_function_call(self)


class AggregateCall(ExpressionNode):
    """An aggregate with a single argument slot (``COUNT(*)``, ``SUM(DISTINCT x)``)."""

    name: str = Field(..., description="Aggregate function name")
    argument: Optional[ExpressionNode] = Field(default=None, description="The single argument")
    distinct: bool = Field(default=False, description="Whether DISTINCT precedes the argument")

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_aggregate_call(self)


class ArrayIndex(ExpressionNode):
    """A bracketed index applied to a function result: ``SPLIT(x, ',')[0]``."""

    call: FunctionCall = Field(..., description="The indexed function call")
    index: int = Field(..., ge=0, description="Subscript")

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_array_index(self)


class BinaryExpression(ExpressionNode):
    """``left <operator> right``.

    AND/OR are distinguished from comparison and arithmetic operators because
    the printer breaks boolean chains across lines.
    """

    operator: str = Field(..., description="Operator token, e.g. '=', '+', 'AND'")
    left: ExpressionNode
    right: ExpressionNode

    @property
    def is_boolean(self) -> bool:
        """True for AND/OR."""
        return self.operator in ("AND", "OR")

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_binary_expression(self)


class UnaryExpression(ExpressionNode):
    """``NOT x`` or a signed operand such as ``-x``."""

    operator: str
    operand: ExpressionNode

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_unary_expression(self)


class Parenthesized(ExpressionNode):
    """An expression wrapped in parentheses in the source."""

    expression: ExpressionNode

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_parenthesized(self)


class Between(ExpressionNode):
    """``subject [NOT] BETWEEN low AND high``."""

    subject: ExpressionNode
    low: ExpressionNode
    high: ExpressionNode
    negated: bool = False

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_between(self)


class InList(ExpressionNode):
    """``subject [NOT] IN (v1, v2, ...)``."""

    subject: ExpressionNode
    values: List[ExpressionNode]
    negated: bool = False

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_in_list(self)


class InSubquery(ExpressionNode):
    """``subject [NOT] IN (SELECT ...)``."""

    subject: ExpressionNode
    query: "SelectStatement"
    negated: bool = False

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_in_subquery(self)


class IsNull(ExpressionNode):
    """``subject IS [NOT] NULL``."""

    subject: ExpressionNode
    negated: bool = False

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_is_null(self)


class Exists(ExpressionNode):
    """``[NOT] EXISTS (SELECT ...)``."""

    query: "SelectStatement"
    negated: bool = False

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_exists(self)


class WhenClause(BaseModel):
    """One ``WHEN condition THEN result`` branch of a CASE expression."""

    model_config = ConfigDict(frozen=False)

    condition: ExpressionNode
    result: ExpressionNode


class CaseExpression(ExpressionNode):
    """``CASE [operand] WHEN ... THEN ... [ELSE ...] END``."""

    operand: Optional[ExpressionNode] = None
    whens: List[WhenClause] = Field(default_factory=list)
    default: Optional[ExpressionNode] = None

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_case(self)


class DataTypeSpec(BaseModel):
    """A declared data type with optional ``(length[,scale])``."""

    model_config = ConfigDict(frozen=False)

    name: str = Field(..., description="Upper-cased type name, e.g. VARCHAR")
    length: Optional[str] = Field(default=None, description="Length or precision")
    scale: Optional[str] = Field(default=None, description="Scale")


class CastExpression(ExpressionNode):
    """``CAST(x AS T)`` or, when written that way, ``x::T``."""

    expression: ExpressionNode
    data_type: DataTypeSpec
    shorthand: bool = Field(default=False, description="Render as expr::TYPE")
    safe: bool = Field(default=False, description="TRY_CAST")

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_cast(self)


class OrderItem(BaseModel):
    """One ORDER BY key. ``descending`` is None when no direction was written."""

    model_config = ConfigDict(frozen=False)

    expression: ExpressionNode
    descending: Optional[bool] = None
    nulls: Optional[TypingLiteral["FIRST", "LAST"]] = None


class WindowFunction(ExpressionNode):
    """``function OVER (PARTITION BY ... ORDER BY ... [frame])``."""

    function: ExpressionNode
    partition_by: List[ExpressionNode] = Field(default_factory=list)
    order_by: List[OrderItem] = Field(default_factory=list)
    frame: Optional[str] = Field(default=None, description="Frame clause text, e.g. ROWS ...")

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_window(self)


class SubqueryExpression(ExpressionNode):
    """A parenthesized query used as a value."""

    query: "SelectStatement"

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_subquery(self)


class RawExpression(ExpressionNode):
    """Any expression without a dedicated node, carried as SQL text."""

    sql: str

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_raw_expression(self)


# ---------------------------------------------------------------------------
# Clauses
# ---------------------------------------------------------------------------


class SelectItem(BaseModel):
    """A projected expression with an optional alias."""

    model_config = ConfigDict(frozen=False)

    expression: ExpressionNode
    alias: Optional[str] = None


class TableSource(SqlNode):
    """Base class for FROM-list entries.

    Attributes:
        alias: Table alias
        pivot: PIVOT/UNPIVOT clause text applied to this source
    """

    alias: Optional[str] = None
    pivot: Optional[str] = None


class TableRef(TableSource):
    """A (qualified) table name. Quoted parts keep their quote characters."""

    name: str = Field(..., description="Table (or schema) name")
    schema_name: Optional[str] = Field(default=None, description="Schema/database qualifier")
    catalog: Optional[str] = Field(default=None, description="Catalog qualifier")
    quoted: bool = Field(default=False, description="Whether any part is quoted")

    @property
    def qualified_name(self) -> str:
        """Dotted name: catalog.schema.table with missing parts omitted."""
        return ".".join(part for part in (self.catalog, self.schema_name, self.name) if part)

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_table_ref(self)


class DerivedTable(TableSource):
    """A subquery in the FROM list: ``(SELECT ...) alias``."""

    query: "SelectStatement"

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_derived_table(self)


class JoinClause(SqlNode):
    """``<keyword> <source> [ON condition | USING(cols)]``.

    Attributes:
        keyword: Rendered join keyword, e.g. 'JOIN', 'LEFT JOIN'
    """

    keyword: str = Field(default="JOIN", description="Join keyword")
    source: TableSource
    on: Optional[ExpressionNode] = None
    using: List[str] = Field(default_factory=list)

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_join(self)


class CommonTableExpression(BaseModel):
    """A ``name AS (query)`` binding of a WITH block."""

    model_config = ConfigDict(frozen=False)

    name: str
    columns: List[str] = Field(default_factory=list)
    query: "SelectStatement"


class ColumnDefinition(BaseModel):
    """A column of a CREATE TABLE statement."""

    model_config = ConfigDict(frozen=False)

    name: str
    data_type: Optional[DataTypeSpec] = None
    primary_key: bool = False
    not_null: bool = False
    default: Optional[ExpressionNode] = None
    comment: Optional[str] = None
    references: Optional["ForeignKeyReference"] = None
    extra_constraints: List[str] = Field(
        default_factory=list, description="Other constraints, as grammar-generated SQL"
    )


class ForeignKeyReference(BaseModel):
    """``REFERENCES table(col, ...)``."""

    model_config = ConfigDict(frozen=False)

    table: str
    columns: List[str] = Field(default_factory=list)


class Assignment(BaseModel):
    """``column = value`` in an UPDATE SET list."""

    model_config = ConfigDict(frozen=False)

    column: ColumnRef
    value: ExpressionNode


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


class SelectStatement(StatementNode):
    """A SELECT query, possibly the head of a chain of set operations.

    ``A UNION B UNION ALL C`` is stored as A (set_operator='UNION',
    next_query=B (set_operator='UNION ALL', next_query=C)).
    """

    ctes: List[CommonTableExpression] = Field(default_factory=list)
    distinct: bool = False
    columns: List[SelectItem] = Field(default_factory=list)
    from_sources: List[TableSource] = Field(default_factory=list)
    joins: List[JoinClause] = Field(default_factory=list)
    where: Optional[ExpressionNode] = None
    group_by: List[ExpressionNode] = Field(default_factory=list)
    group_by_all: bool = False
    having: Optional[ExpressionNode] = None
    qualify: Optional[ExpressionNode] = None
    order_by: List[OrderItem] = Field(default_factory=list)
    limit: Optional[ExpressionNode] = None
    offset: Optional[ExpressionNode] = None
    set_operator: Optional[str] = Field(default=None, description="UNION, UNION ALL, ...")
    next_query: Optional["SelectStatement"] = None

    @property
    def kind(self) -> str:
        return "SELECT"

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_select(self)


class CreateStatement(StatementNode):
    """CREATE TABLE, CREATE VIEW, CREATE DYNAMIC TABLE or CREATE SCHEMA.

    Attributes:
        replace: Restored ``OR REPLACE`` flag
        custom_types: Custom-type records restored onto the columns
        dynamic_options: Restored refresh properties of a dynamic table
    """

    object_kind: TypingLiteral["TABLE", "VIEW", "DYNAMIC TABLE", "SCHEMA"]
    target: TableRef
    replace: bool = False
    if_not_exists: bool = False
    columns: List[ColumnDefinition] = Field(default_factory=list)
    primary_key: List[str] = Field(default_factory=list)
    like: Optional[TableRef] = None
    query: Optional[SelectStatement] = None
    custom_types: List[CustomTypeRecord] = Field(default_factory=list)
    dynamic_options: Optional[DynamicTableRecord] = None

    @property
    def kind(self) -> str:
        return f"CREATE {self.object_kind}"

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_create(self)


class InsertStatement(StatementNode):
    """INSERT INTO ... SELECT or INSERT INTO ... VALUES."""

    target: TableRef
    columns: List[str] = Field(default_factory=list)
    query: Optional[SelectStatement] = None
    values: List[List[ExpressionNode]] = Field(default_factory=list)
    overwrite: bool = False

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_insert(self)


class UpdateStatement(StatementNode):
    """UPDATE ... SET ... [FROM ...] [WHERE ...]."""

    target: TableRef
    assignments: List[Assignment] = Field(default_factory=list)
    from_sources: List[TableSource] = Field(default_factory=list)
    where: Optional[ExpressionNode] = None

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_update(self)


class DeleteStatement(StatementNode):
    """DELETE FROM ... [USING ...] [WHERE ...]."""

    target: TableRef
    using: List[TableSource] = Field(default_factory=list)
    where: Optional[ExpressionNode] = None

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_delete(self)


class GrantStatement(StatementNode):
    """A GRANT statement.

    Either the structured fields are set, or only ``statement`` is (the
    verbatim fallback for statements outside the supported shape).
    """

    privilege: Optional[str] = None
    on_type: Optional[str] = None
    on_name: Optional[str] = None
    in_type: Optional[str] = None
    in_name: Optional[str] = None
    to_type: Optional[str] = None
    to_name: Optional[str] = None
    statement: Optional[str] = Field(default=None, description="Verbatim fallback text")

    @property
    def is_fallback(self) -> bool:
        """True when the statement did not match the structured shape."""
        return self.statement is not None

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_grant(self)


class CommentStatement(StatementNode):
    """Leading ``--`` comment lines carried in front of a statement."""

    text: str

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_comment(self)


class OpaqueStatement(StatementNode):
    """A statement parsed by the grammar but without a renderer."""

    statement_kind: str = Field(..., description="Grammar node type name")
    sql: str = Field(default="", description="SQL text as regenerated by the grammar")

    @property
    def kind(self) -> str:
        return self.statement_kind.upper()

    def accept(self, visitor: "SqlTreeVisitor") -> Any:
        return visitor.visit_opaque(self)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class SourceSpan(BaseModel):
    """First and last position of the original text (1-based lines, 0-based columns)."""

    start_line: int = 1
    start_column: int = 0
    end_line: int
    end_column: int

    @classmethod
    def from_text(cls, text: str) -> "SourceSpan":
        """Compute the span covering all of ``text``."""
        lines = text.split("\n")
        return cls(end_line=len(lines), end_column=len(lines[-1]))


class SourceDocument(BaseModel):
    """Root of a parse: one statement or an ordered list of statements.

    Attributes:
        kind: Always 'sql'
        tree: A single statement, or all statements in source order
        original_text: The text passed to the parser
        span: Range of the original text
    """

    model_config = ConfigDict(frozen=False)

    kind: TypingLiteral["sql"] = "sql"
    tree: Union[StatementNode, List[StatementNode]]
    original_text: str
    span: SourceSpan

    @property
    def statements(self) -> List[StatementNode]:
        """The tree as a list, regardless of how many statements were parsed."""
        if isinstance(self.tree, list):
            return list(self.tree)
        return [self.tree]


for _model in (
    InSubquery,
    Exists,
    SubqueryExpression,
    DerivedTable,
    CommonTableExpression,
    ColumnDefinition,
    SelectStatement,
    CreateStatement,
    InsertStatement,
):
    _model.model_rebuild()
