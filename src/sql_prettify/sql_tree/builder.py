"""Builder for converting sqlglot expression trees to SQL tree nodes.

sqlglot returns a large, loosely shaped expression tree. This module maps the
subset the printer renders onto the closed node types of
:mod:`sql_prettify.sql_tree.nodes`. Statements without a renderer become
``OpaqueStatement``; expressions without a node become ``RawExpression``
carrying sqlglot's own SQL for that subtree.
"""

import logging
from typing import List, Optional

from sqlglot import exp

from sql_prettify.errors import UnsupportedStatementError
from sql_prettify.sql_tree.nodes import (
    AggregateCall,
    Assignment,
    Between,
    BinaryExpression,
    CaseExpression,
    CastExpression,
    ColumnDefinition,
    ColumnRef,
    CommonTableExpression,
    CreateStatement,
    DataTypeSpec,
    DeleteStatement,
    DerivedTable,
    Exists,
    ExpressionNode,
    ForeignKeyReference,
    FunctionCall,
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
    SelectItem,
    SelectStatement,
    Star,
    StatementNode,
    SubqueryExpression,
    TableRef,
    TableSource,
    UnaryExpression,
    UpdateStatement,
    WhenClause,
    WindowFunction,
)

logger = logging.getLogger(__name__)

_BINARY_OPERATORS = {
    exp.And: "AND",
    exp.Or: "OR",
    exp.EQ: "=",
    exp.NEQ: "<>",
    exp.GT: ">",
    exp.GTE: ">=",
    exp.LT: "<",
    exp.LTE: "<=",
    exp.NullSafeEQ: "<=>",
    exp.Add: "+",
    exp.Sub: "-",
    exp.Mul: "*",
    exp.Div: "/",
    exp.Mod: "%",
    exp.DPipe: "||",
    exp.Like: "LIKE",
    exp.ILike: "ILIKE",
    exp.Is: "IS",
    exp.BitwiseAnd: "&",
    exp.BitwiseOr: "|",
    exp.BitwiseXor: "^",
}

_NEGATABLE_OPERATORS = {exp.Like: "NOT LIKE", exp.ILike: "NOT ILIKE"}

_NO_PAREN_FUNCTIONS = (exp.CurrentDate, exp.CurrentTimestamp, exp.CurrentTime, exp.CurrentUser)

# Typed calls whose argument slots map one-to-one onto positional SQL arguments
_POSITIONAL_FUNCTIONS = {exp.If: {"this", "true", "false"}}

_QUERY_TYPES = (exp.Select, exp.Union, exp.Intersect, exp.Except, exp.Subquery)


class SqlTreeBuilder:
    """Builds SQL tree nodes from sqlglot expressions.

    Attributes:
        dialect: sqlglot dialect used when a subtree is kept as SQL text
    """

    def __init__(self, dialect: Optional[str] = None):
        self.dialect = dialect

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def build_statement(self, node: exp.Expression) -> StatementNode:
        """Convert one parsed statement.

        Args:
            node: A top-level sqlglot expression

        Returns:
            The matching statement node, or an OpaqueStatement
        """
        if isinstance(node, _QUERY_TYPES):
            return self.build_query(node)
        if isinstance(node, exp.Create):
            return self._create(node)
        if isinstance(node, exp.Insert):
            return self._insert(node)
        if isinstance(node, exp.Update):
            return self._update(node)
        if isinstance(node, exp.Delete):
            return self._delete(node)
        return self._opaque(node)

    def build_query(self, node: exp.Expression) -> SelectStatement:
        """Convert a SELECT, a parenthesized query or a set operation.

        Raises:
            UnsupportedStatementError: If ``node`` is not a query.
        """
        if isinstance(node, exp.Subquery):
            return self.build_query(node.this)
        if isinstance(node, (exp.Union, exp.Intersect, exp.Except)):
            return self._set_operation(node)
        if isinstance(node, exp.Select):
            return self._select(node)
        raise UnsupportedStatementError(type(node).__name__, self._sql(node))

    def _opaque(self, node: exp.Expression) -> OpaqueStatement:
        logger.debug("No renderer for %s statement", type(node).__name__)
        return OpaqueStatement(statement_kind=type(node).__name__, sql=self._sql(node))

    def _select(self, node: exp.Select) -> SelectStatement:
        statement = SelectStatement(
            ctes=self._ctes(node.args.get("with")),
            distinct=node.args.get("distinct") is not None,
            columns=[self._select_item(item) for item in node.expressions],
        )

        from_clause = node.args.get("from")
        if from_clause is not None:
            statement.from_sources.append(self.build_table_source(from_clause.this))

        for join in node.args.get("joins") or []:
            if self._is_comma_join(join):
                statement.from_sources.append(self.build_table_source(join.this))
            else:
                statement.joins.append(self._join(join))

        statement.where = self._clause_condition(node.args.get("where"))

        group = node.args.get("group")
        if group is not None:
            statement.group_by = [self.build_expression(item) for item in group.expressions]
            statement.group_by_all = bool(group.args.get("all"))

        statement.having = self._clause_condition(node.args.get("having"))
        statement.qualify = self._clause_condition(node.args.get("qualify"))
        statement.order_by = self._order_items(node.args.get("order"))
        statement.limit = self._clause_value(node.args.get("limit"))
        statement.offset = self._clause_value(node.args.get("offset"))
        return statement

    def _set_operation(self, node: exp.Expression) -> SelectStatement:
        if isinstance(node, exp.Intersect):
            operator = "INTERSECT"
        elif isinstance(node, exp.Except):
            operator = "EXCEPT"
        else:
            operator = "UNION"
        if node.args.get("distinct") is False:
            operator += " ALL"

        head = self.build_query(node.this)
        tail = head
        while tail.next_query is not None:
            tail = tail.next_query
        tail.set_operator = operator
        tail.next_query = self.build_query(node.expression)

        # Modifiers written after the last operand belong to the whole chain
        while tail.next_query is not None:
            tail = tail.next_query
        head.ctes = self._ctes(node.args.get("with")) + head.ctes
        if node.args.get("order") is not None:
            tail.order_by = self._order_items(node.args.get("order"))
        if node.args.get("limit") is not None:
            tail.limit = self._clause_value(node.args.get("limit"))
        if node.args.get("offset") is not None:
            tail.offset = self._clause_value(node.args.get("offset"))
        return head

    def _ctes(self, with_clause: Optional[exp.Expression]) -> List[CommonTableExpression]:
        if with_clause is None:
            return []
        ctes = []
        for cte in with_clause.expressions:
            alias = cte.args.get("alias")
            columns = [self._identifier_text(column) for column in alias.columns] if alias else []
            ctes.append(
                CommonTableExpression(
                    name=cte.alias,
                    columns=columns,
                    query=self.build_query(cte.this),
                )
            )
        return ctes

    def _select_item(self, node: exp.Expression) -> SelectItem:
        if isinstance(node, exp.Alias):
            return SelectItem(
                expression=self.build_expression(node.this),
                alias=self._identifier_text(node.args.get("alias")),
            )
        return SelectItem(expression=self.build_expression(node))

    @staticmethod
    def _is_comma_join(join: exp.Join) -> bool:
        """A join without keyword parts or condition is a comma-separated FROM entry."""
        return not any(
            join.args.get(key) for key in ("on", "using", "side", "kind", "method")
        )

    def _join(self, node: exp.Join) -> JoinClause:
        parts = [node.text("method").upper(), node.text("side").upper(), node.text("kind").upper()]
        keyword = " ".join([part for part in parts if part and part != "INNER"] + ["JOIN"])
        on = node.args.get("on")
        return JoinClause(
            keyword=keyword,
            source=self.build_table_source(node.this),
            on=self.build_expression(on) if on is not None else None,
            using=[self._identifier_text(column) for column in node.args.get("using") or []],
        )

    def _order_items(self, order: Optional[exp.Expression]) -> List[OrderItem]:
        if order is None:
            return []
        items = []
        for ordered in order.expressions:
            if not isinstance(ordered, exp.Ordered):
                items.append(OrderItem(expression=self.build_expression(ordered)))
                continue
            items.append(
                OrderItem(
                    expression=self.build_expression(ordered.this),
                    descending=ordered.args.get("desc"),
                    nulls=ordered.meta.get("nulls"),
                )
            )
        return items

    def _clause_condition(self, clause: Optional[exp.Expression]) -> Optional[ExpressionNode]:
        if clause is None:
            return None
        return self.build_expression(clause.this)

    def _clause_value(self, clause: Optional[exp.Expression]) -> Optional[ExpressionNode]:
        if clause is None:
            return None
        value = clause.args.get("expression")
        return self.build_expression(value) if value is not None else None

    def _create(self, node: exp.Create) -> StatementNode:
        kind = str(node.args.get("kind") or "").upper()
        if kind not in ("TABLE", "VIEW", "SCHEMA"):
            return self._opaque(node)

        target_node = node.this
        columns: List[ColumnDefinition] = []
        primary_key: List[str] = []
        if isinstance(target_node, exp.Schema):
            for item in target_node.expressions:
                if isinstance(item, exp.ColumnDef):
                    columns.append(self._column_definition(item))
                elif isinstance(item, exp.PrimaryKey):
                    primary_key = [self._identifier_text(key) for key in item.expressions]
                else:
                    return self._opaque(node)
            target_node = target_node.this

        like = None
        properties = node.args.get("properties")
        for prop in properties.expressions if properties is not None else []:
            if isinstance(prop, exp.LikeProperty):
                like = self.build_table_ref(prop.this)
            else:
                return self._opaque(node)

        query = node.expression
        return CreateStatement(
            object_kind=kind,
            target=self._schema_ref(target_node) if kind == "SCHEMA" else self.build_table_ref(target_node),
            replace=bool(node.args.get("replace")),
            if_not_exists=bool(node.args.get("exists")),
            columns=columns,
            primary_key=primary_key,
            like=like,
            query=self.build_query(query) if query is not None else None,
        )

    def _column_definition(self, node: exp.ColumnDef) -> ColumnDefinition:
        kind = node.args.get("kind")
        column = ColumnDefinition(
            name=self._identifier_text(node.this),
            data_type=self.build_data_type(kind) if kind is not None else None,
        )
        for constraint in node.args.get("constraints") or []:
            option = constraint.args.get("kind") if isinstance(constraint, exp.ColumnConstraint) else constraint
            if isinstance(option, exp.PrimaryKeyColumnConstraint):
                column.primary_key = True
            elif isinstance(option, exp.NotNullColumnConstraint) and not option.args.get("allow_null"):
                column.not_null = True
            elif isinstance(option, exp.DefaultColumnConstraint):
                column.default = self.build_expression(option.this)
            elif isinstance(option, exp.CommentColumnConstraint):
                column.comment = option.this.name
            elif isinstance(option, exp.Reference):
                column.references = self._reference(option)
            else:
                column.extra_constraints.append(self._sql(constraint))
        return column

    def _reference(self, node: exp.Reference) -> ForeignKeyReference:
        target = node.this
        columns: List[str] = []
        if isinstance(target, exp.Schema):
            columns = [self._identifier_text(column) for column in target.expressions]
            target = target.this
        return ForeignKeyReference(table=self.build_table_ref(target).qualified_name, columns=columns)

    def build_data_type(self, node: exp.Expression) -> DataTypeSpec:
        """Convert a sqlglot data type to a name with optional length and scale.

        Parameterized types other than ``NAME(n[,m])`` (nested, user-defined)
        keep sqlglot's rendering as the name.
        """
        if not isinstance(node, exp.DataType):
            return DataTypeSpec(name=self._sql(node).upper())

        params = node.expressions
        simple = (
            not node.args.get("nested")
            and node.this != exp.DataType.Type.USERDEFINED
            and len(params) <= 2
            and all(isinstance(param, (exp.DataTypeParam, exp.Literal)) for param in params)
        )
        if not simple:
            return DataTypeSpec(name=self._sql(node))

        return DataTypeSpec(
            name=node.this.value,
            length=params[0].name if params else None,
            scale=params[1].name if len(params) > 1 else None,
        )

    def _insert(self, node: exp.Insert) -> StatementNode:
        target = node.this
        columns: List[str] = []
        if isinstance(target, exp.Schema):
            columns = [self._identifier_text(column) for column in target.expressions]
            target = target.this
        if not isinstance(target, exp.Table):
            return self._opaque(node)

        statement = InsertStatement(
            target=self.build_table_ref(target),
            columns=columns,
            overwrite=bool(node.args.get("overwrite")),
        )
        source = node.expression
        if isinstance(source, exp.Values):
            statement.values = [
                [self.build_expression(value) for value in row.expressions]
                for row in source.expressions
            ]
        elif source is not None:
            statement.query = self.build_query(source)
            statement.query.ctes = self._ctes(node.args.get("with")) + statement.query.ctes
        return statement

    def _update(self, node: exp.Update) -> StatementNode:
        assignments = []
        for item in node.expressions:
            if not (isinstance(item, exp.EQ) and isinstance(item.this, exp.Column)):
                return self._opaque(node)
            assignments.append(
                Assignment(
                    column=self.build_expression(item.this),
                    value=self.build_expression(item.expression),
                )
            )

        from_clause = node.args.get("from")
        return UpdateStatement(
            target=self.build_table_ref(node.this),
            assignments=assignments,
            from_sources=[self.build_table_source(from_clause.this)] if from_clause else [],
            where=self._clause_condition(node.args.get("where")),
        )

    def _delete(self, node: exp.Delete) -> StatementNode:
        using = node.args.get("using") or []
        if not isinstance(using, list):
            using = [using]
        return DeleteStatement(
            target=self.build_table_ref(node.this),
            using=[self.build_table_source(source) for source in using],
            where=self._clause_condition(node.args.get("where")),
        )

    # ------------------------------------------------------------------
    # Table sources
    # ------------------------------------------------------------------

    def build_table_source(self, node: exp.Expression) -> TableSource:
        """Convert a FROM-list or join target."""
        if isinstance(node, exp.Subquery):
            return DerivedTable(
                query=self.build_query(node.this),
                alias=node.alias or None,
                pivot=self._pivots(node),
            )
        if isinstance(node, exp.Table) and isinstance(node.this, exp.Identifier):
            return self.build_table_ref(node)
        # Table functions, VALUES lists, LATERAL ...: kept verbatim
        return TableRef(name=self._sql(node), quoted=True)

    def build_table_ref(self, node: exp.Expression) -> TableRef:
        """Convert a sqlglot table to a TableRef, keeping alias and pivots."""
        if not isinstance(node, exp.Table):
            return TableRef(name=self._sql(node), quoted=True)
        parts = [node.args.get(key) for key in ("this", "db", "catalog")]
        return TableRef(
            name=self._identifier_text(parts[0]),
            schema_name=self._identifier_text(parts[1]) or None,
            catalog=self._identifier_text(parts[2]) or None,
            alias=node.alias or None,
            pivot=self._pivots(node),
            quoted=any(isinstance(part, exp.Identifier) and part.quoted for part in parts),
        )

    def _schema_ref(self, node: exp.Expression) -> TableRef:
        """CREATE SCHEMA targets are parsed as database references."""
        if isinstance(node, exp.Table) and node.args.get("this") is None:
            return TableRef(
                name=self._identifier_text(node.args.get("db")),
                schema_name=self._identifier_text(node.args.get("catalog")) or None,
            )
        return self.build_table_ref(node)

    def _pivots(self, node: exp.Expression) -> Optional[str]:
        pivots = node.args.get("pivots")
        if not pivots:
            return None
        return " ".join(self._sql(pivot) for pivot in pivots)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def build_expression(self, node: exp.Expression) -> ExpressionNode:
        """Convert a value expression.

        Args:
            node: Any sqlglot expression in value position

        Returns:
            The matching expression node, or a RawExpression
        """
        if isinstance(node, exp.Paren):
            return Parenthesized(expression=self.build_expression(node.this))
        if isinstance(node, exp.Alias):
            return self.build_expression(node.this)
        if isinstance(node, exp.Column):
            return self._column(node)
        if isinstance(node, exp.Star):
            return Star()
        if isinstance(node, exp.Literal):
            return Literal(value=node.this, kind="string" if node.is_string else "number")
        if isinstance(node, exp.Boolean):
            return Literal(value="TRUE" if node.this else "FALSE", kind="boolean")
        if isinstance(node, exp.Null):
            return Literal(value="NULL", kind="null")
        if isinstance(node, exp.Neg):
            return UnaryExpression(operator="-", operand=self.build_expression(node.this))
        if isinstance(node, exp.Not):
            return self._negation(node.this)
        if isinstance(node, exp.In):
            return self._in(node)
        if isinstance(node, exp.Is) and isinstance(node.expression, exp.Null):
            return IsNull(subject=self.build_expression(node.this))
        if isinstance(node, exp.Between):
            return Between(
                subject=self.build_expression(node.this),
                low=self.build_expression(node.args["low"]),
                high=self.build_expression(node.args["high"]),
            )
        if isinstance(node, exp.Exists):
            return Exists(query=self.build_query(node.this))
        if isinstance(node, exp.Case):
            return self._case(node)
        if isinstance(node, exp.Cast):
            return CastExpression(
                expression=self.build_expression(node.this),
                data_type=self.build_data_type(node.args["to"]),
                safe=isinstance(node, exp.TryCast),
            )
        if isinstance(node, exp.Window):
            return self._window(node)
        if isinstance(node, (exp.Subquery, exp.Select, exp.Union, exp.Intersect, exp.Except)):
            return SubqueryExpression(query=self.build_query(node))
        operator = _BINARY_OPERATORS.get(type(node))
        if operator is not None:
            return BinaryExpression(
                operator=operator,
                left=self.build_expression(node.this),
                right=self.build_expression(node.expression),
            )
        if isinstance(node, exp.Func):
            return self._function(node)
        return RawExpression(sql=self._sql(node))

    def _column(self, node: exp.Column) -> ExpressionNode:
        qualifier_parts = [
            self._identifier_text(node.args.get(key)) for key in ("catalog", "db", "table")
        ]
        qualifier = ".".join(part for part in qualifier_parts if part) or None
        if isinstance(node.this, exp.Star):
            return Star(qualifier=qualifier)
        identifier = node.this
        return ColumnRef(
            name=self._identifier_text(identifier),
            qualifier=qualifier,
            quoted=isinstance(identifier, exp.Identifier) and identifier.quoted,
        )

    def _negation(self, node: exp.Expression) -> ExpressionNode:
        """Fold ``NOT`` into predicates that have a negated spelling."""
        inner = self.build_expression(node)
        if isinstance(inner, (InList, InSubquery, IsNull, Between, Exists)):
            inner.negated = not inner.negated
            return inner
        negated_operator = _NEGATABLE_OPERATORS.get(type(node))
        if negated_operator is not None and isinstance(inner, BinaryExpression):
            inner.operator = negated_operator
            return inner
        return UnaryExpression(operator="NOT", operand=inner)

    def _in(self, node: exp.In) -> ExpressionNode:
        subject = self.build_expression(node.this)
        query = node.args.get("query")
        if query is not None:
            return InSubquery(subject=subject, query=self.build_query(query))
        if node.args.get("unnest") is not None or node.args.get("field") is not None:
            return RawExpression(sql=self._sql(node))
        return InList(
            subject=subject,
            values=[self.build_expression(value) for value in node.expressions],
        )

    def _case(self, node: exp.Case) -> CaseExpression:
        operand = node.this
        default = node.args.get("default")
        return CaseExpression(
            operand=self.build_expression(operand) if operand is not None else None,
            whens=[
                WhenClause(
                    condition=self.build_expression(branch.this),
                    result=self.build_expression(branch.args.get("true")),
                )
                for branch in node.args.get("ifs") or []
            ],
            default=self.build_expression(default) if default is not None else None,
        )

    def _window(self, node: exp.Window) -> ExpressionNode:
        if node.args.get("alias") is not None:
            return RawExpression(sql=self._sql(node))
        spec = node.args.get("spec")
        return WindowFunction(
            function=self.build_expression(node.this),
            partition_by=[self.build_expression(item) for item in node.args.get("partition_by") or []],
            order_by=self._order_items(node.args.get("order")),
            frame=self._sql(spec) if spec is not None else None,
        )

    def _function(self, node: exp.Func) -> ExpressionNode:
        """Convert a function call, keeping the name it was written with.

        Plain calls arrive as ``exp.Anonymous`` (see
        :class:`sql_prettify.parser.grammar.SourcePreservingParser`). Typed
        calls come from dedicated syntax and are kept as sqlglot renders them,
        unless their arguments are plain positional values.
        """
        if isinstance(node, exp.Anonymous):
            return self._anonymous(node)

        name = node.meta.get("source_name") or node.sql_name()
        if isinstance(node, _NO_PAREN_FUNCTIONS) and not self._argument_values(node):
            return FunctionCall(name=name, no_parentheses=True)

        if isinstance(node, exp.AggFunc) and self._argument_keys(node) <= {"this"}:
            return self._aggregate(node, name, node.this)

        positional = _POSITIONAL_FUNCTIONS.get(type(node))
        if positional is None or not self._argument_keys(node) <= positional:
            return RawExpression(sql=self._sql(node))
        return FunctionCall(
            name=name,
            args=[self.build_expression(arg) for arg in self._argument_values(node)],
        )

    def _anonymous(self, node: exp.Anonymous) -> ExpressionNode:
        arguments = node.expressions
        if len(arguments) == 1 and isinstance(arguments[0], exp.Distinct):
            return self._aggregate(node, node.name, arguments[0])
        return FunctionCall(
            name=node.name,
            args=[self.build_expression(arg) for arg in arguments],
        )

    def _aggregate(
        self, node: exp.Func, name: str, argument: Optional[exp.Expression]
    ) -> ExpressionNode:
        distinct = isinstance(argument, exp.Distinct)
        if distinct:
            if len(argument.expressions) != 1:
                return RawExpression(sql=self._sql(node))
            argument = argument.expressions[0]
        return AggregateCall(
            name=name,
            argument=self.build_expression(argument) if argument is not None else None,
            distinct=distinct,
        )

    @staticmethod
    def _argument_keys(node: exp.Func) -> set:
        """Names of the argument slots holding expressions (flags excluded)."""
        keys = set()
        for key, value in node.args.items():
            values = value if isinstance(value, list) else [value]
            if any(isinstance(item, exp.Expression) for item in values):
                keys.add(key)
        return keys

    @staticmethod
    def _argument_values(node: exp.Func) -> List[exp.Expression]:
        """Expression arguments in declaration order."""
        arguments = []
        for key in node.arg_types:
            value = node.args.get(key)
            values = value if isinstance(value, list) else [value]
            arguments.extend(item for item in values if isinstance(item, exp.Expression))
        return arguments

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _identifier_text(self, node: Optional[exp.Expression]) -> str:
        """Plain name, or the quoted form for quoted identifiers."""
        if node is None:
            return ""
        if isinstance(node, exp.Identifier) and node.quoted:
            return self._sql(node)
        return node.name

    def _sql(self, node: exp.Expression) -> str:
        return node.sql(dialect=self.dialect)
