"""Visitor pattern for traversing and rendering SQL tree nodes.

This module provides the abstract visitor interface implemented by the
printer. Every concrete node type dispatches to exactly one ``visit_*``
method through its ``accept`` method.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sql_prettify.sql_tree.nodes import (
        AggregateCall,
        ArrayIndex,
        Between,
        BinaryExpression,
        CaseExpression,
        CastExpression,
        ColumnRef,
        CommentStatement,
        CreateStatement,
        DeleteStatement,
        DerivedTable,
        Exists,
        FunctionCall,
        GrantStatement,
        InList,
        InsertStatement,
        InSubquery,
        IsNull,
        JoinClause,
        Literal,
        OpaqueStatement,
        Parenthesized,
        RawExpression,
        SelectStatement,
        Star,
        SubqueryExpression,
        TableRef,
        UnaryExpression,
        UpdateStatement,
        WindowFunction,
    )


class SqlTreeVisitor(ABC):
    """Abstract base class for SQL tree visitors.

    Implementations traverse the tree and produce a result per node, such as
    a layout document (the printer) or a summary.
    """

    # Statements

    @abstractmethod
    def visit_select(self, node: "SelectStatement") -> Any:
        """Visit a SELECT statement.

        Args:
            node: The select statement to visit

        Returns:
            Processed result for the statement
        """
        pass

    @abstractmethod
    def visit_create(self, node: "CreateStatement") -> Any:
        """Visit a CREATE TABLE/VIEW/SCHEMA statement."""
        pass

    @abstractmethod
    def visit_insert(self, node: "InsertStatement") -> Any:
        """Visit an INSERT statement."""
        pass

    @abstractmethod
    def visit_update(self, node: "UpdateStatement") -> Any:
        """Visit an UPDATE statement."""
        pass

    @abstractmethod
    def visit_delete(self, node: "DeleteStatement") -> Any:
        """Visit a DELETE statement."""
        pass

    @abstractmethod
    def visit_grant(self, node: "GrantStatement") -> Any:
        """Visit a GRANT statement, structured or verbatim."""
        pass

    @abstractmethod
    def visit_comment(self, node: "CommentStatement") -> Any:
        """Visit a carried-through leading comment."""
        pass

    @abstractmethod
    def visit_opaque(self, node: "OpaqueStatement") -> Any:
        """Visit a statement kind without a dedicated node."""
        pass

    # Clauses

    @abstractmethod
    def visit_table_ref(self, node: "TableRef") -> Any:
        """Visit a table reference in a FROM list or join."""
        pass

    @abstractmethod
    def visit_derived_table(self, node: "DerivedTable") -> Any:
        """Visit a subquery in a FROM list or join."""
        pass

    @abstractmethod
    def visit_join(self, node: "JoinClause") -> Any:
        """Visit a join clause."""
        pass

    # Expressions

    @abstractmethod
    def visit_column_ref(self, node: "ColumnRef") -> Any:
        """Visit a column reference.

        Args:
            node: The column reference to visit

        Returns:
            Processed result for the expression
        """
        pass

    @abstractmethod
    def visit_literal(self, node: "Literal") -> Any:
        pass

    @abstractmethod
    def visit_star(self, node: "Star") -> Any:
        pass

    @abstractmethod
    def visit_function_call(self, node: "FunctionCall") -> Any:
        """Visit a function call with a flat argument list."""
        pass

    @abstractmethod
    def visit_aggregate_call(self, node: "AggregateCall") -> Any:
        """Visit an aggregate call with a single argument slot."""
        pass

    @abstractmethod
    def visit_array_index(self, node: "ArrayIndex") -> Any:
        pass

    @abstractmethod
    def visit_binary_expression(self, node: "BinaryExpression") -> Any:
        """Visit a binary expression (comparison, arithmetic, AND/OR)."""
        pass

    @abstractmethod
    def visit_unary_expression(self, node: "UnaryExpression") -> Any:
        pass

    @abstractmethod
    def visit_parenthesized(self, node: "Parenthesized") -> Any:
        pass

    @abstractmethod
    def visit_between(self, node: "Between") -> Any:
        pass

    @abstractmethod
    def visit_in_list(self, node: "InList") -> Any:
        pass

    @abstractmethod
    def visit_in_subquery(self, node: "InSubquery") -> Any:
        pass

    @abstractmethod
    def visit_is_null(self, node: "IsNull") -> Any:
        pass

    @abstractmethod
    def visit_exists(self, node: "Exists") -> Any:
        pass

    @abstractmethod
    def visit_case(self, node: "CaseExpression") -> Any:
        """Visit a CASE expression."""
        pass

    @abstractmethod
    def visit_cast(self, node: "CastExpression") -> Any:
        """Visit a CAST, TRY_CAST or ``::`` cast."""
        pass

    @abstractmethod
    def visit_window(self, node: "WindowFunction") -> Any:
        """Visit a function with an OVER clause."""
        pass

    @abstractmethod
    def visit_subquery(self, node: "SubqueryExpression") -> Any:
        pass

    @abstractmethod
    def visit_raw_expression(self, node: "RawExpression") -> Any:
        """Visit an expression carried as grammar-generated SQL text."""
        pass
