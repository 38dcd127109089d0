"""SQL tree module: the closed node model the printer renders.

Nodes are built from the external grammar's trees by the builder and visited
by the printer through the visitor interface.
"""

from sql_prettify.sql_tree.builder import SqlTreeBuilder
from sql_prettify.sql_tree.nodes import (
    CommentStatement,
    CreateStatement,
    DeleteStatement,
    ExpressionNode,
    GrantStatement,
    InsertStatement,
    OpaqueStatement,
    SelectStatement,
    SourceDocument,
    SqlNode,
    StatementNode,
    UpdateStatement,
)
from sql_prettify.sql_tree.visitor import SqlTreeVisitor

__all__ = [
    "SqlTreeBuilder",
    "SqlNode",
    "ExpressionNode",
    "StatementNode",
    "SelectStatement",
    "CreateStatement",
    "InsertStatement",
    "UpdateStatement",
    "DeleteStatement",
    "GrantStatement",
    "CommentStatement",
    "OpaqueStatement",
    "SourceDocument",
    "SqlTreeVisitor",
]
