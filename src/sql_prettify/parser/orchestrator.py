"""Statement splitter and parse orchestrator.

Splits raw SQL into statements, routes GRANT statements to the mini-parser
and everything else through codec, grammar, tree builder and restoration,
and wraps the result in a :class:`SourceDocument`.
"""

import logging
import re
from typing import List, Optional

from sql_prettify.errors import GrammarSyntaxError, StatementParseError, UnsupportedStatementError
from sql_prettify.parser.grammar import SqlglotGrammar
from sql_prettify.parser.restoration import TreeRestorer
from sql_prettify.preprocess.codec import PlaceholderCodec
from sql_prettify.preprocess.grant import is_grant_statement, parse_grant
from sql_prettify.preprocess.lexer import split_outside_literals
from sql_prettify.sql_tree.builder import SqlTreeBuilder
from sql_prettify.sql_tree.nodes import (
    CommentStatement,
    SourceDocument,
    SourceSpan,
    StatementNode,
)

logger = logging.getLogger(__name__)

_LEADING_COMMENTS = re.compile(r"^(?:[ \t]*--[^\n]*(?:\n|$)\s*)+")


class SQLParser:
    """Parses SQL text into a SourceDocument.

    Args:
        grammar: Grammar handle; a generic-dialect handle is created if omitted
        codec: Placeholder codec applied before the grammar
        builder: Converts grammar trees to SQL tree nodes
        restorer: Re-attaches codec records onto the built tree
    """

    def __init__(
        self,
        grammar: Optional[SqlglotGrammar] = None,
        codec: Optional[PlaceholderCodec] = None,
        builder: Optional[SqlTreeBuilder] = None,
        restorer: Optional[TreeRestorer] = None,
    ):
        self.grammar = grammar or SqlglotGrammar()
        self.codec = codec or PlaceholderCodec()
        self.builder = builder or SqlTreeBuilder(dialect=self.grammar.dialect)
        self.restorer = restorer or TreeRestorer()

    def split(self, text: str) -> List[str]:
        """Split text into ``;``-terminated statements.

        Semicolons inside string literals, quoted identifiers and comments do
        not end a statement. Empty pieces are dropped.

        Args:
            text: Raw SQL text

        Returns:
            Trimmed statements, each ending with ``;``
        """
        return [
            piece.strip() + ";" for piece in split_outside_literals(text) if piece.strip()
        ]

    def parse(self, text: str) -> SourceDocument:
        """Parse SQL text into a document.

        Args:
            text: Raw SQL text with one or more statements

        Returns:
            A SourceDocument whose tree is a single statement or a list

        Raises:
            StatementParseError: If the grammar rejects any statement.
        """
        span = SourceSpan.from_text(text)
        trimmed = text.strip()
        pieces = self.split(trimmed)

        if len(pieces) > 1:
            logger.debug("Parsing %d statements", len(pieces))
            statements: List[StatementNode] = []
            for piece in pieces:
                statements.extend(self._parse_statement(piece, multi_statement=True))
            return SourceDocument(tree=statements, original_text=text, span=span)

        if not trimmed:
            return SourceDocument(tree=[], original_text=text, span=span)

        if is_grant_statement(trimmed):
            return SourceDocument(tree=parse_grant(trimmed), original_text=text, span=span)

        statements = self._parse_statement(trimmed, multi_statement=False)
        tree = statements[0] if len(statements) == 1 else statements
        return SourceDocument(tree=tree, original_text=text, span=span)

    def _parse_statement(self, statement: str, multi_statement: bool) -> List[StatementNode]:
        """Parse one statement, emitting its leading comment lines first."""
        nodes: List[StatementNode] = []
        body = statement
        match = _LEADING_COMMENTS.match(statement)
        if match:
            body = statement[match.end() :].strip()
            comment = match.group(0).strip()
            if not body.rstrip(";").strip():
                # Comment-only piece: the terminator belongs to the splitter
                nodes.append(CommentStatement(text=comment.rstrip(";").rstrip()))
                return nodes
            nodes.append(CommentStatement(text=comment))

        if is_grant_statement(body):
            nodes.append(parse_grant(body))
            return nodes

        try:
            nodes.extend(self._parse_generic(body))
        except (GrammarSyntaxError, UnsupportedStatementError) as exc:
            raise StatementParseError(statement, str(exc), multi_statement=multi_statement) from exc
        return nodes

    def _parse_generic(self, text: str) -> List[StatementNode]:
        rewritten, records = self.codec.preprocess(text)
        trees = self.grammar.astify(rewritten)
        statements = [self.builder.build_statement(tree) for tree in trees]
        return self.restorer.restore(statements, records)
