"""Handle on the external SQL grammar (sqlglot).

The handle only remembers which dialect to read. It holds no parse state, so
one instance can be shared by every parser in the process.

sqlglot normalizes what it parses: ``IFNULL`` becomes ``COALESCE``, ``SUBSTR``
becomes ``SUBSTRING`` and implicit ``NULLS`` orderings are folded into the
dialect default. A formatter must print what was written, so the grammar
parses with :class:`SourcePreservingParser` layered over the dialect's parser.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from sqlglot import exp
from sqlglot.dialects.dialect import Dialect
from sqlglot.errors import ErrorLevel, ParseError, TokenError
from sqlglot.parser import Parser

from sql_prettify.errors import ConfigurationError, GrammarSyntaxError

logger = logging.getLogger(__name__)

# Dedicated function parsers that would rewrite the call into another construct
# (DECODE into CASE, STRING_AGG into GROUP_CONCAT); their arguments are plain
_POSITIONAL_FUNCTION_PARSERS = {"DECODE", "STRING_AGG"}

# Window and aggregate modifiers wrapped around a parsed function call
_FUNCTION_WRAPPERS = (exp.Window, exp.Filter, exp.WithinGroup, exp.IgnoreNulls, exp.RespectNulls)


class SourcePreservingParser:
    """Parser mixin that keeps function names and NULLS orderings as written.

    - Calls without special argument syntax parse as ``exp.Anonymous``, so the
      name and the argument order are those of the source.
    - Calls handled by a dedicated parser (``CAST``, ``EXTRACT``, ``TRIM`` ...)
      record the name they were written with in ``meta["source_name"]``.
    - An ORDER BY item with an explicit ``NULLS FIRST`` or ``NULLS LAST``
      records it in ``meta["nulls"]``.
    """

    def _parse_function(self, functions=None, anonymous=False, optional_parens=True, any_token=False):
        name = self._curr.text if self._curr else ""
        upper = name.upper()
        # An explicit function table means the caller expects its typed node
        if functions is None and (
            upper in _POSITIONAL_FUNCTION_PARSERS
            or (upper not in self.FUNCTION_PARSERS and upper not in self.NO_PAREN_FUNCTION_PARSERS)
        ):
            anonymous = True

        node = super()._parse_function(
            functions=functions,
            anonymous=anonymous,
            optional_parens=optional_parens,
            any_token=any_token,
        )

        function = node
        while isinstance(function, _FUNCTION_WRAPPERS):
            function = function.this
        if isinstance(function, exp.Func) and not isinstance(function, exp.Anonymous):
            function.meta.setdefault("source_name", name)
        return node

    def _parse_ordered(self, *args, **kwargs):
        start = self._index
        node = super()._parse_ordered(*args, **kwargs)
        if isinstance(node, exp.Ordered):
            words = [token.text.upper() for token in self._tokens[start : self._index]]
            if len(words) >= 2 and words[-2] == "NULLS" and words[-1] in ("FIRST", "LAST"):
                node.meta["nulls"] = words[-1]
        return node


@lru_cache(maxsize=None)
def source_preserving_parser(base: type) -> type:
    """Return ``base`` (a sqlglot Parser class) with :class:`SourcePreservingParser` applied."""
    return type(f"SourcePreserving{base.__name__}", (SourcePreservingParser, base), {})


def is_known_dialect(dialect: Optional[str]) -> bool:
    """Return True when sqlglot can resolve ``dialect`` (None means generic)."""
    if not dialect:
        return True
    try:
        Dialect.get_or_raise(dialect)
    except ValueError:
        return False
    return True


class SqlglotGrammar:
    """Parses normalized SQL text into sqlglot expression trees.

    Attributes:
        dialect: sqlglot read dialect name, or None for the generic dialect
    """

    def __init__(self, dialect: Optional[str] = None):
        if not is_known_dialect(dialect):
            raise ConfigurationError(f"Unknown SQL dialect: {dialect!r}")
        self.dialect = dialect or None
        self._dialect = Dialect.get_or_raise(self.dialect)
        self._parser_class = source_preserving_parser(self._dialect.parser_class)

    def astify(self, text: str) -> List[exp.Expression]:
        """Parse SQL text into one expression per statement.

        Args:
            text: Rewritten SQL text (placeholders already substituted)

        Returns:
            The parsed statements in source order.

        Raises:
            GrammarSyntaxError: If sqlglot rejects the text or finds no statement.
        """
        parser: Parser = self._parser_class(dialect=self._dialect, error_level=ErrorLevel.RAISE)
        try:
            trees = parser.parse(self._dialect.tokenize(text), text)
        except (ParseError, TokenError) as exc:
            raise GrammarSyntaxError(str(exc)) from exc

        statements = [tree for tree in trees if tree is not None]
        if not statements:
            raise GrammarSyntaxError(f"No statement was parsed from {text!r}")

        logger.debug("Parsed %d statement(s) with dialect %r", len(statements), self.dialect)
        return statements

    def to_sql(self, node: exp.Expression) -> str:
        """Render a sqlglot expression back to SQL in this grammar's dialect."""
        return node.sql(dialect=self.dialect)

    def __repr__(self) -> str:
        return f"SqlglotGrammar(dialect={self.dialect!r})"
