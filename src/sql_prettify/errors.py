"""Exception hierarchy for sql-prettify.

Only grammar failures are fatal to a format call. Everything else degrades to
passthrough or omission, except in strict mode where unsupported statement
kinds raise :class:`UnsupportedStatementError`.
"""


class SqlPrettifyError(Exception):
    """Base exception for all sql-prettify errors."""


class ConfigurationError(SqlPrettifyError):
    """The configuration names something that cannot be used."""


class GrammarSyntaxError(SqlPrettifyError):
    """The external grammar rejected the (rewritten) SQL text."""


class StatementParseError(SqlPrettifyError):
    """A statement could not be parsed.

    Attributes:
        statement: The original, pre-rewrite statement text
        reason: The grammar's error message
    """

    def __init__(self, statement: str, reason: str, multi_statement: bool = True):
        self.statement = statement
        self.reason = reason
        heading = "Failed to parse statement" if multi_statement else "Failed to parse SQL"
        super().__init__(f"{heading}:\n\n{statement}\n\nError: {reason}")


class UnsupportedStatementError(SqlPrettifyError):
    """A statement kind has no renderer and strict mode is enabled."""

    def __init__(self, kind: str, sql: str):
        self.kind = kind
        self.sql = sql
        super().__init__(f"Unsupported statement kind {kind!r}: {sql}")
