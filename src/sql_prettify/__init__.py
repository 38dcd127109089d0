"""sql-prettify - Canonical formatting for warehouse SQL."""

from sql_prettify.config import FormatterConfig, load_config
from sql_prettify.errors import (
    ConfigurationError,
    GrammarSyntaxError,
    SqlPrettifyError,
    StatementParseError,
    UnsupportedStatementError,
)
from sql_prettify.formatter import format_sql
from sql_prettify.parser.orchestrator import SQLParser
from sql_prettify.printer.printer import SQLPrinter

__version__ = "0.1.0"

__all__ = [
    "format_sql",
    "FormatterConfig",
    "load_config",
    "SQLParser",
    "SQLPrinter",
    "SqlPrettifyError",
    "ConfigurationError",
    "GrammarSyntaxError",
    "StatementParseError",
    "UnsupportedStatementError",
]
