"""Configuration management for sql-prettify.

This module provides a pydantic-based configuration system that loads settings
from environment variables and builds the external grammar handle.
"""

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sql_prettify.parser.grammar import SqlglotGrammar, is_known_dialect

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class FormatterConfig(BaseSettings):
    """Configuration settings for sql-prettify.

    This class uses pydantic-settings to automatically load configuration
    from environment variables. All settings can be overridden by setting
    the corresponding environment variable.

    Environment Variables:
        SQL_PRETTIFY_DIALECT: sqlglot read dialect (e.g. 'snowflake'); generic if unset
        SQL_PRETTIFY_TAB_WIDTH: Spaces per indentation level
        SQL_PRETTIFY_STRICT: Raise on statement kinds that have no renderer
        SQL_PRETTIFY_LOG_LEVEL: Logging level used by the CLI

    Example:
        >>> config = FormatterConfig(dialect="snowflake")
        >>> grammar = config.get_grammar()
    """

    model_config = SettingsConfigDict(
        env_prefix="SQL_PRETTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    dialect: Optional[str] = Field(
        default=None,
        description="sqlglot read dialect name (generic dialect when not set)",
    )

    tab_width: int = Field(
        default=4,
        ge=1,
        description="Number of spaces per indentation level",
    )

    strict: bool = Field(
        default=False,
        description="Raise UnsupportedStatementError instead of dropping unrendered statements",
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level name used by the command-line interface",
    )

    def get_grammar(self) -> SqlglotGrammar:
        """Create the external grammar handle for the configured dialect.

        Returns:
            A SqlglotGrammar bound to ``dialect``.

        Raises:
            ConfigurationError: If the dialect is not known to sqlglot.
        """
        return SqlglotGrammar(dialect=self.dialect)

    def get_log_level(self) -> int:
        """Return the numeric logging level, falling back to WARNING."""
        name = self.log_level.upper()
        if name not in _LOG_LEVELS:
            return logging.WARNING
        return getattr(logging, name)

    def validate_config(self) -> dict[str, bool]:
        """Validate the current configuration and report status.

        Returns:
            Dictionary with validation status for each setting:
            {
                "dialect_configured": bool,  # True if an explicit dialect is set
                "dialect_known": bool,
                "log_level_valid": bool,
            }
        """
        return {
            "dialect_configured": bool(self.dialect),
            "dialect_known": is_known_dialect(self.dialect),
            "log_level_valid": self.log_level.upper() in _LOG_LEVELS,
        }

    def __repr__(self) -> str:
        """Return a string representation of the configuration.

        Returns:
            String representation of the config.
        """
        return (
            f"FormatterConfig("
            f"dialect={self.dialect!r}, "
            f"tab_width={self.tab_width!r}, "
            f"strict={self.strict!r}, "
            f"log_level={self.log_level!r}"
            f")"
        )


def load_config() -> FormatterConfig:
    """Load configuration from environment variables.

    Returns:
        A FormatterConfig instance with settings loaded from environment.
    """
    return FormatterConfig()
