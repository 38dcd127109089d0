"""Unit tests for configuration loading and validation."""

import logging

import pytest

from sql_prettify.config import FormatterConfig, load_config
from sql_prettify.errors import ConfigurationError
from sql_prettify.parser.grammar import SqlglotGrammar


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove SQL_PRETTIFY_* variables so only test settings apply."""
    for name in ("DIALECT", "TAB_WIDTH", "STRICT", "LOG_LEVEL"):
        monkeypatch.delenv(f"SQL_PRETTIFY_{name}", raising=False)


def test_defaults():
    """Test default configuration values."""
    config = FormatterConfig(_env_file=None)

    assert config.dialect is None
    assert config.tab_width == 4
    assert config.strict is False
    assert config.log_level == "WARNING"


def test_environment_overrides(monkeypatch):
    """Test that SQL_PRETTIFY_* environment variables are read."""
    monkeypatch.setenv("SQL_PRETTIFY_DIALECT", "snowflake")
    monkeypatch.setenv("SQL_PRETTIFY_TAB_WIDTH", "2")
    monkeypatch.setenv("SQL_PRETTIFY_STRICT", "true")

    config = load_config()

    assert config.dialect == "snowflake"
    assert config.tab_width == 2
    assert config.strict is True


def test_get_grammar():
    """Test that the grammar handle is bound to the configured dialect."""
    grammar = FormatterConfig(_env_file=None, dialect="duckdb").get_grammar()

    assert isinstance(grammar, SqlglotGrammar)
    assert grammar.dialect == "duckdb"


def test_get_grammar_unknown_dialect():
    """Test that an unknown dialect is a configuration error."""
    config = FormatterConfig(_env_file=None, dialect="not-a-dialect")

    with pytest.raises(ConfigurationError, match="not-a-dialect"):
        config.get_grammar()


def test_get_log_level():
    """Test log level resolution with fallback."""
    assert FormatterConfig(_env_file=None, log_level="debug").get_log_level() == logging.DEBUG
    assert FormatterConfig(_env_file=None, log_level="loud").get_log_level() == logging.WARNING


def test_validate_config():
    """Test the validation report."""
    status = FormatterConfig(_env_file=None, dialect="nope", log_level="INFO").validate_config()

    assert status == {
        "dialect_configured": True,
        "dialect_known": False,
        "log_level_valid": True,
    }


def test_validate_config_generic_dialect():
    """Test that the generic dialect counts as known but not configured."""
    status = FormatterConfig(_env_file=None, dialect=None).validate_config()

    assert status["dialect_configured"] is False
    assert status["dialect_known"] is True


def test_repr():
    """Test the string representation."""
    config = FormatterConfig(_env_file=None, dialect="snowflake", tab_width=2)

    assert repr(config) == (
        "FormatterConfig(dialect='snowflake', tab_width=2, strict=False, log_level='WARNING')"
    )
