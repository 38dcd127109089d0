"""Unit tests for GRANT statement recognition."""

from sql_prettify.preprocess.grant import is_grant_statement, parse_grant


def test_is_grant_statement():
    """Test GRANT detection is case-insensitive and ignores leading whitespace."""
    assert is_grant_statement("grant usage on schema s to role r")
    assert is_grant_statement("  GRANT SELECT ON t TO ROLE r")
    assert not is_grant_statement("SELECT 'grant' FROM t")
    assert not is_grant_statement("GRANTS")


def test_parse_simple_grant():
    """Test that keywords are upper-cased and names keep their case."""
    node = parse_grant("grant usage on schema instat to role READERS;")

    assert node.privilege == "USAGE"
    assert node.on_type == "SCHEMA"
    assert node.on_name == "instat"
    assert node.in_type is None
    assert node.to_type == "ROLE"
    assert node.to_name == "READERS"
    assert node.is_fallback is False


def test_parse_grant_with_in_clause():
    """Test the optional IN clause."""
    node = parse_grant("grant SELECT ON FUTURE TABLES IN schema instat to role readers")

    assert node.privilege == "SELECT"
    assert node.on_type == "FUTURE"
    assert node.on_name == "TABLES"
    assert node.in_type == "SCHEMA"
    assert node.in_name == "instat"
    assert node.to_name == "readers"


def test_parse_grant_fallback():
    """Test that multi-privilege grants fall back to verbatim text."""
    text = "GRANT CREATE TABLE, USAGE ON SCHEMA ahl TO ROLE ACCOUNTADMIN;"
    node = parse_grant(f"  {text}\n")

    assert node.is_fallback is True
    assert node.statement == text
    assert node.privilege is None
