"""Unit tests for the literal-aware lexer pre-pass.

These tests check that masking keeps offsets stable and that substitution
and splitting never act on text inside literals or comments.
"""

import re

from sql_prettify.preprocess.lexer import (
    find_balanced_close,
    group_text,
    mask_literals,
    split_outside_literals,
    substitute,
)


def test_mask_keeps_length():
    """Test that masking never changes the text length."""
    text = "SELECT 'a;b', \"c;d\" -- e;f\nFROM t /* g;h */"
    assert len(mask_literals(text)) == len(text)


def test_mask_blanks_string_interior():
    """Test that string literal contents are blanked but quotes remain."""
    assert mask_literals("SELECT 'abc'") == "SELECT '___'"


def test_mask_blanks_comments():
    """Test that line and block comments are replaced with spaces."""
    masked = mask_literals("a -- x\nb /* y */ c")
    assert masked == "a " + " " * 4 + "\nb " + " " * 7 + " c"


def test_mask_handles_doubled_quotes():
    """Test that a doubled quote does not close the literal."""
    masked = mask_literals("SELECT 'it''s' AS x")
    assert masked.endswith("' AS x")
    assert "s" not in masked[7:14]


def test_mask_unterminated_literal_runs_to_end():
    """Test that an unterminated literal masks the rest of the text."""
    assert mask_literals("SELECT 'abc") == "SELECT '___"


def test_mask_preserves_newlines_in_literals():
    """Test that newlines inside literals survive masking."""
    assert mask_literals("'a\nb'") == "'_\n_'"


def test_substitute_skips_literals():
    """Test that matches inside string literals are not replaced."""
    pattern = re.compile(r"\bfoo\b")
    result = substitute(pattern, "SELECT foo, 'foo' FROM foo", lambda m: "bar")
    assert result == "SELECT bar, 'foo' FROM bar"


def test_substitute_respects_count():
    """Test that count limits the number of replacements."""
    pattern = re.compile(r"x")
    assert substitute(pattern, "x x x", lambda m: "y", count=1) == "y x x"


def test_group_text_reads_original():
    """Test that group_text returns original text, not the masked copy."""
    text = "f('a b')"
    match = re.search(r"\((.*)\)", mask_literals(text))
    assert group_text(match, text, 1) == "'a b'"


def test_find_balanced_close():
    """Test finding the closing parenthesis of a nested group."""
    text = "PIVOT(SUM(x) FOR k IN (1, 2)) rest"
    assert find_balanced_close(text, 5) == text.index(") rest")


def test_find_balanced_close_unbalanced():
    """Test that an unclosed parenthesis returns -1."""
    assert find_balanced_close("f(a, (b)", 1) == -1


class TestSplitOutsideLiterals:
    """Tests for semicolon splitting."""

    def test_plain_split(self):
        """Test splitting on top-level semicolons."""
        assert split_outside_literals("a; b; c") == ["a", " b", " c"]

    def test_semicolon_in_string(self):
        """Test that a semicolon inside a string does not split."""
        assert split_outside_literals("SELECT ';' FROM t; SELECT 1") == [
            "SELECT ';' FROM t",
            " SELECT 1",
        ]

    def test_semicolon_in_comment(self):
        """Test that a semicolon inside a comment does not split."""
        pieces = split_outside_literals("-- a; b\nSELECT 1; SELECT 2")
        assert pieces == ["-- a; b\nSELECT 1", " SELECT 2"]

    def test_trailing_separator(self):
        """Test that a trailing semicolon yields an empty final piece."""
        assert split_outside_literals("SELECT 1;") == ["SELECT 1", ""]
