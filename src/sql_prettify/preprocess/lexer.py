"""Literal-aware pre-pass over SQL text.

The placeholder codec and the statement splitter search raw SQL text with
regular expressions. To keep those searches from matching inside string
literals, quoted identifiers or comments, they run against a *masked* copy
of the text: same length, same offsets, but with the interior of every
literal blanked out and every comment replaced by spaces. Matches found on
the masked copy are then applied to the original text by offset.
"""

import re
from typing import Callable, List

LITERAL_FILL = "_"
_QUOTES = ("'", '"', "`")


def _blank(chars: List[str], start: int, end: int, fill: str) -> None:
    for pos in range(start, end):
        if chars[pos] != "\n":
            chars[pos] = fill


def _closing_quote(text: str, start: int) -> int:
    """Return the offset of the quote closing the literal opened at ``start``.

    Doubled quotes and backslash escapes (single-quoted strings only) do not
    close the literal. An unterminated literal runs to the end of the text.
    """
    quote = text[start]
    pos = start + 1
    while pos < len(text):
        char = text[pos]
        if char == "\\" and quote == "'":
            pos += 2
            continue
        if char == quote:
            if pos + 1 < len(text) and text[pos + 1] == quote:
                pos += 2
                continue
            return pos
        pos += 1
    return len(text)


def mask_literals(text: str) -> str:
    """Blank out string literals, quoted identifiers and comments.

    Quote characters are kept so a masked literal still reads as a literal;
    comment markers are blanked along with the comment body. Newlines are
    always preserved.

    Args:
        text: SQL text

    Returns:
        Masked text with exactly the same length as ``text``.

    Example:
        >>> mask_literals("SELECT 'a;b' -- x;\\n")
        "SELECT '___'      \\n"
    """
    chars = list(text)
    pos = 0
    while pos < len(text):
        char = text[pos]
        if text.startswith("--", pos):
            end = text.find("\n", pos)
            end = len(text) if end == -1 else end
            _blank(chars, pos, end, " ")
            pos = end
        elif text.startswith("/*", pos):
            end = text.find("*/", pos + 2)
            end = len(text) if end == -1 else end + 2
            _blank(chars, pos, end, " ")
            pos = end
        elif char in _QUOTES:
            close = _closing_quote(text, pos)
            _blank(chars, pos + 1, close, LITERAL_FILL)
            pos = close + 1
        else:
            pos += 1
    return "".join(chars)


def substitute(
    pattern: "re.Pattern[str]",
    text: str,
    replace: Callable[["re.Match[str]"], str],
    count: int = 0,
) -> str:
    """Replace matches of ``pattern`` found outside literals and comments.

    Args:
        pattern: Compiled pattern, matched against the masked text
        text: Original SQL text
        replace: Called with each match; returns the replacement text. Use
            :func:`group_text` to read captured groups from the original text.
        count: Maximum number of replacements (0 means all)

    Returns:
        The text with replacements applied.
    """
    masked = mask_literals(text)
    pieces = []
    last = 0
    for number, match in enumerate(pattern.finditer(masked), start=1):
        pieces.append(text[last : match.start()])
        pieces.append(replace(match))
        last = match.end()
        if count and number >= count:
            break
    pieces.append(text[last:])
    return "".join(pieces)


def group_text(match: "re.Match[str]", text: str, group: int = 0) -> str:
    """Return the original text spanned by a group of a masked-text match."""
    start, end = match.span(group)
    if start == -1:
        return ""
    return text[start:end]


def find_balanced_close(masked: str, open_pos: int) -> int:
    """Return the offset of the parenthesis closing the one at ``open_pos``.

    Returns -1 when the parenthesis is never closed.
    """
    depth = 0
    for pos in range(open_pos, len(masked)):
        if masked[pos] == "(":
            depth += 1
        elif masked[pos] == ")":
            depth -= 1
            if depth == 0:
                return pos
    return -1


def split_outside_literals(text: str, separator: str = ";") -> List[str]:
    """Split text on a single-character separator that is not inside a literal or comment."""
    masked = mask_literals(text)
    pieces = []
    last = 0
    for match in re.finditer(re.escape(separator), masked):
        pieces.append(text[last : match.start()])
        last = match.end()
    pieces.append(text[last:])
    return pieces
