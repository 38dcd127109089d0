"""Layout documents and the renderer that serializes them.

A document is built from four primitives:

- plain strings (literal text),
- ``HARDLINE`` (a forced line break),
- :class:`Indent` (contents rendered one indentation level deeper),
- :class:`Join` (parts separated by a separator document),

plus Python lists, which concatenate their items. The renderer never reflows
or wraps text: every line break in the output is an explicit ``HARDLINE``.
"""

from dataclasses import dataclass, field
from typing import List, Union


@dataclass(frozen=True)
class Hardline:
    """A forced line break; the next line starts at the current indentation."""


HARDLINE = Hardline()


@dataclass
class Indent:
    """Contents rendered one indentation level deeper."""

    contents: "Doc"


@dataclass
class Join:
    """``parts`` separated by ``separator``."""

    separator: "Doc"
    parts: List["Doc"] = field(default_factory=list)


Doc = Union[str, Hardline, Indent, Join, List["Doc"]]


def join(separator: Doc, parts: List[Doc]) -> Join:
    return Join(separator=separator, parts=list(parts))


def render(doc: Doc, tab_width: int = 4) -> str:
    """Serialize a document to text.

    Trailing spaces are removed from every line, so blank lines inside an
    indented block stay empty.

    Args:
        doc: The document to render
        tab_width: Spaces per indentation level

    Returns:
        The rendered text.
    """
    out: List[str] = []
    # Explicit stack of (document, indent level); lists and joins are expanded in place
    stack: List[tuple] = [(doc, 0)]
    while stack:
        item, level = stack.pop()
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, Hardline):
            _trim_trailing_spaces(out)
            out.append("\n" + " " * (level * tab_width))
        elif isinstance(item, Indent):
            stack.append((item.contents, level + 1))
        elif isinstance(item, Join):
            expanded: List[Doc] = []
            for index, part in enumerate(item.parts):
                if index:
                    expanded.append(item.separator)
                expanded.append(part)
            stack.extend((part, level) for part in reversed(expanded))
        elif isinstance(item, list):
            stack.extend((part, level) for part in reversed(item))
        else:
            raise TypeError(f"Not a layout document: {item!r}")

    _trim_trailing_spaces(out)
    return "".join(out)


def _trim_trailing_spaces(out: List[str]) -> None:
    while out:
        stripped = out[-1].rstrip(" ")
        if stripped:
            out[-1] = stripped
            return
        out.pop()
