"""GRANT statement recognition.

The external grammar has no GRANT production, so GRANT statements bypass it
entirely. A single fixed-shape pattern extracts the privilege and the object
references; anything else is kept as verbatim text.
"""

import logging
import re

from sql_prettify.sql_tree.nodes import GrantStatement

logger = logging.getLogger(__name__)

_GRANT_PREFIX = re.compile(r"^\s*GRANT\s+", re.IGNORECASE)
_GRANT_SHAPE = re.compile(
    r"^\s*GRANT\s+(?P<privilege>[^\s,;]+)"
    r"\s+ON\s+(?P<on_type>\S+)\s+(?P<on_name>[^\s;]+)"
    r"(?:\s+IN\s+(?P<in_type>\S+)\s+(?P<in_name>[^\s;]+))?"
    r"\s+TO\s+(?P<to_type>\S+)\s+(?P<to_name>[^\s;]+)"
    r"\s*;?\s*$",
    re.IGNORECASE,
)


def is_grant_statement(text: str) -> bool:
    """Return True when ``text`` starts with the GRANT keyword."""
    return bool(_GRANT_PREFIX.match(text))


def parse_grant(text: str) -> GrantStatement:
    """Parse a GRANT statement into a Grant node.

    Privilege and object types are upper-cased; object and grantee names keep
    their case. Statements that do not fit the single-privilege shape (for
    example ``GRANT SELECT, INSERT ON ...``) produce a fallback node carrying
    the trimmed statement text.

    Args:
        text: One GRANT statement, with or without the trailing semicolon

    Returns:
        A structured GrantStatement, or a fallback one with only ``statement`` set
    """
    match = _GRANT_SHAPE.match(text)
    if not match:
        logger.debug("GRANT statement kept verbatim: %s", text.strip())
        return GrantStatement(statement=text.strip())

    fields = match.groupdict()
    return GrantStatement(
        privilege=fields["privilege"].upper(),
        on_type=fields["on_type"].upper(),
        on_name=fields["on_name"],
        in_type=fields["in_type"].upper() if fields["in_type"] else None,
        in_name=fields["in_name"],
        to_type=fields["to_type"].upper(),
        to_name=fields["to_name"],
    )
