"""Preprocessing that runs before the external grammar.

Dialect syntax the grammar cannot parse is rewritten into placeholders, with
records describing how to restore it on the tree.
"""

from sql_prettify.preprocess.codec import PlaceholderCodec
from sql_prettify.preprocess.grant import is_grant_statement, parse_grant
from sql_prettify.preprocess.records import (
    AnyRestorationRecord,
    ArrayAccessRecord,
    CastShorthandRecord,
    CustomTypeRecord,
    GroupByAllRecord,
    PivotRecord,
    ReplaceMarkerRecord,
    RestorationRecord,
)

__all__ = [
    "PlaceholderCodec",
    "is_grant_statement",
    "parse_grant",
    "RestorationRecord",
    "AnyRestorationRecord",
    "CustomTypeRecord",
    "ReplaceMarkerRecord",
    "ArrayAccessRecord",
    "GroupByAllRecord",
    "PivotRecord",
    "CastShorthandRecord",
]
