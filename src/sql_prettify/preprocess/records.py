"""Restoration records produced by the placeholder codec.

Each record describes one placeholder substitution made in the statement text
and carries what the restoration pass needs to undo it on the syntax tree.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RestorationRecord(BaseModel):
    """Base class for all restoration records."""

    model_config = ConfigDict(frozen=True)


class CustomTypeRecord(RestorationRecord):
    """A column type keyword the grammar cannot parse, replaced by a stand-in type.

    Example: ``tags ARRAY`` is rewritten to ``tags VARCHAR``.
    """

    kind: Literal["custom_type"] = "custom_type"
    column_name: str = Field(..., description="Identifier of the column definition")
    placeholder_type_name: str = Field(
        default="VARCHAR", description="Type keyword substituted into the text"
    )
    original_type_keyword: str = Field(..., description="Upper-cased keyword from the source")
    length: Optional[str] = Field(default=None, description="Precision restored with the type")
    scale: Optional[str] = Field(default=None, description="Scale restored with the type")


class ReplaceMarkerRecord(RestorationRecord):
    """``CREATE OR REPLACE`` was rewritten to plain ``CREATE``."""

    kind: Literal["replace_marker"] = "replace_marker"
    object_kind: Literal["TABLE", "VIEW"] = Field(..., description="Kind of created object")


class DynamicTableRecord(RestorationRecord):
    """``CREATE DYNAMIC TABLE`` was rewritten to ``CREATE VIEW``.

    The refresh properties between the table name and ``AS`` are kept here,
    as written, and printed back in a fixed order.
    """

    kind: Literal["dynamic_table"] = "dynamic_table"
    table_name: str
    target_lag: Optional[str] = Field(default=None, description="Quoted lag value without quotes")
    refresh_mode: Optional[str] = None
    initialize: Optional[str] = None
    warehouse: Optional[str] = None


class ArrayAccessRecord(RestorationRecord):
    """A bracketed index on a function result, folded into a placeholder call name.

    Example: ``SPLIT(name, ',')[0]`` becomes ``__ARRAYACCESS__0__SPLIT(name, ',')``.
    """

    kind: Literal["array_access"] = "array_access"
    placeholder_token: str = Field(..., description="Function name used as the placeholder")
    function_call_text: str = Field(..., description="Original call text without the index")
    index: int = Field(..., ge=0, description="Subscript applied to the call result")

    @property
    def function_name(self) -> str:
        """Name of the original function, as written."""
        return self.function_call_text.split("(", 1)[0].strip()


class GroupByAllRecord(RestorationRecord):
    """``GROUP BY ALL`` was replaced by a placeholder grouping column."""

    kind: Literal["group_by_all"] = "group_by_all"
    placeholder_token: str


class PivotRecord(RestorationRecord):
    """A PIVOT/UNPIVOT clause was replaced by a placeholder table alias."""

    kind: Literal["pivot"] = "pivot"
    placeholder_token: str
    clause_text: str = Field(..., description="Normalized clause, e.g. PIVOT(SUM(x) FOR k IN (1))")


class CastShorthandRecord(RestorationRecord):
    """An ``operand::TYPE`` cast was expanded into a wrapped ``CAST`` call."""

    kind: Literal["cast_shorthand"] = "cast_shorthand"
    placeholder_token: str
    operand_text: str
    type_text: str


AnyRestorationRecord = Union[
    CustomTypeRecord,
    ReplaceMarkerRecord,
    DynamicTableRecord,
    ArrayAccessRecord,
    GroupByAllRecord,
    PivotRecord,
    CastShorthandRecord,
]
