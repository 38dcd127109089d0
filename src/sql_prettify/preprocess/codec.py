"""Reversible text rewrites for dialect syntax the grammar cannot parse.

Each rewrite replaces a dialect construct with a syntactically legal
placeholder and returns restoration records describing how to undo it on the
syntax tree. Rewrites run in a fixed order so later ones never disturb the
placeholders inserted by earlier ones. All matching is done on literal-masked
text (see :mod:`sql_prettify.preprocess.lexer`).
"""

import logging
import re
from typing import List, Tuple

from sql_prettify.preprocess.lexer import (
    find_balanced_close,
    group_text,
    mask_literals,
    substitute,
)
from sql_prettify.preprocess.records import (
    AnyRestorationRecord,
    ArrayAccessRecord,
    CastShorthandRecord,
    CustomTypeRecord,
    DynamicTableRecord,
    GroupByAllRecord,
    PivotRecord,
    ReplaceMarkerRecord,
)

logger = logging.getLogger(__name__)

ARRAY_ACCESS_PREFIX = "__ARRAYACCESS__"
GROUP_BY_ALL_PREFIX = "__GROUP_BY_ALL_"
PIVOT_PREFIX = "__PIVOT_"
CAST_SHORTHAND_TOKEN = "__CAST_SHORTHAND__"

# Custom type keyword -> type the grammar accepts in its place
CUSTOM_TYPE_PLACEHOLDERS = {
    "ARRAY": "VARCHAR",
    "OBJECT": "VARCHAR",
    "VARIANT": "VARCHAR",
    "STRING": "VARCHAR",
    "REAL": "FLOAT",
    "NUMBER": "DECIMAL",
    "TIMESTAMP_NTZ": "TIMESTAMP",
}

_LEADING_DOT_DECIMAL = re.compile(r"(?:^|(?<=[\s(+\-*/=<>,;]))\.(\d+)\b")
_DYNAMIC_TABLE = re.compile(
    r"^\s*CREATE\s+(OR\s+REPLACE\s+)?DYNAMIC\s+TABLE\s+([\w.]+)(.*?)\bAS\b",
    re.IGNORECASE | re.DOTALL,
)
# Refresh properties of a dynamic table, as field name -> pattern
_DYNAMIC_TABLE_PROPERTIES = {
    "target_lag": re.compile(r"\bTARGET_LAG\s*=\s*'([^']*)'", re.IGNORECASE),
    "refresh_mode": re.compile(r"\bREFRESH_MODE\s*=\s*(\w+)", re.IGNORECASE),
    "initialize": re.compile(r"\bINITIALIZE\s*=\s*(\w+)", re.IGNORECASE),
    "warehouse": re.compile(r"\bWAREHOUSE\s*=\s*(\w+)", re.IGNORECASE),
}
_CREATE_OR_REPLACE = re.compile(r"\bCREATE\s+OR\s+REPLACE\s+(TABLE|VIEW)\b", re.IGNORECASE)
_CREATE_TABLE = re.compile(r"^\s*CREATE\s+(?:\w+\s+)*?TABLE\b", re.IGNORECASE)
_CUSTOM_TYPE = re.compile(
    r"\b(?!(?:TABLE|EXISTS|AS)\b)(\w+)\s+(" + "|".join(CUSTOM_TYPE_PLACEHOLDERS) + r")\b"
    r"(?:\s*\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\))?",
    re.IGNORECASE,
)
_ARRAY_ACCESS = re.compile(
    r"(?<![\w.])([A-Za-z_]\w*)\(((?:[^()]|\([^()]*\))*)\)\[(\d+)\]"
)
_PIVOT = re.compile(r"\b(UNPIVOT|PIVOT)\s*\(", re.IGNORECASE)
_GROUP_BY_ALL = re.compile(r"\bGROUP\s+BY\s+ALL\b", re.IGNORECASE)
_CAST_SHORTHAND = re.compile(
    r"(?<![\w$.])"
    r"("
    r"[A-Za-z_][\w.]*\((?:[^()]|\((?:[^()]|\([^()]*\))*\))*\)"  # function call
    r"|\((?:[^()]|\([^()]*\))*\)"  # parenthesized expression
    r"|'[^']*'"  # string literal
    r"|\d+(?:\.\d+)?"  # number
    r"|[A-Za-z_][\w$]*(?:\.[A-Za-z_][\w$]*)*"  # (qualified) identifier
    r")"
    r"::"
    r"([A-Za-z_]\w*(?:\s*\(\s*\d+\s*(?:,\s*\d+\s*)?\))?)"
)


class PlaceholderCodec:
    """Applies the placeholder rewrites to a single statement.

    The codec is stateless; every call to :meth:`preprocess` returns a fresh
    record list for that statement.
    """

    def preprocess(self, text: str) -> Tuple[str, List[AnyRestorationRecord]]:
        """Run every rewrite in order.

        Args:
            text: One SQL statement as written by the user

        Returns:
            Tuple of (rewritten text, restoration records)
        """
        records: List[AnyRestorationRecord] = []
        text = self.normalize_decimals(text)
        for rewrite in (
            self.rewrite_dynamic_table,
            self.rewrite_replace_marker,
            self.rewrite_custom_types,
            self.rewrite_array_access,
            self.rewrite_pivots,
            self.rewrite_group_by_all,
            self.rewrite_cast_shorthand,
        ):
            text, produced = rewrite(text)
            records.extend(produced)

        if records:
            logger.debug("Rewrote statement with %d placeholder(s): %s", len(records), text)
        return text, records

    def normalize_decimals(self, text: str) -> str:
        """Prefix leading-dot decimals with a zero (``.5`` becomes ``0.5``)."""
        return substitute(
            _LEADING_DOT_DECIMAL,
            text,
            lambda match: "0." + group_text(match, text, 1),
        )

    def rewrite_dynamic_table(self, text: str) -> Tuple[str, List[DynamicTableRecord]]:
        """Rewrite ``CREATE [OR REPLACE] DYNAMIC TABLE name <properties> AS`` to a view.

        The properties may appear in any order; unrecognized ones are dropped.
        ``OR REPLACE`` is kept so the replace-marker rewrite handles it next.
        """
        records: List[DynamicTableRecord] = []

        def replace(match: "re.Match[str]") -> str:
            name = group_text(match, text, 2)
            section = group_text(match, text, 3)
            options = {}
            for field, pattern in _DYNAMIC_TABLE_PROPERTIES.items():
                found = pattern.search(section)
                if found:
                    options[field] = found.group(1)
            records.append(DynamicTableRecord(table_name=name, **options))
            prefix = "CREATE OR REPLACE VIEW" if match.group(1) else "CREATE VIEW"
            return f"{prefix} {name} AS"

        return substitute(_DYNAMIC_TABLE, text, replace, count=1), records

    def rewrite_replace_marker(self, text: str) -> Tuple[str, List[ReplaceMarkerRecord]]:
        """Rewrite the first ``CREATE OR REPLACE TABLE|VIEW`` to plain ``CREATE``."""
        records: List[ReplaceMarkerRecord] = []

        def replace(match: "re.Match[str]") -> str:
            kind = group_text(match, text, 1).upper()
            records.append(ReplaceMarkerRecord(object_kind=kind))
            return f"CREATE {kind}"

        return substitute(_CREATE_OR_REPLACE, text, replace, count=1), records

    def rewrite_custom_types(self, text: str) -> Tuple[str, List[CustomTypeRecord]]:
        """Replace dialect-only column types with types the grammar accepts.

        Only CREATE TABLE statements have column definitions, so any other
        statement is returned unchanged.
        """
        records: List[CustomTypeRecord] = []
        if not _CREATE_TABLE.match(mask_literals(text)):
            return text, records

        def replace(match: "re.Match[str]") -> str:
            column = group_text(match, text, 1)
            keyword = group_text(match, text, 2).upper()
            length = group_text(match, text, 3) or None
            scale = group_text(match, text, 4) or None
            placeholder = CUSTOM_TYPE_PLACEHOLDERS[keyword]
            records.append(
                CustomTypeRecord(
                    column_name=column,
                    placeholder_type_name=placeholder,
                    original_type_keyword=keyword,
                    length=length,
                    scale=scale,
                )
            )
            if length is None:
                return f"{column} {placeholder}"
            params = length if scale is None else f"{length},{scale}"
            return f"{column} {placeholder}({params})"

        return substitute(_CUSTOM_TYPE, text, replace), records

    def rewrite_array_access(self, text: str) -> Tuple[str, List[ArrayAccessRecord]]:
        """Fold ``call(args)[n]`` into a single placeholder call name."""
        records: List[ArrayAccessRecord] = []

        def replace(match: "re.Match[str]") -> str:
            name = group_text(match, text, 1)
            arguments = group_text(match, text, 2)
            index = int(group_text(match, text, 3))
            token = f"{ARRAY_ACCESS_PREFIX}{index}__{name}"
            records.append(
                ArrayAccessRecord(
                    placeholder_token=token,
                    function_call_text=f"{name}({arguments})",
                    index=index,
                )
            )
            return f"{token}({arguments})"

        return substitute(_ARRAY_ACCESS, text, replace), records

    def rewrite_pivots(self, text: str) -> Tuple[str, List[PivotRecord]]:
        """Replace ``PIVOT(...)`` / ``UNPIVOT(...)`` clauses with placeholder aliases."""
        records: List[PivotRecord] = []
        masked = mask_literals(text)
        pieces = []
        last = 0
        for match in _PIVOT.finditer(masked):
            if match.start() < last:
                continue
            open_pos = match.end() - 1
            close_pos = find_balanced_close(masked, open_pos)
            if close_pos == -1:
                logger.debug("Unbalanced %s clause left unchanged", match.group(1))
                break
            token = f"{PIVOT_PREFIX}{len(records)}__"
            clause = match.group(1).upper() + text[open_pos : close_pos + 1]
            records.append(PivotRecord(placeholder_token=token, clause_text=clause))
            pieces.append(text[last : match.start()])
            pieces.append(token)
            last = close_pos + 1
        pieces.append(text[last:])
        return "".join(pieces), records

    def rewrite_group_by_all(self, text: str) -> Tuple[str, List[GroupByAllRecord]]:
        """Replace ``GROUP BY ALL`` with a placeholder grouping column."""
        records: List[GroupByAllRecord] = []

        def replace(match: "re.Match[str]") -> str:
            token = f"{GROUP_BY_ALL_PREFIX}{len(records)}__"
            records.append(GroupByAllRecord(placeholder_token=token))
            return f"GROUP BY {token}"

        return substitute(_GROUP_BY_ALL, text, replace), records

    def rewrite_cast_shorthand(self, text: str) -> Tuple[str, List[CastShorthandRecord]]:
        """Expand ``operand::TYPE`` into a marked ``CAST(operand AS TYPE)``.

        Chained casts (``x::a::b``) are expanded innermost first, one pass per
        link of the chain.
        """
        records: List[CastShorthandRecord] = []

        def replace(match: "re.Match[str]") -> str:
            operand = group_text(match, current, 1)
            type_text = re.sub(r"\s+", "", group_text(match, current, 2)).upper()
            records.append(
                CastShorthandRecord(
                    placeholder_token=CAST_SHORTHAND_TOKEN,
                    operand_text=operand,
                    type_text=type_text,
                )
            )
            return f"{CAST_SHORTHAND_TOKEN}(CAST({operand} AS {type_text}))"

        current = text
        while _CAST_SHORTHAND.search(mask_literals(current)):
            current = substitute(_CAST_SHORTHAND, current, replace)
        return current, records
