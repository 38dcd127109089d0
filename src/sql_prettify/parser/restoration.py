"""Tree restoration: re-attach dialect semantics removed by the codec.

The codec rewrites dialect syntax into placeholders the grammar accepts. This
pass walks the built tree and reverses each rewrite using the records the
codec emitted, so the printer only ever sees restored nodes.
"""

import logging
from typing import Iterable, List, Sequence, Set

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
from sql_prettify.sql_tree.nodes import (
    ArrayIndex,
    CastExpression,
    ColumnRef,
    CreateStatement,
    FunctionCall,
    SelectStatement,
    SqlNode,
    StatementNode,
    TableSource,
)
from sql_prettify.sql_tree.traversal import iter_nodes, transform

logger = logging.getLogger(__name__)


class TreeRestorer:
    """Applies restoration records to the statements built from rewritten text.

    Each ``restore`` call tracks which records were used. Records that nothing
    in the tree matched are logged as warnings: the codec rewrote text that
    the grammar then parsed into an unexpected shape.
    """

    def __init__(self):
        self._consumed: Set[int] = set()

    def restore(
        self, statements: Sequence[StatementNode], records: Iterable[AnyRestorationRecord]
    ) -> List[StatementNode]:
        """Restore all records onto ``statements`` in place.

        Running ``restore`` twice with the same records leaves the tree unchanged
        the second time.

        Args:
            statements: Statements built from the rewritten text
            records: Records emitted by the codec for that text

        Returns:
            The same statements, restored.
        """
        records = list(records)
        statements = list(statements)
        self._consumed = set()

        replace_markers = [r for r in records if isinstance(r, ReplaceMarkerRecord)]
        dynamic_tables = [r for r in records if isinstance(r, DynamicTableRecord)]
        array_accesses = [r for r in records if isinstance(r, ArrayAccessRecord)]
        custom_types = [r for r in records if isinstance(r, CustomTypeRecord)]
        group_by_alls = [r for r in records if isinstance(r, GroupByAllRecord)]
        pivots = [r for r in records if isinstance(r, PivotRecord)]
        cast_shorthands = [r for r in records if isinstance(r, CastShorthandRecord)]

        for statement in statements:
            self._restore_replace_markers(statement, replace_markers)
            self._restore_dynamic_tables(statement, dynamic_tables)
            self._restore_custom_types(statement, custom_types)
            if array_accesses:
                statement.array_accesses = list(array_accesses)
                self._restore_array_accesses(statement, array_accesses)
            self._restore_group_by_all(statement, group_by_alls)
            self._restore_pivots(statement, pivots)
            if cast_shorthands:
                self._restore_cast_shorthands(statement, cast_shorthands)

        for record in records:
            if id(record) not in self._consumed:
                logger.warning("Restoration record was not applied: %r", record)
        return statements

    def _mark(self, record: AnyRestorationRecord) -> None:
        self._consumed.add(id(record))

    def _restore_replace_markers(
        self, statement: StatementNode, records: List[ReplaceMarkerRecord]
    ) -> None:
        for record in records:
            for node in iter_nodes(statement):
                if not isinstance(node, CreateStatement):
                    continue
                # Dynamic tables reach the grammar as views
                was_view = record.object_kind == "VIEW" and node.dynamic_options is not None
                if node.object_kind == record.object_kind or was_view:
                    node.replace = True
                    self._mark(record)

    def _restore_dynamic_tables(
        self, statement: StatementNode, records: List[DynamicTableRecord]
    ) -> None:
        for record in records:
            for node in iter_nodes(statement):
                if not isinstance(node, CreateStatement):
                    continue
                if node.object_kind == "VIEW" or node.dynamic_options == record:
                    node.object_kind = "DYNAMIC TABLE"
                    node.dynamic_options = record
                    self._mark(record)
                    break

    def _restore_custom_types(
        self, statement: StatementNode, records: List[CustomTypeRecord]
    ) -> None:
        if not records:
            return
        for node in iter_nodes(statement):
            if not (isinstance(node, CreateStatement) and node.object_kind == "TABLE"):
                continue
            node.custom_types = list(records)
            for column in node.columns:
                for record in records:
                    if column.name.lower() != record.column_name.lower():
                        continue
                    if column.data_type is None:
                        continue
                    already_restored = column.data_type.name == record.original_type_keyword
                    if column.data_type.name == record.placeholder_type_name or already_restored:
                        column.data_type.name = record.original_type_keyword
                        column.data_type.length = record.length
                        column.data_type.scale = record.scale
                        self._mark(record)
                        break

    def _restore_array_accesses(
        self, statement: StatementNode, records: List[ArrayAccessRecord]
    ) -> None:
        def replace(node: SqlNode) -> SqlNode:
            if not isinstance(node, FunctionCall):
                return node
            for record in records:
                if node.name == record.placeholder_token:
                    self._mark(record)
                    call = FunctionCall(name=record.function_name, args=node.args)
                    return ArrayIndex(call=call, index=record.index)
            return node

        transform(statement, replace)
        # Already-restored trees hold ArrayIndex nodes; count them as consumed
        for node in iter_nodes(statement):
            if isinstance(node, ArrayIndex):
                for record in records:
                    if record.function_name == node.call.name and record.index == node.index:
                        self._mark(record)

    def _restore_group_by_all(
        self, statement: StatementNode, records: List[GroupByAllRecord]
    ) -> None:
        pending = list(records)
        already_restored = 0
        for node in list(iter_nodes(statement)):
            if not isinstance(node, SelectStatement):
                continue
            if node.group_by_all and not node.group_by:
                already_restored += 1
                continue
            if not (len(node.group_by) == 1 and isinstance(node.group_by[0], ColumnRef)):
                continue
            for record in pending:
                if node.group_by[0].name == record.placeholder_token:
                    node.group_by = []
                    node.group_by_all = True
                    self._mark(record)
                    pending.remove(record)
                    break
        # A tree restored earlier holds one GROUP BY ALL select per record
        for record in pending[:already_restored]:
            self._mark(record)

    def _restore_pivots(self, statement: StatementNode, records: List[PivotRecord]) -> None:
        for node in iter_nodes(statement):
            if not isinstance(node, TableSource):
                continue
            for record in records:
                if node.alias == record.placeholder_token:
                    node.alias = None
                    node.pivot = record.clause_text
                    self._mark(record)
                elif node.pivot == record.clause_text:
                    self._mark(record)

    def _restore_cast_shorthands(
        self, statement: StatementNode, records: List[CastShorthandRecord]
    ) -> None:
        def replace(node: SqlNode) -> SqlNode:
            if (
                isinstance(node, FunctionCall)
                and node.name == records[0].placeholder_token
                and len(node.args) == 1
                and isinstance(node.args[0], CastExpression)
            ):
                cast = node.args[0]
                cast.shorthand = True
                return cast
            return node

        transform(statement, replace)
        for node in iter_nodes(statement):
            if isinstance(node, CastExpression) and node.shorthand:
                for record in records:
                    self._mark(record)
