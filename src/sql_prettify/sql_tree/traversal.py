"""Generic traversal over SQL tree nodes.

Walks the pydantic fields of a node, descending into nested nodes, clause
models and lists of either. Restoration records attached to statements are
data, not tree, and are never descended into.
"""

from typing import Callable, Iterator, List

from pydantic import BaseModel

from sql_prettify.preprocess.records import RestorationRecord
from sql_prettify.sql_tree.nodes import SqlNode


def _children(model: BaseModel) -> Iterator[BaseModel]:
    for field_name in type(model).model_fields:
        value = getattr(model, field_name)
        values = value if isinstance(value, list) else [value]
        for item in values:
            items = item if isinstance(item, list) else [item]
            for child in items:
                if isinstance(child, BaseModel) and not isinstance(child, RestorationRecord):
                    yield child


def iter_nodes(root: BaseModel) -> Iterator[SqlNode]:
    """Yield every SqlNode under ``root`` (``root`` included), parents first."""
    stack: List[BaseModel] = [root]
    while stack:
        model = stack.pop()
        if isinstance(model, SqlNode):
            yield model
        stack.extend(reversed(list(_children(model))))


def _transform_value(value, replace: Callable[[SqlNode], SqlNode]):
    if isinstance(value, list):
        return [_transform_value(item, replace) for item in value]
    if isinstance(value, BaseModel) and not isinstance(value, RestorationRecord):
        return transform(value, replace)
    return value


def transform(model: BaseModel, replace: Callable[[SqlNode], SqlNode]) -> BaseModel:
    """Rewrite a tree bottom-up, in place.

    Children are transformed first; then ``replace`` is called on ``model`` if
    it is a SqlNode, and its return value takes the node's place in the parent.

    Args:
        model: Root of the (sub)tree
        replace: Returns the node to keep, either the node itself or a substitute

    Returns:
        The (possibly substituted) root.
    """
    for field_name in type(model).model_fields:
        value = getattr(model, field_name)
        new_value = _transform_value(value, replace)
        if new_value is not value:
            setattr(model, field_name, new_value)
    if isinstance(model, SqlNode):
        return replace(model)
    return model
