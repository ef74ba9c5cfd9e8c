"""Read-only navigation of value trees."""

from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence, Union

from .errors import (
    AccessOnNil,
    IndexOutOfRange,
    NavigationError,
    UnknownValueKind,
    UnsupportedContainerType,
)
from .log import get_logger
from .types import Kind, Path, Step, Value, format_path, render

logger = get_logger(__name__)

WILDCARD = "*"

Selector = Union[int, Sequence[int], str, re.Pattern, None]


def locate(root: Optional[Value], path: Sequence[Step]) -> Optional[Value]:
    """Follow ``path`` from ``root`` and return the node found there.

    A missing dictionary key yields ``None``; walking on from that missing
    node is an error.

    Args:
        root: Document (or subtree) to walk.
        path: Dictionary keys and array indices.

    Returns:
        The node at ``path``, or ``None`` if the last key is missing.

    Raises:
        AccessOnNil: If a step is applied to a missing node.
        IndexOutOfRange: If an array index is invalid.
        UnsupportedContainerType: If steps remain on a scalar.
    """
    node = root
    for position, step in enumerate(path):
        if node is None:
            raise AccessOnNil(
                f"Got nil for {step!r} at {format_path(path[:position])}"
            )
        if node.kind is Kind.ARRAY:
            count = len(node.payload)
            if isinstance(step, bool) or not isinstance(step, int):
                raise IndexOutOfRange(f"Array index must be an integer, got {step!r}")
            if step < 0 or step >= count:
                raise IndexOutOfRange(
                    f"Tried to get index {step} that doesn't exist. Count: {count}"
                )
            node = node.payload[step]
        elif node.kind is Kind.DICT:
            node = node.payload.get(str(step))
        else:
            raise UnsupportedContainerType(
                f"Not an array or a dictionary ({node.kind}) at "
                f"{format_path(path[:position])}"
            )
    return node


def get(root: Optional[Value], *path: Step) -> Optional[Value]:
    """Return the node at ``path`` or ``None``, logging any walk failure."""
    try:
        return locate(root, path)
    except NavigationError as exc:
        logger.warning("%s: %s", type(exc).__name__, exc)
        return None


def get_string(root: Optional[Value], *path: Step) -> Optional[str]:
    """Return the canonical string form of the node at ``path``."""
    node = get(root, *path)
    if node is None:
        return None
    return render(node)


def _matches(selector: Any, text: str) -> bool:
    # Empty or absent patterns never match
    if selector is None or selector == "":
        return False
    if isinstance(selector, re.Pattern):
        if not selector.pattern:
            return False
        return selector.search(text) is not None
    try:
        return re.search(str(selector), text) is not None
    except re.error as exc:
        logger.warning("Selector %r is not a valid regular expression: %s", selector, exc)
        return False


def _expand_indices(selector: Selector, count: int) -> List[int]:
    if selector == WILDCARD:
        return list(range(count))
    if isinstance(selector, (list, tuple)):
        return [int(index) for index in selector]
    if isinstance(selector, int) and not isinstance(selector, bool):
        return [selector]
    if isinstance(selector, str) and selector.isdigit():
        return [int(selector)]
    logger.warning("Array selector %r is not an index, list of indices, or '*'", selector)
    return []


def find_paths(root: Optional[Value], *selectors: Selector) -> List[Path]:
    """Find every path that matches a partial path description.

    Each selector consumes one level of nesting: array levels take an index,
    a list of indices, or ``"*"``; dictionary levels take a regular
    expression searched against each key; a scalar reached with a selector
    left takes a regular expression searched against its string form.

    Args:
        root: Document to search.
        *selectors: One selector per nesting level.

    Returns:
        Matching paths in traversal order.
    """
    results: List[Path] = []
    if not selectors:
        return results
    if root is None:
        logger.warning("Trying to search a container that is nil")
        return results
    _search(root, list(selectors), (), results)
    return results


def _search(node: Value, selectors: List[Selector], so_far: Path, results: List[Path]) -> None:
    selector, rest = selectors[0], selectors[1:]

    if node.kind is Kind.ARRAY:
        items = node.payload
        for index in _expand_indices(selector, len(items)):
            if index < 0 or index >= len(items):
                logger.debug("Skipping index %s beyond %d items", index, len(items))
                continue
            _advance(items[index], rest, so_far + (index,), results)
    elif node.kind is Kind.DICT:
        for key, item in node.payload.items():
            if _matches(selector, key):
                _advance(item, rest, so_far + (key,), results)
    elif node.kind in (Kind.STRING, Kind.INTEGER, Kind.REAL, Kind.BOOL, Kind.DATE, Kind.BLOB):
        if _matches(selector, render(node)):
            if rest:
                logger.warning(
                    "There are more selectors but %s is not a container",
                    format_path(so_far),
                )
            else:
                results.append(so_far)
    else:
        raise UnknownValueKind(f"Unknown value kind: {node.kind!r}")


def _advance(node: Value, rest: List[Selector], path: Path, results: List[Path]) -> None:
    if rest:
        _search(node, rest, path, results)
    else:
        results.append(path)
