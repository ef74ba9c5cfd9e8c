"""Write operations on value trees.

Two flavours are provided. :func:`set_forced` creates whatever containers a
path needs and replaces nodes of the wrong type along the way.
:func:`set_value` and :func:`remove_value` assume the parent already exists
with the right shape and only touch the final slot.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple, Union

from .codec import bytes_from_base64, bytes_from_hex
from .errors import NavigationError, ParentNotFound, StructuralMismatch, UnsupportedContainerType
from .log import get_logger
from .navigate import locate
from .types import (
    ForcedStep,
    Kind,
    Step,
    TypeToken,
    Value,
    format_path,
    from_native,
)

logger = get_logger(__name__)

APPEND_KEYS = frozenset({"add", "+", "push"})
APPEND_IF_MISSING_KEY = "add_if_missing"

_TRUE_TEXT = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_TEXT = frozenset({"0", "false", "no", "n", "off", ""})

_NEEDS_RAW = frozenset(
    {TypeToken.DATE, TypeToken.INTEGER, TypeToken.REAL, TypeToken.HEX, TypeToken.BASE64}
)


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in _TRUE_TEXT:
            return True
        if text in _FALSE_TEXT:
            return False
        raise ValueError(f"Cannot read {raw!r} as a boolean")
    return bool(raw)


def build_leaf(kind: TypeToken, raw: Any) -> Value:
    """Build a value of type ``kind`` from a raw Python value.

    Container tokens build an empty container and ignore ``raw``.

    Raises:
        MalformedEncoding: If ``raw`` is not valid hex/base64 for blob tokens.
        ValueError: If ``raw`` is missing or cannot be read as the requested number,
            boolean or date.
    """
    if kind is TypeToken.DICT:
        return Value.of_dict()
    if kind.is_array:
        return Value.of_array()
    if raw is None and kind in _NEEDS_RAW:
        raise ValueError(f"A {kind.value} value needs a raw value")
    if kind is TypeToken.DATE:
        return Value.date(raw)
    if kind is TypeToken.INTEGER:
        return Value.integer(int(raw))
    if kind is TypeToken.REAL:
        return Value.real(float(raw))
    if kind is TypeToken.BOOL:
        return Value.boolean(_to_bool(raw))
    if kind is TypeToken.HEX:
        return Value.blob(bytes_from_hex(str(raw)))
    if kind is TypeToken.BASE64:
        return Value.blob(bytes_from_base64(str(raw)))
    return Value.string("" if raw is None else str(raw))


def _matches_token(node: Value, token: TypeToken) -> bool:
    if token is TypeToken.DICT:
        return node.kind is Kind.DICT
    if token.is_array:
        return node.kind is Kind.ARRAY
    # Scalars are always rebuilt from the raw value
    return False


def _is_append_key(key: Step) -> bool:
    return isinstance(key, str) and (key in APPEND_KEYS or key == APPEND_IF_MISSING_KEY)


def _probe(root: Value, path: Sequence[Step]) -> Optional[Value]:
    if any(_is_append_key(step) for step in path):
        return None
    try:
        return locate(root, [_index_or_key(step) for step in path])
    except NavigationError as exc:
        logger.debug("Probe of %s failed: %s", format_path(path), exc)
        return None


def _index_or_key(step: Step) -> Step:
    if isinstance(step, str) and step.isdigit():
        return int(step)
    return step


def _coerce_steps(
    steps: Sequence[Union[ForcedStep, Tuple[Any, Step]]],
) -> List[ForcedStep]:
    coerced = []
    for kind, key in steps:
        token = TypeToken.parse(kind)
        if not token.is_container:
            raise ValueError(f"Path step {key!r} must index a dict or array, not {token.value}")
        coerced.append(ForcedStep(token, key))
    return coerced


def _graft(parent: Value, step: ForcedStep, node: Value, where: Sequence[Step]) -> Value:
    if step.kind.is_array:
        if parent.kind is not Kind.ARRAY:
            message = f"Tried to add array index to non-array container at {format_path(where)}"
            logger.error(message)
            raise StructuralMismatch(message)
        items: List[Value] = parent.payload
        key = step.key
        if isinstance(key, str) and key in APPEND_KEYS:
            items.append(node)
            return node
        if key == APPEND_IF_MISSING_KEY:
            if node in items:
                return items[items.index(node)]
            items.append(node)
            return node
        index = _index_or_key(key)
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            message = f"Array index must be a non-negative integer, got {key!r}"
            logger.error(message)
            raise StructuralMismatch(message)
        while index >= len(items):
            items.append(Value.string(""))
        if step.kind is TypeToken.ARRAY_INSERT:
            items.insert(index, node)
        else:
            items[index] = node
        return node
    else:
        if parent.kind is not Kind.DICT:
            message = (
                f"Tried to add dictionary key-value pair to non-dictionary "
                f"container at {format_path(where)}"
            )
            logger.error(message)
            raise StructuralMismatch(message)
        parent.payload[str(step.key)] = node
    return node


def set_forced(
    root: Value,
    steps: Sequence[Union[ForcedStep, Tuple[Any, Step]]],
    leaf_kind: Union[TypeToken, str],
    leaf_value: Any = None,
) -> Value:
    """Write a typed value at a path, creating or replacing nodes as needed.

    Each step names the container it indexes into (``TypeToken.DICT``,
    ``TypeToken.ARRAY`` to replace at an index, ``TypeToken.ARRAY_INSERT``
    to insert before it) and the key or index. Missing containers are
    created; nodes of the wrong type are replaced. Array keys ``"add"``,
    ``"+"`` and ``"push"`` append; ``"add_if_missing"`` appends unless an
    equal element is already there. An index past the end pads the array
    with empty strings first.

    Example:
        >>> doc = Value.of_dict()
        >>> set_forced(doc, [("dict", "a"), ("dict", "b")], "string", "v1")

        leaves ``doc`` as ``{"a": {"b": "v1"}}``.

    Args:
        root: Document to modify in place.
        steps: ``(container token, key or index)`` pairs.
        leaf_kind: Type of the value placed at the last step.
        leaf_value: Raw value converted according to ``leaf_kind``.

    Returns:
        The node now at the end of the path.

    Raises:
        StructuralMismatch: If a step's container token does not match the
            node it indexes. Steps already applied are kept.
        MalformedEncoding: If a hex/base64 leaf cannot be decoded.
    """
    path = _coerce_steps(steps)
    if not path:
        raise ValueError("set_forced needs at least one path step")
    leaf_token = TypeToken.parse(leaf_kind)
    # The leaf is built before anything is modified
    leaf = build_leaf(leaf_token, leaf_value)

    parent = root
    so_far: List[Step] = []
    for position, step in enumerate(path):
        last = position == len(path) - 1
        expected = leaf_token if last else path[position + 1].kind
        so_far.append(step.key)

        existing = _probe(root, so_far)
        if existing is not None and _matches_token(existing, expected):
            parent = existing
            continue

        if existing is None:
            logger.debug("Adding %s (%s)", format_path(so_far), expected.value)
        else:
            logger.debug(
                "Replacing %s: should be %s but is %s",
                format_path(so_far),
                expected.value,
                existing.kind.value,
            )

        node = leaf if last else build_leaf(expected, None)
        node = _graft(parent, step, node, so_far)
        parent = node
    return parent


def _resolve_parent(root: Value, parent_path: Sequence[Step]) -> Optional[Value]:
    try:
        parent = locate(root, parent_path)
    except NavigationError as exc:
        parent = None
        logger.debug("Parent walk failed: %s", exc)
    if parent is None:
        logger.warning(
            "%s: could not get value specified by %s",
            ParentNotFound.__name__,
            format_path(parent_path),
        )
    return parent


def set_value(root: Value, path: Sequence[Step], value: Any) -> bool:
    """Set ``value`` at ``path`` whose parent must already exist.

    For arrays an index past the end appends and any other index replaces.
    Values that are not :class:`Value` are converted with
    :func:`~plistkit.core.types.from_native`.

    Returns:
        True if the value was placed, False if the parent was not found or
        is not a container.
    """
    if not path:
        raise ValueError("set_value needs a path ending in the key or index to set")
    *parent_path, key = path
    parent = _resolve_parent(root, parent_path)
    if parent is None:
        return False
    node = from_native(value)
    if parent.kind is Kind.ARRAY:
        items = parent.payload
        index = _index_or_key(key)
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            logger.warning("Array index must be a non-negative integer, got %r", key)
            return False
        if index > len(items) - 1:
            items.append(node)
        else:
            items[index] = node
        return True
    if parent.kind is Kind.DICT:
        parent.payload[str(key)] = node
        return True
    logger.warning(
        "%s: unknown parent container type %s",
        UnsupportedContainerType.__name__,
        parent.kind.value,
    )
    return False


def remove_value(root: Value, path: Sequence[Step]) -> bool:
    """Remove the node at ``path`` whose parent must already exist.

    Returns:
        True if something was removed (or the dictionary key was already
        absent), False otherwise.
    """
    if not path:
        raise ValueError("remove_value needs a path ending in the key or index to remove")
    *parent_path, key = path
    parent = _resolve_parent(root, parent_path)
    if parent is None:
        return False
    if parent.kind is Kind.ARRAY:
        items = parent.payload
        index = _index_or_key(key)
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(items):
            logger.warning(
                "remove_value: index %r of a %d item array should not be possible",
                key,
                len(items),
            )
            return False
        del items[index]
        return True
    if parent.kind is Kind.DICT:
        parent.payload.pop(str(key), None)
        return True
    logger.warning(
        "%s: unknown parent container type %s",
        UnsupportedContainerType.__name__,
        parent.kind.value,
    )
    return False
