"""Structural comparison and merging of two documents."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import MergeConflict, MergeDepthUnsupported, UnknownValueKind
from .log import get_logger
from .types import (
    CONTAINER_KINDS,
    DiffMode,
    DiffOptions,
    DiffRecord,
    Kind,
    Path,
    ResultKind,
    Value,
    format_path,
    render,
)

logger = get_logger(__name__)


@dataclass
class _DiffState:
    options: DiffOptions
    depth: int = 0
    reported: List[DiffRecord] = field(default_factory=list)

    @property
    def merging(self) -> bool:
        return self.options.mode is DiffMode.MERGE

    def within_depth(self) -> bool:
        max_depth = self.options.max_depth
        return max_depth == 0 or self.depth < max_depth


def diff(a: Value, b: Value, options: Optional[DiffOptions] = None) -> List[DiffRecord]:
    """Compare two documents.

    Containers of the same kind are compared element by element (arrays by
    index, dictionaries by key); scalars of the same kind are compared by
    their canonical string form; values of different kinds always differ.

    In ``MERGE`` mode whatever exists only in ``b`` is grafted into ``a``
    (array items appended, dictionary keys set). Differing values or a
    depth cut-off abort the merge; grafts made before that point remain.

    Args:
        a: First document. Modified in place in ``MERGE`` mode.
        b: Second document. Never modified.
        options: Mode, depth limit and reported record kinds.

    Returns:
        The records whose kind is in ``options.result_filter``, in the order
        they were found. In ``EMIT`` mode each is also passed to
        ``options.emitter`` as it is found.

    Raises:
        MergeConflict: In ``MERGE`` mode, if both documents hold different
            values at the same path.
        MergeDepthUnsupported: In ``MERGE`` mode, if ``max_depth`` cuts the
            comparison short.
    """
    state = _DiffState(options or DiffOptions())
    _compare(a, b, (), state)
    return state.reported


def combine(a: Value, b: Value) -> Value:
    """Merge everything ``b`` has that ``a`` lacks into ``a`` and return ``a``."""
    diff(a, b, DiffOptions(mode=DiffMode.MERGE))
    return a


def _report(state: _DiffState, record: DiffRecord) -> None:
    if state.merging:
        if record.kind is ResultKind.DIFFERS:
            logger.error("Cannot combine, documents share a key with different values: %s", record)
            raise MergeConflict(
                f"Documents share {record.location} but have different values: "
                f"{record.first} != {record.second}"
            )
        if record.kind is ResultKind.DEPTH_TRUNCATED:
            logger.error("Cannot combine when using a max depth: %s", record)
            raise MergeDepthUnsupported(
                f"Can't combine when using a max depth (stopped at {record.location})"
            )
    if record.kind not in state.options.result_filter:
        return
    state.reported.append(record)
    if state.options.mode is DiffMode.EMIT:
        state.options.emitter(record)


def _compare(a: Value, b: Value, path: Path, state: _DiffState) -> None:
    for value in (a, b):
        if not isinstance(value.kind, Kind):
            raise UnknownValueKind(f"Unknown value kind: {value.kind!r}")

    if a.kind is not b.kind:
        _report(state, DiffRecord(ResultKind.DIFFERS, path, render(a), render(b)))
        return

    if a.kind in CONTAINER_KINDS:
        if not state.within_depth():
            _report(state, DiffRecord(ResultKind.DEPTH_TRUNCATED, path, a.kind.value))
            return
        state.depth += 1
        try:
            if a.kind is Kind.ARRAY:
                _compare_arrays(a, b, path, state)
            else:
                _compare_dicts(a, b, path, state)
        finally:
            state.depth -= 1
        return

    first, second = render(a), render(b)
    if first == second:
        _report(state, DiffRecord(ResultKind.EQUAL, path, first))
    else:
        _report(state, DiffRecord(ResultKind.DIFFERS, path, first, second))


def _compare_arrays(a: Value, b: Value, path: Path, state: _DiffState) -> None:
    first_items: List[Value] = a.payload
    second_items: List[Value] = b.payload
    count = len(first_items)
    for index in range(count):
        item = first_items[index]
        if index < len(second_items):
            _compare(item, second_items[index], path + (index,), state)
        else:
            _report(
                state,
                DiffRecord(ResultKind.MISSING_FROM_SECOND, path + (index,), render(item)),
            )
    for index in range(count, len(second_items)):
        item = second_items[index]
        if state.merging:
            logger.debug("Appending %s", format_path(path + (index,)))
            first_items.append(copy.deepcopy(item))
        else:
            _report(
                state,
                DiffRecord(ResultKind.MISSING_FROM_FIRST, path + (index,), None, render(item)),
            )


def _compare_dicts(a: Value, b: Value, path: Path, state: _DiffState) -> None:
    first_entries = a.payload
    second_entries = b.payload
    for key in list(first_entries):
        item = first_entries[key]
        if key in second_entries:
            _compare(item, second_entries[key], path + (key,), state)
        else:
            _report(
                state,
                DiffRecord(ResultKind.MISSING_FROM_SECOND, path + (key,), render(item)),
            )
    for key, item in second_entries.items():
        if key in first_entries:
            continue
        if state.merging:
            logger.debug("Adding %s", format_path(path + (key,)))
            first_entries[key] = copy.deepcopy(item)
        else:
            _report(
                state,
                DiffRecord(ResultKind.MISSING_FROM_FIRST, path + (key,), None, render(item)),
            )
