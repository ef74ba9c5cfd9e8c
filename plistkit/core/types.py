"""Type definitions for the plistkit document engine.

A document is a tree of :class:`Value` nodes. Each node carries an explicit
:class:`Kind` tag, so traversal code branches on the tag instead of
inspecting Python types.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from .errors import UnknownValueKind
from .log import get_logger

logger = get_logger(__name__)

Step = Union[str, int]
Path = Tuple[Step, ...]


class Kind(str, Enum):
    """The eight value kinds of a property list."""

    DICT = "dict"
    ARRAY = "array"
    STRING = "string"
    INTEGER = "integer"
    REAL = "real"
    BOOL = "bool"
    DATE = "date"
    BLOB = "data"


CONTAINER_KINDS = frozenset({Kind.DICT, Kind.ARRAY})


def _utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass
class Value:
    """A single node of a document.

    Attributes:
        kind: The value kind.
        payload: ``Dict[str, Value]`` for dictionaries, ``List[Value]`` for
            arrays, otherwise the Python scalar (``str``, ``int``,
            ``float``, ``bool``, UTC ``datetime`` or ``bytes``).
    """

    kind: Kind
    payload: Any

    @classmethod
    def of_dict(cls, entries: Optional[Dict[str, "Value"]] = None) -> "Value":
        return cls(Kind.DICT, dict(entries or {}))

    @classmethod
    def of_array(cls, items: Optional[Iterable["Value"]] = None) -> "Value":
        return cls(Kind.ARRAY, list(items or []))

    @classmethod
    def string(cls, text: str) -> "Value":
        return cls(Kind.STRING, str(text))

    @classmethod
    def integer(cls, number: int) -> "Value":
        return cls(Kind.INTEGER, int(number))

    @classmethod
    def real(cls, number: float) -> "Value":
        return cls(Kind.REAL, float(number))

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        return cls(Kind.BOOL, bool(flag))

    @classmethod
    def date(cls, moment: Union[datetime, int, float, str]) -> "Value":
        """Build a date from a ``datetime`` or a Unix timestamp."""
        if isinstance(moment, datetime):
            return cls(Kind.DATE, _utc(moment))
        return cls(Kind.DATE, datetime.fromtimestamp(float(moment), tz=timezone.utc))

    @classmethod
    def blob(cls, data: bytes) -> "Value":
        return cls(Kind.BLOB, bytes(data))

    @property
    def is_dict(self) -> bool:
        return self.kind is Kind.DICT

    @property
    def is_array(self) -> bool:
        return self.kind is Kind.ARRAY

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS


class TypeToken(str, Enum):
    """Type tokens used by forced writes.

    Container tokens (``DICT``, ``ARRAY``, ``ARRAY_INSERT``) describe the node
    a path step indexes into; any token may describe the leaf.
    """

    DICT = "dict"
    ARRAY = "array"
    ARRAY_INSERT = "array_insert"
    DATE = "date"
    INTEGER = "integer"
    REAL = "real"
    BOOL = "bool"
    STRING = "string"
    HEX = "hex"
    BASE64 = "base64"

    @property
    def is_container(self) -> bool:
        return self in (TypeToken.DICT, TypeToken.ARRAY, TypeToken.ARRAY_INSERT)

    @property
    def is_array(self) -> bool:
        return self in (TypeToken.ARRAY, TypeToken.ARRAY_INSERT)

    @classmethod
    def parse(cls, text: Union[str, "TypeToken"]) -> "TypeToken":
        """Parse a token name or one of the short command line flags.

        Args:
            text: ``"dict"``, ``"int"``, ``"-d"``, ``"-ai"`` and so on.

        Returns:
            The matching token.

        Raises:
            ValueError: If the text names no token.
        """
        if isinstance(text, TypeToken):
            return text
        key = str(text).strip().lower()
        if key in _TOKEN_ALIASES:
            return _TOKEN_ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown type token: {text!r}") from None


_TOKEN_ALIASES: Dict[str, TypeToken] = {
    "-d": TypeToken.DICT,
    "-a": TypeToken.ARRAY,
    "-ai": TypeToken.ARRAY_INSERT,
    "-t": TypeToken.DATE,
    "-i": TypeToken.INTEGER,
    "-f": TypeToken.REAL,
    "-b": TypeToken.BOOL,
    "-s": TypeToken.STRING,
    "-h": TypeToken.HEX,
    "-e": TypeToken.BASE64,
    "int": TypeToken.INTEGER,
    "float": TypeToken.REAL,
    "boolean": TypeToken.BOOL,
    "str": TypeToken.STRING,
    "data": TypeToken.BASE64,
    "insert": TypeToken.ARRAY_INSERT,
}


class ForcedStep(NamedTuple):
    """One step of a forced write: the container kind indexed and the key."""

    kind: TypeToken
    key: Step


class DiffMode(str, Enum):
    EMIT = "emit"
    COLLECT = "collect"
    MERGE = "merge"


class ResultKind(str, Enum):
    """Outcome of comparing one location of two documents."""

    MISSING_FROM_SECOND = "<"
    MISSING_FROM_FIRST = ">"
    DIFFERS = "!"
    EQUAL = "="
    DEPTH_TRUNCATED = "?"


DEFAULT_RESULT_FILTER: FrozenSet[ResultKind] = frozenset(
    {
        ResultKind.MISSING_FROM_SECOND,
        ResultKind.MISSING_FROM_FIRST,
        ResultKind.DIFFERS,
        ResultKind.DEPTH_TRUNCATED,
    }
)


def parse_result_filter(output_types: str) -> FrozenSet[ResultKind]:
    """Turn a string such as ``"<>!?"`` into a result filter.

    Raises:
        ValueError: If a character names no result kind.
    """
    kinds = set()
    for char in output_types:
        if char.isspace():
            continue
        try:
            kinds.add(ResultKind(char))
        except ValueError:
            raise ValueError(f"Unknown diff output type: {char!r}") from None
    return frozenset(kinds)


@dataclass(frozen=True)
class DiffRecord:
    """A single reported difference.

    Attributes:
        kind: What was found at ``path``.
        path: Location in the first document (or the second, for
            ``MISSING_FROM_FIRST``).
        first: Rendered value from the first document, if any.
        second: Rendered value from the second document, if any.
    """

    kind: ResultKind
    path: Path
    first: Optional[str] = None
    second: Optional[str] = None

    @property
    def location(self) -> str:
        return format_path(self.path)

    def __str__(self) -> str:
        if self.kind is ResultKind.DIFFERS:
            return f"{self.kind.value} {self.location} {self.first} != {self.second}"
        shown = self.second if self.kind is ResultKind.MISSING_FROM_FIRST else self.first
        return f"{self.kind.value} {self.location} {shown}"


def _print_record(record: DiffRecord) -> None:
    print(record)


@dataclass(frozen=True)
class DiffOptions:
    """Options for :func:`plistkit.core.merge.diff`.

    Attributes:
        mode: Emit records as found, collect them, or merge into the first
            document.
        max_depth: Maximum container depth to descend (0 for unlimited).
        result_filter: Record kinds that are reported.
        emitter: Called with each reported record in ``EMIT`` mode.
    """

    mode: DiffMode = DiffMode.COLLECT
    max_depth: int = 0
    result_filter: FrozenSet[ResultKind] = DEFAULT_RESULT_FILTER
    emitter: Callable[[DiffRecord], None] = field(default=_print_record, compare=False)

    @staticmethod
    def from_dict(d: Optional[Dict[str, Any]]) -> "DiffOptions":
        """Create options from a mapping (YAML config or CLI flags).

        Recognised keys are ``mode``, ``max_depth`` and ``output_types``.
        """
        if not d:
            return DiffOptions()
        mode = DiffMode(d.get("mode", DiffMode.COLLECT.value))
        max_depth = int(d.get("max_depth") or 0)
        output_types = d.get("output_types")
        result_filter = (
            parse_result_filter(output_types)
            if isinstance(output_types, str)
            else DEFAULT_RESULT_FILTER
        )
        return DiffOptions(mode=mode, max_depth=max_depth, result_filter=result_filter)


def format_path(path: Sequence[Step]) -> str:
    """Render a path as ``/{key}/[index]``."""
    if not path:
        return "/"
    return "".join(f"/[{step}]" if isinstance(step, int) else f"/{{{step}}}" for step in path)


# Native conversions


def from_native(obj: Any) -> Value:
    """Convert a native Python object to a document value.

    Mappings become dictionaries and lists/tuples become arrays. A
    :class:`Value` is kept as is. Any other object becomes a string.
    ``None`` entries inside containers are dropped.
    """
    if isinstance(obj, Value):
        return obj
    if isinstance(obj, Mapping):
        return from_native_dict(obj)
    if isinstance(obj, (list, tuple)):
        return from_native_array(obj)
    return Value.string(str(obj))


def from_native_dict(mapping: Mapping) -> Value:
    entries: Dict[str, Value] = {}
    for key, item in mapping.items():
        if item is None:
            logger.warning("The value was not defined for %s", key)
            continue
        entries[str(key)] = from_native(item)
    return Value(Kind.DICT, entries)


def from_native_array(items: Iterable[Any]) -> Value:
    converted: List[Value] = []
    for item in items:
        if item is None:
            logger.warning("The value was not defined, skipping array entry")
            continue
        converted.append(from_native(item))
    return Value(Kind.ARRAY, converted)


def from_typed(obj: Any) -> Value:
    """Convert a Python object to a value, inferring the kind from its type.

    Raises:
        TypeError: If the object has no property list equivalent.
    """
    if isinstance(obj, Value):
        return obj
    # bool before int: bool is an int subclass
    if isinstance(obj, bool):
        return Value.boolean(obj)
    if isinstance(obj, int):
        return Value.integer(obj)
    if isinstance(obj, float):
        return Value.real(obj)
    if isinstance(obj, str):
        return Value.string(obj)
    if isinstance(obj, datetime):
        return Value.date(obj)
    if isinstance(obj, (bytes, bytearray)):
        return Value.blob(bytes(obj))
    if isinstance(obj, Mapping):
        return Value(Kind.DICT, {str(k): from_typed(v) for k, v in obj.items()})
    if isinstance(obj, (list, tuple)):
        return Value(Kind.ARRAY, [from_typed(item) for item in obj])
    raise TypeError(f"Cannot represent {type(obj).__name__} in a property list")


def _timestamp(moment: datetime) -> Union[int, float]:
    stamp = moment.timestamp()
    return int(stamp) if stamp.is_integer() else stamp


def to_native(value: Value, convert_all: bool = False) -> Any:
    """Convert a value to native Python objects.

    Args:
        value: Value to convert.
        convert_all: When false only dictionaries and arrays are converted
            and scalars are returned as :class:`Value` handles. When true
            every scalar is converted too: strings (with ``&`` escaped as
            ``&amp;``), numbers, booleans, dates as Unix timestamps, and
            blobs as base64 text.

    Raises:
        UnknownValueKind: If a node carries an unrecognised kind.
    """
    kind = value.kind
    if kind is Kind.DICT:
        return {key: to_native(item, convert_all) for key, item in value.payload.items()}
    if kind is Kind.ARRAY:
        return [to_native(item, convert_all) for item in value.payload]
    if kind not in _SCALAR_KINDS:
        raise UnknownValueKind(f"Unknown value kind: {kind!r}")
    if not convert_all:
        return value
    if kind is Kind.STRING:
        return value.payload.replace("&", "&amp;")
    if kind in (Kind.INTEGER, Kind.REAL, Kind.BOOL):
        return value.payload
    if kind is Kind.DATE:
        return _timestamp(value.payload)
    # Lazy import: the codec module imports this one
    from .codec import encode_blob

    return encode_blob(value.payload)


_SCALAR_KINDS = frozenset(
    {Kind.STRING, Kind.INTEGER, Kind.REAL, Kind.BOOL, Kind.DATE, Kind.BLOB}
)


def render(value: Value) -> str:
    """Canonical string form of a value.

    Scalars render as their fully converted native value (booleans as
    ``true``/``false``); containers render as their type name.
    """
    kind = value.kind
    if kind in CONTAINER_KINDS:
        return kind.value
    if kind is Kind.BOOL:
        return "true" if value.payload else "false"
    return str(to_native(value, convert_all=True))
