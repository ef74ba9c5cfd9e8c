"""Loading and saving property list documents on disk."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from .codec import parse, serialize
from .errors import ParseError
from .log import get_logger
from .types import Kind, Value

logger = get_logger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def expand_path(path: PathLike) -> Path:
    """Expand ``~`` to the home folder."""
    return Path(path).expanduser()


def from_string(text: Union[str, bytes]) -> Optional[Value]:
    """Parse document text, returning ``None`` (and logging) if it is invalid."""
    try:
        return parse(text)
    except ParseError as exc:
        logger.error("Could not convert string to a property list: %s", exc)
        return None


def load(path: PathLike, expect: Optional[Kind] = None) -> Optional[Value]:
    """Load a document from ``path``.

    Args:
        path: File to read. ``~`` is expanded.
        expect: Optional root kind (``Kind.DICT`` or ``Kind.ARRAY``) the
            document must have.

    Returns:
        Root value, or ``None`` if the file is missing, unreadable, not a
        property list, or has the wrong root kind.
    """
    file_path = expand_path(path)
    if not file_path.exists():
        logger.debug("No document at %s", file_path)
        return None
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        logger.error("Could not read %s: %s", file_path, exc)
        return None
    try:
        root = parse(data)
    except ParseError as exc:
        logger.error("Could not parse %s: %s", file_path, exc)
        return None
    if expect is not None and root.kind is not expect:
        logger.error("Expected %s at the root of %s, found %s", expect.value, file_path, root.kind.value)
        return None
    return root


def load_array(path: PathLike) -> Optional[Value]:
    """Load a document whose root must be an array."""
    return load(path, expect=Kind.ARRAY)


def is_writable(path: PathLike) -> bool:
    """True if ``path`` can be written, or created in its directory."""
    file_path = expand_path(path)
    if file_path.exists():
        return file_path.is_file() and os.access(file_path, os.W_OK)
    parent = file_path.parent
    return parent.is_dir() and os.access(parent, os.W_OK)


def save(value: Value, path: PathLike) -> bool:
    """Write ``value`` to ``path`` as an XML property list.

    The write is not atomic and takes no locks: the last writer wins.

    Returns:
        True if the document was written, False otherwise.
    """
    file_path = expand_path(path)
    if not is_writable(file_path):
        logger.error("Cannot write %s", file_path)
        return False
    try:
        text = serialize(value)
    except ValueError as exc:
        logger.error("Could not serialize %s: %s", file_path, exc)
        return False
    try:
        file_path.write_text(text, encoding="utf-8")
    except OSError as exc:
        logger.error("Could not save %s: %s", file_path, exc)
        return False
    return True
