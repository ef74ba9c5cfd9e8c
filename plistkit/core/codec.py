"""Reading and writing XML property list documents.

Parsing goes through the standard library :mod:`plistlib` reader and is
then converted into :class:`~plistkit.core.types.Value` trees. Writing is
done here so the output keeps the conventional layout: tab indentation and
base64 blobs wrapped at 36 characters per line.
"""

from __future__ import annotations

import base64
import binascii
import plistlib
import re
from typing import List, Union
from xml.parsers.expat import ExpatError
from xml.sax.saxutils import escape

from .errors import MalformedEncoding, ParseError, UnknownValueKind
from .types import Kind, Value, from_typed

PLIST_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
    '"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
    '<plist version="1.0">\n'
)

PLIST_FOOTER = "</plist>\n"

PLIST_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

BLOB_LINE_LENGTH = 36

INDENT = "\t"

_HEX_CHARS = re.compile(r"[0-9a-fA-F]*")
_BASE64_CHARS = re.compile(r"[0-9a-zA-Z+/]*={0,2}")
_HEX_DECORATION = re.compile(r"[<> ]")
_WHITESPACE = re.compile(r"[\n\r\t ]")
_DATA_ELEMENT = re.compile(rb"<data>(.*?)</data>", re.DOTALL)
# Characters XML 1.0 cannot carry, even as character references
_ILLEGAL_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")
_TEXT_ENTITIES = {"\r": "&#13;"}


def parse(data: Union[bytes, str]) -> Value:
    """Parse an XML property list into a value tree.

    Args:
        data: Document text, as bytes or str.

    Returns:
        Root value, always a dictionary or an array.

    Raises:
        ParseError: If the XML is malformed, is not a property list, holds
            a malformed date or ``<data>`` element, or its root is not a
            dictionary or an array.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        native = plistlib.loads(data, fmt=plistlib.FMT_XML)
    except ExpatError as exc:
        raise ParseError(f"Malformed XML: {exc}") from exc
    except (ValueError, AttributeError, TypeError) as exc:
        # plistlib reports bad <date> text as AttributeError
        raise ParseError(f"Invalid property list: {exc}") from exc

    if not isinstance(native, (dict, list)):
        found = "nothing" if native is None else type(native).__name__
        raise ParseError(f"Root object was not a dictionary or array (found {found})")
    _check_data_elements(data)
    return from_typed(native)


def _check_data_elements(data: bytes) -> None:
    # plistlib decodes <data> leniently and drops bad characters
    for match in _DATA_ELEMENT.finditer(data):
        try:
            bytes_from_base64(match.group(1).decode("latin-1"))
        except MalformedEncoding as exc:
            raise ParseError(f"Invalid <data> element: {exc}") from exc


def serialize(root: Value) -> str:
    """Render a value tree as an XML property list document.

    Raises:
        ValueError: If a key or string holds a control character XML
            cannot represent.
    """
    lines: List[str] = []
    _write(root, 0, lines)
    return PLIST_HEADER + "\n".join(lines) + "\n" + PLIST_FOOTER


def _text(text: str) -> str:
    bad = _ILLEGAL_XML_CHARS.search(text)
    if bad:
        raise ValueError(
            f"Strings can't contain control character {bad.group()!r}; use data instead"
        )
    return escape(text, _TEXT_ENTITIES)


def _write(value: Value, depth: int, lines: List[str]) -> None:
    pad = INDENT * depth
    kind = value.kind
    if kind is Kind.DICT:
        if not value.payload:
            lines.append(f"{pad}<dict/>")
            return
        lines.append(f"{pad}<dict>")
        for key, item in value.payload.items():
            lines.append(f"{pad}{INDENT}<key>{_text(key)}</key>")
            _write(item, depth + 1, lines)
        lines.append(f"{pad}</dict>")
    elif kind is Kind.ARRAY:
        if not value.payload:
            lines.append(f"{pad}<array/>")
            return
        lines.append(f"{pad}<array>")
        for item in value.payload:
            _write(item, depth + 1, lines)
        lines.append(f"{pad}</array>")
    elif kind is Kind.STRING:
        lines.append(f"{pad}<string>{_text(value.payload)}</string>")
    elif kind in (Kind.INTEGER, Kind.REAL):
        number = value.payload
        # The tag follows the payload's runtime type, not the tag it was built with
        if isinstance(number, int) and not isinstance(number, bool):
            lines.append(f"{pad}<integer>{number}</integer>")
        else:
            lines.append(f"{pad}<real>{float(number)!r}</real>")
    elif kind is Kind.BOOL:
        lines.append(f"{pad}<true/>" if value.payload else f"{pad}<false/>")
    elif kind is Kind.DATE:
        lines.append(f"{pad}<date>{value.payload.strftime(PLIST_DATE_FORMAT)}</date>")
    elif kind is Kind.BLOB:
        encoded = encode_blob(value.payload)
        lines.append(f"{pad}<data>")
        for start in range(0, len(encoded), BLOB_LINE_LENGTH):
            lines.append(pad + encoded[start : start + BLOB_LINE_LENGTH])
        lines.append(f"{pad}</data>")
    else:
        raise UnknownValueKind(f"Unknown value kind: {kind!r}")


# Blob helpers


def encode_blob(data: bytes) -> str:
    """Base64 text of ``data`` on a single line."""
    return base64.b64encode(data).decode("ascii")


def bytes_from_hex(text: str) -> bytes:
    """Decode hex text, ignoring ``<``, ``>`` and spaces.

    Raises:
        MalformedEncoding: If anything other than an even number of hex
            digits is left.
    """
    cleaned = _HEX_DECORATION.sub("", text)
    if not _HEX_CHARS.fullmatch(cleaned) or len(cleaned) % 2:
        raise MalformedEncoding(f"Could not decode {text!r}: it is not hex")
    return bytes.fromhex(cleaned)


def bytes_from_base64(text: str) -> bytes:
    """Decode base64 text, ignoring whitespace.

    Raises:
        MalformedEncoding: If the text is not base64.
    """
    cleaned = _WHITESPACE.sub("", text)
    if not _BASE64_CHARS.fullmatch(cleaned):
        raise MalformedEncoding(f"Could not decode {text!r}: it is not base64")
    try:
        return base64.b64decode(cleaned, validate=True)
    except binascii.Error as exc:
        raise MalformedEncoding(f"Could not decode {text!r}: {exc}") from exc


def hex_to_base64(text: str) -> str:
    """Convert hex text (as printed for binary data) to base64."""
    return encode_blob(bytes_from_hex(text))


def base64_to_hex(text: str) -> str:
    """Convert base64 text to lowercase hex."""
    return bytes_from_base64(text).hex()
