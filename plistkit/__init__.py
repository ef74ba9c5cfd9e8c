"""Plistkit - Structured document engine for XML property lists.

Load, query, modify, compare and merge property list documents held as
typed value trees, with forced writes that create intermediate containers.
"""

from .core.codec import base64_to_hex, hex_to_base64, parse, serialize
from .core.document import load, save
from .core.merge import combine, diff
from .core.mutate import remove_value, set_forced, set_value
from .core.navigate import find_paths, get, get_string
from .core.types import Value, from_native_array, from_native_dict, to_native

__all__ = [
    "Value",
    "load",
    "save",
    "get",
    "get_string",
    "find_paths",
    "set_forced",
    "set_value",
    "remove_value",
    "to_native",
    "from_native_dict",
    "from_native_array",
    "diff",
    "combine",
    "parse",
    "serialize",
    "hex_to_base64",
    "base64_to_hex",
]
