"""Exception types raised by the document engine."""

from __future__ import annotations


class PlistError(Exception):
    """Base class for all document engine errors."""


class NavigationError(PlistError):
    """A path could not be followed through a document."""


class AccessOnNil(NavigationError):
    """A step was applied to a node that does not exist.

    This means an earlier step already failed (usually a missing dictionary
    key) and the caller kept walking.
    """


class IndexOutOfRange(NavigationError):
    """An array index was negative, not an integer, or past the end."""


class UnsupportedContainerType(NavigationError):
    """Steps remain but the current node is not a dictionary or an array."""


class UnknownValueKind(PlistError):
    """A value carried a kind the engine does not know."""


class StructuralMismatch(PlistError):
    """A forced write tried to graft into a container of the wrong kind."""


class ParentNotFound(PlistError):
    """The parent path of a simple set/remove does not resolve."""


class MalformedEncoding(PlistError):
    """Hex or base64 input contains characters outside its alphabet."""


class ParseError(PlistError):
    """Text could not be read as a property list document."""


class MergeError(PlistError):
    """A combine could not absorb the second document into the first."""


class MergeConflict(MergeError):
    """Both documents hold different values at the same path."""


class MergeDepthUnsupported(MergeError):
    """A combine was asked to stop at a maximum depth."""
