"""Exception types raised by the application-state layer."""

from __future__ import annotations


class StateError(Exception):
    """Base class for application-state errors."""


class SettingsError(StateError):
    """The default settings document is missing values."""

    def __init__(self, keys):
        self.keys = list(keys)
        super().__init__(
            "Keys without an appropriate value in the default settings: "
            + ", ".join(self.keys)
        )


class DataDocumentError(StateError):
    """A data document is missing required keys or has an unknown type."""
