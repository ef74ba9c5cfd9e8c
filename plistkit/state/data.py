"""Per-application data documents."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..core.document import expand_path, load
from ..core.log import get_logger
from ..core.navigate import get, get_string
from ..core.types import Kind, Value, to_native
from .errors import DataDocumentError

logger = get_logger(__name__)

SECTION = "autoMunkiImporter"
HISTORY_KEY = "Import History"

MONITOR_TYPES = ("static", "dynamic", "sparkle")

REQUIRED_KEYS = ("URLToMonitor", "name", "type", "itemToImport")


def normalize_type(text: Optional[str]) -> str:
    """Return the monitor type in lower case.

    Raises:
        DataDocumentError: If the type is not static, dynamic or sparkle.
    """
    monitor_type = (text or "").strip().lower()
    if monitor_type not in MONITOR_TYPES:
        raise DataDocumentError(
            f"Unknown type {text!r}, expected one of {', '.join(MONITOR_TYPES)}"
        )
    return monitor_type


class AppDocument:
    """A data document describing one monitored application.

    Args:
        root: Parsed document; must hold an ``autoMunkiImporter`` dictionary.
        path: File the document was loaded from and is saved to.
    """

    def __init__(self, root: Value, path: Union[str, Path]):
        self.root = root
        self.path = expand_path(path)
        self._validate()

    @classmethod
    def load(cls, path: Union[str, Path]) -> "AppDocument":
        """Load and validate a data document.

        Raises:
            DataDocumentError: If the file cannot be read as a dictionary
                document or required keys are missing.
        """
        root = load(path, expect=Kind.DICT)
        if root is None:
            raise DataDocumentError(f"Could not load a data document from {path}")
        return cls(root, path)

    def _validate(self) -> None:
        section = get(self.root, SECTION)
        if section is None or section.kind is not Kind.DICT:
            raise DataDocumentError(f"{self.path} has no {SECTION} dictionary")
        missing = [key for key in REQUIRED_KEYS if not self.setting_text(key)]
        if missing:
            raise DataDocumentError(f"{self.path} is missing {', '.join(missing)}")
        self.monitor_type = normalize_type(self.setting_text("type"))
        if self.monitor_type == "dynamic" and not self.setting_text("downloadLinkRegex"):
            raise DataDocumentError(
                f"{self.path} is dynamic but has no downloadLinkRegex"
            )

    def setting(self, key: str) -> Optional[Value]:
        """Raw value of ``key`` in the ``autoMunkiImporter`` section."""
        return get(self.root, SECTION, key)

    def setting_text(self, key: str) -> Optional[str]:
        return get_string(self.root, SECTION, key)

    @property
    def name(self) -> str:
        return self.setting_text("name")

    @property
    def url(self) -> str:
        """The URL to monitor with XML ``&amp;`` entities turned back into ``&``."""
        return self.setting_text("URLToMonitor").replace("&amp;", "&")

    @property
    def disabled(self) -> bool:
        value = self.setting("disabled")
        if value is None:
            return False
        if value.kind is Kind.BOOL:
            return value.payload
        return get_string(value).strip().lower() in ("1", "true", "yes")

    @property
    def modified_date(self) -> Optional[datetime]:
        """Last recorded modification date of the download, if any."""
        value = self.setting("modifiedDate")
        if value is None:
            return None
        if value.kind is Kind.DATE:
            return value.payload
        if value.kind in (Kind.INTEGER, Kind.REAL):
            return Value.date(value.payload).payload
        logger.warning("%s: modifiedDate is a %s, ignoring it", self.name, value.kind.value)
        return None

    @property
    def last_status(self) -> Optional[str]:
        return self.setting_text("lastStatus")

    def import_history(self) -> Dict[str, Any]:
        """Import history keyed by version, converted to native values."""
        history = self.setting(HISTORY_KEY)
        if history is None or history.kind is not Kind.DICT:
            return {}
        return to_native(history, convert_all=True)
