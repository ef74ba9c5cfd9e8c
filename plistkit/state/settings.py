"""Default settings document and per-application overrides."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

from ..core.log import get_logger
from ..core.navigate import get, get_string
from ..core.types import Kind, Value
from .errors import SettingsError

if TYPE_CHECKING:
    from .data import AppDocument

logger = get_logger(__name__)

DEFAULT_SETTINGS_KEYS = (
    "userAgent",
    "logFile",
    "logFileMaxSizeInMBs",
    "maxNoOfLogsToKeep",
    "statusPlistPath",
    "emailReports",
    "smtpServer",
    "fromAddress",
    "toAddress",
    "subjectPrefix",
    "makecatalogs",
    "version",
)

PLACEHOLDER = "REPLACE_ME"

# Data document key -> settings field it overrides
_OVERRIDES: Dict[str, str] = {
    "userAgent": "user_agent",
    "logFile": "log_file",
    "emailReports": "email_reports",
    "emailFrom": "from_address",
    "emailTo": "to_address",
    "makecatalogs": "makecatalogs",
}

_BOOL_FIELDS = frozenset({"email_reports", "makecatalogs"})


def check_default_settings(doc: Optional[Value]) -> None:
    """Verify every default setting has a usable value.

    Raises:
        SettingsError: Naming each key that is missing, empty, or still
            holds the ``REPLACE_ME`` placeholder.
    """
    bad: List[str] = []
    for key in DEFAULT_SETTINGS_KEYS:
        text = get_string(doc, key) if doc is not None else None
        if not text or PLACEHOLDER.lower() in text.lower():
            bad.append(key)
    if bad:
        logger.error("Default settings are incomplete: %s", ", ".join(bad))
        raise SettingsError(bad)


def _number(doc: Value, key: str) -> int:
    try:
        return int(float(get_string(doc, key)))
    except (TypeError, ValueError):
        logger.error("Default setting %s is not a number", key)
        raise SettingsError([key]) from None


def _flag(value: Optional[Value]) -> bool:
    if value is None:
        return False
    if value.kind is Kind.BOOL:
        return value.payload
    if value.kind in (Kind.INTEGER, Kind.REAL):
        return bool(value.payload)
    return str(value.payload).strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class DefaultSettings:
    """Typed view of the default settings document."""

    user_agent: str
    log_file: str
    log_max_size_mb: int
    logs_to_keep: int
    status_path: str
    email_reports: bool
    smtp_server: str
    from_address: str
    to_address: str
    subject_prefix: str
    makecatalogs: bool
    version: str

    @property
    def status_file(self) -> Path:
        return Path(self.status_path).expanduser()

    @staticmethod
    def from_document(doc: Value) -> "DefaultSettings":
        """Build settings from a checked default settings document.

        Raises:
            SettingsError: If the document fails :func:`check_default_settings`
                or a size or count setting is not a number.
        """
        check_default_settings(doc)
        return DefaultSettings(
            user_agent=get_string(doc, "userAgent"),
            log_file=get_string(doc, "logFile"),
            log_max_size_mb=_number(doc, "logFileMaxSizeInMBs"),
            logs_to_keep=_number(doc, "maxNoOfLogsToKeep"),
            status_path=get_string(doc, "statusPlistPath"),
            email_reports=_flag(get(doc, "emailReports")),
            smtp_server=get_string(doc, "smtpServer"),
            from_address=get_string(doc, "fromAddress"),
            to_address=get_string(doc, "toAddress"),
            subject_prefix=get_string(doc, "subjectPrefix"),
            makecatalogs=_flag(get(doc, "makecatalogs")),
            version=get_string(doc, "version"),
        )

    def overlay(self, app: "AppDocument") -> "DefaultSettings":
        """Return settings with the application's own overrides applied."""
        changes = {}
        for key, field_name in _OVERRIDES.items():
            value = app.setting(key)
            if value is None:
                continue
            if field_name in _BOOL_FIELDS:
                changes[field_name] = _flag(value)
            else:
                text = get_string(value)
                if text:
                    changes[field_name] = text
        if changes:
            logger.debug("%s overrides %s", app.name, ", ".join(sorted(changes)))
        return replace(self, **changes)
