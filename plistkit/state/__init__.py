"""Application state kept in property list documents.

Each monitored application has a data document describing what to watch
and recording its import history. A shared status document collects the
last status of every application.
"""

from .data import AppDocument, normalize_type
from .discovery import find_data_documents
from .errors import DataDocumentError, SettingsError, StateError
from .monitor import RemoteMonitor
from .settings import DefaultSettings, check_default_settings
from .status import StatusTracker

__all__ = [
    "AppDocument",
    "normalize_type",
    "find_data_documents",
    "DataDocumentError",
    "SettingsError",
    "StateError",
    "RemoteMonitor",
    "DefaultSettings",
    "check_default_settings",
    "StatusTracker",
]
