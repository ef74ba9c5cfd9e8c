"""Recording run status and import history."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from ..core.document import expand_path, load, save
from ..core.log import get_logger
from ..core.mutate import set_forced
from ..core.types import Kind, TypeToken, Value
from .data import HISTORY_KEY, SECTION, AppDocument

logger = get_logger(__name__)


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


class StatusTracker:
    """Writes status and history into data documents and the status document.

    The status document is a dictionary keyed by application name. Every
    update is saved straight away.
    """

    def __init__(self, status_doc: Value, status_path: Union[str, Path]):
        self.status_doc = status_doc
        self.status_path = expand_path(status_path)

    @classmethod
    def open(cls, path: Union[str, Path]) -> "StatusTracker":
        """Open the status document, starting empty if it is missing or unreadable."""
        doc = load(path, expect=Kind.DICT)
        if doc is None:
            logger.info("Starting a new status document at %s", path)
            doc = Value.of_dict()
        return cls(doc, path)

    def _set_both(self, app: AppDocument, keys, kind: TypeToken, value) -> None:
        data_steps = [(TypeToken.DICT, SECTION)] + [(TypeToken.DICT, key) for key in keys]
        status_steps = [(TypeToken.DICT, app.name)] + [(TypeToken.DICT, key) for key in keys]
        set_forced(app.root, data_steps, kind, value)
        set_forced(self.status_doc, status_steps, kind, value)

    def _save(self, app: AppDocument) -> None:
        if not save(app.root, app.path):
            logger.error("Could not save data document %s", app.path)
        if not save(self.status_doc, self.status_path):
            logger.error("Could not save status document %s", self.status_path)

    def update_status(self, app: AppDocument, message: str, now: Optional[datetime] = None) -> None:
        """Set ``lastStatus`` and ``lastRunTime`` for ``app`` and save."""
        moment = _now(now)
        self._set_both(app, ["lastStatus"], TypeToken.STRING, message)
        self._set_both(app, ["lastRunTime"], TypeToken.DATE, moment)
        self._save(app)
        logger.info("%s: %s", app.name, message)

    def record_new_version(
        self,
        app: AppDocument,
        version: str,
        modified_date: datetime,
        initial_url: str,
        final_url: str,
        pkginfo_path: str,
        now: Optional[datetime] = None,
    ) -> None:
        """Add an import history entry for ``version`` and update the status."""
        moment = _now(now)
        entry = [HISTORY_KEY, str(version)]
        self._set_both(app, entry + ["modifiedDate"], TypeToken.DATE, modified_date)
        self._set_both(app, entry + ["importDate"], TypeToken.DATE, moment)
        self._set_both(app, entry + ["InitialURL"], TypeToken.STRING, initial_url)
        self._set_both(app, entry + ["finalURL"], TypeToken.STRING, final_url)
        self._set_both(app, entry + ["pkginfoPath"], TypeToken.STRING, pkginfo_path)
        self._save(app)
        self.update_status(
            app,
            f"v{version} imported into Munki - PkgInfo Path: {pkginfo_path}",
            now=moment,
        )

    def update_last_modified_date(self, app: AppDocument, date: datetime) -> None:
        """Store the download's modification date in the data document."""
        set_forced(
            app.root,
            [(TypeToken.DICT, SECTION), (TypeToken.DICT, "modifiedDate")],
            TypeToken.DATE,
            date,
        )
        if not save(app.root, app.path):
            logger.error("Could not save data document %s", app.path)
