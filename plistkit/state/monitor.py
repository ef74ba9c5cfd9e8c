"""Checking remote downloads for changes."""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx

from ..core.log import get_logger
from .data import AppDocument

logger = get_logger(__name__)


class RemoteMonitor:
    """Reads the ``Last-Modified`` header of a download with a HEAD request.

    Args:
        user_agent: User-Agent header sent with every request.
        client: Optional preconfigured client (tests pass one with a mock
            transport).
    """

    def __init__(self, user_agent: str, client: Optional[httpx.Client] = None):
        self.user_agent = user_agent
        self._client = client or httpx.Client(timeout=20.0)

    def close(self) -> None:
        self._client.close()

    def head(self, url: str) -> Optional[httpx.Response]:
        """HEAD ``url`` following redirects; ``None`` unless the answer is 200."""
        try:
            resp = self._client.head(
                url,
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            logger.error("Problem accessing %s: %s", url, exc)
            return None
        if resp.status_code != 200:
            logger.error("Problem accessing %s: HTTP %d", url, resp.status_code)
            return None
        return resp

    def final_url(self, url: str) -> Optional[str]:
        """URL reached after following redirects."""
        resp = self.head(url)
        return str(resp.url) if resp is not None else None

    def last_modified(self, url: str) -> Optional[datetime]:
        """Modification date reported for ``url`` in UTC, or ``None``."""
        resp = self.head(url)
        if resp is None:
            return None
        header = resp.headers.get("Last-Modified")
        if not header:
            logger.error("Modification date of %s not found", url)
            return None
        try:
            moment = parsedate_to_datetime(header)
        except (TypeError, ValueError):
            logger.error("Could not read Last-Modified %r of %s", header, url)
            return None
        if moment.tzinfo is None:
            return moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(timezone.utc)

    def has_changed(
        self,
        app: AppDocument,
        remote: Optional[datetime],
        ignore_mod_date: bool = False,
    ) -> bool:
        """True if ``remote`` is newer than the date stored for ``app``.

        Unknown dates count as changed, as does ``ignore_mod_date``.
        """
        if ignore_mod_date:
            return True
        stored = app.modified_date
        if remote is None or stored is None:
            return True
        return remote > stored
