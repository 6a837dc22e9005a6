"""
Remote farmer directory client.

Fetches the same raw farmer documents as the local JSON file from an HTTP endpoint
(`directory.url`), optionally with a bearer token, and normalizes them.
"""

from __future__ import annotations

import logging

import httpx

from harvesthub.config.settings import Settings
from harvesthub.core.http import get_json
from harvesthub.directory.loader import extract_records
from harvesthub.directory.normalize import normalize_farmer_records
from harvesthub.domain.models import FarmerCandidate

logger = logging.getLogger(__name__)


class RemoteDirectoryClient:
    """Reads farmer records from `settings.directory.url`."""

    def __init__(self, settings: Settings, *, transport: httpx.BaseTransport | None = None):
        if not settings.directory.url:
            raise ValueError("directory.url is not configured")
        self._settings = settings
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        token = self._settings.directory.token
        return {"Authorization": f"Bearer {token}"} if token else {}

    def fetch(self) -> list[FarmerCandidate]:
        """Fetch and normalize the directory.

        Raises:
            httpx.HTTPError: On transport errors or non-2xx responses.
            ValueError: On a non-JSON body or an unexpected payload shape.
        """
        url = str(self._settings.directory.url)
        logger.info("Fetching farmer directory from %s", url)
        payload = get_json(
            url,
            headers=self._headers(),
            timeout_seconds=self._settings.app.http_timeout_seconds,
            transport=self._transport,
        )
        farmers = normalize_farmer_records(extract_records(payload))
        logger.info("Fetched %d farmers from remote directory.", len(farmers))
        return farmers
