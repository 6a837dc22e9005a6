"""
Farmer directory loader.

The local directory is a JSON file (default: `data/farmers/farmers.json`) holding a list of
raw farmer documents, or an object with a `farmers` list. Records are normalized into typed
`FarmerCandidate` models so the locator never sees the loose source shapes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from harvesthub.config.settings import Settings
from harvesthub.core.env import resolve_project_path
from harvesthub.directory.normalize import normalize_farmer_records
from harvesthub.domain.models import FarmerCandidate


def extract_records(payload: Any) -> list[Any]:
    """Return the list of raw records from a directory payload."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("farmers"), list):
        return payload["farmers"]
    raise ValueError("Invalid farmer directory shape; expected a list or an object with a 'farmers' list.")


def load_directory(path: str | Path) -> list[FarmerCandidate]:
    """Load and normalize a farmer directory JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return normalize_farmer_records(extract_records(payload))


def load_candidates(settings: Settings) -> list[FarmerCandidate]:
    """Load farmers from the configured source (remote URL when set, else the local file)."""
    if settings.directory.url:
        from harvesthub.directory.remote import RemoteDirectoryClient

        return RemoteDirectoryClient(settings).fetch()
    return load_directory(settings.directory.path)
