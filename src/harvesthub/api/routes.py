"""
API routes.

Endpoints:
- POST `/api/farmers/nearby`: main locator entrypoint.
- GET  `/api/farmers/unlocated`: farmers that still need to set a location.
- GET  `/api/geo/farmers`: map-marker points for located farmers.
- GET  `/api/settings`: public locator settings (directory credentials redacted).
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import APIRouter, HTTPException

from harvesthub.config.settings import get_settings
from harvesthub.directory.loader import load_candidates
from harvesthub.domain.models import FarmerCandidate, LocatorQuery, LocatorResult
from harvesthub.locator.pipeline import partition_located
from harvesthub.locator.service import locate, to_unlocated_farmer

logger = logging.getLogger(__name__)

router = APIRouter()


def _directory() -> list[FarmerCandidate]:
    """Fresh directory snapshot per request (tests monkeypatch this)."""
    return load_candidates(get_settings())


@router.post("/api/farmers/nearby", response_model=LocatorResult)
def post_nearby_farmers(query: LocatorQuery) -> LocatorResult:
    """Rank farmers near the buyer and return them with the effective query."""
    t0 = time.monotonic()
    request_id = uuid.uuid4().hex
    settings = get_settings()
    try:
        result = locate(query, settings=settings, candidates=_directory())
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": str(e)},
        ) from e
    except Exception as e:
        logger.exception("Nearby farmers request %s failed", request_id)
        raise HTTPException(
            status_code=500,
            detail={"code": "INTERNAL_ERROR", "message": str(e)},
        ) from e

    debug = {"request_id": request_id, "api_ms": int((time.monotonic() - t0) * 1000)}
    return result.model_copy(update={"meta": {**(result.meta or {}), "debug": debug}})


@router.get("/api/farmers/unlocated")
def get_unlocated_farmers() -> dict:
    """Return farmers without usable coordinates so they can be nudged to set one."""
    _, unlocated = partition_located(_directory())
    items = [to_unlocated_farmer(c).model_dump(mode="json") for c in unlocated]
    return {"count": len(items), "farmers": items}


@router.get("/api/geo/farmers")
def get_geo_farmers(ids: str | None = None) -> dict:
    """Return map-friendly farmer points (optionally filtered by IDs)."""
    want: set[str] | None = None
    if ids:
        want = {s.strip() for s in ids.split(",") if s.strip()}

    located, _ = partition_located(_directory())
    out = []
    for f in located:
        if want is not None and f.id not in want:
            continue
        coord = f.coordinate
        out.append(
            {
                "id": f.id,
                "name": f.name,
                "lat": coord.lat,
                "lon": coord.lon,
                "address": f.display_address,
                "product_count": f.product_count,
            }
        )
    return {"farmers": out}


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return safe-to-expose settings for UI defaults (directory source removed)."""
    settings = get_settings()
    data = settings.model_dump(mode="json")
    return {
        "app": {"timezone": data["app"]["timezone"]},
        "locator": data["locator"],
    }
