from __future__ import annotations

# Orchestrator for a nearby-farmers query. It wires together:
# - domain input (LocatorQuery)
# - the farmer directory (local file or remote endpoint)
# - the pure locator pipeline (filter -> annotate -> radius -> sort)
# - the response payload (LocatorResult)
#
# The pipeline itself stays pure; defaults, clamping and I/O all happen here.

import logging
import time
from datetime import datetime
from zoneinfo import ZoneInfo

from harvesthub.config.overrides import apply_settings_overrides
from harvesthub.config.settings import Settings, get_settings
from harvesthub.directory.loader import load_candidates
from harvesthub.domain.models import (
    FarmerCandidate,
    LocatorQuery,
    LocatorResult,
    SortKey,
    UnlocatedFarmer,
    Unlocated,
)
from harvesthub.locator.pipeline import partition_located, rank_farmers

logger = logging.getLogger(__name__)


def effective_radius_km(query: LocatorQuery, settings: Settings) -> float:
    """Requested radius, or the configured default; never above the configured maximum."""
    radius = query.radius_km if query.radius_km is not None else settings.locator.default_radius_km
    return min(float(radius), float(settings.locator.max_radius_km))


def effective_sort_by(query: LocatorQuery, settings: Settings) -> SortKey:
    return query.sort_by or settings.locator.default_sort_by


def effective_max_results(query: LocatorQuery, settings: Settings) -> int:
    return int(query.max_results or settings.locator.max_results_default)


def to_unlocated_farmer(candidate: FarmerCandidate) -> UnlocatedFarmer:
    location = candidate.location
    if isinstance(location, Unlocated):
        reason, raw_text = location.reason, location.raw_text
    else:
        # Located but with coordinates that fail validation (unvalidated construction).
        reason, raw_text = "invalid", None
    return UnlocatedFarmer(
        id=candidate.id,
        name=candidate.name,
        product_count=candidate.product_count,
        reason=reason,
        raw_text=raw_text,
    )


def locate(
    query: LocatorQuery,
    *,
    settings: Settings | None = None,
    candidates: list[FarmerCandidate] | None = None,
) -> LocatorResult:
    """Rank farmers near `query.buyer` using configured defaults for anything the query leaves out."""
    t0 = time.monotonic()
    timings_ms: dict[str, int] = {}

    # ---- Step 1: settings for this run (injected in tests, else YAML + per-request overrides) ----
    settings = settings or get_settings()
    settings = apply_settings_overrides(settings, query.settings_overrides)

    # ---- Step 2: effective knobs (precedence: request -> config default) ----
    radius_km = effective_radius_km(query, settings)
    sort_by = effective_sort_by(query, settings)
    max_results = effective_max_results(query, settings)
    if query.radius_km is not None and radius_km < query.radius_km:
        logger.info("Clamped radius %.1f km to configured maximum %.1f km.", query.radius_km, radius_km)

    normalized_query = query.model_copy(
        update={"radius_km": radius_km, "sort_by": sort_by, "max_results": max_results}
    )

    # ---- Step 3: directory snapshot (unless the caller injected one) ----
    if candidates is None:
        candidates = load_candidates(settings)
    timings_ms["load_directory"] = int((time.monotonic() - t0) * 1000)

    # ---- Step 4: rank ----
    t_rank = time.monotonic()
    ranked = rank_farmers(query.buyer, candidates, radius_km, sort_by)
    total_in_radius = len(ranked)
    ranked = ranked[:max_results]
    timings_ms["rank"] = int((time.monotonic() - t_rank) * 1000)

    _, unlocated = partition_located(candidates)
    unlocated_out = [to_unlocated_farmer(c) for c in unlocated] if query.include_unlocated else []

    logger.info(
        "Located %d/%d farmers within %.1f km of (%.4f, %.4f) sorted by %s (%d without location).",
        total_in_radius,
        len(candidates),
        radius_km,
        query.buyer.lat,
        query.buyer.lon,
        sort_by,
        len(unlocated),
    )

    timings_ms["total"] = int((time.monotonic() - t0) * 1000)
    return LocatorResult(
        generated_at=datetime.now(ZoneInfo(settings.app.timezone)),
        query=normalized_query,
        results=ranked,
        unlocated=unlocated_out,
        meta={
            "candidate_count": len(candidates),
            "located_count": len(candidates) - len(unlocated),
            "unlocated_count": len(unlocated),
            "within_radius_count": total_in_radius,
            "truncated": total_in_radius > len(ranked),
            "timings_ms": timings_ms,
        },
    )
