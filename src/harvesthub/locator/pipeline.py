"""
Distance-ranked farmer locator.

The pipeline is four pure stages run in order on every parameter change:

    filter_located -> annotate -> within_radius -> rank

Nothing here reads settings, the clock, or any stored "current location": the caller
passes the buyer coordinate, radius and sort key explicitly. Every call allocates fresh
lists, so concurrent callers never share state.
"""

from __future__ import annotations

from collections.abc import Iterable
from math import isfinite

from harvesthub.core.geo import haversine_km, is_valid_coordinate
from harvesthub.domain.models import Coordinate, FarmerCandidate, Located, RankedFarmer, SortKey


def _usable_coordinate(candidate: FarmerCandidate) -> Coordinate | None:
    location = candidate.location
    if not isinstance(location, Located):
        return None
    coord = location.coordinate
    # Models built with `model_construct` skip validation, so re-check here.
    if not is_valid_coordinate(coord.lat, coord.lon):
        return None
    return coord


def filter_located(candidates: Iterable[FarmerCandidate]) -> list[FarmerCandidate]:
    """Keep candidates with a valid coordinate, preserving input order."""
    return [c for c in candidates if _usable_coordinate(c) is not None]


def partition_located(
    candidates: Iterable[FarmerCandidate],
) -> tuple[list[FarmerCandidate], list[FarmerCandidate]]:
    """Split candidates into (located, unlocated), both in input order."""
    located: list[FarmerCandidate] = []
    unlocated: list[FarmerCandidate] = []
    for c in candidates:
        (located if _usable_coordinate(c) is not None else unlocated).append(c)
    return located, unlocated


def annotate(buyer: Coordinate, candidates: Iterable[FarmerCandidate]) -> list[RankedFarmer]:
    """Attach the great-circle distance from `buyer` to each located candidate.

    Expects the output of `filter_located`; a candidate without a usable coordinate
    has no distance and is left out.
    """
    origin = buyer.to_point()
    out: list[RankedFarmer] = []
    for c in candidates:
        coord = _usable_coordinate(c)
        if coord is None:
            continue
        out.append(
            RankedFarmer(
                farmer=c,
                coordinate=coord,
                distance_km=haversine_km(origin, coord.to_point()),
            )
        )
    return out


def within_radius(ranked: Iterable[RankedFarmer], radius_km: float) -> list[RankedFarmer]:
    """Keep entries with `distance_km <= radius_km`.

    A non-positive or non-finite radius yields an empty list; slider input can be
    transiently invalid and that should read as "no results", not an error.
    """
    r = float(radius_km)
    if not isfinite(r) or r <= 0:
        return []
    return [item for item in ranked if item.distance_km <= r]


def rank(ranked: Iterable[RankedFarmer], sort_by: SortKey) -> list[RankedFarmer]:
    """Order by ascending distance or descending product count; ties keep input order."""
    if sort_by == "product_count":
        return sorted(ranked, key=lambda item: -item.farmer.product_count)
    return sorted(ranked, key=lambda item: item.distance_km)


def rank_farmers(
    buyer: Coordinate,
    candidates: Iterable[FarmerCandidate],
    radius_km: float,
    sort_by: SortKey = "distance",
) -> list[RankedFarmer]:
    """Run the full locator pipeline and return farmers within `radius_km` of `buyer`."""
    located = filter_located(candidates)
    annotated = annotate(buyer, located)
    nearby = within_radius(annotated, radius_km)
    return rank(nearby, sort_by)
