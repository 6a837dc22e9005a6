"""
Farmer record normalization.

Directory documents come in several shapes, accumulated over time:
- `lat` / `lng` at the document root (numbers or numeric strings) -- the farm location
  the farmer set explicitly, so it wins when present
- a nested `location` object `{lat, lng, address}`
- a legacy free-text `location` string (e.g. "Olongapo"), which has no coordinates
- nothing at all (profile saved before location setup)

`normalize_farmer_record` turns one raw mapping into a `FarmerCandidate` whose
location is either `Located` or `Unlocated(reason=...)`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from harvesthub.core.geo import is_valid_coordinate
from harvesthub.domain.models import Coordinate, FarmerCandidate, Located, Unlocated

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _first_str(raw: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        v = raw.get(key)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def _lon_of(raw: Mapping[str, Any]) -> Any:
    for key in ("lng", "lon", "longitude"):
        if key in raw:
            return raw[key]
    return None


def _lat_of(raw: Mapping[str, Any]) -> Any:
    for key in ("lat", "latitude"):
        if key in raw:
            return raw[key]
    return None


def _has_pair(raw: Mapping[str, Any]) -> bool:
    return _lat_of(raw) is not None and _lon_of(raw) is not None


def parse_location(raw: Mapping[str, Any]) -> Located | Unlocated:
    """Resolve a directory record's location into the tagged union."""
    fallback_address = _first_str(raw, "address")
    nested = raw.get("location")

    if _has_pair(raw):
        source: Mapping[str, Any] = raw
        address = fallback_address
        if not address and isinstance(nested, Mapping):
            address = _first_str(nested, "address")
    elif isinstance(nested, Mapping) and _has_pair(nested):
        source = nested
        address = _first_str(nested, "address") or fallback_address
    elif isinstance(nested, str) and nested.strip():
        return Unlocated(reason="unparsed_text", raw_text=nested.strip())
    else:
        return Unlocated(reason="missing")

    lat = _to_float(_lat_of(source))
    lon = _to_float(_lon_of(source))
    if lat is None or lon is None or not is_valid_coordinate(lat, lon):
        return Unlocated(reason="invalid")
    return Located(coordinate=Coordinate(lat=lat, lon=lon), address=address)


def _product_fields(raw: Mapping[str, Any]) -> tuple[int, list[str]]:
    products = raw.get("products")
    names: list[str] = []
    if isinstance(products, list):
        for p in products:
            if isinstance(p, Mapping):
                name = _first_str(p, "name", "productName", "title")
                if name:
                    names.append(name)
            elif isinstance(p, str) and p.strip():
                names.append(p.strip())

    for key in ("product_count", "productsCount", "productCount"):
        v = raw.get(key)
        if isinstance(v, int) and not isinstance(v, bool) and v >= 0:
            return v, names
    if isinstance(products, list):
        return len(products), names
    return 0, names


def normalize_farmer_record(raw: Mapping[str, Any]) -> FarmerCandidate:
    """Build a `FarmerCandidate` from one raw directory document.

    Raises:
        ValueError: If the record has no usable id (pydantic's ValidationError is a ValueError).
    """
    farmer_id = _first_str(raw, "id", "uid", "farmer_id")
    if not farmer_id:
        raise ValueError("farmer record is missing an id")

    product_count, product_names = _product_fields(raw)
    return FarmerCandidate(
        id=farmer_id,
        name=_first_str(raw, "name", "displayName", "email") or farmer_id,
        location=parse_location(raw),
        product_count=product_count,
        email=_first_str(raw, "email"),
        contact=_first_str(raw, "contact", "phone"),
        address=_first_str(raw, "address"),
        product_names=product_names,
    )


def normalize_farmer_records(records: Iterable[Any]) -> list[FarmerCandidate]:
    """Normalize a batch, skipping (and logging) records that cannot be used at all."""
    out: list[FarmerCandidate] = []
    skipped = 0
    for i, raw in enumerate(records):
        if not isinstance(raw, Mapping):
            skipped += 1
            logger.warning("Skipping farmer record #%d: expected an object, got %s", i, type(raw).__name__)
            continue
        try:
            out.append(normalize_farmer_record(raw))
        except (ValueError, ValidationError) as e:
            skipped += 1
            logger.warning("Skipping farmer record #%d: %s", i, str(e))
    if skipped:
        logger.info("Normalized %d farmer records (%d skipped).", len(out), skipped)
    return out
