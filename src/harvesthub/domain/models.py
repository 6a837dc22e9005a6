"""
Domain models (Pydantic).

These types are the contract between layers:
- directory records (`FarmerCandidate` with a `Located | Unlocated` location)
- API/CLI inputs (`LocatorQuery`)
- ranked output (`RankedFarmer`, `LocatorResult`)

A farmer's location is a tagged union rather than a bag of optional fields, so
"has usable coordinates" is decided once, when a record is normalized, and the
locator can branch on the type.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from harvesthub.core.geo import GeoPoint as CoreGeoPoint

SortKey = Literal["distance", "product_count"]

# The map page's select box used "products" for the product-count ordering.
SORT_KEY_ALIASES: dict[str, SortKey] = {"products": "product_count", "productCount": "product_count"}

UnlocatedReason = Literal["missing", "unparsed_text", "invalid"]


def normalize_sort_key(value: Any) -> Any:
    """Map accepted aliases onto the canonical `SortKey` values (other values pass through for validation)."""
    if isinstance(value, str):
        stripped = value.strip()
        return SORT_KEY_ALIASES.get(stripped, stripped)
    return value


class Coordinate(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(..., ge=-180, le=180, allow_inf_nan=False)

    def to_point(self) -> CoreGeoPoint:
        return CoreGeoPoint(lat=self.lat, lon=self.lon)


class Located(BaseModel):
    """Farmer has completed location setup."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["located"] = "located"
    coordinate: Coordinate
    address: str | None = None


class Unlocated(BaseModel):
    """Farmer has no usable coordinates; `raw_text` keeps a legacy free-text location if there was one."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unlocated"] = "unlocated"
    reason: UnlocatedReason = "missing"
    raw_text: str | None = None


FarmerLocation = Annotated[Union[Located, Unlocated], Field(discriminator="kind")]


class FarmerCandidate(BaseModel):
    """Read-only snapshot of a farmer as seen by one locator call."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    location: FarmerLocation = Field(default_factory=Unlocated)
    product_count: int = Field(0, ge=0)

    email: str | None = None
    contact: str | None = None
    address: str | None = None
    product_names: list[str] = Field(default_factory=list)

    @property
    def coordinate(self) -> Coordinate | None:
        if isinstance(self.location, Located):
            return self.location.coordinate
        return None

    @property
    def display_address(self) -> str | None:
        if isinstance(self.location, Located) and self.location.address:
            return self.location.address
        return self.address


class RankedFarmer(BaseModel):
    """A located farmer plus its distance from the buyer."""

    model_config = ConfigDict(frozen=True)

    farmer: FarmerCandidate
    coordinate: Coordinate
    distance_km: float = Field(..., ge=0)


class LocatorQuery(BaseModel):
    """Request payload for a nearby-farmers run. `None` fields fall back to configured defaults."""

    buyer: Coordinate
    radius_km: float | None = Field(default=None, allow_inf_nan=False)
    sort_by: SortKey | None = None
    max_results: int | None = Field(default=None, ge=1, le=500)
    include_unlocated: bool = True
    settings_overrides: dict[str, Any] | None = None

    @field_validator("sort_by", mode="before")
    @classmethod
    def _normalize_sort_by(cls, value: Any) -> Any:
        return normalize_sort_key(value)


class UnlocatedFarmer(BaseModel):
    """A farmer that still needs to set a location, as listed next to the map."""

    id: str
    name: str
    product_count: int
    reason: UnlocatedReason
    raw_text: str | None = None


class LocatorResult(BaseModel):
    """Ranked farmers within the radius plus the effective query that produced them."""

    generated_at: datetime
    query: LocatorQuery
    results: list[RankedFarmer]
    unlocated: list[UnlocatedFarmer] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)
