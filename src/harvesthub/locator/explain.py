"""
Small formatting helpers.

Used by the CLI to print compact summaries of locator results.
"""

from __future__ import annotations

from harvesthub.domain.models import RankedFarmer, UnlocatedFarmer


def product_preview(names: list[str], limit: int = 3) -> str:
    """First `limit` product names, with a "+N more" suffix when truncated."""
    if not names or limit <= 0:
        return ""
    shown = ", ".join(names[:limit])
    extra = len(names) - limit
    return f"{shown} +{extra} more" if extra > 0 else shown


def one_line_summary(item: RankedFarmer) -> str:
    """Render a compact single-line summary for a ranked farmer."""
    count = item.farmer.product_count
    parts = [f"{item.distance_km:.1f} km", f"{count} product{'' if count == 1 else 's'}"]
    address = item.farmer.display_address
    if address:
        parts.append(address)
    return " | ".join(parts)


def unlocated_summary(item: UnlocatedFarmer) -> str:
    if item.reason == "unparsed_text" and item.raw_text:
        why = f'unrecognized location "{item.raw_text}"'
    elif item.reason == "invalid":
        why = "invalid coordinates"
    else:
        why = "needs to set location"
    return f"{item.product_count} products | {why}"
