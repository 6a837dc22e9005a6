from __future__ import annotations


# Overrides arrive as JSON payloads, so the helpers accept any Mapping and report bad shapes by dotted path.
from typing import Any, Mapping

from harvesthub.config.settings import Settings

"""
Per-request settings overrides (safe subset).

The API can send `settings_overrides` to tune locator knobs for a single query. This module:
- validates the override payload against a whitelist,
- deep-merges the safe subset onto current settings,
- re-validates with Pydantic so ranges (e.g. radius > 0) still hold.

Security note:
Directory paths, URLs and tokens are never overridable per request.
"""

# Which parts of Settings a single request may change.
#
# - A value of True means "allow any keys under this subtree".
# - A nested dict means "only allow the listed keys, recursively".
#
# `locator.fallback_buyer_location` is left out: the API always receives an explicit buyer coordinate.
ALLOWED_SETTINGS_OVERRIDES_TREE: dict[str, Any] = {
    "locator": {
        "default_radius_km": True,
        "max_radius_km": True,
        "default_sort_by": True,
        "max_results_default": True,
        "product_preview_limit": True,
    },
}


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    # Copy first so the cached base settings dump is never mutated.
    merged: dict[str, Any] = dict(base)
    for key, override_value in override.items():
        # Nested mappings merge key by key; anything else replaces the base value.
        if isinstance(override_value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), override_value)
            continue
        merged[key] = override_value
    return merged


def _filter_overrides(
    overrides: Mapping[str, Any],
    *,
    allowed_tree: Mapping[str, Any],
    path: tuple[str, ...] = (),
) -> dict[str, Any]:
    filtered: dict[str, Any] = {}
    for key, value in overrides.items():
        # Unknown keys are rejected with their full dotted path.
        if key not in allowed_tree:
            dotted_path = ".".join((*path, key))
            raise ValueError(
                f"settings_overrides contains a disallowed key: '{dotted_path}'"
            )

        allowed = allowed_tree[key]
        if allowed is True:
            filtered[key] = value
            continue

        # Restricted subtrees must be mappings so we can keep walking the whitelist.
        if not isinstance(value, Mapping):
            dotted_path = ".".join((*path, key))
            raise ValueError(
                f"settings_overrides key '{dotted_path}' must be a mapping"
            )

        filtered[key] = _filter_overrides(
            value, allowed_tree=allowed, path=(*path, key)
        )
    return filtered


def apply_settings_overrides(
    settings: Settings, overrides: Mapping[str, Any] | None
) -> Settings:
    """Return `settings` with the whitelisted subset of `overrides` applied.

    Raises:
        ValueError: On a disallowed key, a non-mapping value for a restricted subtree,
            or a merged payload that fails validation (pydantic's ValidationError is a ValueError).
    """
    if not overrides:
        return settings

    safe_overrides = _filter_overrides(
        overrides, allowed_tree=ALLOWED_SETTINGS_OVERRIDES_TREE
    )
    merged_payload = _deep_merge(settings.model_dump(mode="python"), safe_overrides)
    return Settings.model_validate(merged_payload)
