from __future__ import annotations

import pytest

from harvesthub.config.overrides import apply_settings_overrides
from harvesthub.config.settings import LocatorSettings, get_settings


def test_packaged_defaults_match_map_page_controls():
    locator = get_settings().locator
    assert locator.default_radius_km == 10
    assert locator.max_radius_km == 50
    assert locator.default_sort_by == "distance"


def test_apply_settings_overrides_returns_same_object_when_none():
    settings = get_settings()
    assert apply_settings_overrides(settings, None) is settings
    assert apply_settings_overrides(settings, {}) is settings


def test_apply_settings_overrides_can_override_allowed_locator_knobs():
    settings = get_settings()
    out = apply_settings_overrides(settings, {"locator": {"default_radius_km": 25, "default_sort_by": "product_count"}})

    assert out.locator.default_radius_km == 25
    assert out.locator.default_sort_by == "product_count"
    # The cached settings object is shared across requests and must not change.
    assert settings.locator.default_radius_km == 10


def test_apply_settings_overrides_rejects_directory_source_with_clear_path():
    settings = get_settings()
    with pytest.raises(ValueError, match=r"settings_overrides contains a disallowed key: 'directory'"):
        apply_settings_overrides(settings, {"directory": {"path": "/etc/passwd"}})
    with pytest.raises(ValueError, match=r"locator\.fallback_buyer_location"):
        apply_settings_overrides(settings, {"locator": {"fallback_buyer_location": {"lat": 0, "lon": 0}}})


def test_apply_settings_overrides_rejects_wrong_value_shapes_for_restricted_subtrees():
    with pytest.raises(ValueError, match=r"settings_overrides key 'locator' must be a mapping"):
        apply_settings_overrides(get_settings(), {"locator": 1})


def test_apply_settings_overrides_revalidates_ranges():
    with pytest.raises(ValueError):
        apply_settings_overrides(get_settings(), {"locator": {"default_radius_km": -1}})
    with pytest.raises(ValueError):
        apply_settings_overrides(get_settings(), {"locator": {"default_sort_by": "price"}})


def test_default_radius_cannot_exceed_max_radius():
    with pytest.raises(ValueError, match="must not exceed"):
        LocatorSettings(default_radius_km=60, max_radius_km=50)
