import pytest

from harvesthub.config.settings import get_settings
from harvesthub.domain.models import Coordinate, FarmerCandidate, Located, LocatorQuery, Unlocated
from harvesthub.locator.service import locate

MANILA = Coordinate(lat=14.5995, lon=120.9842)


def _farmers() -> list[FarmerCandidate]:
    return [
        FarmerCandidate(
            id="qc",
            name="Quezon City Greens",
            location=Located(coordinate=Coordinate(lat=14.6760, lon=121.0437)),
            product_count=4,
        ),
        FarmerCandidate(
            id="makati",
            name="Makati Rooftop",
            location=Located(coordinate=Coordinate(lat=14.5547, lon=121.0244)),
            product_count=10,
        ),
        FarmerCandidate(
            id="lipa",
            name="Lipa Coffee",
            location=Located(coordinate=Coordinate(lat=13.9411, lon=121.1631)),
            product_count=1,
        ),
        FarmerCandidate(
            id="olongapo",
            name="Galo Bels",
            location=Unlocated(reason="unparsed_text", raw_text="Olongapo"),
            product_count=2,
        ),
        FarmerCandidate(id="new", name="Dale Lianne"),
    ]


def test_locate_uses_configured_defaults():
    result = locate(LocatorQuery(buyer=MANILA), settings=get_settings(), candidates=_farmers())

    assert result.query.radius_km == 10
    assert result.query.sort_by == "distance"
    assert result.query.max_results == 50
    # Quezon City is ~10.65 km out, just past the 10 km default.
    assert [r.farmer.id for r in result.results] == ["makati"]
    assert result.meta["candidate_count"] == 5
    assert result.meta["unlocated_count"] == 2
    assert result.meta["within_radius_count"] == 1


def test_locate_reports_unlocated_farmers():
    result = locate(LocatorQuery(buyer=MANILA), settings=get_settings(), candidates=_farmers())

    assert [(u.id, u.reason) for u in result.unlocated] == [("olongapo", "unparsed_text"), ("new", "missing")]
    assert result.unlocated[0].raw_text == "Olongapo"

    hidden = locate(
        LocatorQuery(buyer=MANILA, include_unlocated=False), settings=get_settings(), candidates=_farmers()
    )
    assert hidden.unlocated == []


def test_locate_clamps_radius_to_configured_maximum():
    result = locate(LocatorQuery(buyer=MANILA, radius_km=500), settings=get_settings(), candidates=_farmers())
    assert result.query.radius_km == 50
    # Lipa is roughly 75 km from Manila.
    assert "lipa" not in [r.farmer.id for r in result.results]


def test_locate_non_positive_radius_returns_no_results():
    result = locate(LocatorQuery(buyer=MANILA, radius_km=0), settings=get_settings(), candidates=_farmers())
    assert result.results == []
    assert len(result.unlocated) == 2


def test_locate_sort_alias_and_truncation():
    query = LocatorQuery(buyer=MANILA, radius_km=12, sort_by="products", max_results=1)
    result = locate(query, settings=get_settings(), candidates=_farmers())

    assert result.query.sort_by == "product_count"
    assert [r.farmer.id for r in result.results] == ["makati"]
    assert result.meta["within_radius_count"] == 2
    assert result.meta["truncated"] is True


def test_locate_applies_per_request_settings_overrides():
    query = LocatorQuery(buyer=MANILA, settings_overrides={"locator": {"default_radius_km": 12}})
    result = locate(query, settings=get_settings(), candidates=_farmers())
    assert result.query.radius_km == 12
    assert [r.farmer.id for r in result.results] == ["makati", "qc"]


def test_locate_rejects_disallowed_overrides():
    query = LocatorQuery(buyer=MANILA, settings_overrides={"directory": {"url": "http://evil.test"}})
    with pytest.raises(ValueError, match="disallowed key"):
        locate(query, settings=get_settings(), candidates=_farmers())


def test_locate_loads_directory_when_candidates_not_injected(monkeypatch):
    monkeypatch.setattr("harvesthub.locator.service.load_candidates", lambda settings: _farmers()[:1])
    result = locate(LocatorQuery(buyer=MANILA, radius_km=11), settings=get_settings())
    assert [r.farmer.id for r in result.results] == ["qc"]


def test_query_rejects_unknown_sort_key():
    with pytest.raises(ValueError):
        LocatorQuery(buyer=MANILA, sort_by="price")
