from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from wanderer.app import app
from wanderer.catalog.store import StorageError
from wanderer.onboarding.models import UserPreferences
from wanderer.recommendations.retrieval import (
    nearby_in_district,
    personalized_feed,
    recommended_accommodations,
)

pytestmark = pytest.mark.usefixtures("fresh_state")

ANSWERS = [
    ["Nature Lover", "Adventure Seeker"],
    ["Hiking"],
    "District 2",
    "Moderate",
    "Hidden Gems",
    False,
    ["Mountain"],
    "Fast",
    "Couple",
    True,
]


def _login(c):
    c.post("/auth/login", json={"email": "traveler@wanderer.ph", "password": "traveler123"})


def _onboard(c, answers=ANSWERS):
    for value in answers:
        assert c.post("/onboarding/answer", json={"value": value}).status_code == 200
        assert c.post("/onboarding/next").status_code == 200
    return c.post("/onboarding/complete")


def _names(body):
    return [item["entity"]["name"] for item in body["recommendations"]]


# ── Onboarding flow ──────────────────────────────────────────────────────


def test_onboarding_starts_at_first_step():
    c = TestClient(app)
    _login(c)
    body = c.get("/onboarding").json()
    assert body["step"] == 1
    assert body["field"] == "traveler_type"
    assert body["can_proceed"] is False


def test_onboarding_next_blocked_without_answer():
    c = TestClient(app)
    _login(c)
    assert c.post("/onboarding/next").status_code == 400


def test_onboarding_rejects_unknown_option():
    c = TestClient(app)
    _login(c)
    assert c.post("/onboarding/answer", json={"value": ["Astronaut"]}).status_code == 400


def test_onboarding_back_keeps_answers():
    c = TestClient(app)
    _login(c)
    c.post("/onboarding/answer", json={"value": ["Food Explorer"]})
    c.post("/onboarding/next")
    body = c.post("/onboarding/back").json()
    assert body["step"] == 1
    assert body["value"] == ["Food Explorer"]


def test_onboarding_complete_saves_preferences():
    c = TestClient(app)
    _login(c)
    resp = _onboard(c)
    assert resp.status_code == 200
    assert resp.json()["user"]["onboarding_complete"] is True
    prefs = c.get("/profile").json()["user_preferences"]
    assert prefs["albay_district"] == "District 2"
    assert prefs["travel_pace"] == "Fast"


def test_onboarding_complete_too_early():
    c = TestClient(app)
    _login(c)
    assert c.post("/onboarding/complete").status_code == 400
    assert c.get("/auth/me").json()["onboarding_complete"] is False


def test_abandoned_onboarding_stores_nothing():
    c = TestClient(app)
    _login(c)
    c.post("/onboarding/answer", json={"value": ["Nature Lover"]})
    c.post("/onboarding/next")
    assert c.delete("/onboarding").status_code == 200
    assert c.get("/onboarding").json()["step"] == 1
    assert c.get("/auth/me").json()["onboarding_complete"] is False


# ── Recommendation surfaces ──────────────────────────────────────────────


def test_feed_after_onboarding():
    c = TestClient(app)
    _login(c)
    _onboard(c)
    body = c.get("/recommendations/feed").json()
    scores = [item["score"] for item in body["recommendations"]]
    assert 0 < len(scores) <= 12
    assert all(s > 0 for s in scores)
    assert scores == sorted(scores, reverse=True)


def test_feed_empty_without_opt_in():
    c = TestClient(app)
    _login(c)
    _onboard(c, [*ANSWERS[:-1], False])
    assert c.get("/recommendations/feed").json()["recommendations"] == []


def test_feed_limit_follows_pace():
    prefs = UserPreferences(auto_recommendations=True, travel_pace="Slow")
    assert len(personalized_feed(prefs).recommendations) == 6
    prefs = UserPreferences(auto_recommendations=True, travel_pace="Balanced")
    assert len(personalized_feed(prefs).recommendations) == 8


def test_nearby_orders_by_rating():
    resp = nearby_in_district(UserPreferences(albay_district="District 2"))
    assert _names(resp.model_dump()) == [
        "Mayon Volcano Natural Park",
        "Daraga Church",
        "Cagsawa Ruins",
        "Lignon Hill Nature Park",
        "Quitinday Green Hills",
        "Sumlang Lake",
    ]
    assert resp.total_candidates == 8


def test_nearby_any_district_and_unset():
    assert len(nearby_in_district(UserPreferences(albay_district="Any District")).recommendations) == 6
    assert nearby_in_district(UserPreferences()).recommendations == []


def test_accommodation_shortlist_filters_budget_and_district():
    prefs = UserPreferences(albay_district="District 2", budget_range="Moderate")
    names = _names(recommended_accommodations(prefs).model_dump())
    assert names == ["Daraga Garden Villa", "Hotel St. Ellis", "Casablanca Suites"]


def test_onboarding_surfaces_limits():
    c = TestClient(app)
    _login(c)
    _onboard(c)
    spots = c.get("/recommendations/onboarding/spots").json()
    stays = c.get("/recommendations/onboarding/accommodations").json()
    assert len(spots["recommendations"]) == 12
    assert len(stays["recommendations"]) == 10
    assert stays["recommendations"][0]["entity"]["name"] == "Daraga Garden Villa"


def test_storage_failure_returns_notice():
    with patch(
        "wanderer.recommendations.retrieval._fetch",
        side_effect=StorageError("connection reset"),
    ):
        resp = personalized_feed(UserPreferences(auto_recommendations=True))
    assert resp.recommendations == []
    assert resp.notice == "Failed to load recommendations"


# ── Auto-select ──────────────────────────────────────────────────────────


def test_auto_select_spots_become_favorites():
    c = TestClient(app)
    _login(c)
    _onboard(c)
    resp = c.post("/recommendations/onboarding/spots/select", json={})
    assert resp.status_code == 200
    assert len(resp.json()["selected"]) == 6
    assert len(c.get("/favorites").json()["spot_ids"]) == 6


def test_auto_select_accommodations_create_itinerary():
    c = TestClient(app)
    _login(c)
    _onboard(c)
    resp = c.post("/recommendations/onboarding/accommodations/select", json={})
    assert resp.status_code == 200
    itineraries = c.get("/itineraries").json()
    assert len(itineraries) == 1
    assert itineraries[0]["name"] == "My Accommodation Itinerary"
    assert len(itineraries[0]["items"]) == 4
    assert all(item["type"] == "accommodation" for item in itineraries[0]["items"])
    assert itineraries[0]["id"] == resp.json()["itinerary_id"]


def test_manual_selection_keeps_only_offered_ids():
    c = TestClient(app)
    _login(c)
    _onboard(c)
    offered = c.get("/recommendations/onboarding/spots").json()["recommendations"]
    pick = offered[0]["entity"]["id"]
    resp = c.post("/recommendations/onboarding/spots/select", json={"ids": [pick, "not-offered"]})
    assert resp.json()["selected"] == [pick]


def test_empty_selection_rejected():
    c = TestClient(app)
    _login(c)
    _onboard(c)
    resp = c.post("/recommendations/onboarding/spots/select", json={"ids": []})
    assert resp.status_code == 400
