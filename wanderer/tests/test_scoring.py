import pytest

from wanderer.onboarding.models import UserPreferences, coerce_preferences
from wanderer.recommendations.config import ACCOMMODATION_WEIGHTS, SPOT_WEIGHTS
from wanderer.recommendations.districts import (
    ANY_DISTRICT,
    district_of,
    in_district,
    municipalities_for,
)
from wanderer.recommendations.scoring import (
    build_rules,
    explain,
    rank,
    score_and_rank,
    score_entity,
)

SPOT_RULES = build_rules(SPOT_WEIGHTS)
STAY_RULES = build_rules(ACCOMMODATION_WEIGHTS)


# ── Districts ────────────────────────────────────────────────────────────


def test_district_match_ignores_case():
    assert in_district("District 2", "LEGAZPI CITY")
    assert in_district("District 2", "legazpi city")
    assert in_district("District 1", None, "Santo Domingo, Albay")


def test_district_unknown_or_any_matches_nothing():
    assert municipalities_for(ANY_DISTRICT) == ()
    assert municipalities_for("District 9") == ()
    assert not in_district(ANY_DISTRICT, "Legazpi City")
    assert not in_district("District 2", None, "")


def test_district_of_municipality():
    assert district_of("Pio Duran") == "District 3"
    assert district_of("Tabaco City") == "District 1"
    assert district_of("Manila") is None


# ── Scoring ──────────────────────────────────────────────────────────────


def test_empty_preferences_and_entity_score_zero():
    assert score_entity(UserPreferences(), {}, SPOT_RULES) == 0
    assert score_entity(UserPreferences(), {}, STAY_RULES) == 0


def test_malformed_entity_fields_do_not_raise():
    prefs = UserPreferences(
        traveler_type=["Nature Lover"],
        scenery_preference=["Beach"],
        albay_district="District 2",
        budget_range="Moderate",
    )
    entity = {"category": 42, "scenery_type": {"a": 1}, "rating": "n/a", "municipality": 7}
    assert score_entity(prefs, entity, SPOT_RULES) == 0


def test_district_bonus_independent_of_casing():
    prefs = UserPreferences(albay_district="District 2")
    upper = score_entity(prefs, {"municipality": "LEGAZPI CITY"}, SPOT_RULES)
    lower = score_entity(prefs, {"municipality": "legazpi city"}, SPOT_RULES)
    assert upper == lower == SPOT_WEIGHTS["district"]


def test_any_district_gives_no_district_bonus():
    prefs = UserPreferences(albay_district=ANY_DISTRICT)
    assert score_entity(prefs, {"municipality": "Legazpi City"}, SPOT_RULES) == 0


def test_traveler_type_counts_each_matching_choice():
    prefs = UserPreferences(traveler_type=["Nature Lover", "Adventure Seeker", "Food Explorer"])
    entity = {"category": ["Nature", "Adventure"]}
    assert score_entity(prefs, entity, SPOT_RULES) == 2 * SPOT_WEIGHTS["traveler_type"]


def test_moderate_budget_only_rewards_matching_entities():
    prefs = UserPreferences(budget_range="Moderate")
    moderate = {"budget_level": "moderate"}
    mid_range = {"price_range": "Mid-range"}
    premium = {"budget_level": "premium"}
    assert score_entity(prefs, moderate, SPOT_RULES) == SPOT_WEIGHTS["budget"]
    assert score_entity(prefs, mid_range, SPOT_RULES) == SPOT_WEIGHTS["budget"]
    assert score_entity(prefs, premium, SPOT_RULES) == 0


def test_budget_without_entity_field_scores_zero():
    prefs = UserPreferences(budget_range="Budget-friendly")
    assert score_entity(prefs, {"name": "No price"}, SPOT_RULES) == 0


def test_popular_requires_explicit_false():
    prefs = UserPreferences(place_preference="Popular")
    assert score_entity(prefs, {"is_hidden_gem": False}, SPOT_RULES) == SPOT_WEIGHTS["popular"]
    assert score_entity(prefs, {}, SPOT_RULES) == 0
    assert score_entity(prefs, {"is_hidden_gem": True}, SPOT_RULES) == 0


def test_hidden_gem_and_both_places():
    gems = UserPreferences(place_preference="Hidden Gems")
    both = UserPreferences(place_preference="Both")
    assert score_entity(gems, {"is_hidden_gem": True}, SPOT_RULES) == SPOT_WEIGHTS["hidden_gem"]
    assert score_entity(both, {}, SPOT_RULES) == SPOT_WEIGHTS["both_places"]


def test_scenery_matches_substring_either_way():
    prefs = UserPreferences(scenery_preference=["Rural/Nature"])
    assert score_entity(prefs, {"scenery_type": ["rural"]}, SPOT_RULES) == SPOT_WEIGHTS["scenery"]
    no_pref = UserPreferences(scenery_preference=["No preference"])
    assert score_entity(no_pref, {"scenery_type": ["no preference"]}, SPOT_RULES) == 0


def test_rating_is_proportional():
    assert score_entity(UserPreferences(), {"rating": 5}, SPOT_RULES) == pytest.approx(2.0)
    assert score_entity(UserPreferences(), {"rating": 2.5}, SPOT_RULES) == pytest.approx(1.0)


def test_accommodation_rating_tiers_and_companions():
    prefs = UserPreferences(travel_companions="Couple")
    villa = {"rating": 4.8, "amenities": ["Romantic Villas"]}
    inn = {"rating": 4.2, "amenities": ["WiFi"]}
    assert score_entity(prefs, villa, STAY_RULES) == 2 + ACCOMMODATION_WEIGHTS["companions"]
    assert score_entity(prefs, inn, STAY_RULES) == 1


def test_explain_lists_contributing_signals():
    prefs = UserPreferences(albay_district="District 2", place_preference="Both")
    parts = explain(prefs, {"municipality": "Daraga"}, SPOT_RULES)
    assert parts == {"district": 3.0, "both_places": 1.0}


def test_build_rules_rejects_unknown_signal():
    with pytest.raises(ValueError):
        build_rules({"moon_phase": 1.0})


# ── Ranking ──────────────────────────────────────────────────────────────


def test_rank_is_stable_for_ties():
    entities = [{"name": n} for n in "ABCDE"]
    ranked = rank(entities, [1.0, 2.0, 1.0, 2.0, 1.0], limit=5)
    assert [e["name"] for e, _ in ranked] == ["B", "D", "A", "C", "E"]


def test_rank_truncates_and_handles_short_input():
    entities = [{"name": str(i)} for i in range(20)]
    assert len(rank(entities, [float(i) for i in range(20)], limit=12)) == 12
    assert len(rank(entities[:3], [1.0, 1.0, 1.0], limit=12)) == 3
    assert rank([], [], limit=12) == []


def test_rank_drops_zero_before_truncation():
    entities = [{"name": n} for n in "ABCD"]
    ranked = rank(entities, [0.0, 3.0, 0.0, 1.0], limit=3, drop_zero=True)
    assert [e["name"] for e, _ in ranked] == ["B", "D"]


def test_score_and_rank_prefers_district_match():
    prefs = UserPreferences(albay_district="District 3")
    spots = [{"name": "Far", "municipality": "Tabaco"}, {"name": "Near", "municipality": "Ligao"}]
    ranked = score_and_rank(prefs, spots, SPOT_RULES, limit=2)
    assert ranked[0][0]["name"] == "Near"


# ── Preference coercion ──────────────────────────────────────────────────


def test_coerce_preferences_accepts_camel_case():
    prefs = coerce_preferences({"travelerType": "Nature Lover", "albayDistrict": "District 1"})
    assert prefs.traveler_type == ["Nature Lover"]
    assert prefs.albay_district == "District 1"


def test_coerce_preferences_drops_bad_fields():
    prefs = coerce_preferences({"albayDistrict": ["not", "a", "string"], "travelPace": "Fast"})
    assert prefs.albay_district is None
    assert prefs.travel_pace == "Fast"


def test_coerce_preferences_non_mapping_is_empty():
    assert coerce_preferences(None) == UserPreferences()
    assert coerce_preferences("garbage") == UserPreferences()
