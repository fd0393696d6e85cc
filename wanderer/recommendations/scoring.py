"""
Preference scorer.

Every recommendation surface ranks catalog entities with the same additive
rule table: each signal pairs a weight with a matcher that inspects one
``UserPreferences`` record and one entity mapping and returns a
non-negative multiplier. An entity's score is the weighted sum of its
multipliers. Weight profiles live in ``config.py``; this module only knows
how to match and rank.

Matchers are total: missing preferences, missing entity fields and values
of the wrong type all contribute zero.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import pandas as pd

from ..onboarding.models import UserPreferences
from .districts import ANY_DISTRICT, in_district

Entity = Mapping[str, Any]
Matcher = Callable[[UserPreferences, Entity], float]

NO_PREFERENCE = "No preference"

# Preference option -> keywords searched for in the entity's category tags.
TRAVELER_TYPE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Adventure Seeker": ("adventure", "hostel"),
    "Nature Lover": ("nature",),
    "Relaxed Tourist": ("resort", "spa", "relax"),
    "Food Explorer": ("food",),
    "Cultural/Historical Traveler": ("cultural", "historical", "heritage"),
}

ACTIVITY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Hiking": ("adventure", "hiking"),
    "Swimming/Beach": ("beach",),
    "Food Trips": ("food",),
    "Historical Tours": ("historical", "heritage"),
    "Sightseeing": ("sightseeing", "nature", "cultural"),
    "Wildlife/Eco Tours": ("nature", "wildlife", "eco"),
    "Shopping": ("shopping",),
}

BUDGET_TERMS: dict[str, tuple[str, ...]] = {
    "Budget-friendly": ("budget",),
    "Moderate": ("moderate", "mid-range"),
    "Premium": ("premium", "luxury"),
}

COMPANION_AMENITY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Family": ("family",),
    "Couple": ("romantic",),
}

_POPULAR_CHOICES = ("Popular", "Popular Tourist Spots")

RATING_TIERS = (4.0, 4.5)


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------


def _text(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _tags(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [v.strip().lower() for v in value if isinstance(v, str) and v.strip()]


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _flag(value: Any) -> bool:
    return value is True


def _count_keyword_hits(
    choices: list[str],
    table: Mapping[str, tuple[str, ...]],
    tags: list[str],
) -> float:
    """Number of *choices* with at least one keyword inside any of *tags*."""
    if not tags:
        return 0.0
    hits = 0
    for choice in dict.fromkeys(choices):
        keywords = table.get(choice, ())
        if any(k in tag for k in keywords for tag in tags):
            hits += 1
    return float(hits)


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


def match_district(prefs: UserPreferences, entity: Entity) -> float:
    district = prefs.albay_district
    if not district or district == ANY_DISTRICT:
        return 0.0
    return 1.0 if in_district(district, entity.get("municipality"), entity.get("location")) else 0.0


def match_traveler_type(prefs: UserPreferences, entity: Entity) -> float:
    return _count_keyword_hits(prefs.traveler_type, TRAVELER_TYPE_KEYWORDS, _tags(entity.get("category")))


def match_activities(prefs: UserPreferences, entity: Entity) -> float:
    return _count_keyword_hits(prefs.activities, ACTIVITY_KEYWORDS, _tags(entity.get("category")))


def match_scenery(prefs: UserPreferences, entity: Entity) -> float:
    wanted = [s for s in _tags(prefs.scenery_preference) if s != NO_PREFERENCE.lower()]
    offered = _tags(entity.get("scenery_type"))
    for pref in wanted:
        for kind in offered:
            if kind in pref or pref in kind:
                return 1.0
    return 0.0


def budget_terms(budget_range: str | None) -> tuple[str, ...]:
    """Entity budget terms that satisfy *budget_range* (empty if none)."""
    if not budget_range:
        return ()
    return BUDGET_TERMS.get(budget_range.strip(), ())


def entity_budget_text(entity: Entity) -> str:
    return _text(entity.get("budget_level")) or _text(entity.get("price_range"))


def match_budget(prefs: UserPreferences, entity: Entity) -> float:
    terms = budget_terms(prefs.budget_range)
    field = entity_budget_text(entity)
    if not terms or not field:
        return 0.0
    return 1.0 if any(term in field for term in terms) else 0.0


def match_hidden_gem(prefs: UserPreferences, entity: Entity) -> float:
    if prefs.place_preference != "Hidden Gems":
        return 0.0
    return 1.0 if _flag(entity.get("is_hidden_gem")) else 0.0


def match_popular(prefs: UserPreferences, entity: Entity) -> float:
    if prefs.place_preference not in _POPULAR_CHOICES:
        return 0.0
    return 1.0 if entity.get("is_hidden_gem") is False else 0.0


def match_both_places(prefs: UserPreferences, entity: Entity) -> float:
    return 1.0 if prefs.place_preference == "Both" else 0.0


def match_accessibility(prefs: UserPreferences, entity: Entity) -> float:
    if not prefs.accessibility_needed:
        return 0.0
    return 1.0 if _flag(entity.get("accessibility_friendly")) else 0.0


def match_companions(prefs: UserPreferences, entity: Entity) -> float:
    keywords = COMPANION_AMENITY_KEYWORDS.get(prefs.travel_companions or "", ())
    amenities = _tags(entity.get("amenities"))
    return 1.0 if any(k in a for k in keywords for a in amenities) else 0.0


def match_rating(prefs: UserPreferences, entity: Entity) -> float:
    rating = _number(entity.get("rating"))
    if not rating or rating < 0:
        return 0.0
    return min(rating, 5.0) / 5.0


def match_rating_tier(prefs: UserPreferences, entity: Entity) -> float:
    rating = _number(entity.get("rating"))
    if rating is None:
        return 0.0
    return float(sum(1 for threshold in RATING_TIERS if rating > threshold))


MATCHERS: dict[str, Matcher] = {
    "district": match_district,
    "traveler_type": match_traveler_type,
    "activities": match_activities,
    "scenery": match_scenery,
    "budget": match_budget,
    "hidden_gem": match_hidden_gem,
    "popular": match_popular,
    "both_places": match_both_places,
    "accessibility": match_accessibility,
    "companions": match_companions,
    "rating": match_rating,
    "rating_tier": match_rating_tier,
}


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    signal: str
    weight: float
    matcher: Matcher

    def apply(self, prefs: UserPreferences, entity: Entity) -> float:
        return self.weight * self.matcher(prefs, entity)


def build_rules(weights: Mapping[str, float]) -> tuple[Rule, ...]:
    """Turn a ``signal -> weight`` profile into a rule table."""
    unknown = set(weights) - set(MATCHERS)
    if unknown:
        raise ValueError(f"Unknown scoring signals: {sorted(unknown)}")
    return tuple(Rule(signal, float(w), MATCHERS[signal]) for signal, w in weights.items())


def score_entity(prefs: UserPreferences, entity: Entity, rules: tuple[Rule, ...]) -> float:
    return sum(rule.apply(prefs, entity) for rule in rules)


def explain(prefs: UserPreferences, entity: Entity, rules: tuple[Rule, ...]) -> dict[str, float]:
    """Per-signal contributions, omitting signals that contributed nothing."""
    parts = {rule.signal: rule.apply(prefs, entity) for rule in rules}
    return {signal: round(value, 4) for signal, value in parts.items() if value}


def rank(
    entities: list[dict[str, Any]],
    scores: list[float],
    limit: int,
    drop_zero: bool = False,
) -> list[tuple[dict[str, Any], float]]:
    """
    Order *entities* by score, highest first, and keep the top *limit*.

    The sort is stable, so equal scores keep their input order. With
    *drop_zero*, entities scoring zero are removed before truncation.
    """
    if not entities or limit <= 0:
        return []

    frame = pd.DataFrame({"_pos": range(len(entities)), "_score": scores})
    if drop_zero:
        frame = frame[frame["_score"] > 0]
    top = frame.sort_values("_score", ascending=False, kind="stable").head(limit)
    return [(entities[int(pos)], float(score)) for pos, score in zip(top["_pos"], top["_score"])]


def score_and_rank(
    prefs: UserPreferences,
    entities: list[dict[str, Any]],
    rules: tuple[Rule, ...],
    limit: int,
    drop_zero: bool = False,
) -> list[tuple[dict[str, Any], float]]:
    scores = [score_entity(prefs, entity, rules) for entity in entities]
    return rank(entities, scores, limit, drop_zero)
