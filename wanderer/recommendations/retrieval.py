from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from ..catalog.data_store import get_store
from ..catalog.store import CatalogStore, StorageError
from ..onboarding.models import UserPreferences
from .config import DEFAULT_RECOMMENDATION_CONFIG, RecommendationConfig, SurfaceConfig
from .districts import ANY_DISTRICT, in_district
from .models import RecommendationItem, RecommendationResponse
from .scoring import (
    budget_terms,
    build_rules,
    entity_budget_text,
    explain,
    score_and_rank,
)

logger = logging.getLogger(__name__)

_LOAD_FAILED = "Failed to load recommendations"


def _fetch(store: CatalogStore | None, table: str) -> list[dict[str, Any]]:
    return (store or get_store()).list(table)


def _scored_response(
    prefs: UserPreferences,
    surface: SurfaceConfig,
    limit: int,
    store: CatalogStore | None,
) -> RecommendationResponse:
    try:
        entities = _fetch(store, surface.table)
    except StorageError:
        logger.warning("Could not load %s for recommendations", surface.table, exc_info=True)
        return RecommendationResponse(recommendations=[], total_candidates=0, notice=_LOAD_FAILED)

    rules = build_rules(surface.weights)
    ranked = score_and_rank(prefs, entities, rules, limit, surface.drop_zero)
    items = [
        RecommendationItem(
            entity=entity,
            score=round(score, 4),
            signals=explain(prefs, entity, rules),
        )
        for entity, score in ranked
    ]
    return RecommendationResponse(recommendations=items, total_candidates=len(entities))


def by_rating(entities: list[dict[str, Any]], limit: int | None = None) -> list[dict[str, Any]]:
    """Stable sort on rating, highest first; missing ratings count as zero."""
    if not entities:
        return []
    ratings = pd.to_numeric(pd.Series([e.get("rating") for e in entities]), errors="coerce").fillna(0.0)
    order = ratings.sort_values(ascending=False, kind="stable").index[:limit]
    return [entities[i] for i in order]


def _plain_response(entities: list[dict[str, Any]], total: int) -> RecommendationResponse:
    return RecommendationResponse(
        recommendations=[RecommendationItem(entity=e, score=0.0) for e in entities],
        total_candidates=total,
    )


def onboarding_spots(
    prefs: UserPreferences,
    store: CatalogStore | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationResponse:
    surface = config.onboarding_spots
    return _scored_response(prefs, surface, surface.limit, store)


def onboarding_accommodations(
    prefs: UserPreferences,
    store: CatalogStore | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationResponse:
    surface = config.onboarding_accommodations
    return _scored_response(prefs, surface, surface.limit, store)


def personalized_feed(
    prefs: UserPreferences,
    store: CatalogStore | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationResponse:
    """Homepage feed; empty unless the user opted into auto recommendations."""
    if not prefs.auto_recommendations:
        return RecommendationResponse(recommendations=[], total_candidates=0)
    surface = config.feed
    limit = config.feed_limit_by_pace.get(prefs.travel_pace or "", surface.limit)
    return _scored_response(prefs, surface, limit, store)


def nearby_in_district(
    prefs: UserPreferences,
    store: CatalogStore | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationResponse:
    """Top-rated spots in the user's district."""
    district = prefs.albay_district
    if not district:
        return RecommendationResponse(recommendations=[], total_candidates=0)

    try:
        spots = _fetch(store, "tourist_spots")
    except StorageError:
        logger.warning("Could not load tourist spots for nearby filter", exc_info=True)
        return RecommendationResponse(recommendations=[], total_candidates=0, notice="Failed to load nearby spots")

    if district == ANY_DISTRICT:
        return _plain_response(spots[:config.nearby_limit], len(spots))

    in_area = [s for s in spots if in_district(district, s.get("municipality"))]
    return _plain_response(by_rating(in_area, config.nearby_limit), len(in_area))


def recommended_accommodations(
    prefs: UserPreferences,
    store: CatalogStore | None = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> RecommendationResponse:
    """Accommodations in the preferred district and budget, best rated first."""
    try:
        stays = _fetch(store, "accommodations")
    except StorageError:
        logger.warning("Could not load accommodations shortlist", exc_info=True)
        return RecommendationResponse(recommendations=[], total_candidates=0, notice=_LOAD_FAILED)

    district = prefs.albay_district
    if district and district != ANY_DISTRICT:
        stays = [a for a in stays if in_district(district, a.get("municipality"))]

    terms = budget_terms(prefs.budget_range)
    if terms:
        stays = [a for a in stays if any(t in entity_budget_text(a) for t in terms)]

    return _plain_response(by_rating(stays, config.accommodation_shortlist_limit), len(stays))
