from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

SPOT_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "district": 3.0,
    "traveler_type": 3.0,
    "activities": 2.0,
    "scenery": 2.0,
    "budget": 2.0,
    "hidden_gem": 3.0,
    "popular": 2.0,
    "both_places": 1.0,
    "accessibility": 3.0,
    "rating": 2.0,
})

ACCOMMODATION_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "district": 3.0,
    "budget": 3.0,
    "traveler_type": 2.0,
    "companions": 2.0,
    "rating_tier": 1.0,
})


@dataclass(frozen=True)
class SurfaceConfig:
    """How one recommendation surface ranks: which weights, how many, zero policy."""

    table: str
    weights: Mapping[str, float]
    limit: int
    drop_zero: bool = False


@dataclass(frozen=True)
class RecommendationConfig:
    onboarding_spots: SurfaceConfig = SurfaceConfig("tourist_spots", SPOT_WEIGHTS, limit=12)
    onboarding_accommodations: SurfaceConfig = SurfaceConfig(
        "accommodations", ACCOMMODATION_WEIGHTS, limit=10,
    )
    feed: SurfaceConfig = SurfaceConfig("tourist_spots", SPOT_WEIGHTS, limit=8, drop_zero=True)
    # Feed size by travel pace; anything else uses ``feed.limit``.
    feed_limit_by_pace: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType({"Fast": 12, "Slow": 6}),
    )
    nearby_limit: int = 6
    accommodation_shortlist_limit: int = 6
    auto_select_spots: int = 6
    auto_select_accommodations: int = 4
    accommodation_itinerary_name: str = "My Accommodation Itinerary"


DEFAULT_RECOMMENDATION_CONFIG = RecommendationConfig()
