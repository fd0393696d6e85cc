from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RecommendationItem(BaseModel):
    entity: dict[str, Any]
    score: float
    signals: dict[str, float] = Field(default_factory=dict)


class RecommendationResponse(BaseModel):
    recommendations: list[RecommendationItem]
    total_candidates: int
    notice: str | None = None


class SelectionRequest(BaseModel):
    ids: list[str] | None = Field(
        default=None,
        description="Entity ids to keep; omit to auto-select the top recommendations",
    )


class SelectionResponse(BaseModel):
    status: str
    selected: list[str]
    itinerary_id: str | None = None
