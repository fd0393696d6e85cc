from __future__ import annotations

from pydantic import BaseModel, Field


class ReviewRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class Review(BaseModel):
    id: str
    spot_id: str
    user_id: str
    rating: int
    comment: str | None = None
    created_at: float
    user_name: str = "Anonymous"


class ReviewListResponse(BaseModel):
    reviews: list[Review]
    total: int
    average_rating: float | None = None
