from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

BudgetLevel = Literal["budget", "moderate", "premium"]


def _none_to_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


class TouristSpotIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    location: str | None = None
    municipality: str | None = None
    category: list[str] = Field(default_factory=list)
    subcategories: list[str] = Field(default_factory=list)
    image_url: str | None = None
    contact_number: str | None = None
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    is_hidden_gem: bool | None = None
    budget_level: BudgetLevel | None = None
    accessibility_friendly: bool | None = None
    scenery_type: list[str] = Field(default_factory=list)
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)

    @field_validator("category", "subcategories", "scenery_type", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> Any:
        return _none_to_list(value)


class AccommodationIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    location: str | None = None
    municipality: str | None = None
    category: list[str] = Field(default_factory=list)
    image_url: str | None = None
    contact_number: str | None = None
    email: str | None = None
    price_range: str | None = None
    amenities: list[str] = Field(default_factory=list)
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)

    @field_validator("category", "amenities", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> Any:
        return _none_to_list(value)


class RestaurantIn(BaseModel):
    name: str = Field(..., min_length=1)
    food_type: str | None = None
    location: str | None = None
    municipality: str | None = None
    description: str | None = None
    image_url: str | None = None


class EventIn(BaseModel):
    name: str = Field(..., min_length=1)
    event_type: str | None = None
    location: str | None = None
    municipality: str | None = None
    description: str | None = None
    event_date: date | None = None
    image_url: str | None = None
    district: str | None = None


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None


class SubcategoryIn(BaseModel):
    name: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)


class _Stored(BaseModel):
    id: str
    created_at: float


class TouristSpot(TouristSpotIn, _Stored):
    pass


class Accommodation(AccommodationIn, _Stored):
    pass


class Restaurant(RestaurantIn, _Stored):
    pass


class Event(EventIn, _Stored):
    pass


class Category(CategoryIn, _Stored):
    pass


class Subcategory(SubcategoryIn, _Stored):
    pass


# Table name -> (create payload model, stored model)
TABLE_MODELS: dict[str, tuple[type[BaseModel], type[BaseModel]]] = {
    "tourist_spots": (TouristSpotIn, TouristSpot),
    "accommodations": (AccommodationIn, Accommodation),
    "restaurants": (RestaurantIn, Restaurant),
    "events": (EventIn, Event),
    "categories": (CategoryIn, Category),
    "subcategories": (SubcategoryIn, Subcategory),
}

CATALOG_TABLES = tuple(TABLE_MODELS)
