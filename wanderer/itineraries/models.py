from __future__ import annotations

import copy
import time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

EntityKind = Literal["spot", "accommodation"]


class ItinerarySnapshot(BaseModel):
    """A catalog entity frozen at the moment it was added to an itinerary.

    Later catalog edits do not reach the snapshot.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: EntityKind
    name: str
    location: str | None = None
    municipality: str | None = None
    category: tuple[str, ...] = ()
    rating: float | None = None
    image_url: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    added_at: float

    @classmethod
    def from_entity(cls, entity: dict[str, Any], kind: EntityKind) -> "ItinerarySnapshot":
        return cls(
            id=entity["id"],
            type=kind,
            name=entity["name"],
            location=entity.get("location"),
            municipality=entity.get("municipality"),
            category=tuple(entity.get("category") or ()),
            rating=entity.get("rating"),
            image_url=entity.get("image_url"),
            latitude=entity.get("latitude"),
            longitude=entity.get("longitude"),
            details=copy.deepcopy(entity),
            added_at=time.time(),
        )


class Itinerary(BaseModel):
    id: str
    user_id: str
    name: str
    items: list[ItinerarySnapshot] = Field(default_factory=list)
    selected_categories: list[str] = Field(default_factory=list)
    created_at: float


class CreateItineraryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class AddItemRequest(BaseModel):
    entity_id: str = Field(..., min_length=1)
    entity_type: EntityKind = "spot"
    itinerary_id: str | None = Field(
        default=None, description="Target itinerary; defaults to the newest one"
    )
    new_itinerary_name: str | None = Field(
        default=None, description="Create a new itinerary with this name and add to it"
    )


class RouteTarget(BaseModel):
    lat: float
    lng: float
    name: str
    image_url: str | None = None
