from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class UserPreferences(BaseModel):
    """Onboarding answers embedded in a user's profile.

    Every field is optional; a missing field means "no opinion". Keys are
    accepted in snake_case or in the camelCase used by stored profiles
    (``travelerType``, ``albayDistrict`` ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    traveler_type: list[str] = Field(default_factory=list)
    activities: list[str] = Field(default_factory=list)
    albay_district: str | None = None
    budget_range: str | None = None
    place_preference: str | None = None
    accessibility_needed: bool = False
    scenery_preference: list[str] = Field(default_factory=list)
    travel_pace: str | None = None
    travel_companions: str | None = None
    auto_recommendations: bool = False

    @field_validator("traveler_type", "activities", "scenery_preference", mode="before")
    @classmethod
    def _wrap_single_value(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value


def coerce_preferences(raw: Any) -> UserPreferences:
    """Build preferences from an untrusted mapping, dropping invalid fields.

    Never raises: a malformed record degrades to the fields that do validate,
    and anything that is not a mapping becomes an empty record.
    """
    if isinstance(raw, UserPreferences):
        return raw
    if not isinstance(raw, dict):
        return UserPreferences()

    data = dict(raw)
    try:
        return UserPreferences.model_validate(data)
    except ValidationError as exc:
        bad = {err["loc"][0] for err in exc.errors() if err.get("loc")}
        logger.warning("Dropping malformed preference fields: %s", sorted(map(str, bad)))
        for name, field in UserPreferences.model_fields.items():
            if name in bad or field.alias in bad:
                bad.update({name, field.alias})
        data = {k: v for k, v in data.items() if k not in bad}

    try:
        return UserPreferences.model_validate(data)
    except ValidationError:
        logger.warning("Preference record unusable, treating as empty", exc_info=True)
        return UserPreferences()
