"""
Onboarding wizard.

The survey is a fixed, ordered sequence of typed steps. ``WizardState`` holds
the current position and the answers so far; ``transition`` moves one step
forward (only when the current step is valid) or back (always). Nothing is
persisted until ``complete`` turns a finished state into ``UserPreferences``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..recommendations.districts import district_names
from .models import UserPreferences


class StepKind(str, Enum):
    multi = "multi"
    single = "single"
    flag = "flag"


class Direction(str, Enum):
    forward = "forward"
    back = "back"


class StepIncomplete(ValueError):
    """The current step has no valid answer yet."""


@dataclass(frozen=True)
class Step:
    field: str
    kind: StepKind
    prompt: str
    options: tuple[str, ...] = ()
    required: bool = True

    def is_valid(self, value: Any) -> bool:
        if self.kind is StepKind.flag or not self.required:
            return True
        if self.kind is StepKind.multi:
            return isinstance(value, list) and len(value) > 0
        return isinstance(value, str) and value in self.options

    def normalize(self, value: Any) -> Any:
        """Validate a submitted answer against this step's options."""
        if self.kind is StepKind.flag:
            if not isinstance(value, bool):
                raise ValueError(f"{self.field} expects true or false")
            return value
        if self.kind is StepKind.multi:
            values = [value] if isinstance(value, str) else value
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise ValueError(f"{self.field} expects a list of options")
            unknown = [v for v in values if v not in self.options]
            if unknown:
                raise ValueError(f"Unknown {self.field} option(s): {unknown}")
            return list(dict.fromkeys(values))
        if not isinstance(value, str) or value not in self.options:
            raise ValueError(f"{self.field} must be one of {list(self.options)}")
        return value


STEPS: tuple[Step, ...] = (
    Step(
        "traveler_type", StepKind.multi, "What type of traveler are you?",
        ("Adventure Seeker", "Nature Lover", "Relaxed Tourist", "Food Explorer",
         "Cultural/Historical Traveler"),
    ),
    Step(
        "activities", StepKind.multi, "What activities do you enjoy most?",
        ("Hiking", "Swimming/Beach", "Food Trips", "Historical Tours", "Sightseeing",
         "Wildlife/Eco Tours", "Shopping"),
    ),
    Step(
        "albay_district", StepKind.single, "Which part of Albay do you want to explore?",
        tuple(district_names()),
    ),
    Step(
        "budget_range", StepKind.single, "What is your preferred budget range?",
        ("Budget-friendly", "Moderate", "Premium", "No preference"),
    ),
    Step(
        "place_preference", StepKind.single, "Do you prefer popular places or hidden gems?",
        ("Popular", "Hidden Gems", "Both"),
    ),
    Step(
        "accessibility_needed", StepKind.flag,
        "Do you need accessibility-friendly locations?", required=False,
    ),
    Step(
        "scenery_preference", StepKind.multi, "What scenery do you prefer?",
        ("Mountain", "Beach", "Waterfalls", "Urban", "Rural/Nature", "No preference"),
    ),
    Step(
        "travel_pace", StepKind.single, "What is your travel pace?",
        ("Slow", "Balanced", "Fast"),
    ),
    Step(
        "travel_companions", StepKind.single, "Who are you traveling with?",
        ("Solo", "Couple", "Family", "Friends"),
    ),
    Step(
        "auto_recommendations", StepKind.flag,
        "Do you want automatic recommendations?", required=False,
    ),
)

TOTAL_STEPS = len(STEPS)

_DEFAULTS: dict[str, Any] = {"accessibility_needed": False, "auto_recommendations": True}


class WizardState(BaseModel):
    step: int = Field(default=1, ge=1, le=TOTAL_STEPS)
    answers: dict[str, Any] = Field(default_factory=lambda: dict(_DEFAULTS))

    @property
    def current(self) -> Step:
        return STEPS[self.step - 1]

    @property
    def is_last(self) -> bool:
        return self.step == TOTAL_STEPS

    def can_proceed(self) -> bool:
        return self.current.is_valid(self.answers.get(self.current.field))


def answer(state: WizardState, value: Any) -> WizardState:
    """Record *value* for the current step; raises ``ValueError`` if invalid."""
    step = state.current
    answers = {**state.answers, step.field: step.normalize(value)}
    return state.model_copy(update={"answers": answers})


def transition(state: WizardState, direction: Direction) -> WizardState:
    if direction is Direction.back:
        return state.model_copy(update={"step": max(1, state.step - 1)})
    if not state.can_proceed():
        raise StepIncomplete(f"Step {state.step} ({state.current.field}) needs an answer")
    if state.is_last:
        return state
    return state.model_copy(update={"step": state.step + 1})


def complete(state: WizardState) -> UserPreferences:
    """Build the final preferences; every step must be valid and the last reached."""
    if not state.is_last:
        raise StepIncomplete(f"Onboarding is on step {state.step} of {TOTAL_STEPS}")
    for number, step in enumerate(STEPS, start=1):
        if not step.is_valid(state.answers.get(step.field)):
            raise StepIncomplete(f"Step {number} ({step.field}) needs an answer")
    known = {step.field for step in STEPS}
    return UserPreferences(**{k: v for k, v in state.answers.items() if k in known})


def describe(state: WizardState) -> dict[str, Any]:
    step = state.current
    return {
        "step": state.step,
        "total_steps": TOTAL_STEPS,
        "field": step.field,
        "kind": step.kind.value,
        "prompt": step.prompt,
        "options": list(step.options),
        "required": step.required,
        "value": state.answers.get(step.field),
        "can_proceed": state.can_proceed(),
        "is_last": state.is_last,
    }
