from __future__ import annotations

import itertools
import threading
import time
import uuid

from .models import Itinerary, ItinerarySnapshot

_itineraries: dict[str, Itinerary] = {}
_order: dict[str, int] = {}
_counter = itertools.count()
_lock = threading.Lock()


class DuplicateItemError(ValueError):
    """The entity is already part of the itinerary."""


def _categories(items: list[ItinerarySnapshot]) -> list[str]:
    return list(dict.fromkeys(c for item in items for c in item.category))


def create_itinerary(
    user_id: str,
    name: str,
    items: list[ItinerarySnapshot] | None = None,
) -> Itinerary:
    items = list(items or [])
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise DuplicateItemError(f"{item.name} is listed twice")
        seen.add(item.id)

    itinerary = Itinerary(
        id=uuid.uuid4().hex,
        user_id=user_id,
        name=name.strip(),
        items=items,
        selected_categories=_categories(items),
        created_at=time.time(),
    )
    with _lock:
        _itineraries[itinerary.id] = itinerary
        _order[itinerary.id] = next(_counter)
        return itinerary.model_copy(deep=True)


def list_itineraries(user_id: str) -> list[Itinerary]:
    """The user's itineraries, newest first."""
    with _lock:
        owned = [i for i in _itineraries.values() if i.user_id == user_id]
        owned.sort(key=lambda i: _order[i.id], reverse=True)
        return [i.model_copy(deep=True) for i in owned]


def get_itinerary(itinerary_id: str) -> Itinerary | None:
    with _lock:
        itinerary = _itineraries.get(itinerary_id)
        return itinerary.model_copy(deep=True) if itinerary else None


def add_item(itinerary_id: str, snapshot: ItinerarySnapshot) -> Itinerary | None:
    """Append *snapshot*; raises ``DuplicateItemError`` if its id is present."""
    with _lock:
        itinerary = _itineraries.get(itinerary_id)
        if itinerary is None:
            return None
        if any(item.id == snapshot.id for item in itinerary.items):
            raise DuplicateItemError(f"{snapshot.name} is already in this itinerary")
        items = [*itinerary.items, snapshot]
        _itineraries[itinerary_id] = itinerary.model_copy(
            update={"items": items, "selected_categories": _categories(items)},
        )
        return _itineraries[itinerary_id].model_copy(deep=True)


def remove_item(itinerary_id: str, entity_id: str) -> Itinerary | None:
    with _lock:
        itinerary = _itineraries.get(itinerary_id)
        if itinerary is None:
            return None
        items = [item for item in itinerary.items if item.id != entity_id]
        if len(items) == len(itinerary.items):
            raise KeyError(entity_id)
        _itineraries[itinerary_id] = itinerary.model_copy(
            update={"items": items, "selected_categories": _categories(items)},
        )
        return _itineraries[itinerary_id].model_copy(deep=True)


def delete_itinerary(itinerary_id: str) -> bool:
    with _lock:
        _order.pop(itinerary_id, None)
        return _itineraries.pop(itinerary_id, None) is not None


def contains(user_id: str, entity_id: str) -> bool:
    """Whether any of the user's itineraries holds *entity_id*."""
    with _lock:
        return any(
            item.id == entity_id
            for itinerary in _itineraries.values()
            if itinerary.user_id == user_id
            for item in itinerary.items
        )


def clear_itineraries() -> None:
    with _lock:
        _itineraries.clear()
        _order.clear()


def count_itineraries() -> int:
    with _lock:
        return len(_itineraries)
