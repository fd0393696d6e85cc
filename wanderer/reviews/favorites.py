from __future__ import annotations

import threading
import time
from typing import Any

_favorites: list[dict[str, Any]] = []
_lock = threading.Lock()


class DuplicateFavoriteError(ValueError):
    """The spot is already in the user's favorites."""


def add_favorite(user_id: str, spot_id: str) -> None:
    with _lock:
        if any(f["user_id"] == user_id and f["spot_id"] == spot_id for f in _favorites):
            raise DuplicateFavoriteError("Already in favorites")
        _favorites.append({"user_id": user_id, "spot_id": spot_id, "created_at": time.time()})


def add_favorites(user_id: str, spot_ids: list[str]) -> list[str]:
    """Add every spot not yet favorited; returns the ids actually added."""
    added: list[str] = []
    with _lock:
        existing = {f["spot_id"] for f in _favorites if f["user_id"] == user_id}
        for spot_id in dict.fromkeys(spot_ids):
            if spot_id in existing:
                continue
            _favorites.append({"user_id": user_id, "spot_id": spot_id, "created_at": time.time()})
            added.append(spot_id)
    return added


def remove_favorite(user_id: str, spot_id: str) -> bool:
    with _lock:
        before = len(_favorites)
        _favorites[:] = [
            f for f in _favorites
            if not (f["user_id"] == user_id and f["spot_id"] == spot_id)
        ]
        return len(_favorites) < before


def get_favorites(user_id: str) -> list[str]:
    with _lock:
        return [f["spot_id"] for f in _favorites if f["user_id"] == user_id]


def clear_favorites() -> None:
    with _lock:
        _favorites.clear()
