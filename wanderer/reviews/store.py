from __future__ import annotations

import itertools
import threading
import time
import uuid

from .models import Review

_reviews: list[Review] = []
_order: dict[str, int] = {}
_counter = itertools.count()
_lock = threading.Lock()


class DuplicateReviewError(ValueError):
    """The user has already reviewed this spot."""


def add_review(spot_id: str, user_id: str, rating: int, comment: str | None = None) -> Review:
    """Store a review; one per (user, spot)."""
    with _lock:
        if any(r.spot_id == spot_id and r.user_id == user_id for r in _reviews):
            raise DuplicateReviewError("You have already reviewed this spot")
        review = Review(
            id=uuid.uuid4().hex,
            spot_id=spot_id,
            user_id=user_id,
            rating=rating,
            comment=(comment or "").strip() or None,
            created_at=time.time(),
        )
        _reviews.append(review)
        _order[review.id] = next(_counter)
        return review


def reviews_for(spot_id: str) -> list[Review]:
    """Reviews of *spot_id*, newest first."""
    with _lock:
        found = [r for r in _reviews if r.spot_id == spot_id]
        return sorted(found, key=lambda r: _order[r.id], reverse=True)


def average_rating(reviews: list[Review]) -> float | None:
    if not reviews:
        return None
    return round(sum(r.rating for r in reviews) / len(reviews), 1)


def delete_review(review_id: str, user_id: str) -> bool:
    with _lock:
        for i, review in enumerate(_reviews):
            if review.id == review_id and review.user_id == user_id:
                del _reviews[i]
                _order.pop(review_id, None)
                return True
    return False


def clear_reviews() -> None:
    with _lock:
        _reviews.clear()
        _order.clear()


def count_reviews() -> int:
    with _lock:
        return len(_reviews)
