import pytest

from wanderer.auth.users import reset_users
from wanderer.catalog.data_store import reset_store
from wanderer.itineraries.store import clear_itineraries
from wanderer.reviews.favorites import clear_favorites
from wanderer.reviews.store import clear_reviews


@pytest.fixture
def fresh_state():
    """Reseed users and catalog and empty every per-user store."""
    reset_users()
    reset_store()
    clear_itineraries()
    clear_reviews()
    clear_favorites()
    yield
