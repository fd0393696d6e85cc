from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError
from starlette.middleware.sessions import SessionMiddleware

from .auth.config import DEFAULT_AUTH_CONFIG
from .auth.dependencies import require_admin, require_user
from .auth.models import CreateUserRequest, LoginRequest, PasswordChange, ProfileUpdate
from .auth.users import (
    UserExistsError,
    authenticate,
    change_password,
    create_user,
    deactivate_user,
    get_preferences,
    get_user,
    list_users,
    save_preferences,
    update_profile,
)
from .catalog.data_store import get_store
from .catalog.models import CATALOG_TABLES
from .catalog.store import StorageError
from .importer.csv_import import run_import
from .itineraries.models import (
    AddItemRequest,
    CreateItineraryRequest,
    Itinerary,
    ItinerarySnapshot,
    RouteTarget,
)
from .itineraries.store import (
    DuplicateItemError,
    add_item,
    contains,
    count_itineraries,
    create_itinerary,
    delete_itinerary,
    get_itinerary,
    list_itineraries,
    remove_item,
)
from .onboarding.wizard import (
    Direction,
    StepIncomplete,
    WizardState,
    answer,
    complete,
    describe,
    transition,
)
from .recommendations.config import DEFAULT_RECOMMENDATION_CONFIG
from .recommendations.districts import DISTRICTS, district_names
from .recommendations.models import RecommendationResponse, SelectionRequest, SelectionResponse
from .recommendations.retrieval import (
    by_rating,
    nearby_in_district,
    onboarding_accommodations,
    onboarding_spots,
    personalized_feed,
    recommended_accommodations,
)
from .reviews.favorites import (
    DuplicateFavoriteError,
    add_favorite,
    add_favorites,
    get_favorites,
    remove_favorite,
)
from .reviews.models import Review, ReviewListResponse, ReviewRequest
from .reviews.store import (
    DuplicateReviewError,
    add_review,
    average_rating,
    count_reviews,
    delete_review,
    reviews_for,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Wanderer Albay API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_AUTH_CONFIG.session_secret)

CatalogTable = Literal[
    "tourist_spots", "accommodations", "restaurants", "events", "categories", "subcategories",
]
ImportType = Literal["tourist_spots", "accommodations", "restaurants", "events"]

_ENTITY_TABLES = {"spot": "tourist_spots", "accommodation": "accommodations"}
_DEFAULT_ITINERARY_NAME = "My Travel Itinerary"


class AnswerRequest(BaseModel):
    value: Any


class BulkImportRequest(BaseModel):
    type: ImportType
    csv_text: str = Field(..., min_length=1)


# ── Helpers ──────────────────────────────────────────────────────────────


def _catalog_list(table: str) -> list[dict]:
    try:
        return get_store().list(table)
    except StorageError:
        logger.warning("Could not load %s", table, exc_info=True)
        raise HTTPException(status_code=503, detail=f"Failed to load {table}")


def _catalog_get(table: str, row_id: str) -> dict:
    row = get_store().get(table, row_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Not found")
    return row


def _owned_itinerary(itinerary_id: str, user: dict) -> Itinerary:
    itinerary = get_itinerary(itinerary_id)
    if itinerary is None:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    if itinerary.user_id != user["id"]:
        raise HTTPException(status_code=403, detail="Not your itinerary")
    return itinerary


def _route_target(lat: float | None, lng: float | None, name: str, image_url: str | None) -> RouteTarget:
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="Location coordinates not available")
    return RouteTarget(lat=lat, lng=lng, name=name, image_url=image_url)


def _with_author(review: Review) -> Review:
    author = get_user(review.user_id)
    name = author["full_name"] if author and author["full_name"] else "Anonymous"
    return review.model_copy(update={"user_name": name})


def _load_wizard(request: Request) -> WizardState:
    raw = request.session.get("onboarding")
    try:
        return WizardState(**raw) if raw else WizardState()
    except (TypeError, ValidationError):
        logger.warning("Discarding unreadable onboarding state", exc_info=True)
        return WizardState()


def _save_wizard(request: Request, state: WizardState) -> dict:
    request.session["onboarding"] = state.model_dump()
    return describe(state)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    categories = sorted(c["name"] for c in _catalog_list("categories"))
    return {
        "districts": district_names(),
        "municipalities": {name: list(towns) for name, towns in DISTRICTS.items()},
        "categories": categories,
    }


@app.get("/spots")
def list_spots(
    q: str | None = None,
    category: str | None = None,
    subcategory: str | None = None,
) -> list[dict]:
    spots = sorted(_catalog_list("tourist_spots"), key=lambda s: s["name"].lower())
    if q:
        needle = q.strip().lower()
        spots = [
            s for s in spots
            if needle in s["name"].lower() or needle in (s.get("municipality") or "").lower()
        ]
    if category and category != "all":
        spots = [s for s in spots if category in s.get("category", [])]
    if subcategory and subcategory != "all":
        spots = [s for s in spots if subcategory in s.get("subcategories", [])]
    return spots


@app.get("/spots/{spot_id}")
def spot_detail(spot_id: str) -> dict:
    return _catalog_get("tourist_spots", spot_id)


@app.get("/spots/{spot_id}/route", response_model=RouteTarget)
def spot_route(spot_id: str) -> RouteTarget:
    spot = _catalog_get("tourist_spots", spot_id)
    return _route_target(spot.get("latitude"), spot.get("longitude"), spot["name"], spot.get("image_url"))


@app.get("/accommodations")
def list_accommodations(
    municipality: str | None = None,
    category: str | None = None,
    price_range: str | None = None,
) -> list[dict]:
    """Accommodations, best rated first, optionally narrowed by place, type and price."""
    stays = _catalog_list("accommodations")
    if municipality:
        needle = municipality.strip().lower()
        stays = [a for a in stays if needle in (a.get("municipality") or "").lower()]
    if category and category != "all":
        stays = [a for a in stays if category in a.get("category", [])]
    if price_range and price_range != "all":
        needle = price_range.strip().lower()
        stays = [a for a in stays if needle in (a.get("price_range") or "").lower()]
    return by_rating(stays)


@app.get("/restaurants")
def list_restaurants() -> list[dict]:
    return _catalog_list("restaurants")


@app.get("/events")
def list_events() -> list[dict]:
    return sorted(_catalog_list("events"), key=lambda e: e.get("event_date") or "9999-12-31")


@app.get("/categories")
def list_categories() -> list[dict]:
    return sorted(_catalog_list("categories"), key=lambda c: c["name"])


@app.get("/subcategories")
def list_subcategories(category_id: str | None = None) -> list[dict]:
    rows = _catalog_list("subcategories")
    if category_id:
        rows = [r for r in rows if r["category_id"] == category_id]
    return sorted(rows, key=lambda r: r["name"])


@app.get("/spots/{spot_id}/reviews", response_model=ReviewListResponse)
def spot_reviews(spot_id: str) -> ReviewListResponse:
    _catalog_get("tourist_spots", spot_id)
    reviews = [_with_author(r) for r in reviews_for(spot_id)]
    return ReviewListResponse(reviews=reviews, total=len(reviews), average_rating=average_rating(reviews))


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = {"id": user["id"], "email": user["email"]}
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Profile ──────────────────────────────────────────────────────────────


@app.get("/profile")
def profile(user: dict = Depends(require_user)) -> dict:
    return {**user, "user_preferences": get_preferences(user["id"]).model_dump()}


@app.patch("/profile")
def edit_profile(body: ProfileUpdate, user: dict = Depends(require_user)) -> dict:
    return update_profile(user["id"], body.model_dump(exclude_unset=True))


@app.post("/profile/password")
def edit_password(body: PasswordChange, user: dict = Depends(require_user)) -> dict:
    if not change_password(user["id"], body.current_password, body.new_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    return {"status": "password_changed"}


# ── Onboarding ───────────────────────────────────────────────────────────


@app.get("/onboarding")
def onboarding_state(request: Request, user: dict = Depends(require_user)) -> dict:
    return _save_wizard(request, _load_wizard(request))


@app.post("/onboarding/answer")
def onboarding_answer(body: AnswerRequest, request: Request, user: dict = Depends(require_user)) -> dict:
    try:
        state = answer(_load_wizard(request), body.value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _save_wizard(request, state)


@app.post("/onboarding/next")
def onboarding_next(request: Request, user: dict = Depends(require_user)) -> dict:
    try:
        state = transition(_load_wizard(request), Direction.forward)
    except StepIncomplete as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _save_wizard(request, state)


@app.post("/onboarding/back")
def onboarding_back(request: Request, user: dict = Depends(require_user)) -> dict:
    return _save_wizard(request, transition(_load_wizard(request), Direction.back))


@app.delete("/onboarding")
def onboarding_abandon(request: Request, user: dict = Depends(require_user)) -> dict:
    request.session.pop("onboarding", None)
    return {"status": "discarded"}


@app.post("/onboarding/complete")
def onboarding_complete(request: Request, user: dict = Depends(require_user)) -> dict:
    try:
        preferences = complete(_load_wizard(request))
    except StepIncomplete as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    updated = save_preferences(user["id"], preferences)
    request.session.pop("onboarding", None)
    return {"status": "saved", "user": updated, "user_preferences": preferences.model_dump()}


# ── Recommendations ──────────────────────────────────────────────────────


@app.get("/recommendations/feed", response_model=RecommendationResponse)
def feed(user: dict = Depends(require_user)) -> RecommendationResponse:
    return personalized_feed(get_preferences(user["id"]))


@app.get("/recommendations/nearby", response_model=RecommendationResponse)
def nearby(user: dict = Depends(require_user)) -> RecommendationResponse:
    return nearby_in_district(get_preferences(user["id"]))


@app.get("/recommendations/accommodations", response_model=RecommendationResponse)
def accommodation_shortlist(user: dict = Depends(require_user)) -> RecommendationResponse:
    return recommended_accommodations(get_preferences(user["id"]))


@app.get("/recommendations/onboarding/spots", response_model=RecommendationResponse)
def post_onboarding_spots(user: dict = Depends(require_user)) -> RecommendationResponse:
    return onboarding_spots(get_preferences(user["id"]))


@app.get("/recommendations/onboarding/accommodations", response_model=RecommendationResponse)
def post_onboarding_accommodations(user: dict = Depends(require_user)) -> RecommendationResponse:
    return onboarding_accommodations(get_preferences(user["id"]))


def _selected(response: RecommendationResponse, body: SelectionRequest, auto_count: int) -> list[dict]:
    offered = [item.entity for item in response.recommendations]
    if body.ids is None:
        return offered[:auto_count]
    wanted = set(body.ids)
    return [e for e in offered if e["id"] in wanted]


@app.post("/recommendations/onboarding/spots/select", response_model=SelectionResponse)
def select_onboarding_spots(body: SelectionRequest, user: dict = Depends(require_user)) -> SelectionResponse:
    response = onboarding_spots(get_preferences(user["id"]))
    chosen = _selected(response, body, DEFAULT_RECOMMENDATION_CONFIG.auto_select_spots)
    if not chosen:
        raise HTTPException(status_code=400, detail="Please select at least one spot")
    added = add_favorites(user["id"], [s["id"] for s in chosen])
    return SelectionResponse(status="saved", selected=added)


@app.post("/recommendations/onboarding/accommodations/select", response_model=SelectionResponse)
def select_onboarding_accommodations(
    body: SelectionRequest, user: dict = Depends(require_user),
) -> SelectionResponse:
    config = DEFAULT_RECOMMENDATION_CONFIG
    response = onboarding_accommodations(get_preferences(user["id"]))
    chosen = _selected(response, body, config.auto_select_accommodations)
    if not chosen:
        raise HTTPException(status_code=400, detail="Please select at least one accommodation")
    snapshots = [ItinerarySnapshot.from_entity(a, "accommodation") for a in chosen]
    itinerary = create_itinerary(user["id"], config.accommodation_itinerary_name, snapshots)
    return SelectionResponse(
        status="created", selected=[s.id for s in snapshots], itinerary_id=itinerary.id,
    )


# ── Itineraries ──────────────────────────────────────────────────────────


@app.get("/itineraries", response_model=list[Itinerary])
def my_itineraries(user: dict = Depends(require_user)) -> list[Itinerary]:
    return list_itineraries(user["id"])


@app.post("/itineraries", response_model=Itinerary, status_code=201)
def new_itinerary(body: CreateItineraryRequest, user: dict = Depends(require_user)) -> Itinerary:
    if not body.name.strip():
        raise HTTPException(status_code=400, detail="Please enter an itinerary name")
    return create_itinerary(user["id"], body.name)


@app.post("/itineraries/items", response_model=Itinerary)
def add_to_itinerary(body: AddItemRequest, user: dict = Depends(require_user)) -> Itinerary:
    entity = _catalog_get(_ENTITY_TABLES[body.entity_type], body.entity_id)
    snapshot = ItinerarySnapshot.from_entity(entity, body.entity_type)

    if body.new_itinerary_name is not None:
        if not body.new_itinerary_name.strip():
            raise HTTPException(status_code=400, detail="Please enter an itinerary name")
        target = create_itinerary(user["id"], body.new_itinerary_name)
    elif body.itinerary_id:
        target = _owned_itinerary(body.itinerary_id, user)
    else:
        existing = list_itineraries(user["id"])
        if not existing:
            return create_itinerary(user["id"], _DEFAULT_ITINERARY_NAME, [snapshot])
        target = existing[0]

    try:
        updated = add_item(target.id, snapshot)
    except DuplicateItemError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if updated is None:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    return updated


@app.get("/itineraries/contains/{entity_id}")
def in_itinerary(entity_id: str, user: dict = Depends(require_user)) -> dict:
    return {"entity_id": entity_id, "in_itinerary": contains(user["id"], entity_id)}


@app.delete("/itineraries/{itinerary_id}/items/{entity_id}", response_model=Itinerary)
def remove_from_itinerary(itinerary_id: str, entity_id: str, user: dict = Depends(require_user)) -> Itinerary:
    _owned_itinerary(itinerary_id, user)
    try:
        updated = remove_item(itinerary_id, entity_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Item not in itinerary")
    if updated is None:
        raise HTTPException(status_code=404, detail="Itinerary not found")
    return updated


@app.get("/itineraries/{itinerary_id}/items/{entity_id}/route", response_model=RouteTarget)
def itinerary_item_route(itinerary_id: str, entity_id: str, user: dict = Depends(require_user)) -> RouteTarget:
    itinerary = _owned_itinerary(itinerary_id, user)
    item = next((i for i in itinerary.items if i.id == entity_id), None)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not in itinerary")
    return _route_target(item.latitude, item.longitude, item.name, item.image_url)


@app.delete("/itineraries/{itinerary_id}")
def remove_itinerary(itinerary_id: str, user: dict = Depends(require_user)) -> dict:
    _owned_itinerary(itinerary_id, user)
    delete_itinerary(itinerary_id)
    return {"status": "deleted"}


# ── Favorites & reviews ──────────────────────────────────────────────────


@app.get("/favorites")
def my_favorites(user: dict = Depends(require_user)) -> dict:
    return {"spot_ids": get_favorites(user["id"])}


@app.post("/favorites/{spot_id}", status_code=201)
def favorite(spot_id: str, user: dict = Depends(require_user)) -> dict:
    _catalog_get("tourist_spots", spot_id)
    try:
        add_favorite(user["id"], spot_id)
    except DuplicateFavoriteError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"status": "added", "spot_id": spot_id}


@app.delete("/favorites/{spot_id}")
def unfavorite(spot_id: str, user: dict = Depends(require_user)) -> dict:
    if not remove_favorite(user["id"], spot_id):
        raise HTTPException(status_code=404, detail="Not in favorites")
    return {"status": "removed", "spot_id": spot_id}


@app.post("/spots/{spot_id}/reviews", response_model=Review, status_code=201)
def review_spot(spot_id: str, body: ReviewRequest, user: dict = Depends(require_user)) -> Review:
    _catalog_get("tourist_spots", spot_id)
    try:
        return _with_author(add_review(spot_id, user["id"], body.rating, body.comment))
    except DuplicateReviewError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@app.delete("/reviews/{review_id}")
def remove_review(review_id: str, user: dict = Depends(require_user)) -> dict:
    if not delete_review(review_id, user["id"]):
        raise HTTPException(status_code=404, detail="Review not found")
    return {"status": "deleted"}


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/admin/stats")
def admin_stats(user: dict = Depends(require_admin)) -> dict:
    store = get_store()
    return {
        **{table: store.count(table) for table in CATALOG_TABLES},
        "users": len(list_users()),
        "itineraries": count_itineraries(),
        "reviews": count_reviews(),
    }


@app.get("/admin/users")
def admin_users(user: dict = Depends(require_admin)) -> list[dict]:
    return list_users()


@app.post("/admin/users", status_code=201)
def admin_create_user(body: CreateUserRequest, user: dict = Depends(require_admin)) -> dict:
    try:
        return create_user(
            body.email,
            body.password,
            body.first_name,
            body.last_name,
            middle_initial=body.middle_initial,
            suffix=body.suffix,
            role=body.role,
        )
    except UserExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@app.delete("/admin/users/{user_id}/roles")
def admin_deactivate_user(user_id: str, user: dict = Depends(require_admin)) -> dict:
    if get_user(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    removed = deactivate_user(user_id)
    return {"status": "deactivated", "roles_removed": removed, "user": get_user(user_id)}


@app.post("/admin/import")
def admin_import(body: BulkImportRequest, user: dict = Depends(require_admin)) -> dict:
    result = run_import(get_store(), body.type, body.csv_text)
    if result.total == 0:
        raise HTTPException(status_code=400, detail="No data found in CSV file")
    return {
        "table": result.table,
        "total": result.total,
        "success_count": result.success_count,
        "error_count": result.error_count,
        "failed_batches": result.failed_batches,
    }


@app.get("/admin/catalog/{table}")
def admin_list(table: CatalogTable, user: dict = Depends(require_admin)) -> list[dict]:
    return _catalog_list(table)


@app.post("/admin/catalog/{table}", status_code=201)
def admin_create(table: CatalogTable, body: dict[str, Any], user: dict = Depends(require_admin)) -> dict:
    try:
        return get_store().insert(table, [body])[0]
    except StorageError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@app.patch("/admin/catalog/{table}/{row_id}")
def admin_update(
    table: CatalogTable, row_id: str, body: dict[str, Any], user: dict = Depends(require_admin),
) -> dict:
    try:
        row = get_store().update(table, row_id, body)
    except StorageError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if row is None:
        raise HTTPException(status_code=404, detail="Not found")
    return row


@app.delete("/admin/catalog/{table}/{row_id}")
def admin_delete(table: CatalogTable, row_id: str, user: dict = Depends(require_admin)) -> dict:
    if not get_store().delete(table, row_id):
        raise HTTPException(status_code=404, detail="Not found")
    return {"status": "deleted"}
