from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.history import clear_history, get_history, record_search, record_view
from .auth.dependencies import require_organiser, require_user
from .auth.users import authenticate, register_user, update_profile
from .data_ingestion.ingest import run_ingestion
from .embeddings.config import DEFAULT_EMBEDDING_CONFIG
from .embeddings.encoder import EmbeddingProvider, get_embedding_provider
from .embeddings.precompute import index_event
from .errors import Forbidden, NotFound, ProviderError, ValidationError
from .events import reviews, signups
from .recommendations.config import DEFAULT_RANKING_CONFIG
from .recommendations.models import (
    AttendanceUpdateRequest,
    EventCreateRequest,
    HistoryResponse,
    LoginRequest,
    RecommendationResult,
    RegisterRequest,
    ReviewCreateRequest,
    ReviewUpdateRequest,
    SearchRecordRequest,
    UserUpdateRequest,
    ViewRecordRequest,
)
from .recommendations.retrieval import get_recommendations
from .store.documents import DocumentStore, get_store
from .store.models import Event, Review, SearchHistoryEntry, Signup, ViewHistoryEntry, utcnow
from .store.vector_index import VectorIndex, get_vector_index

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = get_store()
    if store.count_events() == 0:
        counts = run_ingestion(store)
        logger.info("Seeded store with %d events and %d users", counts["events"], counts["users"])
    embeddings_path = DEFAULT_EMBEDDING_CONFIG.embeddings_path
    if embeddings_path.exists():
        loaded = get_vector_index().load(embeddings_path)
        logger.info("Loaded %d event embeddings from %s", loaded, embeddings_path)
    yield


app = FastAPI(title="Event Suggestions API", version="1.0.0", lifespan=lifespan)
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "eventfinder-secret-change-in-production"),
)


def embedding_provider() -> EmbeddingProvider | None:
    return get_embedding_provider()


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": str(exc)})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(
    body: LoginRequest,
    request: Request,
    store: DocumentStore = Depends(get_store),
) -> dict:
    user = authenticate(store, body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.post("/auth/register", status_code=201)
def register(
    body: RegisterRequest,
    request: Request,
    store: DocumentStore = Depends(get_store),
) -> dict:
    user = register_user(
        store, body.email, body.password, body.name, role=body.role, interests=body.interests,
    )
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


@app.patch("/users/{user_id}")
def update_user(
    user_id: str,
    body: UserUpdateRequest,
    request: Request,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    if user["id"] != user_id:
        raise HTTPException(status_code=403, detail="Can only update your own profile")
    updated = update_profile(store, user_id, name=body.name, interests=body.interests)
    request.session["user"] = updated
    return updated


# ── Suggestions ──────────────────────────────────────────────────────────


@app.get("/suggestions", response_model=RecommendationResult)
def suggestions(
    limit: int = Query(DEFAULT_RANKING_CONFIG.default_limit, ge=1, le=DEFAULT_RANKING_CONFIG.max_limit),
    include_signed_up: bool = Query(False, alias="includeSignedUp"),
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
    index: VectorIndex = Depends(get_vector_index),
    provider: EmbeddingProvider | None = Depends(embedding_provider),
) -> RecommendationResult:
    return get_recommendations(
        store,
        user["id"],
        limit=limit,
        include_signed_up=include_signed_up,
        provider=provider,
        index=index,
    )


# ── Activity tracking ────────────────────────────────────────────────────


@app.post("/analytics/search", response_model=SearchHistoryEntry)
def track_search(
    body: SearchRecordRequest,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> SearchHistoryEntry:
    return record_search(store, user["id"], body.query)


@app.post("/analytics/view", response_model=ViewHistoryEntry)
def track_view(
    body: ViewRecordRequest,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> ViewHistoryEntry:
    return record_view(store, user["id"], body.event_id)


@app.get("/analytics/history", response_model=HistoryResponse)
def history(
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> HistoryResponse:
    return HistoryResponse(**get_history(store, user["id"]))


@app.delete("/analytics/history")
def delete_history(
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    deleted = clear_history(store, user["id"])
    return {"message": "History cleared", "deleted": deleted}


# ── Events and signups ───────────────────────────────────────────────────


@app.get("/events", response_model=list[Event])
def list_events(
    upcoming: bool = Query(False),
    organiser_id: str | None = Query(None, alias="organiserId"),
    interest: str | None = Query(None),
    store: DocumentStore = Depends(get_store),
) -> list[Event]:
    events = store.find_events(start_from=utcnow() if upcoming else None)
    if organiser_id:
        events = [e for e in events if e.organiser_id == organiser_id]
    if interest:
        tag = interest.strip().lower()
        events = [e for e in events if tag in e.interests]
    return events


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str, store: DocumentStore = Depends(get_store)) -> Event:
    event = store.get_event(event_id)
    if event is None:
        raise NotFound(f"event {event_id} not found")
    return event


@app.post("/events", response_model=Event, status_code=201)
def create_event(
    body: EventCreateRequest,
    user: dict = Depends(require_organiser),
    store: DocumentStore = Depends(get_store),
    index: VectorIndex = Depends(get_vector_index),
    provider: EmbeddingProvider | None = Depends(embedding_provider),
) -> Event:
    event = store.add_event(Event(
        **body.model_dump(),
        organiser_id=user["id"],
        organiser_name=user.get("name"),
    ))
    if provider is not None:
        try:
            index_event(index, event, provider)
        except ProviderError:
            # The precompute job picks up events left unindexed.
            logger.warning("Could not embed new event %s", event.id, exc_info=True)
    return event


@app.post("/events/{event_id}/signup", response_model=Signup, status_code=201)
def sign_up(
    event_id: str,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Signup:
    return signups.sign_up(store, user["id"], event_id)


@app.delete("/events/{event_id}/signup")
def cancel_signup(
    event_id: str,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    signups.cancel_signup(store, user["id"], event_id)
    return {"status": "cancelled"}


@app.get("/events/{event_id}/signups", response_model=list[Signup])
def event_signups(
    event_id: str,
    user: dict = Depends(require_organiser),
    store: DocumentStore = Depends(get_store),
) -> list[Signup]:
    return signups.list_event_signups(store, user["id"], event_id)


@app.patch("/events/{event_id}/signups/{signup_id}", response_model=Signup)
def mark_attendance(
    event_id: str,
    signup_id: str,
    body: AttendanceUpdateRequest,
    user: dict = Depends(require_organiser),
    store: DocumentStore = Depends(get_store),
) -> Signup:
    return signups.set_attendance(store, user["id"], event_id, signup_id, body.attended)


# ── Reviews ──────────────────────────────────────────────────────────────


@app.get("/reviews", response_model=list[Review])
def list_reviews(
    event_id: str | None = Query(None, alias="eventId"),
    user_id: str | None = Query(None, alias="userId"),
    store: DocumentStore = Depends(get_store),
) -> list[Review]:
    return store.find_reviews(user_id=user_id, event_id=event_id)


@app.post("/reviews", response_model=Review, status_code=201)
def post_review(
    body: ReviewCreateRequest,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Review:
    return reviews.create_review(store, user["id"], body.event_id, body.rating, body.comment)


@app.put("/reviews/{review_id}", response_model=Review)
def put_review(
    review_id: str,
    body: ReviewUpdateRequest,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Review:
    return reviews.update_review(store, user["id"], review_id, body.rating, body.comment)


@app.delete("/reviews/{review_id}")
def remove_review(
    review_id: str,
    user: dict = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    reviews.delete_review(store, user["id"], review_id)
    return {"message": "Review deleted"}
