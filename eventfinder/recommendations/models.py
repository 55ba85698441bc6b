from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..store.models import Event, Role, SearchHistoryEntry, ViewHistoryEntry


class RecommendationType(str, Enum):
    personalized_vector = "personalized_vector"
    personalized = "personalized"
    popular = "popular"


# ── Ranking context ──────────────────────────────────────────────────────


class RecentSearch(BaseModel):
    query: str
    timestamp: datetime


class RecentView(BaseModel):
    event_id: str
    event_title: str | None = None
    timestamp: datetime


class UserProfile(BaseModel):
    """Everything the rankers know about a user, built fresh per request.

    ``recent_searches`` and ``recent_views`` are ordered oldest first, so the
    last N items are the most recent N.
    """

    id: str
    role: Role
    interests: set[str] = Field(default_factory=set)
    past_signup_interests: list[str] = Field(default_factory=list)
    signup_interest_weights: dict[str, float] = Field(default_factory=dict)
    signed_up_event_ids: list[str] = Field(default_factory=list)
    recent_searches: list[RecentSearch] = Field(default_factory=list)
    recent_views: list[RecentView] = Field(default_factory=list)
    positive_review_topics: list[str] = Field(default_factory=list)
    negative_review_topics: list[str] = Field(default_factory=list)

    @property
    def has_interests(self) -> bool:
        return bool(self.interests)

    @property
    def has_behavior_signals(self) -> bool:
        return bool(self.recent_searches or self.recent_views or self.signed_up_event_ids)

    @property
    def has_review_topics(self) -> bool:
        return bool(self.positive_review_topics or self.negative_review_topics)


class PopulatedReview(BaseModel):
    """A review joined with the interest tags of the event it rates."""

    rating: int = Field(..., ge=1, le=5)
    event_interests: list[str] = Field(default_factory=list)


class ReviewInsight(BaseModel):
    positive_topics: dict[str, float] = Field(default_factory=dict)
    negative_topics: dict[str, float] = Field(default_factory=dict)


class SignupAffinity(BaseModel):
    weights: dict[str, float] = Field(default_factory=dict)
    ordered_list: list[str] = Field(default_factory=list)


class CandidateEvent(Event):
    similarity_score: float = 0.0
    embedding: list[float] | None = None

    @classmethod
    def from_event(cls, event: Event, similarity_score: float = 0.0) -> CandidateEvent:
        return cls(**event.model_dump(), similarity_score=similarity_score)


# ── API models ───────────────────────────────────────────────────────────


class ScoredEvent(Event):
    similarity_score: float = Field(..., ge=0.0, le=1.0)
    similarity_percentage: int = Field(..., ge=0, le=100)
    is_signed_up: bool = False


class RecommendationResult(BaseModel):
    events: list[ScoredEvent]
    recommendation_type: RecommendationType


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SearchRecordRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)


class ViewRecordRequest(BaseModel):
    event_id: str = Field(..., min_length=1)


class HistoryResponse(BaseModel):
    search_history: list[SearchHistoryEntry]
    view_history: list[ViewHistoryEntry]


class EventCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str | None = None
    location: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    interests: list[str] = Field(default_factory=list)
    capacity: int | None = Field(default=None, ge=1)
    signups_open: bool = True


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    role: Role = Role.student
    interests: list[str] = Field(default_factory=list)


class UserUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    interests: list[str] | None = None


class ReviewCreateRequest(BaseModel):
    event_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class ReviewUpdateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class AttendanceUpdateRequest(BaseModel):
    attended: bool
