"""
Rule-based ranking used when the semantic path is unavailable.

Two modes:

* **popularity-only** for users with no interests and no activity:
  ``0.5 × popularity + 0.3 × recency tier + 0.2 × availability``
* **personalized** otherwise:
  ``0.7 × interest overlap + 0.3 × signup affinity + 0.15 × recency tier
  + 0.1 × availability + up to 0.05 popularity nudge``

Scores are clamped to [0, 1].
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from .models import CandidateEvent, UserProfile

_SECONDS_PER_DAY = 86400.0

POPULAR_RECENCY_TIERS = ((7, 0.3), (14, 0.2), (30, 0.1))
PERSONAL_RECENCY_TIERS = ((7, 0.15), (14, 0.10), (30, 0.05))


def clamp_score(score: float) -> float:
    return max(0.0, min(score, 1.0))


def _days_until(event: CandidateEvent, now: datetime) -> float | None:
    if event.start_date is None:
        return None
    return (event.start_date - now).total_seconds() / _SECONDS_PER_DAY


def _recency_score(event: CandidateEvent, now: datetime, tiers: tuple) -> float:
    days = _days_until(event, now)
    if days is None:
        return 0.0
    for max_days, score in tiers:
        if days <= max_days:
            return score
    return 0.0


def _availability_ratio(event: CandidateEvent) -> float:
    """Share of capacity still free; 0 for uncapped or full events."""
    if not event.capacity or event.signup_count >= event.capacity:
        return 0.0
    return 1 - event.signup_count / event.capacity


def signup_affinity_sum(event: CandidateEvent, weights: dict[str, float]) -> float:
    return sum(weights.get(tag, 0.0) for tag in event.interests)


def _popularity_score(event: CandidateEvent, now: datetime, max_signups: int) -> float:
    score = (event.signup_count / max_signups) * 0.5
    score += _recency_score(event, now, POPULAR_RECENCY_TIERS)
    score += _availability_ratio(event) * 0.2
    return score


def _personalized_score(event: CandidateEvent, profile: UserProfile, now: datetime) -> float:
    score = 0.0

    if profile.interests:
        overlap = len(profile.interests.intersection(event.interests))
        score += (overlap / len(profile.interests)) * 0.7

    weights = profile.signup_interest_weights
    if weights and event.interests:
        score += min(signup_affinity_sum(event, weights) * 0.3, 0.3)

    score += _recency_score(event, now, PERSONAL_RECENCY_TIERS)
    score += _availability_ratio(event) * 0.1

    if 0 < event.signup_count < (event.capacity or 100):
        score += min(event.signup_count / 50, 0.05)

    return score


def rank_fallback(
    profile: UserProfile,
    candidates: list[CandidateEvent],
    now: datetime,
    exclude_signed_up: Iterable[str] = (),
    popularity_only: bool = False,
) -> list[CandidateEvent]:
    """Score *candidates* in place and return them best first.

    Events whose id is in ``exclude_signed_up`` are dropped. Callers pass an
    empty set when signed-up events were explicitly requested.
    """
    excluded = set(exclude_signed_up)
    pool = [c for c in candidates if c.id not in excluded]
    max_signups = max([c.signup_count for c in pool] + [1])

    for candidate in pool:
        if popularity_only:
            score = _popularity_score(candidate, now, max_signups)
        else:
            score = _personalized_score(candidate, profile, now)
        candidate.similarity_score = clamp_score(score)

    return sorted(pool, key=lambda c: c.similarity_score, reverse=True)
