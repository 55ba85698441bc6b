from __future__ import annotations

import math
from datetime import datetime

from .fallback import clamp_score, signup_affinity_sum
from .models import CandidateEvent, ScoredEvent, UserProfile

INTEREST_BOOST_MAX = 0.10
SIGNUP_AFFINITY_BOOST_MAX = 0.10
ORGANISER_BOOST = 0.02
SEARCH_BOOST_MAX = 0.05
VIEW_BOOST_MAX = 0.03
DECAY_RATE = 0.1

_SECONDS_PER_DAY = 86400.0


def _days_since(moment: datetime, now: datetime) -> float:
    return max(0.0, (now - moment).total_seconds() / _SECONDS_PER_DAY)


def recency_decay(coefficient: float, moment: datetime, now: datetime) -> float:
    return coefficient * math.exp(-DECAY_RATE * _days_since(moment, now))


def interest_boost(event: CandidateEvent, profile: UserProfile) -> float:
    if not profile.interests:
        return 0.0
    overlap = len(profile.interests.intersection(event.interests))
    return min((overlap / len(profile.interests)) * INTEREST_BOOST_MAX, INTEREST_BOOST_MAX)


def signup_affinity_boost(event: CandidateEvent, profile: UserProfile) -> float:
    if not event.interests:
        return 0.0
    affinity = signup_affinity_sum(event, profile.signup_interest_weights)
    return min(affinity * SIGNUP_AFFINITY_BOOST_MAX, SIGNUP_AFFINITY_BOOST_MAX)


def previous_organisers(ranked: list[CandidateEvent], profile: UserProfile) -> set[str]:
    """Organisers of signed-up events that appear in *ranked*.

    Only the ranked list is scanned, so an organiser whose earlier event is
    not among the current candidates earns no affinity.
    """
    by_id = {e.id: e for e in ranked}
    organisers = set()
    for event_id in profile.signed_up_event_ids:
        match = by_id.get(event_id)
        if match is not None and match.organiser_id:
            organisers.add(match.organiser_id)
    return organisers


def search_boost(event: CandidateEvent, profile: UserProfile, now: datetime) -> float:
    if not profile.recent_searches:
        return 0.0
    haystack = f"{event.title} {event.description or ''} {' '.join(event.interests)}".lower()
    for search in profile.recent_searches:
        query = search.query.strip().lower()
        if query and query in haystack:
            return recency_decay(SEARCH_BOOST_MAX, search.timestamp, now)
    return 0.0


def view_boost(event: CandidateEvent, profile: UserProfile, now: datetime) -> float:
    for view in profile.recent_views:
        if view.event_id == event.id:
            return recency_decay(VIEW_BOOST_MAX, view.timestamp, now)
    return 0.0


def _to_scored(event: CandidateEvent, signed_up: set[str]) -> ScoredEvent:
    score = clamp_score(event.similarity_score)
    return ScoredEvent(
        **event.model_dump(exclude={"embedding", "similarity_score"}),
        similarity_score=score,
        similarity_percentage=round(score * 100),
        is_signed_up=event.id in signed_up,
    )


def apply_boosts(
    ranked: list[CandidateEvent],
    profile: UserProfile,
    now: datetime,
) -> list[ScoredEvent]:
    """Add activity boosts to each event's base score and re-sort.

    Boosts: interest overlap (≤0.10), signup affinity (≤0.10), organiser
    affinity (0.02), search recency (≤0.05) and view recency (≤0.03). The
    returned events never carry an embedding.
    """
    organisers = previous_organisers(ranked, profile)
    signed_up = set(profile.signed_up_event_ids)

    boosted: list[ScoredEvent] = []
    for event in ranked:
        boost = interest_boost(event, profile)
        boost += signup_affinity_boost(event, profile)
        if event.organiser_id and event.organiser_id in organisers:
            boost += ORGANISER_BOOST
        boost += search_boost(event, profile, now)
        boost += view_boost(event, profile, now)

        event.similarity_score = clamp_score(event.similarity_score + boost)
        boosted.append(_to_scored(event, signed_up))

    return sorted(boosted, key=lambda e: e.similarity_score, reverse=True)
