from datetime import timedelta

import pytest

from eventfinder.recommendations.fallback import rank_fallback
from eventfinder.recommendations.models import CandidateEvent, UserProfile
from eventfinder.store.models import Role, utcnow

NOW = utcnow()


def _event(event_id, days_until, signups=0, capacity=None, interests=()):
    return CandidateEvent(
        id=event_id,
        title=event_id,
        start_date=NOW + timedelta(days=days_until),
        signup_count=signups,
        capacity=capacity,
        interests=list(interests),
    )


def _profile(**fields):
    return UserProfile(id="u1", role=Role.student, **fields)


# ── Popularity-only mode ─────────────────────────────────────────────────


def test_popularity_only_scores():
    ranked = rank_fallback(
        _profile(),
        [_event("later", 20), _event("soon", 3, signups=10, capacity=20)],
        NOW,
        popularity_only=True,
    )
    assert [e.id for e in ranked] == ["soon", "later"]
    # 0.5 popularity + 0.3 recency + 0.5 * 0.2 availability
    assert ranked[0].similarity_score == pytest.approx(0.9)
    # no signups, 20 days out, uncapped
    assert ranked[1].similarity_score == pytest.approx(0.1)


def test_popularity_recency_tiers():
    ranked = rank_fallback(
        _profile(),
        [_event("d7", 6.5), _event("d14", 13), _event("d30", 29), _event("d60", 59)],
        NOW,
        popularity_only=True,
    )
    scores = {e.id: e.similarity_score for e in ranked}
    assert scores == pytest.approx({"d7": 0.3, "d14": 0.2, "d30": 0.1, "d60": 0.0})


def test_full_event_gets_no_availability_in_popularity_mode():
    ranked = rank_fallback(
        _profile(), [_event("full", 40, signups=100, capacity=100)], NOW, popularity_only=True,
    )
    assert ranked[0].similarity_score == pytest.approx(0.5)


# ── Personalized mode ────────────────────────────────────────────────────


def test_full_event_gets_no_availability_in_personalized_mode():
    ranked = rank_fallback(
        _profile(interests={"music", "tech"}),
        [_event("full", 10, signups=100, capacity=100, interests=["music"])],
        NOW,
    )
    # overlap 1/2 * 0.7 + 14-day tier, no availability, no nudge at capacity
    assert ranked[0].similarity_score == pytest.approx(0.35 + 0.10)


def test_full_events_remain_candidates():
    ranked = rank_fallback(
        _profile(interests={"music"}),
        [_event("full", 10, signups=50, capacity=50), _event("open", 10, capacity=50)],
        NOW,
    )
    assert {e.id for e in ranked} == {"full", "open"}


def test_signup_affinity_is_capped():
    ranked = rank_fallback(
        _profile(signup_interest_weights={"music": 1.0, "art": 0.5}),
        [_event("e", 45, interests=["music", "art"])],
        NOW,
    )
    assert ranked[0].similarity_score == pytest.approx(0.3)


def test_popularity_nudge():
    ranked = rank_fallback(
        _profile(interests={"chess"}),
        [_event("a", 45, signups=1), _event("b", 45, signups=30)],
        NOW,
    )
    scores = {e.id: e.similarity_score for e in ranked}
    assert scores == pytest.approx({"a": 0.02, "b": 0.05})


def test_personalized_score_is_clamped():
    ranked = rank_fallback(
        _profile(interests={"music"}, signup_interest_weights={"music": 1.0}),
        [_event("e", 2, signups=10, capacity=100, interests=["music"])],
        NOW,
    )
    assert ranked[0].similarity_score == 1.0


def test_sorted_descending_and_in_range():
    events = [
        _event("a", 3, signups=5, capacity=10, interests=["music"]),
        _event("b", 25, interests=["tech"]),
        _event("c", 1, signups=90, capacity=100, interests=["music", "tech"]),
        _event("d", 90),
    ]
    ranked = rank_fallback(_profile(interests={"music", "tech"}), events, NOW)
    scores = [e.similarity_score for e in ranked]
    assert scores == sorted(scores, reverse=True)
    assert all(0.0 <= s <= 1.0 for s in scores)


def test_excluded_ids_are_dropped():
    ranked = rank_fallback(
        _profile(interests={"music"}),
        [_event("keep", 5), _event("mine", 5)],
        NOW,
        exclude_signed_up={"mine"},
    )
    assert [e.id for e in ranked] == ["keep"]
