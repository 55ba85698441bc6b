from datetime import timedelta

import numpy as np
import pytest

from eventfinder.errors import ProviderError
from eventfinder.recommendations.models import RecentSearch, RecentView, UserProfile
from eventfinder.recommendations.semantic import (
    DEFAULT_PROFILE_TEXT,
    build_profile_text,
    semantic_rank,
)
from eventfinder.store.documents import DocumentStore
from eventfinder.store.models import Event, Role, utcnow
from eventfinder.store.vector_index import VectorIndex

NOW = utcnow()


class _FixedProvider:
    def __init__(self, vector):
        self.vector = np.asarray(vector, dtype=np.float32)
        self.texts = []

    def embed(self, text):
        self.texts.append(text)
        return self.vector


def _index_with(*events_and_vectors):
    store = DocumentStore()
    index = VectorIndex(store)
    for event, vector in events_and_vectors:
        store.add_event(event)
        index.upsert(event.id, vector)
    return index


def _upcoming(event_id, **fields):
    return Event(id=event_id, title=event_id, start_date=NOW + timedelta(days=5), **fields)


# ── Profile text ─────────────────────────────────────────────────────────


def test_profile_text_lists_every_signal():
    profile = UserProfile(
        id="u1",
        role=Role.student,
        interests={"tech", "music"},
        past_signup_interests=["music", "art"],
        recent_searches=[RecentSearch(query="hackathon", timestamp=NOW)],
        recent_views=[RecentView(event_id="e1", event_title="Jazz Night", timestamp=NOW)],
        positive_review_topics=["art"],
        negative_review_topics=["sports"],
    )
    text = build_profile_text(profile)

    assert text == (
        "Interested in: music, tech. Role: student. "
        "Recently signed up for events about: music, art. "
        "Recently searched for: hackathon. Recently viewed: Jazz Night. "
        "Highly enjoyed: art. Did not enjoy: sports"
    )


def test_profile_text_keeps_last_five_searches():
    profile = UserProfile(
        id="u1",
        role=Role.student,
        recent_searches=[RecentSearch(query=f"q{i}", timestamp=NOW) for i in range(7)],
    )
    assert "Recently searched for: q2, q3, q4, q5, q6" in build_profile_text(profile)


def test_default_profile_text_constant():
    assert DEFAULT_PROFILE_TEXT == "General user looking for events"


# ── Ranking ──────────────────────────────────────────────────────────────


def test_scores_are_scaled():
    index = _index_with(
        (_upcoming("near"), [1.0, 0.0]),
        (_upcoming("far"), [0.0, 1.0]),
    )
    profile = UserProfile(id="u1", role=Role.student, interests={"music"})
    provider = _FixedProvider([1.0, 0.0])

    ranked = semantic_rank(profile, provider, index, NOW)

    assert [e.id for e in ranked] == ["near", "far"]
    assert ranked[0].similarity_score == pytest.approx(0.7, abs=1e-5)
    assert ranked[1].similarity_score == pytest.approx(0.35, abs=1e-5)
    assert provider.texts == ["Interested in: music. Role: student"]


def test_excludes_signed_up_past_and_closed_events():
    index = _index_with(
        (_upcoming("mine"), [1.0, 0.0]),
        (_upcoming("closed", signups_open=False), [1.0, 0.0]),
        (Event(id="past", title="past", start_date=NOW - timedelta(days=1)), [1.0, 0.0]),
        (Event(id="undated", title="undated"), [1.0, 0.0]),
        (_upcoming("open"), [0.5, 0.5]),
    )
    profile = UserProfile(id="u1", role=Role.student, signed_up_event_ids=["mine"])

    ranked = semantic_rank(profile, _FixedProvider([1.0, 0.0]), index, NOW)
    assert [e.id for e in ranked] == ["open"]

    ranked = semantic_rank(
        profile, _FixedProvider([1.0, 0.0]), index, NOW, include_signed_up=True,
    )
    assert [e.id for e in ranked] == ["mine", "open"]


def test_empty_result_raises_provider_error():
    index = _index_with((_upcoming("mine"), [1.0, 0.0]))
    profile = UserProfile(id="u1", role=Role.student, signed_up_event_ids=["mine"])

    with pytest.raises(ProviderError):
        semantic_rank(profile, _FixedProvider([1.0, 0.0]), index, NOW)
