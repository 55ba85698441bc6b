from eventfinder.recommendations.insights import build_signup_affinity, extract_review_insights
from eventfinder.recommendations.models import PopulatedReview
from eventfinder.store.documents import DocumentStore
from eventfinder.store.models import Event


def _store_with_events(*tag_lists):
    store = DocumentStore()
    ids = []
    for i, tags in enumerate(tag_lists):
        event = store.add_event(Event(id=f"e{i}", title=f"Event {i}", interests=list(tags)))
        ids.append(event.id)
    return store, ids


# ── Review insights ──────────────────────────────────────────────────────


def test_positive_and_negative_reviews():
    insight = extract_review_insights([
        PopulatedReview(rating=5, event_interests=["art"]),
        PopulatedReview(rating=1, event_interests=["sports"]),
    ])
    assert insight.positive_topics == {"art": 1.0}
    assert insight.negative_topics == {"sports": 1.0}


def test_neutral_and_untagged_reviews_contribute_nothing():
    insight = extract_review_insights([
        PopulatedReview(rating=3, event_interests=["music"]),
        PopulatedReview(rating=5, event_interests=[]),
    ])
    assert insight.positive_topics == {}
    assert insight.negative_topics == {}


def test_repeated_topic_keeps_max_weight():
    insight = extract_review_insights([
        PopulatedReview(rating=4, event_interests=["tech"]),
        PopulatedReview(rating=5, event_interests=["tech"]),
        PopulatedReview(rating=4, event_interests=["tech"]),
        PopulatedReview(rating=2, event_interests=["food"]),
        PopulatedReview(rating=1, event_interests=["food"]),
    ])
    assert insight.positive_topics == {"tech": 1.0}
    assert insight.negative_topics == {"food": 1.0}


def test_rating_weights():
    insight = extract_review_insights([
        PopulatedReview(rating=4, event_interests=["tech", "career"]),
        PopulatedReview(rating=2, event_interests=["food"]),
    ])
    assert insight.positive_topics == {"tech": 0.8, "career": 0.8}
    assert insight.negative_topics == {"food": 0.5}


def test_extraction_is_idempotent():
    reviews = [
        PopulatedReview(rating=5, event_interests=["art", "music"]),
        PopulatedReview(rating=2, event_interests=["sports"]),
    ]
    assert extract_review_insights(reviews) == extract_review_insights(reviews)


# ── Signup affinity ──────────────────────────────────────────────────────


def test_affinity_normalises_against_most_frequent():
    store, ids = _store_with_events(["music", "tech"], ["music"], ["music", "art"], ["tech"])
    affinity = build_signup_affinity(store, ids)

    assert affinity.weights["music"] == 1.0
    assert affinity.weights["tech"] == 2 / 3
    assert affinity.weights["art"] == 1 / 3
    assert affinity.ordered_list == ["music", "tech", "art"]


def test_affinity_always_has_a_full_weight_tag():
    store, ids = _store_with_events(["a"], ["b"], ["c", "a"])
    affinity = build_signup_affinity(store, ids)
    assert 1.0 in affinity.weights.values()
    assert all(0.0 <= w <= 1.0 for w in affinity.weights.values())


def test_affinity_ties_keep_first_seen_order():
    store, ids = _store_with_events(["film", "games"], ["games", "film"])
    affinity = build_signup_affinity(store, ids)
    assert affinity.ordered_list == ["film", "games"]


def test_affinity_empty_without_tags():
    store, ids = _store_with_events([], [])
    affinity = build_signup_affinity(store, ids)
    assert affinity.weights == {}
    assert affinity.ordered_list == []


def test_affinity_ignores_missing_events():
    store, ids = _store_with_events(["music"])
    affinity = build_signup_affinity(store, ids + ["does-not-exist"])
    assert affinity.weights == {"music": 1.0}
    assert build_signup_affinity(store, []).weights == {}
