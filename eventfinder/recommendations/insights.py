from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from ..store.documents import DocumentStore
from .models import PopulatedReview, ReviewInsight, SignupAffinity

POSITIVE_MIN_RATING = 4
NEGATIVE_MAX_RATING = 2


def extract_review_insights(reviews: Iterable[PopulatedReview]) -> ReviewInsight:
    """Turn a user's ratings into weighted positive and negative topic maps.

    A rating of 4-5 weights every tag of the reviewed event ``rating / 5``;
    a rating of 1-2 weights it ``(3 - rating) / 2``. A topic seen in several
    reviews keeps its strongest weight rather than accumulating.
    """
    positive: dict[str, float] = {}
    negative: dict[str, float] = {}

    for review in reviews:
        if not review.event_interests:
            continue
        if review.rating >= POSITIVE_MIN_RATING:
            weight = review.rating / 5
            for tag in review.event_interests:
                positive[tag] = max(positive.get(tag, 0.0), weight)
        elif review.rating <= NEGATIVE_MAX_RATING:
            weight = (3 - review.rating) / 2
            for tag in review.event_interests:
                negative[tag] = max(negative.get(tag, 0.0), weight)

    return ReviewInsight(positive_topics=positive, negative_topics=negative)


def build_signup_affinity(store: DocumentStore, event_ids: Iterable[str]) -> SignupAffinity:
    """Weight each interest by how often it tags the user's signed-up events.

    Weights are normalised by the most frequent interest, which always gets 1.0.
    """
    counts: Counter[str] = Counter()
    for event in store.get_events(event_ids):
        counts.update(event.interests)

    if not counts:
        return SignupAffinity()

    # Counter.most_common keeps first-seen order among equal counts.
    ordered = counts.most_common()
    max_count = ordered[0][1]
    return SignupAffinity(
        weights={tag: count / max_count for tag, count in ordered},
        ordered_list=[tag for tag, _ in ordered],
    )
