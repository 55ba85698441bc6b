from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from ..errors import NotFound, ValidationError
from ..store.documents import DocumentStore
from ..store.models import months_before, utcnow
from .config import DEFAULT_RANKING_CONFIG, RankingConfig
from .insights import build_signup_affinity, extract_review_insights
from .models import PopulatedReview, RecentSearch, RecentView, UserProfile

logger = logging.getLogger(__name__)


def _populate_reviews(store: DocumentStore, user_id: str) -> list[PopulatedReview]:
    populated = []
    for review in store.find_reviews(user_id):
        event = store.get_event(review.event_id)
        populated.append(PopulatedReview(
            rating=review.rating,
            event_interests=event.interests if event is not None else [],
        ))
    return populated


def _ranked_topics(weights: dict[str, float]) -> list[str]:
    return [topic for topic, _ in sorted(weights.items(), key=lambda kv: (-kv[1], kv[0]))]


def build_profile(
    store: DocumentStore,
    user_id: str,
    include_signed_up: bool = False,
    now: datetime | None = None,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> UserProfile:
    """Aggregate everything known about *user_id* into a ranking context.

    Only signups from the last ``config.signup_window_months`` count. Searches
    and views are fetched newest first, then re-sorted oldest first so that
    slicing the tail of either list yields the most recent entries.

    Raises ``ValidationError`` for an empty id and ``NotFound`` for an
    unknown user. Reads only.
    """
    if not user_id or not user_id.strip():
        raise ValidationError("user id is required")

    user = store.get_user(user_id)
    if user is None:
        raise NotFound(f"user {user_id} not found")

    now = now or utcnow()
    signup_cutoff = months_before(now, config.signup_window_months)

    # The four reads are independent of each other.
    with ThreadPoolExecutor(max_workers=4, thread_name_prefix="profile") as pool:
        signups_f = pool.submit(store.find_signups, user_id, signup_cutoff)
        searches_f = pool.submit(
            store.find_history, "search", user_id, True, config.search_lookback, now,
        )
        views_f = pool.submit(
            store.find_history, "view", user_id, True, config.view_lookback, now,
        )
        reviews_f = pool.submit(_populate_reviews, store, user_id)

        signups = signups_f.result()
        searches = searches_f.result()
        views = views_f.result()
        reviews = reviews_f.result()

    signed_up_event_ids = list(dict.fromkeys(s.event_id for s in signups))
    affinity = build_signup_affinity(store, signed_up_event_ids)
    insight = extract_review_insights(reviews)

    profile = UserProfile(
        id=user.id,
        role=user.role,
        interests=set(user.interests),
        past_signup_interests=affinity.ordered_list,
        signup_interest_weights=affinity.weights,
        signed_up_event_ids=signed_up_event_ids,
        recent_searches=[
            RecentSearch(query=s.query, timestamp=s.timestamp)
            for s in sorted(searches, key=lambda e: e.timestamp)
        ],
        recent_views=[
            RecentView(event_id=v.event_id, event_title=v.event_title, timestamp=v.timestamp)
            for v in sorted(views, key=lambda e: e.timestamp)
        ],
        positive_review_topics=_ranked_topics(insight.positive_topics),
        negative_review_topics=_ranked_topics(insight.negative_topics),
    )
    logger.debug(
        "Built profile for %s: %d interests, %d signups, %d searches, %d views, include_signed_up=%s",
        user_id,
        len(profile.interests),
        len(signed_up_event_ids),
        len(profile.recent_searches),
        len(profile.recent_views),
        include_signed_up,
    )
    return profile
