from __future__ import annotations

import logging
from datetime import datetime

from ..embeddings.encoder import EmbeddingProvider
from ..errors import ProviderError
from ..store.vector_index import VectorIndex
from .candidates import search_candidates
from .config import DEFAULT_RANKING_CONFIG, RankingConfig
from .models import CandidateEvent, UserProfile

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_TEXT = "General user looking for events"


def build_profile_text(profile: UserProfile, config: RankingConfig = DEFAULT_RANKING_CONFIG) -> str:
    """Describe the profile in plain language; this is the semantic query."""
    n = config.profile_text_items
    parts: list[str] = []

    if profile.interests:
        parts.append(f"Interested in: {', '.join(sorted(profile.interests))}")

    if profile.role:
        parts.append(f"Role: {profile.role.value}")

    if profile.past_signup_interests:
        topics = list(dict.fromkeys(profile.past_signup_interests))[:n]
        parts.append(f"Recently signed up for events about: {', '.join(topics)}")

    queries = [s.query for s in profile.recent_searches[-n:] if s.query]
    if queries:
        parts.append(f"Recently searched for: {', '.join(queries)}")

    titles = [v.event_title for v in profile.recent_views[-n:] if v.event_title]
    if titles:
        parts.append(f"Recently viewed: {', '.join(titles)}")

    if profile.positive_review_topics:
        parts.append(f"Highly enjoyed: {', '.join(profile.positive_review_topics)}")

    if profile.negative_review_topics:
        parts.append(f"Did not enjoy: {', '.join(profile.negative_review_topics)}")

    return ". ".join(parts) or DEFAULT_PROFILE_TEXT


def semantic_rank(
    profile: UserProfile,
    provider: EmbeddingProvider,
    index: VectorIndex,
    now: datetime,
    include_signed_up: bool = False,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> list[CandidateEvent]:
    """Rank upcoming open events by similarity to the profile text.

    Raw similarity is scaled by ``config.semantic_score_scale`` so the boosts
    layered on afterwards have room below 1.0.

    Raises ``ProviderError`` if embedding fails or nothing comes back.
    """
    query_vector = provider.embed(build_profile_text(profile, config))

    candidates = search_candidates(
        index,
        query_vector,
        now,
        exclude_ids=profile.signed_up_event_ids,
        include_signed_up=include_signed_up,
        config=config,
    )
    if not candidates:
        raise ProviderError("vector search returned no events")

    for candidate in candidates:
        candidate.similarity_score *= config.semantic_score_scale

    logger.debug("Semantic search returned %d events for %s", len(candidates), profile.id)
    return candidates
