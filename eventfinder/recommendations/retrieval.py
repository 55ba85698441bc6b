"""
Recommendation pipeline.

    profile → first eligible strategy → boosts → top ``limit`` events

Strategies are tried in order; each declares when it applies:

1. ``semantic``      provider and index configured, user has any signal
2. ``personalized``  user has interests or search/view/signup activity
3. ``popular``       always

Any failure on the semantic path surfaces as ``ProviderError`` and moves on
to the next strategy. Errors from the rule-based strategies propagate, since
they have nothing left to fall back on.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ..embeddings.encoder import EmbeddingProvider
from ..errors import ProviderError, ValidationError
from ..store.documents import DocumentStore
from ..store.models import utcnow
from ..store.vector_index import VectorIndex
from .boosts import apply_boosts
from .candidates import get_candidates
from .config import DEFAULT_RANKING_CONFIG, RankingConfig
from .fallback import rank_fallback
from .models import CandidateEvent, RecommendationResult, RecommendationType, UserProfile
from .profile import build_profile
from .semantic import semantic_rank

logger = logging.getLogger(__name__)


@dataclass
class RankingContext:
    store: DocumentStore
    profile: UserProfile
    now: datetime
    include_signed_up: bool
    provider: EmbeddingProvider | None = None
    index: VectorIndex | None = None
    config: RankingConfig = DEFAULT_RANKING_CONFIG

    @property
    def excluded_ids(self) -> list[str]:
        return [] if self.include_signed_up else self.profile.signed_up_event_ids


class RankingStrategy:
    name: str = ""
    recommendation_type: RecommendationType

    def is_eligible(self, ctx: RankingContext) -> bool:
        raise NotImplementedError

    def rank(self, ctx: RankingContext) -> list[CandidateEvent]:
        raise NotImplementedError


class SemanticStrategy(RankingStrategy):
    name = "semantic"
    recommendation_type = RecommendationType.personalized_vector

    def is_eligible(self, ctx: RankingContext) -> bool:
        if ctx.provider is None or ctx.index is None:
            return False
        p = ctx.profile
        return p.has_interests or p.has_behavior_signals or p.has_review_topics

    def rank(self, ctx: RankingContext) -> list[CandidateEvent]:
        try:
            return semantic_rank(
                ctx.profile, ctx.provider, ctx.index, ctx.now, ctx.include_signed_up, ctx.config,
            )
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"semantic ranking failed: {exc}") from exc


class PersonalizedStrategy(RankingStrategy):
    name = "personalized"
    recommendation_type = RecommendationType.personalized

    def is_eligible(self, ctx: RankingContext) -> bool:
        return ctx.profile.has_interests or ctx.profile.has_behavior_signals

    def rank(self, ctx: RankingContext) -> list[CandidateEvent]:
        candidates = get_candidates(
            ctx.store, ctx.excluded_ids, ctx.include_signed_up, ctx.now, ctx.config,
        )
        return rank_fallback(ctx.profile, candidates, ctx.now, ctx.excluded_ids)


class PopularityStrategy(RankingStrategy):
    name = "popular"
    recommendation_type = RecommendationType.popular

    def is_eligible(self, ctx: RankingContext) -> bool:
        return True

    def rank(self, ctx: RankingContext) -> list[CandidateEvent]:
        candidates = get_candidates(
            ctx.store, ctx.excluded_ids, ctx.include_signed_up, ctx.now, ctx.config,
        )
        return rank_fallback(
            ctx.profile, candidates, ctx.now, ctx.excluded_ids, popularity_only=True,
        )


DEFAULT_STRATEGIES: tuple[RankingStrategy, ...] = (
    SemanticStrategy(),
    PersonalizedStrategy(),
    PopularityStrategy(),
)


def get_recommendations(
    store: DocumentStore,
    user_id: str,
    limit: int = DEFAULT_RANKING_CONFIG.default_limit,
    include_signed_up: bool = False,
    provider: EmbeddingProvider | None = None,
    index: VectorIndex | None = None,
    now: datetime | None = None,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
    strategies: tuple[RankingStrategy, ...] = DEFAULT_STRATEGIES,
) -> RecommendationResult:
    if not 1 <= limit <= config.max_limit:
        raise ValidationError(f"limit must be between 1 and {config.max_limit}")

    now = now or utcnow()
    profile = build_profile(store, user_id, include_signed_up, now, config)
    ctx = RankingContext(
        store=store,
        profile=profile,
        now=now,
        include_signed_up=include_signed_up,
        provider=provider,
        index=index,
        config=config,
    )

    ranked: list[CandidateEvent] = []
    chosen: RankingStrategy | None = None
    for strategy in strategies:
        if not strategy.is_eligible(ctx):
            continue
        try:
            ranked = strategy.rank(ctx)
        except ProviderError:
            logger.warning(
                "%s ranking failed for user %s, falling back", strategy.name, user_id, exc_info=True,
            )
            continue
        chosen = strategy
        break

    if chosen is None or not ranked:
        return RecommendationResult(events=[], recommendation_type=RecommendationType.popular)

    events = apply_boosts(ranked[:limit], profile, now)
    logger.info(
        "Suggestions for %s: strategy=%s returned=%d", user_id, chosen.name, len(events),
    )
    return RecommendationResult(events=events, recommendation_type=chosen.recommendation_type)
