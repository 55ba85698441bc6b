from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RankingConfig:
    # Semantic path
    semantic_score_scale: float = 0.7
    vector_num_candidates: int = 100
    vector_result_cap: int = 50

    # Fallback path
    fallback_candidate_cap: int = 100

    # Profile lookbacks
    signup_window_months: int = 6
    search_lookback: int = 5
    view_lookback: int = 15
    profile_text_items: int = 5

    # Request bounds
    default_limit: int = 10
    max_limit: int = 50


DEFAULT_RANKING_CONFIG = RankingConfig()
