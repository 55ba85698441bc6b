from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

import numpy as np

from ..store.documents import DocumentStore
from ..store.models import Event
from ..store.vector_index import EventFilter, VectorIndex
from .config import DEFAULT_RANKING_CONFIG, RankingConfig
from .models import CandidateEvent


def vector_filter(
    now: datetime,
    exclude_ids: Iterable[str] = (),
    include_signed_up: bool = False,
) -> EventFilter:
    """Upcoming events that still accept signups."""
    excluded = frozenset() if include_signed_up else frozenset(exclude_ids)

    def _accept(event: Event) -> bool:
        if event.id in excluded:
            return False
        if event.start_date is None or event.start_date < now:
            return False
        return event.signups_open

    return _accept


def search_candidates(
    index: VectorIndex,
    query_vector: np.ndarray,
    now: datetime,
    exclude_ids: Iterable[str] = (),
    include_signed_up: bool = False,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> list[CandidateEvent]:
    """Nearest events to *query_vector*, each carrying its raw similarity."""
    hits = index.search(
        query_vector,
        num_candidates=config.vector_num_candidates,
        limit=config.vector_result_cap,
        filter=vector_filter(now, exclude_ids, include_signed_up),
    )
    return [CandidateEvent.from_event(event, score) for event, score in hits]


def get_candidates(
    store: DocumentStore,
    exclude_ids: Iterable[str],
    include_signed_up: bool,
    now: datetime,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> list[CandidateEvent]:
    """Upcoming events for rule-based ranking, soonest first.

    Full and closed events stay in the pool; the fallback ranker scores
    capacity instead of excluding on it.
    """
    events = store.find_events(
        start_from=now,
        exclude_ids=() if include_signed_up else exclude_ids,
        limit=config.fallback_candidate_cap,
    )
    return [CandidateEvent.from_event(event) for event in events]
