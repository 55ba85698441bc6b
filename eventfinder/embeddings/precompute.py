"""
Offline script to precompute event embeddings.

Usage:
    python -m eventfinder.embeddings.precompute
"""
from __future__ import annotations

import logging

from ..data_ingestion.ingest import run_ingestion
from ..errors import ProviderError
from ..store.documents import DocumentStore, get_store
from ..store.models import Event
from ..store.vector_index import VectorIndex, get_vector_index
from .encoder import EmbeddingProvider, get_embedding_provider

logger = logging.getLogger(__name__)


def build_event_text(event: Event) -> str:
    parts: list[str] = []
    if event.title:
        parts.append(event.title)
    if event.description:
        parts.append(event.description)
    if event.interests:
        parts.append(f"Topics: {', '.join(event.interests)}")
    if event.location:
        parts.append(f"Location: {event.location}")
    return ". ".join(parts) or "Event"


def index_event(index: VectorIndex, event: Event, provider: EmbeddingProvider) -> None:
    index.upsert(event.id, provider.embed(build_event_text(event)))


def index_missing_events(
    store: DocumentStore,
    index: VectorIndex,
    provider: EmbeddingProvider,
) -> int:
    """Embed every event without a vector. Returns how many were indexed."""
    indexed = 0
    for event in store.all_events():
        if event.id in index:
            continue
        try:
            index_event(index, event, provider)
        except ProviderError:
            logger.warning("Could not embed event %s, skipping", event.id, exc_info=True)
            continue
        indexed += 1
    return indexed


def run_precompute() -> None:
    provider = get_embedding_provider()
    if provider is None:
        print("Embeddings are disabled (EMBEDDINGS_ENABLED=false); nothing to do.")
        return

    store = get_store()
    if store.count_events() == 0:
        run_ingestion(store)

    config = provider.config
    index = get_vector_index()
    if config.embeddings_path.exists():
        index.load(config.embeddings_path)

    print(f"Encoding {store.count_events()} events ...")
    indexed = index_missing_events(store, index, provider)
    index.save(config.embeddings_path)
    print(f"Indexed {indexed} events ({len(index)} vectors total) to {config.embeddings_path}")


if __name__ == "__main__":
    run_precompute()
