import time
from dataclasses import replace
from unittest.mock import patch

import numpy as np
import pytest

from eventfinder.embeddings.config import DEFAULT_EMBEDDING_CONFIG
from eventfinder.embeddings.encoder import EmbeddingProvider, get_embedding_provider
from eventfinder.embeddings.precompute import build_event_text, index_missing_events
from eventfinder.errors import ProviderError
from eventfinder.store.documents import DocumentStore
from eventfinder.store.models import Event
from eventfinder.store.vector_index import VectorIndex

ENCODE = "eventfinder.embeddings.encoder.encode_text"


def _provider(timeout=5.0):
    return EmbeddingProvider(replace(DEFAULT_EMBEDDING_CONFIG, timeout=timeout))


def test_embed_returns_flat_vector():
    with patch(ENCODE, return_value=np.array([[0.1, 0.2, 0.3]])):
        vector = _provider().embed("jazz")
    assert vector.shape == (3,)


def test_encoder_exception_becomes_provider_error():
    with patch(ENCODE, side_effect=RuntimeError("model missing")):
        with pytest.raises(ProviderError):
            _provider().embed("jazz")


def test_zero_vector_is_rejected():
    with patch(ENCODE, return_value=np.zeros(4)):
        with pytest.raises(ProviderError):
            _provider().embed("jazz")


def test_empty_vector_is_rejected():
    with patch(ENCODE, return_value=np.array([])):
        with pytest.raises(ProviderError):
            _provider().embed("jazz")


def test_timeout_becomes_provider_error():
    def _slow(text, config):
        time.sleep(0.5)
        return np.ones(3)

    with patch(ENCODE, side_effect=_slow):
        with pytest.raises(ProviderError, match="timed out"):
            _provider(timeout=0.05).embed("jazz")


def test_disabled_config_has_no_provider():
    assert get_embedding_provider(replace(DEFAULT_EMBEDDING_CONFIG, enabled=False)) is None
    assert isinstance(
        get_embedding_provider(replace(DEFAULT_EMBEDDING_CONFIG, enabled=True)), EmbeddingProvider,
    )


# ── Event indexing ───────────────────────────────────────────────────────


def test_build_event_text():
    event = Event(
        title="Jazz Night",
        description="Live quartet",
        interests=["music", "jazz"],
        location="Student Union",
    )
    assert build_event_text(event) == (
        "Jazz Night. Live quartet. Topics: music, jazz. Location: Student Union"
    )


def test_index_missing_events_skips_failures():
    store = DocumentStore()
    store.add_event(Event(id="ok", title="Good"))
    store.add_event(Event(id="bad", title="Bad"))
    store.add_event(Event(id="done", title="Done"))
    index = VectorIndex(store)
    index.upsert("done", [1.0, 1.0])

    def _embed(text):
        if text.startswith("Bad"):
            raise ProviderError("no vector")
        return np.array([1.0, 0.0])

    provider = _provider()
    with patch.object(provider, "embed", side_effect=_embed):
        assert index_missing_events(store, index, provider) == 1

    assert "ok" in index
    assert "bad" not in index
