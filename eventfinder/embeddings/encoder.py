from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout

import numpy as np

from ..errors import ProviderError
from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig

logger = logging.getLogger(__name__)

_models: dict = {}

# Bounds the wall-clock time of a request spent waiting on the model.
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="embedding")


def _get_model(config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG):
    model = _models.get(config.model_name)
    if model is None:
        # Deferred: importing sentence-transformers pulls in torch.
        from sentence_transformers import SentenceTransformer

        model = SentenceTransformer(config.model_name)
        _models[config.model_name] = model
    return model


def encode_text(text: str, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    """Encode a single string into a 1-D embedding vector."""
    model = _get_model(config)
    return np.asarray(model.encode(text, show_progress_bar=False), dtype=np.float32)


def encode_batch(texts: list[str], config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    """Encode a list of strings into a 2-D array of shape (N, dim)."""
    model = _get_model(config)
    return np.asarray(model.encode(texts, show_progress_bar=True, batch_size=256), dtype=np.float32)


class EmbeddingProvider:
    """Text to fixed-length vector. Every failure surfaces as ``ProviderError``."""

    def __init__(self, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> None:
        self.config = config

    def _encode(self, text: str) -> np.ndarray:
        return encode_text(text, self.config)

    def embed(self, text: str) -> np.ndarray:
        future = _executor.submit(self._encode, text)
        try:
            vector = future.result(timeout=self.config.timeout)
        except FutureTimeout as exc:
            future.cancel()
            raise ProviderError(
                f"embedding timed out after {self.config.timeout:.1f}s"
            ) from exc
        except Exception as exc:
            raise ProviderError(f"embedding failed: {exc}") from exc

        vector = np.asarray(vector, dtype=np.float32).ravel()
        if vector.size == 0 or not np.any(vector):
            raise ProviderError("embedding provider returned an empty vector")
        return vector


def get_embedding_provider(
    config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
) -> EmbeddingProvider | None:
    """Return a provider, or ``None`` when embeddings are switched off."""
    if not config.enabled or not config.model_name:
        logger.debug("Embedding provider disabled; suggestions use rule-based ranking only")
        return None
    return EmbeddingProvider(config)
