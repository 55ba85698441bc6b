from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from threading import RLock

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from .documents import DocumentStore, get_store
from .models import Event

EventFilter = Callable[[Event], bool]


class VectorIndex:
    """Brute-force nearest-neighbour index over event embeddings.

    Vectors are keyed by event id; event documents are read from the store at
    query time so filters always see the current event state.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self._lock = RLock()
        self._vectors: dict[str, np.ndarray] = {}

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._vectors

    def upsert(self, event_id: str, vector: np.ndarray | list[float]) -> None:
        with self._lock:
            self._vectors[event_id] = np.asarray(vector, dtype=np.float32).ravel()

    def remove(self, event_id: str) -> None:
        with self._lock:
            self._vectors.pop(event_id, None)

    def save(self, path: Path) -> None:
        with self._lock:
            ids = list(self._vectors)
            vectors = [self._vectors[i] for i in ids]
        matrix = np.vstack(vectors) if vectors else np.zeros((0, 0), dtype=np.float32)
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez(path, ids=np.array(ids, dtype=str), vectors=matrix)

    def load(self, path: Path) -> int:
        """Merge vectors saved by ``save``. Returns how many were loaded."""
        with np.load(path, allow_pickle=False) as data:
            ids = [str(i) for i in data["ids"]]
            matrix = data["vectors"]
        for event_id, vec in zip(ids, matrix):
            self.upsert(event_id, vec)
        return len(ids)

    def search(
        self,
        query_vector: np.ndarray | list[float],
        num_candidates: int,
        limit: int,
        filter: EventFilter | None = None,
    ) -> list[tuple[Event, float]]:
        """Return up to *limit* ``(event, score)`` pairs, best first.

        Scores are cosine similarities mapped from [-1, 1] to [0, 1]. An empty
        index, or a filter that excludes everything, yields ``[]``.
        """
        with self._lock:
            items = list(self._vectors.items())

        events: list[Event] = []
        vectors: list[np.ndarray] = []
        for event_id, vec in items:
            event = self.store.get_event(event_id)
            if event is None:
                continue
            if filter is not None and not filter(event):
                continue
            events.append(event)
            vectors.append(vec)

        if not events:
            return []

        query = np.asarray(query_vector, dtype=np.float32).reshape(1, -1)
        sims = cosine_similarity(query, np.vstack(vectors)).flatten()
        scores = np.clip((sims + 1.0) / 2.0, 0.0, 1.0)

        order = np.argsort(-scores, kind="stable")[: max(0, min(num_candidates, limit))]
        return [(events[i], float(scores[i])) for i in order]


_index: VectorIndex | None = None


def get_vector_index() -> VectorIndex:
    """Return the process-wide index over the process-wide store."""
    global _index
    if _index is None or _index.store is not get_store():
        _index = VectorIndex(get_store())
    return _index
