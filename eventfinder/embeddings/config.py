from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class EmbeddingConfig:
    model_name: str = os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")
    dimension: int = 384
    timeout: float = float(os.getenv("EMBEDDING_TIMEOUT", "10.0"))
    enabled: bool = _env_flag("EMBEDDINGS_ENABLED", "true")
    embeddings_path: Path = Path(__file__).resolve().parent.parent / "data" / "processed" / "event_embeddings.npz"


DEFAULT_EMBEDDING_CONFIG = EmbeddingConfig()
