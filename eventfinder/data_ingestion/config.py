"""
Configuration for seed data loading.
"""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Where the seed CSV files live.
    """

    data_dir: Path = Path(
        os.getenv("EVENTFINDER_SEED_DIR")
        or Path(__file__).resolve().parent.parent / "data" / "seed"
    )
    events_filename: str = "events.csv"
    users_filename: str = "users.csv"

    @property
    def events_path(self) -> Path:
        return self.data_dir / self.events_filename

    @property
    def users_path(self) -> Path:
        return self.data_dir / self.users_filename


DEFAULT_INGESTION_CONFIG = IngestionConfig()
