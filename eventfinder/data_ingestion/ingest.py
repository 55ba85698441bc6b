from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List

import pandas as pd

from ..auth.users import hash_password
from ..store.documents import DocumentStore
from ..store.models import Event, Role, User
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)

EVENT_COLUMNS: List[str] = [
    "id",
    "title",
    "description",
    "location",
    "start_date",
    "end_date",
    "organiser_id",
    "organiser_name",
    "interests",
    "capacity",
    "signup_count",
    "signups_open",
]

USER_COLUMNS: List[str] = ["id", "email", "name", "role", "interests", "password"]

_TRUE_STRINGS = {"true", "1", "yes", "y"}


def _split_tags(value: Any) -> list[str]:
    if value is None or pd.isna(value):
        return []
    return [t.strip().lower() for t in str(value).split(",") if t.strip()]


def _optional_str(value: Any) -> str | None:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _optional_int(value: Any) -> int | None:
    if value is None or pd.isna(value):
        return None
    return int(value)


def _optional_datetime(value: Any) -> datetime | None:
    if value is None or pd.isna(value):
        return None
    return value.to_pydatetime()


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None or pd.isna(value):
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_STRINGS


def _read_csv(path: Path, columns: List[str]) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str)
    # Tolerate seed files that leave optional columns out.
    for col in columns:
        if col not in df.columns:
            df[col] = pd.NA
    return df[columns].copy()


def load_events(path: Path, store: DocumentStore) -> int:
    df = _read_csv(path, EVENT_COLUMNS)
    df["start_date"] = pd.to_datetime(df["start_date"], utc=True, errors="coerce")
    df["end_date"] = pd.to_datetime(df["end_date"], utc=True, errors="coerce")
    df["capacity"] = pd.to_numeric(df["capacity"], errors="coerce")
    df["signup_count"] = pd.to_numeric(df["signup_count"], errors="coerce").fillna(0)

    loaded = 0
    for _, row in df.iterrows():
        title = _optional_str(row["title"])
        if title is None:
            logger.warning("Skipping event row without a title: %s", row.get("id"))
            continue
        fields: dict[str, Any] = {
            "title": title,
            "description": _optional_str(row["description"]),
            "location": _optional_str(row["location"]),
            "start_date": _optional_datetime(row["start_date"]),
            "end_date": _optional_datetime(row["end_date"]),
            "organiser_id": _optional_str(row["organiser_id"]),
            "organiser_name": _optional_str(row["organiser_name"]),
            "interests": _split_tags(row["interests"]),
            "capacity": _optional_int(row["capacity"]),
            "signup_count": int(row["signup_count"]),
            "signups_open": _parse_bool(row["signups_open"], default=True),
        }
        event_id = _optional_str(row["id"])
        if event_id:
            fields["id"] = event_id
        store.add_event(Event(**fields))
        loaded += 1
    return loaded


def load_users(path: Path, store: DocumentStore) -> int:
    df = _read_csv(path, USER_COLUMNS)

    loaded = 0
    for _, row in df.iterrows():
        email = _optional_str(row["email"])
        if email is None:
            logger.warning("Skipping user row without an email: %s", row.get("id"))
            continue
        password = _optional_str(row["password"])
        fields: dict[str, Any] = {
            "email": email,
            "name": _optional_str(row["name"]) or email,
            "role": Role(_optional_str(row["role"]) or Role.student.value),
            "interests": _split_tags(row["interests"]),
            "password_hash": hash_password(password) if password else None,
        }
        user_id = _optional_str(row["id"])
        if user_id:
            fields["id"] = user_id
        store.add_user(User(**fields))
        loaded += 1
    return loaded


def run_ingestion(
    store: DocumentStore,
    config: IngestionConfig = DEFAULT_INGESTION_CONFIG,
) -> dict[str, int]:
    """
    Load the seed catalogues into *store*.

    Missing files are skipped, so a store can be seeded with events only.
    """
    counts = {"events": 0, "users": 0}
    if config.events_path.is_file():
        counts["events"] = load_events(config.events_path, store)
    else:
        logger.info("No event seed file at %s", config.events_path)
    if config.users_path.is_file():
        counts["users"] = load_users(config.users_path, store)
    else:
        logger.info("No user seed file at %s", config.users_path)
    return counts


if __name__ == "__main__":
    from ..store.documents import get_store

    counts = run_ingestion(get_store())
    print(f"Ingestion complete: {counts['events']} events, {counts['users']} users")
