from __future__ import annotations

from datetime import datetime

from ..errors import NotFound, ValidationError
from ..store.documents import DocumentStore, HistoryKind
from ..store.models import SearchHistoryEntry, ViewHistoryEntry, utcnow

MAX_HISTORY_ITEMS = 20


def prune_history(
    store: DocumentStore,
    kind: HistoryKind,
    user_id: str,
    max_items: int = MAX_HISTORY_ITEMS,
    now: datetime | None = None,
) -> int:
    """Delete all but the newest *max_items* entries. Returns how many went.

    The excess is recomputed from the current entries on every call, so
    repeated or interleaved prunes converge on the same newest entries.
    """
    entries = store.find_history(kind, user_id, newest_first=True, now=now)
    if len(entries) <= max_items:
        return 0
    return store.delete_history(kind, [e.id for e in entries[max_items:]])


def record_search(
    store: DocumentStore,
    user_id: str,
    query: str,
    now: datetime | None = None,
) -> SearchHistoryEntry:
    query = (query or "").strip()
    if not query:
        raise ValidationError("Search query is required")

    entry = SearchHistoryEntry(user_id=user_id, query=query, timestamp=now or utcnow())
    store.add_history("search", entry)
    prune_history(store, "search", user_id, now=entry.timestamp)
    return entry


def record_view(
    store: DocumentStore,
    user_id: str,
    event_id: str,
    now: datetime | None = None,
) -> ViewHistoryEntry:
    if not event_id:
        raise ValidationError("Event ID is required")
    event = store.get_event(event_id)
    if event is None:
        raise NotFound(f"event {event_id} not found")

    entry = ViewHistoryEntry(
        user_id=user_id,
        event_id=event_id,
        event_title=event.title,
        timestamp=now or utcnow(),
    )
    store.add_history("view", entry)
    prune_history(store, "view", user_id, now=entry.timestamp)
    return entry


def get_history(
    store: DocumentStore,
    user_id: str,
    now: datetime | None = None,
) -> dict[str, list]:
    """Newest ``MAX_HISTORY_ITEMS`` searches and views, newest first."""
    return {
        "search_history": store.find_history("search", user_id, limit=MAX_HISTORY_ITEMS, now=now),
        "view_history": store.find_history("view", user_id, limit=MAX_HISTORY_ITEMS, now=now),
    }


def clear_history(store: DocumentStore, user_id: str) -> int:
    return (
        store.delete_user_history("search", user_id)
        + store.delete_user_history("view", user_id)
    )
