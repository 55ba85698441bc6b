"""
In-memory document store.

Holds users, events, signups, reviews and the per-user search/view history
logs. Every read returns the stored documents filtered and ordered as
requested; every write is a single-document update guarded by one lock, so
the store never needs multi-document transactions.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from threading import RLock
from typing import Literal, Union

from .models import (
    Event,
    Review,
    SearchHistoryEntry,
    Signup,
    User,
    ViewHistoryEntry,
    months_before,
    utcnow,
)

HistoryKind = Literal["search", "view"]
HistoryEntry = Union[SearchHistoryEntry, ViewHistoryEntry]

HISTORY_RETENTION_MONTHS = 6

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


class DocumentStore:
    def __init__(self, history_retention_months: int = HISTORY_RETENTION_MONTHS) -> None:
        self.history_retention_months = history_retention_months
        self._lock = RLock()
        self._users: dict[str, User] = {}
        self._events: dict[str, Event] = {}
        self._signups: dict[str, Signup] = {}
        self._reviews: dict[str, Review] = {}
        self._history: dict[str, dict[str, HistoryEntry]] = {"search": {}, "view": {}}

    # ── Users ────────────────────────────────────────────────────────────

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user
        return user

    def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def find_user_by_email(self, email: str) -> User | None:
        wanted = email.strip().lower()
        for user in list(self._users.values()):
            if user.email.lower() == wanted:
                return user
        return None

    def update_user(self, user_id: str, **fields) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updated = user.model_copy(update=fields)
            self._users[user_id] = updated
        return updated

    # ── Events ───────────────────────────────────────────────────────────

    def add_event(self, event: Event) -> Event:
        with self._lock:
            self._events[event.id] = event
        return event

    def get_event(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    def get_events(self, event_ids: Iterable[str]) -> list[Event]:
        """Return the events that exist among *event_ids*, in the given order."""
        found = []
        for event_id in event_ids:
            event = self._events.get(event_id)
            if event is not None:
                found.append(event)
        return found

    def all_events(self) -> list[Event]:
        return list(self._events.values())

    def find_events(
        self,
        start_from: datetime | None = None,
        exclude_ids: Iterable[str] = (),
        signups_open: bool | None = None,
        limit: int | None = None,
    ) -> list[Event]:
        """Filter events and order them by start date, soonest first."""
        excluded = set(exclude_ids)
        matches = []
        for event in list(self._events.values()):
            if event.id in excluded:
                continue
            if start_from is not None and (event.start_date is None or event.start_date < start_from):
                continue
            if signups_open is not None and event.signups_open != signups_open:
                continue
            matches.append(event)

        matches.sort(key=lambda e: e.start_date or _FAR_FUTURE)
        if limit is not None:
            matches = matches[:limit]
        return matches

    def count_events(self) -> int:
        return len(self._events)

    # ── Signups ──────────────────────────────────────────────────────────

    def add_signup(self, signup: Signup) -> Signup:
        with self._lock:
            self._signups[signup.id] = signup
            event = self._events.get(signup.event_id)
            if event is not None:
                event.signup_count += 1
        return signup

    def remove_signup(self, signup_id: str) -> bool:
        with self._lock:
            signup = self._signups.pop(signup_id, None)
            if signup is None:
                return False
            event = self._events.get(signup.event_id)
            if event is not None:
                event.signup_count = max(0, event.signup_count - 1)
        return True

    def find_signups(self, user_id: str, since: datetime | None = None) -> list[Signup]:
        return [
            s for s in list(self._signups.values())
            if s.user_id == user_id and (since is None or s.created_at >= since)
        ]

    def get_signup(self, signup_id: str) -> Signup | None:
        return self._signups.get(signup_id)

    def find_event_signups(self, event_id: str) -> list[Signup]:
        return [s for s in list(self._signups.values()) if s.event_id == event_id]

    def set_attended(self, signup_id: str, attended: bool) -> Signup | None:
        with self._lock:
            signup = self._signups.get(signup_id)
            if signup is not None:
                signup.attended = attended
        return signup

    # ── Reviews ──────────────────────────────────────────────────────────

    def add_review(self, review: Review) -> Review:
        with self._lock:
            self._reviews[review.id] = review
        return review

    def get_review(self, review_id: str) -> Review | None:
        return self._reviews.get(review_id)

    def find_reviews(self, user_id: str | None = None, event_id: str | None = None) -> list[Review]:
        return [
            r for r in list(self._reviews.values())
            if (user_id is None or r.user_id == user_id)
            and (event_id is None or r.event_id == event_id)
        ]

    def update_review(self, review_id: str, **fields) -> Review | None:
        with self._lock:
            review = self._reviews.get(review_id)
            if review is None:
                return None
            updated = review.model_copy(update=fields)
            self._reviews[review_id] = updated
        return updated

    def delete_review(self, review_id: str) -> bool:
        with self._lock:
            return self._reviews.pop(review_id, None) is not None

    # ── Search / view history ────────────────────────────────────────────

    def _expiry_cutoff(self, now: datetime | None) -> datetime:
        return months_before(now or utcnow(), self.history_retention_months)

    def add_history(self, kind: HistoryKind, entry: HistoryEntry) -> HistoryEntry:
        with self._lock:
            self.purge_expired_history(entry.timestamp)
            self._history[kind][entry.id] = entry
        return entry

    def find_history(
        self,
        kind: HistoryKind,
        user_id: str,
        newest_first: bool = True,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[HistoryEntry]:
        cutoff = self._expiry_cutoff(now)
        entries = [
            e for e in list(self._history[kind].values())
            if e.user_id == user_id and e.timestamp >= cutoff
        ]
        entries.sort(key=lambda e: e.timestamp, reverse=newest_first)
        if limit is not None:
            entries = entries[:limit]
        return entries

    def count_history(self, kind: HistoryKind, user_id: str, now: datetime | None = None) -> int:
        return len(self.find_history(kind, user_id, now=now))

    def delete_history(self, kind: HistoryKind, entry_ids: Iterable[str]) -> int:
        deleted = 0
        with self._lock:
            for entry_id in entry_ids:
                if self._history[kind].pop(entry_id, None) is not None:
                    deleted += 1
        return deleted

    def delete_user_history(self, kind: HistoryKind, user_id: str) -> int:
        with self._lock:
            ids = [e.id for e in self._history[kind].values() if e.user_id == user_id]
            return self.delete_history(kind, ids)

    def purge_expired_history(self, now: datetime | None = None) -> int:
        cutoff = self._expiry_cutoff(now)
        deleted = 0
        with self._lock:
            for kind in self._history:
                expired = [e.id for e in self._history[kind].values() if e.timestamp < cutoff]
                deleted += self.delete_history(kind, expired)
        return deleted


_store: DocumentStore | None = None


def get_store() -> DocumentStore:
    """Return the process-wide store, creating it on first call."""
    global _store
    if _store is None:
        _store = DocumentStore()
    return _store


def reset_store() -> DocumentStore:
    global _store
    _store = DocumentStore()
    return _store
