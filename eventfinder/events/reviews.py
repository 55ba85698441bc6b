from __future__ import annotations

from datetime import datetime

from ..errors import Forbidden, NotFound, ValidationError
from ..store.documents import DocumentStore
from ..store.models import Review, utcnow


def create_review(
    store: DocumentStore,
    user_id: str,
    event_id: str,
    rating: int,
    comment: str | None = None,
    now: datetime | None = None,
) -> Review:
    """Record a review from an attendee.

    The event must have started, and the user must hold a signup for it that
    the organiser marked as attended. One review per user per event.
    """
    event = store.get_event(event_id)
    if event is None:
        raise NotFound(f"event {event_id} not found")

    now = now or utcnow()
    if event.start_date is not None and event.start_date > now:
        raise ValidationError("You can only review once the event has started")

    signups = [s for s in store.find_signups(user_id) if s.event_id == event_id]
    if not signups:
        raise Forbidden("You must be signed up to review this event")
    if not any(s.attended for s in signups):
        raise Forbidden("Only attendees marked as present can review this event")

    if store.find_reviews(user_id=user_id, event_id=event_id):
        raise ValidationError("You already reviewed this event")

    return store.add_review(Review(
        user_id=user_id, event_id=event_id, rating=rating, comment=comment or "",
    ))


def _owned_review(store: DocumentStore, user_id: str, review_id: str, action: str) -> Review:
    review = store.get_review(review_id)
    if review is None:
        raise NotFound(f"review {review_id} not found")
    if review.user_id != user_id:
        raise Forbidden(f"You can only {action} your own reviews")
    return review


def update_review(
    store: DocumentStore,
    user_id: str,
    review_id: str,
    rating: int,
    comment: str | None = None,
) -> Review:
    _owned_review(store, user_id, review_id, "edit")
    return store.update_review(review_id, rating=rating, comment=comment or "")


def delete_review(store: DocumentStore, user_id: str, review_id: str) -> None:
    _owned_review(store, user_id, review_id, "delete")
    store.delete_review(review_id)
