from __future__ import annotations

import logging

from ..errors import Forbidden, NotFound, ValidationError
from ..store.documents import DocumentStore
from ..store.models import Event, Signup

logger = logging.getLogger(__name__)


def _get_event(store: DocumentStore, event_id: str) -> Event:
    event = store.get_event(event_id)
    if event is None:
        raise NotFound(f"event {event_id} not found")
    return event


def sign_up(store: DocumentStore, user_id: str, event_id: str) -> Signup:
    event = _get_event(store, event_id)
    if not event.signups_open:
        raise ValidationError("Signups are closed for this event")
    if any(s.event_id == event_id for s in store.find_signups(user_id)):
        raise ValidationError("Already signed up for this event")
    return store.add_signup(Signup(user_id=user_id, event_id=event_id))


def cancel_signup(store: DocumentStore, user_id: str, event_id: str) -> int:
    matches = [s for s in store.find_signups(user_id) if s.event_id == event_id]
    if not matches:
        raise NotFound(f"no signup for event {event_id}")
    for signup in matches:
        store.remove_signup(signup.id)
    return len(matches)


def list_event_signups(store: DocumentStore, organiser_id: str, event_id: str) -> list[Signup]:
    event = _get_event(store, event_id)
    if event.organiser_id != organiser_id:
        raise Forbidden("Only the event's organiser can see its signups")
    return store.find_event_signups(event_id)


def set_attendance(
    store: DocumentStore,
    organiser_id: str,
    event_id: str,
    signup_id: str,
    attended: bool,
) -> Signup:
    """Mark a signup present or absent. Only the event's organiser may do this."""
    event = _get_event(store, event_id)
    if event.organiser_id != organiser_id:
        raise Forbidden("Only the event's organiser can mark attendance")
    signup = store.get_signup(signup_id)
    if signup is None or signup.event_id != event_id:
        raise NotFound(f"signup {signup_id} not found for event {event_id}")
    store.set_attended(signup_id, attended)
    logger.info("Signup %s on event %s marked attended=%s", signup_id, event_id, attended)
    return signup
