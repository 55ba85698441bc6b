from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import bcrypt

from ..errors import NotFound, ValidationError
from ..store.documents import DocumentStore
from ..store.models import Role, User


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def normalize_interests(interests: Iterable[str]) -> list[str]:
    """Lowercase, trim and de-duplicate interest tags, keeping first-seen order."""
    cleaned = (tag.strip().lower() for tag in interests)
    return list(dict.fromkeys(tag for tag in cleaned if tag))


def public_user(user: User) -> dict[str, Any]:
    """The session/response view of a user. Never includes the password hash."""
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "interests": list(user.interests),
    }


def authenticate(store: DocumentStore, email: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns the public user dict or ``None``."""
    user = store.find_user_by_email(email)
    if user is None or not user.password_hash:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return public_user(user)


def register_user(
    store: DocumentStore,
    email: str,
    password: str,
    name: str,
    role: Role = Role.student,
    interests: Iterable[str] = (),
) -> dict[str, Any]:
    if store.find_user_by_email(email) is not None:
        raise ValidationError("Email already registered")
    user = store.add_user(User(
        email=email.strip(),
        name=name.strip(),
        role=role,
        interests=normalize_interests(interests),
        password_hash=hash_password(password),
    ))
    return public_user(user)


def update_profile(
    store: DocumentStore,
    user_id: str,
    name: str | None = None,
    interests: Iterable[str] | None = None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if name is not None:
        fields["name"] = name.strip()
    if interests is not None:
        fields["interests"] = normalize_interests(interests)
    user = store.update_user(user_id, **fields)
    if user is None:
        raise NotFound(f"user {user_id} not found")
    return public_user(user)
