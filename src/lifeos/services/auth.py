"""Local user accounts with argon2 password hashes."""

from __future__ import annotations

import logging
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError
from sqlmodel import select

from ..errors import AlreadyExists, NotFound, ValidationError
from ..infra.database import SessionFactory
from ..models.user import User
from .clock import utcnow

logger = logging.getLogger("lifeos.auth")

_hasher = PasswordHasher()
_ALLOWED_ROLES = {"user", "admin"}


def _normalize_role(role: str) -> str:
    role = (role or "user").lower()
    if role not in _ALLOWED_ROLES:
        raise ValidationError(f"Invalid role: {role}")
    return role


def get_user(user_id: int, session_factory: SessionFactory) -> Optional[User]:
    with session_factory() as session:
        user = session.get(User, user_id)
        if user:
            session.expunge(user)
        return user


def get_user_by_username(username: str, session_factory: SessionFactory) -> Optional[User]:
    """Fetch a user by username."""
    username = username.strip()
    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user:
            session.expunge(user)
        return user


def list_users(session_factory: SessionFactory) -> list[User]:
    """Return all users ordered by creation time."""
    with session_factory() as session:
        users = list(session.exec(select(User).order_by(User.created_at)).all())  # type: ignore[arg-type]
        session.expunge_all()
    return users


def create_user(
    *,
    username: str,
    password: str,
    role: str = "user",
    session_factory: SessionFactory,
) -> User:
    """Create a new user with hashed password."""

    normalized_role = _normalize_role(role)
    username = username.strip()
    if not username:
        raise ValidationError("Username cannot be empty")
    if not password:
        raise ValidationError("Password cannot be empty")
    password_hash = _hasher.hash(password)
    with session_factory() as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            raise AlreadyExists("Username already exists")
        user = User(username=username, password_hash=password_hash, role=normalized_role)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
    logger.info("User created", extra={"user_id": user.id, "role": normalized_role})
    return user


def authenticate(
    *,
    username: str,
    password: str,
    session_factory: SessionFactory,
) -> Optional[User]:
    """Validate credentials and return the user when correct."""

    username = username.strip()
    if not username:
        return None
    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user is None:
            return None
        try:
            _hasher.verify(user.password_hash, password)
        except (VerifyMismatchError, InvalidHash, VerificationError):
            logger.warning("Failed login", extra={"username": username})
            return None

        if _hasher.check_needs_rehash(user.password_hash):
            user.password_hash = _hasher.hash(password)
        user.last_login = utcnow()
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


def reset_password(*, user_id: int, password: str, session_factory: SessionFactory) -> User:
    """Reset a user's password to the provided value."""

    if not password:
        raise ValidationError("Password cannot be empty")
    password_hash = _hasher.hash(password)
    with session_factory() as session:
        user = session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        user.password_hash = password_hash
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


__all__ = [
    "authenticate",
    "create_user",
    "get_user",
    "get_user_by_username",
    "list_users",
    "reset_password",
]
