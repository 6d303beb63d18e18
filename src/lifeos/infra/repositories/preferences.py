"""SQLModel implementation of the user preferences repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ...models.preferences import UserPreferences
from ..database import SessionFactory


class SQLModelPreferencesRepository:
    """Per-user preferences row storage."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get(self, *, user_id: int) -> Optional[UserPreferences]:
        """Return the stored preferences, or None when the user kept defaults."""
        with self.session_factory() as session:
            obj = session.get(UserPreferences, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def upsert(self, prefs: UserPreferences, *, user_id: int) -> UserPreferences:
        """Insert or replace the preferences row."""
        with self.session_factory() as session:
            prefs.user_id = user_id
            prefs.updated_at = datetime.now(timezone.utc)
            merged = session.merge(prefs)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged
