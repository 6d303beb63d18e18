"""SQLModel implementation of the streak repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import select

from ...models.routine import Streak
from ..database import SessionFactory


class SQLModelStreakRepository:
    """Stores one streak row per (user, template)."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get(self, template_id: int, *, user_id: int) -> Optional[Streak]:
        with self.session_factory() as session:
            obj = session.exec(
                select(Streak).where(Streak.user_id == user_id, Streak.template_id == template_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[Streak]:
        """All streaks, longest-running first."""
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(Streak)
                    .where(Streak.user_id == user_id)
                    .order_by(Streak.current_streak.desc(), Streak.template_id)  # type: ignore
                ).all()
            )
            session.expunge_all()
            return rows

    def save(self, streak: Streak, *, user_id: int) -> Streak:
        """Insert or update a streak row keyed by (user, template)."""
        with self.session_factory() as session:
            existing = session.exec(
                select(Streak).where(Streak.user_id == user_id, Streak.template_id == streak.template_id)
            ).first()
            target = existing or Streak(user_id=user_id, template_id=streak.template_id)
            target.current_streak = streak.current_streak
            target.longest_streak = streak.longest_streak
            target.last_completed_date = streak.last_completed_date
            target.updated_at = datetime.now(timezone.utc)
            session.add(target)
            session.commit()
            session.refresh(target)
            session.expunge(target)
            return target
