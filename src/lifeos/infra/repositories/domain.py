"""SQLModel implementation of the Domain repository."""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import func
from sqlmodel import select

from ...models.domain import Domain
from ...models.project import Project
from ...models.routine import RoutineTemplate
from ...models.task import Task
from ..database import SessionFactory


class SQLModelDomainRepository:
    """SQLModel-based domain repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, domain_id: int, *, user_id: int) -> Optional[Domain]:
        """Retrieve a domain by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Domain).where(Domain.id == domain_id, Domain.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Domain]:
        """Retrieve a domain by name."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Domain).where(Domain.name == name, Domain.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[Domain]:
        """List domains in display order."""
        with self.session_factory() as session:
            statement = (
                select(Domain)
                .where(Domain.user_id == user_id)
                .order_by(Domain.sort_order, Domain.name)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def next_sort_order(self, *, user_id: int) -> int:
        """Return max(sort_order) + 1, or 0 for the first domain."""
        with self.session_factory() as session:
            current = session.exec(
                select(func.max(Domain.sort_order)).where(Domain.user_id == user_id)
            ).one()
            return 0 if current is None else int(current) + 1

    def create(self, domain: Domain, *, user_id: int) -> Domain:
        """Create a new domain."""
        with self.session_factory() as session:
            domain.user_id = user_id
            session.add(domain)
            session.commit()
            session.refresh(domain)
            session.expunge(domain)
            return domain

    def update(self, domain: Domain, *, user_id: int) -> Domain:
        """Update an existing domain."""
        with self.session_factory() as session:
            domain.user_id = user_id
            merged = session.merge(domain)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def reorder(self, ordered_ids: Iterable[int], *, user_id: int) -> None:
        """Persist a new display order in one transaction."""
        with self.session_factory() as session:
            for position, domain_id in enumerate(ordered_ids):
                domain = session.exec(
                    select(Domain).where(Domain.id == domain_id, Domain.user_id == user_id)
                ).first()
                if domain is not None:
                    domain.sort_order = position
                    session.add(domain)
            session.commit()

    def _link_counts(self, session, domain_id: int, user_id: int) -> dict[str, int]:
        counts: dict[str, int] = {}
        for label, model in (("routines", RoutineTemplate), ("tasks", Task), ("projects", Project)):
            counts[label] = session.exec(
                select(func.count())
                .select_from(model)
                .where(model.domain_id == domain_id, model.user_id == user_id)
            ).one()
        return counts

    def count_links(self, domain_id: int, *, user_id: int) -> dict[str, int]:
        """Count routines, tasks and projects referencing the domain."""
        with self.session_factory() as session:
            return self._link_counts(session, domain_id, user_id)

    def delete_unreferenced(self, domain_id: int, *, user_id: int) -> dict[str, int]:
        """Delete the domain only when nothing references it.

        Returns the link counts observed inside the deleting transaction; any
        non-zero count means the row was left untouched.
        """
        with self.session_factory() as session:
            counts = self._link_counts(session, domain_id, user_id)
            if any(counts.values()):
                return counts
            domain = session.exec(
                select(Domain).where(Domain.id == domain_id, Domain.user_id == user_id)
            ).first()
            if domain is not None:
                session.delete(domain)
                session.commit()
            return counts
