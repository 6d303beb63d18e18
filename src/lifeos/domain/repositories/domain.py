"""Domain repository protocol."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from ...models.domain import Domain


class DomainRepository(Protocol):
    """Repository for managing life-area domains."""

    def get_by_id(self, domain_id: int, *, user_id: int) -> Optional[Domain]:
        """Retrieve a domain by ID."""
        ...

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Domain]:
        """Retrieve a domain by name."""
        ...

    def list_all(self, *, user_id: int) -> list[Domain]:
        """List domains in display order."""
        ...

    def next_sort_order(self, *, user_id: int) -> int:
        ...

    def create(self, domain: Domain, *, user_id: int) -> Domain:
        """Create a new domain."""
        ...

    def update(self, domain: Domain, *, user_id: int) -> Domain:
        """Update an existing domain."""
        ...

    def reorder(self, ordered_ids: Iterable[int], *, user_id: int) -> None:
        ...

    def count_links(self, domain_id: int, *, user_id: int) -> dict[str, int]:
        """Count routines, tasks and projects referencing the domain."""
        ...

    def delete_unreferenced(self, domain_id: int, *, user_id: int) -> dict[str, int]:
        """Delete the domain when unreferenced; return the observed link counts."""
        ...
