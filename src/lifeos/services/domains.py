"""Domain registry: CRUD with a referential delete guard."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..errors import AlreadyExists, InvalidState, NotFound
from ..forms import DomainForm
from ..models.domain import Domain

if TYPE_CHECKING:
    from ..context import AppContext

logger = logging.getLogger("lifeos.domains")

DEFAULT_DOMAINS: tuple[tuple[str, str, str, str], ...] = (
    ("Spirituality", "#8B5CF6", "🙏", "Cultivate spiritual connection and inner peace"),
    ("Health & Wellbeing", "#10B981", "💪", "Keep health optimal and wellbeing sustainable"),
    ("Career & Business", "#F59E0B", "💼", "Grow my career and reach professional goals"),
    ("Personal Growth", "#3B82F6", "📚", "Keep learning and building skills"),
    ("Relationships", "#EC4899", "👥", "Nurture authentic, meaningful relationships"),
    ("Leisure", "#14B8A6", "🎮", "Take time to rest and recharge"),
    ("Finance", "#EAB308", "💰", "Build financial security"),
    ("Living Environment", "#6366F1", "🏠", "Shape surroundings that help me thrive"),
)


def list_domains(ctx: "AppContext") -> list[Domain]:
    return ctx.domain_repo.list_all(user_id=ctx.require_user_id())


def get_domain(ctx: "AppContext", domain_id: int) -> Domain:
    domain = ctx.domain_repo.get_by_id(domain_id, user_id=ctx.require_user_id())
    if domain is None:
        raise NotFound(f"Domain {domain_id} not found")
    return domain


def create_domain(ctx: "AppContext", payload: Mapping[str, Any]) -> Domain:
    """Validate and create a domain at the end of the display order."""

    uid = ctx.require_user_id()
    form = DomainForm.model_validate(payload)
    if ctx.domain_repo.get_by_name(form.name, user_id=uid) is not None:
        raise AlreadyExists(f"A domain named {form.name!r} already exists")
    domain = Domain(user_id=uid, sort_order=ctx.domain_repo.next_sort_order(user_id=uid), **form.model_dump())
    return ctx.domain_repo.create(domain, user_id=uid)


def update_domain(ctx: "AppContext", domain_id: int, changes: Mapping[str, Any]) -> Domain:
    uid = ctx.require_user_id()
    domain = get_domain(ctx, domain_id)
    form = DomainForm.model_validate({**domain.model_dump(include=set(DomainForm.model_fields)), **changes})
    for key, value in form.model_dump().items():
        setattr(domain, key, value)
    return ctx.domain_repo.update(domain, user_id=uid)


def reorder_domains(ctx: "AppContext", ordered_ids: Iterable[int]) -> list[Domain]:
    uid = ctx.require_user_id()
    ctx.domain_repo.reorder(list(ordered_ids), user_id=uid)
    return ctx.domain_repo.list_all(user_id=uid)


def linked_items(ctx: "AppContext", domain_id: int) -> dict[str, int]:
    """Counts of routines, tasks and projects pointing at the domain."""

    get_domain(ctx, domain_id)
    return ctx.domain_repo.count_links(domain_id, user_id=ctx.require_user_id())


def delete_domain(ctx: "AppContext", domain_id: int) -> Domain:
    """Delete a domain only if nothing references it.

    Raises InvalidState naming the first kind of linked item found; nothing is
    deleted in that case.
    """

    uid = ctx.require_user_id()
    domain = get_domain(ctx, domain_id)
    counts = ctx.domain_repo.delete_unreferenced(domain_id, user_id=uid)
    for label, count in counts.items():
        if count:
            raise InvalidState(
                f"Cannot delete domain: {count} {label} are linked to it",
                details={"links": counts},
            )
    logger.info("Domain deleted", extra={"domain_id": domain_id})
    return domain


def seed_default_domains(ctx: "AppContext") -> list[Domain]:
    """Create the default domain set for a user who has none yet."""

    uid = ctx.require_user_id()
    existing = ctx.domain_repo.list_all(user_id=uid)
    if existing:
        return existing
    for position, (name, color, icon, vision) in enumerate(DEFAULT_DOMAINS):
        ctx.domain_repo.create(
            Domain(
                user_id=uid,
                name=name,
                color=color,
                icon=icon,
                vision=vision,
                sort_order=position,
                is_default=True,
            ),
            user_id=uid,
        )
    logger.info("Seeded default domains", extra={"count": len(DEFAULT_DOMAINS)})
    return ctx.domain_repo.list_all(user_id=uid)


__all__ = [
    "DEFAULT_DOMAINS",
    "create_domain",
    "delete_domain",
    "get_domain",
    "linked_items",
    "list_domains",
    "reorder_domains",
    "seed_default_domains",
    "update_domain",
]
