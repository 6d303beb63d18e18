"""Tests for the domain registry."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from lifeos import operations
from lifeos.errors import AlreadyExists, InvalidState, NotFound
from lifeos.services import domains


class TestDomainCrud:
    def test_create_appends_to_order(self, ctx):
        first = domains.create_domain(ctx, {"name": "Health", "color": "#10B981"})
        second = domains.create_domain(ctx, {"name": "Career"})

        assert (first.sort_order, second.sort_order) == (0, 1)
        assert [d.name for d in domains.list_domains(ctx)] == ["Health", "Career"]

    def test_duplicate_name(self, ctx, domain_factory):
        domain_factory("Health")

        with pytest.raises(AlreadyExists):
            domains.create_domain(ctx, {"name": "Health"})

    def test_same_name_for_another_user(self, ctx, other_ctx, domain_factory):
        domain_factory("Health")

        assert domains.create_domain(other_ctx, {"name": "Health"}).id is not None

    @pytest.mark.parametrize("color", ["green", "#12345", "#GGGGGG"])
    def test_invalid_color(self, ctx, color):
        with pytest.raises(PydanticValidationError):
            domains.create_domain(ctx, {"name": "Bad", "color": color})

    def test_update(self, ctx, domain_factory):
        domain = domain_factory("Health")

        updated = domains.update_domain(ctx, domain.id, {"vision": "Run a marathon", "daily_target_minutes": 45})

        assert updated.vision == "Run a marathon"
        assert updated.daily_target_minutes == 45
        assert updated.name == "Health"

    def test_reorder(self, ctx, domain_factory):
        a = domain_factory("A")
        b = domain_factory("B", sort_order=1)

        ordered = domains.reorder_domains(ctx, [b.id, a.id])

        assert [d.name for d in ordered] == ["B", "A"]


class TestDeleteGuard:
    def test_delete_unreferenced(self, ctx, domain_factory):
        domain = domain_factory()

        assert domains.delete_domain(ctx, domain.id).id == domain.id
        with pytest.raises(NotFound):
            domains.get_domain(ctx, domain.id)

    def test_referenced_domain_is_kept(self, ctx, domain_factory, task_factory):
        domain = domain_factory()
        task_factory("Gym", domain_id=domain.id)

        with pytest.raises(InvalidState) as excinfo:
            domains.delete_domain(ctx, domain.id)

        assert excinfo.value.details["links"]["tasks"] == 1
        assert domains.get_domain(ctx, domain.id).name == "Health"

    def test_routine_reference_blocks_delete(self, ctx, domain_factory, template_factory):
        domain = domain_factory()
        template_factory(domain_id=domain.id)

        result = operations.delete_domain(ctx, domain.id)

        assert result.error.kind == "InvalidState"
        assert domains.linked_items(ctx, domain.id) == {"routines": 1, "tasks": 0, "projects": 0}


class TestSeed:
    def test_seeds_eight_defaults_once(self, ctx):
        seeded = domains.seed_default_domains(ctx)

        assert len(seeded) == 8
        assert all(d.is_default for d in seeded)
        assert [d.sort_order for d in seeded] == list(range(8))
        assert len(domains.seed_default_domains(ctx)) == 8

    def test_no_seed_when_domains_exist(self, ctx, domain_factory):
        domain_factory("Mine")

        assert [d.name for d in domains.seed_default_domains(ctx)] == ["Mine"]
