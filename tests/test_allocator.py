"""Tests for the pure slot allocator."""

from __future__ import annotations

from datetime import datetime, time, timezone
from itertools import combinations

import pytest

from lifeos.services.allocator import (
    AllocatorSettings,
    Candidate,
    TimeWindow,
    allocate_slots,
    to_minutes,
    to_time,
)

OLD = datetime(2030, 1, 1, tzinfo=timezone.utc)
NEW = datetime(2030, 2, 1, tzinfo=timezone.utc)


def make_settings(**overrides) -> AllocatorSettings:
    blocks = {
        "morning": TimeWindow(360, 720),
        "noon": TimeWindow(720, 840),
        "afternoon": TimeWindow(840, 1080),
        "evening": TimeWindow(1080, 1260),
        "night": TimeWindow(1260, 1439),
    }
    return AllocatorSettings(day=TimeWindow(420, 1320), blocks=blocks, **overrides)


def cand(entity_id: int, **overrides) -> Candidate:
    fields = {
        "entity_type": "task",
        "entity_id": entity_id,
        "label": f"item {entity_id}",
        "priority": "medium",
        "created_at": OLD,
        "duration": 30,
    }
    fields.update(overrides)
    return Candidate(**fields)


def placement_of(allocation, entity_id: int):
    return next(p for p in allocation.placements if p.entity_id == entity_id)


class TestTimeHelpers:
    def test_round_trip(self):
        assert to_minutes(time(7, 45)) == 465
        assert to_time(465) == time(7, 45)

    def test_to_time_clamps_to_the_day(self):
        assert to_time(24 * 60) == time(23, 59)
        assert to_time(-5) == time(0, 0)


class TestPlacement:
    def test_earliest_start_inside_window(self):
        allocation = allocate_slots([cand(1, window=TimeWindow(540, 600))], make_settings())

        placement = placement_of(allocation, 1)
        assert (placement.start, placement.end) == (540, 570)

    def test_window_is_clipped_to_wake_time(self):
        allocation = allocate_slots([cand(1, window=TimeWindow(360, 450))], make_settings())

        assert placement_of(allocation, 1).start == 420

    def test_occupied_intervals_are_respected(self):
        allocation = allocate_slots(
            [cand(1, window=TimeWindow(540, 660), duration=60)],
            make_settings(),
            occupied=[(540, 600)],
        )

        assert placement_of(allocation, 1).start == 600

    def test_moment_block_used_without_window(self):
        allocation = allocate_slots([cand(1, moment="afternoon")], make_settings())

        assert placement_of(allocation, 1).start == 840

    def test_no_window_and_no_moment_is_unscheduled(self):
        allocation = allocate_slots([cand(1)], make_settings())

        assert allocation.placements == []
        assert allocation.unscheduled[0].reason == "No derivable time window"

    def test_non_positive_duration_is_unscheduled(self):
        allocation = allocate_slots([cand(1, duration=0, window=TimeWindow(540, 600))], make_settings())

        assert allocation.unscheduled[0].reason == "Duration must be positive"

    def test_placements_never_overlap(self):
        candidates = [cand(i, duration=60, window=TimeWindow(420, 1320)) for i in range(1, 11)]

        allocation = allocate_slots(candidates, make_settings())

        assert len(allocation.placements) == 10
        for a, b in combinations(allocation.placements, 2):
            assert a.end <= b.start or b.end <= a.start
        starts = [p.start for p in allocation.placements]
        assert starts == sorted(starts)


class TestOrdering:
    def test_higher_priority_wins_the_window(self):
        window = TimeWindow(540, 570)
        low = cand(1, priority="low", created_at=OLD, window=window)
        high = cand(2, priority="high", created_at=NEW, window=window)

        allocation = allocate_slots([low, high], make_settings())

        assert placement_of(allocation, 2).start == 540
        deferred = placement_of(allocation, 1)
        assert deferred.start == 510
        assert "deferred" in deferred.reasoning

    def test_older_entity_wins_a_priority_tie(self):
        window = TimeWindow(540, 570)
        newer = cand(1, created_at=NEW, window=window)
        older = cand(2, created_at=OLD, window=window)

        allocation = allocate_slots([newer, older], make_settings())

        assert placement_of(allocation, 2).start == 540

    def test_id_breaks_a_full_tie(self):
        window = TimeWindow(540, 570)

        allocation = allocate_slots([cand(7, window=window), cand(3, window=window)], make_settings())

        assert placement_of(allocation, 3).start == 540


class TestDeferral:
    def test_fixed_window_is_never_moved(self):
        window = TimeWindow(540, 570)
        first = cand(1, priority="high", window=window)
        fixed = cand(2, window=window, flexible=False)

        allocation = allocate_slots([first, fixed], make_settings())

        assert [u.entity_id for u in allocation.unscheduled] == [2]
        assert allocation.unscheduled[0].reason == "Fixed window is already occupied"

    def test_fixed_window_shorter_than_duration(self):
        fixed = cand(1, window=TimeWindow(540, 555), flexible=False)

        allocation = allocate_slots([fixed], make_settings())

        assert allocation.unscheduled[0].reason == "Fixed window is shorter than the duration"

    def test_fixed_window_outside_the_day(self):
        fixed = cand(1, window=TimeWindow(300, 360), flexible=False)

        allocation = allocate_slots([fixed], make_settings())

        assert allocation.unscheduled[0].reason == "Fixed window lies outside the day"

    def test_full_block_moves_to_adjacent_block(self):
        allocation = allocate_slots([cand(1, moment="morning")], make_settings(), occupied=[(420, 720)])

        placement = placement_of(allocation, 1)
        assert placement.start == 720
        assert "moved from the morning block to the noon block" in placement.reasoning

    def test_unscheduled_when_neighbours_are_full(self):
        allocation = allocate_slots([cand(1, moment="morning")], make_settings(), occupied=[(420, 1320)])

        assert allocation.placements == []
        assert "morning" in allocation.unscheduled[0].reason

    def test_lunch_is_reserved(self):
        settings = make_settings(lunch=TimeWindow(720, 780))

        allocation = allocate_slots([cand(1, window=TimeWindow(720, 780))], settings)

        assert placement_of(allocation, 1).start == 780


class TestScore:
    def test_score_is_share_of_placed_candidates(self):
        window = TimeWindow(540, 570)
        allocation = allocate_slots(
            [cand(1, window=window), cand(2, window=window, flexible=False)], make_settings()
        )

        assert allocation.optimization_score == 50

    def test_empty_allocation_scores_full(self):
        assert allocate_slots([], make_settings()).optimization_score == 100

    @pytest.mark.parametrize("entity_type", ["routine", "task"])
    def test_unscheduled_serializes(self, entity_type):
        allocation = allocate_slots([cand(9, entity_type=entity_type)], make_settings())

        assert allocation.unscheduled[0].to_dict() == {
            "entity_type": entity_type,
            "entity_id": 9,
            "reason": "No derivable time window",
        }
