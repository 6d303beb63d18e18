"""Deterministic day-slot allocation.

Everything here is pure: candidates and settings in, placements out. Times
are minutes since midnight. Candidates are placed one at a time in priority
order (high before low, then older before newer, then by id); each takes the
earliest free grid start in its window. A candidate whose window is full is
deferred to the free start nearest its preferred time within its moment
block, then within the blocks either side of it, and is otherwise left
unscheduled. Nothing is ever placed over an occupied interval.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Iterable, Optional

from ..models.routine import PRIORITY_RANK

GRID_MINUTES = 15
MOMENT_ORDER = ("morning", "noon", "afternoon", "evening", "night")


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def to_time(minutes: int) -> time:
    minutes = max(0, min(minutes, 24 * 60 - 1))
    return time(minutes // 60, minutes % 60)


@dataclass(slots=True, frozen=True)
class TimeWindow:
    """Half-open interval ``[start, end)`` in minutes."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return max(0, self.end - self.start)

    def clip(self, bounds: "TimeWindow") -> Optional["TimeWindow"]:
        start, end = max(self.start, bounds.start), min(self.end, bounds.end)
        return TimeWindow(start, end) if end > start else None

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and self.start < end

    def contains(self, minute: int) -> bool:
        return self.start <= minute < self.end


@dataclass(slots=True)
class AllocatorSettings:
    """Day bounds, lunch reservation and moment-of-day blocks."""

    day: TimeWindow
    blocks: dict[str, TimeWindow]
    lunch: Optional[TimeWindow] = None
    auto_position_routines: bool = True
    auto_position_tasks: bool = False

    def block_of(self, minute: int) -> Optional[str]:
        for name in MOMENT_ORDER:
            block = self.blocks.get(name)
            if block is not None and block.contains(minute):
                return name
        return None


@dataclass(slots=True)
class Candidate:
    """An entity asking for time on the plan."""

    entity_type: str
    entity_id: int
    label: str
    priority: str
    created_at: datetime
    duration: int
    window: Optional[TimeWindow] = None
    moment: Optional[str] = None
    flexible: bool = True

    def sort_key(self) -> tuple:
        created = self.created_at.replace(tzinfo=None)
        return (PRIORITY_RANK.get(self.priority, len(PRIORITY_RANK)), created, self.entity_type, self.entity_id)


@dataclass(slots=True)
class Placement:
    entity_type: str
    entity_id: int
    start: int
    end: int
    reasoning: str


@dataclass(slots=True)
class Unscheduled:
    entity_type: str
    entity_id: int
    reason: str

    def to_dict(self) -> dict[str, object]:
        return {"entity_type": self.entity_type, "entity_id": self.entity_id, "reason": self.reason}


@dataclass(slots=True)
class Allocation:
    placements: list[Placement] = field(default_factory=list)
    unscheduled: list[Unscheduled] = field(default_factory=list)

    @property
    def optimization_score(self) -> int:
        total = len(self.placements) + len(self.unscheduled)
        if total == 0:
            return 100
        return round(len(self.placements) / total * 100)


class _Occupancy:
    """Intervals already claimed on the day."""

    def __init__(self, intervals: Iterable[tuple[int, int]] = ()):
        self._intervals: list[tuple[int, int]] = [iv for iv in intervals if iv[1] > iv[0]]

    def is_free(self, start: int, end: int) -> bool:
        return all(end <= s or start >= e for s, e in self._intervals)

    def claim(self, start: int, end: int) -> None:
        self._intervals.append((start, end))

    def nearest_start(self, window: TimeWindow, duration: int, preferred: int) -> Optional[int]:
        """Free grid start in ``window`` closest to ``preferred`` (earlier wins ties)."""

        best: Optional[int] = None
        for start in range(window.start, window.end - duration + 1, GRID_MINUTES):
            if not self.is_free(start, start + duration):
                continue
            if best is None or abs(start - preferred) < abs(best - preferred):
                best = start
        return best


def _adjacent_blocks(moment: str) -> list[str]:
    index = MOMENT_ORDER.index(moment)
    return [MOMENT_ORDER[i] for i in (index - 1, index + 1) if 0 <= i < len(MOMENT_ORDER)]


def _place(candidate: Candidate, settings: AllocatorSettings, occupancy: _Occupancy) -> Placement | str:
    duration = candidate.duration
    window = candidate.window
    if window is None and candidate.moment is not None:
        window = settings.blocks.get(candidate.moment)
    if window is None:
        return "No derivable time window"
    window = window.clip(settings.day)
    preferred = candidate.window.start if candidate.window is not None else (window.start if window else 0)

    if window is not None:
        start = occupancy.nearest_start(window, duration, window.start)
        if start is not None:
            return Placement(candidate.entity_type, candidate.entity_id, start, start + duration,
                             f'"{candidate.label}" placed in its preferred window.')
    if not candidate.flexible:
        if window is None:
            return "Fixed window lies outside the day"
        if window.length < duration:
            return "Fixed window is shorter than the duration"
        return "Fixed window is already occupied"

    moment = candidate.moment or settings.block_of(preferred)
    if moment is None:
        return "No free window in the day"

    home = settings.blocks.get(moment)
    home = home.clip(settings.day) if home is not None else None
    if home is not None:
        start = occupancy.nearest_start(home, duration, preferred)
        if start is not None:
            return Placement(candidate.entity_type, candidate.entity_id, start, start + duration,
                             f'"{candidate.label}" deferred within the {moment} block.')

    options: list[tuple[int, int, str]] = []
    for name in _adjacent_blocks(moment):
        block = settings.blocks.get(name)
        block = block.clip(settings.day) if block is not None else None
        if block is None:
            continue
        start = occupancy.nearest_start(block, duration, preferred)
        if start is not None:
            options.append((abs(start - preferred), start, name))
    if options:
        _, start, name = min(options)
        return Placement(candidate.entity_type, candidate.entity_id, start, start + duration,
                         f'"{candidate.label}" moved from the {moment} block to the {name} block.')
    return f"No free window in the {moment} block or its neighbours"


def allocate_slots(
    candidates: Iterable[Candidate],
    settings: AllocatorSettings,
    *,
    occupied: Iterable[tuple[int, int]] = (),
) -> Allocation:
    """Place ``candidates`` around ``occupied`` intervals without overlaps."""

    occupancy = _Occupancy(occupied)
    if settings.lunch is not None:
        occupancy.claim(settings.lunch.start, settings.lunch.end)

    allocation = Allocation()
    for candidate in sorted(candidates, key=Candidate.sort_key):
        if candidate.duration <= 0:
            allocation.unscheduled.append(
                Unscheduled(candidate.entity_type, candidate.entity_id, "Duration must be positive")
            )
            continue
        outcome = _place(candidate, settings, occupancy)
        if isinstance(outcome, Placement):
            occupancy.claim(outcome.start, outcome.end)
            allocation.placements.append(outcome)
        else:
            allocation.unscheduled.append(Unscheduled(candidate.entity_type, candidate.entity_id, outcome))
    allocation.placements.sort(key=lambda p: (p.start, p.end))
    return allocation


__all__ = [
    "GRID_MINUTES",
    "MOMENT_ORDER",
    "Allocation",
    "AllocatorSettings",
    "Candidate",
    "Placement",
    "TimeWindow",
    "Unscheduled",
    "allocate_slots",
    "to_minutes",
    "to_time",
]
