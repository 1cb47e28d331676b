"""Static description of the teaching week.

The calendar is plain configuration: an ordered list of weekdays and an
ordered list of periods shared by every day. Changing institution timing only
touches this module.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

from timetabler.core.exceptions import ConfigurationError

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
UNASSIGNED_ROOM = "TBA"


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


@dataclass(frozen=True)
class Period:
    index: int
    start: str
    end: str
    label: str
    is_lunch: bool = False


@dataclass(frozen=True)
class SlotCalendar:
    days: tuple[str, ...]
    periods: tuple[Period, ...]
    # Days on which only morning periods may be used.
    half_days: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.days:
            raise ConfigurationError("Slot calendar needs at least one day")
        if len(set(self.days)) != len(self.days):
            raise ConfigurationError("Slot calendar days must be unique")
        if not self.periods:
            raise ConfigurationError("Slot calendar needs at least one period")
        previous = None
        for period in self.periods:
            if previous is not None and period.index <= previous:
                raise ConfigurationError("Period indices must be strictly increasing")
            try:
                start = parse_time_to_minutes(period.start)
                end = parse_time_to_minutes(period.end)
            except ValueError as exc:
                raise ConfigurationError(f"Period {period.index}: {exc}") from exc
            if end <= start:
                raise ConfigurationError(f"Period {period.index} must end after it starts")
            previous = period.index
        unknown = self.half_days - set(self.days)
        if unknown:
            raise ConfigurationError(f"Half day(s) not in calendar: {', '.join(sorted(unknown))}")

        object.__setattr__(self, "_by_index", {period.index: period for period in self.periods})
        object.__setattr__(self, "_day_order", {day: position for position, day in enumerate(self.days)})

    def period(self, index: int) -> Period | None:
        return self._by_index.get(index)

    def day_index(self, day: str) -> int | None:
        return self._day_order.get(day)

    @property
    def lunch_indices(self) -> tuple[int, ...]:
        return tuple(period.index for period in self.periods if period.is_lunch)

    @property
    def morning_cutoff(self) -> int:
        """First period index that counts as afternoon."""
        lunch = self.lunch_indices
        if lunch:
            return lunch[0]
        return self.periods[len(self.periods) // 2].index

    def is_morning(self, index: int) -> bool:
        return index < self.morning_cutoff

    def is_available(self, day: str, index: int) -> bool:
        if day not in self._day_order:
            return False
        period = self._by_index.get(index)
        if period is None or period.is_lunch:
            return False
        if day in self.half_days and not self.is_morning(index):
            return False
        return True

    def span(self, day: str, start_index: int, width: int) -> tuple[int, ...] | None:
        indices = tuple(range(start_index, start_index + width))
        if all(self.is_available(day, index) for index in indices):
            return indices
        return None

    def candidate_cells(self) -> Iterator[tuple[str, int]]:
        """Every placeable (day, period) pair, day-major then period-minor."""
        for day in self.days:
            for period in self.periods:
                if self.is_available(day, period.index):
                    yield day, period.index

    def times_for(self, indices: tuple[int, ...] | list[int]) -> tuple[str, str]:
        first = self._by_index[indices[0]]
        last = self._by_index[indices[-1]]
        return first.start, last.end


def hourly_periods(start_hour: int, count: int, *, lunch_at: int | None = None) -> tuple[Period, ...]:
    periods: list[Period] = []
    teaching = 0
    for index in range(count):
        start = f"{start_hour + index:02d}:00"
        end = f"{start_hour + index + 1:02d}:00"
        if index == lunch_at:
            periods.append(Period(index=index, start=start, end=end, label="Lunch", is_lunch=True))
            continue
        teaching += 1
        periods.append(Period(index=index, start=start, end=end, label=f"Period {teaching}"))
    return tuple(periods)


WEEKDAYS: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

DEFAULT_CALENDAR = SlotCalendar(
    days=WEEKDAYS,
    periods=hourly_periods(9, 7, lunch_at=3),
    half_days=frozenset({"Saturday"}),
)
