"""Named recurring ranges (quarters, seasons, ...) and their queries."""

from __future__ import annotations

import calendar
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Literal

from tempo.parsing.modifier import adjust

Edge = Literal["start", "mid", "end"]
Cycle = Literal["year", "day"]

_CYCLE_FIELDS: dict[str, tuple[str, ...]] = {
    "year": ("month", "day"),
    "day": ("hour", "minute"),
}


@dataclass(frozen=True)
class TermRange:
    """Lower boundary of one labelled range."""

    label: str
    month: int = 1
    day: int = 1
    hour: int = 0
    minute: int = 0
    traits: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class Term:
    """A sorted range table that partitions a full cycle with no gaps."""

    name: str
    key: str
    description: str
    ranges: tuple[TermRange, ...]
    cycle: Cycle = "year"
    parseable: bool = True

    def __post_init__(self) -> None:
        if not self.ranges:
            raise ValueError(f"Term '{self.name}' needs at least one range")
        ordered = tuple(sorted(self.ranges, key=self._range_key))
        object.__setattr__(self, "ranges", ordered)

    @property
    def labels(self) -> list[str]:
        return [item.label for item in self.ranges]

    def locate(self, value: datetime) -> tuple[str, datetime]:
        """Return the label and start of the range containing ``value``.

        The greatest range-start not after ``value`` wins; a value before the
        first start wraps to the last range of the previous cycle.
        """

        probe = self._value_key(value)
        current: TermRange | None = None
        for item in self.ranges:
            if self._range_key(item) <= probe:
                current = item

        if current is None:
            current = self.ranges[-1]
            return current.label, self._shift(self._start(current, value), -1)
        return current.label, self._start(current, value)

    def boundary(self, label: str, edge: Edge, anchor: datetime) -> datetime:
        """Return the start, midpoint or end of ``label`` in ``anchor``'s cycle."""

        item = self.find(label)
        start = self._start(item, anchor)
        if edge == "start":
            return start

        position = self.ranges.index(item)
        following = self.ranges[(position + 1) % len(self.ranges)]
        finish = self._start(following, anchor)
        if finish <= start:
            finish = self._shift(finish, 1)

        if edge == "end":
            return finish - timedelta(microseconds=1)
        if edge == "mid":
            return start + (finish - start) / 2
        raise ValueError(f"Unsupported term boundary: {edge}")

    def resolve(
        self,
        label: str,
        reference: datetime,
        modifier: str | None = None,
        count: int = 1,
    ) -> datetime:
        """Start of ``label`` relative to ``reference`` after applying ``modifier``."""

        item = self.find(label)
        shift = adjust(modifier, count, self._range_key(item), self._value_key(reference))
        return self._shift(self._start(item, reference), shift)

    def find(self, label: str) -> TermRange:
        folded = label.casefold()
        for item in self.ranges:
            if item.label.casefold() == folded:
                return item
        raise KeyError(f"Unknown label '{label}' for term '{self.name}'")

    def _range_key(self, item: TermRange) -> tuple[int, ...]:
        return tuple(getattr(item, name) for name in _CYCLE_FIELDS[self.cycle])

    def _value_key(self, value: datetime) -> tuple[int, ...]:
        return tuple(getattr(value, name) for name in _CYCLE_FIELDS[self.cycle])

    def _start(self, item: TermRange, anchor: datetime) -> datetime:
        if self.cycle == "day":
            return anchor.replace(
                hour=item.hour, minute=item.minute, second=0, microsecond=0
            )
        return _on_day(anchor, anchor.year, item.month, item.day)

    def _shift(self, value: datetime, cycles: int) -> datetime:
        if cycles == 0:
            return value
        if self.cycle == "day":
            return value + timedelta(days=cycles)
        return _on_day(value, value.year + cycles, value.month, value.day)


def _on_day(value: datetime, year: int, month: int, day: int) -> datetime:
    # days past the end of the month clamp to its last day
    last = calendar.monthrange(year, month)[1]
    return value.replace(
        year=year, month=month, day=min(day, last), hour=0, minute=0, second=0, microsecond=0
    )
