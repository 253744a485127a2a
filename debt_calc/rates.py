"""Reference rate timeline.

A timeline is a sequence of effective-dated reference-rate changes. It is
sorted once on construction (stable, so changes sharing an instant keep their
input order and the last one wins) and answers point-in-time queries with a
binary search.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Iterator, List

from .errors import EmptyTimelineError, NoRateDefinedError


@dataclass(frozen=True)
class RateChange:
    """A reference rate that applies from ``effective_from`` onwards.

    ``rate`` is an annual fraction, e.g. ``Decimal("0.07")`` for 7 %.
    """

    effective_from: datetime
    rate: Decimal


class RateTimeline:
    """Sorted, immutable collection of :class:`RateChange` entries."""

    def __init__(self, changes: Iterable[RateChange]) -> None:
        ordered = sorted(changes, key=lambda c: c.effective_from)
        if not ordered:
            raise EmptyTimelineError()
        self._changes = tuple(ordered)
        self._instants = [c.effective_from for c in ordered]

    def __iter__(self) -> Iterator[RateChange]:
        return iter(self._changes)

    def __len__(self) -> int:
        return len(self._changes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RateTimeline):
            return NotImplemented
        return self._changes == other._changes

    def __hash__(self) -> int:
        return hash(self._changes)

    def __repr__(self) -> str:
        return f"RateTimeline({list(self._changes)!r})"

    @property
    def earliest(self) -> datetime:
        return self._instants[0]

    def rate_at(self, at: datetime) -> Decimal:
        """Return the rate of the latest change effective at or before ``at``."""
        index = bisect_right(self._instants, at)
        if index == 0:
            raise NoRateDefinedError(at)
        return self._changes[index - 1].rate

    def changes_between(self, start: datetime, end: datetime) -> List[RateChange]:
        """Return changes effective strictly after ``start`` and strictly before ``end``."""
        return [c for c in self._changes if start < c.effective_from < end]


def rate_at(timeline: Iterable[RateChange], at: datetime) -> Decimal:
    """Point-in-time lookup that accepts a plain sequence of changes."""
    if not isinstance(timeline, RateTimeline):
        timeline = RateTimeline(timeline)
    return timeline.rate_at(at)
