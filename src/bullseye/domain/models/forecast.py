"""Forecast staleness predicates consumed by the refresh workflow."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol


class ForecastState(Protocol):
    def is_earnings_update_needed(self) -> bool: ...

    def is_regular_update_needed(self) -> bool: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Forecast:
    """Expected report/update dates for one company.

    A date that has not been scheduled yet counts as due.
    """

    company_id: int
    next_earnings_date: Optional[datetime] = None
    next_update_date: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    clock: Callable[[], datetime] = _utcnow

    def is_earnings_update_needed(self) -> bool:
        return _is_due(self.next_earnings_date, self.clock())

    def is_regular_update_needed(self) -> bool:
        return _is_due(self.next_update_date, self.clock())


def _is_due(expected: Optional[datetime], now: datetime) -> bool:
    if expected is None:
        return True
    if expected.tzinfo is None:
        expected = expected.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now >= expected
