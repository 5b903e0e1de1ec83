"""Decision table choosing what a ticker lookup must refresh."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol

from bullseye.domain.models.earnings import ANNUAL, TTM, CanonicalEarningsReport
from bullseye.domain.models.forecast import ForecastState
from bullseye.domain.models.statements import StatementBatch

# A third-quarter TTM record means the next statement due is the full year.
ANNUAL_COMPLETION_QUARTER = 3


class RefreshPath(str, Enum):
    FULL_BACKFILL = "full_backfill"
    INCREMENTAL = "incremental"
    REGULAR = "regular"
    METRICS_ONLY = "metrics_only"


@dataclass(frozen=True)
class RefreshPlan:
    path: RefreshPath
    metrics_duration: str


class StatementSource(Protocol):
    """Provider-side collaborator; implementations live outside this package."""

    def full_history(self, ticker: str) -> List[StatementBatch]: ...

    def trailing(self, ticker: str) -> StatementBatch: ...

    def regular_update(self, company_id: int, ticker: str) -> None: ...


def decide_refresh(
    forecast: ForecastState,
    load_latest_ttm: Callable[[], Optional[CanonicalEarningsReport]],
) -> RefreshPlan:
    """Evaluate the refresh table; the TTM lookup only runs when earnings are due."""
    if forecast.is_earnings_update_needed():
        latest_ttm = load_latest_ttm()
        if latest_ttm is None or latest_ttm.quarter_str == ANNUAL_COMPLETION_QUARTER:
            return RefreshPlan(RefreshPath.FULL_BACKFILL, ANNUAL)
        return RefreshPlan(RefreshPath.INCREMENTAL, TTM)
    if forecast.is_regular_update_needed():
        return RefreshPlan(RefreshPath.REGULAR, ANNUAL)
    return RefreshPlan(RefreshPath.METRICS_ONLY, ANNUAL)
