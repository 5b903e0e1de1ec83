"""Recompute derived fields of stored records and write them back."""
from __future__ import annotations

import logging
from typing import Optional

from bullseye.domain.models.earnings import CanonicalEarningsReport
from bullseye.domain.services.calculations import GrowthCalculator, RatioCalculator
from bullseye.infrastructure.db.sqlite import EarningsRepository

logger = logging.getLogger(__name__)


class MetricsService:
    """Apply ratio/growth derivation to persisted records through the repository."""

    def __init__(
        self,
        repository: EarningsRepository,
        ratio_calculator: Optional[RatioCalculator] = None,
        growth_calculator: Optional[GrowthCalculator] = None,
    ) -> None:
        self._repo = repository
        self._ratios = ratio_calculator or RatioCalculator()
        self._growth = growth_calculator or GrowthCalculator()

    def recompute_ratios(self, report: CanonicalEarningsReport) -> CanonicalEarningsReport:
        values = self._ratios.calculate(report)
        self._repo.update_fields(report.id, values)
        for name, value in values.items():
            setattr(report, name, value)
        return report

    def recompute_growth(self, report: CanonicalEarningsReport) -> CanonicalEarningsReport:
        # No prior-year record simply leaves every growth field absent.
        previous = self._repo.load_same_quarter_prev_year(report)
        values = self._growth.calculate(report, previous)
        self._repo.update_fields(report.id, values)
        for name, value in values.items():
            setattr(report, name, value)
        return report

    def refresh_duration(self, company_id: int, duration: str, *, force: bool = False) -> int:
        """Derive metrics for every pending record of one duration; returns records touched."""
        reports = self._repo.load_by_company(company_id, duration)
        touched = 0
        # Oldest first.
        for report in reversed(reports):
            changed = False
            if force or not report.ratio_calculated:
                self.recompute_ratios(report)
                changed = True
            if force or not report.growth_calculated:
                self.recompute_growth(report)
                changed = True
            touched += int(changed)
        logger.debug("Derived metrics for %d %s records of company %s", touched, duration, company_id)
        return touched
