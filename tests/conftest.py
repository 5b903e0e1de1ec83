from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from bullseye.domain.models.earnings import ANNUAL, CanonicalEarningsReport
from bullseye.infrastructure.db.sqlite import EarningsRepository


def build_report(
    company_id: int = 1,
    duration: str = ANNUAL,
    quarter: int = 4,
    year: int = 2023,
    **overrides: Any,
) -> CanonicalEarningsReport:
    values = dict(
        company_id=company_id,
        duration=duration,
        quarter_str=quarter,
        year_str=year,
        period_ending=date(year, 12, 31),
        currency="USD",
        revenue=1000.0,
        operating_expenses=700.0,
        operating_income=300.0,
        operating_margin=30.0,
        goodwill_impairment=0.0,
        net_income=200.0,
        net_margin=20.0,
        eps_basic=2.0,
        eps_diluted=1.9,
        shares_outstanding_basic=100.0,
        shares_outstanding_diluted=105.0,
        shares_change_yoy=1.0,
        cash_and_equivalents=500.0,
        total_assets=5000.0,
        total_liabilities=3000.0,
        retained_earnings=1200.0,
        shareholders_equity=2000.0,
        net_cash=100.0,
    )
    values.update(overrides)
    return CanonicalEarningsReport(**values)


@pytest.fixture
def make_report() -> Callable[..., CanonicalEarningsReport]:
    return build_report


@pytest.fixture
def repository(tmp_path) -> EarningsRepository:
    repo = EarningsRepository(f"sqlite:///{tmp_path / 'earnings.db'}")
    yield repo
    repo.engine.dispose()
