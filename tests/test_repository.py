from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from bullseye.domain.errors import NotFound, StoreFailure
from bullseye.domain.models.earnings import ANNUAL, TTM
from bullseye.domain.models.forecast import Forecast


def test_insert_is_idempotent_on_identity(repository, make_report):
    records = [make_report(year=2022), make_report(year=2023)]

    assert repository.insert_batch(records) is True
    assert repository.insert_batch(records) is False
    assert len(repository.load_by_company(1)) == 2


def test_insert_reports_partial_novelty(repository, make_report):
    repository.insert_batch([make_report(year=2022)])

    # Same identity with different values is still a duplicate.
    assert repository.insert_batch([make_report(year=2022, revenue=1.0), make_report(year=2023)]) is True
    stored = {r.year_str: r.revenue for r in repository.load_by_company(1)}
    assert stored == {2022: 1000.0, 2023: 1000.0}


def test_empty_insert_is_not_new(repository):
    assert repository.insert_batch([]) is False


def test_round_trip_preserves_fields(repository, make_report):
    record = make_report(duration=TTM, quarter=2, year=2024, period_ending=date(2024, 6, 30), gross_profit=410.5)
    repository.insert_batch([record])

    loaded = repository.load_latest(1, TTM)
    assert loaded.id is not None
    assert loaded.period_ending == date(2024, 6, 30)
    assert loaded.gross_profit == 410.5
    assert loaded.net_interest_income is None
    assert loaded.ratio_calculated is False
    assert loaded.key == (1, TTM, 2, 2024)


def test_load_by_company_orders_newest_first(repository, make_report):
    repository.insert_batch(
        [
            make_report(duration=TTM, quarter=1, year=2024),
            make_report(year=2021),
            make_report(duration=TTM, quarter=3, year=2023),
            make_report(year=2023),
            make_report(company_id=2, year=2024),
        ]
    )

    ttm = repository.load_by_company(1, TTM)
    annual = repository.load_by_company(1, ANNUAL)
    assert [r.fiscal_period for r in ttm] == ["2024-Q1", "2023-Q3"]
    assert [r.fiscal_period for r in annual] == ["2023-Q4", "2021-Q4"]
    assert len(repository.load_by_company(1)) == 4
    assert repository.load_latest(1, TTM).fiscal_period == "2024-Q1"


def test_missing_records(repository):
    assert repository.load_by_company(42) == []
    assert repository.load_latest_if_exists(42, TTM) is None
    with pytest.raises(NotFound):
        repository.load_latest(42, ANNUAL)


def test_update_fields_patches_derived_values(repository, make_report):
    repository.insert_batch([make_report()])
    record = repository.load_latest(1, ANNUAL)

    repository.update_fields(record.id, {"sga_gp_ratio": 0.3, "ratio_calculated": True})

    updated = repository.load_latest(1, ANNUAL)
    assert updated.sga_gp_ratio == 0.3
    assert updated.ratio_calculated is True
    assert updated.growth_calculated is False


def test_update_fields_rejects_identity_and_inputs(repository, make_report):
    repository.insert_batch([make_report()])
    record = repository.load_latest(1, ANNUAL)

    with pytest.raises(ValueError):
        repository.update_fields(record.id, {"revenue": 1.0})
    with pytest.raises(ValueError):
        repository.update_fields(record.id, {"year_str": 1999})
    assert repository.load_latest(1, ANNUAL).revenue == 1000.0


def test_update_fields_unknown_id(repository):
    with pytest.raises(NotFound):
        repository.update_fields(999, {"cost_of_risk": 1.0})


def test_same_quarter_previous_year(repository, make_report):
    repository.insert_batch(
        [
            make_report(duration=TTM, quarter=2, year=2023),
            make_report(duration=TTM, quarter=3, year=2023),
            make_report(year=2023),
        ]
    )

    previous = repository.load_same_quarter_prev_year(make_report(duration=TTM, quarter=2, year=2024))
    assert previous is not None and previous.fiscal_period == "2023-Q2"
    assert previous.duration == TTM
    assert repository.load_same_quarter_prev_year(make_report(duration=TTM, quarter=1, year=2024)) is None


def test_forecast_round_trip(repository):
    forecast = Forecast(
        company_id=5,
        next_earnings_date=datetime(2025, 2, 1, tzinfo=timezone.utc),
        next_update_date=None,
        last_updated=datetime(2024, 11, 3, 8, 30, tzinfo=timezone.utc),
    )
    repository.upsert_forecast(forecast)

    loaded = repository.load_forecast(5)
    assert loaded.next_earnings_date == forecast.next_earnings_date
    assert loaded.next_update_date is None
    assert loaded.last_updated == forecast.last_updated

    forecast.next_update_date = datetime(2024, 12, 1, tzinfo=timezone.utc)
    repository.upsert_forecast(forecast)
    assert repository.load_forecast(5).next_update_date == forecast.next_update_date

    with pytest.raises(NotFound):
        repository.load_forecast(6)


def test_store_failure_is_the_driver_hierarchy():
    assert StoreFailure is SQLAlchemyError
