from __future__ import annotations

from datetime import date

import numpy as np
import pandas as pd
import pytest

from bullseye.domain.errors import MalformedDate
from bullseye.domain.models.earnings import ANNUAL, TTM
from bullseye.domain.models.statements import (
    BankStatement,
    OtherStatement,
    StatementBatch,
    StatementKind,
)
from bullseye.domain.services.normalization import from_bank, from_other, normalize_batch


def _row(fiscal_quarter: str = "2023-Q4", term: str = ANNUAL, period_ending: str = "2023-12-31", **values):
    row = {"term": term, "fiscal_quarter": fiscal_quarter, "period_ending": period_ending}
    row.update(values)
    return row


def test_nominal_statement_maps_fields_and_leaves_derived_absent():
    batch = StatementBatch.from_records(
        StatementKind.NOMINAL,
        7,
        "USD",
        [_row(revenue=1000.0, gross_profit=400.0, sga_expenses=120.0, operating_income=150.0, net_income=90.0)],
    )
    [report] = normalize_batch(batch)

    assert report.company_id == 7
    assert report.duration == ANNUAL
    assert (report.year_str, report.quarter_str) == (2023, 4)
    assert report.period_ending == date(2023, 12, 31)
    assert report.currency == "USD"
    assert report.revenue == 1000.0
    assert report.gross_profit == 400.0
    assert report.sga_expenses == 120.0
    # Bank/REIT concepts are absent, not zero.
    assert report.net_interest_income is None
    assert report.ffo is None
    # Derived values are left for the metrics pass.
    assert report.sga_gp_ratio is None
    assert report.gross_profit_growth_yoy is None
    assert report.ratio_calculated is False
    assert report.growth_calculated is False


def test_bank_statement_uses_adjusted_operating_figures():
    statement = BankStatement(
        term=TTM,
        fiscal_quarter="2024-Q2",
        period_ending="2024-06-30",
        net_interest_income=55.0,
        provision_for_loan_loss=4.0,
        revenue=80.0,
        adjusted_operating_income=30.0,
        adjusted_operating_margin=37.5,
        total_investments=600.0,
        gross_loans=900.0,
    )
    report = from_bank(3, "EUR", statement)

    assert report.duration == TTM
    assert report.operating_income == 30.0
    assert report.operating_margin == 37.5
    assert report.net_interest_income == 55.0
    assert report.gross_loans == 900.0
    assert report.gross_profit is None
    assert report.cost_of_revenue is None
    assert report.free_cash_flow is None


def test_reit_statement_keeps_ffo():
    batch = StatementBatch.from_records("reit", 9, "USD", [_row(revenue=500.0, ffo=210.0)])
    [report] = normalize_batch(batch)

    assert report.ffo == 210.0
    assert report.gross_profit is None
    assert report.investing_cash_flow is None


def test_other_statement_gross_profit_only_when_provided():
    with_gp = OtherStatement(term=ANNUAL, fiscal_quarter="2022-Q4", period_ending="2022-12-31", gross_profit=12.0)
    without_gp = OtherStatement(term=ANNUAL, fiscal_quarter="2022-Q4", period_ending="2022-12-31")

    assert from_other(1, "USD", with_gp).gross_profit == 12.0
    assert from_other(1, "USD", without_gp).gross_profit is None


def test_unparseable_fiscal_periods_are_dropped_in_order():
    batch = StatementBatch.from_records(
        StatementKind.NOMINAL,
        1,
        "USD",
        [
            _row("2021-Q4", period_ending="2021-12-31", revenue=1.0),
            _row("FY2022", period_ending="2022-12-31", revenue=2.0),
            _row("2023-Q4", revenue=3.0),
            _row("2024-Q7", period_ending="2024-12-31", revenue=4.0),
        ],
    )
    reports = normalize_batch(batch)

    assert len(reports) == len(batch) - 2
    assert [r.revenue for r in reports] == [1.0, 3.0]


def test_unknown_or_missing_term_is_dropped(repository):
    missing_term = _row("2022-Q4", period_ending="2022-12-31", revenue=2.0)
    del missing_term["term"]
    batch = StatementBatch.from_records(
        StatementKind.NOMINAL,
        1,
        "USD",
        [
            _row("2021-Q4", period_ending="2021-12-31", revenue=1.0),
            missing_term,
            _row("2023-Q4", term="Q", revenue=3.0),
            _row("2024-Q2", term=TTM, period_ending="2024-06-30", revenue=4.0),
        ],
    )
    reports = normalize_batch(batch)

    assert [(r.duration, r.revenue) for r in reports] == [(ANNUAL, 1.0), (TTM, 4.0)]
    # The valid statements survive persistence untouched by the bad ones.
    assert repository.insert_batch(reports) is True
    assert sorted(r.duration for r in repository.load_by_company(1)) == [TTM, ANNUAL]


def test_malformed_date_raises_by_default():
    batch = StatementBatch.from_records(
        StatementKind.NOMINAL,
        1,
        "USD",
        [_row("2022-Q4", period_ending="2022-12-31"), _row("2023-Q4", period_ending="31/12/2023")],
    )
    with pytest.raises(MalformedDate):
        normalize_batch(batch)


def test_malformed_date_can_be_skipped():
    batch = StatementBatch.from_records(
        StatementKind.NOMINAL,
        1,
        "USD",
        [_row("2022-Q4", period_ending="2022-12-31"), _row("2023-Q4", period_ending="31/12/2023")],
    )
    reports = normalize_batch(batch, on_malformed_date="skip")

    assert [r.year_str for r in reports] == [2022]


def test_unknown_policy_is_rejected():
    batch = StatementBatch(kind=StatementKind.NOMINAL, company_id=1, currency="USD")
    with pytest.raises(ValueError):
        normalize_batch(batch, on_malformed_date="ignore")


def test_empty_batch_yields_nothing():
    batch = StatementBatch(kind=StatementKind.BANK, company_id=1, currency="USD")
    assert normalize_batch(batch) == []


def test_from_records_accepts_dataframe_with_missing_values():
    frame = pd.DataFrame(
        [
            _row("2022-Q4", period_ending="2022-12-31", revenue=100.0, gross_profit=np.nan),
            _row("2023-Q4", revenue=120.0, gross_profit=50.0),
        ]
    )
    batch = StatementBatch.from_records(StatementKind.OTHER, 4, "JPY", frame)
    reports = normalize_batch(batch)

    assert len(batch) == 2
    assert reports[0].gross_profit is None
    assert reports[1].gross_profit == 50.0
    assert reports[1].currency == "JPY"
