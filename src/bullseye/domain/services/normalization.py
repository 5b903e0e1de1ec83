"""Map raw provider statements onto the canonical earnings schema.

Every variant has its own mapping function. A statement whose term is not a
known duration ("T" or "Y") or whose fiscal period does not parse is
dropped (``None``); a malformed period-ending date raises
:class:`~bullseye.domain.errors.MalformedDate`. What happens to the rest of
the batch in that case is decided by ``normalize_batch``'s
``on_malformed_date`` policy:

- ``"raise"`` (default): the error propagates and the batch yields nothing.
- ``"skip"``: the statement is logged and dropped, the batch continues.

Derived ratios, margins and growth rates are never computed here.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from bullseye.domain.errors import MalformedDate
from bullseye.domain.models.earnings import DURATIONS, CanonicalEarningsReport
from bullseye.domain.models.statements import (
    BankStatement,
    NominalStatement,
    OtherStatement,
    ReitStatement,
    StatementBatch,
    StatementKind,
)
from bullseye.domain.services.fiscal_period import parse_fiscal_period, parse_period_ending

logger = logging.getLogger(__name__)

Normalizer = Callable[[int, str, object], Optional[CanonicalEarningsReport]]


def _statement_period(statement) -> Optional[Tuple[int, int]]:
    """(year, quarter) of a statement, or ``None`` when its term or fiscal period is unusable."""
    if statement.term not in DURATIONS:
        return None
    return parse_fiscal_period(statement.fiscal_quarter)


def from_nominal(company_id: int, currency: str, statement: NominalStatement) -> Optional[CanonicalEarningsReport]:
    period = _statement_period(statement)
    if period is None:
        return None
    year, quarter = period
    return CanonicalEarningsReport(
        company_id=company_id,
        duration=statement.term,
        quarter_str=quarter,
        year_str=year,
        period_ending=parse_period_ending(statement.period_ending),
        currency=currency,
        revenue=statement.revenue,
        revenue_growth_yoy=statement.revenue_growth_yoy,
        cost_of_revenue=statement.cost_of_revenue,
        gross_profit=statement.gross_profit,
        gross_margin=statement.gross_margin,
        sga_expenses=statement.sga_expenses,
        rnd_expenses=statement.rnd_expenses,
        operating_expenses=statement.operating_expenses,
        operating_income=statement.operating_income,
        operating_margin=statement.operating_margin,
        interest_expenses=statement.interest_expenses,
        goodwill_impairment=statement.goodwill_impairment,
        net_income=statement.net_income,
        net_margin=statement.net_margin,
        eps_basic=statement.eps_basic,
        eps_diluted=statement.eps_diluted,
        shares_outstanding_basic=statement.shares_outstanding_basic,
        shares_outstanding_diluted=statement.shares_outstanding_diluted,
        shares_change_yoy=statement.shares_change_yoy,
        cash_and_equivalents=statement.cash_and_equivalents,
        cash_and_short_term_investments=statement.cash_and_short_term_investments,
        accounts_receivable=statement.accounts_receivable,
        inventory=statement.inventory,
        total_current_assets=statement.total_current_assets,
        goodwill=statement.goodwill,
        total_assets=statement.total_assets,
        accounts_payable=statement.accounts_payable,
        total_current_liabilities=statement.total_current_liabilities,
        total_liabilities=statement.total_liabilities,
        retained_earnings=statement.retained_earnings,
        shareholders_equity=statement.shareholders_equity,
        total_debt=statement.total_debt,
        net_cash=statement.net_cash,
        depreciation_and_amortization=statement.depreciation_and_amortization,
        stock_based_compensation=statement.stock_based_compensation,
        operating_cash_flow=statement.operating_cash_flow,
        capital_expenditure=statement.capital_expenditure,
        investing_cash_flow=statement.investing_cash_flow,
        financing_cash_flow=statement.financing_cash_flow,
        free_cash_flow=statement.free_cash_flow,
        free_cash_flow_margin=statement.free_cash_flow_margin,
    )


def from_bank(company_id: int, currency: str, statement: BankStatement) -> Optional[CanonicalEarningsReport]:
    period = _statement_period(statement)
    if period is None:
        return None
    year, quarter = period
    return CanonicalEarningsReport(
        company_id=company_id,
        duration=statement.term,
        quarter_str=quarter,
        year_str=year,
        period_ending=parse_period_ending(statement.period_ending),
        currency=currency,
        net_interest_income=statement.net_interest_income,
        provision_for_loan_loss=statement.provision_for_loan_loss,
        revenue=statement.revenue,
        revenue_growth_yoy=statement.revenue_growth_yoy,
        operating_expenses=statement.operating_expenses,
        operating_income=statement.adjusted_operating_income,
        operating_margin=statement.adjusted_operating_margin,
        goodwill_impairment=statement.goodwill_impairment,
        net_income=statement.net_income,
        net_margin=statement.net_margin,
        eps_basic=statement.eps_basic,
        eps_diluted=statement.eps_diluted,
        shares_outstanding_basic=statement.shares_outstanding_basic,
        shares_outstanding_diluted=statement.shares_outstanding_diluted,
        shares_change_yoy=statement.shares_change_yoy,
        cash_and_equivalents=statement.cash_and_equivalents,
        total_investments=statement.total_investments,
        gross_loans=statement.gross_loans,
        goodwill=statement.goodwill,
        total_assets=statement.total_assets,
        total_liabilities=statement.total_liabilities,
        retained_earnings=statement.retained_earnings,
        shareholders_equity=statement.shareholders_equity,
        total_debt=statement.total_debt,
        net_cash=statement.net_cash,
        depreciation_and_amortization=statement.depreciation_and_amortization,
        stock_based_compensation=statement.stock_based_compensation,
        operating_cash_flow=statement.operating_cash_flow,
        investing_cash_flow=statement.investing_cash_flow,
        financing_cash_flow=statement.financing_cash_flow,
    )


def from_reit(company_id: int, currency: str, statement: ReitStatement) -> Optional[CanonicalEarningsReport]:
    period = _statement_period(statement)
    if period is None:
        return None
    year, quarter = period
    return CanonicalEarningsReport(
        company_id=company_id,
        duration=statement.term,
        quarter_str=quarter,
        year_str=year,
        period_ending=parse_period_ending(statement.period_ending),
        currency=currency,
        revenue=statement.revenue,
        revenue_growth_yoy=statement.revenue_growth_yoy,
        operating_expenses=statement.operating_expenses,
        operating_income=statement.operating_income,
        operating_margin=statement.operating_margin,
        interest_expenses=statement.interest_expenses,
        goodwill_impairment=statement.goodwill_impairment,
        net_income=statement.net_income,
        net_margin=statement.net_margin,
        eps_basic=statement.eps_basic,
        eps_diluted=statement.eps_diluted,
        shares_outstanding_basic=statement.shares_outstanding_basic,
        shares_outstanding_diluted=statement.shares_outstanding_diluted,
        shares_change_yoy=statement.shares_change_yoy,
        ffo=statement.ffo,
        cash_and_equivalents=statement.cash_and_equivalents,
        goodwill=statement.goodwill,
        total_assets=statement.total_assets,
        total_liabilities=statement.total_liabilities,
        retained_earnings=statement.retained_earnings,
        shareholders_equity=statement.shareholders_equity,
        total_debt=statement.total_debt,
        net_cash=statement.net_cash,
        depreciation_and_amortization=statement.depreciation_and_amortization,
        stock_based_compensation=statement.stock_based_compensation,
        operating_cash_flow=statement.operating_cash_flow,
    )


def from_other(company_id: int, currency: str, statement: OtherStatement) -> Optional[CanonicalEarningsReport]:
    period = _statement_period(statement)
    if period is None:
        return None
    year, quarter = period
    return CanonicalEarningsReport(
        company_id=company_id,
        duration=statement.term,
        quarter_str=quarter,
        year_str=year,
        period_ending=parse_period_ending(statement.period_ending),
        currency=currency,
        revenue=statement.revenue,
        revenue_growth_yoy=statement.revenue_growth_yoy,
        cost_of_revenue=statement.cost_of_revenue,
        gross_profit=statement.gross_profit,
        sga_expenses=statement.sga_expenses,
        rnd_expenses=statement.rnd_expenses,
        operating_expenses=statement.operating_expenses,
        operating_income=statement.operating_income,
        operating_margin=statement.operating_margin,
        interest_expenses=statement.interest_expenses,
        goodwill_impairment=statement.goodwill_impairment,
        net_income=statement.net_income,
        net_margin=statement.net_margin,
        eps_basic=statement.eps_basic,
        eps_diluted=statement.eps_diluted,
        shares_outstanding_basic=statement.shares_outstanding_basic,
        shares_outstanding_diluted=statement.shares_outstanding_diluted,
        shares_change_yoy=statement.shares_change_yoy,
        cash_and_equivalents=statement.cash_and_equivalents,
        goodwill=statement.goodwill,
        total_assets=statement.total_assets,
        total_liabilities=statement.total_liabilities,
        retained_earnings=statement.retained_earnings,
        shareholders_equity=statement.shareholders_equity,
        total_debt=statement.total_debt,
        net_cash=statement.net_cash,
        depreciation_and_amortization=statement.depreciation_and_amortization,
        stock_based_compensation=statement.stock_based_compensation,
        operating_cash_flow=statement.operating_cash_flow,
        investing_cash_flow=statement.investing_cash_flow,
        financing_cash_flow=statement.financing_cash_flow,
        free_cash_flow=statement.free_cash_flow,
        free_cash_flow_margin=statement.free_cash_flow_margin,
    )


NORMALIZERS: Dict[StatementKind, Normalizer] = {
    StatementKind.NOMINAL: from_nominal,
    StatementKind.BANK: from_bank,
    StatementKind.REIT: from_reit,
    StatementKind.OTHER: from_other,
}


def normalize_batch(batch: StatementBatch, *, on_malformed_date: str = "raise") -> List[CanonicalEarningsReport]:
    """Normalize every statement of a batch, preserving input order."""
    if on_malformed_date not in ("raise", "skip"):
        raise ValueError(f"Unknown malformed-date policy: {on_malformed_date!r}")
    normalizer = NORMALIZERS[batch.kind]

    reports: List[CanonicalEarningsReport] = []
    for statement in batch.statements:
        try:
            report = normalizer(batch.company_id, batch.currency, statement)
        except MalformedDate as exc:
            if on_malformed_date == "raise":
                raise
            logger.warning("Skipping %s statement for company %s: %s", batch.kind.value, batch.company_id, exc)
            continue
        if report is None:
            logger.warning(
                "Dropping %s statement for company %s with term %r and fiscal period %r",
                batch.kind.value,
                batch.company_id,
                statement.term,
                statement.fiscal_quarter,
            )
            continue
        reports.append(report)
    return reports
