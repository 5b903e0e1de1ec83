"""Raw provider statement variants and the tagged batch that carries them.

Each variant mirrors the provider payload for one statement layout. The
classes intentionally share no base: the four layouts diverge in which
concepts exist, and each normalizer is total over exactly one of them.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, Union

import pandas as pd


class StatementKind(str, Enum):
    NOMINAL = "nominal"
    BANK = "bank"
    REIT = "reit"
    OTHER = "other"


@dataclass(frozen=True)
class NominalStatement:
    """Industrial/commercial layout with gross profit and opex breakdown."""

    term: str
    fiscal_quarter: str
    period_ending: str
    revenue: float = 0.0
    revenue_growth_yoy: float = 0.0
    cost_of_revenue: float = 0.0
    gross_profit: float = 0.0
    gross_margin: float = 0.0
    sga_expenses: float = 0.0
    rnd_expenses: float = 0.0
    operating_expenses: float = 0.0
    operating_income: float = 0.0
    operating_margin: float = 0.0
    interest_expenses: float = 0.0
    goodwill_impairment: float = 0.0
    net_income: float = 0.0
    net_margin: float = 0.0
    eps_basic: float = 0.0
    eps_diluted: float = 0.0
    shares_outstanding_basic: float = 0.0
    shares_outstanding_diluted: float = 0.0
    shares_change_yoy: float = 0.0
    cash_and_equivalents: float = 0.0
    cash_and_short_term_investments: float = 0.0
    accounts_receivable: float = 0.0
    inventory: float = 0.0
    total_current_assets: float = 0.0
    goodwill: float = 0.0
    total_assets: float = 0.0
    accounts_payable: float = 0.0
    total_current_liabilities: float = 0.0
    total_liabilities: float = 0.0
    retained_earnings: float = 0.0
    shareholders_equity: float = 0.0
    total_debt: float = 0.0
    net_cash: float = 0.0
    depreciation_and_amortization: float = 0.0
    stock_based_compensation: float = 0.0
    operating_cash_flow: float = 0.0
    capital_expenditure: float = 0.0
    investing_cash_flow: float = 0.0
    financing_cash_flow: float = 0.0
    free_cash_flow: float = 0.0
    free_cash_flow_margin: float = 0.0


@dataclass(frozen=True)
class BankStatement:
    """Bank layout: interest income and loan-loss provisions instead of gross profit."""

    term: str
    fiscal_quarter: str
    period_ending: str
    net_interest_income: float = 0.0
    provision_for_loan_loss: float = 0.0
    revenue: float = 0.0
    revenue_growth_yoy: float = 0.0
    operating_expenses: float = 0.0
    adjusted_operating_income: float = 0.0
    adjusted_operating_margin: float = 0.0
    goodwill_impairment: float = 0.0
    net_income: float = 0.0
    net_margin: float = 0.0
    eps_basic: float = 0.0
    eps_diluted: float = 0.0
    shares_outstanding_basic: float = 0.0
    shares_outstanding_diluted: float = 0.0
    shares_change_yoy: float = 0.0
    cash_and_equivalents: float = 0.0
    total_investments: float = 0.0
    gross_loans: float = 0.0
    goodwill: float = 0.0
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    retained_earnings: float = 0.0
    shareholders_equity: float = 0.0
    total_debt: float = 0.0
    net_cash: float = 0.0
    depreciation_and_amortization: float = 0.0
    stock_based_compensation: float = 0.0
    operating_cash_flow: float = 0.0
    investing_cash_flow: float = 0.0
    financing_cash_flow: float = 0.0


@dataclass(frozen=True)
class ReitStatement:
    """REIT layout: adds funds from operations, no investing/financing split."""

    term: str
    fiscal_quarter: str
    period_ending: str
    revenue: float = 0.0
    revenue_growth_yoy: float = 0.0
    operating_expenses: float = 0.0
    operating_income: float = 0.0
    operating_margin: float = 0.0
    interest_expenses: float = 0.0
    goodwill_impairment: float = 0.0
    net_income: float = 0.0
    net_margin: float = 0.0
    eps_basic: float = 0.0
    eps_diluted: float = 0.0
    shares_outstanding_basic: float = 0.0
    shares_outstanding_diluted: float = 0.0
    shares_change_yoy: float = 0.0
    ffo: float = 0.0
    cash_and_equivalents: float = 0.0
    goodwill: float = 0.0
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    retained_earnings: float = 0.0
    shareholders_equity: float = 0.0
    total_debt: float = 0.0
    net_cash: float = 0.0
    depreciation_and_amortization: float = 0.0
    stock_based_compensation: float = 0.0
    operating_cash_flow: float = 0.0


@dataclass(frozen=True)
class OtherStatement:
    """Catch-all layout; gross profit lines are present only when the provider has them."""

    term: str
    fiscal_quarter: str
    period_ending: str
    revenue: float = 0.0
    revenue_growth_yoy: float = 0.0
    operating_expenses: float = 0.0
    operating_income: float = 0.0
    operating_margin: float = 0.0
    interest_expenses: float = 0.0
    goodwill_impairment: float = 0.0
    net_income: float = 0.0
    net_margin: float = 0.0
    eps_basic: float = 0.0
    eps_diluted: float = 0.0
    shares_outstanding_basic: float = 0.0
    shares_outstanding_diluted: float = 0.0
    shares_change_yoy: float = 0.0
    cash_and_equivalents: float = 0.0
    goodwill: float = 0.0
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    retained_earnings: float = 0.0
    shareholders_equity: float = 0.0
    total_debt: float = 0.0
    net_cash: float = 0.0
    depreciation_and_amortization: float = 0.0
    stock_based_compensation: float = 0.0
    operating_cash_flow: float = 0.0
    investing_cash_flow: float = 0.0
    financing_cash_flow: float = 0.0
    free_cash_flow: float = 0.0
    free_cash_flow_margin: float = 0.0
    cost_of_revenue: Optional[float] = None
    gross_profit: Optional[float] = None
    sga_expenses: Optional[float] = None
    rnd_expenses: Optional[float] = None


RawStatement = Union[NominalStatement, BankStatement, ReitStatement, OtherStatement]

STATEMENT_TYPES: Dict[StatementKind, Type] = {
    StatementKind.NOMINAL: NominalStatement,
    StatementKind.BANK: BankStatement,
    StatementKind.REIT: ReitStatement,
    StatementKind.OTHER: OtherStatement,
}

_TEXT_FIELDS = ("term", "fiscal_quarter", "period_ending")


@dataclass
class StatementBatch:
    """One provider response: statements of a single variant for one company."""

    kind: StatementKind
    company_id: int
    currency: str
    statements: List[RawStatement] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.statements)

    @classmethod
    def from_records(
        cls,
        kind: Union[StatementKind, str],
        company_id: int,
        currency: str,
        records: Union[pd.DataFrame, Iterable[Mapping[str, Any]]],
    ) -> "StatementBatch":
        """Build a batch from provider rows (list of mappings or a DataFrame)."""
        kind = StatementKind(kind)
        if isinstance(records, pd.DataFrame):
            rows: Iterable[Mapping[str, Any]] = records.to_dict(orient="records")
        else:
            rows = records
        statement_type = STATEMENT_TYPES[kind]
        statements = [_statement_from_row(statement_type, row) for row in rows]
        return cls(kind=kind, company_id=company_id, currency=currency, statements=statements)


def _statement_from_row(statement_type: Type, row: Mapping[str, Any]):
    kwargs: Dict[str, Any] = {}
    for column in fields(statement_type):
        raw = row.get(column.name)
        if column.name in _TEXT_FIELDS:
            kwargs[column.name] = None if _is_missing(raw) else str(raw)
            continue
        value = _safe_float(raw)
        if value is None:
            # Missing numbers fall back to the field default: 0.0 for provider-supplied
            # figures, None only for the optional OtherStatement gross-profit lines.
            continue
        kwargs[column.name] = value
    return statement_type(**kwargs)


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _safe_float(value: Any) -> Optional[float]:
    if _is_missing(value):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None
