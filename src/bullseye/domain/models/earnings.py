"""Canonical earnings record shared by normalization, persistence and metrics."""
from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from enum import Enum
from typing import Optional, Tuple

from bullseye.domain.services.fiscal_period import format_fiscal_period

TTM = "T"
ANNUAL = "Y"
DURATIONS = (TTM, ANNUAL)


class Trend(str, Enum):
    """Direction label produced by the trend classifier."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"
    MIXED = "mixed"


class RecordStage(str, Enum):
    """Lifecycle view over the two derivation flags."""

    RAW = "raw"
    RATIOS_DERIVED = "ratios_derived"
    GROWTH_DERIVED = "growth_derived"
    COMPLETE = "complete"


@dataclass
class CanonicalEarningsReport:
    """One company-period statement in the unified schema.

    Optional fields are ``None`` when the statement type has no such concept or
    when the value is derived and has not been computed yet; they are never
    zero-filled.
    """

    company_id: int
    duration: str
    quarter_str: int
    year_str: int
    period_ending: date
    currency: str

    # Income statement, mandatory
    revenue: float
    operating_expenses: float
    operating_income: float
    operating_margin: float
    goodwill_impairment: float
    net_income: float
    net_margin: float
    eps_basic: float
    eps_diluted: float
    shares_outstanding_basic: float
    shares_outstanding_diluted: float
    shares_change_yoy: float

    # Balance sheet, mandatory
    cash_and_equivalents: float
    total_assets: float
    total_liabilities: float
    retained_earnings: float
    shareholders_equity: float
    net_cash: float

    # Income statement, type dependent
    net_interest_income: Optional[float] = None
    net_interest_growth_yoy: Optional[float] = None
    net_interest_margin: Optional[float] = None
    provision_for_loan_loss: Optional[float] = None
    cost_of_risk: Optional[float] = None
    revenue_growth_yoy: Optional[float] = None
    cost_of_revenue: Optional[float] = None
    gross_profit: Optional[float] = None
    gross_margin: Optional[float] = None
    gross_profit_growth_yoy: Optional[float] = None
    sga_expenses: Optional[float] = None
    sga_gp_ratio: Optional[float] = None
    rnd_expenses: Optional[float] = None
    rnd_gp_ratio: Optional[float] = None
    interest_expenses: Optional[float] = None
    interest_expenses_op_income_ratio: Optional[float] = None
    ffo: Optional[float] = None
    ffo_margin: Optional[float] = None

    # Balance sheet, type dependent
    cash_and_short_term_investments: Optional[float] = None
    total_investments: Optional[float] = None
    gross_loans: Optional[float] = None
    accounts_receivable: Optional[float] = None
    inventory: Optional[float] = None
    total_current_assets: Optional[float] = None
    goodwill: Optional[float] = None
    accounts_payable: Optional[float] = None
    total_current_liabilities: Optional[float] = None
    total_debt: Optional[float] = None

    # Cash flow
    depreciation_and_amortization: Optional[float] = None
    stock_based_compensation: Optional[float] = None
    operating_cash_flow: Optional[float] = None
    operating_cash_flow_margin: Optional[float] = None
    capital_expenditure: Optional[float] = None
    investing_cash_flow: Optional[float] = None
    financing_cash_flow: Optional[float] = None
    free_cash_flow: Optional[float] = None
    free_cash_flow_margin: Optional[float] = None

    ratio_calculated: bool = False
    growth_calculated: bool = False
    id: Optional[int] = None

    @property
    def key(self) -> Tuple[int, str, int, int]:
        return (self.company_id, self.duration, self.quarter_str, self.year_str)

    @property
    def fiscal_period(self) -> str:
        return format_fiscal_period(self.year_str, self.quarter_str)

    @property
    def stage(self) -> RecordStage:
        if self.ratio_calculated and self.growth_calculated:
            return RecordStage.COMPLETE
        if self.ratio_calculated:
            return RecordStage.RATIOS_DERIVED
        if self.growth_calculated:
            return RecordStage.GROWTH_DERIVED
        return RecordStage.RAW


IDENTITY_FIELDS = ("company_id", "duration", "quarter_str", "year_str")

RATIO_FIELDS = (
    "net_interest_margin",
    "cost_of_risk",
    "sga_gp_ratio",
    "rnd_gp_ratio",
    "interest_expenses_op_income_ratio",
    "operating_margin",
    "net_margin",
    "ffo_margin",
    "operating_cash_flow_margin",
)

GROWTH_FIELDS = ("net_interest_growth_yoy", "gross_profit_growth_yoy")

BOOKKEEPING_FIELDS = ("ratio_calculated", "growth_calculated")

# Only the derivation engine may write these after insert.
MUTABLE_FIELDS = frozenset(RATIO_FIELDS + GROWTH_FIELDS + BOOKKEEPING_FIELDS)

# Column order used by the store; ``id`` is assigned by the database.
COLUMN_FIELDS = tuple(f.name for f in fields(CanonicalEarningsReport) if f.name != "id")
