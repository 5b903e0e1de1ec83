"""Domain service layer providing derived financial metrics.

This module implements:
- Null-aware ratio, percentage and year-over-year growth primitives
- Record-level ratio/margin derivation (``RatioCalculator``)
- Same-quarter prior-year growth derivation (``GrowthCalculator``)
- Qualitative screening checks on a single canonical record

The primitives never raise. A missing operand, a zero denominator or a
non-finite result all resolve to ``None``; percentages are rounded to two
decimals, half away from zero.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple

from bullseye.domain.models.earnings import CanonicalEarningsReport


def _usable(value: Optional[float]) -> bool:
    return value is not None and not (isinstance(value, float) and math.isnan(value))


def round_half_away(value: Optional[float], digits: int = 2) -> Optional[float]:
    """Round half away from zero (``ROUND_HALF_UP`` in decimal terms)."""
    if not _usable(value) or not math.isfinite(value):
        return None
    # repr() keeps the shortest round-tripping literal, so 1.005 rounds to 1.01.
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """numerator / denominator, or ``None`` when undefined."""
    if not (_usable(numerator) and _usable(denominator)) or denominator == 0:
        return None
    result = float(numerator) / float(denominator)
    return result if math.isfinite(result) else None


def ratio_as_percentage(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    value = ratio(numerator, denominator)
    if value is None:
        return None
    return round_half_away(value * 100.0)


def yoy_growth(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """(current - previous) / |previous| as a percentage."""
    if not (_usable(current) and _usable(previous)) or previous == 0:
        return None
    return round_half_away((float(current) - float(previous)) / abs(float(previous)) * 100.0)


def sum_optional(left: Optional[float], right: Optional[float]) -> Optional[float]:
    if not (_usable(left) and _usable(right)):
        return None
    return float(left) + float(right)


class RatioCalculator:
    """Derive the ratio and margin fields of one record from its stored inputs."""

    def calculate(self, report: CanonicalEarningsReport) -> Dict[str, object]:
        interest_earning_assets = sum_optional(report.total_investments, report.gross_loans)
        operating_margin = ratio_as_percentage(report.operating_income, report.revenue)
        net_margin = ratio_as_percentage(report.net_income, report.revenue)
        return {
            "net_interest_margin": ratio_as_percentage(report.net_interest_income, interest_earning_assets),
            "cost_of_risk": ratio_as_percentage(report.provision_for_loan_loss, report.gross_loans),
            "sga_gp_ratio": ratio(report.sga_expenses, report.gross_profit),
            "rnd_gp_ratio": ratio(report.rnd_expenses, report.gross_profit),
            "interest_expenses_op_income_ratio": ratio(report.interest_expenses, report.operating_income),
            # Mandatory margins fall back to the provider figure when revenue is zero.
            "operating_margin": operating_margin if operating_margin is not None else report.operating_margin,
            "net_margin": net_margin if net_margin is not None else report.net_margin,
            "ffo_margin": ratio_as_percentage(report.ffo, report.revenue),
            "operating_cash_flow_margin": ratio_as_percentage(report.operating_cash_flow, report.revenue),
            "ratio_calculated": True,
        }


class GrowthCalculator:
    """Compute YoY growth against the same fiscal quarter of the prior year."""

    def calculate(
        self,
        report: CanonicalEarningsReport,
        previous: Optional[CanonicalEarningsReport],
    ) -> Dict[str, object]:
        prev_net_interest_income = previous.net_interest_income if previous is not None else None
        prev_gross_profit = previous.gross_profit if previous is not None else None
        return {
            "net_interest_growth_yoy": yoy_growth(report.net_interest_income, prev_net_interest_income),
            "gross_profit_growth_yoy": yoy_growth(report.gross_profit, prev_gross_profit),
            "growth_calculated": True,
        }


def is_net_margin_optimized(report: CanonicalEarningsReport, margin_factor: float) -> Tuple[Optional[float], bool]:
    """Return the theoretical net margin for the industry factor and whether the company reaches it.

    The theoretical margin is gross margin / ``margin_factor`` (gross margin
    defaults to 100 for statement types without one). A company is optimized
    when its net margin reaches the theoretical value and operating margin
    still exceeds net margin.
    """
    gross_margin = report.gross_margin if _usable(report.gross_margin) else 100.0
    theoretical = ratio(gross_margin, margin_factor)
    if theoretical is None:
        return None, False
    optimized = theoretical <= report.net_margin and report.operating_margin > report.net_margin
    return theoretical, optimized


def has_healthy_cash_position(report: CanonicalEarningsReport) -> bool:
    """Net cash is non-negative, or net debt is covered by under two years of profit."""
    if report.net_cash >= 0:
        return True
    return report.net_income > 0 and -report.net_cash / report.net_income < 2.0
