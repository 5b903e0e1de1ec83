"""Per-company screening inputs: annual history, qualitative checks and trend labels."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from bullseye.domain.errors import NotFound
from bullseye.domain.models.earnings import ANNUAL, CanonicalEarningsReport, Trend
from bullseye.domain.services.calculations import has_healthy_cash_position, is_net_margin_optimized
from bullseye.domain.services.trends import FieldGetter, TrendSettings, get_long_term_trend, get_short_term_trend
from bullseye.infrastructure.db.sqlite import EarningsRepository
from bullseye.settings.config import Config

DEFAULT_TREND_METRICS: Dict[str, FieldGetter] = {
    "revenue": lambda r: r.revenue,
    "net_income": lambda r: r.net_income,
    "operating_margin": lambda r: r.operating_margin,
    "net_margin": lambda r: r.net_margin,
    "gross_margin": lambda r: r.gross_margin,
    "free_cash_flow": lambda r: r.free_cash_flow,
    "shares_outstanding": lambda r: r.shares_outstanding_diluted,
    "net_interest_income": lambda r: r.net_interest_income,
    "ffo": lambda r: r.ffo,
}


@dataclass
class ScreeningSnapshot:
    """Everything the screening report needs from the earnings core for one company."""

    company_id: int
    latest: CanonicalEarningsReport
    history: List[CanonicalEarningsReport]
    theoretical_net_margin: Optional[float]
    net_margin_optimized: bool
    healthy_cash_position: bool
    trends: Dict[str, Tuple[Trend, Trend]] = field(default_factory=dict)


def classify_trends(
    history: List[CanonicalEarningsReport],
    settings: TrendSettings,
    metrics: Mapping[str, FieldGetter] = DEFAULT_TREND_METRICS,
) -> Dict[str, Tuple[Trend, Trend]]:
    """Map each metric name to its ``(short_term, long_term)`` labels."""
    trends: Dict[str, Tuple[Trend, Trend]] = {}
    for name, getter in metrics.items():
        short_term = get_short_term_trend(
            history,
            getter,
            settings.window,
            settings.flat_threshold,
            settings.count_threshold,
            ignore_none=settings.ignore_none,
        )
        long_term = get_long_term_trend(history, getter, settings.flat_threshold, ignore_none=settings.ignore_none)
        trends[name] = (short_term, long_term)
    return trends


def build_screening_snapshot(
    repository: EarningsRepository,
    company_id: int,
    settings: TrendSettings,
    *,
    margin_factor: float,
    metrics: Mapping[str, FieldGetter] = DEFAULT_TREND_METRICS,
) -> ScreeningSnapshot:
    history = repository.load_by_company(company_id, ANNUAL)
    if not history:
        raise NotFound(f"No annual earnings reports for company {company_id}")
    latest = history[0]
    theoretical, optimized = is_net_margin_optimized(latest, margin_factor)
    return ScreeningSnapshot(
        company_id=company_id,
        latest=latest,
        history=history,
        theoretical_net_margin=theoretical,
        net_margin_optimized=optimized,
        healthy_cash_position=has_healthy_cash_position(latest),
        trends=classify_trends(history, settings, metrics),
    )


def build_screening_snapshot_from_config(
    repository: EarningsRepository,
    company_id: int,
    config: Config,
    *,
    metrics: Mapping[str, FieldGetter] = DEFAULT_TREND_METRICS,
) -> ScreeningSnapshot:
    """Snapshot using the configured trend settings and industry margin factor."""
    return build_screening_snapshot(
        repository,
        company_id,
        TrendSettings.from_config(config),
        margin_factor=config.net_margin_factor,
        metrics=metrics,
    )
