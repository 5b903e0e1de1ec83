"""Short- and long-term trend classification over one metric's history.

Values are always handled oldest to newest. A metric is selected by passing a
getter (any ``record -> Optional[float]`` callable), so the classifier knows
nothing about individual fields.

Short-term: the series is cut into ``ceil(n / length)`` consecutive chunks.
Each window runs from the closing value of the previous chunk (or the first
value) to the last value of its own chunk, so every move in the series belongs
to exactly one window. The per-window labels are then collapsed with
``concat_trend``.

Long-term: first versus last usable value.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np
import pandas as pd

from bullseye.domain.models.earnings import CanonicalEarningsReport, Trend
from bullseye.settings.config import Config

FieldGetter = Callable[[CanonicalEarningsReport], Optional[float]]


@dataclass(frozen=True)
class TrendSettings:
    window: int = 2
    flat_threshold: float = 0.02
    count_threshold: int = 2
    ignore_none: bool = True

    @classmethod
    def from_config(cls, config: Config) -> "TrendSettings":
        return cls(
            window=config.trend_window,
            flat_threshold=config.trend_flat_threshold,
            count_threshold=config.trend_count_threshold,
            ignore_none=config.trend_ignore_none,
        )


def extract_field(records: Sequence[CanonicalEarningsReport], getter: FieldGetter) -> pd.Series:
    """Apply ``getter`` across records ordered oldest to newest; missing values become NaN."""
    ordered = sorted(records, key=lambda r: (r.year_str, r.quarter_str))
    values = [getter(r) for r in ordered]
    index = [r.fiscal_period for r in ordered]
    return pd.Series([np.nan if v is None else float(v) for v in values], index=index, dtype=float)


def direction(start: float, end: float, flat_threshold: float) -> Trend:
    """Classify a single move; relative to |start|, absolute when start is zero."""
    change = end - start
    if start != 0:
        change = change / abs(start)
    if abs(change) < flat_threshold:
        return Trend.FLAT
    return Trend.UP if change > 0 else Trend.DOWN


def _as_series(values) -> pd.Series:
    if isinstance(values, pd.Series):
        return values.astype(float).reset_index(drop=True)
    return pd.Series([np.nan if v is None else v for v in values], dtype=float)


def _window_trend(window: pd.Series, ignore_none: bool, flat_threshold: float) -> Trend:
    if window.isna().any():
        if not ignore_none:
            return Trend.MIXED
        window = window.dropna()
    if len(window) < 2:
        return Trend.MIXED
    return direction(float(window.iloc[0]), float(window.iloc[-1]), flat_threshold)


def short_term_trends(values, length: int, flat_threshold: float, *, ignore_none: bool = True) -> List[Trend]:
    """Per-window directions; empty when the series is shorter than one window."""
    series = _as_series(values)
    if length < 1 or len(series) < length:
        return []
    trends: List[Trend] = []
    for chunk in range(math.ceil(len(series) / length)):
        start = max(chunk * length - 1, 0)
        stop = min((chunk + 1) * length, len(series))
        trends.append(_window_trend(series.iloc[start:stop], ignore_none, flat_threshold))
    return trends


def concat_trend(trends: Sequence[Trend], count_threshold: int) -> Trend:
    """Collapse window labels into one; the leading direction must reach the threshold and not tie."""
    counts = Counter(t for t in trends if t is not Trend.MIXED)
    if not counts:
        return Trend.MIXED
    ranked = counts.most_common()
    label, count = ranked[0]
    if count < count_threshold:
        return Trend.MIXED
    if len(ranked) > 1 and ranked[1][1] == count:
        return Trend.MIXED
    return label


def long_term_trend(values, flat_threshold: float, *, ignore_none: bool = True) -> Trend:
    series = _as_series(values)
    if ignore_none:
        series = series.dropna()
    return _endpoints_trend(series, flat_threshold)


def _endpoints_trend(series: pd.Series, flat_threshold: float) -> Trend:
    # A gap at either end is undecidable when missing values are not skipped.
    if len(series) < 2 or pd.isna(series.iloc[0]) or pd.isna(series.iloc[-1]):
        return Trend.MIXED
    return direction(float(series.iloc[0]), float(series.iloc[-1]), flat_threshold)


def get_short_term_trend(
    records: Sequence[CanonicalEarningsReport],
    getter: FieldGetter,
    length: int,
    flat_threshold: float,
    count_threshold: int,
    *,
    ignore_none: bool = True,
) -> Trend:
    values = extract_field(records, getter)
    trends = short_term_trends(values, length, flat_threshold, ignore_none=ignore_none)
    return concat_trend(trends, count_threshold)


def get_long_term_trend(
    records: Sequence[CanonicalEarningsReport],
    getter: FieldGetter,
    flat_threshold: float,
    *,
    ignore_none: bool = True,
) -> Trend:
    values = extract_field(records, getter)
    return long_term_trend(values, flat_threshold, ignore_none=ignore_none)
