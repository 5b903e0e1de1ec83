from __future__ import annotations

import pandas as pd
import pytest

from bullseye.domain.models.earnings import Trend
from bullseye.domain.services.trends import (
    concat_trend,
    direction,
    extract_field,
    get_long_term_trend,
    get_short_term_trend,
    long_term_trend,
    short_term_trends,
)


def test_rising_series_is_up():
    values = [10.0, 10.5, 11.0, 15.0, 20.0]
    trends = short_term_trends(values, 2, 0.02)

    assert trends == [Trend.UP, Trend.UP, Trend.UP]
    assert concat_trend(trends, 2) is Trend.UP
    assert long_term_trend(values, 0.02) is Trend.UP


def test_constant_series_is_flat():
    values = [10.0, 10.0, 10.0, 10.0]

    assert concat_trend(short_term_trends(values, 2, 0.02), 2) is Trend.FLAT
    assert long_term_trend(values, 0.02) is Trend.FLAT


def test_falling_series_is_down():
    values = [20.0, 15.0, 10.0, 5.0]

    assert concat_trend(short_term_trends(values, 2, 0.02), 2) is Trend.DOWN
    assert long_term_trend(values, 0.02) is Trend.DOWN


def test_small_moves_fall_under_flat_threshold():
    assert direction(100.0, 101.0, 0.02) is Trend.FLAT
    assert direction(100.0, 103.0, 0.02) is Trend.UP
    assert direction(-100.0, -103.0, 0.02) is Trend.DOWN
    # Zero start compares the absolute move.
    assert direction(0.0, 0.01, 0.02) is Trend.FLAT
    assert direction(0.0, 5.0, 0.02) is Trend.UP


def test_series_shorter_than_window_is_mixed():
    assert short_term_trends([10.0], 2, 0.02) == []
    assert concat_trend([], 2) is Trend.MIXED
    assert long_term_trend([10.0], 0.02) is Trend.MIXED
    assert long_term_trend([], 0.02) is Trend.MIXED


def test_missing_values_are_skipped_or_poison_the_window():
    values = [10.0, None, 12.0, 14.0]

    assert short_term_trends(values, 2, 0.02, ignore_none=True) == [Trend.MIXED, Trend.UP]
    assert short_term_trends(values, 2, 0.02, ignore_none=False) == [Trend.MIXED, Trend.MIXED]
    assert concat_trend([Trend.MIXED, Trend.UP], 1) is Trend.UP
    assert concat_trend([Trend.MIXED, Trend.UP], 2) is Trend.MIXED


def test_long_term_trend_with_missing_endpoint():
    values = [10.0, 12.0, None]

    assert long_term_trend(values, 0.02, ignore_none=True) is Trend.UP
    assert long_term_trend(values, 0.02, ignore_none=False) is Trend.MIXED


@pytest.mark.parametrize(
    "trends, threshold, expected",
    [
        ([Trend.UP, Trend.DOWN, Trend.UP, Trend.DOWN], 2, Trend.MIXED),
        ([Trend.UP, Trend.UP, Trend.DOWN], 2, Trend.UP),
        ([Trend.UP, Trend.DOWN, Trend.FLAT], 1, Trend.MIXED),
        ([Trend.MIXED, Trend.MIXED, Trend.DOWN], 1, Trend.DOWN),
        ([Trend.MIXED, Trend.MIXED], 1, Trend.MIXED),
    ],
)
def test_concat_trend(trends, threshold, expected):
    assert concat_trend(trends, threshold) is expected


def test_extract_field_orders_oldest_first(make_report):
    records = [
        make_report(year=2023, revenue=1210.0),
        make_report(year=2021, revenue=1000.0),
        make_report(year=2022, revenue=1100.0, gross_margin=None),
    ]
    revenue = extract_field(records, lambda r: r.revenue)
    margin = extract_field(records, lambda r: r.gross_margin)

    assert list(revenue.index) == ["2021-Q4", "2022-Q4", "2023-Q4"]
    assert revenue.tolist() == [1000.0, 1100.0, 1210.0]
    assert margin.isna().all()
    assert isinstance(revenue, pd.Series)


def test_record_level_trends_ignore_input_order(make_report):
    records = [make_report(year=y, net_income=v) for y, v in [(2023, 150.0), (2020, 300.0), (2022, 200.0), (2021, 250.0)]]

    assert get_short_term_trend(records, lambda r: r.net_income, 2, 0.02, 2) is Trend.DOWN
    assert get_long_term_trend(records, lambda r: r.net_income, 0.02) is Trend.DOWN
