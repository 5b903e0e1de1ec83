"""Parsing helpers for provider fiscal-period and period-ending strings."""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Optional, Tuple

import pandas as pd

from bullseye.domain.errors import MalformedDate, MalformedFiscalPeriod

FISCAL_PERIOD_PATTERN = re.compile(r"^(\d{4})-Q([1-4])$")
PERIOD_ENDING_FORMAT = "%Y-%m-%d"


def parse_fiscal_period(value: Any) -> Optional[Tuple[int, int]]:
    """Return ``(year, quarter)`` for strings like ``"2024-Q3"``, otherwise ``None``."""
    if not isinstance(value, str):
        return None
    match = FISCAL_PERIOD_PATTERN.match(value.strip())
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def require_fiscal_period(value: Any) -> Tuple[int, int]:
    parsed = parse_fiscal_period(value)
    if parsed is None:
        raise MalformedFiscalPeriod(value)
    return parsed


def format_fiscal_period(year: int, quarter: int) -> str:
    """Inverse of :func:`parse_fiscal_period`."""
    return f"{int(year):04d}-Q{int(quarter)}"


def parse_period_ending(value: Any) -> date:
    """Parse a ``YYYY-MM-DD`` period-ending date, raising ``MalformedDate`` on failure."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise MalformedDate(value)
    try:
        return pd.to_datetime(value.strip(), format=PERIOD_ENDING_FORMAT).date()
    except (TypeError, ValueError) as exc:
        raise MalformedDate(value) from exc
