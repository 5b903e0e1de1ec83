"""Earnings normalization, derived metrics and refresh orchestration."""
from __future__ import annotations

__version__ = "0.1.0"
