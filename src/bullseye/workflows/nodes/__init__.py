"""Convenience re-exports for workflow nodes."""
from __future__ import annotations

from . import derived_metrics, ingest, plan, regular

__all__ = [
    "derived_metrics",
    "ingest",
    "plan",
    "regular",
]
