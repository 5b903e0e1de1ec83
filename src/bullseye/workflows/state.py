"""Workflow state definitions shared by LangGraph nodes."""
from __future__ import annotations

from typing import List, Optional, TypedDict

from bullseye.domain.models.forecast import ForecastState
from bullseye.domain.services.refresh import RefreshPlan


class RefreshState(TypedDict, total=False):
    company_id: int
    ticker: str

    forecast: ForecastState
    plan: Optional[RefreshPlan]

    normalized_count: int
    inserted: bool
    metrics_updated: int

    logs: List[str]
    errors: List[str]
