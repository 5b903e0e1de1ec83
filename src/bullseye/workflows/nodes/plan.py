"""LangGraph node evaluating the refresh decision table for one lookup."""
from __future__ import annotations

import logging

from bullseye.domain.models.earnings import TTM
from bullseye.domain.services.refresh import decide_refresh
from bullseye.workflows.context import WorkflowContext
from bullseye.workflows.state import RefreshState

logger = logging.getLogger(__name__)


def run(state: RefreshState, context: WorkflowContext) -> RefreshState:
    logs = state.setdefault("logs", [])
    company_id = state["company_id"]

    forecast = state.get("forecast")
    if forecast is None:
        forecast = context.repository.load_forecast(company_id)
        state["forecast"] = forecast

    plan = decide_refresh(forecast, lambda: context.repository.load_latest_if_exists(company_id, TTM))
    state["plan"] = plan
    logs.append(f"RefreshPlanner -> {plan.path.value} (metrics on duration {plan.metrics_duration})")
    logger.info("Refresh path for %s: %s", state.get("ticker"), plan.path.value)
    return state
