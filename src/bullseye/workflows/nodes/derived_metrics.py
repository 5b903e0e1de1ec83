"""LangGraph node deriving ratios and growth for pending records."""
from __future__ import annotations

from bullseye.domain.models.earnings import ANNUAL
from bullseye.workflows.context import WorkflowContext
from bullseye.workflows.state import RefreshState


def run(state: RefreshState, context: WorkflowContext) -> RefreshState:
    logs = state.setdefault("logs", [])
    plan = state.get("plan")
    duration = plan.metrics_duration if plan is not None else ANNUAL

    logs.append(f"MetricsAgent -> derive ratios and growth for duration {duration}")
    state["metrics_updated"] = context.metrics.refresh_duration(state["company_id"], duration)
    return state
