"""LangGraph node delegating a non-earnings (price/guidance) update."""
from __future__ import annotations

from bullseye.workflows.context import WorkflowContext
from bullseye.workflows.state import RefreshState


def run(state: RefreshState, context: WorkflowContext) -> RefreshState:
    logs = state.setdefault("logs", [])
    errors = state.setdefault("errors", [])

    if context.source is None:
        errors.append("RegularUpdateAgent skipped because no statement source is configured.")
        return state

    logs.append("RegularUpdateAgent -> refresh price and guidance data")
    context.source.regular_update(state["company_id"], state["ticker"])
    return state
