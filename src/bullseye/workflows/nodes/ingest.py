"""LangGraph nodes normalizing provider statements and persisting them."""
from __future__ import annotations

from typing import Iterable, List

from bullseye.domain.models.earnings import TTM, CanonicalEarningsReport
from bullseye.domain.models.statements import StatementBatch
from bullseye.domain.services.normalization import normalize_batch
from bullseye.workflows.context import WorkflowContext
from bullseye.workflows.state import RefreshState


def run_backfill(state: RefreshState, context: WorkflowContext) -> RefreshState:
    """Normalize and store the company's complete statement history."""
    logs = state.setdefault("logs", [])
    source = _require_source(context)
    logs.append("BackfillAgent -> ingest full statement history")
    batches = source.full_history(state["ticker"])
    records = _normalize(state, context, batches)
    return _persist(state, context, records)


def run_incremental(state: RefreshState, context: WorkflowContext) -> RefreshState:
    """Normalize and store only the trailing-twelve-month statements."""
    logs = state.setdefault("logs", [])
    source = _require_source(context)
    logs.append("IncrementalAgent -> ingest latest TTM statement")
    batch = source.trailing(state["ticker"])
    records = [r for r in _normalize(state, context, [batch]) if r.duration == TTM]
    return _persist(state, context, records)


def _require_source(context: WorkflowContext):
    if context.source is None:
        raise RuntimeError("Earnings update is due but no statement source is configured.")
    return context.source


def _normalize(
    state: RefreshState,
    context: WorkflowContext,
    batches: Iterable[StatementBatch],
) -> List[CanonicalEarningsReport]:
    errors = state.setdefault("errors", [])
    policy = context.config.malformed_date_policy
    records: List[CanonicalEarningsReport] = []
    for batch in batches:
        normalized = normalize_batch(batch, on_malformed_date=policy)
        dropped = len(batch) - len(normalized)
        if dropped:
            errors.append(f"Dropped {dropped} of {len(batch)} {batch.kind.value} statements during normalization.")
        records.extend(normalized)
    state["normalized_count"] = state.get("normalized_count", 0) + len(records)
    return records


def _persist(state: RefreshState, context: WorkflowContext, records: List[CanonicalEarningsReport]) -> RefreshState:
    logs = state.setdefault("logs", [])
    inserted = context.repository.insert_batch(records)
    state["inserted"] = inserted
    if inserted:
        logs.append(f"Stored new earnings rows out of {len(records)} normalized records.")
    else:
        logs.append(f"No new earnings rows; {len(records)} normalized records already stored.")
    return state
