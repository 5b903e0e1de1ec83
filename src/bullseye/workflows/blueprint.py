"""Workflow blueprint describing refresh stages and their handlers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List, Optional

from bullseye.domain.services.refresh import RefreshPath
from bullseye.workflows.nodes import derived_metrics, ingest, plan, regular

if TYPE_CHECKING:
    from bullseye.workflows.context import WorkflowContext
    from bullseye.workflows.state import RefreshState

PLAN_STAGE = "plan_refresh"
METRICS_STAGE = "recompute_metrics"


@dataclass
class StageSpec:
    """Single LangGraph stage definition."""

    key: str
    description: str
    handler: Callable[["RefreshState", "WorkflowContext"], "RefreshState"]
    path: Optional[RefreshPath] = None
    depends_on: List[str] = field(default_factory=list)


def build_default_stages() -> List[StageSpec]:
    """Return the refresh stages; ``path`` marks the branch a stage serves."""
    return [
        StageSpec(
            key=PLAN_STAGE,
            description="Read forecast staleness and the latest TTM record; choose the refresh path.",
            handler=plan.run,
        ),
        StageSpec(
            key="full_backfill",
            description="Normalize and store the complete statement history.",
            handler=ingest.run_backfill,
            path=RefreshPath.FULL_BACKFILL,
            depends_on=[PLAN_STAGE],
        ),
        StageSpec(
            key="incremental_update",
            description="Normalize and store only the latest TTM statement.",
            handler=ingest.run_incremental,
            path=RefreshPath.INCREMENTAL,
            depends_on=[PLAN_STAGE],
        ),
        StageSpec(
            key="regular_update",
            description="Delegate the non-earnings price/guidance update.",
            handler=regular.run,
            path=RefreshPath.REGULAR,
            depends_on=[PLAN_STAGE],
        ),
        StageSpec(
            key=METRICS_STAGE,
            description="Derive ratios and YoY growth for records still pending.",
            handler=derived_metrics.run,
            depends_on=["full_backfill", "incremental_update", "regular_update"],
        ),
    ]
