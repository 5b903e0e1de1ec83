"""LangGraph workflow assembly for the per-lookup refresh pipeline."""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from langgraph.graph import END, StateGraph

from bullseye.domain.models.forecast import ForecastState
from bullseye.domain.services.derivation import MetricsService
from bullseye.domain.services.refresh import RefreshPath, StatementSource
from bullseye.infrastructure.db.sqlite import EarningsRepository
from bullseye.settings.config import Config
from bullseye.workflows import context as context_module
from bullseye.workflows.blueprint import METRICS_STAGE, PLAN_STAGE, StageSpec, build_default_stages
from bullseye.workflows.state import RefreshState


class RefreshWorkflow:
    """Compose refresh nodes into a graph evaluated fresh on every lookup.

    No checkpointer is attached: each ``run`` starts from persisted state only.
    """

    def __init__(
        self,
        config: Config,
        *,
        source: Optional[StatementSource] = None,
        repository: Optional[EarningsRepository] = None,
    ) -> None:
        self._config = config
        self._context = self._build_context(source, repository)
        self._stages: List[StageSpec] = build_default_stages()
        self._graph = self._build_graph()

    @property
    def context(self) -> context_module.WorkflowContext:
        return self._context

    def _build_context(
        self,
        source: Optional[StatementSource],
        repository: Optional[EarningsRepository],
    ) -> context_module.WorkflowContext:
        if repository is None:
            repository = EarningsRepository(
                database_uri=self._config.database_uri,
                echo=self._config.sqlite_echo,
            )
        return context_module.WorkflowContext(
            config=self._config,
            repository=repository,
            source=source,
            metrics=MetricsService(repository),
        )

    def _build_graph(self):
        builder = StateGraph(dict)

        if not self._stages:
            raise RuntimeError("Workflow blueprint is empty; cannot build LangGraph.")

        for stage in self._stages:
            builder.add_node(stage.key, self._wrap(stage.handler))

        routes: Dict[str, str] = {RefreshPath.METRICS_ONLY.value: METRICS_STAGE}
        for stage in self._stages:
            if stage.path is not None:
                routes[stage.path.value] = stage.key
                builder.add_edge(stage.key, METRICS_STAGE)

        builder.set_entry_point(PLAN_STAGE)
        builder.add_conditional_edges(PLAN_STAGE, _route, routes)
        builder.add_edge(METRICS_STAGE, END)

        return builder.compile(checkpointer=None)

    def _wrap(self, func: Callable[[RefreshState, context_module.WorkflowContext], RefreshState]):
        def wrapper(state: Dict[str, Any]) -> Dict[str, Any]:
            return func(state, self._context)

        return wrapper

    def run(self, company_id: int, ticker: str, *, forecast: Optional[ForecastState] = None) -> RefreshState:
        """Execute the refresh for a single ticker lookup."""
        initial_state: RefreshState = {
            "company_id": company_id,
            "ticker": ticker,
            "plan": None,
            "normalized_count": 0,
            "inserted": False,
            "metrics_updated": 0,
            "logs": [],
            "errors": [],
        }
        if forecast is not None:
            initial_state["forecast"] = forecast
        result: RefreshState = self._graph.invoke(initial_state)
        return result  # type: ignore[return-value]

    def describe_stages(self) -> List[str]:
        """Return human-readable workflow stage descriptions."""
        return [f"{stage.key}: {stage.description}" for stage in self._stages]

    def close(self) -> None:
        self._context.close()


def _route(state: Dict[str, Any]) -> str:
    plan = state.get("plan")
    if plan is None:
        return RefreshPath.METRICS_ONLY.value
    return plan.path.value
