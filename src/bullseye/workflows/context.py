"""Workflow dependency container."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bullseye.domain.services.derivation import MetricsService
from bullseye.domain.services.refresh import StatementSource
from bullseye.infrastructure.db.sqlite import EarningsRepository
from bullseye.settings.config import Config


@dataclass
class WorkflowContext:
    """Holds the store handle and collaborators shared by LangGraph nodes."""

    config: Config
    repository: EarningsRepository
    source: Optional[StatementSource]
    metrics: MetricsService

    def close(self) -> None:
        """Release any dependencies that need explicit cleanup."""
        self.repository.engine.dispose()
