"""Scholaris Infra Observability -- structlog logging configuration."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from scholaris.foundation.application.contributions import LifespanContribution, StartupStage
from scholaris.infra.observability.logging import LoggingSettings, configure_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@asynccontextmanager
async def _logging_lifespan(app: Any) -> AsyncIterator[None]:
    configure_logging()
    yield


lifespan_contribution = LifespanContribution(
    hook=_logging_lifespan,
    priority=StartupStage.LOGGING,
    name="observability",
)

__all__ = [
    "LoggingSettings",
    "configure_logging",
    "lifespan_contribution",
]
