"""Log output for Scholaris, rendered by structlog.

The application logs through the standard library::

    logger = logging.getLogger(__name__)
    logger.info("entity_delete_completed", extra={"entity_type": "institutes"})

:func:`configure_logging` hangs a structlog ``ProcessorFormatter`` on the
root logger, so each line becomes one event: the ``extra`` fields turn into
top-level keys, the request IDs bound by the HTTP middleware are merged in,
and keys that look like secrets (a Mongo URI included) are masked. Lines
are JSON with ``ENVIRONMENT=production`` and coloured console text
otherwise.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import MutableMapping

    from structlog.types import Processor

SECRET_KEYS = frozenset({"authorization", "api_key", "apikey", "credential", "uri", "mongo_uri"})
SECRET_KEY_FRAGMENTS = ("password", "token", "secret")
REDACTED_VALUE = "***REDACTED***"


class LoggingSettings(BaseSettings):
    """``LOG_LEVEL`` and ``ENVIRONMENT`` from the environment."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    environment: str = Field(default="development", alias="ENVIRONMENT")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def json_output(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def level(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]


def mask_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace the value of every secret-looking key with :data:`REDACTED_VALUE`."""
    for key in event_dict:
        lowered = key.lower()
        if lowered in SECRET_KEYS or any(part in lowered for part in SECRET_KEY_FRAGMENTS):
            event_dict[key] = REDACTED_VALUE
    return event_dict


def _enrich() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        mask_secrets,
    ]


def _render(settings: LoggingSettings) -> list[Processor]:
    # ConsoleRenderer prints exc_info itself; JSON needs it as a string first.
    if settings.json_output:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=True)]


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Route structlog and stdlib logging to one stderr handler.

    Safe to call again; the previous root handlers are replaced.
    """
    settings = settings or LoggingSettings()
    render = _render(settings)

    structlog.configure(
        processors=[*_enrich(), *render],
        wrapper_class=structlog.make_filtering_bound_logger(settings.level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.ExtraAdder(),
                *_enrich(),
            ],
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.level)
