"""Environment configuration of the HTTP layer.

``CORS_*`` variables control which browser front ends may call the API.
``APP_*`` variables carry the OpenAPI metadata and let an operator switch
off plugins, e.g. ``APP_SKIP_PLUGINS=persistence`` to serve the docs
without a reachable MongoDB. List-valued variables are comma separated.
"""

from __future__ import annotations

from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version
from typing import Annotated, Any

from pydantic import BeforeValidator, Field, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Headers the academics API reads, and the trace headers it writes back.
REQUEST_HEADERS = ("Content-Type", "X-Tenant-ID", "X-User-ID", "X-Request-ID", "X-Correlation-ID")
TRACE_HEADERS = ("X-Request-ID", "X-Correlation-ID")


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


CsvList = Annotated[list[str], NoDecode, BeforeValidator(_split_csv)]


class CORSSettings(BaseSettings):
    """Browser access policy, ``CORS_`` prefix.

    Defaults let any origin read the API without cookies. Only the verbs
    the API serves and the headers it reads are allowed.
    """

    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    allow_origins: CsvList = Field(default_factory=lambda: ["*"])
    allow_methods: CsvList = Field(default_factory=lambda: ["GET", "DELETE", "OPTIONS"])
    allow_headers: CsvList = Field(default_factory=lambda: list(REQUEST_HEADERS))
    expose_headers: CsvList = Field(default_factory=lambda: list(TRACE_HEADERS))
    allow_credentials: bool = False

    @model_validator(mode="after")
    def _credentials_need_named_origins(self) -> CORSSettings:
        if self.allow_credentials and "*" in self.allow_origins:
            msg = "CORS_ALLOW_CREDENTIALS needs explicit CORS_ALLOW_ORIGINS, not '*'"
            raise ValueError(msg)
        return self

    def middleware_options(self) -> dict[str, Any]:
        """Keyword arguments for ``CORSMiddleware``."""
        return self.model_dump()


def _installed_version() -> str:
    try:
        return version("scholaris")
    except PackageNotFoundError:
        return "0.0.0"


class AppSettings(BaseSettings):
    """App metadata and plugin switches, ``APP_`` prefix."""

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    title: str = "Scholaris"
    description: str = "Institute records with dependency-aware deletes"
    version: str = Field(default_factory=_installed_version)
    debug: bool = False
    docs_url: str | None = "/docs"
    openapi_url: str | None = "/openapi.json"
    cors: CORSSettings = Field(default_factory=CORSSettings)

    skip_groups: CsvList = Field(default_factory=list)
    skip_plugins: CsvList = Field(default_factory=list)


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    return AppSettings()
