"""Scholaris Infra FastAPI -- error handlers, middleware, app factory."""

from scholaris.infra.fastapi.app_factory import create_app
from scholaris.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from scholaris.infra.fastapi.middleware import RequestContextMiddleware
from scholaris.infra.fastapi.settings import AppSettings, CORSSettings, get_app_settings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "ProblemDetail",
    "RequestContextMiddleware",
    "create_app",
    "get_app_settings",
    "register_exception_handlers",
]
