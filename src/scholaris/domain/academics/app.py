"""Scholaris application factory.

Routers, middleware, error handlers and lifespan hooks all come from the
installed ``scholaris.*`` entry points.

Usage::

    uvicorn scholaris.domain.academics.app:create_scholaris_app --factory
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from scholaris.infra.fastapi import create_app, get_app_settings

if TYPE_CHECKING:
    from collections.abc import Collection

    from fastapi import FastAPI


def create_scholaris_app(*, skip_plugins: Collection[str] | None = None) -> FastAPI:
    """Create the Scholaris API.

    Args:
        skip_plugins: Entry-point names to leave out, e.g. ``{"persistence"}``
            to start without a reachable MongoDB. Defaults to
            ``APP_SKIP_PLUGINS``.
    """
    return create_app(get_app_settings(), skip_plugins=skip_plugins)
