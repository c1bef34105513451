"""Assembles the Scholaris FastAPI app from installed plugins.

Four entry-point groups feed the app:

=============================  ==============================================
``scholaris.routers``          ``APIRouter`` objects, included as they are
``scholaris.middleware``       :class:`MiddlewareContribution` objects
``scholaris.error_handlers``   ``register(app)`` callables
``scholaris.lifespan``         :class:`LifespanContribution` or a bare hook
=============================  ==============================================

Callers, mostly tests, pass the same kinds of objects directly and can
switch discovery off per group or per plugin name.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from operator import attrgetter
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from scholaris.foundation.application import (
    LifespanContribution,
    MiddlewareContribution,
    Plugin,
    load_plugins,
)
from scholaris.infra.fastapi.settings import AppSettings, get_app_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Collection, Iterable, Sequence

    from fastapi import APIRouter

logger = logging.getLogger(__name__)

GROUP_ROUTERS = "scholaris.routers"
GROUP_MIDDLEWARE = "scholaris.middleware"
GROUP_ERROR_HANDLERS = "scholaris.error_handlers"
GROUP_LIFESPAN = "scholaris.lifespan"

ALL_GROUPS = frozenset({GROUP_ROUTERS, GROUP_MIDDLEWARE, GROUP_ERROR_HANDLERS, GROUP_LIFESPAN})


def chain_lifespans(hooks: Iterable[LifespanContribution]) -> Callable[[Any], Any]:
    """Run ``hooks`` as one FastAPI lifespan.

    Lower priorities start first and stop last. When a hook fails to start,
    the ones already running are stopped before the error propagates.
    """
    ordered = sorted(hooks, key=attrgetter("priority"))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for contribution in ordered:
                await stack.enter_async_context(contribution.hook(app))
                logger.info(
                    "lifespan_hook_started",
                    extra={"hook": contribution.label, "priority": int(contribution.priority)},
                )
            yield
            logger.info("lifespan_stopping", extra={"hooks": [c.label for c in reversed(ordered)]})

    return lifespan


def _as_lifespan(plugin: Plugin) -> LifespanContribution:
    if isinstance(plugin.value, LifespanContribution):
        return plugin.value
    return LifespanContribution(hook=plugin.value, name=plugin.name)


def create_app(
    settings: AppSettings | None = None,
    *,
    routers: Sequence[APIRouter] = (),
    middleware: Sequence[MiddlewareContribution] = (),
    lifespan_hooks: Sequence[LifespanContribution] = (),
    error_handlers: Sequence[Callable[[FastAPI], None]] = (),
    skip_groups: Collection[str] | None = None,
    skip_plugins: Collection[str] | None = None,
) -> FastAPI:
    """Build the app from explicit contributions plus discovered plugins.

    Args:
        settings: Defaults to the cached environment settings.
        routers: Included before discovered routers.
        middleware: Merged with discovered middleware, then ordered by slot.
        lifespan_hooks: Merged with discovered hooks, then ordered by stage.
        error_handlers: ``register(app)`` callables run before discovered ones.
        skip_groups: Entry-point groups not to load. Overrides
            ``APP_SKIP_GROUPS``.
        skip_plugins: Entry-point names not to load in any group. Overrides
            ``APP_SKIP_PLUGINS``.
    """
    settings = settings or get_app_settings()
    groups_off = frozenset(settings.skip_groups if skip_groups is None else skip_groups)
    names_off = frozenset(settings.skip_plugins if skip_plugins is None else skip_plugins)

    def discovered(group: str) -> list[Plugin]:
        if group in groups_off:
            return []
        return load_plugins(group, skip=names_off)

    hooks = [*lifespan_hooks, *map(_as_lifespan, discovered(GROUP_LIFESPAN))]
    app = FastAPI(
        title=settings.title,
        description=settings.description,
        version=settings.version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        openapi_url=settings.openapi_url,
        lifespan=chain_lifespans(hooks),
    )
    app.add_middleware(CORSMiddleware, **settings.cors.middleware_options())

    stack = list(middleware)
    for plugin in discovered(GROUP_MIDDLEWARE):
        if isinstance(plugin.value, MiddlewareContribution):
            stack.append(plugin.value)
        else:
            logger.warning("middleware_plugin_ignored", extra={"plugin": plugin.name})
    # add_middleware wraps what is already there, so the outermost goes last
    for contribution in sorted(stack, key=attrgetter("priority"), reverse=True):
        app.add_middleware(contribution.middleware_class, **contribution.kwargs)

    for register in [*error_handlers, *(p.value for p in discovered(GROUP_ERROR_HANDLERS))]:
        register(app)

    for router in [*routers, *(p.value for p in discovered(GROUP_ROUTERS))]:
        app.include_router(router)

    logger.info(
        "app_created",
        extra={
            "title": settings.title,
            "routes": len(app.routes),
            "middleware": [c.middleware_class.__name__ for c in stack],
            "lifespan_hooks": len(hooks),
        },
    )
    return app
