"""What a plugin package can hand the Scholaris app besides a router.

Routers and exception-handler registrars plug in as they are: an
``APIRouter`` is included, a ``register(app)`` callable is called. The two
kinds of plugin whose position matters are wrapped here with the slot they
want:

* middleware, ordered from the outermost layer inwards, and
* startup/shutdown hooks, ordered so that logging is up before MongoDB is
  pinged and MongoDB is closed before logging goes away.

Nothing in this module imports FastAPI, so domain packages can declare
contributions without depending on the web layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class MiddlewareSlot(IntEnum):
    """Where a middleware sits. Lower slots wrap higher ones."""

    REQUEST_IDENTITY = 0
    DEFAULT = 400
    LAST = 499


class StartupStage(IntEnum):
    """When a lifespan hook starts. Shutdown runs in reverse."""

    LOGGING = 50
    MONGO = 75
    DEFAULT = 500


@dataclass(frozen=True, slots=True)
class MiddlewareContribution:
    """An ASGI middleware class plus its slot and constructor kwargs."""

    middleware_class: type[Any]
    priority: int = MiddlewareSlot.DEFAULT
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not MiddlewareSlot.REQUEST_IDENTITY <= self.priority <= MiddlewareSlot.LAST:
            msg = f"Middleware slot {self.priority} is outside 0..{int(MiddlewareSlot.LAST)}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class LifespanContribution:
    """A ``hook(app)`` async context manager factory and its stage.

    ``name`` only labels the hook in startup logs.
    """

    hook: Any
    priority: int = StartupStage.DEFAULT
    name: str = ""

    @property
    def label(self) -> str:
        return self.name or getattr(self.hook, "__qualname__", repr(self.hook))
