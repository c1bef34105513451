"""Loading Scholaris plugins from installed distributions.

A plugin is any object published under one of the ``scholaris.*``
entry-point groups. The app factory decides what to do with each kind;
this module only finds and imports them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Collection

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Plugin:
    name: str
    value: Any


def load_plugins(group: str, *, skip: Collection[str] = ()) -> list[Plugin]:
    """Import every entry point of ``group`` except the names in ``skip``.

    Plugins come back sorted by name so that startup order does not depend
    on install order. A plugin whose import fails is logged and left out;
    the remaining ones still load.
    """
    plugins: list[Plugin] = []
    failed: list[str] = []
    for ep in sorted(entry_points(group=group), key=lambda ep: ep.name):
        if ep.name in skip:
            continue
        try:
            plugins.append(Plugin(name=ep.name, value=ep.load()))
        except Exception:
            logger.exception("plugin_load_failed", extra={"group": group, "plugin": ep.name})
            failed.append(ep.name)

    logger.info(
        "plugins_loaded",
        extra={
            "group": group,
            "plugins": [plugin.name for plugin in plugins],
            "failed": failed,
            "skipped": sorted(skip),
        },
    )
    return plugins
