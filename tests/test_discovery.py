"""Unit tests for scholaris.foundation.application.discovery."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

from scholaris.foundation.application.discovery import Plugin, load_plugins

ENTRY_POINTS = "scholaris.foundation.application.discovery.entry_points"


def _entry_point(name: str, value: object = None, *, error: Exception | None = None) -> MagicMock:
    ep = MagicMock()
    ep.name = name
    if error is not None:
        ep.load.side_effect = error
    else:
        ep.load.return_value = value
    return ep


class TestLoadPlugins:
    @pytest.mark.unit
    def test_unknown_group_loads_nothing(self) -> None:
        assert load_plugins("scholaris.nonexistent.group.for.testing") == []

    @pytest.mark.unit
    def test_sorted_by_name(self) -> None:
        eps = [_entry_point("zeta", 1), _entry_point("alpha", 2)]
        with patch(ENTRY_POINTS, return_value=eps):
            result = load_plugins("scholaris.routers")
        assert result == [Plugin("alpha", 2), Plugin("zeta", 1)]

    @pytest.mark.unit
    def test_skipped_names_are_not_imported(self) -> None:
        skipped = _entry_point("persistence", 1)
        eps = [skipped, _entry_point("observability", 2)]
        with patch(ENTRY_POINTS, return_value=eps):
            result = load_plugins("scholaris.lifespan", skip={"persistence"})
        assert [p.name for p in result] == ["observability"]
        skipped.load.assert_not_called()

    @pytest.mark.unit
    def test_broken_plugin_is_logged_and_left_out(self, caplog: pytest.LogCaptureFixture) -> None:
        eps = [_entry_point("broken", error=ImportError("nope")), _entry_point("ok", 3)]
        with caplog.at_level(logging.INFO), patch(ENTRY_POINTS, return_value=eps):
            result = load_plugins("scholaris.lifespan")

        assert [p.name for p in result] == ["ok"]
        failure = next(r for r in caplog.records if r.getMessage() == "plugin_load_failed")
        assert failure.plugin == "broken"
        assert failure.exc_info is not None
        summary = next(r for r in caplog.records if r.getMessage() == "plugins_loaded")
        assert summary.plugins == ["ok"]
        assert summary.failed == ["broken"]
