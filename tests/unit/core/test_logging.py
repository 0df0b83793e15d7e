"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog
from structlog.testing import capture_logs

from monster_forge.core import logging as forge_logging
from monster_forge.core.config import Settings
from monster_forge.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    unbind_context,
)


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """Restore structlog defaults and the root logger after a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    clear_context()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_lines(
        self, restore_logging: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test JSON output carries the event, level and app name."""
        configure_logging(level="INFO", json_format=True)
        get_logger("monster_forge.test").info("Derived creature", creature="Goblin")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "Derived creature"
        assert record["creature"] == "Goblin"
        assert record["level"] == "info"
        assert record["app"] == "monster_forge"

    def test_level_filters(
        self, restore_logging: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test events below the level are dropped."""
        configure_logging(level="WARNING", json_format=True)
        get_logger("monster_forge.test").info("Applying directive", directive="walk")

        assert capsys.readouterr().err == ""


class TestConfigureFromSettings:
    """Tests for configure_logging_from_settings."""

    def test_uses_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test level and format come from the settings."""
        calls: list[dict[str, object]] = []
        monkeypatch.setattr(forge_logging, "configure_logging", lambda **kw: calls.append(kw))

        configure_logging_from_settings(Settings(log_level="WARNING", log_json=True))

        assert calls == [{"level": "WARNING", "json_format": True}]

    def test_debug_forces_debug_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test debug mode logs everything."""
        calls: list[dict[str, object]] = []
        monkeypatch.setattr(forge_logging, "configure_logging", lambda **kw: calls.append(kw))

        configure_logging_from_settings(Settings(debug=True, log_level="ERROR"))

        assert calls[0]["level"] == "DEBUG"


class TestContext:
    """Tests for context binding."""

    def test_bind_and_unbind(self, restore_logging: None) -> None:
        """Test context variables are bound and removed by key."""
        bind_context(creature="Goblin", reference="goblin")
        unbind_context("reference")

        assert structlog.contextvars.get_contextvars() == {"creature": "Goblin"}

    def test_clear(self, restore_logging: None) -> None:
        """Test clearing removes everything."""
        bind_context(creature="Goblin")
        clear_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_events_are_captured(self) -> None:
        """Test loggers emit structured events."""
        with capture_logs() as logs:
            get_logger("monster_forge.test").warning("Challenge rating not as expected")

        assert logs == [{"event": "Challenge rating not as expected", "log_level": "warning"}]
