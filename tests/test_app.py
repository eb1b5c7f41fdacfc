"""Tests for the Textual host."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from logscope.app import LogScopeApp
from logscope.config import load_config
from logscope.models import LogEvent, LogLevel, ViewportConfig
from logscope.widgets.command_input import CommandInput
from logscope.widgets.details_screen import DetailsScreen, event_details
from logscope.widgets.log_viewport import LogViewportWidget
from logscope.widgets.status_bar import _format_count
from logscope.widgets.velocity_view import VelocityView

if TYPE_CHECKING:
    from pathlib import Path


class TestFormatCount:
    @pytest.mark.parametrize(
        ("count", "text"),
        [
            (0, "0"),
            (999, "999"),
            (1234, "1,234"),
            (12_345, "12K"),
            (1_234_567, "1.2M"),
        ],
    )
    def test_format(self, count: int, text: str) -> None:
        assert _format_count(count) == text


class TestLogScopeApp:
    @pytest.mark.asyncio
    async def test_loads_file_into_viewport(self, sample_log_file: Path, config_dir: Path) -> None:
        app = LogScopeApp(sample_log_file, config=ViewportConfig())
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            await pilot.pause()
            widget = app.query_one(LogViewportWidget)
            assert widget.viewport.total_events == 8
            assert widget.viewport.following
            assert len(app.query_one(VelocityView).data) == 60

    @pytest.mark.asyncio
    async def test_toggle_wrap_and_follow(self, sample_log_file: Path, config_dir: Path) -> None:
        app = LogScopeApp(sample_log_file, config=ViewportConfig())
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            widget = app.query_one(LogViewportWidget)
            await pilot.press("w")
            assert not widget.viewport.wrap
            await pilot.press("f")
            assert not widget.viewport.following
            await pilot.press("end")
            assert widget.viewport.following

    @pytest.mark.asyncio
    async def test_wrap_toggle_is_saved(self, sample_log_file: Path, config_dir: Path) -> None:
        app = LogScopeApp(sample_log_file, config=ViewportConfig())
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            await pilot.press("w")
            await pilot.pause()
        assert (config_dir / "config.toml").exists()
        assert not load_config().wrap


class TestEventDetails:
    def test_default_text(self) -> None:
        event = LogEvent.create(
            "api.log:3",
            "disk full",
            source="api.log",
            timestamp=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
            level=LogLevel.ERROR,
        )
        assert event_details(event).splitlines() == [
            "Message  : disk full",
            "Timestamp: 2024-01-15T10:30:00+00:00",
            "ID       : api.log:3",
            "Level    : error",
            "Source   : api.log",
        ]

    @pytest.mark.asyncio
    async def test_enter_opens_details_for_current_event(self, sample_log_file: Path, config_dir: Path) -> None:
        app = LogScopeApp(sample_log_file, config=ViewportConfig())
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            await pilot.pause()
            await pilot.press("enter")
            await pilot.pause()
            screen = app.screen
            assert isinstance(screen, DetailsScreen)
            assert "ID       : test.log:8" in screen.text
            await pilot.press("escape")
            await pilot.pause()
            assert not isinstance(app.screen, DetailsScreen)

    @pytest.mark.asyncio
    async def test_custom_details_generator(self, sample_log_file: Path, config_dir: Path) -> None:
        app = LogScopeApp(sample_log_file, config=ViewportConfig())
        app.set_details_generator(lambda event: f"custom {event.id}")
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            await pilot.pause()
            await pilot.press("enter")
            await pilot.pause()
            screen = app.screen
            assert isinstance(screen, DetailsScreen)
            assert screen.text == "custom test.log:8"


class TestCommandLine:
    @pytest.mark.asyncio
    async def test_submitted_commands_are_recalled_with_up(self, sample_log_file: Path, config_dir: Path) -> None:
        app = LogScopeApp(sample_log_file, config=ViewportConfig())
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            command = app.query_one("#command", CommandInput)
            for text in ("/ERROR", ":top"):
                await pilot.press("slash")
                command.value = text
                await pilot.press("enter")
                await pilot.pause()
            assert app.command_history == ["/ERROR", ":top"]
            await pilot.press("slash")
            await pilot.press("up")
            assert command.value == ":top"
            await pilot.press("up")
            assert command.value == "/ERROR"
            await pilot.press("down")
            assert command.value == ":top"
