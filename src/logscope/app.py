"""Textual application for logscope."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import timedelta
from typing import TYPE_CHECKING, ClassVar

from textual.app import App, ComposeResult
from textual.binding import Binding, BindingType
from textual.widgets import Footer, Input
from textual.worker import get_current_worker

from logscope.commands import CommandHistory, execute_command
from logscope.config import load_config, save_config
from logscope.errors import ConfigurationError
from logscope.histogram import VelocityHistogram
from logscope.reader import read_events_async
from logscope.search import SearchSession
from logscope.viewport import LogViewport
from logscope.widgets.command_input import CommandInput
from logscope.widgets.details_screen import DetailsScreen, event_details
from logscope.widgets.log_viewport import LogViewportWidget
from logscope.widgets.status_bar import StatusBar
from logscope.widgets.velocity_view import VelocityView

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path

    from logscope.models import LogEvent, ViewportConfig

logger = logging.getLogger(__name__)


class LogScopeApp(App[None]):
    """Streaming log viewer: viewport, event-rate sparkline and a command line."""

    ENABLE_COMMAND_PALETTE = False

    CSS = """
    #command {
        height: 1;
        border: none;
        padding: 0 1;
        display: none;
    }
    #command.active {
        display: block;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("slash", "open_command('/')", "Search"),
        Binding("colon", "open_command(':')", "Go to", show=False),
        Binding("n", "search_next", "Next", show=False),
        Binding("enter", "show_details", "Details"),
        Binding("escape", "close_command", "Close", show=False),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        file_path: Path,
        *,
        config: ViewportConfig | None = None,
        tail: bool = False,
        anchor: datetime | None = None,
    ) -> None:
        super().__init__()
        self._file_path = file_path
        self._tail = tail
        self._config = config or load_config()
        self._viewport = LogViewport(self._config)
        self._session = SearchSession()
        self._history = CommandHistory()
        self.details_generator: Callable[[LogEvent], str] = event_details
        self._histogram = VelocityHistogram(
            timedelta(seconds=self._config.histogram_bucket_seconds),
            window=self._config.histogram_window,
        )
        if anchor is not None:
            self._histogram.set_anchor(anchor)

    def compose(self) -> ComposeResult:
        yield LogViewportWidget(self._viewport, id="log-view")
        yield VelocityView(self._histogram, id="velocity")
        yield StatusBar(source=self._file_path.name, id="status-bar")
        yield CommandInput(self._history, id="command")
        yield Footer()

    def on_mount(self) -> None:
        self.run_worker(
            self._read_worker(),
            exclusive=True,
        )
        self.query_one("#log-view", LogViewportWidget).focus()
        self._update_status_bar()

    async def _read_worker(self) -> None:
        """Consume the async reader and feed each chunk to the viewport and histogram."""
        log_view = self.query_one("#log-view", LogViewportWidget)
        velocity = self.query_one("#velocity", VelocityView)
        status_bar = self.query_one("#status-bar", StatusBar)
        worker = get_current_worker()
        async for chunk in read_events_async(self._file_path, tail=self._tail):
            if worker.is_cancelled:
                break
            self._ingest(chunk)
            log_view.append_events(chunk)
            velocity.refresh_buckets()
            status_bar.add_levels(Counter(event.level for event in chunk))

    def _ingest(self, chunk: list[LogEvent]) -> None:
        for event in chunk:
            self._histogram.append_event(event)

    def _update_status_bar(self) -> None:
        status_bar = self.query_one("#status-bar", StatusBar)
        status_bar.update_counts(self._viewport.total_events, self._viewport.event_count)
        status_bar.set_modes(following=self._viewport.following, wrap=self._viewport.wrap)

    def on_log_viewport_widget_changed(self, _event: LogViewportWidget.Changed) -> None:
        self._update_status_bar()
        if self._viewport.wrap != self._config.wrap:
            self._config = self._config.model_copy(update={"wrap": self._viewport.wrap})
            self._save_wrap(self._viewport.wrap)

    def _save_wrap(self, wrap: bool) -> None:  # noqa: FBT001
        """Persist the wrap toggle, leaving the rest of the saved config as it is."""
        saved = load_config()
        try:
            save_config(saved.model_copy(update={"wrap": wrap}))
        except OSError as e:
            logger.warning("Could not save config: %s", e)

    # --- Event details ---

    @property
    def command_history(self) -> list[str]:
        return self._history.entries

    def set_details_generator(self, generator: Callable[[LogEvent], str]) -> None:
        self.details_generator = generator

    def action_show_details(self) -> None:
        event = self._viewport.current_event()
        if event is None:
            self.notify("No event selected")
            return
        self.push_screen(DetailsScreen(self.details_generator(event)))

    # --- Command line ---

    def action_open_command(self, prefix: str) -> None:
        command = self.query_one("#command", Input)
        command.add_class("active")
        command.value = prefix
        command.cursor_position = len(prefix)
        command.focus()

    def action_close_command(self) -> None:
        command = self.query_one("#command", Input)
        command.remove_class("active")
        command.value = ""
        self.query_one("#log-view", LogViewportWidget).focus()

    def action_search_next(self) -> None:
        self._run_command("/")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "command":
            return
        value = event.value
        self._history.add(value)
        self.action_close_command()
        self._run_command(value)

    def _run_command(self, text: str) -> None:
        try:
            outcome = execute_command(self._viewport, self._session, text)
        except ConfigurationError as e:
            self.notify(str(e), severity="error")
            return
        if outcome.quit:
            self.exit()
            return
        self.query_one("#status-bar", StatusBar).set_message(outcome.status)
        self.query_one("#log-view", LogViewportWidget).refresh()
        self._update_status_bar()
