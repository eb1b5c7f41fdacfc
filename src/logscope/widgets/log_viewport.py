"""Textual widget hosting a LogViewport through the Line API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from textual.binding import Binding, BindingType
from textual.message import Message
from textual.strip import Strip
from textual.widget import Widget

from logscope.sink import GridSink
from logscope.viewport import LogViewport

if TYPE_CHECKING:
    from collections.abc import Iterable

    from textual import events
    from textual.geometry import Region

    from logscope.models import LogEvent


class LogViewportWidget(Widget, can_focus=True):
    """Draws the visible page of a LogViewport into a character grid each refresh."""

    DEFAULT_CSS = """
    LogViewportWidget {
        background: $surface;
        height: 1fr;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("pageup", "page_up", "Page Up", show=False),
        Binding("pagedown", "page_down", "Page Down", show=False),
        Binding("home", "scroll_home", "Top", show=False),
        Binding("end", "scroll_end", "Bottom", show=False),
        Binding("f", "toggle_follow", "Follow"),
        Binding("w", "toggle_wrap", "Wrap"),
    ]

    class Changed(Message):
        """Posted after events arrive or the view moves."""

        def __init__(self, viewport: LogViewport) -> None:
            super().__init__()
            self.viewport = viewport

    def __init__(self, viewport: LogViewport | None = None, **kwargs: Any) -> None:  # noqa: ANN401
        super().__init__(**kwargs)
        self.viewport = viewport or LogViewport()
        self._grid = GridSink(0, 0)

    def append_events(self, events: Iterable[LogEvent]) -> None:
        self.viewport.append_batch(events)
        self._changed()

    def _changed(self) -> None:
        self.refresh()
        self.post_message(self.Changed(self.viewport))

    # --- Rendering ---

    def render_lines(self, crop: Region) -> list[Strip]:
        width, height = self.size
        if (self._grid.width, self._grid.height) != (width, height):
            self._grid.resize(width, height)
        else:
            self._grid.clear()
        self.viewport.render(self._grid, width, height)
        return super().render_lines(crop)

    def render_line(self, y: int) -> Strip:
        if y >= self._grid.height:
            return Strip.blank(self.size.width, self.rich_style)
        return Strip(self._grid.segments(y), self._grid.width).apply_style(self.rich_style)

    # --- Input ---

    def on_mouse_scroll_down(self, _event: events.MouseScrollDown) -> None:
        self.viewport.scroll(3)
        self._changed()

    def on_mouse_scroll_up(self, _event: events.MouseScrollUp) -> None:
        self.viewport.set_following(False)
        self.viewport.scroll(-3)
        self._changed()

    def action_cursor_up(self) -> None:
        self.viewport.set_following(False)
        self.viewport.move_cursor(-1)
        self._changed()

    def action_cursor_down(self) -> None:
        self.viewport.move_cursor(1)
        self._changed()

    def action_page_up(self) -> None:
        self.viewport.set_following(False)
        self.viewport.page_up()
        self._changed()

    def action_page_down(self) -> None:
        self.viewport.page_down()
        self._changed()

    def action_scroll_home(self) -> None:
        self.viewport.set_following(False)
        self.viewport.scroll_to_top()
        self._changed()

    def action_scroll_end(self) -> None:
        self.viewport.set_following(True)
        self._changed()

    def action_toggle_follow(self) -> None:
        self.viewport.set_following(not self.viewport.following)
        self._changed()

    def action_toggle_wrap(self) -> None:
        self.viewport.set_wrap(not self.viewport.wrap)
        self._changed()
