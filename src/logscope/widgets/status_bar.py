"""Bottom status bar."""

from __future__ import annotations

from rich.style import Style
from rich.text import Text
from textual.widget import Widget

from logscope.colors import level_marker_color
from logscope.models import LogLevel

_MILLION = 1_000_000
_TEN_THOUSAND = 10_000
_THOUSAND = 1_000


def _format_count(n: int) -> str:
    """Format an event count compactly: 1234 -> '1,234', 1234567 -> '1.2M'."""
    if n >= _MILLION:
        return f"{n / _MILLION:.1f}M"
    if n >= _TEN_THOUSAND:
        return f"{n / _THOUSAND:.0f}K"
    return f"{n:,}"


class StatusBar(Widget):
    """Bottom status bar showing event counts, follow/wrap state and the last command status."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        background: $primary;
        color: $text;
        padding: 0 1;
    }
    """

    def __init__(self, source: str = "", id: str | None = None) -> None:  # noqa: A002
        super().__init__(id=id)
        self._source = source
        self._events: int = 0
        self._lines: int = 0
        self._following: bool = True
        self._wrap: bool = True
        self._level_counts: dict[LogLevel, int] = {}
        self._message: str = ""

    def update_counts(self, events: int, lines: int) -> None:
        self._events = events
        self._lines = lines
        self.refresh()

    def add_levels(self, counts: dict[LogLevel, int]) -> None:
        """Accumulate per-level event counts."""
        for level, count in counts.items():
            self._level_counts[level] = self._level_counts.get(level, 0) + count
        self.refresh()

    def set_modes(self, *, following: bool, wrap: bool) -> None:
        self._following = following
        self._wrap = wrap
        self.refresh()

    def set_message(self, message: str) -> None:
        self._message = message
        self.refresh()

    def render(self) -> Text:
        text = Text()

        if self._following:
            text.append(" FOLLOW ", style="bold reverse")
            text.append(" ")
        if self._wrap:
            text.append("WRAP ", style="italic")

        text.append(f"{_format_count(self._events)} events")
        if self._lines != self._events:
            text.append(f" / {_format_count(self._lines)} rows")

        for level in (LogLevel.ERROR, LogLevel.WARNING):
            count = self._level_counts.get(level, 0)
            if count:
                style = Style(color=level_marker_color(level.value), bold=True)
                text.append(f"  {level.value[0].upper()}:{_format_count(count)}", style=style)

        if self._message:
            text.append(f"  {self._message}", style="bold italic")

        if self._source:
            used = len(text.plain)
            padding = max(1, self.size.width - used - len(self._source))
            text.append(" " * padding)
            text.append(self._source)

        return text
