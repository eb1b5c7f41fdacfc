"""The log viewport: public entry point tying the store, highlighting, scrolling and search together."""

from __future__ import annotations

import bisect
import logging
import threading
from datetime import datetime
from typing import TYPE_CHECKING

from rich.style import Style

from logscope.colors import CURSOR_STYLE, SOURCE_STYLE, TIMESTAMP_STYLE
from logscope.errors import ConfigurationError
from logscope.highlight import Highlighter
from logscope.search import find_matching_event, find_total_matches
from logscope.store import NO_LINE, EventStore, RenderLine

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from logscope.models import LogEvent, ViewportConfig
    from logscope.search import EventPredicate, SearchResult, SearchSession
    from logscope.sink import CellSink

logger = logging.getLogger(__name__)

# Widest value most strftime fields produce, used to size the timestamp column
_REFERENCE_TIME = datetime(2000, 12, 28, 23, 59, 59, 999999)  # noqa: DTZ001

_Anchor = tuple[str, int] | None


class LogViewport:
    """A scrollable, wrapped, highlighted window onto a stream of log events.

    Every public method takes the viewport lock, so events may be appended
    from a producer thread while another thread renders.
    """

    def __init__(self, config: ViewportConfig | None = None) -> None:
        self._lock = threading.RLock()
        self._highlighter = Highlighter()
        self._store = EventStore(self._highlighter)
        self.page_width: int = 0
        self.page_height: int = 0
        self._top: int = NO_LINE
        self._cursor: int = NO_LINE
        self._following: bool = True
        self._show_timestamp: bool = False
        self._show_source: bool = False
        self._source_width: int = 12
        self._timestamp_format: str = "%H:%M:%S"
        self._highlight_current_event: bool = False
        self._event_limit: int = 0
        if config is not None:
            self.apply_config(config)

    # --- State ---

    @property
    def store(self) -> EventStore:
        return self._store

    @property
    def highlighter(self) -> Highlighter:
        return self._highlighter

    @property
    def following(self) -> bool:
        return self._following

    @property
    def wrap(self) -> bool:
        return self._store.wrap

    @property
    def event_count(self) -> int:
        """Number of render lines (rows) held."""
        with self._lock:
            return self._store.event_count

    @property
    def total_events(self) -> int:
        with self._lock:
            return self._store.total_events

    @property
    def top_line(self) -> RenderLine | None:
        with self._lock:
            return None if self._top == NO_LINE else self._store.line(self._top)

    @property
    def prefix_width(self) -> int:
        """Width of the timestamp/source columns drawn before each message."""
        width = 0
        if self._show_timestamp:
            width += len(_REFERENCE_TIME.strftime(self._timestamp_format)) + 1
        if self._show_source:
            width += self._source_width + 1
        return width

    def visible_lines(self) -> list[RenderLine]:
        """Lines currently on the page, top to bottom."""
        with self._lock:
            if self._top == NO_LINE:
                return []
            lines: list[RenderLine] = []
            for _, line in self._store.iter_lines(self._top):
                if len(lines) >= self.page_height:
                    break
                lines.append(line)
            return lines

    def current_event(self) -> LogEvent | None:
        """Event under the cursor, or None when the viewport is empty."""
        with self._lock:
            if self._cursor == NO_LINE:
                return None
            return self._store.line(self._cursor).event

    # --- Ingestion ---

    def append(self, event: LogEvent) -> None:
        """Append one event. Prefer ``append_batch`` for many events."""
        with self._lock:
            self._append(event)
            self._enforce_limit()

    def append_batch(self, events: Iterable[LogEvent]) -> None:
        """Append several events under a single lock acquisition."""
        with self._lock:
            for event in events:
                self._append(event)
            self._enforce_limit()

    def reset(self) -> None:
        """Remove every event."""
        with self._lock:
            self._store.reset()
            self._top = NO_LINE
            self._cursor = NO_LINE

    def _append(self, event: LogEvent) -> None:
        produced = self._store.append(event)
        if self._top == NO_LINE:
            self._top = self._store.first
            self._cursor = self._store.first
        overflow = self._store.event_count - self.page_height
        if self._following and overflow > 0:
            self._top = self._store.at_offset(self._top, min(produced, overflow))
        if self._following:
            self._cursor = self._store.head(self._store.last)

    def _enforce_limit(self) -> None:
        excess = self._store.total_events - self._event_limit
        if self._event_limit > 0 and excess > 0:
            self._restructure(lambda: self._store.evict_oldest(excess))

    # --- Geometry ---

    def resize(self, width: int, height: int) -> None:
        """Adopt a new page size, rewrapping when the width changes."""
        with self._lock:
            self._resize(width, height)

    def _resize(self, width: int, height: int) -> None:
        width, height = max(0, width), max(0, height)
        width_changed = width != self.page_width
        height_changed = height != self.page_height
        self.page_width, self.page_height = width, height
        if width == 0 or height == 0 or not (width_changed or height_changed):
            return
        if width_changed or self._store.wrap:
            self._rewrap()
        if self._following:
            self._scroll_to_end()

    def _content_width(self) -> int:
        return max(0, self.page_width - self.prefix_width)

    def _rewrap(self) -> None:
        if self.page_width == 0 and self._store.wrap:
            # no width known yet; the next positive resize rewraps
            return

        def rewrap() -> None:
            self._store.wrap_width = self._content_width()
            self._store.rewrap_all()

        self._restructure(rewrap)

    def _restructure(self, operation: Callable[[], object]) -> None:
        """Run a structural store change, keeping top and cursor on the same event rows."""
        top_anchor = self._anchor(self._top)
        cursor_anchor = self._anchor(self._cursor)
        operation()
        self._top = self._resolve(top_anchor)
        self._cursor = self._resolve(cursor_anchor)

    def _anchor(self, slot: int) -> _Anchor:
        if slot == NO_LINE:
            return None
        line = self._store.line(slot)
        return line.event.id, line.order

    def _resolve(self, anchor: _Anchor) -> int:
        if anchor is None:
            return self._store.first
        slot = self._store.locate(*anchor)
        return self._store.first if slot == NO_LINE else slot

    # --- Scrolling ---

    def scroll_to_top(self) -> None:
        with self._lock:
            self._top = self._store.first
            self._cursor = self._store.first

    def scroll_to_bottom(self) -> None:
        """Show the last line at the bottom of the page. Does not change follow mode."""
        with self._lock:
            self._scroll_to_end()

    def _scroll_to_end(self) -> None:
        if self._store.is_empty:
            return
        self._top = self._bottom_top()
        self._cursor = self._store.head(self._store.last)

    def _bottom_top(self) -> int:
        """Top line that puts the last line on the bottom row."""
        return self._store.at_offset(self._store.last, -(max(1, self.page_height) - 1))

    def _clamp_top(self) -> None:
        """Pull the top line back if the page would extend past the last line."""
        if self._top == NO_LINE:
            return
        end = self._store.at_offset(self._top, max(1, self.page_height) - 1)
        if end == self._store.last:
            self._top = self._bottom_top()

    def set_following(self, follow: bool) -> None:  # noqa: FBT001
        """Enable or disable tail-like following. Enabling jumps to the last line."""
        with self._lock:
            self._following = follow
            if follow:
                self._scroll_to_end()

    def scroll(self, offset: int) -> None:
        """Move the page by ``offset`` rows, clamped to the first and last lines."""
        with self._lock:
            if self._top == NO_LINE:
                return
            self._top = self._store.at_offset(self._top, offset)
            if offset > 0:
                self._clamp_top()

    def page_down(self) -> None:
        with self._lock:
            self.scroll(max(1, self.page_height))
            if self._top != NO_LINE:
                self._cursor = self._store.head(self._top)

    def page_up(self) -> None:
        with self._lock:
            self.scroll(-max(1, self.page_height))
            if self._top != NO_LINE:
                self._cursor = self._store.head(self._top)

    def move_cursor(self, offset: int) -> None:
        """Move the cursor by ``offset`` events and scroll it into view."""
        with self._lock:
            if self._cursor == NO_LINE:
                return
            slot = self._store.head(self._cursor)
            for _ in range(abs(offset)):
                if offset > 0:
                    *_, tail = self._store.group_slots(slot)
                    following = self._store.line(tail).next
                else:
                    previous = self._store.line(slot).previous
                    following = NO_LINE if previous == NO_LINE else self._store.head(previous)
                if following == NO_LINE:
                    break
                slot = following
            self._cursor = slot
            self._scroll_into_view(slot)

    def _scroll_into_view(self, slot: int) -> None:
        for row, (candidate, _) in enumerate(self._store.iter_lines(self._top)):
            if row >= self.page_height:
                break
            if candidate == slot:
                return
        if self._store.position(slot) < self._store.position(self._top):
            self._top = slot
        else:
            self._top = self._store.at_offset(slot, -(max(1, self.page_height) - 1))

    # --- Search ---

    def find_total_matches(self, predicate: EventPredicate) -> int:
        """Count distinct events matching ``predicate``."""
        with self._lock:
            return find_total_matches(self._store, predicate)

    def find_matching_event(self, last_hit_id: str, predicate: EventPredicate) -> LogEvent | None:
        """Next event after ``last_hit_id`` matching ``predicate``, wrapping around."""
        with self._lock:
            return find_matching_event(self._store, last_hit_id, predicate)

    def scroll_to_event_id(self, event_id: str) -> bool:
        """Put the first line of an event at the top of the page and select it.

        Near the end of the log the page is kept full, so the event may sit
        lower on the page. Returns False if the event is unknown.
        """
        with self._lock:
            slot = self._store.head_of(event_id)
            if slot == NO_LINE:
                return False
            self._top = slot
            self._cursor = slot
            self._clamp_top()
            return True

    def search(
        self,
        session: SearchSession,
        text: str,
        *,
        case_sensitive: bool = True,
        is_regex: bool = False,
    ) -> SearchResult:
        """Advance a search session and scroll to its hit, if any."""
        with self._lock:
            result = session.search(self._store, text, case_sensitive=case_sensitive, is_regex=is_regex)
            if result.event is not None:
                self.scroll_to_event_id(result.event.id)
            return result

    # --- Highlight configuration ---

    def set_highlight_pattern(self, pattern: str | None, *, colors_from_group_names: bool = False) -> None:
        """Set the highlight regex (None disables it).

        Only events appended afterwards are affected; call
        ``invalidate_highlights`` to recolorize existing ones. An invalid
        pattern raises ``ConfigurationError`` and keeps the previous one.
        """
        with self._lock:
            try:
                self._highlighter.set_pattern(pattern, colors_from_group_names=colors_from_group_names)
            except ConfigurationError as e:
                logger.warning("Rejected highlight pattern: %s", e)
                raise

    def set_highlight_color(self, group: str, fg: str | None, bg: str | None) -> None:
        with self._lock:
            self._highlighter.set_group_color(group, fg, bg)

    def set_highlight_color_fg(self, group: str, fg: str) -> None:
        with self._lock:
            self._highlighter.update_group_color(group, fg=fg)

    def set_highlight_color_bg(self, group: str, bg: str) -> None:
        with self._lock:
            self._highlighter.update_group_color(group, bg=bg)

    def set_highlighting(self, enabled: bool) -> None:  # noqa: FBT001
        with self._lock:
            self._highlighter.enabled = enabled

    def set_level_highlighting(self, enabled: bool) -> None:  # noqa: FBT001
        with self._lock:
            self._highlighter.level_highlighting = enabled

    def set_warning_color(self, color: str) -> None:
        with self._lock:
            self._highlighter.set_level_colors(warning=color)

    def set_error_color(self, color: str) -> None:
        with self._lock:
            self._highlighter.set_level_colors(error=color)

    def set_highlight_current_event(self, enabled: bool) -> None:  # noqa: FBT001
        with self._lock:
            self._highlight_current_event = enabled

    def invalidate_highlights(self) -> None:
        """Recolorize every event with the current settings.

        Expensive: unwraps, colorizes and rewraps the whole store.
        """
        with self._lock:
            self._restructure(self._store.recolorize_all)

    # --- Layout configuration ---

    def set_wrap(self, enabled: bool) -> None:  # noqa: FBT001
        with self._lock:
            if enabled == self._store.wrap:
                return
            self._store.wrap = enabled
            self._rewrap()

    def set_show_timestamp(self, show: bool) -> None:  # noqa: FBT001
        with self._lock:
            self._show_timestamp = show
            self._rewrap()

    def set_show_source(self, show: bool, width: int | None = None) -> None:  # noqa: FBT001
        with self._lock:
            self._show_source = show
            if width is not None:
                self._source_width = max(0, width)
            self._rewrap()

    def set_timestamp_format(self, fmt: str) -> None:
        with self._lock:
            self._timestamp_format = fmt
            self._rewrap()

    def set_event_limit(self, limit: int) -> None:
        """Keep at most ``limit`` events, dropping the oldest. 0 means unlimited."""
        with self._lock:
            self._event_limit = max(0, limit)
            self._enforce_limit()

    def apply_config(self, config: ViewportConfig) -> None:
        """Apply a full configuration and recolorize existing events.

        An invalid pattern or color raises ``ConfigurationError`` before
        anything changes, keeping the previous configuration active.
        """
        with self._lock:
            try:
                self._highlighter.configure(config)
            except ConfigurationError as e:
                logger.warning("Rejected configuration: %s", e)
                raise
            self._show_timestamp = config.show_timestamp
            self._show_source = config.show_source
            self._source_width = config.source_width
            self._timestamp_format = config.timestamp_format
            self._store.wrap = config.wrap
            self._highlight_current_event = config.highlight_current_event
            self._event_limit = config.event_limit
            self._restructure(self._store.recolorize_all)
            self._rewrap()
            self._enforce_limit()
            self.set_following(config.following)

    # --- Rendering ---

    def render(self, sink: CellSink, width: int, height: int, *, x: int = 0, y: int = 0) -> int:
        """Draw the visible page into ``sink``. Returns the number of rows drawn.

        Only cells covered by text are written; the sink is expected to be
        cleared beforehand.
        """
        with self._lock:
            self._resize(width, height)
            if self.page_width == 0 or self.page_height == 0 or self._top == NO_LINE:
                return 0
            cursor_event = self._store.line(self._cursor).event if self._highlight_current_event else None
            rows = 0
            for _, line in self._store.iter_lines(self._top):
                if rows >= self.page_height:
                    break
                overlay = CURSOR_STYLE if cursor_event is not None and line.event is cursor_event else None
                self._draw_line(sink, x, y + rows, line, overlay)
                rows += 1
            return rows

    def _draw_line(self, sink: CellSink, x: int, y: int, line: RenderLine, overlay: Style | None) -> None:
        limit = x + self.page_width
        column = x
        event_style = self._highlighter.event_style(line.event.level)

        for text, style in self._prefix(line):
            cell_style = event_style + style
            if overlay is not None:
                cell_style += overlay
            for char in text:
                if column >= limit:
                    return
                sink.set_cell(column, y, cell_style, char)
                column += 1

        spans = line.spans
        if not spans:
            return
        message = line.event.message
        index = max(0, bisect.bisect_right([span.start for span in spans], line.start) - 1)
        for pos in range(line.start, line.end):
            if column >= limit:
                break
            while pos >= spans[index].end and index < len(spans) - 1:
                index += 1
            style = spans[index].style if overlay is None else spans[index].style + overlay
            sink.set_cell(column, y, style, message[pos])
            column += 1

    def _prefix(self, line: RenderLine) -> list[tuple[str, Style]]:
        """Timestamp/source columns for a row; continuation rows get blank padding."""
        if not (self._show_timestamp or self._show_source):
            return []
        if not line.is_head:
            return [(" " * self.prefix_width, Style())]
        parts: list[tuple[str, Style]] = []
        if self._show_timestamp:
            width = len(_REFERENCE_TIME.strftime(self._timestamp_format))
            stamp = line.event.timestamp.strftime(self._timestamp_format)
            parts.append((f"{stamp[:width]:<{width}} ", TIMESTAMP_STYLE))
        if self._show_source:
            width = self._source_width
            parts.append((f"{line.event.source[:width]:<{width}} ", SOURCE_STYLE))
        return parts
