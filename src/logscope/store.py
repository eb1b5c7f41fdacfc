"""Event store: the ordered, wrapped sequence of render lines.

Render lines live in an index-stable arena (a slot list plus a free list) and
are chained with integer ``previous``/``next`` links, so inserting or splicing
out a wrapped group never moves other lines. An event occupies one line with
``order == 0`` while unwrapped, or a contiguous group of lines with orders
``1..line_count`` once wrapped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from logscope.errors import InvariantViolation
from logscope.highlight import Highlighter

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from logscope.models import LogEvent, StyleSpan

logger = logging.getLogger(__name__)

NO_LINE = -1


class RenderLine:
    """One drawable row: a slice of an event message plus its wrap position."""

    __slots__ = ("end", "event", "line_count", "next", "order", "previous", "sequence", "spans", "start")

    def __init__(self, event: LogEvent, sequence: int, start: int, end: int) -> None:
        self.event = event
        self.sequence = sequence
        # [start, end) slice of event.message drawn on this row
        self.start = start
        self.end = end
        # 0: not wrapped; 1..line_count: position within the wrapped group
        self.order = 0
        # only meaningful on the group head
        self.line_count = 1
        # shared by every line of the group, computed on the head only
        self.spans: list[StyleSpan] = []
        self.previous = NO_LINE
        self.next = NO_LINE

    @property
    def text(self) -> str:
        return self.event.message[self.start : self.end]

    @property
    def is_head(self) -> bool:
        return self.order <= 1

    def __repr__(self) -> str:
        return f"RenderLine(id={self.event.id!r}, order={self.order}, slice=[{self.start}, {self.end}))"


class EventStore:
    """Owns render lines and keeps them colorized and wrapped to ``wrap_width``."""

    def __init__(self, highlighter: Highlighter | None = None) -> None:
        self.highlighter = highlighter or Highlighter()
        self.wrap: bool = True
        self.wrap_width: int = 0
        self.first: int = NO_LINE
        self.last: int = NO_LINE
        self._slots: list[RenderLine | None] = []
        self._free: list[int] = []
        self._heads: dict[str, int] = {}
        self._line_total: int = 0
        self._event_total: int = 0
        self._next_sequence: int = 1

    @property
    def event_count(self) -> int:
        """Number of render lines reachable from ``first`` (wrapped events count once per row)."""
        return self._line_total

    @property
    def total_events(self) -> int:
        """Number of distinct events held."""
        return self._event_total

    @property
    def is_empty(self) -> bool:
        return self.first == NO_LINE

    def line(self, slot: int) -> RenderLine:
        """Get the render line stored in an arena slot."""
        line = self._slots[slot] if 0 <= slot < len(self._slots) else None
        if line is None:
            msg = f"Render line slot {slot} is not in use"
            raise InvariantViolation(msg)
        return line

    # --- Arena and list primitives ---

    def _allocate(self, line: RenderLine) -> int:
        if self._free:
            slot = self._free.pop()
            self._slots[slot] = line
        else:
            slot = len(self._slots)
            self._slots.append(line)
        return slot

    def _insert_after(self, slot: int, new_slot: int) -> int:
        """Link ``new_slot`` after ``slot`` (or as the only line when ``slot`` is NO_LINE)."""
        new = self.line(new_slot)
        if slot == NO_LINE:
            new.previous = NO_LINE
            new.next = self.first
            if self.first != NO_LINE:
                self.line(self.first).previous = new_slot
            self.first = new_slot
            if self.last == NO_LINE:
                self.last = new_slot
        else:
            node = self.line(slot)
            new.previous = slot
            new.next = node.next
            if node.next != NO_LINE:
                self.line(node.next).previous = new_slot
            node.next = new_slot
            if self.last == slot:
                self.last = new_slot
        self._line_total += 1
        return new_slot

    def _unlink(self, slot: int) -> None:
        """Splice a line out of the list and return its slot to the free list."""
        line = self.line(slot)
        if line.previous != NO_LINE:
            self.line(line.previous).next = line.next
        else:
            self.first = line.next
        if line.next != NO_LINE:
            self.line(line.next).previous = line.previous
        else:
            self.last = line.previous
        self._slots[slot] = None
        self._free.append(slot)
        self._line_total -= 1

    # --- Ingestion ---

    def append(self, event: LogEvent) -> int:
        """Append an event at the tail, colorize and wrap it. Returns the number of lines produced."""
        line = RenderLine(event, self._next_sequence, 0, len(event.message))
        self._next_sequence += 1
        slot = self._insert_after(self.last, self._allocate(line))
        self._heads[event.id] = slot
        self._event_total += 1

        self.colorize(slot)
        self.calculate_wrap(slot)
        return line.line_count

    def append_batch(self, events: Iterable[LogEvent]) -> int:
        """Append several events. Returns the total number of lines produced."""
        return sum(self.append(event) for event in events)

    def reset(self) -> None:
        """Drop every event and line."""
        self.first = NO_LINE
        self.last = NO_LINE
        self._slots.clear()
        self._free.clear()
        self._heads.clear()
        self._line_total = 0
        self._event_total = 0

    def evict_oldest(self, count: int) -> int:
        """Remove the ``count`` oldest events (with all their wrap lines). Returns lines removed."""
        removed = 0
        for _ in range(count):
            if self.first == NO_LINE:
                break
            head_slot = self.first
            event_id = self.line(head_slot).event.id
            for slot in list(self.group_slots(head_slot)):
                self._unlink(slot)
                removed += 1
            if self._heads.get(event_id) == head_slot:
                del self._heads[event_id]
            self._event_total -= 1
        if removed:
            logger.debug("Evicted %d lines, %d events remain", removed, self._event_total)
        return removed

    # --- Colorizing ---

    def colorize(self, slot: int) -> None:
        """Compute style spans for an unwrapped line."""
        line = self.line(slot)
        if line.order != 0:
            msg = f"Cannot colorize wrapped line {line!r}"
            raise InvariantViolation(msg)
        line.spans = self.highlighter.spans_for(line.event)

    def recolorize_all(self) -> None:
        """Recompute spans for every event, then rewrap.

        Expensive: touches every line twice. Lines must be unwrapped before
        colorizing, so this unwraps everything first.
        """
        self.unwrap_all()
        slot = self.first
        while slot != NO_LINE:
            self.colorize(slot)
            slot = self.line(slot).next
        self.rewrap_all()
        logger.debug("Recolorized %d events", self._event_total)

    # --- Wrapping ---

    def calculate_wrap(self, slot: int) -> int:
        """Split an event over ``ceil(len / wrap_width)`` lines. Returns the last line of the group.

        Any existing wrap lines of the event are deleted first and the split is
        computed from scratch. Messages shorter than the wrap width stay
        unwrapped; one exactly as wide becomes a single order-1 line.
        """
        line = self.line(slot)
        if line.order != 0:
            slot = self.delete_wrap_lines(slot)
            line = self.line(slot)

        width = self.wrap_width
        length = len(line.event.message)
        if not self.wrap or width <= 0 or length < width:
            return slot

        count = -(-length // width)
        line.order = 1
        line.start = 0
        line.end = width
        line.line_count = count

        current = slot
        for i in range(1, count):
            part = RenderLine(line.event, line.sequence, i * width, min((i + 1) * width, length))
            part.order = i + 1
            part.line_count = count
            part.spans = line.spans
            current = self._insert_after(current, self._allocate(part))
        return current

    def delete_wrap_lines(self, slot: int) -> int:
        """Merge a wrapped group back into a single order-0 line. Returns the head slot."""
        line = self.line(slot)
        if line.order == 0:
            return slot

        head_slot = self.head(slot)
        head = self.line(head_slot)
        while head.next != NO_LINE and self.line(head.next).order > 1:
            self._unlink(head.next)

        head.order = 0
        head.start = 0
        head.end = len(head.event.message)
        head.line_count = 1
        return head_slot

    def rewrap_all(self) -> None:
        """Recompute wrapping for every event at the current width.

        Expensive: O(total lines). Idempotent for a given width. With wrapping
        disabled or a zero width every event ends up unwrapped.
        """
        if not self.wrap or self.wrap_width <= 0:
            self.unwrap_all()
            return
        slot = self.first
        while slot != NO_LINE:
            slot = self.line(self.calculate_wrap(slot)).next
        logger.debug(
            "Rewrapped %d events into %d lines at width %d", self._event_total, self._line_total, self.wrap_width
        )

    def unwrap_all(self) -> None:
        """Remove all wrap lines."""
        slot = self.first
        while slot != NO_LINE:
            slot = self.line(self.delete_wrap_lines(slot)).next

    # --- Navigation ---

    def head(self, slot: int) -> int:
        """Slot of the first line of the event group containing ``slot``."""
        line = self.line(slot)
        while line.order > 1 and line.previous != NO_LINE:
            slot = line.previous
            line = self.line(slot)
        return slot

    def group_slots(self, head_slot: int) -> Iterator[int]:
        """Slots of every line of the event group starting at ``head_slot``."""
        yield head_slot
        slot = self.line(head_slot).next
        while slot != NO_LINE and self.line(slot).order > 1:
            yield slot
            slot = self.line(slot).next

    def at_offset(self, start: int, offset: int) -> int:
        """Line ``offset`` rows after (or before, when negative) ``start``, clamped to the list ends."""
        if offset == 0 or start == NO_LINE:
            return start
        current = start
        for _ in range(abs(offset)):
            line = self.line(current)
            step = line.next if offset > 0 else line.previous
            if step == NO_LINE:
                break
            current = step
        return current

    def head_of(self, event_id: str) -> int:
        """Head slot of the event with ``event_id``, or NO_LINE."""
        return self._heads.get(event_id, NO_LINE)

    def locate(self, event_id: str, order: int = 0) -> int:
        """Slot of the row ``order`` of an event, clamped to the rows it has now."""
        slot = self.head_of(event_id)
        if slot == NO_LINE or order <= 1:
            return slot
        for candidate in self.group_slots(slot):
            slot = candidate
            if self.line(candidate).order >= order:
                break
        return slot

    def iter_lines(self, start: int | None = None) -> Iterator[tuple[int, RenderLine]]:
        """Iterate ``(slot, line)`` pairs from ``start`` (default: the first line) to the end."""
        slot = self.first if start is None else start
        while slot != NO_LINE:
            line = self.line(slot)
            yield slot, line
            slot = line.next

    def events(self) -> Iterator[LogEvent]:
        """Iterate distinct events in order (one per wrapped group)."""
        for _, line in self.iter_lines():
            if line.is_head:
                yield line.event

    def position(self, slot: int) -> int:
        """Row index of ``slot`` counted from the first line. O(n)."""
        for index, (candidate, _) in enumerate(self.iter_lines()):
            if candidate == slot:
                return index
        return -1
