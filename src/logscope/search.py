"""Event search with wrap-around and resume-from-last-hit semantics."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel

from logscope.errors import ConfigurationError
from logscope.models import LogEvent  # noqa: TC001 - Pydantic needs this at runtime for model field resolution

if TYPE_CHECKING:
    from logscope.store import EventStore

EventPredicate = Callable[[LogEvent], bool]


class SearchQuery(BaseModel):
    """A search query with options."""

    pattern: str
    case_sensitive: bool = True
    is_regex: bool = False


class SearchResult(BaseModel):
    """Outcome of one search step."""

    query: SearchQuery | None = None
    event: LogEvent | None = None
    total_matches: int = 0

    @property
    def found(self) -> bool:
        return self.event is not None


def query_predicate(query: SearchQuery) -> EventPredicate:
    """Build a predicate matching event messages against a query."""
    if query.is_regex:
        flags = 0 if query.case_sensitive else re.IGNORECASE
        try:
            pattern = re.compile(query.pattern, flags)
        except re.error as e:
            msg = f"Invalid search pattern {query.pattern!r}: {e}"
            raise ConfigurationError(msg) from e
        return lambda event: pattern.search(event.message) is not None

    if query.case_sensitive:
        text = query.pattern
        return lambda event: text in event.message
    folded = query.pattern.casefold()
    return lambda event: folded in event.message.casefold()


def find_total_matches(store: EventStore, predicate: EventPredicate) -> int:
    """Count distinct events matching the predicate (a wrapped event counts once)."""
    return sum(1 for event in store.events() if predicate(event))


def find_matching_event(store: EventStore, last_hit_id: str, predicate: EventPredicate) -> LogEvent | None:
    """Find the next matching event after ``last_hit_id``, wrapping around to the start.

    An empty or unknown ``last_hit_id`` scans from the first event. The last
    hit itself is checked last, so a single matching event is found again.
    """
    events = list(store.events())
    if not events:
        return None

    start = 0
    if last_hit_id:
        for index, event in enumerate(events):
            if event.id == last_hit_id:
                start = index + 1
                break

    count = len(events)
    for step in range(count):
        event = events[(start + step) % count]
        if predicate(event):
            return event
    return None


class SearchSession:
    """Repeated search state: the last query and the id of its last hit.

    Searching with an empty text repeats the previous query and continues from
    the previous hit.
    """

    def __init__(self) -> None:
        self.last_query: SearchQuery | None = None
        self.last_hit_id: str = ""

    def search(
        self,
        store: EventStore,
        text: str,
        *,
        case_sensitive: bool = True,
        is_regex: bool = False,
    ) -> SearchResult:
        """Run (or repeat, when ``text`` is empty) a search and advance past the hit."""
        if text:
            query = SearchQuery(pattern=text, case_sensitive=case_sensitive, is_regex=is_regex)
            if query != self.last_query:
                self.last_hit_id = ""
        elif self.last_query is not None:
            query = self.last_query
        else:
            return SearchResult()

        predicate = query_predicate(query)
        self.last_query = query
        total = find_total_matches(store, predicate)
        event = find_matching_event(store, self.last_hit_id, predicate) if total else None
        self.last_hit_id = event.id if event is not None else ""
        return SearchResult(query=query, event=event, total_matches=total)

    def reset(self) -> None:
        self.last_query = None
        self.last_hit_id = ""
