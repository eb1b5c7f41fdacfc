"""Command entry: the ``/text``, ``:top``/``:bottom`` and ``quit`` interpreter plus command history."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from logscope.errors import ConfigurationError

if TYPE_CHECKING:
    from logscope.search import SearchSession
    from logscope.viewport import LogViewport

_QUIT_COMMANDS = frozenset({"exit", "quit", "q"})


class CommandOutcome(BaseModel):
    """Status text for the host to display, and whether it should exit."""

    status: str = ""
    quit: bool = False


class CommandHistory:
    """Entered command lines, recalled newest first and cycling at either end."""

    def __init__(self) -> None:
        self._entries: list[str] = []
        self._position = 0

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def add(self, command: str) -> None:
        if command:
            self._entries.append(command)
        self._position = len(self._entries)

    def previous(self) -> str | None:
        if not self._entries:
            return None
        self._position -= 1
        if self._position < 0:
            self._position = len(self._entries) - 1
        return self._entries[self._position]

    def next(self) -> str | None:
        if not self._entries:
            return None
        self._position += 1
        if self._position > len(self._entries) - 1:
            self._position = 0
        return self._entries[self._position]


def execute_command(viewport: LogViewport, session: SearchSession, command: str) -> CommandOutcome:
    """Run one command line against a viewport."""
    text = command.strip()
    if not text:
        return CommandOutcome()
    if text in _QUIT_COMMANDS:
        return CommandOutcome(quit=True)
    if text.startswith("/"):
        return _search(viewport, session, text[1:])
    if text.startswith(":"):
        return _goto(viewport, text[1:].strip())
    return CommandOutcome(status=f"Unknown command: {text}")


def _search(viewport: LogViewport, session: SearchSession, text: str) -> CommandOutcome:
    if not text and session.last_query is None:
        return CommandOutcome(status="Unable to search on empty pattern")
    try:
        result = viewport.search(session, text)
    except ConfigurationError as e:
        return CommandOutcome(status=str(e))
    if result.event is None:
        pattern = result.query.pattern if result.query else text
        return CommandOutcome(status=f"Pattern not found: {pattern}")
    return CommandOutcome(status=f"Found event {result.event.id} ({result.total_matches} total matches)")


def _goto(viewport: LogViewport, target: str) -> CommandOutcome:
    if target in {"top", "1"}:
        viewport.scroll_to_top()
        return CommandOutcome()
    if target == "bottom":
        viewport.scroll_to_bottom()
        return CommandOutcome()
    return CommandOutcome(status=f"Unknown navigate value: {target}")
