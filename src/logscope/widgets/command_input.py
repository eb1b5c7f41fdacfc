"""Command line input with Up/Down history recall."""

from __future__ import annotations

from typing import Any, ClassVar

from textual.binding import Binding, BindingType
from textual.widgets import Input

from logscope.commands import CommandHistory


class CommandInput(Input):
    """Single-line command entry. Up and Down replace the text with earlier commands."""

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("up", "history_previous", "Previous command", show=False),
        Binding("down", "history_next", "Next command", show=False),
    ]

    def __init__(self, history: CommandHistory | None = None, **kwargs: Any) -> None:  # noqa: ANN401
        super().__init__(**kwargs)
        self.command_history = history or CommandHistory()

    def action_history_previous(self) -> None:
        self._recall(self.command_history.previous())

    def action_history_next(self) -> None:
        self._recall(self.command_history.next())

    def _recall(self, command: str | None) -> None:
        if command is None:
            return
        self.value = command
        self.cursor_position = len(command)
