"""Modal screen showing the fields of one log event."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from typing_extensions import override

from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType

    from logscope.models import LogEvent


def event_details(event: LogEvent) -> str:
    """Default details text: message, timestamp, id, level and source."""
    return (
        f"Message  : {event.message}\n"
        f"Timestamp: {event.timestamp.isoformat()}\n"
        f"ID       : {event.id}\n"
        f"Level    : {event.level}\n"
        f"Source   : {event.source}\n"
    )


class DetailsScreen(ModalScreen[None]):
    """Shows details text for the current event until dismissed."""

    DEFAULT_CSS = """
    DetailsScreen {
        align: center middle;
    }

    DetailsScreen > VerticalScroll {
        width: 80%;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: tall $accent;
        border-title-align: center;
        padding: 1 2;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        ("escape", "dismiss_details", "Close"),
        ("enter", "dismiss_details", "Close"),
        ("q", "dismiss_details", "Close"),
    ]

    def __init__(self, text: str, title: str = "Log Entry Details") -> None:
        super().__init__()
        self.text = text
        self.details_title = title

    @override
    def compose(self) -> ComposeResult:
        with VerticalScroll() as body:
            body.border_title = self.details_title
            yield Static(self.text, markup=False, id="details-text")

    def action_dismiss_details(self) -> None:
        self.dismiss(None)
