"""Color parsing and the default styles used by the viewport."""

from __future__ import annotations

from rich.color import Color, ColorParseError
from rich.style import Style
from textual.color import Color as WebColor
from textual.color import ColorParseError as WebColorParseError

from logscope.errors import ConfigurationError

DEFAULT_TEXT_COLOR = "#d0d0d0"
TIMESTAMP_STYLE = Style(color="#808080")
SOURCE_STYLE = Style(color="#5fafd7")
CURSOR_STYLE = Style(bgcolor="#303a5a", bold=True)

# Level marker colors for the status bar counters
_LEVEL_MARKERS: dict[str, str] = {
    "info": "#61afef",
    "warning": "#e5c07b",
    "error": "#e06c75",
}


def parse_color(name: str) -> Color:
    """Parse a color name, hex value or ANSI color into a Rich color.

    Accepts web/CSS names (``cadetblue``), Rich/ANSI names (``bright_red``,
    ``color(52)``) and ``#rrggbb`` values.
    """
    value = name.strip()
    try:
        return Color.parse(value)
    except ColorParseError:
        pass
    try:
        return WebColor.parse(value).rich_color
    except WebColorParseError:
        pass
    msg = f"Unknown color: {name!r}"
    raise ConfigurationError(msg)


def make_style(fg: str | None = None, bg: str | None = None) -> Style:
    """Build a style from optional foreground/background color names."""
    return Style(
        color=parse_color(fg) if fg else None,
        bgcolor=parse_color(bg) if bg else None,
    )


def style_from_group_name(group: str) -> Style | None:
    """Derive a style from a capture group named after its colors.

    ``lavender`` gives a lavender foreground, ``skyblue_maroon`` a skyblue
    foreground on maroon. Returns None when the name is not a color.
    """
    try:
        return make_style(group)
    except ConfigurationError:
        pass
    parts = group.split("_")
    for split in range(1, len(parts)):
        fg, bg = "_".join(parts[:split]), "_".join(parts[split:])
        try:
            return make_style(fg, bg)
        except ConfigurationError:
            continue
    return None


def level_marker_color(level: str) -> str:
    """Marker color for a level name, used by the host widgets."""
    return _LEVEL_MARKERS.get(level, DEFAULT_TEXT_COLOR)
