"""Regex-driven message highlighting.

A highlight pattern is a regular expression whose named capture groups are
mapped to display styles. Every match of the pattern in a message is scanned
and each participating group with a registered style becomes a span; the
characters in between keep the base style of the event.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from rich.style import Style

from logscope.colors import DEFAULT_TEXT_COLOR, make_style, style_from_group_name
from logscope.errors import ConfigurationError
from logscope.models import LogEvent, LogLevel, StyleSpan, ViewportConfig

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a highlight pattern, rejecting invalid regexes and patterns without named groups."""
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        msg = f"Invalid highlight pattern {pattern!r}: {e}"
        raise ConfigurationError(msg) from e
    if not compiled.groupindex:
        msg = f"Highlight pattern {pattern!r} has no named groups"
        raise ConfigurationError(msg)
    return compiled


def build_spans(
    message: str,
    pattern: re.Pattern[str],
    group_styles: Mapping[str, Style],
    base_style: Style,
    *,
    use_level_background: bool = False,
) -> list[StyleSpan]:
    """Compute ordered, non-overlapping style spans covering the whole message.

    Groups without a registered style are treated as unmatched. A group that
    starts inside an already emitted span (nested or overlapping groups) is
    skipped. Group styles are layered over ``base_style``, so a group that only
    sets a foreground keeps the base (level) background. With
    ``use_level_background`` the base background also replaces a group's own one.
    """
    if not message:
        return []

    group_names = {index: name for name, index in pattern.groupindex.items() if name in group_styles}
    spans: list[StyleSpan] = []
    pos = 0

    for match in pattern.finditer(message):
        hits = sorted(
            (match.start(index), match.end(index), name)
            for index, name in group_names.items()
            if match.start(index) != -1
        )
        for start, end, name in hits:
            if start < pos or start == end:
                continue
            if start > pos:
                spans.append(StyleSpan(pos, start, base_style))
            style = base_style + group_styles[name]
            if use_level_background and base_style.bgcolor is not None:
                style += Style(bgcolor=base_style.bgcolor)
            spans.append(StyleSpan(start, end, style))
            pos = end

    if pos < len(message):
        spans.append(StyleSpan(pos, len(message), base_style))
    return spans


class Highlighter:
    """Highlight settings and the colorizer that applies them to events."""

    def __init__(self) -> None:
        self.pattern: re.Pattern[str] | None = None
        self.group_styles: dict[str, Style] = {}
        self.enabled: bool = True
        self.level_highlighting: bool = True
        self.level_background_wins: bool = False
        self.base_style: Style = Style(color=DEFAULT_TEXT_COLOR)
        self.warning_style: Style = Style(bgcolor="#5f5f00")
        self.error_style: Style = Style(bgcolor="#5f0000")

    def set_pattern(self, pattern: str | None, *, colors_from_group_names: bool = False) -> None:
        """Replace the highlight pattern. On error the previous pattern stays active."""
        compiled = compile_pattern(pattern) if pattern is not None else None
        self._install_pattern(compiled, colors_from_group_names=colors_from_group_names)

    def configure(self, config: ViewportConfig) -> None:
        """Apply the highlight settings of ``config``.

        Every color and the pattern are validated first, so a rejected
        configuration leaves the current settings untouched.
        """
        pattern = config.highlight_pattern
        compiled = compile_pattern(pattern) if pattern is not None else None
        warning_style = make_style(bg=config.warning_color)
        error_style = make_style(bg=config.error_color)
        group_styles = dict(self.group_styles)
        for group, colors in config.highlight_colors.items():
            group_styles[group] = make_style(colors.fg, colors.bg)

        self.enabled = config.highlighting
        self.level_highlighting = config.level_highlighting
        self.level_background_wins = config.level_background_wins
        self.warning_style = warning_style
        self.error_style = error_style
        self.group_styles = group_styles
        self._install_pattern(compiled, colors_from_group_names=config.colors_from_group_names)

    def _install_pattern(self, compiled: re.Pattern[str] | None, *, colors_from_group_names: bool) -> None:
        self.pattern = compiled
        if compiled is None:
            return
        if colors_from_group_names:
            for name in compiled.groupindex:
                if name in self.group_styles:
                    continue
                style = style_from_group_name(name)
                if style is not None:
                    self.group_styles[name] = style
        unused = sorted(set(self.group_styles) - set(compiled.groupindex))
        if unused:
            logger.debug("Highlight styles registered for groups not in pattern: %s", ", ".join(unused))

    def set_group_color(self, group: str, fg: str | None = None, bg: str | None = None) -> None:
        """Register colors for a named group. A missing color falls back to the base style."""
        self.group_styles[group] = make_style(fg, bg)

    def update_group_color(self, group: str, *, fg: str | None = None, bg: str | None = None) -> None:
        """Change one color of a group, keeping the other."""
        current = self.group_styles.get(group, Style())
        self.group_styles[group] = current + make_style(fg, bg)

    def set_level_colors(self, *, warning: str | None = None, error: str | None = None) -> None:
        if warning is not None:
            self.warning_style = make_style(bg=warning)
        if error is not None:
            self.error_style = make_style(bg=error)

    def event_style(self, level: LogLevel) -> Style:
        """Base style for an event, with the level background applied when enabled."""
        if not self._has_level_background(level):
            return self.base_style
        overlay = self.warning_style if level == LogLevel.WARNING else self.error_style
        return self.base_style + overlay

    def spans_for(self, event: LogEvent) -> list[StyleSpan]:
        """Colorize one event message."""
        base = self.event_style(event.level)
        if not self.enabled or self.pattern is None:
            if not event.message:
                return []
            return [StyleSpan(0, len(event.message), base)]
        return build_spans(
            event.message,
            self.pattern,
            self.group_styles,
            base,
            use_level_background=self.level_background_wins and self._has_level_background(event.level),
        )

    def _has_level_background(self, level: LogLevel) -> bool:
        return self.level_highlighting and level != LogLevel.INFO
