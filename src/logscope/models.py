"""Pydantic models for logscope."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from rich.style import Style

_TAB_WIDTH = 4


class LogLevel(StrEnum):
    """Event severity level. Warning and error events can be highlighted."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogEvent(BaseModel):
    """A single immutable log event."""

    model_config = ConfigDict(frozen=True)

    id: str
    source: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    level: LogLevel = LogLevel.INFO
    message: str
    data: dict[str, Any] | None = None

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        return value if value.tzinfo else value.replace(tzinfo=UTC)

    @classmethod
    def create(
        cls,
        event_id: str,
        message: str,
        *,
        source: str = "",
        timestamp: datetime | None = None,
        level: LogLevel = LogLevel.INFO,
        data: dict[str, Any] | None = None,
    ) -> LogEvent:
        """Build an event, expanding tabs so every character occupies one cell."""
        return cls(
            id=event_id,
            source=source,
            timestamp=timestamp or datetime.now(tz=UTC),
            level=level,
            message=message.replace("\t", " " * _TAB_WIDTH),
            data=data,
        )


@dataclass(frozen=True, slots=True)
class StyleSpan:
    """A half-open range [start, end) of message characters sharing one style."""

    start: int
    end: int
    style: Style


@dataclass(frozen=True, slots=True)
class HistogramBucket:
    """Event count for the time slot starting at ``start``."""

    start: datetime
    count: int


class ColorPair(BaseModel):
    """Foreground/background color names for a highlight group."""

    fg: str | None = None
    bg: str | None = None


class ViewportConfig(BaseModel):
    """Viewport configuration persisted to disk."""

    highlight_pattern: str | None = None
    highlight_colors: dict[str, ColorPair] = {}
    colors_from_group_names: bool = True
    highlighting: bool = True
    level_highlighting: bool = True
    level_background_wins: bool = False
    warning_color: str = "#5f5f00"
    error_color: str = "#5f0000"
    show_timestamp: bool = False
    show_source: bool = False
    source_width: int = Field(default=12, ge=0)
    timestamp_format: str = "%H:%M:%S"
    wrap: bool = True
    following: bool = True
    highlight_current_event: bool = False
    event_limit: int = Field(default=0, ge=0)
    histogram_bucket_seconds: float = Field(default=1.0, gt=0)
    histogram_window: int = Field(default=60, gt=0)
