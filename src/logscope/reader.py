"""Turning log files into events (sync and async with tailing)."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import aiofiles

from logscope.models import LogEvent, LogLevel

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = logging.getLogger(__name__)

_ISO_PREFIX_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:[.,]\d+)?(?:Z|[+-]\d{2}:?\d{2})?)\s*")
_CLF_TIME_RE = re.compile(r"\[(\d{2}/[A-Za-z]{3}/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4})]")
_CLF_TIME_FORMAT = "%d/%b/%Y:%H:%M:%S %z"
_ERROR_RE = re.compile(r"\b(?:ERROR|ERR|FATAL|CRITICAL|PANIC)\b", re.IGNORECASE)
_WARNING_RE = re.compile(r"\b(?:WARN|WARNING)\b", re.IGNORECASE)
# Status code following the quoted request of a common/combined log format line
_HTTP_STATUS_RE = re.compile(r'"\s+(\d{3})\s')


def detect_level(message: str) -> LogLevel:
    """Guess the severity of a line from level keywords or an HTTP status code."""
    if _ERROR_RE.search(message):
        return LogLevel.ERROR
    if _WARNING_RE.search(message):
        return LogLevel.WARNING
    if status := _HTTP_STATUS_RE.search(message):
        code = int(status.group(1))
        if code >= 500:  # noqa: PLR2004
            return LogLevel.ERROR
        if code >= 400:  # noqa: PLR2004
            return LogLevel.WARNING
    return LogLevel.INFO


def detect_timestamp(message: str) -> datetime | None:
    """Extract a leading ISO 8601 timestamp or a bracketed access-log timestamp."""
    if match := _ISO_PREFIX_RE.match(message):
        try:
            parsed = datetime.fromisoformat(match.group(1).replace(",", "."))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    if match := _CLF_TIME_RE.search(message):
        try:
            return datetime.strptime(match.group(1), _CLF_TIME_FORMAT)
        except ValueError:
            return None
    return None


def parse_event(line_number: int, raw: str, source: str = "") -> LogEvent:
    """Build an event from one raw line. Lines without a timestamp are stamped with the current time."""
    return LogEvent.create(
        f"{source}:{line_number}",
        raw,
        source=source,
        timestamp=detect_timestamp(raw),
        level=detect_level(raw),
    )


def read_events(path: Path) -> list[LogEvent]:
    """Read every line of a file as an event (synchronous)."""
    source = path.name
    with path.open(errors="replace") as f:
        return [parse_event(i, raw.rstrip("\n"), source) for i, raw in enumerate(f, start=1)]


async def read_events_async(
    path: Path,
    *,
    tail: bool = False,
    chunk_size: int = 500,
    poll_interval: float = 0.1,
) -> AsyncIterator[list[LogEvent]]:
    """Read a file in chunks of events, optionally following it like ``tail -f``."""
    source = path.name
    line_number = 0
    chunk: list[LogEvent] = []
    async with aiofiles.open(path, errors="replace") as f:
        async for raw in f:
            line_number += 1
            chunk.append(parse_event(line_number, raw.rstrip("\n"), source))
            if len(chunk) >= chunk_size:
                yield chunk
                chunk = []
        if chunk:
            yield chunk
            chunk = []

        if not tail:
            return

        last_size = path.stat().st_size
        while True:
            raw = await f.readline()
            if raw:
                line_number += 1
                yield [parse_event(line_number, raw.rstrip("\n"), source)]
                continue
            try:
                current_size = path.stat().st_size
            except OSError:
                await asyncio.sleep(poll_interval * 2)
                continue
            if current_size < last_size:
                logger.info("%s was truncated, reading from the start", path)
                await f.seek(0)
            last_size = current_size
            await asyncio.sleep(poll_interval)
