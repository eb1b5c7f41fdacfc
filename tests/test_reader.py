"""Tests for file reading."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from logscope.models import LogLevel
from logscope.reader import detect_level, detect_timestamp, parse_event, read_events, read_events_async

if TYPE_CHECKING:
    from pathlib import Path


class TestDetectLevel:
    @pytest.mark.parametrize(
        ("message", "level"),
        [
            ("ERROR failed to connect", LogLevel.ERROR),
            ("level=fatal shutting down", LogLevel.ERROR),
            ("WARN slow response", LogLevel.WARNING),
            ("[warning] disk almost full", LogLevel.WARNING),
            ('"GET /x HTTP/1.1" 503 0', LogLevel.ERROR),
            ('"GET /x HTTP/1.1" 404 0', LogLevel.WARNING),
            ('"GET /x HTTP/1.1" 200 15', LogLevel.INFO),
            ("CRITICAL: out of memory", LogLevel.ERROR),
            ("all good", LogLevel.INFO),
        ],
    )
    def test_levels(self, message: str, level: LogLevel) -> None:
        assert detect_level(message) == level

    def test_keyword_must_be_whole_word(self) -> None:
        assert detect_level("terrors and warnings") == LogLevel.INFO


class TestDetectTimestamp:
    def test_iso_utc(self) -> None:
        assert detect_timestamp("2024-01-15T10:30:00Z started") == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

    def test_iso_naive_is_utc(self) -> None:
        ts = detect_timestamp("2024-01-15 10:30:02.123 ERROR x")
        assert ts == datetime(2024, 1, 15, 10, 30, 2, 123000, tzinfo=UTC)

    def test_iso_offset(self) -> None:
        ts = detect_timestamp("2024-01-15T10:30:00+02:00 x")
        assert ts == datetime(2024, 1, 15, 8, 30, tzinfo=UTC)

    def test_access_log(self) -> None:
        ts = detect_timestamp('127.0.0.1 - - [15/Jan/2024:10:30:04 +0100] "GET / HTTP/1.1" 200 1')
        assert ts == datetime(2024, 1, 15, 10, 30, 4, tzinfo=timezone(timedelta(hours=1)))

    def test_none(self) -> None:
        assert detect_timestamp("no timestamp here") is None


class TestParseEvent:
    def test_fields(self) -> None:
        event = parse_event(3, "2024-01-15T10:30:00Z WARN disk", "app.log")
        assert event.id == "app.log:3"
        assert event.source == "app.log"
        assert event.level == LogLevel.WARNING
        assert event.message == "2024-01-15T10:30:00Z WARN disk"
        assert event.timestamp == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

    def test_without_timestamp_gets_current_time(self) -> None:
        before = datetime.now(tz=UTC)
        event = parse_event(1, "plain")
        assert event.timestamp >= before


class TestReadEvents:
    def test_read_sample_file(self, sample_log_file: Path) -> None:
        events = read_events(sample_log_file)
        assert len(events) == 8
        assert [event.id for event in events[:2]] == ["test.log:1", "test.log:2"]

    def test_levels_and_tabs(self, sample_log_file: Path) -> None:
        events = read_events(sample_log_file)
        assert [event.level for event in events[:5]] == [
            LogLevel.INFO,
            LogLevel.WARNING,
            LogLevel.ERROR,
            LogLevel.INFO,
            LogLevel.WARNING,
        ]
        assert events[6].message == "    indented with a tab"
        assert events[7].message == ""

    def test_empty_file(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.log"
        empty.write_text("")
        assert read_events(empty) == []


class TestReadEventsAsync:
    @pytest.mark.asyncio
    async def test_yields_chunks(self, sample_log_file: Path) -> None:
        chunks = [chunk async for chunk in read_events_async(sample_log_file, chunk_size=3)]
        assert [len(chunk) for chunk in chunks] == [3, 3, 2]
        assert chunks[2][-1].id == "test.log:8"

    @pytest.mark.asyncio
    async def test_empty_file(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.log"
        empty.write_text("")
        chunks = [chunk async for chunk in read_events_async(empty)]
        assert chunks == []

    @pytest.mark.asyncio
    async def test_tail_picks_up_appended_lines(self, tmp_path: Path) -> None:
        log_file = tmp_path / "tail.log"
        log_file.write_text("first\n")
        reader = read_events_async(log_file, tail=True, poll_interval=0.01)
        try:
            initial = await anext(reader)
            assert [event.message for event in initial] == ["first"]
            with log_file.open("a") as f:
                f.write("second\n")
            appended = await asyncio.wait_for(anext(reader), timeout=5)
            assert [event.id for event in appended] == ["tail.log:2"]
            assert appended[0].message == "second"
        finally:
            await reader.aclose()
