"""Performance benchmark for the logscope viewport engine.

Usage:
    python scripts/perf_test.py
"""

# ruff: noqa: PLR2004, T201
from __future__ import annotations

import tempfile
import time
from pathlib import Path
from typing import Any

from logscope.models import ViewportConfig
from logscope.reader import read_events
from logscope.search import SearchSession
from logscope.sink import GridSink
from logscope.viewport import LogViewport

# --- Log line templates ---

TEMPLATES = [
    "2024-01-15T10:30:{sec:02d}Z INFO Request processed duration_ms={n} user=admin path=/api/v1/items/{n}",
    "2024-01-15T10:30:{sec:02d}Z ERROR Connection failed code={n} retry=true upstream=10.0.0.{host}",
    "2024-01-15T10:30:{sec:02d}Z WARN Slow query table=users elapsed={n}ms "
    "query='SELECT id, name, email FROM users WHERE last_login > now() - interval 30 day'",
    "2024-01-15T10:30:{sec:02d}Z INFO Connection established from 192.168.1.{host}",
    '10.0.0.{host} - - [15/Jan/2024:10:30:{sec:02d} +0000] "GET /health HTTP/1.1" 200 {n}',
]

HIGHLIGHT_PATTERN = r"(?P<red>ERROR)|(?P<yellow>WARN)|(?P<cyan>\d+\.\d+\.\d+\.\d+)"


def generate_file(path: Path, count: int) -> None:
    """Write a mix of short and long log lines."""
    with path.open("w") as f:
        for i in range(count):
            f.write(TEMPLATES[i % len(TEMPLATES)].format(sec=i % 60, n=i, host=i % 255) + "\n")


def _timed(action: Any) -> float:  # noqa: ANN401
    start = time.perf_counter()
    action()
    return time.perf_counter() - start


def format_rate(count: int, elapsed: float) -> str:
    """Format events/sec."""
    if elapsed <= 0:
        return "inf"
    rate = count / elapsed
    if rate >= 1_000_000:
        return f"{rate / 1_000_000:.1f}M/s"
    if rate >= 1_000:
        return f"{rate / 1_000:.1f}K/s"
    return f"{rate:.0f}/s"


def run_benchmark(count: int) -> dict[str, Any]:
    """Run all benchmarks for a given event count."""
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "bench.log"
        generate_file(path, count)
        events: list = []
        read_time = _timed(lambda: events.extend(read_events(path)))

    viewport = LogViewport(ViewportConfig(highlight_pattern=HIGHLIGHT_PATTERN))
    viewport.resize(120, 40)

    # Append (colorize + wrap)
    append_time = _timed(lambda: viewport.append_batch(events))

    # Rewrap at a narrower width
    rewrap_time = _timed(lambda: viewport.resize(80, 40))

    # Search, no match (full scan)
    search_time = _timed(lambda: viewport.search(SearchSession(), "no such text"))

    # Render one page
    sink = GridSink(80, 40)
    render_time = _timed(lambda: viewport.render(sink, 80, 40))

    return {
        "count": count,
        "read": read_time,
        "append": append_time,
        "rewrap": rewrap_time,
        "search": search_time,
        "render": render_time,
    }


def main() -> None:
    sizes = [10_000, 100_000, 500_000]

    print(f"{'Events':>10}  {'Read':>16}  {'Append':>16}  {'Rewrap':>16}  {'Search':>16}  {'Render':>8}")
    print("-" * 92)

    for size in sizes:
        result = run_benchmark(size)
        count = result["count"]
        print(
            f"{count:>10,}  "
            f"{result['read']:>7.3f}s {format_rate(count, result['read']):>8}  "
            f"{result['append']:>7.3f}s {format_rate(count, result['append']):>8}  "
            f"{result['rewrap']:>7.3f}s {format_rate(count, result['rewrap']):>8}  "
            f"{result['search']:>7.3f}s {format_rate(count, result['search']):>8}  "
            f"{result['render'] * 1000:>6.2f}ms"
        )

    print()
    print("Done.")


if __name__ == "__main__":
    main()
