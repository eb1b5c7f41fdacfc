"""Sparkline of the event rate histogram."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from textual.widgets import Sparkline

if TYPE_CHECKING:
    from logscope.histogram import VelocityHistogram


class VelocityView(Sparkline):
    """Events per bucket over the histogram's display window."""

    DEFAULT_CSS = """
    VelocityView {
        height: 3;
        margin: 0 1;
    }
    """

    def __init__(self, histogram: VelocityHistogram, **kwargs: Any) -> None:  # noqa: ANN401
        super().__init__([], summary_function=max, **kwargs)
        self.histogram = histogram

    def refresh_buckets(self) -> None:
        """Pull the current window of bucket counts from the histogram."""
        self.data = [float(bucket.count) for bucket in self.histogram.buckets_in_window()]
