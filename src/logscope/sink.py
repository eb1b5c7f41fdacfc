"""Render boundary: where the viewport writes its styled characters."""

from __future__ import annotations

from typing import Protocol

from rich.segment import Segment
from rich.style import Style


class CellSink(Protocol):
    """Anything that can receive one styled character at a grid position."""

    def set_cell(self, x: int, y: int, style: Style, char: str) -> None: ...


class GridSink:
    """In-memory character grid. Writes outside the grid are ignored."""

    def __init__(self, width: int, height: int, style: Style | None = None) -> None:
        self.width = width
        self.height = height
        self.style = style or Style()
        self._cells: list[list[tuple[str, Style]]] = []
        self.clear()

    def clear(self) -> None:
        """Reset every cell to a blank in the background style."""
        self._cells = [[(" ", self.style) for _ in range(self.width)] for _ in range(self.height)]

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.clear()

    def set_cell(self, x: int, y: int, style: Style, char: str) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self._cells[y][x] = (char, style)

    def char_at(self, x: int, y: int) -> str:
        return self._cells[y][x][0]

    def style_at(self, x: int, y: int) -> Style:
        return self._cells[y][x][1]

    def row_text(self, y: int) -> str:
        """Plain text of a row, trailing blanks removed."""
        return "".join(char for char, _ in self._cells[y]).rstrip()

    def rows(self) -> list[str]:
        return [self.row_text(y) for y in range(self.height)]

    def segments(self, y: int) -> list[Segment]:
        """Row ``y`` as Rich segments, merging runs of identical style."""
        segments: list[Segment] = []
        run: list[str] = []
        run_style: Style | None = None
        for char, style in self._cells[y]:
            if run and style != run_style:
                segments.append(Segment("".join(run), run_style))
                run = []
            run.append(char)
            run_style = style
        if run:
            segments.append(Segment("".join(run), run_style))
        return segments
