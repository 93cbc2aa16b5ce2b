"""
Geometry shared by detection, editing and compositing.

A Grid is a pair of line lists. Horizontal lines sit at a y position and
span an x range; vertical lines sit at an x position and span a y range.
All values are immutable; edits build new Grids.
"""

import math
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Sequence, Tuple

Range = Tuple[int, int]


@dataclass(frozen=True)
class GridLine:
    pos: float
    thickness: float
    start: float
    end: float

    def covers(self, coord: float) -> bool:
        """True if `coord` lies within the line's span (inclusive)."""
        return self.start <= coord <= self.end

    def with_span(self, start: float, end: float) -> 'GridLine':
        return replace(self, start=start, end=end)


@dataclass(frozen=True)
class Grid:
    horizontal: Tuple[GridLine, ...] = field(default_factory=tuple)
    vertical: Tuple[GridLine, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'horizontal', tuple(self.horizontal))
        object.__setattr__(self, 'vertical', tuple(self.vertical))

    def lines(self, axis: str) -> Tuple[GridLine, ...]:
        if axis == 'horizontal':
            return self.horizontal
        elif axis == 'vertical':
            return self.vertical
        else:
            raise ValueError(f"Invalid axis: {axis}")

    def positions(self, axis: str) -> List[float]:
        """Sorted distinct line positions on one axis."""
        return sorted({line.pos for line in self.lines(axis)})

    def replace_lines(self, axis: str, lines: Iterable[GridLine]) -> 'Grid':
        if axis == 'horizontal':
            return Grid(tuple(lines), self.vertical)
        elif axis == 'vertical':
            return Grid(self.horizontal, tuple(lines))
        else:
            raise ValueError(f"Invalid axis: {axis}")


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def normalized(self) -> 'Rect':
        """Flip negative width/height so that w, h >= 0."""
        x, y, w, h = self.x, self.y, self.w, self.h
        if w < 0:
            x, w = x + w, -w
        if h < 0:
            y, h = y + h, -h
        return Rect(x, y, w, h)

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    def span(self, direction: str) -> Tuple[float, float]:
        """Extent along the axis that `direction` removes from.

        'horizontal' removes rows, so its span is the y extent;
        'vertical' removes columns, so its span is the x extent.
        """
        if direction == 'horizontal':
            return self.y, self.bottom
        elif direction == 'vertical':
            return self.x, self.right
        else:
            raise ValueError(f"Invalid direction: {direction}")

    def cross_span(self, direction: str) -> Tuple[float, float]:
        if direction == 'horizontal':
            return self.x, self.right
        elif direction == 'vertical':
            return self.y, self.bottom
        else:
            raise ValueError(f"Invalid direction: {direction}")


@dataclass(frozen=True)
class Segment:
    """A run of edge pixels on one scan line (detector internal)."""
    pos: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


def pixel_range(start: float, length: float) -> Range:
    """Round a float interval outward onto whole pixels."""
    lo = math.floor(start)
    return lo, lo + math.ceil(length)


def clip_range(r: Range, limit: int) -> Optional[Range]:
    lo, hi = max(0, r[0]), min(limit, r[1])
    if hi <= lo:
        return None
    return lo, hi


def merge_ranges(ranges: Iterable[Range]) -> List[Range]:
    """Union of intervals; touching or overlapping intervals merge."""
    ordered = sorted(ranges)
    merged: List[Range] = []
    for start, end in ordered:
        if merged and start < merged[-1][1] + 1:
            prev_start, prev_end = merged[-1]
            merged[-1] = (prev_start, max(prev_end, end))
        else:
            merged.append((start, end))
    return merged


def keep_ranges(total: int, remove: Sequence[Range]) -> List[Range]:
    """Complement of merged `remove` ranges within [0, total)."""
    keep = []
    cursor = 0
    for start, end in remove:
        if start > cursor:
            keep.append((cursor, start))
        cursor = max(cursor, end)
    if cursor < total:
        keep.append((cursor, total))
    return keep


def removed_length(ranges: Sequence[Range]) -> int:
    return sum(end - start for start, end in ranges)


def shift_coordinate(coord: float, ranges: Sequence[Range]) -> float:
    """Map a coordinate through the removal of `ranges`.

    Subtracts the overlap of every removed range lying below `coord`.
    """
    shift = 0
    for start, end in ranges:
        if coord >= end:
            shift += end - start
        elif coord > start:
            shift += coord - start
    return coord - shift


def strictly_inside(coord: float, ranges: Sequence[Range]) -> bool:
    return any(start < coord < end for start, end in ranges)
