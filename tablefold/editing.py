"""
Manual grid editing with the eraser.

The eraser acts on the single line nearest to the pointer. In whole-line
mode the line disappears; in segment mode only the lattice unit under the
pointer (between the two perpendicular lines bracketing it) is removed and
the rest of the line is kept as up to two fragments.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .geometry import Grid, GridLine

logger = logging.getLogger(__name__)

# Eraser reach in screen pixels; divided by the view scale to get image pixels.
# Hover preview and the erase action both use this value.
ERASER_RADIUS = 20.0


@dataclass(frozen=True)
class EraserTarget:
    axis: str
    line_index: int
    start: float
    end: float
    whole_line: bool


def eraser_threshold(scale: float, radius: float = ERASER_RADIUS) -> float:
    """Image-space eraser reach for a given view scale."""
    return radius / scale


def _other_axis(axis: str) -> str:
    return 'vertical' if axis == 'horizontal' else 'horizontal'


def _split_coords(axis: str, point: Tuple[float, float]) -> Tuple[float, float]:
    """(main, cross) coordinates of a point relative to a line axis."""
    x, y = point
    return (y, x) if axis == 'horizontal' else (x, y)


def segment_bounds(grid: Grid, axis: str, line: GridLine, cross: float) -> Tuple[float, float]:
    """
    Bracket `cross` between the perpendicular lines that intersect `line`.

    Falls back to the line's own start/end where no crossing exists on a side.
    """
    crossings = sorted(p.pos for p in grid.lines(_other_axis(axis)) if p.covers(line.pos))

    seg_start, seg_end = line.start, line.end
    for p in crossings:
        if p <= cross:
            seg_start = max(seg_start, p)
        else:
            seg_end = min(seg_end, p)
            break
    return seg_start, seg_end


def find_eraser_target(grid: Grid, point: Tuple[float, float], whole_line: bool,
                       threshold: float) -> Optional[EraserTarget]:
    """
    Locate the line the eraser would act on.

    A line is eligible when the pointer's cross coordinate lies within its
    span and its distance from the pointer is below `threshold`. The closest
    eligible line over both axes wins.

    Returns:
        EraserTarget, or None if no line is in reach
    """
    best = None
    best_dist = threshold

    for axis in ('horizontal', 'vertical'):
        main, cross = _split_coords(axis, point)
        for i, line in enumerate(grid.lines(axis)):
            if not line.covers(cross):
                continue
            dist = abs(main - line.pos)
            if dist < best_dist:
                if whole_line:
                    start, end = line.start, line.end
                else:
                    start, end = segment_bounds(grid, axis, line, cross)
                best_dist = dist
                best = EraserTarget(axis, i, start, end, whole_line)

    return best


def erase(grid: Grid, point: Tuple[float, float], whole_line: bool,
          threshold: float) -> Optional[Grid]:
    """
    Apply one eraser action.

    Args:
        grid: Current grid (not modified)
        point: Pointer position (x, y) in image space
        whole_line: Remove the entire line instead of one segment
        threshold: Eraser reach in image pixels

    Returns:
        New Grid, or None when no line is within reach
    """
    target = find_eraser_target(grid, point, whole_line, threshold)
    if target is None:
        return None

    lines: List[GridLine] = list(grid.lines(target.axis))
    line = lines[target.line_index]
    replacement: List[GridLine] = []

    if not whole_line:
        if target.start > line.start + 1:
            replacement.append(line.with_span(line.start, target.start))
        if target.end < line.end - 1:
            replacement.append(line.with_span(target.end, line.end))

    lines[target.line_index:target.line_index + 1] = replacement
    logger.debug("erased %s line at %s, span %s..%s (%d fragments kept)",
                 target.axis, line.pos, target.start, target.end, len(replacement))
    return grid.replace_lines(target.axis, lines)
