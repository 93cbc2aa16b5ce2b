"""
Cell resolution over the line lattice.

All line positions on both axes cut the canvas into atomic blocks. Two
neighbouring blocks belong to the same cell unless a grid line actually
covers the edge they share; a flood fill over blocks therefore yields
merged cells wherever a separating line was erased.
"""

import logging
from collections import deque
from typing import List, Optional, Sequence

from .geometry import Grid, GridLine, Rect

logger = logging.getLogger(__name__)

WALL_TOLERANCE = 2
LATTICE_MIN_GAP = 1
CLICK_TOLERANCE = 5
MIN_DRAG_SIZE = 2
SELECTION_MATCH_TOLERANCE = 1


def lattice_coordinates(positions, extent: float, min_gap: float = LATTICE_MIN_GAP) -> List[float]:
    """Sorted positions plus both canvas edges, dropping near-duplicates."""
    values = sorted(set(positions) | {0, extent})
    return [v for i, v in enumerate(values) if i == 0 or v > values[i - 1] + min_gap]


def has_wall(lines: Sequence[GridLine], pos: float, start: float, end: float,
             tolerance: float = WALL_TOLERANCE) -> bool:
    """True if some line sits at `pos` and covers more than 1px of [start, end]."""
    for line in lines:
        if abs(line.pos - pos) < tolerance:
            overlap_start = max(line.start, start)
            overlap_end = min(line.end, end)
            if overlap_start < overlap_end - 1:
                return True
    return False


def resolve_cells(grid: Grid, width: float, height: float) -> List[Rect]:
    """
    Compute the actual (possibly merged) cells of a grid.

    Args:
        grid: Current grid
        width, height: Canvas size

    Returns:
        One bounding Rect per connected group of lattice blocks
    """
    ys = lattice_coordinates((l.pos for l in grid.horizontal), height)
    xs = lattice_coordinates((l.pos for l in grid.vertical), width)
    n_rows, n_cols = len(ys) - 1, len(xs) - 1

    visited = [[False] * n_cols for _ in range(n_rows)]
    cells = []

    for r0 in range(n_rows):
        for c0 in range(n_cols):
            if visited[r0][c0]:
                continue

            visited[r0][c0] = True
            queue = deque([(r0, c0)])
            min_x, max_x = xs[c0], xs[c0 + 1]
            min_y, max_y = ys[r0], ys[r0 + 1]

            while queue:
                r, c = queue.popleft()
                x1, x2 = xs[c], xs[c + 1]
                y1, y2 = ys[r], ys[r + 1]
                min_x, max_x = min(min_x, x1), max(max_x, x2)
                min_y, max_y = min(min_y, y1), max(max_y, y2)

                # (row step, col step, walls to check, boundary position, edge span)
                neighbours = (
                    (0, 1, grid.vertical, x2, y1, y2),
                    (0, -1, grid.vertical, x1, y1, y2),
                    (1, 0, grid.horizontal, y2, x1, x2),
                    (-1, 0, grid.horizontal, y1, x1, x2),
                )
                for dr, dc, walls, pos, s, e in neighbours:
                    nr, nc = r + dr, c + dc
                    if not (0 <= nr < n_rows and 0 <= nc < n_cols):
                        continue
                    if visited[nr][nc]:
                        continue
                    if has_wall(walls, pos, s, e):
                        continue
                    visited[nr][nc] = True
                    queue.append((nr, nc))

            cells.append(Rect(min_x, min_y, max_x - min_x, max_y - min_y))

    logger.debug("lattice %dx%d blocks -> %d cells", n_rows, n_cols, len(cells))
    return cells


def cell_at(cells: Sequence[Rect], x: float, y: float) -> Optional[Rect]:
    """First cell containing the point, bounds inclusive."""
    for cell in cells:
        if cell.contains(x, y):
            return cell
    return None


def _same_rect(a: Rect, b: Rect, tolerance: float = SELECTION_MATCH_TOLERANCE) -> bool:
    return (abs(a.x - b.x) < tolerance and abs(a.y - b.y) < tolerance
            and abs(a.w - b.w) < tolerance and abs(a.h - b.h) < tolerance)


def toggle_selection(selections: Sequence[Rect], cell: Rect) -> List[Rect]:
    """Add `cell` to the selections, or remove it if already selected."""
    for i, sel in enumerate(selections):
        if _same_rect(sel, cell):
            return list(selections[:i]) + list(selections[i + 1:])
    return list(selections) + [cell]


def selection_from_drag(drag: Rect, cells: Sequence[Rect]) -> Optional[Rect]:
    """
    Interpret a finished pointer drag.

    A drag shorter than the click tolerance on both axes is a click and
    picks the cell under its start point. Longer drags become a normalized
    rectangle if both sides exceed the minimum drag size.
    """
    if abs(drag.w) < CLICK_TOLERANCE and abs(drag.h) < CLICK_TOLERANCE:
        return cell_at(cells, drag.x, drag.y)
    rect = drag.normalized()
    if rect.w > MIN_DRAG_SIZE and rect.h > MIN_DRAG_SIZE:
        return rect
    return None
