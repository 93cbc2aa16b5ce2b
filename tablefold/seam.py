"""
Removal planning along one axis of one strip.

Two approaches:
1. Physical cut: drop the requested ranges and stitch the rest together.
2. Smart: requested pixels that fall inside a table cell become a quota for
   that cell. The quota is paid first by cutting the cell's blank (low
   energy) stretches, largest first, and any remainder is paid by squishing
   the cell's surviving pixels. Cells outside the selection never change.

Either way the strip shrinks by exactly the number of requested pixels.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .energy import SAFE_ENERGY, block_energy_profile, safe_mask, safe_runs
from .geometry import Range, Rect, keep_ranges
from .pixels import PixelBuffer

logger = logging.getLogger(__name__)

# Energy is scored this far inside a cell's cross extent, clear of its border lines
CELL_INSET = 3


@dataclass(frozen=True)
class DrawOperation:
    """Copy `src_len` source lines from `src_start`, drawn `dest_len` long."""
    src_start: int
    src_len: int
    dest_len: float


@dataclass(frozen=True)
class _CellSpan:
    cell: Rect
    start: int
    end: int
    cross_start: int
    cross_end: int


def keep_operations(axis_length: int, remove_ranges: Sequence[Range]) -> List[DrawOperation]:
    """Unscaled operations for everything outside `remove_ranges`."""
    return [DrawOperation(start, end - start, float(end - start))
            for start, end in keep_ranges(axis_length, remove_ranges)]


def _assign_owners(axis_length: int, cells: Sequence[Rect], direction: str,
                   strip: Tuple[int, int]) -> Tuple[List[Optional[int]], List[_CellSpan]]:
    """
    Map every position on the axis to the cell covering it inside the strip.

    Only cells overlapping the strip take part; their cross extent is cut
    down to the overlap. Boxes overlap only where a merged cell is not
    rectangular, so its bounding box also covers neighbouring cells. The
    smallest box covering a position owns it; equal boxes go to the first.
    """
    owner: List[Optional[int]] = [None] * axis_length
    spans: List[_CellSpan] = []

    for cell in cells:
        c_lo, c_hi = cell.cross_span(direction)
        cross_start = max(int(round(c_lo)), strip[0])
        cross_end = min(int(round(c_hi)), strip[1])
        if cross_end <= cross_start:
            continue

        a_lo, a_hi = cell.span(direction)
        start = max(0, int(round(a_lo)))
        end = min(axis_length, int(round(a_hi)))
        if end <= start:
            continue

        spans.append(_CellSpan(cell, start, end, cross_start, cross_end))

    by_area = sorted(range(len(spans)), key=lambda i: spans[i].cell.w * spans[i].cell.h)
    for idx in by_area:
        for p in range(spans[idx].start, spans[idx].end):
            if owner[p] is None:
                owner[p] = idx

    return owner, spans


def plan_axis(axis_length: int, remove_ranges: Sequence[Range], cells: Sequence[Rect],
              strip: Tuple[int, int], smart: bool, buffer: PixelBuffer,
              direction: str = 'horizontal',
              safe_threshold: float = SAFE_ENERGY,
              cell_inset: int = CELL_INSET) -> List[DrawOperation]:
    """
    Plan draw operations for one strip.

    Args:
        axis_length: Length of the axis being shrunk
        remove_ranges: Merged (start, end) ranges requested for removal
        cells: Resolved cells in the buffer's coordinates
        strip: (start, end) of the strip on the perpendicular axis
        smart: Use energy-guided cutting and squishing
        buffer: Image the cells refer to
        direction: 'horizontal' (removing rows) or 'vertical' (removing columns)
        safe_threshold: Block energy below which lines may be cut
        cell_inset: Pixels skipped at each side of a cell's cross extent

    Returns:
        Operations in source order; sum of dest_len equals
        axis_length minus the total requested length
    """
    if not smart or not cells:
        return keep_operations(axis_length, remove_ranges)

    owner, spans = _assign_owners(axis_length, cells, direction, strip)
    cut = [False] * axis_length
    quota = [0] * len(spans)

    # Requested pixels outside every cell are cut right away; the rest become quota
    for start, end in remove_ranges:
        for p in range(max(0, start), min(axis_length, end)):
            if owner[p] is None:
                cut[p] = True
            else:
                quota[owner[p]] += 1

    scale = [1.0] * len(spans)
    for idx, span in enumerate(spans):
        if quota[idx] == 0:
            continue

        cross = (span.cross_start, span.cross_end)
        if span.cross_end - span.cross_start > 2 * cell_inset:
            cross = (span.cross_start + cell_inset, span.cross_end - cell_inset)
        profile = block_energy_profile(buffer, direction, (span.start, span.end), cross)
        mask = safe_mask(profile, span.end - span.start, threshold=safe_threshold)
        mask = [safe and owner[span.start + i] == idx and not cut[span.start + i]
                for i, safe in enumerate(mask)]

        # Cut from the middle of each safe run so margins shrink evenly
        remaining = quota[idx]
        for run_start, run_end in safe_runs(mask, span.start):
            if remaining == 0:
                break
            take = min(remaining, run_end - run_start)
            first = run_start + (run_end - run_start - take) // 2
            for p in range(first, first + take):
                cut[p] = True
            remaining -= take

        if remaining:
            kept = sum(1 for p in range(span.start, span.end)
                       if owner[p] == idx and not cut[p])
            scale[idx] = max(0, kept - remaining) / kept if kept else 0.0

        logger.debug("cell %s strip %s: quota %d, cut %d, squish debt %d",
                     span.cell, strip, quota[idx], quota[idx] - remaining, remaining)

    ops: List[DrawOperation] = []
    run_start = None
    run_owner = None

    def close(end):
        src_len = end - run_start
        factor = scale[run_owner] if run_owner is not None else 1.0
        ops.append(DrawOperation(run_start, src_len, src_len * factor))

    for p in range(axis_length):
        if cut[p]:
            if run_start is not None:
                close(p)
                run_start = None
            continue
        if run_start is None:
            run_start, run_owner = p, owner[p]
        elif owner[p] != run_owner:
            close(p)
            run_start, run_owner = p, owner[p]
    if run_start is not None:
        close(axis_length)

    return ops


def planned_length(ops: Sequence[DrawOperation]) -> float:
    """Total destination length of a plan."""
    return sum(op.dest_len for op in ops)
