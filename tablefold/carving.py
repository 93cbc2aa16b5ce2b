"""
High-level crop that orchestrates planning and compositing.

Rows are removed first, strip by strip between vertical grid lines, into
an intermediate raster. Columns are then removed from that raster, strip
by strip between the remapped horizontal grid lines. The grid is carried
over into the new coordinate space so repeated crops compose.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import torch
import torch.nn.functional as F

from .geometry import (Grid, GridLine, Range, Rect, clip_range, merge_ranges, pixel_range,
                       removed_length, shift_coordinate, strictly_inside)
from .lattice import LATTICE_MIN_GAP, lattice_coordinates, resolve_cells
from .pixels import PixelBuffer
from .seam import DrawOperation, plan_axis

logger = logging.getLogger(__name__)

CROP_MODES = ('horizontal', 'vertical', 'both')


@dataclass(frozen=True)
class CropResult:
    raster: PixelBuffer
    width: int
    height: int
    grid: Optional[Grid] = None


def selection_ranges(selections: Sequence[Rect], mode: str, width: int,
                     height: int) -> Tuple[List[Range], List[Range]]:
    """
    Turn selections into merged removal ranges.

    'horizontal' removes the selections' row ranges, 'vertical' their
    column ranges, 'both' does both. Ranges are rounded outward to whole
    pixels and clipped to the canvas.

    Returns:
        (x_ranges, y_ranges)
    """
    if mode not in CROP_MODES:
        raise ValueError(f"Invalid mode: {mode!r}. Must be one of {CROP_MODES}.")

    x_ranges, y_ranges = [], []
    for sel in selections:
        rect = sel.normalized()
        xr = clip_range(pixel_range(rect.x, rect.w), width)
        yr = clip_range(pixel_range(rect.y, rect.h), height)
        if xr is not None:
            x_ranges.append(xr)
        if yr is not None:
            y_ranges.append(yr)

    use_x = mode in ('vertical', 'both')
    use_y = mode in ('horizontal', 'both')
    return (merge_ranges(x_ranges) if use_x else [],
            merge_ranges(y_ranges) if use_y else [])


def strip_bounds(positions, extent: int) -> List[Range]:
    """Consecutive integer strips between line positions across [0, extent)."""
    inside = [int(round(p)) for p in positions if 0 < p < extent]
    coords = lattice_coordinates(inside, extent)
    return [(lo, hi) for lo, hi in zip(coords, coords[1:]) if hi > lo]


def _remap_line(line: GridLine, pos_ranges, span_ranges) -> Optional[GridLine]:
    if strictly_inside(line.pos, pos_ranges):
        return None
    start = shift_coordinate(line.start, span_ranges)
    end = shift_coordinate(line.end, span_ranges)
    if end <= start:
        return None
    return GridLine(shift_coordinate(line.pos, pos_ranges), line.thickness, start, end)


def merge_close_lines(lines: Sequence[GridLine],
                      min_gap: float = LATTICE_MIN_GAP) -> List[GridLine]:
    """
    Collapse lines on one axis that sit within `min_gap` of each other.

    Lines are grouped by position (relative to the group's first line) and
    take that first position. Overlapping or touching spans in a group are
    joined; disjoint spans stay separate fragments.
    """
    merged: List[GridLine] = []
    group: List[GridLine] = []

    def flush():
        pos = group[0].pos
        thickness = max(l.thickness for l in group)
        spans = sorted((l.start, l.end) for l in group)
        start, end = spans[0]
        for s, e in spans[1:]:
            if s <= end:
                end = max(end, e)
            else:
                merged.append(GridLine(pos, thickness, start, end))
                start, end = s, e
        merged.append(GridLine(pos, thickness, start, end))

    for line in sorted(lines, key=lambda l: l.pos):
        if group and line.pos - group[0].pos > min_gap:
            flush()
            group = []
        group.append(line)
    if group:
        flush()
    return merged


def remap_grid(grid: Grid, x_ranges: Sequence[Range], y_ranges: Sequence[Range]) -> Grid:
    """
    Carry a grid through the removal of column and row ranges.

    A line whose position lies strictly inside a removed range is dropped;
    so is one whose span collapses. Everything else shifts down by the
    removed length below it.

    Removing a range bounded by two lines brings both to the same
    position; such lines are merged into one.
    """
    horizontal = [_remap_line(l, y_ranges, x_ranges) for l in grid.horizontal]
    vertical = [_remap_line(l, x_ranges, y_ranges) for l in grid.vertical]
    return Grid(merge_close_lines([l for l in horizontal if l is not None]),
                merge_close_lines([l for l in vertical if l is not None]))


def draw_operations(src: torch.Tensor, dest: torch.Tensor, ops: Sequence[DrawOperation],
                    strip: Range):
    """
    Draw planned operations from `src` into `dest` inside one strip.

    Both tensors are (C, length, span) with the planned axis on dim 1.
    Destination offsets accumulate as floats and both ends are rounded, so
    neighbouring operations meet without gaps. Unscaled runs are copied
    exactly; scaled runs are resampled with antialiased bilinear filtering.
    """
    c0, c1 = strip
    dest_total = dest.shape[1]
    offset = 0.0

    for op in ops:
        d0 = int(round(offset))
        offset += op.dest_len
        unscaled = op.dest_len == op.src_len
        d1 = d0 + op.src_len if unscaled else int(round(offset))
        d1 = min(d1, dest_total)
        n = d1 - d0
        if n <= 0 or op.src_len <= 0:
            continue

        piece = src[:, op.src_start:op.src_start + op.src_len, c0:c1]
        if unscaled:
            dest[:, d0:d1, c0:c1] = piece[:, :n]
        else:
            resized = F.interpolate(piece.unsqueeze(0).to(torch.float32),
                                    size=(n, c1 - c0), mode='bilinear',
                                    align_corners=False, antialias=True)
            dest[:, d0:d1, c0:c1] = resized.squeeze(0).round().clamp(0, 255).to(dest.dtype)


def _remove_along(buffer: PixelBuffer, ranges: Sequence[Range], cells: Sequence[Rect],
                  strips: Sequence[Range], smart: bool, direction: str) -> torch.Tensor:
    """One compositing pass. Returns the new (4, H, W) tensor."""
    if not ranges:
        return buffer.data.clone()

    if direction == 'horizontal':
        src = buffer.data
        out_shape = (4, max(1, buffer.height - removed_length(ranges)), buffer.width)
    else:
        src = buffer.data.transpose(1, 2)
        out_shape = (4, buffer.height, max(1, buffer.width - removed_length(ranges)))

    out = torch.zeros(out_shape, dtype=torch.uint8)
    dest = out if direction == 'horizontal' else out.transpose(1, 2)
    axis_length = src.shape[1]

    for strip in strips:
        ops = plan_axis(axis_length, ranges, cells, strip, smart, buffer, direction)
        draw_operations(src, dest, ops, strip)

    return out


def crop(item: PixelBuffer, selections: Sequence[Rect], grid: Optional[Grid] = None,
         mode: str = 'both', smart: bool = True) -> Optional[CropResult]:
    """
    Remove the selected rows and/or columns from an image.

    Args:
        item: Source image
        selections: Selected rectangles; negative width/height is allowed
        grid: Current grid, or None if the image has none
        mode: 'horizontal' removes row ranges, 'vertical' column ranges,
              'both' removes both
        smart: Prefer cutting blank cell padding over squishing content

    Returns:
        CropResult with the new raster and remapped grid,
        or None when there is nothing selected
    """
    if not selections:
        return None

    width, height = item.width, item.height
    x_ranges, y_ranges = selection_ranges(selections, mode, width, height)
    final_w = max(1, width - removed_length(x_ranges))
    final_h = max(1, height - removed_length(y_ranges))
    logger.debug("crop %dx%d mode=%s smart=%s: x ranges %s, y ranges %s -> %dx%d",
                 width, height, mode, smart, x_ranges, y_ranges, final_w, final_h)

    cells = resolve_cells(grid, width, height) if grid is not None else []

    # Pass 1: rows, in strips between vertical lines
    v_positions = grid.positions('vertical') if grid is not None else []
    row_strips = strip_bounds(v_positions, width)
    intermediate = PixelBuffer(_remove_along(item, y_ranges, cells, row_strips,
                                             smart, 'horizontal'))

    # Pass 2: columns, with cells and horizontal lines moved into pass-1 space
    shifted_cells = []
    for cell in cells:
        top = shift_coordinate(cell.y, y_ranges)
        bottom = shift_coordinate(cell.bottom, y_ranges)
        if bottom > top:
            shifted_cells.append(Rect(cell.x, top, cell.w, bottom - top))
    if grid is not None:
        h_positions = [shift_coordinate(l.pos, y_ranges) for l in grid.horizontal
                       if not strictly_inside(l.pos, y_ranges)]
    else:
        h_positions = []
    col_strips = strip_bounds(h_positions, intermediate.height)
    final = PixelBuffer(_remove_along(intermediate, x_ranges, shifted_cells, col_strips,
                                      smart, 'vertical'))

    next_grid = remap_grid(grid, x_ranges, y_ranges) if grid is not None else None
    return CropResult(final, final_w, final_h, next_grid)
