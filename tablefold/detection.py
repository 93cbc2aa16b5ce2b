"""
Table grid detection from raw pixels.

A pixel is an edge when its luminance (R+G+B) differs from a neighbour
across the scan direction by more than the contrast threshold. Long runs
of edge pixels along a scan line are collected as segments, clustered by
position, and every surviving position becomes a full-span grid line.
"""

import logging
from typing import List

import torch
import torch.nn.functional as F

from .geometry import Grid, GridLine, Segment
from .pixels import PixelBuffer

logger = logging.getLogger(__name__)

CONTRAST_THRESHOLD = 40
MIN_SEGMENT_FLOOR = 16
MIN_SEGMENT_FRACTION = 0.01
POS_TOLERANCE = 3
GAP_TOLERANCE = 4
BORDER_MARGIN = 5


def min_segment_length(width: int, height: int) -> float:
    return max(MIN_SEGMENT_FLOOR, MIN_SEGMENT_FRACTION * min(width, height))


def edge_masks(lum: torch.Tensor, threshold: int = CONTRAST_THRESHOLD):
    """
    Contrast edge masks for both scan directions.

    Args:
        lum: Luminance map (H, W), integer
        threshold: Minimum absolute luminance difference

    Returns:
        (row_edges, col_edges): row_edges is (H-2, W) for interior rows 1..H-2,
        compared against the rows above and below. col_edges is (H, W-2) for
        interior columns 1..W-2, compared against left and right neighbours.
    """
    H, W = lum.shape

    if H >= 3:
        mid = lum[1:-1]
        row_edges = ((mid - lum[:-2]).abs() > threshold) | ((mid - lum[2:]).abs() > threshold)
    else:
        row_edges = torch.zeros(0, W, dtype=torch.bool)

    if W >= 3:
        mid = lum[:, 1:-1]
        col_edges = ((mid - lum[:, :-2]).abs() > threshold) | ((mid - lum[:, 2:]).abs() > threshold)
    else:
        col_edges = torch.zeros(H, 0, dtype=torch.bool)

    return row_edges, col_edges


def _runs(mask: torch.Tensor, pos_offset: int, min_length: float) -> List[Segment]:
    """Extract runs of True along dim 1 of a (lines, length) mask."""
    if mask.numel() == 0:
        return []

    # Pad with False on both ends so every run has a rising and a falling edge
    padded = F.pad(mask.to(torch.int8), (1, 1))
    steps = padded[:, 1:] - padded[:, :-1]
    starts = torch.nonzero(steps == 1)
    ends = torch.nonzero(steps == -1)

    segments = []
    for (line, start), (_, end) in zip(starts.tolist(), ends.tolist()):
        if end - start > min_length:
            segments.append(Segment(pos=line + pos_offset, start=start, end=end))
    return segments


def scan_segments(buffer: PixelBuffer, threshold: int = CONTRAST_THRESHOLD):
    """
    Find horizontal and vertical edge runs longer than the minimum length.

    Returns:
        (horizontal_segments, vertical_segments)
    """
    lum = buffer.luminance()
    min_length = min_segment_length(buffer.width, buffer.height)
    row_edges, col_edges = edge_masks(lum, threshold)

    horizontal = _runs(row_edges, 1, min_length)
    vertical = _runs(col_edges.t(), 1, min_length)
    return horizontal, vertical


def cluster_segments(segments: List[Segment], pos_tolerance: int = POS_TOLERANCE,
                     gap_tolerance: int = GAP_TOLERANCE) -> List[Segment]:
    """
    Merge near-parallel segments into line candidates.

    Segments within `pos_tolerance` of a cluster's first position join that
    cluster and take its rounded mean position. Inside a cluster, segments
    whose gap is at most `gap_tolerance` are joined end to end.
    """
    ordered = sorted(segments, key=lambda s: s.pos)
    merged: List[Segment] = []

    def flush(group):
        avg_pos = round(sum(s.pos for s in group) / len(group))
        group = sorted(group, key=lambda s: s.start)
        start, end = group[0].start, group[0].end
        for seg in group[1:]:
            if seg.start <= end + gap_tolerance:
                end = max(end, seg.end)
            else:
                merged.append(Segment(avg_pos, start, end))
                start, end = seg.start, seg.end
        merged.append(Segment(avg_pos, start, end))

    group: List[Segment] = []
    for seg in ordered:
        if group and abs(seg.pos - group[0].pos) > pos_tolerance:
            flush(group)
            group = []
        group.append(seg)
    if group:
        flush(group)

    return merged


def _full_span_lines(segments: List[Segment], span: int) -> List[GridLine]:
    positions = sorted({s.pos for s in segments})
    return [GridLine(pos=p, thickness=1, start=0, end=span) for p in positions]


def _add_borders(lines: List[GridLine], extent: int, span: int,
                 margin: int = BORDER_MARGIN) -> List[GridLine]:
    lines = list(lines)
    if not lines or lines[0].pos > margin:
        lines.insert(0, GridLine(pos=0, thickness=0, start=0, end=span))
    if lines[-1].pos < extent - margin:
        lines.append(GridLine(pos=extent, thickness=0, start=0, end=span))
    return lines


def detect_grid(buffer: PixelBuffer, threshold: int = CONTRAST_THRESHOLD,
                pos_tolerance: int = POS_TOLERANCE,
                gap_tolerance: int = GAP_TOLERANCE) -> Grid:
    """
    Detect a table's line grid.

    Every clustered segment position is projected to a line spanning the
    whole image. Border lines are added at 0 and at the far edge of each
    axis unless a detected line already lies within 5px of that edge, so the
    grid always encloses the canvas. An image without any contrast runs
    yields only the border lines.

    Args:
        buffer: Decoded image
        threshold: Luminance contrast threshold (R+G+B scale, 0-765)
        pos_tolerance: Max position difference for clustering
        gap_tolerance: Max gap when joining segments within a cluster

    Returns:
        Grid with horizontal and vertical lines sorted by position
    """
    width, height = buffer.width, buffer.height

    raw_h, raw_v = scan_segments(buffer, threshold)
    h_segments = cluster_segments(raw_h, pos_tolerance, gap_tolerance)
    v_segments = cluster_segments(raw_v, pos_tolerance, gap_tolerance)
    logger.debug("segments: %d horizontal -> %d clustered, %d vertical -> %d clustered",
                 len(raw_h), len(h_segments), len(raw_v), len(v_segments))

    horizontal = _add_borders(_full_span_lines(h_segments, width), height, width)
    vertical = _add_borders(_full_span_lines(v_segments, height), width, height)
    logger.debug("detected grid: %d horizontal, %d vertical lines on %dx%d",
                 len(horizontal), len(vertical), width, height)

    return Grid(horizontal, vertical)
