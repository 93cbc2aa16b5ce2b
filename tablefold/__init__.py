"""
Content-aware folding of table screenshots.

Detects a table's line grid, resolves merged cells, lets the grid be
edited with an eraser, and removes selected rows/columns while keeping
the grid intact and avoiding cuts through cell content.

For debug logging:
    import logging
    logging.basicConfig(level=logging.DEBUG)
    logging.getLogger("tablefold").setLevel(logging.DEBUG)
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .pixels import PixelBuffer, InputUnavailable, decode, encode_png, save_image
from .geometry import Grid, GridLine, Rect, Segment, merge_ranges, shift_coordinate
from .detection import detect_grid, scan_segments, cluster_segments
from .lattice import resolve_cells, cell_at, toggle_selection, selection_from_drag
from .editing import EraserTarget, find_eraser_target, erase, eraser_threshold
from .energy import pixel_energy, block_energy_profile, safe_mask
from .seam import DrawOperation, plan_axis, keep_operations
from .carving import (CropResult, crop, merge_close_lines, remap_grid, selection_ranges,
                      strip_bounds)

__all__ = [
    'PixelBuffer',
    'InputUnavailable',
    'decode',
    'encode_png',
    'save_image',
    'Grid',
    'GridLine',
    'Rect',
    'Segment',
    'merge_ranges',
    'shift_coordinate',
    'detect_grid',
    'scan_segments',
    'cluster_segments',
    'resolve_cells',
    'cell_at',
    'toggle_selection',
    'selection_from_drag',
    'EraserTarget',
    'find_eraser_target',
    'erase',
    'eraser_threshold',
    'pixel_energy',
    'block_energy_profile',
    'safe_mask',
    'DrawOperation',
    'plan_axis',
    'keep_operations',
    'CropResult',
    'crop',
    'remap_grid',
    'merge_close_lines',
    'selection_ranges',
    'strip_bounds',
]
