"""
Tests for the high-level crop.

Organized into:
  1. Selection ranges and strips
  2. Grid remapping
  3. Compositing
  4. End-to-end crops
"""

import torch
import pytest
from tablefold.carving import (crop, draw_operations, merge_close_lines, remap_grid,
                               selection_ranges, strip_bounds)
from tablefold.editing import erase
from tablefold.lattice import cell_at, resolve_cells
from tablefold.geometry import Grid, GridLine, Rect
from tablefold.pixels import PixelBuffer
from tablefold.seam import DrawOperation

from conftest import make_white, checker_rows, full_grid


def row_ramp(W, H):
    """Each row filled with its own index, so rows can be traced through a crop."""
    data = make_white(W, H)
    data[:3] = torch.arange(H, dtype=torch.uint8).view(1, H, 1)
    return data


# ---------------------------------------------------------------------------
# 1. Selection ranges and strips
# ---------------------------------------------------------------------------

class TestSelectionRanges:
    def test_modes_pick_axes(self):
        sels = [Rect(10, 20, 5, 5)]
        assert selection_ranges(sels, 'horizontal', 100, 100) == ([], [(20, 25)])
        assert selection_ranges(sels, 'vertical', 100, 100) == ([(10, 15)], [])
        assert selection_ranges(sels, 'both', 100, 100) == ([(10, 15)], [(20, 25)])

    def test_overlapping_selections_merge(self):
        sels = [Rect(10, 0, 20, 5), Rect(25, 0, 10, 5)]
        x_ranges, _ = selection_ranges(sels, 'vertical', 100, 100)
        assert x_ranges == [(10, 35)]

    def test_negative_size_is_normalized(self):
        x_ranges, y_ranges = selection_ranges([Rect(40, 60, -20, -30)], 'both', 100, 100)
        assert x_ranges == [(20, 40)]
        assert y_ranges == [(30, 60)]

    def test_clipped_to_canvas(self):
        x_ranges, y_ranges = selection_ranges([Rect(90, -10, 50, 20)], 'both', 100, 100)
        assert x_ranges == [(90, 100)]
        assert y_ranges == [(0, 10)]

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            selection_ranges([Rect(0, 0, 1, 1)], 'diagonal', 10, 10)


class TestStripBounds:
    def test_strips_between_lines(self):
        assert strip_bounds([50, 100.0, 0], 150) == [(0, 50), (50, 100), (100, 150)]

    def test_no_lines_is_one_strip(self):
        assert strip_bounds([], 80) == [(0, 80)]


# ---------------------------------------------------------------------------
# 2. Grid remapping
# ---------------------------------------------------------------------------

class TestRemapGrid:
    def test_line_inside_removed_range_is_dropped(self):
        grid = Grid([GridLine(20, 1, 0, 100), GridLine(50, 1, 0, 100),
                     GridLine(80, 1, 0, 100)], [])
        remapped = remap_grid(grid, [], [(40, 60)])
        assert [l.pos for l in remapped.horizontal] == [20, 60]

    def test_lines_bounding_removed_range_merge(self):
        grid = Grid([GridLine(40, 1, 0, 100), GridLine(60, 1, 0, 100)], [])
        remapped = remap_grid(grid, [], [(40, 60)])
        assert remapped.horizontal == (GridLine(40, 1, 0, 100),)

    def test_merged_line_takes_union_of_spans(self):
        grid = Grid([GridLine(40, 1, 0, 50), GridLine(60, 1, 50, 100)], [])
        remapped = remap_grid(grid, [], [(40, 60)])
        assert remapped.horizontal == (GridLine(40, 1, 0, 100),)

    def test_disjoint_spans_stay_fragments(self):
        grid = Grid([GridLine(40, 1, 0, 30), GridLine(60, 1, 60, 100)], [])
        remapped = remap_grid(grid, [], [(40, 60)])
        assert remapped.horizontal == (GridLine(40, 1, 0, 30), GridLine(40, 1, 60, 100))

    def test_remapped_positions_stay_apart(self):
        grid = full_grid(160, 120, [0, 20, 80, 140, 160], [0, 20, 60, 100, 120])
        remapped = remap_grid(grid, [(20, 80)], [(20, 60), (100, 120)])
        for axis in ('horizontal', 'vertical'):
            positions = remapped.positions(axis)
            assert all(b - a > 1 for a, b in zip(positions, positions[1:]))
            assert len(remapped.lines(axis)) == len(positions)

    def test_spans_shrink_with_cross_ranges(self):
        grid = Grid([], [GridLine(10, 1, 0, 100)])
        remapped = remap_grid(grid, [], [(40, 60)])
        assert remapped.vertical == (GridLine(10, 1, 0, 80),)

    def test_collapsed_span_is_dropped(self):
        grid = Grid([GridLine(10, 1, 40, 60)], [])
        assert remap_grid(grid, [(30, 70)], []).horizontal == ()


class TestMergeCloseLines:
    def test_one_pixel_apart_merge_to_first(self):
        lines = [GridLine(21, 1, 0, 10), GridLine(20, 2, 5, 30)]
        assert merge_close_lines(lines) == [GridLine(20, 2, 0, 30)]

    def test_two_pixels_apart_are_kept(self):
        lines = [GridLine(20, 1, 0, 10), GridLine(22, 1, 0, 10)]
        assert merge_close_lines(lines) == lines

    def test_empty(self):
        assert merge_close_lines([]) == []


# ---------------------------------------------------------------------------
# 3. Compositing
# ---------------------------------------------------------------------------

class TestDrawOperations:
    def test_unscaled_runs_are_copied_exactly(self):
        src = row_ramp(4, 10)
        dest = torch.zeros(4, 6, 4, dtype=torch.uint8)
        draw_operations(src, dest, [DrawOperation(0, 2, 2.0), DrawOperation(6, 4, 4.0)], (0, 4))
        assert dest[0, :, 0].tolist() == [0, 1, 6, 7, 8, 9]

    def test_scaled_run_fills_destination(self):
        src = torch.full((4, 10, 3), 200, dtype=torch.uint8)
        dest = torch.zeros(4, 5, 3, dtype=torch.uint8)
        draw_operations(src, dest, [DrawOperation(0, 10, 5.0)], (0, 3))
        assert (dest == 200).all()

    def test_only_strip_is_written(self):
        src = torch.full((4, 4, 6), 9, dtype=torch.uint8)
        dest = torch.zeros(4, 4, 6, dtype=torch.uint8)
        draw_operations(src, dest, [DrawOperation(0, 4, 4.0)], (2, 4))
        assert (dest[:, :, 2:4] == 9).all()
        assert (dest[:, :, :2] == 0).all()
        assert (dest[:, :, 4:] == 0).all()


# ---------------------------------------------------------------------------
# 4. End-to-end crops
# ---------------------------------------------------------------------------

TABLE_GRID = full_grid(160, 120, [0, 20, 80, 140, 160], [0, 20, 60, 100, 120])


class TestCrop:
    @pytest.mark.parametrize("smart", [True, False])
    @pytest.mark.parametrize("mode,size", [
        ('horizontal', (160, 80)),
        ('vertical', (135, 120)),
        ('both', (135, 80)),
    ])
    def test_output_size(self, table_image, mode, size, smart):
        sels = [Rect(10, 10, 20, 30), Rect(25, 50, 10, 10)]
        result = crop(table_image, sels, TABLE_GRID, mode=mode, smart=smart)
        assert (result.width, result.height) == size
        assert (result.raster.width, result.raster.height) == size

    def test_physical_cut_stitches_rows(self):
        data = row_ramp(50, 60)
        result = crop(PixelBuffer(data), [Rect(0, 10, 50, 10)], mode='horizontal',
                      smart=False)
        expected = torch.cat([data[:, :10], data[:, 20:]], dim=1)
        assert torch.equal(result.raster.data, expected)

    def test_smart_crop_keeps_rules(self, table_image):
        result = crop(table_image, [Rect(30, 30, 20, 10)], TABLE_GRID, mode='horizontal')
        assert result.height == 110
        pixels = result.raster.data
        # The rule at y=60 moves up to y=50 intact
        assert (pixels[:3, 50:52, 50] == 0).all()
        assert (pixels[:3, 20:22, 50] == 0).all()
        assert (pixels[:3, 40, 50] == 255).all()
        assert result.grid.positions('horizontal') == [0, 20, 50, 90, 110]

    def test_busy_cell_is_squished_to_size(self):
        grid = full_grid(100, 100, [0, 100], [0, 100])
        result = crop(PixelBuffer(checker_rows(100, 100)), [Rect(0, 40, 100, 20)], grid,
                      mode='horizontal')
        assert result.raster.data.shape == (4, 80, 100)

    def test_columns_only(self):
        result = crop(PixelBuffer(make_white(100, 100)), [Rect(40, 60, -20, -30)],
                      mode='vertical')
        assert (result.width, result.height) == (80, 100)

    def test_crops_compose(self, table_image):
        first = crop(table_image, [Rect(30, 30, 20, 10)], TABLE_GRID, mode='both')
        second = crop(first.raster, [Rect(0, 70, 10, 10)], first.grid, mode='horizontal')
        assert (second.width, second.height) == (first.width, first.height - 10)

    def test_erase_after_cell_crop_merges_cells(self, table_image):
        """Folding a clicked cell away leaves one line where its two borders met."""
        cells = resolve_cells(TABLE_GRID, 160, 120)
        result = crop(table_image, [cell_at(cells, 50, 40)], TABLE_GRID, mode='horizontal')
        assert result.grid.positions('horizontal') == [0, 20, 60, 80]
        assert len(result.grid.horizontal) == 4

        before = resolve_cells(result.grid, result.width, result.height)
        edited = erase(result.grid, (50, 20), True, 5)
        after = resolve_cells(edited, result.width, result.height)
        assert len(before) == 12
        assert len(after) == 8

    def test_no_grid_gives_no_grid(self):
        result = crop(PixelBuffer(make_white(20, 20)), [Rect(0, 0, 5, 5)])
        assert result.grid is None
        assert (result.width, result.height) == (15, 15)

    def test_no_selection_is_no_change(self, table_image):
        assert crop(table_image, [], TABLE_GRID) is None

    def test_invalid_mode(self, table_image):
        with pytest.raises(ValueError):
            crop(table_image, [Rect(0, 0, 5, 5)], TABLE_GRID, mode='diagonal')
