"""Tests for removal planning."""

import pytest
from tablefold.geometry import Rect
from tablefold.pixels import PixelBuffer
from tablefold.seam import DrawOperation, keep_operations, plan_axis, planned_length

from conftest import make_white, checker_columns, checker_rows


def white(W=100, H=100):
    return PixelBuffer(make_white(W, H))


class TestKeepOperations:
    def test_stitches_around_removed_range(self):
        ops = keep_operations(100, [(40, 60)])
        assert ops == [DrawOperation(0, 40, 40.0), DrawOperation(60, 40, 40.0)]

    def test_nothing_removed(self):
        assert keep_operations(10, []) == [DrawOperation(0, 10, 10.0)]

    def test_range_at_edges(self):
        ops = keep_operations(100, [(0, 10), (90, 100)])
        assert ops == [DrawOperation(10, 80, 80.0)]


class TestPlanAxisFallback:
    def test_not_smart_is_physical_cut(self):
        cells = [Rect(0, 0, 100, 100)]
        ops = plan_axis(100, [(40, 60)], cells, (0, 100), False, white())
        assert ops == keep_operations(100, [(40, 60)])

    def test_no_cells_is_physical_cut(self):
        ops = plan_axis(100, [(40, 60)], [], (0, 100), True, white())
        assert ops == keep_operations(100, [(40, 60)])


class TestSmartPlanning:
    def test_blank_cell_is_cut_from_the_middle(self):
        ops = plan_axis(100, [(40, 60)], [Rect(0, 0, 100, 100)], (0, 100), True, white())
        assert ops == [DrawOperation(0, 40, 40.0), DrawOperation(60, 40, 40.0)]
        assert planned_length(ops) == 80

    def test_busy_cell_is_squished(self):
        buf = PixelBuffer(checker_rows(100, 100))
        ops = plan_axis(100, [(40, 60)], [Rect(0, 0, 100, 100)], (0, 100), True, buf)
        assert len(ops) == 1
        assert (ops[0].src_start, ops[0].src_len) == (0, 100)
        assert ops[0].dest_len == pytest.approx(80.0)

    def test_content_rows_are_not_cut(self):
        """Text-like rows 10..29 stay; the cut lands in the big blank run below."""
        data = make_white(100, 100)
        data[:3, 10:30:2, :] = 0
        ops = plan_axis(100, [(40, 60)], [Rect(0, 0, 100, 100)], (0, 100), True,
                        PixelBuffer(data))
        assert ops == [DrawOperation(0, 55, 55.0), DrawOperation(75, 25, 25.0)]

    def test_untouched_cell_is_drawn_unscaled(self):
        data = make_white(100, 100)
        data[:3, 0:50:2, :] = 0
        cells = [Rect(0, 0, 100, 50), Rect(0, 50, 100, 50)]
        ops = plan_axis(100, [(10, 20)], cells, (0, 100), True, PixelBuffer(data))
        assert len(ops) == 2
        assert (ops[0].src_start, ops[0].src_len) == (0, 50)
        assert ops[0].dest_len == pytest.approx(40.0)
        assert ops[1] == DrawOperation(50, 50, 50.0)

    def test_request_outside_cells_is_cut(self):
        ops = plan_axis(100, [(60, 70)], [Rect(0, 0, 100, 50)], (0, 100), True, white())
        assert ops == [DrawOperation(0, 50, 50.0), DrawOperation(50, 10, 10.0),
                       DrawOperation(70, 30, 30.0)]
        assert planned_length(ops) == 90

    def test_energy_only_counts_inside_the_strip(self):
        data = make_white(100, 100)
        data[:3, ::2, :50] = 0
        buf = PixelBuffer(data)
        cells = [Rect(0, 0, 100, 100)]

        right = plan_axis(100, [(40, 60)], cells, (50, 100), True, buf)
        assert right == [DrawOperation(0, 40, 40.0), DrawOperation(60, 40, 40.0)]

        left = plan_axis(100, [(40, 60)], cells, (0, 50), True, buf)
        assert len(left) == 1
        assert left[0].dest_len == pytest.approx(80.0)

    def test_enclosed_cell_owns_its_rows(self):
        """An L-shaped merged cell's box covers the cell in its notch; the
        notch cell still owns its own rows and pays its own quota."""
        data = make_white(100, 100)
        data[:3, 50:100:2, 50:] = 0
        cells = [Rect(0, 0, 100, 100), Rect(50, 50, 50, 50)]
        ops = plan_axis(100, [(60, 70)], cells, (50, 100), True, PixelBuffer(data))
        assert ops[0] == DrawOperation(0, 50, 50.0)
        assert (ops[1].src_start, ops[1].src_len) == (50, 50)
        assert ops[1].dest_len == pytest.approx(40.0)
        assert len(ops) == 2

    def test_cell_outside_strip_is_ignored(self):
        cells = [Rect(0, 0, 40, 100)]
        ops = plan_axis(100, [(40, 60)], cells, (50, 100), True, white())
        assert ops == keep_operations(100, [(40, 60)])

    def test_columns(self):
        busy = PixelBuffer(checker_columns(100, 100))
        ops = plan_axis(100, [(40, 60)], [Rect(0, 0, 100, 100)], (0, 100), True,
                        busy, direction='vertical')
        assert len(ops) == 1
        assert ops[0].dest_len == pytest.approx(80.0)

        ops = plan_axis(100, [(40, 60)], [Rect(0, 0, 100, 100)], (0, 100), True,
                        white(), direction='vertical')
        assert planned_length(ops) == 80
        assert all(op.dest_len == op.src_len for op in ops)
