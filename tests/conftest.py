"""Shared test fixtures for the tablefold test suite."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import torch
import pytest
from tablefold.geometry import Grid, GridLine
from tablefold.pixels import PixelBuffer


def make_white(W, H):
    """Opaque white (4, H, W) uint8 tensor."""
    return torch.full((4, H, W), 255, dtype=torch.uint8)


def draw_hline(data, y, thickness=2, x0=0, x1=None, value=0):
    """Paint rows y..y+thickness over columns x0..x1."""
    data[:3, y:y + thickness, x0:x1] = value
    return data


def draw_vline(data, x, thickness=2, y0=0, y1=None, value=0):
    """Paint columns x..x+thickness over rows y0..y1."""
    data[:3, y0:y1, x:x + thickness] = value
    return data


def make_table_image(W, H, xs, ys, thickness=2):
    """White canvas with full-span black rules at the given positions."""
    data = make_white(W, H)
    for y in ys:
        draw_hline(data, y, thickness)
    for x in xs:
        draw_vline(data, x, thickness)
    return PixelBuffer(data)


def checker_columns(W, H):
    """Alternating 1px black and white columns."""
    data = make_white(W, H)
    data[:3, :, ::2] = 0
    return data


def checker_rows(W, H):
    """Alternating 1px black and white rows."""
    data = make_white(W, H)
    data[:3, ::2, :] = 0
    return data


def full_grid(W, H, xs, ys):
    """Grid of full-span lines at the given positions."""
    return Grid(
        [GridLine(pos=y, thickness=1, start=0, end=W) for y in ys],
        [GridLine(pos=x, thickness=1, start=0, end=H) for x in xs],
    )


@pytest.fixture
def three_column_grid():
    """150x100 canvas, vertical rules at 50 and 100, border lines all round."""
    return full_grid(150, 100, [0, 50, 100, 150], [0, 100])


@pytest.fixture
def table_image():
    """160x120 table: 2px rules at x=20, 80, 140 and y=20, 60, 100."""
    return make_table_image(160, 120, [20, 80, 140], [20, 60, 100])
