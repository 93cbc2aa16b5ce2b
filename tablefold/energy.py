"""
Energy functions for content-aware row/column removal.

The energy of a region measures how much visible structure it holds.
Low-energy stretches (blank cell padding) can be cut out without any
visible change; high-energy stretches (text, rules) must be kept or squished.

Energy is the mean L1 colour difference |dR|+|dG|+|dB| between adjacent
pixels, on the 0-255 scale per channel.
"""

from typing import List, Tuple

import torch

from .pixels import PixelBuffer

BLOCK_SIZE = 2
SAMPLE_STRIDE = 2
SAFE_ENERGY = 5.0


def _oriented_rgb(buffer: PixelBuffer, direction: str) -> torch.Tensor:
    """uint8 RGB view with the removal axis on dim 1; no copy is made.

    'horizontal' removes rows, so rows stay on dim 1; 'vertical' removes
    columns, so the image is transposed.
    """
    rgb = buffer.data[:3]
    if direction == 'horizontal':
        return rgb
    elif direction == 'vertical':
        return rgb.transpose(1, 2)
    else:
        raise ValueError(f"Invalid direction: {direction}")


def pixel_energy(buffer: PixelBuffer) -> torch.Tensor:
    """
    Per-pixel colour gradient energy.

    E(y, x) = |I(y, x+1) - I(y, x)|_1 + |I(y+1, x) - I(y, x)|_1
    with the last row/column using zero forward difference.

    Args:
        buffer: Image

    Returns:
        Energy map (H, W), float32
    """
    rgb = buffer.data[:3].to(torch.float32)
    energy = torch.zeros(buffer.height, buffer.width)
    energy[:, :-1] += (rgb[:, :, 1:] - rgb[:, :, :-1]).abs().sum(dim=0)
    energy[:-1, :] += (rgb[:, 1:, :] - rgb[:, :-1, :]).abs().sum(dim=0)
    return energy


def block_energy_profile(buffer: PixelBuffer, direction: str,
                         along: Tuple[int, int], cross: Tuple[int, int],
                         block_size: int = BLOCK_SIZE,
                         stride: int = SAMPLE_STRIDE) -> List[float]:
    """
    Mean energy of consecutive blocks along the removal axis.

    The range `along` is split into blocks of `block_size` lines. Each block
    is scored over the cross-axis window `cross` only, sampling every
    `stride`-th pixel across it. A block's pairs are:
      - along-axis pairs touching any of its lines, including the pair
        straddling each block edge, so an edge at the boundary counts;
      - cross-axis pairs on the block's first line.

    Args:
        buffer: Image
        direction: 'horizontal' (removing rows) or 'vertical' (removing columns)
        along: (start, end) pixel range on the removal axis
        cross: (start, end) pixel range on the perpendicular axis
        block_size: Lines per block
        stride: Cross-axis sampling stride

    Returns:
        One energy value per block; a block with no pairs scores 0.0
    """
    rgb = _oriented_rgb(buffer, direction)
    length, span = rgb.shape[1], rgb.shape[2]
    a0, a1 = max(0, along[0]), min(length, along[1])
    c0, c1 = max(0, cross[0]), min(span, cross[1])
    if a1 <= a0 or c1 <= c0:
        return []

    # One extra line on each side so edge pairs at the range boundary are seen
    lo, hi = max(0, a0 - 1), min(length, a1 + 1)
    # Cast only the window; the full image is never copied
    region = rgb[:, lo:hi, c0:c1].to(torch.int32)

    along_diff = (region[:, 1:] - region[:, :-1]).abs().sum(dim=0)[:, ::stride]
    cross_diff = (region[:, :, 1:] - region[:, :, :-1]).abs().sum(dim=0)[:, ::stride]
    along_sums = along_diff.sum(dim=1).tolist()
    cross_sums = cross_diff.sum(dim=1).tolist()
    along_cols = along_diff.shape[1]
    cross_cols = cross_diff.shape[1]

    profile = []
    for q in range(a0, a1, block_size):
        q_end = min(q + block_size, a1)

        # Pairs (r, r+1) with r in [q-1, q_end-1] that lie inside the region
        r_first = max(q - 1, lo)
        r_last = min(q_end - 1, hi - 2)
        total = 0.0
        count = 0
        if r_last >= r_first:
            total += sum(along_sums[r_first - lo:r_last - lo + 1])
            count += (r_last - r_first + 1) * along_cols

        total += cross_sums[q - lo]
        count += cross_cols

        profile.append(total / count if count else 0.0)

    return profile


def safe_mask(profile: List[float], length: int, block_size: int = BLOCK_SIZE,
              threshold: float = SAFE_ENERGY) -> List[bool]:
    """Expand a block profile to per-pixel safety flags.

    Args:
        profile: Block energies from `block_energy_profile`
        length: Number of pixels the profile covers
        block_size: Lines per block
        threshold: Blocks with energy strictly below this are safe

    Returns:
        List of `length` booleans
    """
    return [profile[i // block_size] < threshold for i in range(length)]


def safe_runs(mask: List[bool], offset: int = 0) -> List[Tuple[int, int]]:
    """Contiguous safe runs as (start, end) ranges, largest first.

    Ties keep their original order along the axis.
    """
    runs = []
    start = None
    for i, safe in enumerate(mask):
        if safe and start is None:
            start = i
        elif not safe and start is not None:
            runs.append((offset + start, offset + i))
            start = None
    if start is not None:
        runs.append((offset + start, offset + len(mask)))
    return sorted(runs, key=lambda r: r[0] - r[1])
