"""
Create synthetic table screenshots for trying out the fold pipeline.

Writes table_simple.png (a plain 4x5 table) and table_merged.png (same
table with a header row spanning all columns) into ../output/.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import torch

from tablefold import PixelBuffer, save_image


def draw_text_block(data, x, y, w, h, seed):
    """Fake a line of text: a band of short dark dashes."""
    gen = torch.Generator().manual_seed(seed)
    widths = torch.randint(2, 7, (w // 4,), generator=gen)
    cursor = x
    for dash in widths.tolist():
        if cursor + dash > x + w:
            break
        data[:3, y:y + h, cursor:cursor + dash] = 40
        cursor += dash + 2


def create_table_image(width=480, height=300, cols=4, rows=5, rule=2,
                       merged_header=False):
    """Create a table with grey text blocks in every cell.

    Args:
        width, height: Image dimensions
        cols, rows: Number of cells across and down
        rule: Thickness of the grid lines in pixels
        merged_header: Leave out the vertical rules in the first row

    Returns:
        PixelBuffer
    """
    data = torch.full((4, height, width), 255, dtype=torch.uint8)
    xs = [round(i * (width - rule) / cols) for i in range(cols + 1)]
    ys = [round(i * (height - rule) / rows) for i in range(rows + 1)]

    for r in range(rows):
        for c in range(cols):
            if merged_header and r == 0 and c > 0:
                continue
            cell_w = (xs[-1] - xs[0]) if merged_header and r == 0 else xs[c + 1] - xs[c]
            draw_text_block(data, xs[c] + 8, ys[r] + 10, max(8, cell_w // 2), 6,
                            seed=r * cols + c)

    for y in ys:
        data[:3, y:y + rule, :] = 0
    for x in xs:
        y0 = ys[1] if merged_header and 0 < x < xs[-1] else 0
        data[:3, y0:, x:x + rule] = 0

    return PixelBuffer(data)


def main():
    out_dir = Path(__file__).resolve().parent.parent / 'output'
    out_dir.mkdir(exist_ok=True)

    print("Creating simple table...")
    save_image(create_table_image(), out_dir / 'table_simple.png')
    print(f"Saved: {out_dir / 'table_simple.png'}")

    print("Creating table with merged header...")
    save_image(create_table_image(merged_header=True), out_dir / 'table_merged.png')
    print(f"Saved: {out_dir / 'table_merged.png'}")


if __name__ == '__main__':
    main()
