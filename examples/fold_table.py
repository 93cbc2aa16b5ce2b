"""
Fold a table screenshot from the command line.

Detects the grid, applies any eraser strokes, then removes the selected
rows/columns and writes the result.

Example:
    python fold_table.py ../output/table_simple.png ../output/folded.png \
        --select 0,60,480,58 --erase 120,30 --mode horizontal
"""

import sys
import logging
import argparse
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from tablefold import (Rect, decode, detect_grid, erase, eraser_threshold, crop,
                       resolve_cells, save_image, selection_from_drag)


def parse_numbers(text, count):
    values = [float(v) for v in text.split(',')]
    if len(values) != count:
        raise argparse.ArgumentTypeError(f"Expected {count} comma-separated numbers, got {text!r}")
    return values


def main():
    parser = argparse.ArgumentParser(description="Fold rows/columns out of a table screenshot.")
    parser.add_argument('input', help="Source image")
    parser.add_argument('output', help="Where to write the folded image")
    parser.add_argument('--select', action='append', default=[],
                        type=lambda s: parse_numbers(s, 4), metavar='X,Y,W,H',
                        help="Drag rectangle; a click (tiny drag) selects the cell under it")
    parser.add_argument('--erase', action='append', default=[],
                        type=lambda s: parse_numbers(s, 2), metavar='X,Y',
                        help="Eraser click on a grid line")
    parser.add_argument('--whole-line', action='store_true',
                        help="Eraser removes entire lines instead of one segment")
    parser.add_argument('--mode', choices=['horizontal', 'vertical', 'both'], default='both')
    parser.add_argument('--no-smart', action='store_true',
                        help="Cut the selected ranges without protecting cell content")
    parser.add_argument('--verbose', action='store_true')
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    image = decode(args.input)
    print(f"Loaded {args.input}: {image.width}x{image.height}")

    grid = detect_grid(image)
    print(f"Detected {len(grid.horizontal)} horizontal and {len(grid.vertical)} vertical lines")

    threshold = eraser_threshold(1.0)
    for x, y in args.erase:
        edited = erase(grid, (x, y), args.whole_line, threshold)
        if edited is None:
            print(f"  Eraser at ({x:g}, {y:g}) missed every line")
        else:
            grid = edited

    cells = resolve_cells(grid, image.width, image.height)
    print(f"Resolved {len(cells)} cells")

    selections = []
    for x, y, w, h in args.select:
        sel = selection_from_drag(Rect(x, y, w, h), cells)
        if sel is not None:
            selections.append(sel)

    result = crop(image, selections, grid, mode=args.mode, smart=not args.no_smart)
    if result is None:
        print("Nothing selected; writing the input unchanged")
        save_image(image, args.output)
        return

    save_image(result.raster, args.output)
    print(f"Saved: {args.output} ({result.width}x{result.height})")


if __name__ == '__main__':
    main()
