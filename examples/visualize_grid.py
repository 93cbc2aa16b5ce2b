"""
Visualize grid detection, cell resolution and energy on a table image.

Shows:
1. Detected grid lines over the image
2. Resolved cells, each outlined in its own colour
3. Per-pixel energy (dark = safe to cut)
4. Before/after of a smart fold of one row of cells
"""

import sys
from pathlib import Path

import matplotlib.pyplot as plt
import matplotlib.patches as patches

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from tablefold import crop, decode, detect_grid, pixel_energy, resolve_cells

from create_test_images import create_table_image


def draw_grid(ax, grid, color='red'):
    for line in grid.horizontal:
        ax.plot([line.start, line.end], [line.pos, line.pos], color=color, linewidth=1.2)
    for line in grid.vertical:
        ax.plot([line.pos, line.pos], [line.start, line.end], color=color, linewidth=1.2)


def visualize(image, output_path=None):
    """
    Plot the fold pipeline on one image.

    Args:
        image: PixelBuffer
        output_path: Where to save the figure; shown interactively if None
    """
    grid = detect_grid(image)
    cells = resolve_cells(grid, image.width, image.height)
    energy = pixel_energy(image)
    print(f"Grid: {len(grid.horizontal)} horizontal, {len(grid.vertical)} vertical lines")
    print(f"Cells: {len(cells)}")

    fig, axes = plt.subplots(1, 4, figsize=(20, 5))
    rgba = image.to_numpy()

    ax = axes[0]
    ax.imshow(rgba)
    draw_grid(ax, grid)
    ax.set_title('Detected Grid', fontsize=11, fontweight='bold')

    ax = axes[1]
    ax.imshow(rgba)
    cmap = plt.get_cmap('tab20')
    for i, cell in enumerate(cells):
        ax.add_patch(patches.Rectangle((cell.x, cell.y), cell.w, cell.h, fill=True,
                                       alpha=0.3, facecolor=cmap(i % 20),
                                       edgecolor='black', linewidth=0.5))
    ax.set_title(f'{len(cells)} Cells', fontsize=11, fontweight='bold')

    ax = axes[2]
    im = ax.imshow(energy.numpy(), cmap='hot')
    ax.set_title('Energy', fontsize=11, fontweight='bold')
    plt.colorbar(im, ax=ax, fraction=0.046, pad=0.04)

    # Fold the second row of cells away
    ax = axes[3]
    row = sorted({c.y for c in cells})
    if len(row) > 1:
        target = [c for c in cells if c.y == row[1]]
        result = crop(image, target, grid, mode='horizontal')
        ax.imshow(result.raster.to_numpy())
        draw_grid(ax, result.grid, color='lime')
        ax.set_title(f'Folded ({result.width}x{result.height})', fontsize=11, fontweight='bold')
    else:
        ax.set_title('Nothing to fold', fontsize=11, fontweight='bold')

    for ax in axes:
        ax.axis('off')
    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches='tight')
        print(f"Saved: {output_path}")
    else:
        plt.show()
    plt.close()


def main():
    out_dir = Path(__file__).resolve().parent.parent / 'output'
    out_dir.mkdir(exist_ok=True)

    if len(sys.argv) > 1:
        image = decode(sys.argv[1])
    else:
        print("No image given, using a synthetic table with a merged header")
        image = create_table_image(merged_header=True)

    visualize(image, out_dir / 'grid_visualization.png')


if __name__ == '__main__':
    main()
