#!/usr/bin/env python3
"""
Render grown layouts to 8-bit pixels, save them, and score how well similar
colors cluster.
"""

import numpy as np
from PIL import Image
from scipy.ndimage import label

from color_cube import color_base_to_color


BACKGROUND = (0, 0, 0)  # Pixel value for cells that never got a color
COARSE_LEVELS = 2  # Coherence groups per channel (2 → 8 octants)


def render_grid(grid: np.ndarray, color_size: int) -> np.ndarray:
    """
    Convert a grid of color bases to RGB pixels.

    Args:
        grid: (h, w, 3) integer color bases, -1 marks an empty cell
        color_size: Levels per channel

    Returns:
        (h, w, 3) uint8 array; empty cells get BACKGROUND
    """
    filled = grid[:, :, 0] >= 0
    pixels = np.empty(grid.shape, dtype=np.uint8)
    pixels[:] = BACKGROUND
    pixels[filled] = color_base_to_color(grid[filled], color_size)
    return pixels


def save_layout(pixels: np.ndarray, output_path: str) -> None:
    """Write rendered pixels as a PNG."""
    Image.fromarray(pixels).save(output_path)


def missing_cells(grid: np.ndarray) -> int:
    """Number of cells that were never assigned."""
    return int(np.count_nonzero(grid[:, :, 0] < 0))


def neighbor_distance(pixels: np.ndarray) -> float:
    """Mean RGB distance between each cell and its right and lower torus neighbors."""
    px = pixels.astype(np.float64)
    right = np.linalg.norm(px - np.roll(px, -1, axis=1), axis=2)
    down = np.linalg.norm(px - np.roll(px, -1, axis=0), axis=2)
    return float((right.mean() + down.mean()) / 2)


def layout_coherence(grid: np.ndarray, color_size: int) -> float:
    """
    How contiguous each coarse color group is.

    Colors are split into COARSE_LEVELS³ groups by channel range. For each
    group the score is the share of its cells in the largest 8-connected blob.
    Blobs are not joined across the torus seam.

    Returns:
        Mean score over non-empty groups (1.0 = every group is one blob)
    """
    filled = grid[:, :, 0] >= 0
    coarse = grid.astype(np.int64) * COARSE_LEVELS // color_size
    group = coarse[:, :, 0] + coarse[:, :, 1] * COARSE_LEVELS + coarse[:, :, 2] * COARSE_LEVELS ** 2

    structure = np.ones((3, 3), dtype=int)
    scores = []
    for g in range(COARSE_LEVELS ** 3):
        mask = filled & (group == g)
        count = int(mask.sum())
        if count == 0:
            continue
        labeled, num_blobs = label(mask, structure=structure)
        blob_sizes = np.bincount(labeled.ravel())[1:]
        scores.append(int(np.max(blob_sizes)) / count)

    return float(np.mean(scores)) if scores else 0.0
