import numpy as np
import pytest
from PIL import Image

from render_layout import (
    BACKGROUND, layout_coherence, missing_cells, neighbor_distance, render_grid, save_layout,
)


def test_render_scales_bases_and_keeps_background():
    grid = np.array([[[0, 1, 2], [3, 3, 3]],
                     [[-1, -1, -1], [2, 0, 1]]], dtype=np.int16)

    pixels = render_grid(grid, 4)

    assert pixels.dtype == np.uint8
    assert pixels[0, 0].tolist() == [0, 85, 170]
    assert pixels[0, 1].tolist() == [255, 255, 255]
    assert pixels[1, 0].tolist() == list(BACKGROUND)
    assert pixels[1, 1].tolist() == [170, 0, 85]


def test_render_truncates():
    grid = np.array([[[1, 5, 7]]], dtype=np.int16)
    # 255 / 8 = 31.875 per level
    assert render_grid(grid, 9)[0, 0].tolist() == [31, 159, 223]


def test_missing_cells():
    grid = np.zeros((3, 3, 3), dtype=np.int16)
    grid[1, 2] = -1
    grid[0, 0] = -1
    assert missing_cells(grid) == 2


def test_neighbor_distance():
    flat = np.full((4, 4, 3), 120, dtype=np.uint8)
    assert neighbor_distance(flat) == 0.0

    stripes = np.zeros((1, 2, 3), dtype=np.uint8)
    stripes[0, 1, 0] = 255
    # right neighbors differ by 255, the single row is its own lower neighbor
    assert neighbor_distance(stripes) == pytest.approx(127.5)


def test_coherence_of_contiguous_groups():
    grid = np.array([[[0, 0, 0], [1, 0, 0], [0, 1, 0], [1, 1, 0]],
                     [[0, 0, 1], [1, 0, 1], [0, 1, 1], [1, 1, 1]]], dtype=np.int16)
    assert layout_coherence(grid, 2) == 1.0


def test_coherence_of_split_group():
    grid = np.array([[[0, 0, 0], [1, 1, 1], [0, 0, 0]]], dtype=np.int16)
    # group (0,0,0) splits in two blobs of 1 → 0.5, group (1,1,1) → 1.0
    assert layout_coherence(grid, 2) == pytest.approx(0.75)


def test_coherence_ignores_empty_cells():
    grid = np.full((2, 2, 3), -1, dtype=np.int16)
    assert layout_coherence(grid, 4) == 0.0
    grid[0, 0] = (3, 3, 3)
    assert layout_coherence(grid, 4) == 1.0


def test_save_layout_writes_png(tmp_path):
    pixels = np.zeros((8, 8, 3), dtype=np.uint8)
    pixels[2, 5] = (255, 85, 0)
    path = tmp_path / "layout.png"

    save_layout(pixels, str(path))

    with Image.open(path) as img:
        assert img.mode == 'RGB'
        assert img.size == (8, 8)
        assert np.array_equal(np.array(img), pixels)
