#!/usr/bin/env python3
"""
Toroidal grid helpers: wrap-around distance, the spatial search order and the
pool of open cells used by the sampling fallback.
"""

import math

import numpy as np


def toroidal_distance_sq(a: tuple, b: tuple, size: int) -> int:
    """Squared Euclidean distance between two cells on a size x size torus."""
    total = 0
    for p, q in zip(a, b):
        d = abs(p - q)
        d = min(d, size - d)
        total += d * d
    return total


def toroidal_distance(a: tuple, b: tuple, size: int) -> float:
    """Euclidean distance between two cells on a size x size torus."""
    return math.sqrt(toroidal_distance_sq(a, b, size))


def toroidal_distances_sq(locations: np.ndarray, point: tuple, size: int) -> np.ndarray:
    """Vectorized squared torus distance from many (row, col) cells to one point."""
    d = np.abs(locations - np.asarray(point))
    d = np.minimum(d, size - d)
    return np.sum(d * d, axis=1)


def build_location_offsets(size: int) -> np.ndarray:
    """
    Spatial search order for the spiral fallback.

    Offsets (i, j) for i in [0, size) and j in [0, size // 2], each with its
    four sign reflections, stably sorted by squared magnitude. Reflections of
    zero are kept, so some offsets repeat. Once wrapped, the table reaches
    every cell of the torus.

    Returns:
        int64 array of shape (n_offsets, 2)
    """
    i = np.tile(np.arange(size), size // 2 + 1)
    j = np.repeat(np.arange(size // 2 + 1), size)
    offsets = np.stack([
        np.column_stack([i, j]),
        np.column_stack([i, -j]),
        np.column_stack([-i, j]),
        np.column_stack([-i, -j]),
    ], axis=1).reshape(-1, 2)

    magnitude = np.sum(offsets ** 2, axis=1)
    return offsets[np.argsort(magnitude, kind='stable')]


class OpenLocations:
    """
    Ordered pool of empty cells.

    The order is a seeded shuffle of the cells given at construction. Removal
    swaps the removed cell with the last one, so the sequence stays
    deterministic for a given generator state.
    """

    def __init__(self, locations, rng: np.random.Generator):
        self.order = np.array(list(locations), dtype=np.int64).reshape(-1, 2)
        rng.shuffle(self.order)
        self.size = len(self.order)
        self.position = {
            (int(row), int(col)): k for k, (row, col) in enumerate(self.order)
        }

    def __len__(self) -> int:
        return self.size

    def head(self, count: int) -> np.ndarray:
        """First `count` open cells in pool order (fewer if the pool is smaller)."""
        return self.order[:min(count, self.size)]

    def discard(self, location) -> None:
        """Remove a cell if present."""
        key = (int(location[0]), int(location[1]))
        k = self.position.pop(key, None)
        if k is None:
            return
        last = self.size - 1
        if k != last:
            moved = self.order[last].copy()
            self.order[k] = moved
            self.position[(int(moved[0]), int(moved[1]))] = k
        self.size = last
