#!/usr/bin/env python3
"""
Enumerate the discretized RGB color cube and its neighbor search order.

A scale s gives s² levels per channel, so the cube holds s⁶ colors. Colors are
kept as integer "color bases" and only converted to 8-bit channels for display.
"""

import numpy as np


# Sign reflections applied to every color base when building offsets
REFLECTIONS = np.array([
    [1, 1, 1],
    [1, 1, -1],
    [1, -1, 1],
    [1, -1, -1],
    [-1, 1, 1],
    [-1, 1, -1],
    [-1, -1, 1],
    [-1, -1, -1],
], dtype=np.int32)


def enumerate_color_bases(scale: int) -> np.ndarray:
    """
    List every color base of the cube for a given scale.

    Row n is (n % cs, (n // cs) % cs, n // cs²) with cs = scale².

    Returns:
        int32 array of shape (scale⁶, 3)
    """
    color_size = scale ** 2
    n = np.arange(scale ** 6, dtype=np.int64)
    r = n % color_size
    g = (n // color_size) % color_size
    b = n // color_size ** 2
    return np.column_stack([r, g, b]).astype(np.int32)


def shuffled_color_bases(scale: int, rng: np.random.Generator) -> np.ndarray:
    """Enumerate the cube and shuffle it into placement order."""
    bases = enumerate_color_bases(scale)
    rng.shuffle(bases)
    return bases


def build_color_offsets(scale: int) -> np.ndarray:
    """
    Build the color-space search order used to find similar placed colors.

    Every color base is reflected through all 8 sign combinations, repeated
    reflections of zero components are dropped (first occurrence wins), and
    the table is stably sorted by squared magnitude so nearer offsets come
    first.

    Returns:
        int32 array of shape (n_offsets, 3)
    """
    bases = enumerate_color_bases(scale)
    offsets = (bases[:, None, :] * REFLECTIONS[None, :, :]).reshape(-1, 3)

    # Drop duplicates while keeping enumeration order
    _, first = np.unique(offsets, axis=0, return_index=True)
    offsets = offsets[np.sort(first)]

    magnitude = np.sum(offsets.astype(np.int64) ** 2, axis=1)
    order = np.argsort(magnitude, kind='stable')
    return offsets[order]


def color_base_to_color(bases: np.ndarray, color_size: int) -> np.ndarray:
    """Scale color bases (0..color_size-1) to 8-bit channels, truncating."""
    bases = np.asarray(bases, dtype=np.int64)
    return (bases * 255 // (color_size - 1)).astype(np.uint8)
