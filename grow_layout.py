#!/usr/bin/env python3
"""
Grow a color-cube layout on a torus.

Every color of the cube is given exactly one cell of a square toroidal grid
so that similar colors end up next to each other.

Stages: Seed Placement → (Growth Walk ⇄ Fallback Search per color) → Render
"""

import math
import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from color_cube import build_color_offsets, shuffled_color_bases
from render_layout import render_grid
from torus import (
    OpenLocations, build_location_offsets, toroidal_distance, toroidal_distances_sq,
)


# =============================================================================
# Constants
# =============================================================================

DIRECTIONS = ((1, 0), (0, 1), (-1, 0), (0, -1))
TURNS = (0, 0, 0, 0, 1, 3)  # Added to the last direction index; never 2 (reversal)
MAX_SEED_ATTEMPTS = 100_000  # Spacing rejection draws per seed
DEFAULT_ROOT_SCALE = 1.0
ANCHOR_CHUNK = 64  # First slice of the color offset table probed per color
EMPTY = -1


class LayoutError(RuntimeError):
    """A run hit a state it cannot place from; the layout is abandoned."""


class SpacingInfeasibleError(LayoutError):
    """Seed spacing could not be satisfied within the retry limit."""


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class LayoutConfig:
    """Parameters of one run."""
    scale: int
    num_seeds: int
    seed: int
    divergence: Optional[float] = None  # None selects the straight walk + spiral fallback
    spacing: bool = True
    root_scale: Optional[float] = None  # None = budget of one step per cell

    @property
    def color_size(self) -> int:
        return self.scale ** 2

    @property
    def grid_size(self) -> int:
        return self.scale ** 3

    @property
    def total_colors(self) -> int:
        return self.scale ** 6

    @property
    def walk_policy(self) -> str:
        return 'straight' if self.divergence is None else 'similar'

    @property
    def fallback(self) -> str:
        return 'spiral' if self.divergence is None else 'sample'

    @property
    def effective_root_scale(self) -> Optional[float]:
        if self.root_scale is None and self.divergence is not None:
            return DEFAULT_ROOT_SCALE
        return self.root_scale

    @property
    def budget(self) -> int:
        """Walk step limit, also the sample size of the open-set fallback."""
        root_scale = self.effective_root_scale
        if root_scale is None:
            return self.total_colors
        return math.ceil(root_scale * math.sqrt(self.grid_size))

    @property
    def min_spacing(self) -> float:
        return self.grid_size / (2.0 * math.sqrt(self.num_seeds))

    def validate(self) -> None:
        """
        Check run preconditions.

        Raises:
            ValueError: If any parameter is out of range
        """
        if self.scale < 2:
            raise ValueError(f"scale must be at least 2, got {self.scale}")
        if not 1 <= self.num_seeds <= self.total_colors:
            raise ValueError(
                f"num_seeds must be in [1, {self.total_colors}] for scale {self.scale}, "
                f"got {self.num_seeds}"
            )
        if self.divergence is not None and not 0.0 <= self.divergence <= 1.0:
            raise ValueError(f"divergence must be in [0, 1], got {self.divergence}")
        if self.root_scale is not None and self.root_scale <= 0:
            raise ValueError(f"root_scale must be positive, got {self.root_scale}")


@dataclass
class GrownLayout:
    """Output of one run, before rendering."""
    config: LayoutConfig
    grid: np.ndarray  # (grid_size, grid_size, 3) int16 color bases, -1 = empty
    color_locations: np.ndarray  # (cs, cs, cs, 2) int32 (row, col), -1 = unplaced
    seed_locations: list  # (row, col) per seed, in placement order
    stats: dict = field(default_factory=dict)


# =============================================================================
# Seed Placement
# =============================================================================

def place_seeds(seed_bases: np.ndarray, grid: np.ndarray, color_locations: np.ndarray,
                rng: np.random.Generator, spacing: bool,
                min_spacing: float) -> tuple[list, int]:
    """
    Drop the first colors at random cells.

    With spacing, draws are rejected while any earlier seed sits closer than
    min_spacing on the torus. Without it, a seed that lands on an occupied
    cell overwrites it.

    Returns:
        (seed_locations, collisions)

    Raises:
        SpacingInfeasibleError: If a seed needs more than MAX_SEED_ATTEMPTS draws
    """
    size = grid.shape[0]
    seed_locations = []
    collisions = 0

    for base in seed_bases:
        row = int(rng.integers(size))
        col = int(rng.integers(size))
        if spacing:
            attempts = 1
            while any(toroidal_distance(loc, (row, col), size) < min_spacing
                      for loc in seed_locations):
                if attempts >= MAX_SEED_ATTEMPTS:
                    raise SpacingInfeasibleError(
                        f"Could not space seed {len(seed_locations) + 1} of {len(seed_bases)} "
                        f"at least {min_spacing:.2f} apart on a {size}x{size} grid "
                        f"after {attempts} draws"
                    )
                row = int(rng.integers(size))
                col = int(rng.integers(size))
                attempts += 1

        if grid[row, col, 0] != EMPTY:
            collisions += 1
        grid[row, col] = base
        color_locations[base[0], base[1], base[2]] = (row, col)
        seed_locations.append((row, col))

    return seed_locations, collisions


# =============================================================================
# Growth Walk
# =============================================================================

def find_anchor(base: np.ndarray, color_offsets: np.ndarray,
                color_locations: np.ndarray) -> tuple[int, int]:
    """
    Locate the closest already-placed color.

    Probes base + offset in offset-table order and returns the cell of the
    first placed candidate. The table is probed in chunks that double in size;
    within a chunk the earliest hit wins, so the result matches a one-by-one
    scan.

    Raises:
        LayoutError: If no candidate in the table has been placed
    """
    color_size = color_locations.shape[0]
    chunk = ANCHOR_CHUNK
    start = 0
    while start < len(color_offsets):
        stop = start + chunk
        candidates = color_offsets[start:stop] + base
        in_cube = np.all((candidates >= 0) & (candidates < color_size), axis=1)
        candidates = candidates[in_cube]
        locations = color_locations[candidates[:, 0], candidates[:, 1], candidates[:, 2]]
        hits = np.flatnonzero(locations[:, 0] != EMPTY)
        if hits.size:
            row, col = locations[hits[0]]
            return int(row), int(col)
        start = stop
        chunk *= 2

    raise LayoutError(f"No placed color found near {tuple(int(c) for c in base)}")


def _similarity(grid: np.ndarray, row: int, col: int, base: tuple) -> int:
    """Squared base distance between a color and a cell; empty cells score 0."""
    cell = grid[row, col]
    if cell[0] == EMPTY:
        return 0
    return sum((int(c) - b) ** 2 for c, b in zip(cell, base))


def walk_to_free_cell(grid: np.ndarray, start: tuple, base: tuple,
                      rng: np.random.Generator, budget: int,
                      divergence: Optional[float] = None) -> tuple[int, int, bool]:
    """
    Random walk from an anchor until an empty cell or the step budget.

    Without divergence, each step keeps or turns the last direction but never
    reverses it. With divergence, each step turns with that probability
    toward whichever perpendicular neighbor is most similar to the color,
    otherwise it goes straight.

    Returns:
        (row, col, found) where found is False if the budget ran out on an
        occupied cell
    """
    size = grid.shape[0]
    row, col = start
    last = int(rng.integers(4))
    steps = 0

    while grid[row, col, 0] != EMPTY and steps < budget:
        steps += 1
        if divergence is None:
            index = (last + TURNS[int(rng.integers(len(TURNS)))]) % 4
        elif rng.random() < divergence:
            left = (last + 1) % 4
            right = (last + 3) % 4
            scores = []
            for d in (left, right):
                dr, dc = DIRECTIONS[d]
                scores.append(_similarity(grid, (row + dr) % size, (col + dc) % size, base))
            index = left if scores[0] <= scores[1] else right
        else:
            index = last
        last = index
        dr, dc = DIRECTIONS[index]
        row = (row + dr) % size
        col = (col + dc) % size

    return row, col, bool(grid[row, col, 0] == EMPTY)


# =============================================================================
# Fallback Search
# =============================================================================

def spiral_fallback(grid: np.ndarray, position: tuple,
                    location_offsets: np.ndarray) -> tuple[int, int]:
    """
    Pick a free cell around position from the spatial offset table.

    The whole table is scanned and the LAST empty candidate is kept, so the
    result is the farthest probed free cell rather than the nearest.

    Raises:
        LayoutError: If no probed cell is empty
    """
    size = grid.shape[0]
    rows = (position[0] + location_offsets[:, 0]) % size
    cols = (position[1] + location_offsets[:, 1]) % size
    empty = np.flatnonzero(grid[rows, cols, 0] == EMPTY)
    if not empty.size:
        raise LayoutError(f"No empty cell reachable from {tuple(position)}")
    k = empty[-1]
    return int(rows[k]), int(cols[k])


def sample_fallback(open_locations: OpenLocations, position: tuple,
                    budget: int, size: int) -> tuple[int, int]:
    """
    Pick the nearest free cell among the first `budget` entries of the pool.

    Raises:
        LayoutError: If the pool is empty
    """
    sample = open_locations.head(budget)
    if not len(sample):
        raise LayoutError("No empty cells left in the open pool")
    distances = toroidal_distances_sq(sample, position, size)
    row, col = sample[int(np.argmin(distances))]
    return int(row), int(col)


# =============================================================================
# Main Pipeline
# =============================================================================

def grow_layout(config: LayoutConfig, verbose: bool = False) -> GrownLayout:
    """
    Place every color of the cube on the torus.

    Args:
        config: Run parameters
        verbose: Print phase progress

    Returns:
        GrownLayout holding the filled grid of color bases

    Raises:
        ValueError: If config.num_seeds < 1 (no color to grow from)
        LayoutError: If placement cannot continue
    """
    if config.num_seeds < 1:
        raise ValueError("At least one seed is required to grow a layout")

    rng = np.random.default_rng(config.seed)
    size = config.grid_size
    color_size = config.color_size
    budget = config.budget
    start_time = time.perf_counter()

    bases = shuffled_color_bases(config.scale, rng)
    color_offsets = build_color_offsets(config.scale)
    location_offsets = build_location_offsets(size) if config.fallback == 'spiral' else None

    grid = np.full((size, size, 3), EMPTY, dtype=np.int16)
    color_locations = np.full((color_size, color_size, color_size, 2), EMPTY, dtype=np.int32)

    if verbose:
        print(f"Grid {size}x{size}, {len(bases):,} colors, {len(color_offsets):,} color offsets")
        print(f"Walk: {config.walk_policy}, fallback: {config.fallback}, budget: {budget}")

    seed_locations, collisions = place_seeds(
        bases[:config.num_seeds], grid, color_locations, rng,
        spacing=config.spacing, min_spacing=config.min_spacing
    )
    if verbose:
        print(f"Placed {len(seed_locations)} seeds ({collisions} collisions)")

    open_locations = None
    if config.fallback == 'sample':
        empty_rows, empty_cols = np.nonzero(grid[:, :, 0] == EMPTY)
        open_locations = OpenLocations(zip(empty_rows, empty_cols), rng)

    walked = 0
    fallbacks = 0
    remaining = bases[config.num_seeds:]
    report_every = max(1, len(remaining) // 10)

    for i, base in enumerate(remaining, 1):
        key = (int(base[0]), int(base[1]), int(base[2]))
        anchor = find_anchor(base, color_offsets, color_locations)
        row, col, found = walk_to_free_cell(
            grid, anchor, key, rng, budget, divergence=config.divergence
        )
        if found:
            walked += 1
        else:
            fallbacks += 1
            if open_locations is not None:
                row, col = sample_fallback(open_locations, (row, col), budget, size)
            else:
                row, col = spiral_fallback(grid, (row, col), location_offsets)

        grid[row, col] = key
        color_locations[key] = (row, col)
        if open_locations is not None:
            open_locations.discard((row, col))

        if verbose and i % report_every == 0:
            elapsed = time.perf_counter() - start_time
            print(f"  Placed {i + config.num_seeds:,}/{len(bases):,} colors ({elapsed:.2f}s)")

    stats = {
        'seeds': len(seed_locations),
        'seed_collisions': collisions,
        'walked': walked,
        'fallbacks': fallbacks,
        'elapsed': time.perf_counter() - start_time,
    }

    return GrownLayout(
        config=config,
        grid=grid,
        color_locations=color_locations,
        seed_locations=seed_locations,
        stats=stats,
    )


def generate_layout(scale: int, num_seeds: int, seed: int,
                    divergence: Optional[float] = None, spacing: bool = True,
                    root_scale: Optional[float] = None,
                    verbose: bool = False) -> np.ndarray:
    """Grow a layout and render it.

    Returns:
        uint8 array of shape (scale³, scale³, 3)
    """
    config = LayoutConfig(
        scale=scale, num_seeds=num_seeds, seed=seed,
        divergence=divergence, spacing=spacing, root_scale=root_scale,
    )
    layout = grow_layout(config, verbose=verbose)
    return render_grid(layout.grid, config.color_size)


def is_bijection(grid: np.ndarray, color_size: int) -> bool:
    """True if every cell is filled and every color base appears exactly once."""
    flat = grid.reshape(-1, 3).astype(np.int64)
    if np.any(flat[:, 0] == EMPTY):
        return False
    index = flat[:, 0] + flat[:, 1] * color_size + flat[:, 2] * color_size ** 2
    counts = np.bincount(index, minlength=color_size ** 3)
    return bool(np.all(counts == 1))
