#!/usr/bin/env python3
"""Grow color-cube layouts over a sweep of parameters and save them as PNGs."""

import argparse
import itertools
import sys
import time
from datetime import datetime
from pathlib import Path

from grow_layout import LayoutConfig, grow_layout, is_bijection
from render_layout import (
    layout_coherence, missing_cells, neighbor_distance, render_grid, save_layout,
)


def layout_filename(config: LayoutConfig) -> str:
    """Output name for a run, e.g. img-9-30-0.png."""
    name = f"img-{config.scale}-{config.num_seeds}-{config.seed}"
    if config.divergence is not None:
        name += f"-d{float(config.divergence)!r}"
    root_scale = config.effective_root_scale
    if root_scale is not None:
        name += f"-r{float(root_scale)!r}"
    if not config.spacing:
        name += "-nospace"
    return f"{name}.png"


def sweep_configs(scales, num_seeds, seeds, divergences, root_scales, spacing=True) -> list[LayoutConfig]:
    """Every combination of the given parameter lists, scale varying slowest."""
    configs = []
    for scale, n, seed, divergence, root_scale in itertools.product(
            scales, num_seeds, seeds, divergences, root_scales):
        configs.append(LayoutConfig(
            scale=scale, num_seeds=n, seed=seed,
            divergence=divergence, spacing=spacing, root_scale=root_scale,
        ))
    return configs


def run_config(config: LayoutConfig, output_dir: Path, verbose: bool = False) -> dict:
    """
    Validate, grow, render and save one layout.

    Returns:
        dict with run summary
    """
    config.validate()
    filename = layout_filename(config)
    print(f"Start {filename}")

    layout = grow_layout(config, verbose=verbose)
    pixels = render_grid(layout.grid, config.color_size)

    output_path = output_dir / filename
    if output_path.exists():
        print(f"  Warning: Overwriting {output_path.name}", file=sys.stderr)
    save_layout(pixels, str(output_path))

    return {
        'image': filename,
        'size': config.grid_size,
        'colors': config.total_colors,
        'bijection': is_bijection(layout.grid, config.color_size),
        'missing': missing_cells(layout.grid),
        'fallbacks': layout.stats['fallbacks'],
        'seed_collisions': layout.stats['seed_collisions'],
        'neighbor_distance': neighbor_distance(pixels),
        'coherence': layout_coherence(layout.grid, config.color_size),
        'elapsed': layout.stats['elapsed'],
    }


def write_summary(summaries: list[dict], report_path: Path) -> None:
    """Write a plain-text report of a sweep."""
    with open(report_path, 'w') as f:
        f.write("Layout Sweep Report\n")
        f.write(f"Generated: {datetime.now().isoformat()}\n")
        f.write(f"Runs: {len(summaries)}\n")
        f.write("=" * 60 + "\n\n")

        for s in summaries:
            if 'error' in s:
                f.write(f"{s['image']}: ERROR - {s['error']}\n\n")
                continue

            f.write(f"{s['image']}\n")
            f.write(f"  Grid: {s['size']}x{s['size']} ({s['colors']:,} colors)\n")
            f.write(f"  Bijection: {'yes' if s['bijection'] else 'no'} "
                    f"({s['missing']} empty, {s['seed_collisions']} seed collisions)\n")
            f.write(f"  Fallbacks: {s['fallbacks']:,}\n")
            f.write(f"  Neighbor distance: {s['neighbor_distance']:.2f}, "
                    f"coherence: {s['coherence']:.2f}\n")
            f.write(f"  Time: {s['elapsed']:.2f}s\n")
            f.write("\n")


def main():
    parser = argparse.ArgumentParser(
        description='Grow color-cube layouts and save them as PNG images.'
    )
    parser.add_argument(
        '--scale', '-s',
        type=int, nargs='+', default=[3],
        help='Scale(s); each gives a scale³ x scale³ image of scale⁶ colors'
    )
    parser.add_argument(
        '--num-seeds', '-n',
        type=int, nargs='+', default=[30],
        help='Number(s) of randomly placed seed colors'
    )
    parser.add_argument(
        '--seed',
        type=int, nargs='+', default=[0],
        help='Random seed(s)'
    )
    parser.add_argument(
        '--divergence', '-d',
        type=float, nargs='+', default=[None],
        help='Turn probability(s) for the similarity-biased walk (default: unbiased walk)'
    )
    parser.add_argument(
        '--root-scale', '-r',
        type=float, nargs='+', default=[None],
        help='Walk budget factor(s): ceil(root_scale * sqrt(grid size))'
    )
    parser.add_argument(
        '--no-spacing',
        action='store_true',
        help='Do not keep seeds apart'
    )
    parser.add_argument(
        '--output', '-o',
        default='output',
        help='Directory for images and summary.txt'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Print placement progress'
    )

    args = parser.parse_args()

    configs = sweep_configs(
        args.scale, args.num_seeds, args.seed,
        args.divergence, args.root_scale, spacing=not args.no_spacing,
    )
    try:
        for config in configs:
            config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    total = len(configs)
    summaries = []
    failed = []
    batch_start = time.perf_counter()

    for i, config in enumerate(configs, 1):
        filename = layout_filename(config)
        try:
            summary = run_config(config, output_dir, verbose=args.verbose)
            summaries.append(summary)
            print(f"[{i}/{total}] {filename} → {summary['fallbacks']:,} fallbacks "
                  f"({summary['elapsed']:.2f}s)")
        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            print(f"[{i}/{total}] {filename} → ERROR: {error_msg}", file=sys.stderr)
            summaries.append({'image': filename, 'error': error_msg})
            failed.append((filename, error_msg))

    batch_elapsed = time.perf_counter() - batch_start

    report_path = output_dir / "summary.txt"
    write_summary(summaries, report_path)

    print()
    print(f"Completed: {total - len(failed)}/{total} succeeded in {batch_elapsed:.2f}s")
    print(f"Summary report: {report_path}")
    print()
    print(f"{'Image':<36} {'Size':>6} {'Fallbacks':>10} {'NbrDist':>8} {'Coher':>6}")
    print("-" * 70)
    for s in summaries:
        if 'error' in s:
            print(f"{s['image']:<36} ERROR: {s['error'][:30]}")
        else:
            print(f"{s['image']:<36} {s['size']:>6} {s['fallbacks']:>10,} "
                  f"{s['neighbor_distance']:>8.2f} {s['coherence']:>6.2f}")

    if failed:
        sys.exit(1)


if __name__ == '__main__':
    main()
