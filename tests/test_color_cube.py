import numpy as np

from color_cube import (
    build_color_offsets, color_base_to_color, enumerate_color_bases, shuffled_color_bases,
)


def test_enumerate_counts_red_fastest():
    bases = enumerate_color_bases(2)
    assert bases.shape == (64, 3)
    assert tuple(bases[0]) == (0, 0, 0)
    assert tuple(bases[1]) == (1, 0, 0)
    assert tuple(bases[4]) == (0, 1, 0)
    assert tuple(bases[16]) == (0, 0, 1)
    assert tuple(bases[63]) == (3, 3, 3)
    assert len(np.unique(bases, axis=0)) == 64


def test_enumerate_scale_three_covers_cube():
    bases = enumerate_color_bases(3)
    assert bases.shape == (729, 3)
    assert bases.min() == 0
    assert bases.max() == 8


def test_offsets_cover_all_signed_triples_once():
    offsets = build_color_offsets(2)
    # every triple in [-3, 3]³
    assert offsets.shape == (343, 3)
    assert len(np.unique(offsets, axis=0)) == 343


def test_offsets_sorted_by_magnitude():
    offsets = build_color_offsets(2)
    magnitude = np.sum(offsets.astype(np.int64) ** 2, axis=1)
    assert np.all(np.diff(magnitude) >= 0)
    assert tuple(offsets[0]) == (0, 0, 0)


def test_offset_ties_keep_enumeration_order():
    offsets = build_color_offsets(2)
    assert [tuple(o) for o in offsets[1:7]] == [
        (1, 0, 0), (-1, 0, 0),
        (0, 1, 0), (0, -1, 0),
        (0, 0, 1), (0, 0, -1),
    ]


def test_shuffle_is_seeded_permutation():
    a = shuffled_color_bases(2, np.random.default_rng(7))
    b = shuffled_color_bases(2, np.random.default_rng(7))
    c = shuffled_color_bases(2, np.random.default_rng(8))
    assert np.array_equal(a, b)
    assert not np.array_equal(a, c)
    assert sorted(map(tuple, a)) == sorted(map(tuple, enumerate_color_bases(2)))


def test_color_conversion_truncates():
    assert color_base_to_color(np.array([0, 1, 2, 3]), 4).tolist() == [0, 85, 170, 255]
    # 255 / 8 = 31.875
    assert color_base_to_color(np.array([1, 7, 8]), 9).tolist() == [31, 223, 255]
    assert color_base_to_color(np.array([[1, 2, 3]]), 4).dtype == np.uint8
