import numpy as np
import pytest

from cropsicle.fields import (
    MAX_COLOR_DISTANCE,
    build_color_field,
    compute_affinity,
    normalize_samples,
    render_color_field,
    smooth_color_field,
    to_8bit,
)
from cropsicle.grid import NEIGHBOR_OFFSETS


def test_normalize_integer_samples():
    arr = np.array([[[0, 255, 51]]], dtype=np.uint8)
    out = normalize_samples(arr)
    assert out.dtype == np.float32
    np.testing.assert_allclose(out, [[[0.0, 1.0, 0.2]]], rtol=1e-6)

    arr16 = np.array([[[65535, 0, 0]]], dtype=np.uint16)
    np.testing.assert_allclose(normalize_samples(arr16), [[[1.0, 0.0, 0.0]]])


def test_normalize_keeps_unit_floats_and_rescales_others():
    unit = np.array([[[0.25, 0.5, 0.75]]], dtype=np.float64)
    np.testing.assert_allclose(normalize_samples(unit), unit)

    wide = np.array([[[0.0, 5.0, 10.0]]])
    np.testing.assert_allclose(normalize_samples(wide), [[[0.0, 0.5, 1.0]]])


def test_to_8bit_scales():
    assert to_8bit(np.array([0.0, 0.5, 1.0])).tolist() == [0, 128, 255]
    assert to_8bit(np.array([0, 65535], dtype=np.uint16)).tolist() == [0, 255]
    assert to_8bit(np.array([7], dtype=np.uint8)).tolist() == [7]


def test_smoothing_divides_by_actual_neighbor_count():
    colors = np.zeros((3, 3, 3), dtype=np.float32)
    colors[1, 1] = 1.0
    smooth_color_field(colors)
    np.testing.assert_allclose(colors[0, 0], 1 / 4, rtol=1e-6)
    np.testing.assert_allclose(colors[0, 1], 1 / 6, rtol=1e-6)
    np.testing.assert_allclose(colors[1, 1], 1 / 9, rtol=1e-6)


def test_smoothing_is_in_place_single_pass():
    colors = np.zeros((1, 5, 3), dtype=np.float32)
    colors[0, 0] = 0.9
    out = smooth_color_field(colors)
    assert out is colors
    # one pass only reaches direct neighbours
    np.testing.assert_allclose(colors[0, :, 0], [0.45, 0.3, 0.0, 0.0, 0.0], rtol=1e-6)


def test_build_color_field_ignores_alpha_and_skips_smoothing():
    samples = np.zeros((2, 2, 4), dtype=np.uint8)
    samples[0, 0] = (255, 0, 0, 0)
    colors = build_color_field(samples, smooth=False)
    assert colors.shape == (2, 2, 3)
    np.testing.assert_allclose(colors[0, 0], [1.0, 0.0, 0.0])
    np.testing.assert_allclose(colors[1, 1], [0.0, 0.0, 0.0])


def test_build_color_field_rejects_bad_shapes():
    with pytest.raises(ValueError):
        build_color_field(np.zeros((2, 2, 2)))
    with pytest.raises(ValueError):
        build_color_field(np.zeros((0, 2, 3)))


def test_affinity_matches_distance_formula():
    rng = np.random.default_rng(3)
    colors = rng.random((4, 5, 3)).astype(np.float32)
    affinity = compute_affinity(colors)
    y, x = 1, 2
    for d, (dy, dx) in enumerate(NEIGHBOR_OFFSETS):
        ny, nx = y + dy, x + dx
        expected = 1.0 - np.linalg.norm(colors[y, x] - colors[ny, nx]) / np.sqrt(3.0)
        assert affinity[y, x, d] == pytest.approx(expected, abs=1e-6)


def test_affinity_uniform_field_is_exactly_one():
    colors = np.full((3, 3, 3), 0.5, dtype=np.float32)
    affinity = compute_affinity(colors)
    assert np.all(affinity[1, 1] == 1.0)


def test_affinity_extremes_and_no_clamping():
    colors = np.zeros((1, 2, 3), dtype=np.float32)
    colors[0, 1] = 1.0
    affinity = compute_affinity(colors)
    east = NEIGHBOR_OFFSETS.index((0, 1))
    assert affinity[0, 0, east] == pytest.approx(0.0, abs=1e-6)

    # outside the unit cube the weight goes negative and is kept
    colors[0, 1] = 2.0
    affinity = compute_affinity(colors)
    assert affinity[0, 0, east] == pytest.approx(-1.0, abs=1e-6)
    assert MAX_COLOR_DISTANCE == pytest.approx(np.sqrt(3.0))


def test_affinity_out_of_bounds_directions_unset():
    affinity = compute_affinity(np.zeros((2, 2, 3), dtype=np.float32))
    assert affinity.shape == (2, 2, 8)
    for d, (dy, dx) in enumerate(NEIGHBOR_OFFSETS):
        inside = 0 <= dy and 0 <= dx
        assert np.isnan(affinity[0, 0, d]) != inside


def test_affinity_is_symmetric():
    rng = np.random.default_rng(11)
    colors = rng.random((3, 3, 3)).astype(np.float32)
    affinity = compute_affinity(colors)
    east = NEIGHBOR_OFFSETS.index((0, 1))
    west = NEIGHBOR_OFFSETS.index((0, -1))
    assert affinity[1, 0, east] == affinity[1, 1, west]


def test_render_color_field_round_trips_8bit():
    samples = np.array([[[10, 128, 250]]], dtype=np.uint8)
    colors = build_color_field(samples, smooth=False)
    assert render_color_field(colors).tolist() == [[[10, 128, 250]]]


@pytest.mark.parametrize("dtype", [np.int8, np.int16, np.int32])
def test_signed_integer_samples_map_into_unit_range(dtype):
    info = np.iinfo(dtype)
    arr = np.array([[[info.min, 0, info.max], [info.max, info.min, -1]]], dtype=dtype)
    out = normalize_samples(arr)
    assert out.min() >= 0.0 and out.max() <= 1.0
    assert out[0, 0, 0] == 0.0
    assert out[0, 0, 2] == 1.0

    colors = build_color_field(arr, smooth=False)
    affinity = compute_affinity(colors)
    assert np.nanmin(affinity) >= 0.0


def test_to_8bit_signed_uses_full_range():
    arr = np.array([-32768, 0, 32767], dtype=np.int16)
    assert to_8bit(arr).tolist() == [0, 128, 255]
