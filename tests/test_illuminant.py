import numpy as np
import pytest

from hdrisp.illuminant import GrayWorld, NormGrayWorld, PCAIlluminEstimation


def _rows(red, green, blue):
    return np.array([red, green, blue], dtype=np.float32)


def test_gray_world_neutral_scene_gives_unit_gains():
    flat = _rows([10, 20, 30], [10, 20, 30], [10, 20, 30])
    assert GrayWorld(flat).calculate_gains() == (1.0, 1.0)


def test_gray_world_gains_are_limited_to_range():
    flat = _rows([10, 10], [200, 200], [1000, 1000])
    r_gain, b_gain = GrayWorld(flat).calculate_gains()
    assert r_gain == 2.0
    assert b_gain == 0.5


def test_gray_world_zero_channel_gives_neutral_gains():
    flat = _rows([0, 0], [50, 60], [70, 80])
    assert GrayWorld(flat).calculate_gains() == (1.0, 1.0)


def test_gray_world_without_samples_gives_neutral_gains():
    assert GrayWorld(np.zeros((3, 0))).calculate_gains() == (1.0, 1.0)


def test_gray_world_ratio_inside_range_matches_mean_ratio():
    flat = _rows([100, 120], [150, 150], [150, 150])
    r_gain, b_gain = GrayWorld(flat).calculate_gains()
    means = flat.mean(axis=1)
    assert r_gain * means[0] == pytest.approx(means[1])
    assert b_gain == pytest.approx(1.0)


@pytest.mark.parametrize("cls", [GrayWorld, NormGrayWorld])
def test_wrong_shape_is_rejected(cls):
    with pytest.raises(ValueError):
        cls(np.zeros((2, 5)))


def test_pca_wrong_shape_is_rejected():
    with pytest.raises(ValueError):
        PCAIlluminEstimation(np.zeros((4, 5)), 5.0)


def test_norm_gray_world_equal_channels():
    flat = _rows([3, 4, 5], [3, 4, 5], [3, 4, 5])
    r_gain, b_gain = NormGrayWorld(flat).calculate_gains()
    assert r_gain == pytest.approx(1.0)
    assert b_gain == pytest.approx(1.0)


def test_norm_gray_world_is_scale_invariant():
    rng = np.random.default_rng(1)
    flat = rng.uniform(1, 100, size=(3, 50))
    base = NormGrayWorld(flat).calculate_gains()
    scaled = NormGrayWorld(flat * 7.0).calculate_gains()
    assert scaled == pytest.approx(base)


def test_norm_gray_world_doubling_red_halves_red_gain():
    rng = np.random.default_rng(2)
    flat = rng.uniform(1, 100, size=(3, 40))
    r_before, b_before = NormGrayWorld(flat).calculate_gains()
    boosted = flat.copy()
    boosted[0] *= 2.0
    r_after, b_after = NormGrayWorld(boosted).calculate_gains()
    assert r_after * 2.0 == pytest.approx(r_before)
    assert b_after == pytest.approx(b_before)


def test_norm_gray_world_undefined_ratio_becomes_zero():
    flat = _rows([0, 0], [0, 0], [5, 5])
    r_gain, b_gain = NormGrayWorld(flat).calculate_gains()
    assert r_gain == 0.0
    assert b_gain == 0.0


def test_pca_grey_pixels_give_unit_gains():
    levels = np.linspace(10, 200, 100)
    flat = np.stack([levels, levels, levels])
    r_gain, b_gain = PCAIlluminEstimation(flat, 10.0).calculate_gains()
    assert r_gain == pytest.approx(1.0)
    assert b_gain == pytest.approx(1.0)


def test_pca_recovers_illuminant_direction():
    levels = np.linspace(5, 100, 80)
    red_scale, green_scale, blue_scale = 3.0, 1.5, 1.0
    flat = np.stack([levels * red_scale, levels * green_scale, levels * blue_scale])
    r_gain, b_gain = PCAIlluminEstimation(flat, 20.0).calculate_gains()
    assert r_gain * red_scale == pytest.approx(green_scale)
    assert b_gain * blue_scale == pytest.approx(green_scale)


def test_pca_gains_are_non_negative_on_random_data():
    rng = np.random.default_rng(3)
    flat = rng.uniform(0, 255, size=(3, 200))
    r_gain, b_gain = PCAIlluminEstimation(flat, 3.5).calculate_gains()
    assert r_gain >= 0.0
    assert b_gain >= 0.0