import numpy as np
import pytest

from hdrisp.color_space import ColorSpaceConversion


def run(img, bit_depth=8, standard=1, cse=False, gain=1.0):
    return ColorSpaceConversion(
        img,
        {"output_bit_depth": bit_depth},
        {"conv_standard": standard, "is_save": False},
        {"is_enable": cse, "saturation_gain": gain},
    ).execute()


def test_black_image_value():
    out = run(np.zeros((2, 3, 3), dtype=np.uint16))
    assert out.shape == (2, 3)
    assert out.dtype == np.float32
    assert np.all(out == 115)


def test_output_is_integral_and_in_range():
    rng = np.random.default_rng(3)
    img = rng.integers(0, 1024, size=(5, 7, 3)).astype(np.uint16)
    out = run(img, bit_depth=10, standard=2, cse=True, gain=1.5)
    assert out.shape == (5, 7)
    assert np.all(out >= 0) and np.all(out <= 255)
    np.testing.assert_array_equal(out, np.round(out))


def test_uniform_input_gives_uniform_output():
    img = np.full((4, 4, 3), [10, 60, 30], dtype=np.uint16)
    out = run(img, standard=2)
    single = run(img[:1, :1], standard=2)
    assert out.shape == (4, 4)
    assert np.unique(out).size == 1
    np.testing.assert_array_equal(out, np.full((4, 4), single[0, 0], dtype=out.dtype))


def test_saturation_gain_has_no_effect_on_grey_bt709():
    img = np.stack([np.arange(0, 200, 10, dtype=np.uint16)] * 3, axis=-1)[None]
    plain = run(img)
    boosted = run(img, cse=True, gain=1.8)
    np.testing.assert_array_equal(plain, boosted)


def test_brighter_grey_is_not_darker():
    levels = np.arange(0, 256, 5, dtype=np.uint16)
    img = np.stack([levels] * 3, axis=-1)[None]
    out = run(img)[0]
    assert np.all(np.diff(out) >= 0)
    assert out[-1] > out[0]


def test_input_is_not_modified():
    img = np.full((2, 2, 3), 100, dtype=np.uint16)
    copy = img.copy()
    run(img, cse=True, gain=2.0)
    np.testing.assert_array_equal(img, copy)


def test_bit_depth_below_eight_rejected():
    with pytest.raises(ValueError):
        run(np.zeros((2, 2, 3), dtype=np.uint8), bit_depth=6)


def test_single_channel_input_rejected():
    with pytest.raises(ValueError):
        run(np.zeros((2, 2), dtype=np.uint8))