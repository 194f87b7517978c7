import numpy as np
import pytest

from hdrisp.noise_reduction_2d import NoiseReduction2D


def _run(img, bit_depth=32, enable=True):
    sensor_info = {} if bit_depth is None else {"output_bit_depth": bit_depth}
    return NoiseReduction2D(img, {}, sensor_info, {"is_enable": enable}).execute()


def test_disabled_returns_input():
    img = np.arange(25, dtype=np.uint16).reshape(5, 5)
    out = _run(img, enable=False)
    np.testing.assert_array_equal(out, img)
    assert out.dtype == np.uint16


def test_constant_image_keeps_interior_and_zeroes_border():
    img = np.ones((5, 6), dtype=np.float32)
    out = _run(img)
    assert out.dtype == np.float32
    np.testing.assert_allclose(out[1:-1, 1:-1], 1.0, rtol=1e-6)
    assert np.all(out[0, :] == 0)
    assert np.all(out[-1, :] == 0)
    assert np.all(out[:, 0] == 0)
    assert np.all(out[:, -1] == 0)


def test_impulse_response_preserves_sum():
    img = np.zeros((5, 5), dtype=np.float32)
    img[2, 2] = 1.0
    out = _run(img)
    assert out.sum() == pytest.approx(1.0)
    assert out[2, 2] == pytest.approx(4.0 / 16.0)
    np.testing.assert_allclose(out[1:4, 1:4], out[1:4, 1:4].T)


def test_eight_bit_output_is_scaled_float():
    rng = np.random.default_rng(1)
    img = rng.random((6, 7)).astype(np.float32)
    wide = _run(img, bit_depth=32)
    narrow = _run(img, bit_depth=8)
    np.testing.assert_allclose(narrow, np.clip(wide * 255.0, 0, 255), rtol=1e-5)


def test_output_is_clipped_to_range():
    img = np.full((4, 4), 2.0, dtype=np.float32)
    out = _run(img, bit_depth=8)
    np.testing.assert_allclose(out[1:-1, 1:-1], 255.0)
    assert out.max() <= 255.0


def test_default_bit_depth_is_sixteen():
    img = np.ones((4, 4), dtype=np.float32)
    out = _run(img, bit_depth=None)
    np.testing.assert_allclose(out[1:-1, 1:-1], 65535.0)


def test_three_channel_uses_luma_of_last_plane():
    img = np.zeros((5, 5, 3), dtype=np.float32)
    img[:, :, 2] = 1.0
    out = _run(img)
    assert out.shape == (5, 5)
    np.testing.assert_allclose(out[1:-1, 1:-1], 0.299, rtol=1e-5)


def test_unsupported_bit_depth():
    with pytest.raises(ValueError, match="bit depth"):
        _run(np.ones((4, 4), dtype=np.float32), bit_depth=12)


def test_unsupported_channel_count():
    with pytest.raises(ValueError, match="channels"):
        _run(np.ones((4, 4, 4), dtype=np.float32))


def test_input_not_modified():
    img = np.arange(16, dtype=np.float32).reshape(4, 4)
    original = img.copy()
    _run(img)
    np.testing.assert_array_equal(img, original)