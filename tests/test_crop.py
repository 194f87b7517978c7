import numpy as np
import pytest

from hdrisp.crop import Crop


def _setup(height, width, new_height, new_width, enable=True, is_save=False):
    platform = {"in_file": f"frame_{width}x{height}_12bits"}
    sensor_info = {"height": height, "width": width}
    params = {
        "is_enable": enable,
        "is_debug": False,
        "is_save": is_save,
        "new_height": new_height,
        "new_width": new_width,
    }
    return platform, sensor_info, params


def _image(height, width, dtype=np.uint16):
    return np.arange(height * width, dtype=dtype).reshape(height, width)


def test_crop_centre():
    img = _image(8, 8)
    platform, sensor_info, params = _setup(8, 8, 4, 4)
    out = Crop(img, platform, sensor_info, params).execute()
    assert out.dtype == np.uint16
    np.testing.assert_array_equal(out, img[2:6, 2:6])


def test_crop_updates_sensor_info_and_platform():
    img = _image(8, 12)
    platform, sensor_info, params = _setup(8, 12, 4, 8)
    out = Crop(img, platform, sensor_info, params).execute()
    np.testing.assert_array_equal(out, img[2:6, 2:10])
    assert sensor_info["height"] == 4
    assert sensor_info["width"] == 8
    assert sensor_info["orig_size"] == "12x8"
    assert platform["in_file"] == "frame_8x4_12bits"


def test_crop_not_multiple_of_four_keeps_image():
    img = _image(8, 8)
    platform, sensor_info, params = _setup(8, 8, 6, 6)
    out = Crop(img, platform, sensor_info, params).execute()
    np.testing.assert_array_equal(out, img)


def test_crop_larger_than_input_keeps_image():
    img = _image(8, 8)
    platform, sensor_info, params = _setup(8, 8, 12, 8)
    out = Crop(img, platform, sensor_info, params).execute()
    np.testing.assert_array_equal(out, img)


def test_crop_same_size_leaves_sensor_info():
    img = _image(8, 8)
    platform, sensor_info, params = _setup(8, 8, 8, 8)
    out = Crop(img, platform, sensor_info, params).execute()
    np.testing.assert_array_equal(out, img)
    assert "orig_size" not in sensor_info


def test_crop_disabled():
    img = _image(8, 8)
    platform, sensor_info, params = _setup(8, 8, 4, 4, enable=False)
    out = Crop(img, platform, sensor_info, params).execute()
    np.testing.assert_array_equal(out, img)
    assert sensor_info == {"height": 8, "width": 8}
    assert platform["in_file"] == "frame_8x8_12bits"


def test_crop_does_not_modify_input():
    img = _image(8, 8)
    original = img.copy()
    platform, sensor_info, params = _setup(8, 8, 4, 4)
    Crop(img, platform, sensor_info, params).execute()
    np.testing.assert_array_equal(img, original)


def test_crop_float_image_rejected():
    img = _image(8, 8, dtype=np.float32)
    platform, sensor_info, params = _setup(8, 8, 4, 4)
    with pytest.raises(ValueError):
        Crop(img, platform, sensor_info, params).execute()


def test_crop_saves_input_and_output(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    img = _image(8, 8, dtype=np.uint8)
    platform, sensor_info, params = _setup(8, 8, 4, 4, is_save=True)
    out = Crop(img, platform, sensor_info, params).execute()
    np.testing.assert_array_equal(out, img[2:6, 2:6])
    folder = tmp_path / "out_frames" / "intermediate"
    assert (folder / "Inpipeline_crop_8x8.png").is_file()
    assert (folder / "Out_crop_4x4.png").is_file()