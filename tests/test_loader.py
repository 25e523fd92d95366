import numpy as np
import pytest
from PIL import Image

from palette_profile.errors import ImageDimensionError, ImageFormatError, ImageLoadError
from palette_profile.loader import load_image, to_rgba, validate_dimensions, validate_format


@pytest.mark.parametrize("name", ["a.png", "a.JPG", "a.jpeg", "dir/a.webp"])
def test_supported_formats(name):
    validate_format(name)


def test_unsupported_format():
    with pytest.raises(ImageFormatError, match="unsupported format .gif"):
        validate_format("a.gif")
    with pytest.raises(ImageFormatError, match="no file extension"):
        validate_format("README")


def test_dimensions():
    validate_dimensions(8192, 8192)
    with pytest.raises(ImageDimensionError):
        validate_dimensions(8193, 10)
    with pytest.raises(ImageDimensionError):
        validate_dimensions(0, 10)


def test_to_rgba_from_arrays():
    gray = to_rgba(np.full((2, 3), 7, dtype=np.uint8))
    assert gray.shape == (2, 3, 4)
    assert gray[0, 0].tolist() == [7, 7, 7, 255]

    rgb = to_rgba(np.full((1, 1, 3), 1.0))
    assert rgb[0, 0].tolist() == [255, 255, 255, 255]

    rgba = np.zeros((1, 1, 4), dtype=np.uint8)
    assert to_rgba(rgba)[0, 0].tolist() == [0, 0, 0, 0]

    with pytest.raises(ValueError):
        to_rgba(np.zeros((2, 2, 2)))


def test_to_rgba_scales_wide_integers():
    arr = to_rgba(np.array([[[65535] * 3, [32768] * 3, [0] * 3]], dtype=np.uint16))
    assert arr.dtype == np.uint8
    assert arr[0, :, :3].tolist() == [[255] * 3, [128] * 3, [0] * 3]
    assert arr[0, :, 3].tolist() == [255, 255, 255]

    wide = to_rgba(np.full((1, 1), 2**31 - 1, dtype=np.int32))
    assert wide[0, 0].tolist() == [255, 255, 255, 255]


def test_to_rgba_from_pil():
    arr = to_rgba(Image.new("L", (3, 2), 100))
    assert arr.shape == (2, 3, 4)
    assert arr[0, 0].tolist() == [100, 100, 100, 255]


def test_load_png(tmp_path):
    path = tmp_path / "img.png"
    Image.new("RGB", (5, 4), (10, 20, 30)).save(path)

    img = load_image(path)
    assert img.size == (5, 4)
    assert to_rgba(img)[0, 0].tolist() == [10, 20, 30, 255]


def test_load_rejects_large_images(tmp_path):
    path = tmp_path / "img.png"
    Image.new("RGB", (5, 4)).save(path)
    with pytest.raises(ImageDimensionError, match="5x4"):
        load_image(path, max_width=4, max_height=4)


def test_load_errors(tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    with pytest.raises(ImageLoadError, match="failed to open"):
        load_image(bad)

    with pytest.raises(ImageLoadError):
        load_image(tmp_path / "missing.png")
