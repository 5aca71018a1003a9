"""
Tests for image data URL helpers.
"""

import numpy as np
import pytest
from PIL import Image

from joinrender.core.media import (
    array_to_pil,
    data_url_to_image,
    file_to_data_url,
    image_to_data_url,
    is_data_url,
    is_image_value,
)


@pytest.fixture
def red_image():
    return Image.new("RGB", (4, 3), (255, 0, 0))


class TestArrays:
    def test_float_array_to_pil(self):
        arr = np.zeros((3, 4, 3), dtype=np.float32)
        arr[..., 1] = 1.0
        image = array_to_pil(arr)
        assert image.size == (4, 3)
        assert image.getpixel((0, 0)) == (0, 255, 0)

    def test_single_channel(self):
        image = array_to_pil(np.full((2, 2, 1), 128, dtype=np.uint8))
        assert image.mode == "L"

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            array_to_pil(np.zeros((2, 2, 5), dtype=np.uint8))


class TestDataUrls:
    def test_png_round_trip(self, red_image):
        url = image_to_data_url(red_image)

        assert url.startswith("data:image/png;base64,")
        assert is_data_url(url)
        decoded = data_url_to_image(url)
        assert decoded.size == (4, 3)
        assert decoded.convert("RGB").getpixel((1, 1)) == (255, 0, 0)

    def test_array_to_jpeg(self):
        url = image_to_data_url(np.ones((8, 8, 4), dtype=np.float32), format="jpeg")
        assert url.startswith("data:image/jpeg;base64,")
        decoded = data_url_to_image(url)
        assert decoded.mode == "RGB"
        assert decoded.size == (8, 8)

    def test_jpg_alias(self, red_image):
        assert image_to_data_url(red_image, format="jpg").startswith("data:image/jpeg;base64,")

    def test_file_to_data_url_keeps_bytes(self, red_image, tmp_path):
        path = tmp_path / "red.png"
        red_image.save(path)

        url = file_to_data_url(path)

        assert url.startswith("data:image/png;base64,")
        assert data_url_to_image(url).size == (4, 3)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            file_to_data_url(tmp_path / "missing.png")

    @pytest.mark.parametrize("url", [
        "https://example.com/a.png",
        "data:image/png,plain",
        "data:image/png;base64,!!!",
        "data:image/png;base64,aGVsbG8=",
    ])
    def test_bad_data_urls(self, url):
        with pytest.raises(ValueError):
            data_url_to_image(url)

    def test_is_data_url(self):
        assert not is_data_url(None)
        assert not is_data_url("http://x")

    def test_is_image_value(self, red_image):
        assert is_image_value(red_image)
        assert is_image_value(np.zeros((1, 1, 3)))
        assert not is_image_value("data:image/png;base64,AAAA")
