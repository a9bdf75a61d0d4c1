"""Tests for tone mapping and image export.

Tests cover:
- Tone mapping (average, gamma 2, clamp, quantize)
- Plain-text PPM layout, round trip and malformed input
- Writing to paths and streams
- PNG export via Pillow
"""

import io

import numpy as np
import pytest
from PIL import Image as PILImage


class TestToneMap:
    """Tests for tone_map."""

    def test_known_pixel(self):
        """Test sum (4, 1, 0) over 4 samples maps to (255, 128, 0)."""
        from pathtracer.preview.export import tone_map

        pixel = tone_map(np.array([4.0, 1.0, 0.0]), 4)

        assert pixel.tolist() == [255, 128, 0]

    def test_overexposed_clamps_to_255(self):
        """Test values above 1 clamp to the maximum byte."""
        from pathtracer.preview.export import tone_map

        pixel = tone_map(np.array([100.0, 2.0, 1.0]), 1)

        assert pixel.tolist() == [255, 255, 255]

    def test_nan_and_negative_map_to_black(self):
        """Test invalid channel values become 0."""
        from pathtracer.preview.export import tone_map

        pixel = tone_map(np.array([np.nan, -1.0, 0.0]), 1)

        assert pixel.tolist() == [0, 0, 0]

    def test_image_shape_preserved(self):
        """Test an (H, W, 3) buffer keeps its shape and becomes uint8."""
        from pathtracer.preview.export import tone_map

        image = tone_map(np.full((3, 5, 3), 0.25), 1)

        assert image.shape == (3, 5, 3)
        assert image.dtype == np.uint8
        # sqrt(0.25) = 0.5 -> 128
        assert np.all(image == 128)

    @pytest.mark.parametrize("samples", [0, -3])
    def test_non_positive_samples_rejected(self, samples):
        """Test a sample count of zero or less raises ValueError."""
        from pathtracer.preview.export import tone_map

        with pytest.raises(ValueError, match="positive"):
            tone_map(np.zeros((1, 1, 3)), samples)


class TestPPM:
    """Tests for the plain-text PPM format."""

    def _gradient(self):
        image = np.zeros((2, 3, 3), dtype=np.uint8)
        image[0, :, 0] = [0, 128, 255]
        image[1, :, 1] = [10, 20, 30]
        image[:, :, 2] = 7
        return image

    def test_encode_layout(self):
        """Test header lines and one pixel per line, top row first."""
        from pathtracer.preview.export import encode_ppm

        text = encode_ppm(self._gradient())
        lines = text.splitlines()

        assert lines[:3] == ["P3", "3 2", "255"]
        assert len(lines) == 3 + 6
        assert lines[3] == "0 0 7"
        assert lines[5] == "255 0 7"
        assert lines[6] == "0 10 7"
        assert text.endswith("\n")

    def test_round_trip(self):
        """Test decode(encode(image)) reproduces pixels and dimensions."""
        from pathtracer.preview.export import decode_ppm, encode_ppm

        image = self._gradient()

        decoded = decode_ppm(encode_ppm(image))

        assert decoded.shape == (2, 3, 3)
        assert np.array_equal(decoded, image)

    def test_decode_ignores_comments_and_layout(self):
        """Test whitespace layout and comments do not matter."""
        from pathtracer.preview.export import decode_ppm

        decoded = decode_ppm("P3 # made by hand\n2 1\n255\n1 2 3 4 5 6\n")

        assert decoded.tolist() == [[[1, 2, 3], [4, 5, 6]]]

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "P6\n1 1\n255\n0 0 0\n",
            "P3\n1 1\n65535\n0 0 0\n",
            "P3\n2 1\n255\n0 0 0\n",
            "P3\n1 1\n255\n0 0 x\n",
            "P3\n1 1\n255\n0 0 300\n",
        ],
    )
    def test_decode_malformed(self, text):
        """Test malformed documents raise ValueError."""
        from pathtracer.preview.export import decode_ppm

        with pytest.raises(ValueError):
            decode_ppm(text)

    def test_encode_rejects_bad_shape(self):
        """Test non-RGB arrays are rejected."""
        from pathtracer.preview.export import encode_ppm

        with pytest.raises(ValueError, match="shape"):
            encode_ppm(np.zeros((2, 2), dtype=np.uint8))

    def test_write_and_read_file(self, tmp_path):
        """Test writing to a path and reading it back."""
        from pathtracer.preview.export import read_ppm, write_ppm

        image = self._gradient()
        path = tmp_path / "image.ppm"

        write_ppm(image, path)

        assert np.array_equal(read_ppm(path), image)

    def test_write_to_stream(self):
        """Test writing to an open text stream."""
        from pathtracer.preview.export import encode_ppm, write_ppm

        image = self._gradient()
        stream = io.StringIO()

        write_ppm(image, stream)

        assert stream.getvalue() == encode_ppm(image)


class TestPNG:
    """Tests for PNG export."""

    def test_save_png_from_array(self, tmp_path):
        """Test PNG output keeps dimensions and pixel values."""
        from pathtracer.preview.export import save_png_from_array

        image = np.zeros((4, 6, 3), dtype=np.uint8)
        image[0, 0] = [255, 0, 0]
        path = tmp_path / "image.png"

        save_png_from_array(image, path)

        with PILImage.open(path) as loaded:
            assert loaded.size == (6, 4)
            assert loaded.mode == "RGB"
            assert np.array_equal(np.asarray(loaded), image)

    def test_compute_rmse(self):
        """Test RMSE of identical and offset images."""
        from pathtracer.preview.export import compute_rmse

        a = np.zeros((2, 2, 3))
        b = np.full((2, 2, 3), 2.0)

        assert compute_rmse(a, a) == 0.0
        assert abs(compute_rmse(a, b) - 2.0) < 1e-12
        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(a, np.zeros((3, 3, 3)))
