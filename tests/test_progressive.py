"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class and RenderSettings including:
- Initialization and setup
- Progressive sample accumulation
- Batch rendering
- Progress callbacks and generators
- Reset and resize
- Tone-mapped image output

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import io

import numpy as np
import pytest


def _setup_sky_camera():
    from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera

    setup_camera(
        ThinLensCamera(
            lookfrom=(0.0, 0.0, 0.0),
            lookat=(0.0, 0.0, -1.0),
            vup=(0.0, 1.0, 0.0),
            vfov=90.0,
            aspect_ratio=1.0,
        )
    )


class TestRenderSettings:
    """Test RenderSettings defaults and validation."""

    def test_defaults(self):
        """Test defaults match the standard cover render."""
        from pathtracer.core.progressive import RenderSettings

        settings = RenderSettings()

        assert settings.image_width == 400
        assert settings.image_height == 266
        assert settings.samples_per_pixel == 500
        assert settings.max_depth == 50

    def test_height_truncates(self):
        """Test image_height is the truncated width / aspect ratio."""
        from pathtracer.core.progressive import RenderSettings

        assert RenderSettings(image_width=100, aspect_ratio=16.0 / 9.0).image_height == 56

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"image_width": 0},
            {"aspect_ratio": 0.0},
            {"samples_per_pixel": 0},
            {"max_depth": -1},
        ],
    )
    def test_invalid_settings_rejected(self, kwargs):
        """Test invalid settings raise ValueError."""
        from pathtracer.core.progressive import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings(**kwargs)


class TestProgressiveRendererInit:
    """Test ProgressiveRenderer initialization."""

    def test_init_creates_render_target(self):
        """Test that initialization creates a render target with correct dimensions."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(32, 24, max_depth=10)

        assert renderer.width == 32
        assert renderer.height == 24
        assert renderer.max_depth == 10
        assert renderer.sample_count == 0

    def test_from_settings(self):
        """Test the renderer is sized from RenderSettings."""
        from pathtracer.core.progressive import ProgressiveRenderer, RenderSettings

        renderer = ProgressiveRenderer.from_settings(
            RenderSettings(image_width=30, aspect_ratio=1.5, max_depth=7)
        )

        assert (renderer.width, renderer.height, renderer.max_depth) == (30, 20, 7)

    def test_init_rejects_oversized_dimensions(self):
        """Test that initialization rejects dimensions exceeding max size."""
        from pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 100)

    def test_init_rejects_negative_depth(self):
        """Test a negative bounce budget is rejected."""
        from pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="max_depth"):
            ProgressiveRenderer(8, 8, max_depth=-1)


class TestProgressiveRendering:
    """Test sample accumulation."""

    def test_render_accumulates(self):
        """Test repeated render calls keep adding samples."""
        from pathtracer.core.progressive import ProgressiveRenderer

        _setup_sky_camera()
        renderer = ProgressiveRenderer(8, 8, max_depth=5)

        renderer.render(2)
        renderer.render(3)

        assert renderer.sample_count == 5

    def test_zero_samples_is_noop(self):
        """Test rendering zero samples leaves the buffer untouched."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)

        renderer.render(0)

        assert renderer.sample_count == 0

    def test_callback_reports_batches(self):
        """Test the callback fires once per batch with running totals."""
        from pathtracer.core.progressive import ProgressiveRenderer

        _setup_sky_camera()
        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        calls = []

        renderer.render(5, batch_size=2, callback=lambda c, t: calls.append((c, t)))

        assert calls == [(2, 5), (4, 5), (5, 5)]

    def test_render_progressive_generator(self):
        """Test the generator yields progress after each batch."""
        from pathtracer.core.progressive import ProgressiveRenderer

        _setup_sky_camera()
        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        renderer.render(1)

        progress = list(renderer.render_progressive(4, batch_size=3))

        assert progress == [(4, 5), (5, 5)]

    def test_reset(self):
        """Test reset clears samples but keeps dimensions."""
        from pathtracer.core.progressive import ProgressiveRenderer

        _setup_sky_camera()
        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        renderer.render(2)

        renderer.reset()

        assert renderer.sample_count == 0
        assert (renderer.width, renderer.height) == (8, 8)

    def test_resize(self):
        """Test resize changes dimensions and clears samples."""
        from pathtracer.core.integrator import get_image_dimensions
        from pathtracer.core.progressive import ProgressiveRenderer

        _setup_sky_camera()
        renderer = ProgressiveRenderer(8, 8, max_depth=5)
        renderer.render(2)

        renderer.resize(16, 4)

        assert (renderer.width, renderer.height) == (16, 4)
        assert get_image_dimensions() == (16, 4)
        assert renderer.sample_count == 0

    def test_repr(self):
        """Test the repr names the state."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 4, max_depth=3)

        assert repr(renderer) == (
            "ProgressiveRenderer(width=8, height=4, max_depth=3, samples=0)"
        )


class TestImageOutput:
    """Test tone-mapped output."""

    def test_get_image_uint8_sky(self):
        """Test an empty scene renders the sky with blue at full intensity."""
        from pathtracer.core.progressive import ProgressiveRenderer

        _setup_sky_camera()
        renderer = ProgressiveRenderer(6, 4, max_depth=5)
        renderer.render(2)

        image = renderer.get_image_uint8()

        assert image.shape == (4, 6, 3)
        assert image.dtype == np.uint8
        assert np.all(image[:, :, 2] == 255)
        # Top row looks further up, so it is less red than the bottom row
        assert image[0, :, 0].mean() < image[-1, :, 0].mean()

    def test_get_image_numpy_range(self):
        """Test float output lies in [0, 1)."""
        from pathtracer.core.progressive import ProgressiveRenderer

        _setup_sky_camera()
        renderer = ProgressiveRenderer(6, 4, max_depth=5)
        renderer.render(1)

        image = renderer.get_image_numpy()

        assert image.dtype == np.float32
        assert np.all(image >= 0.0)
        assert np.all(image < 1.0)

    def test_output_before_rendering_raises(self):
        """Test tone mapping with no samples raises ValueError."""
        from pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(6, 4)

        with pytest.raises(ValueError, match="positive"):
            renderer.get_image_uint8()

    def test_save_ppm_to_stream(self):
        """Test PPM output to a stream has the right header."""
        from pathtracer.core.progressive import ProgressiveRenderer
        from pathtracer.preview.export import decode_ppm

        _setup_sky_camera()
        renderer = ProgressiveRenderer(6, 4, max_depth=5)
        renderer.render(1)
        stream = io.StringIO()

        renderer.save_ppm(stream)

        text = stream.getvalue()
        assert text.startswith("P3\n6 4\n255\n")
        assert np.array_equal(decode_ppm(text), renderer.get_image_uint8())

    def test_save_png(self, tmp_path):
        """Test PNG output is written."""
        from PIL import Image as PILImage

        from pathtracer.core.progressive import ProgressiveRenderer

        _setup_sky_camera()
        renderer = ProgressiveRenderer(6, 4, max_depth=5)
        renderer.render(1)
        path = tmp_path / "render.png"

        renderer.save_png(path)

        with PILImage.open(path) as loaded:
            assert loaded.size == (6, 4)
