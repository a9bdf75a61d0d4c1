"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one call)
- Progress callbacks for UI updates
- Tone-mapped export to PPM and PNG

The ProgressiveRenderer class encapsulates the render target state and provides
a clean interface for batch and interactive rendering workflows.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu, random_seed=7)
    >>> from pathtracer.core.progressive import ProgressiveRenderer, RenderSettings
    >>> from pathtracer.scene.random_spheres import create_random_scene, default_camera
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> settings = RenderSettings(image_width=400, samples_per_pixel=100)
    >>> create_random_scene(rng=np.random.default_rng(7))
    >>> setup_camera(default_camera(settings.aspect_ratio))
    >>>
    >>> renderer = ProgressiveRenderer.from_settings(settings)
    >>> renderer.render(settings.samples_per_pixel, batch_size=10)
    >>> renderer.save_ppm("output.ppm")
"""

import time
from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TextIO

import numpy as np
import numpy.typing as npt
from loguru import logger

from pathtracer.core.integrator import (
    MAX_DEPTH,
    clear_render_target,
    get_accumulated_image_numpy,
    get_image,
    get_total_samples,
    render_image,
    setup_render_target,
)
from pathtracer.preview.export import save_png_from_array, tone_map, write_ppm

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Image and sampling parameters for a render.

    Attributes:
        image_width: Output width in pixels.
        aspect_ratio: Width divided by height.
        samples_per_pixel: Number of camera paths averaged per pixel.
        max_depth: Bounce budget per path.
        seed: Seed for the device RNG (passed to ti.init) and scene builder.
    """

    image_width: int = 400
    aspect_ratio: float = 3.0 / 2.0
    samples_per_pixel: int = 500
    max_depth: int = MAX_DEPTH
    seed: int = 0

    def __post_init__(self) -> None:
        if self.image_width <= 0:
            raise ValueError(f"image_width must be positive, got {self.image_width}")
        if self.aspect_ratio <= 0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")

    @property
    def image_height(self) -> int:
        """Image height derived from the width and aspect ratio (truncated)."""
        return int(self.image_width / self.aspect_ratio)


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer maintains its own width/height/max_depth and delegates to
    the global integrator buffers (which are Taichi fields), so only one
    renderer should be active at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Bounce budget per path.
    """

    def __init__(self, width: int, height: int, max_depth: int = MAX_DEPTH) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Bounce budget per path.

        Raises:
            ValueError: If dimensions are invalid or max_depth is negative.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self._width = width
        self._height = height
        self._max_depth = max_depth
        setup_render_target(width, height)

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> "ProgressiveRenderer":
        """Create a renderer sized from RenderSettings."""
        return cls(settings.image_width, settings.image_height, settings.max_depth)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def max_depth(self) -> int:
        """Get the bounce budget per path."""
        return self._max_depth

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulator without changing the image dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples <= 0:
            return
        batch_size = max(1, batch_size)

        start_samples = self.sample_count
        target_samples = start_samples + num_samples
        logger.info(
            "Rendering {}x{} at {} spp (max depth {})",
            self._width,
            self._height,
            num_samples,
            self._max_depth,
        )

        started = time.perf_counter()
        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            batch_start = time.perf_counter()
            render_image(batch, self._max_depth)
            remaining -= batch
            logger.debug(
                "Batch of {} spp took {:.3f}s", batch, time.perf_counter() - batch_start
            )
            yield (self.sample_count, target_samples)

        logger.info(
            "Finished {} spp in {:.2f}s", num_samples, time.perf_counter() - started
        )

    def get_image(self) -> Any:
        """Get the raw Taichi accumulation buffer field.

        Note: This returns the full preallocated buffer of sample sums. Use
        width/height properties to determine the active region.
        """
        return get_image()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the tone-mapped image as an 8-bit NumPy array.

        Returns:
            Array of shape (height, width, 3), row 0 is the top scanline.

        Raises:
            ValueError: If no samples have been rendered yet.
        """
        return tone_map(get_accumulated_image_numpy(), self.sample_count)

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the tone-mapped image as floats in [0, 1).

        Returns:
            Array of shape (height, width, 3) with dtype float32.
        """
        return (self.get_image_uint8().astype(np.float32)) / 256.0

    def save_ppm(self, target: str | Path | TextIO) -> None:
        """Write the tone-mapped image as plain-text PPM to a path or stream."""
        write_ppm(self.get_image_uint8(), target)
        logger.debug("Wrote PPM image to {}", getattr(target, "name", target))

    def save_png(self, filepath: str | Path) -> None:
        """Write the tone-mapped image as PNG."""
        save_png_from_array(self.get_image_uint8(), filepath)
        logger.debug("Wrote PNG image to {}", filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
