"""Tone mapping and image export for rendered images.

Accumulated sample sums are converted to 8-bit pixels by:

1. dividing each channel by the sample count,
2. gamma-2 correction (square root),
3. clamping to [0, 0.999],
4. scaling by 256 and truncating to an integer.

Supported formats:
    - Plain-text PPM (P3): a three-line header ``P3``, ``<width> <height>``,
      ``255``, then one ``R G B`` line per pixel, top row first, left to right
    - PNG (8-bit via Pillow)

Example:
    >>> from pathtracer.preview.export import tone_map, write_ppm
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 266)
    >>> renderer.render(100)
    >>> write_ppm(renderer.get_image_uint8(), "output.ppm")
"""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

PPM_MAGIC = "P3"
PPM_MAX_VALUE = 255

# Upper clamp before scaling so that 256 * value truncates to at most 255
MAX_INTENSITY = 0.999


def tone_map(
    accumulated: npt.NDArray[np.floating],
    samples: int,
) -> npt.NDArray[np.uint8]:
    """Convert summed sample colors to 8-bit pixel values.

    Args:
        accumulated: Sum of sample colors, shape (H, W, 3) or (3,).
        samples: Number of samples summed into each pixel (must be positive).

    Returns:
        Integer array with the same shape, values in [0, 255].

    Raises:
        ValueError: If samples is not positive.
    """
    if samples <= 0:
        raise ValueError(f"Sample count must be positive, got {samples}")

    scaled = np.asarray(accumulated, dtype=np.float64) / float(samples)
    # Negative values would turn into NaN under sqrt; they clamp to black anyway
    gamma_corrected = np.sqrt(np.maximum(scaled, 0.0))
    clamped = np.clip(np.nan_to_num(gamma_corrected, nan=0.0), 0.0, MAX_INTENSITY)
    return (256.0 * clamped).astype(np.uint8)


def _validate_rgb(image: npt.NDArray[np.integer]) -> npt.NDArray[np.integer]:
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected image of shape (H, W, 3), got {image.shape}")
    if image.size and (image.min() < 0 or image.max() > PPM_MAX_VALUE):
        raise ValueError(f"Pixel values must be in [0, {PPM_MAX_VALUE}]")
    return image


def encode_ppm(image: npt.NDArray[np.integer]) -> str:
    """Encode an 8-bit RGB image as plain-text PPM (P3).

    Args:
        image: Integer array of shape (H, W, 3), row 0 is the top scanline.

    Returns:
        The PPM document as a string, one pixel per line.

    Raises:
        ValueError: If the array shape or value range is invalid.
    """
    image = _validate_rgb(image)
    height, width = image.shape[0], image.shape[1]

    lines = [PPM_MAGIC, f"{width} {height}", str(PPM_MAX_VALUE)]
    for r, g, b in image.reshape(-1, 3).tolist():
        lines.append(f"{r} {g} {b}")
    return "\n".join(lines) + "\n"


def decode_ppm(text: str) -> npt.NDArray[np.uint8]:
    """Parse a plain-text PPM (P3) document.

    Whitespace between tokens is not significant and ``#`` comments are
    skipped, so files written by other tools are accepted as well.

    Args:
        text: The PPM document.

    Returns:
        Array of shape (H, W, 3), dtype uint8.

    Raises:
        ValueError: If the document is not a valid 8-bit P3 image.
    """
    tokens: list[str] = []
    for line in text.splitlines():
        tokens.extend(line.split("#", 1)[0].split())

    if len(tokens) < 4 or tokens[0] != PPM_MAGIC:
        raise ValueError("Not a plain-text PPM (P3) document")

    try:
        width, height, max_value = int(tokens[1]), int(tokens[2]), int(tokens[3])
        values = [int(token) for token in tokens[4:]]
    except ValueError as e:
        raise ValueError(f"Malformed PPM data: {e}") from e

    if max_value != PPM_MAX_VALUE:
        raise ValueError(f"Unsupported PPM max value {max_value}, expected {PPM_MAX_VALUE}")
    if width < 0 or height < 0:
        raise ValueError(f"Invalid PPM dimensions {width}x{height}")
    expected = width * height * 3
    if len(values) != expected:
        raise ValueError(f"Expected {expected} channel values, found {len(values)}")

    pixels = np.array(values, dtype=np.int64).reshape(height, width, 3)
    return _validate_rgb(pixels).astype(np.uint8)


def write_ppm(image: npt.NDArray[np.integer], target: str | Path | TextIO) -> None:
    """Write an 8-bit RGB image as plain-text PPM.

    Args:
        image: Integer array of shape (H, W, 3), row 0 is the top scanline.
        target: Output path, or an open text stream (e.g. sys.stdout).
    """
    document = encode_ppm(image)
    if hasattr(target, "write"):
        target.write(document)
    else:
        Path(target).write_text(document)


def read_ppm(source: str | Path) -> npt.NDArray[np.uint8]:
    """Read a plain-text PPM file into an (H, W, 3) uint8 array."""
    return decode_ppm(Path(source).read_text())


def save_png_from_array(image: npt.NDArray[np.integer], filepath: str | Path) -> None:
    """Save an 8-bit RGB image array as a PNG file.

    Args:
        image: Integer array of shape (H, W, 3), row 0 is the top scanline.
        filepath: Output file path (should end in .png).
    """
    image = _validate_rgb(image)
    pil_image = PILImage.fromarray(image.astype(np.uint8))
    pil_image.save(str(filepath))


def compute_rmse(
    image_a: npt.NDArray[np.number],
    image_b: npt.NDArray[np.number],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
