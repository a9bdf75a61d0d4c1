"""Preview module for rendered output.

Components:
    export: Tone mapping, plain-text PPM encode/decode and PNG export

Accumulated sample sums are averaged, gamma corrected (gamma 2) and
quantized to 8 bits before being written out.

Example:
    >>> from pathtracer.preview import tone_map, write_ppm
    >>> from pathtracer.core.integrator import get_accumulated_image_numpy, get_total_samples
    >>>
    >>> pixels = tone_map(get_accumulated_image_numpy(), get_total_samples())
    >>> write_ppm(pixels, "output.ppm")
"""

from pathtracer.preview.export import (
    compute_rmse,
    decode_ppm,
    encode_ppm,
    read_ppm,
    save_png_from_array,
    tone_map,
    write_ppm,
)

__all__ = [
    # Tone mapping
    "tone_map",
    # PPM
    "encode_ppm",
    "decode_ppm",
    "write_ppm",
    "read_ppm",
    # PNG
    "save_png_from_array",
    "compute_rmse",
]
