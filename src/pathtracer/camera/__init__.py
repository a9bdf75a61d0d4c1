"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with a thin lens for depth of field

Camera responsibilities:
    - Transform (s, t) viewport coordinates to world-space rays
    - Apply anti-aliasing jitter for sub-pixel sampling
    - Jitter ray origins across the lens aperture for defocus blur

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_info",
]
