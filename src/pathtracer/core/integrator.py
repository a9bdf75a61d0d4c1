"""Path tracing integrator for Monte Carlo light transport.

Each sample follows one path from the camera. The path is traced
iteratively, never recursively, with an explicit bounce budget
(``max_depth``):

1. Find the closest hit in [T_MIN, +inf). T_MIN keeps a scattered ray from
   re-hitting the surface it starts on ("shadow acne").
2. No hit: the path escapes and returns ``attenuation * sky_color``.
3. Hit, material absorbs: the path returns black.
4. Hit, material scatters: ``attenuation *= material attenuation`` and the
   scattered ray becomes the current ray.

A path that is still bouncing when the budget runs out returns black. The
sky and the absorbed cases are distinct terminal states; only an escaping
path carries light.

Rendering launches one kernel per sample pass. The kernel's outer pixel loop
is parallelised by Taichi and every pixel writes only its own buffer cell.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.core.integrator import render_image, setup_render_target
    >>> from pathtracer.scene.random_spheres import create_random_scene, default_camera
    >>>
    >>> scene = create_random_scene()
    >>> setup_camera(default_camera(aspect_ratio=1.5))
    >>> setup_render_target(300, 200)
    >>> render_image(num_samples=10, max_depth=50)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray_jittered
from pathtracer.core.vector import unit_vector
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce budget per path
MAX_DEPTH = 50

# t_min and t_max for ray intersection
T_MIN = 0.001
T_MAX = float("inf")

# Sky gradient endpoints (straight down -> straight up)
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of sample colors per pixel (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the accumulation buffer (full preallocated size).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> "ti.ScalarField":
    """Get the per-pixel sample count field (full preallocated size).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Sky and Material Dispatch
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance for a ray that escapes the scene.

    Blends linearly from white (looking straight down) to horizon blue
    (looking straight up) on the normalized direction's y component.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * SKY_WHITE + t * SKY_BLUE


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scattering function of the hit material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, facing the incoming ray.
        front_face: 1 if hit front face, 0 if back face.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material ids absorb the path.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(ray_origin: vec3, ray_direction: vec3, max_depth: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (any non-zero length).
        max_depth: Bounce budget. 0 always yields black.

    Returns:
        The radiance estimate (RGB) for this path.
    """
    origin = ray_origin
    direction = ray_direction

    color = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (loop exits by exhausting the budget)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(origin, direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                # Ray escaped to the sky
                color = attenuation * sky_color(direction)
                active = 0
            else:
                scattered_direction, material_attenuation, did_scatter = _scatter_material(
                    hit_record.material_id,
                    direction,
                    hit_record.normal,
                    hit_record.front_face,
                )

                if did_scatter == 0:
                    # Ray was absorbed
                    color = vec3(0.0, 0.0, 0.0)
                    active = 0
                else:
                    attenuation *= material_attenuation
                    origin = hit_record.point
                    direction = scattered_direction

    return color


@ti.func
def trace_path(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Trace one jittered camera path through a pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Bounce budget.

    Returns:
        The estimated radiance (RGB) for this path sample.
    """
    ray = get_ray_jittered(pixel_i, pixel_j, width, height)
    return ray_color(ray.origin, ray.direction, max_depth)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32):
    """Render one sample per pixel and add it to the accumulation buffer."""
    for i, j in ti.ndrange(width, height):
        color = trace_path(i, j, width, height, max_depth)

        # Replace NaN/Inf (e.g. from a degenerate normalization) with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _color_buffer[i, j] += color
        _sample_count[i, j] += 1


# Result slot for the single-path kernels below
_single_result = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32
):
    """Render a single sample for a specific pixel without accumulating it."""
    # Single-iteration outer loop keeps the bounce and scene loops serial
    for i in range(1):
        _single_result[None] = trace_path(pixel_i, pixel_j, width, height, max_depth)


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    max_depth: ti.i32,
):
    """Trace one explicit ray through the scene."""
    for i in range(1):
        _single_result[None] = ray_color(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Estimate the radiance along one ray through the current scene.

    Does not need a camera or render target; useful for testing the
    integrator in isolation.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z), any non-zero length.
        max_depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) radiance values.
    """
    _trace_single_ray(
        origin[0], origin[1], origin[2], direction[0], direction[1], direction[2], max_depth
    )
    color = _single_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(
    pixel_i: int, pixel_j: int, max_depth: int = MAX_DEPTH
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    _render_single_pixel(pixel_i, pixel_j, width, height, max_depth)
    color = _single_result[None]

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH) -> None:
    """Add samples to every pixel of the render target.

    Can be called multiple times to keep refining the image.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Bounce budget per path.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If max_depth is negative.
    """
    _check_render_target_initialized()
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth)


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel.

    Returns the sample count of pixel (0, 0), which is the same for all
    pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_accumulated_image_numpy() -> npt.NDArray[np.float32]:
    """Get the summed sample colors as a NumPy array.

    The array shape is (height, width, 3) with row 0 holding the top
    scanline. Values are raw sums; divide by get_total_samples() (or use
    preview.export.tone_map) to get pixel colors.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (buffer row 0 is the bottom scanline, images start at the top)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
