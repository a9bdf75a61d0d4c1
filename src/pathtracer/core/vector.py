"""Vector algebra and random sampling utilities for path tracing.

A single 3-component type (``vec3``) stands in for points, directions and
colors. Componentwise add, subtract, scale and multiply come directly from
Taichi vector arithmetic; this module adds the geometric helpers the
materials, camera and integrator need. Every function is a ``@ti.func`` and
may only be called from inside a Taichi kernel.

Random generators draw from ``ti.random``, whose state is kept per thread and
seeded by ``ti.init(random_seed=...)``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.vector import reflect, vec3
    >>> @ti.kernel
    ... def mirror() -> vec3:
    ...     return reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
    >>> mirror()  # (1, 1, 0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero in near_zero()
NEAR_ZERO_EPSILON = 1e-8


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.sqrt(tm.dot(v, v))


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The input must not be (near) zero length. A zero vector yields NaN
    components rather than an error; callers that can produce degenerate
    vectors guard with near_zero() first.

    Args:
        v: The input vector.

    Returns:
        v / length(v).
    """
    return v / length(v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Alias of unit_vector()."""
    return unit_vector(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction (pointing toward the surface).
        normal: The surface normal (must be unit length).

    Returns:
        incident - 2 * dot(incident, normal) * normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta_ratio: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    The transmitted direction is split into a component perpendicular to the
    normal and a component parallel to it. The cosine is clamped to 1 so
    floating-point overshoot never reaches the square roots.

    Callers are expected to rule out total internal reflection beforehand
    (see materials.dielectric); the absolute value below keeps the result
    finite if they do not.

    Args:
        incident: The incoming direction (must be unit length).
        normal: The surface normal facing the incident ray (unit length).
        eta_ratio: Ratio of refractive indices, n_incident / n_transmitted.

    Returns:
        The refracted direction (unit length for valid inputs).
    """
    cos_theta = tm.min(tm.dot(-incident, normal), 1.0)
    r_out_perp = eta_ratio * (incident + cos_theta * normal)
    r_out_parallel = -tm.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ratio: ti.f32) -> ti.f32:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        ratio: Ratio of refractive indices.

    Returns:
        r0 + (1 - r0) * (1 - cosine)^5, where r0 = ((1 - ratio) / (1 + ratio))^2.
    """
    r0 = (1.0 - ratio) / (1.0 + ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check whether every component of a vector is below 1e-8 in magnitude.

    Returns:
        1 if all three components are near zero, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3(min_value: ti.f32, max_value: ti.f32) -> vec3:
    """Generate a vector with each component uniform in [min_value, max_value)."""
    span = max_value - min_value
    return vec3(
        min_value + span * ti.random(ti.f32),
        min_value + span * ti.random(ti.f32),
        min_value + span * ti.random(ti.f32),
    )


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a point uniformly distributed inside the unit ball.

    Rejection sampling over the [-1, 1)^3 cube. The expected number of draws
    is below two; there is no iteration cap, the loop terminates almost
    surely.

    Returns:
        A random point with squared length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    while not found:
        p = random_vec3(-1.0, 1.0)
        found = length_squared(p) < 1.0
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    return unit_vector(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for lens sampling in the thin-lens camera.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    while not found:
        p = vec3(
            ti.random(ti.f32) * 2.0 - 1.0,
            ti.random(ti.f32) * 2.0 - 1.0,
            0.0,
        )
        found = p.x * p.x + p.y * p.y < 1.0
    return p
