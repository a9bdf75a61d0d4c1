"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    vector: vec3 algebra, reflection/refraction and random sampling
    ray: Ray data structure and parametric evaluation
    integrator: Iterative bounded path tracer and render target
    progressive: Sample accumulation wrapper and render settings

The integrator estimates each pixel as the average of independent samples.
Every sample follows one path through the scene, multiplying material
attenuation until the path escapes to the sky, is absorbed, or runs out of
bounces.
"""

from .ray import Ray, make_ray, ray_at
from .vector import (
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator or pathtracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
