"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package renders scenes of spheres by stochastic path tracing, with:
- Iterative, depth-bounded light transport with a sky gradient background
- Lambertian, metal and dielectric (glass) materials
- A thin-lens camera with depth of field
- Progressive sample accumulation and plain-text (P3) image output

Subpackages:
    core: Vector algebra, rays, the integrator and progressive rendering
    geometry: Sphere primitive and ray-sphere intersection
    materials: Scattering models and material registries
    scene: Scene storage, material pool and the random-spheres scene builder
    camera: Thin-lens camera ray generation
    preview: Tone mapping and image export
"""

__version__ = "0.1.0"
