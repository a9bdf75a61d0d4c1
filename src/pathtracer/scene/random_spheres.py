"""Procedural "random spheres" cover scene.

The scene consists of:
- A huge gray Lambertian sphere acting as the ground plane
- A square grid of small spheres with randomly chosen materials
  (mostly diffuse, some metal, a few glass)
- Three large feature spheres: glass in the middle, brown diffuse on the
  left, polished metal on the right

All host-side randomness comes from an explicit numpy Generator so a scene is
reproducible from its seed.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from pathtracer.scene.random_spheres import create_random_scene, default_camera
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene = create_random_scene(rng=np.random.default_rng(42))
    >>> setup_camera(default_camera(aspect_ratio=3.0 / 2.0))
"""

from dataclasses import dataclass

import numpy as np
from loguru import logger

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0
GROUND_ALBEDO = (0.5, 0.5, 0.5)

GLASS_IOR = 1.5
FEATURE_RADIUS = 1.0


@dataclass
class RandomSceneParams:
    """Parameters for the random spheres scene.

    Attributes:
        grid_extent: Small spheres are placed for integer a, b in
            [-grid_extent, grid_extent), giving (2 * grid_extent)^2 spheres.
        small_radius: Radius of the small spheres (they rest on the ground).
        diffuse_probability: Probability of a Lambertian small sphere.
        metal_probability: Probability of a metal small sphere. The rest
            are glass.
        seed: Seed used when no Generator is passed to create_random_scene.
    """

    grid_extent: int = 11
    small_radius: float = 0.2
    diffuse_probability: float = 0.8
    metal_probability: float = 0.15
    seed: int = 0

    def __post_init__(self) -> None:
        if self.grid_extent < 0:
            raise ValueError(f"grid_extent must be non-negative, got {self.grid_extent}")
        if self.small_radius <= 0:
            raise ValueError(f"small_radius must be positive, got {self.small_radius}")
        if self.diffuse_probability < 0 or self.metal_probability < 0:
            raise ValueError("Material probabilities must be non-negative")
        if self.diffuse_probability + self.metal_probability > 1.0:
            raise ValueError(
                "diffuse_probability + metal_probability must not exceed 1, got "
                f"{self.diffuse_probability + self.metal_probability}"
            )

    @property
    def sphere_count(self) -> int:
        """Total number of spheres the scene will contain."""
        return 1 + (2 * self.grid_extent) ** 2 + 3


def _add_small_sphere(
    scene: SceneManager,
    center: tuple[float, float, float],
    params: RandomSceneParams,
    rng: np.random.Generator,
) -> None:
    choose_mat = rng.random()

    if choose_mat < params.diffuse_probability:
        albedo = rng.random(3) * rng.random(3)
        scene.add_lambertian_sphere(center, params.small_radius, tuple(albedo.tolist()))
    elif choose_mat < params.diffuse_probability + params.metal_probability:
        albedo = rng.uniform(0.5, 1.0, size=3)
        fuzz = float(rng.uniform(0.0, 0.5))
        scene.add_metal_sphere(center, params.small_radius, tuple(albedo.tolist()), fuzz)
    else:
        scene.add_dielectric_sphere(center, params.small_radius, GLASS_IOR)


def create_random_scene(
    params: RandomSceneParams | None = None,
    rng: np.random.Generator | None = None,
) -> SceneManager:
    """Build the random spheres scene into the global scene storage.

    Args:
        params: Scene parameters. Defaults to RandomSceneParams().
        rng: Random generator for sphere placement and materials. Defaults
            to np.random.default_rng(params.seed).

    Returns:
        The SceneManager holding the scene.

    Raises:
        RuntimeError: If the grid is too large for the sphere or material
            storage.
    """
    if params is None:
        params = RandomSceneParams()
    if rng is None:
        rng = np.random.default_rng(params.seed)

    scene = SceneManager()
    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, GROUND_ALBEDO)

    for a in range(-params.grid_extent, params.grid_extent):
        for b in range(-params.grid_extent, params.grid_extent):
            # Jitter within the cell; the sphere rests on the ground
            center = (
                a + 0.9 * float(rng.random()),
                params.small_radius,
                b + 0.9 * float(rng.random()),
            )
            _add_small_sphere(scene, center, params, rng)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), FEATURE_RADIUS, GLASS_IOR)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), FEATURE_RADIUS, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), FEATURE_RADIUS, (0.7, 0.6, 0.5), 0.0)

    logger.info(
        "Built random scene with {} spheres and {} materials",
        scene.get_sphere_count(),
        scene.get_material_count(),
    )
    return scene


def default_camera(aspect_ratio: float = 3.0 / 2.0) -> ThinLensCamera:
    """Camera framing the random spheres scene.

    Looks from (12, 2, 3) at the origin with a narrow 20 degree field of
    view and a small aperture focused 10 units away.
    """
    return ThinLensCamera(
        lookfrom=(12.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_distance=10.0,
    )
