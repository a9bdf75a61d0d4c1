"""Scene module for scene management and hit records.

Components:
    intersection: Sphere storage and closest-hit scene queries
    manager: Material pool and scene builder with dict/JSON round-tripping
    random_spheres: Procedural random spheres cover scene

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - Spheres reference materials by unified material id
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .random_spheres import RandomSceneParams, create_random_scene, default_camera

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Random spheres scene
    "RandomSceneParams",
    "create_random_scene",
    "default_camera",
]
