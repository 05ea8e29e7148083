"""GLB (binary glTF) export of a built terrain surface."""

import logging
import math
import time
from typing import Optional

import trimesh
from trimesh.visual.material import PBRMaterial

from .camera import OrbitCamera
from .constants import CAMERA_ASPECT, CAMERA_FOV_DEG
from .mesh import to_trimesh
from .models import Mesh, NormalizationRange, PathManager
from .surface import TerrainSurface

logger = logging.getLogger(__name__)


def terrain_material(height_range: NormalizationRange) -> PBRMaterial:
    """Terrain material; the height ramp is driven by UV.v.

    Grid faces point down -Y once rows are negated into -Z, so the
    material is double-sided for glTF viewers that cull back faces.
    """
    return PBRMaterial(
        name=f"terrain_{height_range.min:.0f}_{height_range.max:.0f}",
        baseColorFactor=[0.42, 0.55, 0.28, 1.0],
        metallicFactor=0.0,
        roughnessFactor=0.9,
        doubleSided=True,
    )


def build_scene(mesh: Mesh, camera: Optional[OrbitCamera] = None) -> trimesh.Scene:
    """Scene with the terrain geometry and, optionally, an orbit camera."""
    scene = trimesh.Scene()
    tm = to_trimesh(mesh, material=terrain_material(mesh.height_range))
    scene.add_geometry(tm, node_name="terrain", geom_name="terrain")

    bbox = mesh.bounding_box()
    scene.metadata['bounding_box'] = {'min': list(bbox.min), 'max': list(bbox.max)}
    scene.metadata['min_height'] = mesh.height_range.min
    scene.metadata['max_height'] = mesh.height_range.max

    if camera is not None:
        # Vertical FOV from the renderer; horizontal follows the aspect
        fov_y = CAMERA_FOV_DEG
        fov_x = math.degrees(2 * math.atan(
            math.tan(math.radians(fov_y) / 2) * CAMERA_ASPECT))
        scene.camera = trimesh.scene.Camera(
            name="orbit", resolution=(1600, 900), fov=(fov_x, fov_y),
            z_near=0.1, z_far=10000.0)
        scene.camera_transform = camera.transform()
    return scene


def export_glb(surface: TerrainSurface, output_path: str,
               camera: Optional[OrbitCamera] = None) -> str:
    """Write the surface's current mesh to a GLB file.

    Relative paths resolve under the output directory.  Returns the
    absolute path to the written file.
    """
    mesh = surface.mesh
    if mesh is None:
        raise ValueError("Surface has no built mesh to export")

    t0 = time.perf_counter()
    output_path = PathManager.get_output_path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    scene = build_scene(mesh, camera=camera)
    scene.export(str(output_path), file_type='glb')

    size_kb = output_path.stat().st_size / 1024
    logger.info(f"GLB file generated: {output_path} ({size_kb:.0f} KB, "
                f"{time.perf_counter() - t0:.2f}s)")
    return str(output_path)
