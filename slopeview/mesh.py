"""Terrain mesh generation from a dense elevation grid.

Each grid sample maps 1:1 to a vertex:

    x = column * horizontal_scale          (east)
    y = normalized height * vertical_scale (up)
    z = -row * horizontal_scale            (rows run north, so north is -Z)

UVs carry the column fraction in U and the normalized height in V so a
material can pick a colour from a height ramp.  Every grid cell becomes
two triangles with a fixed winding; every face shares one orientation.
"""

import logging
import math

import numpy as np
import trimesh
from trimesh.visual.material import PBRMaterial

from .constants import MAX_INDEXED_VERTICES
from .errors import InvalidGridError, MeshTooLargeError
from .models import Mesh, NormalizationRange, as_elevation_grid

logger = logging.getLogger(__name__)


def _check_scale(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive finite number, got {value}")
    return value


def grid_indices(rows: int, cols: int) -> np.ndarray:
    """Triangle list for a rows x cols vertex grid, shape (2*(R-1)*(C-1), 3).

    Cells are emitted row by row; each cell contributes
    (top-left, bottom-left, top-right) then (top-right, bottom-left,
    bottom-right).  Reversing that order flips the front face.
    """
    n_cy, n_cx = rows - 1, cols - 1
    if n_cy <= 0 or n_cx <= 0:
        return np.empty((0, 3), dtype=np.uint16)

    iy_g, ix_g = np.meshgrid(np.arange(n_cy), np.arange(n_cx), indexing='ij')
    iy_f = iy_g.ravel()
    ix_f = ix_g.ravel()

    top_left = iy_f * cols + ix_f
    top_right = top_left + 1
    bottom_left = (iy_f + 1) * cols + ix_f
    bottom_right = bottom_left + 1

    tri1 = np.column_stack([top_left, bottom_left, top_right])
    tri2 = np.column_stack([top_right, bottom_left, bottom_right])

    # Interleave so both triangles of a cell sit next to each other
    faces = np.stack([tri1, tri2], axis=1).reshape(-1, 3)
    return faces.astype(np.uint16)


def build_mesh(grid, height_range: NormalizationRange,
               horizontal_scale: float, vertical_scale: float) -> Mesh:
    """Convert an R x C elevation grid into a Mesh.

    Raises InvalidGridError for empty, ragged or non-finite grids and
    MeshTooLargeError when R*C exceeds what uint16 indices can address.
    """
    elev = as_elevation_grid(grid)
    horizontal_scale = _check_scale("horizontal_scale", horizontal_scale)
    vertical_scale = _check_scale("vertical_scale", vertical_scale)

    rows, cols = elev.shape
    vertex_count = rows * cols
    if vertex_count > MAX_INDEXED_VERTICES:
        raise MeshTooLargeError(vertex_count, MAX_INDEXED_VERTICES)
    if not np.isfinite(elev).all():
        raise InvalidGridError("Elevation grid contains non-finite samples")

    # ── Normalized heights in [0, 1] ────────────────────────────
    normalized = (elev - height_range.min) / (height_range.max - height_range.min)
    normalized = np.clip(normalized, 0.0, 1.0)

    # ── Vertex positions ────────────────────────────────────────
    xx, yy = np.meshgrid(np.arange(cols, dtype=np.float64),
                         np.arange(rows, dtype=np.float64))
    positions = np.empty((vertex_count, 3), dtype=np.float64)
    positions[:, 0] = xx.ravel() * horizontal_scale
    positions[:, 1] = normalized.ravel() * vertical_scale
    positions[:, 2] = -(yy.ravel() * horizontal_scale)

    uvs = np.empty((vertex_count, 2), dtype=np.float64)
    uvs[:, 0] = xx.ravel() / cols
    uvs[:, 1] = normalized.ravel()

    indices = grid_indices(rows, cols)

    logger.info(f"Terrain mesh: {rows}x{cols} grid, {vertex_count} verts, "
                f"{len(indices)} faces")

    return Mesh(
        positions=positions.astype(np.float32),
        uvs=uvs.astype(np.float32),
        indices=indices,
        rows=rows,
        cols=cols,
        height_range=height_range,
        horizontal_scale=horizontal_scale,
        vertical_scale=vertical_scale,
    )


def validate_mesh(mesh: Mesh) -> None:
    """Check buffer shapes and index bounds before a mesh is uploaded."""
    v = mesh.vertex_count
    if v == 0:
        raise InvalidGridError("Mesh has no vertices")
    if v > MAX_INDEXED_VERTICES:
        raise MeshTooLargeError(v, MAX_INDEXED_VERTICES)
    if mesh.positions.shape != (v, 3) or mesh.uvs.shape != (v, 2):
        raise InvalidGridError(
            f"Mesh buffers disagree: positions {mesh.positions.shape}, "
            f"uvs {mesh.uvs.shape}")
    if v != mesh.rows * mesh.cols:
        raise InvalidGridError(
            f"Mesh has {v} vertices for a {mesh.rows}x{mesh.cols} grid")
    if mesh.indices.ndim != 2 or mesh.indices.shape[1] != 3:
        raise InvalidGridError(f"Index buffer must be (T, 3), got {mesh.indices.shape}")
    if mesh.indices.size and int(mesh.indices.max()) >= v:
        raise InvalidGridError(
            f"Index {int(mesh.indices.max())} out of range for {v} vertices")


def to_trimesh(mesh: Mesh, material: PBRMaterial = None) -> trimesh.Trimesh:
    """Wrap a Mesh as a trimesh.Trimesh with UV texture visuals.

    ``process=False`` keeps the grid vertex order so indices stay valid.
    """
    if material is None:
        material = PBRMaterial(
            baseColorFactor=[0.42, 0.55, 0.28, 1.0],
            metallicFactor=0.0,
            roughnessFactor=0.9,
            doubleSided=True,
            name="terrain",
        )
    tm = trimesh.Trimesh(
        vertices=mesh.positions.astype(np.float64),
        faces=mesh.indices.astype(np.int64),
        process=False,
    )
    tm.visual = trimesh.visual.TextureVisuals(uv=mesh.uvs, material=material)
    tm.metadata['min_height'] = mesh.height_range.min
    tm.metadata['max_height'] = mesh.height_range.max
    return tm
