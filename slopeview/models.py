"""Data classes for elevation grids, meshes and survey areas."""

import pathlib
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple

import numpy as np

from .constants import OUTPUT_DIR, SURVEY_GRID_SIZE, SURVEY_STEP_DEG
from .errors import EmptyGridError, InvalidGridError


class PathManager:
    """Manage paths relative to the SlopeView directory."""

    @staticmethod
    def get_output_path(filename: str) -> pathlib.Path:
        """Get the output file path (absolute paths pass through)."""
        return OUTPUT_DIR / filename


def as_elevation_grid(grid) -> np.ndarray:
    """Return *grid* as a rectangular 2-D float64 array.

    Accepts nested sequences or an ndarray.  Raises EmptyGridError when
    there are no samples and InvalidGridError for ragged rows or arrays
    that are not two-dimensional.
    """
    if isinstance(grid, np.ndarray):
        try:
            arr = grid.astype(np.float64, copy=False)
        except (TypeError, ValueError) as e:
            raise InvalidGridError(f"Elevation samples must be numeric: {e}") from e
    else:
        rows = list(grid)
        if not rows:
            raise EmptyGridError("Elevation grid has no rows")
        try:
            lengths = [len(row) for row in rows]
        except TypeError:
            raise InvalidGridError("Elevation grid must be a list of rows")
        for i, length in enumerate(lengths):
            if length != lengths[0]:
                raise InvalidGridError(
                    f"Row {i} has {length} samples, expected {lengths[0]}")
        try:
            arr = np.array(rows, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidGridError(f"Elevation samples must be numeric: {e}") from e

    if arr.size == 0:
        raise EmptyGridError("Elevation grid has no samples")
    if arr.ndim != 2:
        raise InvalidGridError(f"Elevation grid must be 2-D, got {arr.ndim}-D")
    return arr


@dataclass(frozen=True)
class NormalizationRange:
    min: float
    max: float
    clamped: bool = False

    def __post_init__(self):
        if not self.max > self.min:
            raise ValueError(
                f"Normalization range needs max > min (got {self.min}, {self.max})")

    @property
    def span(self) -> float:
        return self.max - self.min


@dataclass(frozen=True)
class Vertex:
    position: Tuple[float, float, float]
    uv: Tuple[float, float]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in world units, used as a culling hint."""
    min: Tuple[float, float, float]
    max: Tuple[float, float, float]

    @property
    def extents(self) -> Tuple[float, float, float]:
        return tuple(hi - lo for lo, hi in zip(self.min, self.max))

    @property
    def center(self) -> Tuple[float, float, float]:
        return tuple((lo + hi) / 2 for lo, hi in zip(self.min, self.max))


@dataclass(eq=False)
class Mesh:
    """Triangle-list terrain mesh.

    positions : (V, 3) float32; x east, y up, z = -row (north is -Z)
    uvs       : (V, 2) float32; u = column / cols, v = normalized height
    indices   : (T, 3) uint16; (tl, bl, tr), (tr, bl, br) per cell
    """
    positions: np.ndarray
    uvs: np.ndarray
    indices: np.ndarray
    rows: int
    cols: int
    height_range: NormalizationRange
    horizontal_scale: float
    vertical_scale: float

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices)

    @property
    def index_count(self) -> int:
        return self.indices.size

    def vertex(self, i: int) -> Vertex:
        x, y, z = self.positions[i]
        u, v = self.uvs[i]
        return Vertex(position=(float(x), float(y), float(z)),
                      uv=(float(u), float(v)))

    @property
    def vertices(self) -> Iterator[Vertex]:
        for i in range(self.vertex_count):
            yield self.vertex(i)

    def interleaved(self) -> np.ndarray:
        """Vertex buffer with 5 floats per vertex: x, y, z, u, v."""
        return np.hstack([self.positions, self.uvs]).astype(np.float32)

    def index_buffer(self) -> np.ndarray:
        """Flat uint16 triangle list."""
        return self.indices.astype(np.uint16).ravel()

    def bounding_box(self) -> BoundingBox:
        h = self.horizontal_scale
        return BoundingBox(
            min=(0.0, 0.0, -(self.rows - 1) * h),
            max=((self.cols - 1) * h, self.vertical_scale, 0.0),
        )


@dataclass
class SurveyArea:
    """Square sample grid centred on a GPS position.

    Longitude steps are doubled so cells stay roughly square at
    Scandinavian latitudes.
    """
    center_lat: float
    center_lon: float
    grid_size: int = SURVEY_GRID_SIZE
    step_deg: float = SURVEY_STEP_DEG
    coordinates: List[Tuple[float, float]] = field(init=False, repr=False)

    def __post_init__(self):
        if self.grid_size < 2:
            raise InvalidGridError(
                f"Survey grid needs at least 2x2 samples, got {self.grid_size}")
        half = self.grid_size // 2
        self.coordinates = [
            (self.center_lat + (y - half) * self.step_deg,
             self.center_lon + (x - half) * self.step_deg * 2)
            for y in range(self.grid_size)
            for x in range(self.grid_size)
        ]

    @property
    def point_count(self) -> int:
        return self.grid_size * self.grid_size

    def cache_key(self) -> str:
        """Filename for a cached survey."""
        return (f"survey_{self.center_lat:.4f}_{self.center_lon:.4f}"
                f"_{self.grid_size}_{self.step_deg:.4f}.json")
