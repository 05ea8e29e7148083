"""Exception and warning types raised by the terrain pipeline."""


class TerrainError(Exception):
    """Base class for every failure that makes the terrain unavailable."""


class InvalidGridError(TerrainError):
    """The grid is non-rectangular, non-square where required, or too small."""


class EmptyGridError(InvalidGridError):
    """The elevation grid holds no samples."""


class MeshTooLargeError(TerrainError):
    """The vertex count cannot be addressed by 16-bit indices."""

    def __init__(self, vertex_count: int, limit: int):
        self.vertex_count = vertex_count
        self.limit = limit
        super().__init__(
            f"Mesh has {vertex_count} vertices; uint16 indices "
            f"support at most {limit}")


class SurfaceDestroyedError(TerrainError):
    """A destroyed surface was asked to build again."""


class ElevationFetchError(TerrainError):
    """The elevation service could not be reached or returned an error."""


class DegenerateRangeWarning(UserWarning):
    """The elevation range was flat and has been widened."""
