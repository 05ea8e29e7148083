"""Bilinear upsampling of a coarse square elevation grid."""

import logging

import numpy as np

from .models import as_elevation_grid
from .errors import InvalidGridError

logger = logging.getLogger(__name__)


def resample(source, target_size: int) -> np.ndarray:
    """Upsample an M x M grid to target_size x target_size.

    Target cell (x, y) samples the source at
    ``(x, y) * (M - 1) / (N - 1)`` so the outer rows and columns land
    exactly on the source edges.  At the last source row/column the
    upper neighbour clamps to the lower one, which reduces the blend to
    a constant there instead of reading out of range.

    Pure: the source is never modified and identical input always
    produces identical output.  When target_size == M the source values
    are returned unchanged.
    """
    grid = as_elevation_grid(source)
    rows, cols = grid.shape
    if rows != cols:
        raise InvalidGridError(f"Resampling needs a square grid, got {rows}x{cols}")
    m = rows
    if m < 2:
        raise InvalidGridError(
            f"Bilinear resampling needs at least 2x2 samples, got {m}x{m}")
    target_size = int(target_size)
    if target_size < m:
        raise InvalidGridError(
            f"Target size {target_size} is smaller than source size {m}")

    scale = (m - 1) / (target_size - 1)
    src = np.arange(target_size, dtype=np.float64) * scale

    lo = np.minimum(np.floor(src).astype(np.intp), m - 1)
    hi = np.minimum(lo + 1, m - 1)
    frac = src - lo

    # Rows index y, columns index x
    y1, y2, yf = lo[:, None], hi[:, None], frac[:, None]
    x1, x2, xf = lo[None, :], hi[None, :], frac[None, :]

    q11 = grid[y1, x1]
    q21 = grid[y1, x2]
    q12 = grid[y2, x1]
    q22 = grid[y2, x2]

    out = (q11 * (1 - xf) * (1 - yf) +
           q21 * xf * (1 - yf) +
           q12 * (1 - xf) * yf +
           q22 * xf * yf)

    logger.info(f"Resampled elevation grid {m}x{m} -> {target_size}x{target_size}")
    return out
