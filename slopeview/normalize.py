"""Elevation range computation for height normalization."""

import logging
import warnings

import numpy as np

from .constants import DEFAULT_EPSILON, DEGENERATE_RANGE_PAD
from .errors import DegenerateRangeWarning, InvalidGridError
from .models import NormalizationRange, as_elevation_grid

logger = logging.getLogger(__name__)


def compute_range(grid, epsilon: float = DEFAULT_EPSILON) -> NormalizationRange:
    """Return the min/max elevation of *grid*, widened when flat.

    If ``max - min < epsilon`` the returned range is
    ``(min, max(max, min + 1))`` and ``clamped`` is set; the range only
    ever widens, so no sample falls above it.  The same range must be used for every vertex
    of a mesh, so callers get the adjusted values rather than the raw ones.
    """
    arr = as_elevation_grid(grid)
    if not np.isfinite(arr).all():
        raise InvalidGridError("Elevation grid contains non-finite samples")

    lo = float(arr.min())
    hi = float(arr.max())

    if hi - lo < epsilon or hi <= lo:
        # lo + pad can round back to lo for very large magnitudes
        padded = max(hi, lo + DEGENERATE_RANGE_PAD, float(np.nextafter(lo, np.inf)))
        logger.warning(f"Flat elevation range [{lo:.2f}, {hi:.2f}] "
                       f"(< {epsilon}); using [{lo:.2f}, {padded:.2f}]")
        warnings.warn(
            f"Elevation range {hi - lo:.3f} is below {epsilon}; widened to "
            f"[{lo:.2f}, {padded:.2f}]",
            DegenerateRangeWarning,
            stacklevel=2,
        )
        return NormalizationRange(min=lo, max=padded, clamped=True)

    logger.info(f"Elevation range: min={lo:.1f}, max={hi:.1f}")
    return NormalizationRange(min=lo, max=hi)
