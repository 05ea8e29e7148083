"""Elevation survey sampling via the Geonorge height-data point service.

Fetches a square grid of terrain heights centred on a GPS position.
Points are requested in batches of ELEVATION_BATCH_SIZE; open-sea points
and points without a height are reported as elevation 0.
"""

import json
import logging
import pathlib
from typing import List, Optional, Sequence, Tuple

import numpy as np
import requests

from .constants import (ELEVATION_BASE_URL, ELEVATION_BATCH_SIZE,
                        ELEVATION_CACHE_DIR, ELEVATION_CRS,
                        ELEVATION_TIMEOUT, SEA_SURFACE_TERRAIN, USE_CACHE)
from .errors import ElevationFetchError
from .models import SurveyArea

logger = logging.getLogger(__name__)


def point_elevation(point: dict) -> float:
    """Elevation of one response point, with sea and voids mapped to 0."""
    if point.get('terreng') == SEA_SURFACE_TERRAIN:
        return 0.0
    z = point.get('z')
    if z is None:
        return 0.0
    return float(z)


class ElevationClient:
    """Client for ``{base_url}punkt``.

    session: a requests.Session (or anything with a compatible ``get``);
        a new session is created when omitted.
    """

    def __init__(self, base_url: str = ELEVATION_BASE_URL,
                 session: Optional[requests.Session] = None,
                 use_cache: bool = USE_CACHE,
                 cache_dir: pathlib.Path = ELEVATION_CACHE_DIR,
                 batch_size: int = ELEVATION_BATCH_SIZE,
                 timeout: float = ELEVATION_TIMEOUT):
        self.base_url = base_url.rstrip("/") + "/"
        self.session = session if session is not None else requests.Session()
        self.use_cache = use_cache
        self.cache_dir = pathlib.Path(cache_dir)
        self.batch_size = batch_size
        self.timeout = timeout

    def fetch_batch(self, coordinates: Sequence[Tuple[float, float]]) -> List[dict]:
        """Request heights for (lat, lon) pairs; returns the raw points."""
        # The service takes [lon, lat] pairs
        points = [[round(lon, 6), round(lat, 6)] for lat, lon in coordinates]
        params = {
            'koordsys': ELEVATION_CRS,
            'geojson': 'false',
            'punkter': json.dumps(points, separators=(',', ':')),
        }
        url = self.base_url + "punkt"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise ElevationFetchError(f"Elevation request failed: {e}") from e
        except ValueError as e:
            raise ElevationFetchError(f"Elevation response is not JSON: {e}") from e

        result = body.get('punkter') if isinstance(body, dict) else None
        if result is None:
            raise ElevationFetchError("Elevation response has no 'punkter' list")
        if len(result) != len(coordinates):
            raise ElevationFetchError(
                f"Asked for {len(coordinates)} points, received {len(result)}")
        return result

    def fetch_grid(self, area: SurveyArea, progress_callback=None) -> np.ndarray:
        """Sample *area* and return a (grid_size, grid_size) float64 array.

        Row index follows latitude (south to north), column index follows
        longitude (west to east).
        """
        def _progress(pct, msg):
            if progress_callback:
                progress_callback(pct, msg)

        cache_path = self.cache_dir / area.cache_key()
        if self.use_cache and cache_path.exists():
            with open(cache_path) as f:
                cached = json.load(f)
            logger.info(f"Elevation cache hit: {cache_path.name}")
            return np.array(cached['elevation'], dtype=np.float64)

        n = area.grid_size
        coords = area.coordinates
        elevation = np.zeros((n, n), dtype=np.float64)
        batches = [coords[i:i + self.batch_size]
                   for i in range(0, len(coords), self.batch_size)]

        logger.info(f"Fetching {area.point_count} elevation points in "
                    f"{len(batches)} batches around "
                    f"({area.center_lat:.4f}, {area.center_lon:.4f})")

        for batch_index, batch in enumerate(batches):
            points = self.fetch_batch(batch)
            for point_index, point in enumerate(points):
                index = batch_index * self.batch_size + point_index
                y, x = divmod(index, n)
                elevation[y, x] = point_elevation(point)
            _progress(100.0 * (batch_index + 1) / len(batches),
                      f"Fetched batch {batch_index + 1}/{len(batches)}")

        if self.use_cache:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with open(cache_path, 'w') as f:
                json.dump({'center': [area.center_lat, area.center_lon],
                           'elevation': elevation.tolist()}, f)
            logger.info(f"Saved elevation grid to cache: {cache_path.name}")

        logger.info(f"Elevation grid {n}x{n}: min={elevation.min():.1f}, "
                    f"max={elevation.max():.1f}")
        return elevation
