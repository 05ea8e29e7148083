"""Configuration constants, paths, and logging setup."""

import os
import pathlib
import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure base paths
BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
OUTPUT_DIR = BASE_DIR / "output"
CACHE_DIR = BASE_DIR / "cache"
ELEVATION_CACHE_DIR = CACHE_DIR / "elevation"

# ── Mesh pipeline defaults ───────────────────────────────────────
DEFAULT_TARGET_GRID_SIZE = 200       # resample target (N x N)
MAX_TARGET_GRID_SIZE = 256           # 256 * 256 = 65,536 vertices
DEFAULT_HORIZONTAL_SCALE = 10.0      # world units per grid cell
DEFAULT_VERTICAL_SCALE = 150.0       # world units per normalized height unit
DEFAULT_EPSILON = 1.0                # minimum elevation range before flattening
DEGENERATE_RANGE_PAD = 1.0           # max = min + pad when the range is flat

# uint16 indices address vertices 0..65535
MAX_INDEXED_VERTICES = 65536

# ── Elevation survey ─────────────────────────────────────────────
ELEVATION_BASE_URL = os.environ.get(
    "SLOPEVIEW_ELEVATION_URL", "https://ws.geonorge.no/hoydedata/v1/")
ELEVATION_CRS = 4258                 # ETRS89 geographic (lon/lat)
ELEVATION_BATCH_SIZE = 50            # points per request
ELEVATION_TIMEOUT = 30
SURVEY_GRID_SIZE = 25                # 25 x 25 sample points
SURVEY_STEP_DEG = 0.005
SEA_SURFACE_TERRAIN = "Havflate"     # terrain type reported for open sea

# ── Orbit camera ─────────────────────────────────────────────────
CAMERA_DEFAULT_DISTANCE = 500.0
CAMERA_DEFAULT_YAW = 0.0
CAMERA_DEFAULT_PITCH = 30.0
CAMERA_MIN_PITCH = 5.0
CAMERA_MAX_PITCH = 80.0
CAMERA_MIN_DISTANCE = 100.0
CAMERA_MAX_DISTANCE = 5000.0
CAMERA_DRAG_SENSITIVITY = 0.2        # degrees per pixel
CAMERA_FOV_DEG = 90.0
CAMERA_ASPECT = 16.0 / 9.0

# Set SLOPEVIEW_NO_CACHE=1 to bypass the elevation cache
USE_CACHE = os.environ.get("SLOPEVIEW_NO_CACHE", "").strip() not in ("1", "true", "yes")

# Configure logging
logging.basicConfig(
    level=os.environ.get("SLOPEVIEW_LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)
