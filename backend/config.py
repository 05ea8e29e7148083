import os
import pathlib

from slopeview.constants import USE_CACHE  # noqa: F401

BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
OUTPUT_DIR = BASE_DIR / "output"

# Origins allowed to call the API (comma separated)
ALLOWED_ORIGINS = [
    o.strip() for o in os.environ.get(
        "SLOPEVIEW_ALLOWED_ORIGINS",
        "http://localhost:5174,http://127.0.0.1:5174").split(",")
    if o.strip()
]
