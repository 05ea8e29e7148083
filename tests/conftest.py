"""Shared fixtures for the SlopeView tests."""
import json
import threading

import numpy as np
import pytest
import requests

from slopeview.elevation import ElevationClient
from slopeview.surface import RenderBackend


class RecordingBackend(RenderBackend):
    """Render backend that records every create/release call."""

    def __init__(self, fail_on_create=False):
        self.events = []
        self.live = {}
        self.threads = set()
        self.fail_on_create = fail_on_create
        self._n = 0

    def create(self, mesh):
        self.threads.add(threading.get_ident())
        if self.fail_on_create:
            raise RuntimeError("GPU out of memory")
        self._n += 1
        handle = f"h{self._n}"
        self.live[handle] = mesh
        self.events.append(("create", handle))
        return handle

    def release(self, handle):
        self.threads.add(threading.get_ident())
        self.live.pop(handle, None)
        self.events.append(("release", handle))


def fake_elevation(lat, lon):
    """Deterministic elevation for a coordinate."""
    return round((lat - 69.0) * 10000 + (lon - 18.0) * 1000, 3)


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self.payload


class FakeSession:
    """Stands in for requests.Session against the height-data service."""

    def __init__(self, status_code=200, sea_west_of=None, error=None):
        self.calls = []
        self.status_code = status_code
        self.sea_west_of = sea_west_of
        self.error = error

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        if self.error is not None:
            raise self.error
        points = []
        for lon, lat in json.loads(params['punkter']):
            sea = self.sea_west_of is not None and lon < self.sea_west_of
            points.append({
                'datakilde': 'dtm1',
                'terreng': 'Havflate' if sea else 'Terreng',
                'x': lon,
                'y': lat,
                'z': 12.5 if sea else fake_elevation(lat, lon),
            })
        return FakeResponse({'koordsys': 4258, 'punkter': points},
                            status_code=self.status_code)


@pytest.fixture
def output_dir(tmp_path):
    """Temporary directory for generated files."""
    out = tmp_path / "output"
    out.mkdir()
    return out


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def client(fake_session, tmp_path):
    return ElevationClient(session=fake_session, use_cache=False,
                           cache_dir=tmp_path / "cache")


@pytest.fixture
def hill_grid():
    """5x5 grid with a single peak in the middle."""
    y, x = np.mgrid[0:5, 0:5]
    return 100.0 + 50.0 * np.exp(-((x - 2) ** 2 + (y - 2) ** 2) / 2.0)
