"""TerrainBuilder: thin orchestrator that delegates to focused modules."""

import logging
from typing import Optional

from .camera import OrbitCamera
from .config import TerrainConfig
from .elevation import ElevationClient
from .mesh import build_mesh
from .models import Mesh, SurveyArea, as_elevation_grid
from .normalize import compute_range
from .resample import resample
from .surface import RenderBackend, RenderLoop, SceneBackend, TerrainSurface
from . import glb as glb_mod

logger = logging.getLogger(__name__)


class TerrainBuilder:
    """Fetch -> resample -> normalize -> mesh -> surface hand-off.

    Mesh building happens on the calling thread; only the surface swap
    runs on the render loop.  Callers must not refresh the same builder
    from several threads at once.
    """

    def __init__(self, config: Optional[TerrainConfig] = None,
                 client: Optional[ElevationClient] = None,
                 backend: Optional[RenderBackend] = None,
                 render_loop: Optional[RenderLoop] = None):
        self.config = config or TerrainConfig()
        self.client = client or ElevationClient()
        self.backend = backend or SceneBackend()
        self.render_loop = render_loop or RenderLoop()
        self.surface = TerrainSurface(self.backend)
        self.camera = OrbitCamera()

    def build_mesh(self, samples, progress_callback=None) -> Mesh:
        """Run the pure part of the pipeline on *samples*."""
        def _progress(pct, msg):
            if progress_callback:
                progress_callback(pct, msg)

        cfg = self.config
        grid = as_elevation_grid(samples)
        rows, cols = grid.shape

        _progress(40, "Resampling elevation grid...")
        if rows == cols and rows < cfg.target_grid_size:
            grid = resample(grid, cfg.target_grid_size)
        else:
            logger.info(f"Using {rows}x{cols} grid at native resolution "
                        f"(target {cfg.target_grid_size})")

        _progress(55, "Normalizing heights...")
        height_range = compute_range(grid, epsilon=cfg.epsilon)

        _progress(70, "Building terrain mesh...")
        return build_mesh(grid, height_range,
                          horizontal_scale=cfg.horizontal_scale,
                          vertical_scale=cfg.vertical_scale)

    def show(self, mesh: Mesh):
        """Swap the surface to *mesh* on the render loop; returns the handle."""
        handle = self.render_loop.handoff(self.surface, mesh).result()
        self.camera.target = mesh.bounding_box().center
        return handle

    def refresh_from_samples(self, samples, progress_callback=None):
        mesh = self.build_mesh(samples, progress_callback=progress_callback)
        if progress_callback:
            progress_callback(85, "Uploading terrain...")
        return self.show(mesh)

    def refresh_from_location(self, lat: float, lon: float,
                              grid_size: Optional[int] = None,
                              step_deg: Optional[float] = None,
                              progress_callback=None):
        """Fetch a survey around (lat, lon) and show it."""
        kwargs = {}
        if grid_size is not None:
            kwargs['grid_size'] = grid_size
        if step_deg is not None:
            kwargs['step_deg'] = step_deg
        area = SurveyArea(center_lat=lat, center_lon=lon, **kwargs)

        def _fetch_progress(pct, msg):
            if progress_callback:
                progress_callback(5 + pct * 0.3, msg)

        logger.info(f"Refreshing terrain around ({lat:.5f}, {lon:.5f})")
        samples = self.client.fetch_grid(area, progress_callback=_fetch_progress)
        return self.refresh_from_samples(samples, progress_callback=progress_callback)

    def export_glb(self, output_path: str) -> str:
        """Export the live surface; reads it on the render loop."""
        return self.render_loop.submit(
            glb_mod.export_glb, self.surface, output_path, self.camera).result()

    def close(self) -> None:
        self.render_loop.release(self.surface).result()
        self.render_loop.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
