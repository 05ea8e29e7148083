import asyncio
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from slopeview import TerrainBuilder, TerrainConfig
from slopeview.elevation import ElevationClient
from slopeview.errors import TerrainError

from backend import config

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    queued = "queued"
    running = "running"
    completed = "completed"
    failed = "failed"


@dataclass
class Job:
    id: str
    status: JobStatus = JobStatus.queued
    progress: float = 0.0
    message: str = "Queued"
    result: Optional[dict] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BuilderBusyError(RuntimeError):
    """A terrain rebuild is already running."""


def _safe_filename(name: str) -> str:
    safe = re.sub(r"[^a-z0-9_-]+", "-", name.lower()).strip("-")
    return f"{safe or 'terrain'}.glb"


def _sync_build(builder: TerrainBuilder, output_filename: str,
                samples=None, location: Optional[dict] = None,
                progress_callback=None) -> dict:
    """Run the terrain pipeline in a worker thread.

    The mesh is built on this thread; the surface swap and the GLB export
    are handed to the builder's render loop.
    """
    if location is not None:
        builder.refresh_from_location(
            location["lat"], location["lon"],
            grid_size=location.get("grid_size"),
            step_deg=location.get("step_deg"),
            progress_callback=progress_callback)
    else:
        builder.refresh_from_samples(samples, progress_callback=progress_callback)

    if progress_callback:
        progress_callback(92, "Exporting GLB...")
    glb_path = builder.export_glb(str(config.OUTPUT_DIR / output_filename))

    mesh = builder.surface.mesh
    bbox = mesh.bounding_box()
    return {
        "glb_path": glb_path,
        "model_url": f"/output/{output_filename}",
        "rows": mesh.rows,
        "cols": mesh.cols,
        "vertices": mesh.vertex_count,
        "triangles": mesh.triangle_count,
        "min_height": mesh.height_range.min,
        "max_height": mesh.height_range.max,
        "range_clamped": mesh.height_range.clamped,
        "bounding_box": {"min": list(bbox.min), "max": list(bbox.max)},
    }


class JobManager:
    """Tracks build jobs for the single shared terrain surface.

    Only one rebuild runs at a time; further requests are refused until
    it finishes.
    """

    def __init__(self) -> None:
        self.jobs: dict[str, Job] = {}
        self.active_job_id: Optional[str] = None
        self._builder: Optional[TerrainBuilder] = None

    @property
    def builder(self) -> TerrainBuilder:
        if self._builder is None:
            self._builder = TerrainBuilder(
                client=ElevationClient(use_cache=config.USE_CACHE))
        return self._builder

    @property
    def busy(self) -> bool:
        return self.active_job_id is not None

    def create_job(self) -> Job:
        if self.busy:
            raise BuilderBusyError(f"Job {self.active_job_id} is still running")
        job = Job(id=str(uuid.uuid4()))
        self.jobs[job.id] = job
        self.active_job_id = job.id
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.jobs.get(job_id)

    async def run_build(self, job: Job, name: str, terrain_config: TerrainConfig,
                        samples=None, location: Optional[dict] = None) -> None:
        """Execute the build pipeline, updating *job* with progress."""
        try:
            job.status = JobStatus.running
            job.progress = 5.0
            job.message = "Preparing terrain..."

            def _update_progress(pct: float, msg: str) -> None:
                job.progress = pct
                job.message = msg

            builder = self.builder
            builder.config = terrain_config
            result = await asyncio.to_thread(
                _sync_build,
                builder,
                _safe_filename(name),
                samples=samples,
                location=location,
                progress_callback=_update_progress,
            )

            job.progress = 100.0
            job.message = "Build complete"
            job.status = JobStatus.completed
            job.result = result

        except TerrainError as exc:
            logger.warning(f"Terrain unavailable for job {job.id}: {exc}")
            job.status = JobStatus.failed
            job.progress = 0.0
            job.message = f"Terrain unavailable: {exc}"
        except Exception as exc:
            logger.exception("Build failed for job %s", job.id)
            job.status = JobStatus.failed
            job.progress = 0.0
            job.message = f"Build failed: {exc}"
        finally:
            if self.active_job_id == job.id:
                self.active_job_id = None

    def shutdown(self) -> None:
        if self._builder is not None:
            self._builder.close()
            self._builder = None


# Singleton instance used across the application
job_manager = JobManager()
