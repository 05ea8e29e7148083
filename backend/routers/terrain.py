import asyncio
import logging

from fastapi import APIRouter, HTTPException

from backend.jobs import BuilderBusyError, Job, job_manager
from backend.models import BuildFromGridRequest, BuildFromLocationRequest, JobResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/terrain", tags=["terrain"])


def _job_response(job: Job) -> JobResponse:
    return JobResponse(
        job_id=job.id,
        status=job.status.value,
        progress=job.progress,
        message=job.message,
        result=job.result,
    )


def _start_job() -> Job:
    try:
        return job_manager.create_job()
    except BuilderBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.post("/grid", response_model=JobResponse)
async def build_from_grid(request: BuildFromGridRequest):
    """Start a terrain build from an explicit elevation grid.

    The pipeline runs in a background task; the caller receives a job ID
    immediately and can poll ``/status/{job_id}`` for progress.
    """
    job = _start_job()
    asyncio.create_task(job_manager.run_build(
        job, request.name, request.config, samples=request.elevation))
    return _job_response(job)


@router.post("/location", response_model=JobResponse)
async def build_from_location(request: BuildFromLocationRequest):
    """Start a terrain build from an elevation survey around a GPS position."""
    name = request.name or f"terrain-{request.lat:.4f}-{request.lon:.4f}"
    location = {
        "lat": request.lat,
        "lon": request.lon,
        "grid_size": request.grid_size,
        "step_deg": request.step_deg,
    }
    job = _start_job()
    asyncio.create_task(job_manager.run_build(
        job, name, request.config, location=location))
    return _job_response(job)


@router.get("/status/{job_id}", response_model=JobResponse)
async def get_build_status(job_id: str):
    """Poll the status of a running or completed build job."""
    job = job_manager.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return _job_response(job)
