from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from backend import config
from backend.jobs import job_manager
from backend.routers import models, terrain


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    job_manager.shutdown()


app = FastAPI(
    title="SlopeView API",
    description="Backend API for building 3D terrain from elevation surveys",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(terrain.router)
app.include_router(models.router)

# ---------------------------------------------------------------------------
# Static files -- serve generated GLB assets
# ---------------------------------------------------------------------------
config.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/output", StaticFiles(directory=str(config.OUTPUT_DIR)), name="output")


@app.get("/")
async def root():
    return {"status": "ok", "service": "SlopeView API"}
