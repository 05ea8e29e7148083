from pydantic import BaseModel, Field
from typing import List, Optional

from slopeview.config import TerrainConfig
from slopeview.constants import SURVEY_GRID_SIZE, SURVEY_STEP_DEG


class BuildFromGridRequest(BaseModel):
    elevation: List[List[float]] = Field(..., min_length=1)
    name: str = "terrain"
    config: TerrainConfig = Field(default_factory=TerrainConfig)


class BuildFromLocationRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    grid_size: int = Field(SURVEY_GRID_SIZE, ge=2, le=64)
    step_deg: float = Field(SURVEY_STEP_DEG, gt=0)
    name: Optional[str] = None
    config: TerrainConfig = Field(default_factory=TerrainConfig)


class JobResponse(BaseModel):
    job_id: str
    status: str
    progress: float
    message: str
    result: Optional[dict] = None


class ModelInfo(BaseModel):
    name: str
    filename: str
