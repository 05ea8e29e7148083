"""Per-build terrain configuration."""

from pydantic import BaseModel, Field

from .constants import (DEFAULT_EPSILON, DEFAULT_HORIZONTAL_SCALE,
                        DEFAULT_TARGET_GRID_SIZE, DEFAULT_VERTICAL_SCALE,
                        MAX_TARGET_GRID_SIZE)


class TerrainConfig(BaseModel):
    target_grid_size: int = Field(DEFAULT_TARGET_GRID_SIZE, ge=2, le=MAX_TARGET_GRID_SIZE)
    horizontal_scale: float = Field(DEFAULT_HORIZONTAL_SCALE, gt=0)  # world units per cell
    vertical_scale: float = Field(DEFAULT_VERTICAL_SCALE, gt=0)      # world units per normalized unit
    epsilon: float = Field(DEFAULT_EPSILON, gt=0)                    # flat-range threshold
