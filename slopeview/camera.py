"""Orbit camera bookkeeping for drag-to-rotate and pinch-to-zoom."""

import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from .constants import (CAMERA_DEFAULT_DISTANCE, CAMERA_DEFAULT_PITCH,
                        CAMERA_DEFAULT_YAW, CAMERA_DRAG_SENSITIVITY,
                        CAMERA_MAX_DISTANCE, CAMERA_MAX_PITCH,
                        CAMERA_MIN_DISTANCE, CAMERA_MIN_PITCH)


@dataclass
class OrbitCamera:
    """Camera orbiting *target* on a sphere.

    yaw rotates around +Y (degrees, unbounded), pitch is the elevation
    above the horizon (degrees, clamped), distance is the sphere radius.
    """
    yaw: float = CAMERA_DEFAULT_YAW
    pitch: float = CAMERA_DEFAULT_PITCH
    distance: float = CAMERA_DEFAULT_DISTANCE
    target: Tuple[float, float, float] = field(default=(0.0, 0.0, 0.0))

    def __post_init__(self):
        self.pitch = min(max(self.pitch, CAMERA_MIN_PITCH), CAMERA_MAX_PITCH)
        self.distance = min(max(self.distance, CAMERA_MIN_DISTANCE),
                            CAMERA_MAX_DISTANCE)

    def drag(self, dx: float, dy: float) -> None:
        """Apply a scroll gesture of (dx, dy) pixels."""
        self.yaw += dx * CAMERA_DRAG_SENSITIVITY
        self.pitch -= dy * CAMERA_DRAG_SENSITIVITY
        self.pitch = min(max(self.pitch, CAMERA_MIN_PITCH), CAMERA_MAX_PITCH)

    def pinch(self, scale_factor: float) -> None:
        """Zoom by a pinch scale factor (>1 moves closer)."""
        if scale_factor <= 0:
            raise ValueError(f"Pinch scale factor must be positive, got {scale_factor}")
        self.distance /= scale_factor
        self.distance = min(max(self.distance, CAMERA_MIN_DISTANCE),
                            CAMERA_MAX_DISTANCE)

    def reset(self) -> None:
        """Double-tap: back to the default orbit."""
        self.yaw = CAMERA_DEFAULT_YAW
        self.pitch = CAMERA_DEFAULT_PITCH
        self.distance = CAMERA_DEFAULT_DISTANCE

    def eye(self) -> Tuple[float, float, float]:
        yaw = math.radians(self.yaw)
        pitch = math.radians(self.pitch)
        tx, ty, tz = self.target
        return (tx + self.distance * math.sin(yaw) * math.cos(pitch),
                ty + self.distance * math.sin(pitch),
                tz + self.distance * math.cos(yaw) * math.cos(pitch))

    def transform(self) -> np.ndarray:
        """4x4 camera-to-world matrix (camera looks down its local -Z, +Y up)."""
        eye = np.array(self.eye(), dtype=np.float64)
        target = np.array(self.target, dtype=np.float64)

        forward = target - eye
        forward /= np.linalg.norm(forward)
        # Pitch is clamped below 90°, so forward is never parallel to +Y
        right = np.cross(forward, [0.0, 1.0, 0.0])
        right /= np.linalg.norm(right)
        up = np.cross(right, forward)

        mat = np.eye(4)
        mat[:3, 0] = right
        mat[:3, 1] = up
        mat[:3, 2] = -forward
        mat[:3, 3] = eye
        return mat
