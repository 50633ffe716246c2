"""
Data types shared by the detection pipeline.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple

# Model output grid (cells per axis) for a 416x416 YOLOv2 input.
GRID_W = 13
GRID_H = 13


class TaskState(str, Enum):
    """Lifecycle of a DetectionTask."""
    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Color:
    """RGB color, 0-255 per channel."""
    r: int
    g: int
    b: int

    @property
    def bgr(self) -> Tuple[int, int, int]:
        """Channel order expected by OpenCV drawing calls."""
        return (self.b, self.g, self.r)

    @property
    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


@dataclass(frozen=True)
class RawDetection:
    """
    Candidate detection decoded from one forward pass.

    Coordinates are in grid units (0..GRID_W, 0..GRID_H).
    """
    class_index: int
    confidence: float
    top_left: Tuple[float, float]
    bottom_right: Tuple[float, float]

    @property
    def area(self) -> float:
        w = max(0.0, self.bottom_right[0] - self.top_left[0])
        h = max(0.0, self.bottom_right[1] - self.top_left[1])
        return w * h


@dataclass(frozen=True)
class BoundingBox:
    """Display-ready detection with coordinates normalized to the frame."""
    label: str
    confidence_percent: float
    color: Color
    x1: float
    y1: float
    x2: float
    y2: float

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "confidence": round(self.confidence_percent, 2),
            "color": self.color.hex,
            "box": [self.x1, self.y1, self.x2, self.y2],
        }


@dataclass(frozen=True)
class TaskSnapshot:
    """Inputs of one detection cycle, copied atomically."""
    frame: Optional[Any]
    threshold: float
    filter_enabled: bool
    version: int


@dataclass(frozen=True)
class DetectionResult:
    """
    Published output of one cycle.

    boxes is None when no frame was available for the snapshot.
    """
    boxes: Optional[Tuple[BoundingBox, ...]]
    version: int
    inference_time: float = 0.0
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class CycleResult:
    """Outcome of running the pipeline once: boxes, or the failing stage."""
    boxes: Tuple[BoundingBox, ...] = ()
    error: Optional[Exception] = None
    stage: Optional[str] = None
    inference_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, stage: str, error: Exception) -> "CycleResult":
        return cls(error=error, stage=stage)
