"""
yolocam

Continuous YOLOv2 object detection over a live frame source, producing a
de-duplicated list of labeled, colored, normalized bounding boxes.
"""

from .errors import (
    InferenceError,
    ModelLoadError,
    PreprocessError,
    TaskStateError,
    UnknownClassError,
    YoloCamError,
)
from .inference import ModelVariant
from .task import DetectionTask
from .types import BoundingBox, RawDetection, TaskState

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    "BoundingBox",
    "DetectionTask",
    "InferenceError",
    "ModelLoadError",
    "ModelVariant",
    "PreprocessError",
    "RawDetection",
    "TaskState",
    "TaskStateError",
    "UnknownClassError",
    "YoloCamError",
]
