"""
One detection cycle: preprocess, detect, suppress, map.
"""

import time
import logging
from typing import Sequence, Tuple

from .detector import YoloDetector
from .mapper import map_boxes
from .nms import IOU_THRESHOLD, suppress
from .palette import ClassPalette
from .preprocess import Preprocessor
from .types import GRID_H, GRID_W, CycleResult, TaskSnapshot

logger = logging.getLogger(__name__)


class DetectionPipeline:
    """
    Runs the per-frame stages over a snapshot.

    Stage failures are returned as a failed CycleResult naming the stage;
    nothing is raised to the caller.
    """

    def __init__(self, preprocessor: Preprocessor, detector: YoloDetector,
                 class_names: Sequence[str], palette: ClassPalette,
                 iou_threshold: float = IOU_THRESHOLD,
                 grid: Tuple[int, int] = (GRID_W, GRID_H)):
        self.preprocessor = preprocessor
        self.detector = detector
        self.class_names = list(class_names)
        self.palette = palette
        self.iou_threshold = iou_threshold
        self.grid = grid

    def run(self, snapshot: TaskSnapshot) -> CycleResult:
        """Process the snapshot's frame. The frame must not be None."""
        try:
            tensor = self.preprocessor(snapshot.frame)
        except Exception as e:
            return CycleResult.failed("preprocess", e)

        start = time.time()
        try:
            candidates = self.detector.detect(tensor, snapshot.threshold)
        except Exception as e:
            return CycleResult.failed("detect", e)
        inference_time = time.time() - start

        try:
            kept = suppress(candidates, snapshot.filter_enabled, self.iou_threshold)
        except Exception as e:
            return CycleResult.failed("suppress", e)

        try:
            boxes = map_boxes(kept, self.class_names, self.palette, self.grid)
        except Exception as e:
            return CycleResult.failed("map", e)

        logger.debug(
            f"Frame v{snapshot.version}: {len(candidates)} candidates, "
            f"{len(boxes)} boxes, {inference_time * 1000:.1f}ms"
        )
        return CycleResult(boxes=tuple(boxes), inference_time=inference_time)
