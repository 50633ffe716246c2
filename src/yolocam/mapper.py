"""
Conversion of raw grid-unit detections into display-ready boxes.
"""

from typing import List, Sequence, Tuple

from .errors import UnknownClassError
from .palette import ClassPalette
from .types import GRID_H, GRID_W, BoundingBox, RawDetection


def map_boxes(detections: Sequence[RawDetection], class_names: Sequence[str],
              palette: ClassPalette,
              grid: Tuple[int, int] = (GRID_W, GRID_H)) -> List[BoundingBox]:
    """
    Convert detections into labeled, colored, normalized bounding boxes.

    Args:
        detections: Surviving candidates in grid units
        class_names: Ordered labels of the active model
        palette: Colors for class_names
        grid: Grid width and height used to normalize coordinates

    Returns:
        One BoundingBox per detection, same order

    Raises:
        UnknownClassError: if a class index has no label
    """
    grid_w, grid_h = grid
    boxes = []

    for det in detections:
        if not 0 <= det.class_index < len(class_names):
            raise UnknownClassError(
                f"Class index {det.class_index} out of range for {len(class_names)} labels"
            )
        label = class_names[det.class_index]

        boxes.append(BoundingBox(
            label=label,
            confidence_percent=det.confidence * 100.0,
            color=palette.color_for(label),
            x1=det.top_left[0] / grid_w,
            y1=det.top_left[1] / grid_h,
            x2=det.bottom_right[0] / grid_w,
            y2=det.bottom_right[1] / grid_h,
        ))

    return boxes
