"""
Utility functions for label tables and drawing detections.
"""

import cv2
import numpy as np
from typing import List, Optional, Sequence

from .types import BoundingBox


def draw_boxes(image: np.ndarray, boxes: Optional[Sequence[BoundingBox]]) -> np.ndarray:
    """
    Draw normalized bounding boxes and labels on image.

    Args:
        image: Input image (BGR format)
        boxes: Boxes with coordinates in [0, 1], or None

    Returns:
        Annotated copy of the image
    """
    annotated = image.copy()
    if not boxes:
        return annotated

    h, w = annotated.shape[:2]

    for box in boxes:
        # Scale normalized coordinates to pixels and clip to the frame
        x1 = max(0, min(int(box.x1 * w), w - 1))
        y1 = max(0, min(int(box.y1 * h), h - 1))
        x2 = max(0, min(int(box.x2 * w), w - 1))
        y2 = max(0, min(int(box.y2 * h), h - 1))

        color = box.color.bgr

        cv2.rectangle(annotated, (x1, y1), (x2, y2), color, 2)

        label = f"{box.label}: {box.confidence_percent:.1f}%"

        (label_w, label_h), baseline = cv2.getTextSize(
            label, cv2.FONT_HERSHEY_SIMPLEX, 0.5, 1
        )

        # Keep the label inside the frame when the box touches the top edge
        label_top = y1 - label_h - baseline - 5
        if label_top < 0:
            label_top = y1
        label_bottom = label_top + label_h + baseline + 5

        cv2.rectangle(
            annotated,
            (x1, label_top),
            (x1 + label_w, label_bottom),
            color,
            -1
        )

        cv2.putText(
            annotated,
            label,
            (x1, label_bottom - baseline - 2),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.5,
            (0, 0, 0),
            1,
            cv2.LINE_AA
        )

    return annotated


def get_voc_class_names() -> List[str]:
    """
    Get Pascal VOC class names (20 classes used by YOLOv2-tiny VOC).

    Returns:
        List of class names
    """
    return [
        "Aeroplane", "Bicycle", "Bird", "Boat", "Bottle", "Bus", "Car", "Cat",
        "Chair", "Cow", "Diningtable", "Dog", "Horse", "Motorbike", "Person",
        "Pottedplant", "Sheep", "Sofa", "Train", "TV"
    ]


def get_coco_class_names() -> List[str]:
    """
    Get COCO dataset class names (80 classes used by YOLOv2).

    Returns:
        List of class names
    """
    return [
        "Person", "Bicycle", "Car", "Motorbike", "Aeroplane", "Bus", "Train", "Truck",
        "Boat", "Traffic light", "Fire hydrant", "Stop sign", "Parking meter", "Bench",
        "Bird", "Cat", "Dog", "Horse", "Sheep", "Cow", "Elephant", "Bear", "Zebra",
        "Giraffe", "Backpack", "Umbrella", "Handbag", "Tie", "Suitcase", "Frisbee",
        "Skis", "Snowboard", "Sports ball", "Kite", "Baseball bat", "Baseball glove",
        "Skateboard", "Surfboard", "Tennis racket", "Bottle", "Wine glass", "Cup",
        "Fork", "Knife", "Spoon", "Bowl", "Banana", "Apple", "Sandwich", "Orange",
        "Broccoli", "Carrot", "Hot dog", "Pizza", "Donut", "Cake", "Chair", "Sofa",
        "Potted plant", "Bed", "Dining Table", "Toilet", "TV", "Laptop", "Mouse",
        "Remote", "Keyboard", "Mobile phone", "Microwave", "Oven", "Toaster", "Sink",
        "Refrigerator", "Book", "Clock", "Vase", "Scissors", "Teddy bear", "Hair drier",
        "Toothbrush"
    ]
