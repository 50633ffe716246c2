"""
Greedy non-maximum suppression over raw detections.
"""

from typing import List, Sequence

from .types import RawDetection

IOU_THRESHOLD = 0.5


def iou(a: RawDetection, b: RawDetection) -> float:
    """
    Intersection over union of two grid-unit boxes.

    Returns 0.0 for disjoint boxes and for a zero-area union.
    """
    ix1 = max(a.top_left[0], b.top_left[0])
    iy1 = max(a.top_left[1], b.top_left[1])
    ix2 = min(a.bottom_right[0], b.bottom_right[0])
    iy2 = min(a.bottom_right[1], b.bottom_right[1])

    # Disjoint boxes give a negative width or height
    inter_area = max(0.0, ix2 - ix1) * max(0.0, iy2 - iy1)
    union_area = a.area + b.area - inter_area

    if union_area <= 0.0:
        return 0.0
    return inter_area / union_area


def suppress(detections: Sequence[RawDetection], filter_enabled: bool = True,
             iou_threshold: float = IOU_THRESHOLD) -> List[RawDetection]:
    """
    Remove lower-confidence duplicates of the same object.

    Repeatedly keeps the most confident remaining candidate and drops every
    other candidate whose IoU with it is strictly greater than iou_threshold.
    Among equal confidences the earliest candidate wins.

    Args:
        detections: Candidates, already confidence-filtered
        filter_enabled: When False the input is returned unchanged
        iou_threshold: Overlap above which a candidate is suppressed

    Returns:
        Kept candidates, most confident first
    """
    if not filter_enabled:
        return list(detections)

    remaining = list(detections)
    kept: List[RawDetection] = []

    while remaining:
        # max() returns the first maximal element
        best_index = max(range(len(remaining)), key=lambda i: remaining[i].confidence)
        best = remaining[best_index]
        kept.append(best)
        remaining = [
            d for i, d in enumerate(remaining)
            if i != best_index and iou(best, d) <= iou_threshold
        ]

    return kept
