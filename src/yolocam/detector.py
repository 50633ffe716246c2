"""
YOLOv2 detection module for yolocam.
"""

import logging
import numpy as np
from typing import List, Sequence, Tuple

from .errors import InferenceError, UnknownClassError
from .types import GRID_H, GRID_W, RawDetection

logger = logging.getLogger(__name__)

# cx, cy, w, h, objectness
BOX_FIELDS = 5


class YoloDetector:
    """
    Runs a YOLOv2 network and decodes its region output.

    The network is anything with the cv2.dnn.Net setInput/forward contract.
    Region rows are [cx, cy, w, h, objectness, class scores...] with the
    box relative to the input image; class scores already include
    objectness.
    """

    def __init__(self, net, class_names: Sequence[str],
                 grid: Tuple[int, int] = (GRID_W, GRID_H)):
        self.net = net
        self.class_names = list(class_names)
        self.grid_w, self.grid_h = grid

    def forward(self, tensor: np.ndarray) -> np.ndarray:
        """Run one forward pass and return the region output as 2-D rows."""
        try:
            self.net.setInput(tensor)
            output = self.net.forward()
        except Exception as e:
            raise InferenceError(f"Forward pass failed: {e}") from e

        output = np.asarray(output, dtype=np.float32)
        if output.ndim < 2:
            raise InferenceError(f"Unexpected output shape: {output.shape}")
        return output.reshape(-1, output.shape[-1])

    def detect(self, tensor: np.ndarray, threshold: float) -> List[RawDetection]:
        """
        Detect objects in a preprocessed tensor.

        Args:
            tensor: Network input from Preprocessor
            threshold: Minimum confidence to keep a candidate

        Returns:
            Candidates with confidence >= threshold, in output order
        """
        rows = self.forward(tensor)
        return self.decode(rows, threshold)

    def decode(self, rows: np.ndarray, threshold: float) -> List[RawDetection]:
        """Decode region rows into grid-unit RawDetections."""
        num_classes = rows.shape[1] - BOX_FIELDS
        if num_classes != len(self.class_names):
            raise UnknownClassError(
                f"Network predicts {num_classes} classes but "
                f"{len(self.class_names)} labels are configured"
            )

        if rows.shape[0] == 0:
            return []

        scores = rows[:, BOX_FIELDS:]
        class_ids = np.argmax(scores, axis=1)
        confidences = scores[np.arange(rows.shape[0]), class_ids]

        detections = []
        for row, class_id, confidence in zip(rows, class_ids, confidences):
            if confidence < threshold:
                continue

            cx, cy, w, h = row[:4]
            x1 = (cx - w / 2.0) * self.grid_w
            y1 = (cy - h / 2.0) * self.grid_h
            x2 = (cx + w / 2.0) * self.grid_w
            y2 = (cy + h / 2.0) * self.grid_h

            detections.append(RawDetection(
                class_index=int(class_id),
                confidence=float(confidence),
                top_left=(float(x1), float(y1)),
                bottom_right=(float(x2), float(y2)),
            ))

        logger.debug(f"Decoded {len(detections)} candidates at threshold {threshold:.2f}")
        return detections
