"""
Image preprocessing for YOLOv2 inference.
"""

import cv2
import logging
import numpy as np
from typing import Union

from .errors import PreprocessError

logger = logging.getLogger(__name__)

INPUT_WIDTH = 416
INPUT_HEIGHT = 416
INPUT_CHANNELS = 3


class Preprocessor:
    """
    Converts an arbitrary image into the network input tensor.

    Output is float32 NCHW (1, 3, height, width), RGB, scaled into [0, 1].
    """

    def __init__(self, width: int = INPUT_WIDTH, height: int = INPUT_HEIGHT,
                 channels: int = INPUT_CHANNELS):
        if channels != 3:
            raise ValueError("Only 3-channel network inputs are supported")
        self.width = width
        self.height = height
        self.channels = channels

    def __call__(self, image: Union[np.ndarray, bytes]) -> np.ndarray:
        return self.transform(image)

    def transform(self, image: Union[np.ndarray, bytes]) -> np.ndarray:
        """
        Resize, convert to RGB and scale an image.

        Args:
            image: BGR/BGRA/grayscale array, or encoded image bytes

        Returns:
            Tensor of shape (1, 3, height, width)

        Raises:
            PreprocessError: if the image cannot be decoded or resized
        """
        image = self._decode(image)

        try:
            resized = cv2.resize(image, (self.width, self.height), interpolation=cv2.INTER_LINEAR)
            rgb = self._to_rgb(resized)
        except cv2.error as e:
            raise PreprocessError(f"Failed to resize/convert image: {e}") from e

        # Min-max scaling with min=0, max=1
        scaled = rgb.astype(np.float32) / 255.0

        return np.expand_dims(scaled.transpose(2, 0, 1), axis=0)

    def _decode(self, image: Union[np.ndarray, bytes]) -> np.ndarray:
        if image is None:
            raise PreprocessError("No image")

        if isinstance(image, (bytes, bytearray, memoryview)):
            buffer = np.frombuffer(image, dtype=np.uint8)
            if buffer.size == 0:
                raise PreprocessError("Empty image buffer")
            decoded = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
            if decoded is None:
                raise PreprocessError("Could not decode image bytes")
            return decoded

        if not isinstance(image, np.ndarray):
            raise PreprocessError(f"Unsupported image type: {type(image).__name__}")

        if image.size == 0:
            raise PreprocessError("Empty image")

        if image.ndim not in (2, 3):
            raise PreprocessError(f"Unsupported image shape: {image.shape}")

        if image.dtype != np.uint8:
            # Float images are expected in [0, 1]
            if np.issubdtype(image.dtype, np.floating):
                image = np.clip(image * 255.0, 0, 255).astype(np.uint8)
            else:
                image = np.clip(image, 0, 255).astype(np.uint8)

        return image

    @staticmethod
    def _to_rgb(image: np.ndarray) -> np.ndarray:
        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)

        channels = image.shape[2]
        if channels == 1:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
        if channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)

        raise PreprocessError(f"Unsupported channel count: {channels}")
