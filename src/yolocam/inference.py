"""
Pretrained YOLOv2 model provider using the OpenCV DNN module.
"""

import cv2
import logging
import urllib.request
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union

from .config import ModelConfig
from .errors import ModelLoadError
from .utils import get_coco_class_names, get_voc_class_names

logger = logging.getLogger(__name__)


class ModelVariant(str, Enum):
    """Selectable pretrained networks."""
    TINY = "tiny"
    FULL = "full"


@dataclass(frozen=True)
class ModelFiles:
    """Darknet cfg/weights pair for one variant."""
    cfg_name: str
    cfg_url: str
    weights_name: str
    weights_url: str


MODEL_FILES: Dict[ModelVariant, ModelFiles] = {
    ModelVariant.TINY: ModelFiles(
        cfg_name="yolov2-tiny-voc.cfg",
        cfg_url="https://raw.githubusercontent.com/pjreddie/darknet/master/cfg/yolov2-tiny-voc.cfg",
        weights_name="yolov2-tiny-voc.weights",
        weights_url="https://pjreddie.com/media/files/yolov2-tiny-voc.weights",
    ),
    ModelVariant.FULL: ModelFiles(
        cfg_name="yolov2.cfg",
        cfg_url="https://raw.githubusercontent.com/pjreddie/darknet/master/cfg/yolov2.cfg",
        weights_name="yolov2.weights",
        weights_url="https://pjreddie.com/media/files/yolov2.weights",
    ),
}


def class_names_for(variant: Union[ModelVariant, str]) -> List[str]:
    """Ordered label list matching a variant's output layer."""
    variant = ModelVariant(variant)
    if variant is ModelVariant.TINY:
        return get_voc_class_names()
    return get_coco_class_names()


@dataclass
class LoadedModel:
    """A ready network plus its ordered class labels."""
    net: Any
    class_names: List[str]
    variant: ModelVariant


class DarknetModelProvider:
    """
    Loads pretrained Darknet networks, downloading the files on first use.
    """

    def __init__(self, config: ModelConfig):
        self.config = config
        self.cache_dir = Path(config.cache_dir).expanduser()

    def load(self, variant: Union[ModelVariant, str]) -> LoadedModel:
        """
        Load the network for a variant.

        Raises:
            ModelLoadError: if files cannot be obtained or parsed
        """
        try:
            variant = ModelVariant(variant)
        except ValueError as e:
            raise ModelLoadError(f"Unknown model variant: {variant!r}") from e

        files = MODEL_FILES[variant]
        cfg_path = self._ensure_file(files.cfg_url, files.cfg_name)
        weights_path = self._ensure_file(files.weights_url, files.weights_name)

        logger.info(f"Loading model: {weights_path}")
        try:
            net = cv2.dnn.readNetFromDarknet(str(cfg_path), str(weights_path))
        except cv2.error as e:
            raise ModelLoadError(f"Failed to read network {cfg_path.name}: {e}") from e

        if net is None or net.empty():
            raise ModelLoadError(f"Network {cfg_path.name} is empty")

        self._select_backend(net)

        class_names = class_names_for(variant)
        logger.info(f"Model loaded - variant: {variant.value}, classes: {len(class_names)}")
        return LoadedModel(net=net, class_names=class_names, variant=variant)

    def _select_backend(self, net) -> None:
        if self.config.use_cuda and cv2.cuda.getCudaEnabledDeviceCount() > 0:
            net.setPreferableBackend(cv2.dnn.DNN_BACKEND_CUDA)
            net.setPreferableTarget(cv2.dnn.DNN_TARGET_CUDA)
            logger.info("Using CUDA backend")
        else:
            net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
            net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)
            logger.info("Using CPU backend")

    def _ensure_file(self, url: str, name: str) -> Path:
        path = self.cache_dir / name
        if path.exists() and path.stat().st_size > 0:
            return path

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        partial = path.with_suffix(path.suffix + ".part")
        logger.info(f"Downloading {name}...")
        try:
            urllib.request.urlretrieve(url, str(partial))
            partial.replace(path)
        except OSError as e:
            partial.unlink(missing_ok=True)
            raise ModelLoadError(f"Failed to download {url}: {e}") from e

        logger.info(f"Downloaded {name}")
        return path
