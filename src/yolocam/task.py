"""
Background detection task over a live, externally updated frame source.
"""

import time
import logging
import threading
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from .config import DetectionConfig, ModelConfig
from .detector import YoloDetector
from .errors import ModelLoadError, TaskStateError, UnknownClassError
from .inference import DarknetModelProvider, ModelVariant
from .palette import ClassPalette
from .pipeline import DetectionPipeline
from .preprocess import Preprocessor
from .types import BoundingBox, CycleResult, DetectionResult, TaskSnapshot, TaskState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LatestValue(Generic[T]):
    """Lock-guarded cell holding one value; last writer wins."""

    def __init__(self, value: T):
        self._lock = threading.Lock()
        self._value = value

    def get(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value


class SharedInputs:
    """
    Producer-side inputs of the detection loop.

    Holds a single frame slot (overwritten on each write) plus the threshold
    and filter flag. Every write bumps a version and wakes the worker, which
    copies all three values under the same lock.
    """

    def __init__(self, threshold: float, filter_enabled: bool):
        self._cond = threading.Condition()
        self._frame: Optional[Any] = None
        self._threshold = threshold
        self._filter_enabled = filter_enabled
        self._version = 0
        self._closed = False

    def _update(self, **values) -> None:
        with self._cond:
            for name, value in values.items():
                setattr(self, name, value)
            self._version += 1
            self._cond.notify_all()

    def set_frame(self, frame: Optional[Any]) -> None:
        self._update(_frame=frame)

    def set_threshold(self, threshold: float) -> None:
        self._update(_threshold=threshold)

    def set_filter_enabled(self, enabled: bool) -> None:
        self._update(_filter_enabled=enabled)

    @property
    def threshold(self) -> float:
        with self._cond:
            return self._threshold

    @property
    def filter_enabled(self) -> bool:
        with self._cond:
            return self._filter_enabled

    def snapshot(self) -> TaskSnapshot:
        with self._cond:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> TaskSnapshot:
        return TaskSnapshot(
            frame=self._frame,
            threshold=self._threshold,
            filter_enabled=self._filter_enabled,
            version=self._version,
        )

    def wait_for_update(self, last_version: int, timeout: float) -> Optional[TaskSnapshot]:
        """
        Block until inputs change after last_version.

        Returns:
            Snapshot of the new inputs, or None on timeout or close
        """
        with self._cond:
            self._cond.wait_for(
                lambda: self._closed or self._version != last_version, timeout
            )
            if self._closed or self._version == last_version:
                return None
            return self._snapshot_locked()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()


class DetectionTask:
    """
    Runs detection continuously on one worker thread.

    Producers call set_frame/set_threshold/set_filter_enabled at any time;
    consumers read latest_boxes. The worker processes the newest inputs
    whenever they change and publishes one immutable result per cycle.
    """

    def __init__(self, config: Optional[DetectionConfig] = None,
                 model_config: Optional[ModelConfig] = None,
                 provider=None):
        self.config = config or DetectionConfig()
        self.model_config = model_config or ModelConfig()
        self.provider = provider or DarknetModelProvider(self.model_config)

        self._inputs = SharedInputs(
            self._check_threshold(self.config.threshold), self.config.filter_enabled
        )
        self._result: LatestValue[Optional[DetectionResult]] = LatestValue(None)
        self._last_error: LatestValue[Optional[Exception]] = LatestValue(None)

        self._lock = threading.Lock()
        self._state = TaskState.IDLE
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._ready_event = threading.Event()

        self.load_error: Optional[ModelLoadError] = None
        self.class_names: List[str] = []
        self.palette: Optional[ClassPalette] = None

        # Statistics
        self._stats = {
            'cycles': 0,
            'errors': 0,
            'fps': 0.0,
            'inference_time': 0.0,
            'num_detections': 0,
        }
        self._stats_lock = threading.Lock()
        self._fps_count = 0
        self._fps_start = time.time()

    # Lifecycle

    @property
    def state(self) -> TaskState:
        with self._lock:
            return self._state

    def start(self, variant: Union[ModelVariant, str, None] = None) -> None:
        """
        Start the worker thread. Returns immediately.

        The model is loaded on the worker; use wait_ready() to find out
        whether loading succeeded.

        Raises:
            TaskStateError: if the task is already running, loading or cancelled
        """
        if variant is None:
            variant = self.model_config.variant

        with self._lock:
            if self._state is not TaskState.IDLE:
                raise TaskStateError(f"Cannot start task in state {self._state.value}")
            if self.load_error is not None and self._thread is not None:
                # Worker reports the failure just before it returns
                self._thread.join(1.0)
            if self._thread is not None and self._thread.is_alive():
                raise TaskStateError("Task is already loading its model")

            self.load_error = None
            self._ready_event.clear()
            self._thread = threading.Thread(
                target=self._run, args=(variant,), name="YoloTask", daemon=True
            )
            self._thread.start()

        logger.info(f"Detection task starting with {getattr(variant, 'value', variant)} model")

    def close(self) -> None:
        """
        Signal the worker to stop. Idempotent and non-blocking.

        The worker exits at its next wait point; an in-flight cycle finishes
        but its result is not published.
        """
        with self._lock:
            if self._thread is None or self._state is TaskState.CANCELLED:
                return
            self._state = TaskState.CANCELLED
            self._stop_event.set()
            self._inputs.close()

        self._ready_event.set()
        logger.info("Detection task cancelled")

    cancel = close

    def wait_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the model is loaded.

        Returns:
            True once running, False on timeout or cancellation

        Raises:
            ModelLoadError: if the model could not be loaded
        """
        self._ready_event.wait(timeout)
        if self.load_error is not None:
            raise self.load_error
        return self.state is TaskState.RUNNING

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker thread to exit. Returns True if it has."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # Producers

    def set_frame(self, frame: Optional[Any]) -> None:
        """Replace the current frame (None means no frame available)."""
        self._inputs.set_frame(frame)

    def set_threshold(self, threshold: float) -> None:
        self._inputs.set_threshold(self._check_threshold(threshold))

    @staticmethod
    def _check_threshold(threshold: float) -> float:
        threshold = float(threshold)
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Threshold must be in [0, 1], got {threshold}")
        return threshold

    def set_filter_enabled(self, enabled: bool) -> None:
        self._inputs.set_filter_enabled(bool(enabled))

    @property
    def threshold(self) -> float:
        return self._inputs.threshold

    @property
    def filter_enabled(self) -> bool:
        return self._inputs.filter_enabled

    # Consumers

    @property
    def latest_result(self) -> Optional[DetectionResult]:
        return self._result.get()

    @property
    def latest_boxes(self) -> Optional[List[BoundingBox]]:
        """Boxes for the most recently processed frame, or None."""
        result = self._result.get()
        if result is None or result.boxes is None:
            return None
        return list(result.boxes)

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error.get()

    def stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            stats = dict(self._stats)
        stats['state'] = self.state.value
        return stats

    # Worker

    def _run(self, variant: Union[ModelVariant, str]) -> None:
        pipeline = self._load(variant)
        if pipeline is None:
            return

        with self._lock:
            if self._stop_event.is_set():
                return
            self._state = TaskState.RUNNING
        self._ready_event.set()
        logger.info("Detection task running")

        last_version = -1
        while not self._stop_event.is_set():
            snapshot = self._inputs.wait_for_update(last_version, self.config.wait_timeout)
            if snapshot is None:
                continue
            last_version = snapshot.version
            self._run_cycle(pipeline, snapshot)

        logger.info("Detection task stopped")

    def _load(self, variant: Union[ModelVariant, str]) -> Optional[DetectionPipeline]:
        try:
            model = self.provider.load(variant)
        except ModelLoadError as e:
            self._fail_load(e)
            return None
        except Exception as e:
            self._fail_load(ModelLoadError(f"Failed to load model: {e}"))
            return None

        self.class_names = list(model.class_names)
        self.palette = ClassPalette(self.class_names)
        grid = (self.model_config.grid_size, self.model_config.grid_size)

        return DetectionPipeline(
            preprocessor=Preprocessor(self.model_config.input_size, self.model_config.input_size),
            detector=YoloDetector(model.net, self.class_names, grid),
            class_names=self.class_names,
            palette=self.palette,
            iou_threshold=self.config.iou_threshold,
            grid=grid,
        )

    def _fail_load(self, error: ModelLoadError) -> None:
        logger.error(f"Failed to start detection task: {error}")
        self.load_error = error
        self._ready_event.set()

    def _run_cycle(self, pipeline: DetectionPipeline, snapshot: TaskSnapshot) -> None:
        if snapshot.frame is None:
            self._publish(DetectionResult(boxes=None, version=snapshot.version))
            return

        result = pipeline.run(snapshot)

        if result.ok:
            self._publish(DetectionResult(
                boxes=result.boxes,
                version=snapshot.version,
                inference_time=result.inference_time,
            ))
            self._update_stats(result)
            return

        self._report_failure(result)
        if self.config.on_error == "clear":
            self._publish(DetectionResult(boxes=None, version=snapshot.version))

    def _publish(self, result: DetectionResult) -> None:
        if self._stop_event.is_set():
            return
        self._result.set(result)

    def _report_failure(self, result: CycleResult) -> None:
        self._last_error.set(result.error)
        with self._stats_lock:
            self._stats['errors'] += 1

        if isinstance(result.error, UnknownClassError):
            logger.error(
                f"Model/label mismatch at {result.stage}: {result.error}",
                exc_info=result.error
            )
        else:
            logger.warning(f"Detection cycle failed at {result.stage}: {result.error}")

    def _update_stats(self, result: CycleResult) -> None:
        with self._stats_lock:
            self._stats['cycles'] += 1
            self._stats['inference_time'] = result.inference_time
            self._stats['num_detections'] = len(result.boxes)

            self._fps_count += 1
            elapsed = time.time() - self._fps_start
            if elapsed >= 1.0:
                self._stats['fps'] = self._fps_count / elapsed
                self._fps_count = 0
                self._fps_start = time.time()
