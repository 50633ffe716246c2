import numpy as np
import pytest

from fakes import CLASS_NAMES, FailingNet, FakeNet, region_row
from yolocam.detector import YoloDetector
from yolocam.errors import InferenceError, PreprocessError, UnknownClassError
from yolocam.palette import ClassPalette
from yolocam.pipeline import DetectionPipeline
from yolocam.preprocess import Preprocessor
from yolocam.types import TaskSnapshot


def _pipeline(net, class_names=CLASS_NAMES) -> DetectionPipeline:
    return DetectionPipeline(
        preprocessor=Preprocessor(),
        detector=YoloDetector(net, class_names),
        class_names=class_names,
        palette=ClassPalette(class_names),
    )


def _snapshot(frame, threshold: float = 0.5, filter_enabled: bool = True) -> TaskSnapshot:
    return TaskSnapshot(frame=frame, threshold=threshold, filter_enabled=filter_enabled, version=1)


def test_filtered_cycle_removes_duplicates(frame: np.ndarray, overlapping_rows) -> None:
    result = _pipeline(FakeNet(overlapping_rows)).run(_snapshot(frame))

    assert result.ok
    assert [b.label for b in result.boxes] == ["cat", "dog"]
    assert result.boxes[0].confidence_percent == pytest.approx(90.0, abs=1e-4)
    assert result.boxes[0].x1 == pytest.approx(0.4)
    assert result.boxes[0].x2 == pytest.approx(0.6)


def test_unfiltered_cycle_keeps_model_order(frame: np.ndarray, overlapping_rows) -> None:
    result = _pipeline(FakeNet(overlapping_rows)).run(_snapshot(frame, filter_enabled=False))

    assert result.ok
    assert [b.label for b in result.boxes] == ["cat", "cat", "dog"]


def test_threshold_comes_from_snapshot(frame: np.ndarray, overlapping_rows) -> None:
    result = _pipeline(FakeNet(overlapping_rows)).run(_snapshot(frame, threshold=0.95))
    assert result.ok
    assert result.boxes == ()


def test_preprocess_failure_is_reported_not_raised() -> None:
    result = _pipeline(FakeNet([])).run(_snapshot(b"garbage"))

    assert not result.ok
    assert result.stage == "preprocess"
    assert isinstance(result.error, PreprocessError)


def test_inference_failure_is_reported_not_raised(frame: np.ndarray) -> None:
    result = _pipeline(FailingNet()).run(_snapshot(frame))

    assert result.stage == "detect"
    assert isinstance(result.error, InferenceError)


def test_label_mismatch_is_reported(frame: np.ndarray) -> None:
    net = FakeNet([region_row(0.5, 0.5, 0.1, 0.1, [0.0, 0.0, 0.9])], num_classes=3)
    result = _pipeline(net).run(_snapshot(frame))

    assert not result.ok
    assert isinstance(result.error, UnknownClassError)
