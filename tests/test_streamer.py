import numpy as np

from fakes import FakeNet, FakeProvider, wait_until
from yolocam.config import DetectionConfig, StreamConfig
from yolocam.streamer import MJPEGStreamer
from yolocam.task import DetectionTask


def _client(task: DetectionTask):
    streamer = MJPEGStreamer(StreamConfig(), task)
    streamer.app.testing = True
    return streamer.app.test_client()


def test_detections_are_null_before_any_result(overlapping_rows) -> None:
    task = DetectionTask(DetectionConfig(), provider=FakeProvider(FakeNet(overlapping_rows)))
    response = _client(task).get("/api/detections")

    assert response.status_code == 200
    assert response.get_json() == {"version": None, "boxes": None}


def test_detections_and_classes_for_running_task(frame: np.ndarray, overlapping_rows) -> None:
    task = DetectionTask(DetectionConfig(wait_timeout=0.05),
                         provider=FakeProvider(FakeNet(overlapping_rows)))
    task.start("tiny")
    assert task.wait_ready(timeout=3.0)
    try:
        task.set_frame(frame)
        assert wait_until(lambda: task.latest_boxes is not None)
        client = _client(task)

        data = client.get("/api/detections").get_json()
        assert [b["label"] for b in data["boxes"]] == ["cat", "dog"]
        assert data["boxes"][0]["color"].startswith("#")
        assert len(data["boxes"][0]["box"]) == 4

        classes = client.get("/api/classes").get_json()
        assert list(classes) == ["cat", "dog"]

        assert client.get("/health").get_json()["status"] == "running"
        stats = client.get("/api/stats").get_json()
        assert stats["cycles"] >= 1
        assert stats["errors"] == 0
    finally:
        task.close()


def test_controls_update_task(overlapping_rows) -> None:
    task = DetectionTask(DetectionConfig(), provider=FakeProvider(FakeNet(overlapping_rows)))
    client = _client(task)

    assert client.get("/api/controls").get_json() == {"threshold": 0.5, "filter_enabled": True}

    response = client.post("/api/controls", json={"threshold": 0.25, "filter_enabled": False})
    assert response.status_code == 200
    assert response.get_json() == {"threshold": 0.25, "filter_enabled": False}
    assert task.threshold == 0.25
    assert task.filter_enabled is False


def test_invalid_threshold_is_rejected(overlapping_rows) -> None:
    task = DetectionTask(DetectionConfig(), provider=FakeProvider(FakeNet(overlapping_rows)))
    client = _client(task)

    response = client.post("/api/controls", json={"threshold": 3})
    assert response.status_code == 400
    assert task.threshold == 0.5

    response = client.post("/api/controls", json={"threshold": "high"})
    assert response.status_code == 400
