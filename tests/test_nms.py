import random

import pytest

from fakes import det
from yolocam.nms import iou, suppress


def test_iou_of_box_with_itself_is_one() -> None:
    a = det(0, 0.9, 1.0, 2.0, 4.0, 6.0)
    assert iou(a, a) == pytest.approx(1.0)


def test_iou_of_disjoint_boxes_is_zero() -> None:
    a = det(0, 0.9, 0.0, 0.0, 2.0, 2.0)
    b = det(0, 0.8, 5.0, 5.0, 7.0, 9.0)
    assert iou(a, b) == 0.0
    assert iou(b, a) == 0.0


def test_iou_disjoint_on_one_axis_only_is_zero() -> None:
    # Overlap in x, gap in y: intersection height would be negative
    a = det(0, 0.9, 0.0, 0.0, 4.0, 2.0)
    b = det(0, 0.8, 1.0, 3.0, 5.0, 6.0)
    assert iou(a, b) == 0.0


def test_iou_partial_overlap() -> None:
    a = det(0, 0.9, 0.0, 0.0, 10.0, 10.0)
    b = det(0, 0.8, 0.0, 0.0, 10.0, 7.0)
    assert iou(a, b) == pytest.approx(0.7)


def test_iou_of_degenerate_boxes_is_zero() -> None:
    a = det(0, 0.9, 3.0, 3.0, 3.0, 3.0)
    assert iou(a, a) == 0.0


def test_empty_input_gives_empty_output() -> None:
    assert suppress([], filter_enabled=True) == []
    assert suppress([], filter_enabled=False) == []


def test_filter_disabled_is_identity() -> None:
    items = [
        det(0, 0.2, 0.0, 0.0, 10.0, 10.0),
        det(0, 0.9, 0.0, 0.0, 10.0, 10.0),
        det(1, 0.5, 0.5, 0.5, 10.0, 10.0),
    ]
    assert suppress(items, filter_enabled=False) == items


def test_scenario_keeps_best_and_disjoint_candidate() -> None:
    a = det(0, 0.9, 0.0, 0.0, 10.0, 10.0)
    b = det(0, 0.8, 0.0, 0.0, 10.0, 7.0)
    c = det(1, 0.6, 20.0, 20.0, 25.0, 25.0)
    assert iou(a, b) == pytest.approx(0.7)

    assert suppress([b, c, a], filter_enabled=True) == [a, c]


def test_iou_exactly_at_threshold_is_kept() -> None:
    a = det(0, 0.9, 0.0, 0.0, 10.0, 10.0)
    half = det(0, 0.8, 0.0, 0.0, 10.0, 5.0)
    assert iou(a, half) == 0.5

    assert suppress([a, half], filter_enabled=True) == [a, half]


def test_equal_confidence_keeps_earliest() -> None:
    first = det(0, 0.7, 0.0, 0.0, 10.0, 10.0)
    second = det(1, 0.7, 0.5, 0.0, 10.5, 10.0)
    assert suppress([first, second], filter_enabled=True) == [first]
    assert suppress([second, first], filter_enabled=True) == [second]


def test_custom_iou_threshold() -> None:
    a = det(0, 0.9, 0.0, 0.0, 10.0, 10.0)
    b = det(0, 0.8, 0.0, 0.0, 10.0, 7.0)
    assert suppress([a, b], filter_enabled=True, iou_threshold=0.8) == [a, b]


def test_degenerate_candidates_terminate() -> None:
    point = det(0, 0.9, 1.0, 1.0, 1.0, 1.0)
    assert suppress([point, point], filter_enabled=True) == [point, point]


def test_random_output_is_subset_without_heavy_overlap() -> None:
    rng = random.Random(1234)
    for _ in range(50):
        items = []
        for _ in range(rng.randint(0, 30)):
            x1, y1 = rng.uniform(0, 12), rng.uniform(0, 12)
            items.append(det(
                rng.randrange(20), rng.random(),
                x1, y1, x1 + rng.uniform(0.1, 4), y1 + rng.uniform(0.1, 4)
            ))

        kept = suppress(items, filter_enabled=True)

        assert len(kept) <= len(items)
        assert all(k in items for k in kept)
        for i, a in enumerate(kept):
            for b in kept[i + 1:]:
                assert iou(a, b) <= 0.5
        confidences = [k.confidence for k in kept]
        assert confidences == sorted(confidences, reverse=True)
