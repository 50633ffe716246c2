import pytest

from fakes import CLASS_NAMES, det
from yolocam.errors import UnknownClassError
from yolocam.mapper import map_boxes
from yolocam.palette import ClassPalette, hsb_color
from yolocam.types import Color
from yolocam.utils import get_coco_class_names, get_voc_class_names


def test_grid_coordinates_are_normalized() -> None:
    palette = ClassPalette(CLASS_NAMES)
    boxes = map_boxes([det(1, 0.5, 13.0, 13.0, 26.0, 26.0)], CLASS_NAMES, palette)

    assert len(boxes) == 1
    box = boxes[0]
    assert (box.x1, box.y1, box.x2, box.y2) == (1.0, 1.0, 2.0, 2.0)
    assert box.label == "dog"
    assert box.color == palette.color_for("dog")


def test_x_and_y_use_their_own_grid_dimension() -> None:
    palette = ClassPalette(CLASS_NAMES)
    box = map_boxes([det(0, 0.5, 4.0, 2.0, 8.0, 4.0)], CLASS_NAMES, palette, grid=(8, 4))[0]
    assert (box.x1, box.y1, box.x2, box.y2) == (0.5, 0.5, 1.0, 1.0)


def test_confidence_becomes_percent() -> None:
    palette = ClassPalette(CLASS_NAMES)
    box = map_boxes([det(0, 0.42, 0.0, 0.0, 1.0, 1.0)], CLASS_NAMES, palette)[0]
    assert box.confidence_percent == pytest.approx(42.0)


def test_order_is_preserved() -> None:
    palette = ClassPalette(CLASS_NAMES)
    detections = [det(1, 0.3, 0, 0, 1, 1), det(0, 0.9, 1, 1, 2, 2), det(1, 0.6, 2, 2, 3, 3)]
    boxes = map_boxes(detections, CLASS_NAMES, palette)
    assert [b.label for b in boxes] == ["dog", "cat", "dog"]
    assert [b.confidence_percent for b in boxes] == pytest.approx([30.0, 90.0, 60.0])


def test_empty_input_gives_empty_output() -> None:
    assert map_boxes([], CLASS_NAMES, ClassPalette(CLASS_NAMES)) == []


@pytest.mark.parametrize("index", [2, -1])
def test_out_of_range_class_index_raises(index: int) -> None:
    with pytest.raises(UnknownClassError):
        map_boxes([det(index, 0.9, 0, 0, 1, 1)], CLASS_NAMES, ClassPalette(CLASS_NAMES))


def test_palette_uses_hue_steps_of_twenty_degrees() -> None:
    palette = ClassPalette(get_voc_class_names())

    # index 0 -> hue 20, index 17 -> hue 360 == 0 (red)
    assert palette.color_for("Aeroplane") == hsb_color(20.0, 0.6, 1.0)
    assert palette.color_for("Sofa") == Color(255, 102, 102)
    assert len(palette) == 20


def test_palette_is_deterministic_for_the_same_class_list() -> None:
    first = ClassPalette(get_coco_class_names())
    second = ClassPalette(get_coco_class_names())
    assert first.as_dict() == second.as_dict()
    assert list(first) == get_coco_class_names()


def test_palette_rejects_unknown_label() -> None:
    palette = ClassPalette(CLASS_NAMES)
    assert "cat" in palette
    with pytest.raises(UnknownClassError):
        palette.color_for("giraffe")


def test_label_tables_have_expected_sizes() -> None:
    assert len(get_voc_class_names()) == 20
    assert len(get_coco_class_names()) == 80
    assert len(set(get_coco_class_names())) == 80
