from __future__ import annotations

import numpy as np
import pytest

from tiny_yolo_detection.app.models import BoundingBox, Rectangle
from tiny_yolo_detection.app.utils.colors import CLASS_PALETTE, color_for_class
from tiny_yolo_detection.app.utils.visualization import draw_bounding_boxes, format_caption, scale_to_image


def make_box(rectangle: Rectangle, confidence: float = 0.9, class_index: int = 4) -> BoundingBox:
    return BoundingBox(
        label="bottle",
        class_index=class_index,
        rectangle=rectangle,
        confidence=confidence,
        color=color_for_class(class_index),
    )


def test_color_for_class_is_deterministic_and_cycles() -> None:
    assert color_for_class(3) == color_for_class(3)
    assert color_for_class(0) != color_for_class(1)
    assert color_for_class(len(CLASS_PALETTE)) == color_for_class(0)
    with pytest.raises(ValueError):
        color_for_class(-1)


def test_format_caption() -> None:
    assert format_caption(make_box(Rectangle(0, 0, 1, 1), confidence=0.876)) == "bottle (88%)"


def test_scale_to_image_clamps_and_rescales() -> None:
    box = make_box(Rectangle(-10.0, 20.0, 100.0, 50.0))
    assert scale_to_image(box, 832, 832, 416, 416) == (0, 40, 200, 140)


def test_scale_to_image_clips_to_model_extent() -> None:
    box = make_box(Rectangle(400.0, 400.0, 100.0, 100.0))
    assert scale_to_image(box, 416, 416, 416, 416) == (400, 400, 416, 416)


def test_draw_bounding_boxes_returns_annotated_copy() -> None:
    image = np.zeros((200, 200, 3), dtype=np.uint8)
    box = make_box(Rectangle(50.0, 60.0, 80.0, 80.0))

    annotated = draw_bounding_boxes(image, [box], 200, 200)

    assert not image.any()
    assert annotated.shape == image.shape
    assert tuple(annotated[100, 50]) == box.color
    assert not annotated[100, 100].any()
