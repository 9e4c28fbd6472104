"""Draw decoded bounding boxes onto images."""
from __future__ import annotations

from typing import Iterable

import cv2
import numpy as np

from ..models import BoundingBox

CAPTION_COLOR = (0, 0, 0)


def format_caption(box: BoundingBox) -> str:
    return f"{box.label} ({box.confidence * 100:.0f}%)"


def scale_to_image(
    box: BoundingBox,
    image_width: int,
    image_height: int,
    model_width: float,
    model_height: float,
) -> tuple[int, int, int, int]:
    """Clamp a model-space box to the model input and rescale it to ``image_width x image_height`` corners."""

    x = max(box.rectangle.x, 0.0)
    y = max(box.rectangle.y, 0.0)
    width = max(0.0, min(model_width - x, box.rectangle.width))
    height = max(0.0, min(model_height - y, box.rectangle.height))

    scale_x = image_width / model_width
    scale_y = image_height / model_height
    x1 = int(x * scale_x)
    y1 = int(y * scale_y)
    x2 = int((x + width) * scale_x)
    y2 = int((y + height) * scale_y)
    return x1, y1, x2, y2


def draw_bounding_boxes(
    image: np.ndarray,
    boxes: Iterable[BoundingBox],
    model_width: float,
    model_height: float,
    *,
    font_scale: float = 0.5,
    thickness: int = 2,
) -> np.ndarray:
    """Return a copy of ``image`` with each box and its caption drawn in the box color."""

    output = image.copy()
    image_height, image_width = output.shape[:2]
    for box in boxes:
        x1, y1, x2, y2 = scale_to_image(box, image_width, image_height, model_width, model_height)
        cv2.rectangle(output, (x1, y1), (x2, y2), box.color, thickness)

        caption = format_caption(box)
        (text_width, text_height), baseline = cv2.getTextSize(caption, cv2.FONT_HERSHEY_SIMPLEX, font_scale, 1)
        top = max(text_height + baseline, y1)
        cv2.rectangle(output, (x1, top - text_height - baseline), (x1 + text_width, top), box.color, -1)
        cv2.putText(
            output,
            caption,
            (x1, top - baseline),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            CAPTION_COLOR,
            1,
            lineType=cv2.LINE_AA,
        )
    return output
