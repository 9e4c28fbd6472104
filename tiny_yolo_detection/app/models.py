"""Shared data models for the Tiny YOLO decoder."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Optional, Tuple

import numpy as np

Color = Tuple[int, int, int]


def _json_number(value: float) -> Optional[float]:
    """JSON has no infinities or NaN; report them as ``null``."""

    value = float(value)
    return value if math.isfinite(value) else None


class Anchor(NamedTuple):
    """Reference box size in grid-cell units."""

    width: float
    height: float


class Rectangle(NamedTuple):
    """Axis-aligned rectangle with a top-left origin."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def to_xyxy(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class Candidate:
    """Decoded prediction of one anchor in one grid cell, before filtering."""

    row: int
    col: int
    anchor: int
    center: Tuple[float, float]
    size: Tuple[float, float]
    objectness: float
    class_probabilities: Tuple[float, ...]

    @property
    def best_class_index(self) -> int:
        return int(np.argmax(self.class_probabilities))

    @property
    def best_class_probability(self) -> float:
        return float(np.max(self.class_probabilities))

    @property
    def confidence(self) -> float:
        """Objectness scaled by the most likely class probability (NaN when degenerate)."""

        return self.objectness * self.best_class_probability

    @property
    def rectangle(self) -> Rectangle:
        center_x, center_y = self.center
        width, height = self.size
        return Rectangle(center_x - width / 2.0, center_y - height / 2.0, width, height)


@dataclass(frozen=True)
class BoundingBox:
    """Final labeled detection handed to rendering and persistence."""

    label: str
    class_index: int
    rectangle: Rectangle
    confidence: float
    color: Color

    def to_xyxy(self) -> Tuple[float, float, float, float]:
        return self.rectangle.to_xyxy()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "class_index": self.class_index,
            "confidence": _json_number(self.confidence),
            "rectangle": {
                "x": _json_number(self.rectangle.x),
                "y": _json_number(self.rectangle.y),
                "width": _json_number(self.rectangle.width),
                "height": _json_number(self.rectangle.height),
            },
            "color_bgr": list(self.color),
        }
