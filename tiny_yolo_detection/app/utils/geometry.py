"""Geometry helpers for the output grid layout and rectangle overlap."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from ..errors import InputShapeError
from ..models import Rectangle

# Fixed per-anchor channels ahead of the class scores: tx, ty, tw, th, objectness.
BOX_FIELDS = 5
FIELD_TX, FIELD_TY, FIELD_TW, FIELD_TH, FIELD_OBJECTNESS = range(BOX_FIELDS)


@dataclass(frozen=True)
class GridGeometry:
    """Layout of a flat raw output: row-major cells, then anchors, then fields."""

    grid_rows: int
    grid_cols: int
    anchor_count: int
    class_count: int

    @property
    def fields_per_anchor(self) -> int:
        return BOX_FIELDS + self.class_count

    @property
    def cell_count(self) -> int:
        return self.grid_rows * self.grid_cols

    @property
    def expected_size(self) -> int:
        return self.cell_count * self.anchor_count * self.fields_per_anchor

    @property
    def shape(self) -> tuple[int, int, int, int]:
        return (self.grid_rows, self.grid_cols, self.anchor_count, self.fields_per_anchor)

    def offset(self, row: int, col: int, anchor: int, field: int) -> int:
        """Return the flat index of one channel value."""

        for name, value, bound in (
            ("row", row, self.grid_rows),
            ("col", col, self.grid_cols),
            ("anchor", anchor, self.anchor_count),
            ("field", field, self.fields_per_anchor),
        ):
            if not 0 <= value < bound:
                raise IndexError(f"{name} index {value} outside [0, {bound})")
        return ((row * self.grid_cols + col) * self.anchor_count + anchor) * self.fields_per_anchor + field

    def view(self, raw: Union[Sequence[float], np.ndarray]) -> np.ndarray:
        """Validate a raw buffer and return it as a read-only (rows, cols, anchors, fields) array."""

        flat = np.asarray(raw, dtype=np.float32).ravel()
        if flat.size != self.expected_size:
            raise InputShapeError(self.expected_size, int(flat.size))
        grid = flat.reshape(self.shape)
        grid.flags.writeable = False
        return grid


def rectangle_intersection(first: Rectangle, second: Rectangle) -> float:
    """Area shared by two rectangles, never negative."""

    x1 = max(first.x, second.x)
    y1 = max(first.y, second.y)
    x2 = min(first.x + first.width, second.x + second.width)
    y2 = min(first.y + first.height, second.y + second.height)
    return max(0.0, x2 - x1) * max(0.0, y2 - y1)


def intersection_over_union(first: Rectangle, second: Rectangle) -> float:
    """Intersection-over-Union of two rectangles in ``[0, 1]``."""

    intersection = rectangle_intersection(first, second)
    union = first.area + second.area - intersection

    # Two zero-area boxes
    if union <= 0:
        return 0.0

    return min(1.0, intersection / union)
