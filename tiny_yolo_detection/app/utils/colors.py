"""Deterministic per-class colors for rendering."""
from __future__ import annotations

from typing import Tuple

from ..models import Color

# BGR, in the order OpenCV expects.
CLASS_PALETTE: Tuple[Color, ...] = (
    (140, 230, 240),  # khaki
    (255, 0, 255),  # fuchsia
    (192, 192, 192),  # silver
    (225, 105, 65),  # royal blue
    (0, 128, 0),  # green
    (0, 140, 255),  # dark orange
    (128, 0, 128),  # purple
    (0, 215, 255),  # gold
    (0, 0, 255),  # red
    (212, 255, 127),  # aquamarine
    (0, 255, 0),  # lime
    (255, 248, 240),  # alice blue
    (45, 82, 160),  # sienna
    (214, 112, 218),  # orchid
    (140, 180, 210),  # tan
    (193, 182, 255),  # light pink
    (0, 255, 255),  # yellow
    (180, 105, 255),  # hot pink
    (35, 142, 107),  # olive drab
    (96, 164, 244),  # sandy brown
    (209, 206, 0),  # dark turquoise
)


def color_for_class(class_index: int) -> Color:
    """Return the palette color for a class, cycling once the palette is exhausted."""

    if class_index < 0:
        raise ValueError(f"Class index must be non-negative, got {class_index}")
    return CLASS_PALETTE[class_index % len(CLASS_PALETTE)]
