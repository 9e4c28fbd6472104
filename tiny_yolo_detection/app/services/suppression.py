"""Per-label greedy non-maximum suppression."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from ..models import BoundingBox
from ..utils.geometry import intersection_over_union

LOGGER = logging.getLogger(__name__)


def group_by_label(boxes: Iterable[BoundingBox]) -> Dict[int, List[BoundingBox]]:
    """Partition boxes by class index, preserving input order within and across groups."""

    groups: Dict[int, List[BoundingBox]] = {}
    for box in boxes:
        groups.setdefault(box.class_index, []).append(box)
    return groups


def _suppress_group(boxes: List[BoundingBox], iou_threshold: float) -> List[BoundingBox]:
    remaining = list(boxes)
    kept: List[BoundingBox] = []
    while remaining:
        best = remaining.pop(0)
        kept.append(best)
        remaining = [
            box for box in remaining if intersection_over_union(best.rectangle, box.rectangle) <= iou_threshold
        ]
    return kept


def non_max_suppression(boxes: Iterable[BoundingBox], iou_threshold: float) -> List[BoundingBox]:
    """Drop boxes overlapping a more confident box of the same label by more than ``iou_threshold``.

    Input must already be sorted by confidence, highest first. Output keeps that order
    within each label; labels appear in the order they were first seen.
    """

    kept: List[BoundingBox] = []
    total = 0
    for class_index, group in group_by_label(boxes).items():
        total += len(group)
        survivors = _suppress_group(group, iou_threshold)
        LOGGER.debug("Class %d: kept %d of %d boxes", class_index, len(survivors), len(group))
        kept.extend(survivors)
    LOGGER.debug("Non-maximum suppression kept %d of %d boxes", len(kept), total)
    return kept
