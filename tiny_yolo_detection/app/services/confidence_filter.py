"""Confidence thresholding and top-K selection of decoded candidates."""
from __future__ import annotations

import logging
from typing import Iterable, Tuple

from ..models import Candidate

LOGGER = logging.getLogger(__name__)


def filter_candidates(candidates: Iterable[Candidate], threshold: float, limit: int) -> Tuple[Candidate, ...]:
    """Keep the ``limit`` most confident candidates scoring at least ``threshold``.

    Candidates whose confidence is NaN never pass. Ties keep their input order.
    """

    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    if limit == 0:
        return ()

    scored = [(candidate.confidence, candidate) for candidate in candidates]
    passing = [item for item in scored if item[0] >= threshold]
    passing.sort(key=lambda item: item[0], reverse=True)
    LOGGER.debug("%d of %d candidates passed confidence %.3f", len(passing), len(scored), threshold)
    return tuple(candidate for _, candidate in passing[:limit])
