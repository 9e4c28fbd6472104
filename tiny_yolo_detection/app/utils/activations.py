"""Numerically stable activation functions used to decode raw channels."""
from __future__ import annotations

from typing import Sequence, Union

import numpy as np

ArrayLike = Union[float, Sequence[float], np.ndarray]

# Keeps finite inputs strictly inside (0, 1) even where float64 would round to an endpoint.
_SIGMOID_FLOOR = np.finfo(np.float64).tiny
_SIGMOID_CEIL = 1.0 - np.finfo(np.float64).epsneg


def sigmoid(values: ArrayLike) -> Union[float, np.ndarray]:
    """Logistic function, evaluated without overflow for any input magnitude.

    Scalars return a ``float``; array-likes return an ``np.ndarray`` of the same shape.
    NaN inputs stay NaN.
    """

    array = np.asarray(values, dtype=np.float64)
    decay = np.exp(-np.abs(array))
    result = np.where(array >= 0, 1.0 / (1.0 + decay), decay / (1.0 + decay))
    result = np.clip(result, _SIGMOID_FLOOR, _SIGMOID_CEIL)
    if result.ndim == 0:
        return float(result)
    return result


def softmax(values: ArrayLike) -> np.ndarray:
    """Normalized exponential of a 1-D vector.

    The maximum is subtracted first so large logits do not overflow. An empty vector
    yields an empty result; non-finite inputs yield NaN entries.
    """

    vector = np.asarray(values, dtype=np.float64).ravel()
    if vector.size == 0:
        return vector
    with np.errstate(invalid="ignore", over="ignore"):
        shifted = vector - np.max(vector)
        exponentials = np.exp(shifted)
        return exponentials / np.sum(exponentials)
