"""Exceptions raised by the detection decoding pipeline."""
from __future__ import annotations


class DetectionError(Exception):
    """Base class for decoding failures."""


class ConfigurationError(DetectionError, ValueError):
    """Static decoder configuration is inconsistent."""


class InputShapeError(DetectionError, ValueError):
    """Raw network output does not match the configured geometry."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Raw output has {actual} values, expected {expected} for the configured geometry")
        self.expected = expected
        self.actual = actual
