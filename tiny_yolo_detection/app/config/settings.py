"""Configuration utilities for Tiny YOLO detection."""
from __future__ import annotations

from pathlib import Path
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .profile import DEFAULT_PROFILE_PATH

MODULE_ROOT = Path(__file__).resolve().parents[2]


class AppSettings(BaseSettings):
    """Application configuration sourced from environment variables or defaults."""

    model_config = SettingsConfigDict(env_prefix="TINYYOLO_", case_sensitive=False, protected_namespaces=())

    model_path: Path = Field(default=Path("models/tinyyolov2-8.onnx"), description="ONNX weights path")
    profile_path: Path = Field(default=DEFAULT_PROFILE_PATH, description="Grid, anchor and label profile.")
    images_dir: Path = Field(default=MODULE_ROOT / "assets" / "images", description="Images to score.")
    output_dir: Path = Field(
        default=MODULE_ROOT / "assets" / "images" / "output",
        description="Directory for annotated images and JSON results.",
    )
    results_filename: str = Field(default="detections.json")
    confidence_threshold: float = Field(default=0.3, gt=0.0, le=1.0)
    iou_threshold: float = Field(default=0.5, gt=0.0, lt=1.0)
    max_results: int = Field(default=5, ge=0)
    providers: List[str] = Field(default_factory=lambda: ["CPUExecutionProvider"])
    pixel_scale: float = Field(default=1.0, gt=0.0, description="Multiplier applied to 0-255 pixel values.")
    save_annotated: bool = Field(default=True)
    log_format: Literal["text", "json"] = Field(default="text")
    overlay_font_scale: float = Field(default=0.5, gt=0.0)
    box_thickness: int = Field(default=2, ge=1)

    @field_validator("model_path", "profile_path", "images_dir", "output_dir", mode="before")
    @classmethod
    def _expand_path(cls, value: str | Path) -> Path:
        return Path(value).expanduser()


def load_settings(**overrides: object) -> AppSettings:
    """Return application settings, applying optional overrides."""

    return AppSettings(**overrides)
