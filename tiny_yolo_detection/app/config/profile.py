"""Static model geometry and vocabulary loaded from YAML."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

import yaml

from ..errors import ConfigurationError
from ..models import Anchor
from ..utils.geometry import GridGeometry

LOGGER = logging.getLogger(__name__)

DEFAULT_PROFILE_PATH = Path(__file__).resolve().parent / "tiny_yolo_v2_voc.yaml"

_REQUIRED_KEYS = ("grid_rows", "grid_cols", "image_width", "image_height", "anchors", "labels")


@dataclass(frozen=True)
class ModelProfile:
    name: str
    grid_rows: int
    grid_cols: int
    image_width: int
    image_height: int
    anchors: Tuple[Anchor, ...] = ()
    labels: Tuple[str, ...] = ()
    anchor_count: Optional[int] = None
    class_count: Optional[int] = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any], *, default_name: str = "custom") -> "ModelProfile":
        missing = [key for key in _REQUIRED_KEYS if key not in payload]
        if missing:
            raise ConfigurationError(f"Model profile is missing keys: {', '.join(missing)}")

        anchors: List[Anchor] = []
        for raw_anchor in payload["anchors"] or []:
            if not isinstance(raw_anchor, (list, tuple)) or len(raw_anchor) != 2:
                raise ConfigurationError(f"Anchor must be a [width, height] pair, got {raw_anchor!r}")
            anchors.append(Anchor(float(raw_anchor[0]), float(raw_anchor[1])))

        anchor_count = payload.get("anchor_count")
        class_count = payload.get("class_count")
        return cls(
            name=str(payload.get("name", default_name)),
            grid_rows=int(payload["grid_rows"]),
            grid_cols=int(payload["grid_cols"]),
            image_width=int(payload["image_width"]),
            image_height=int(payload["image_height"]),
            anchors=tuple(anchors),
            labels=tuple(str(label) for label in payload["labels"] or []),
            anchor_count=int(anchor_count) if anchor_count is not None else None,
            class_count=int(class_count) if class_count is not None else None,
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "ModelProfile":
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
        if not isinstance(payload, dict):
            raise ConfigurationError(f"Model profile {path} must contain a mapping")
        profile = cls.from_mapping(payload, default_name=path.stem)
        LOGGER.info(
            "Loaded model profile %s (%dx%d grid, %d anchors, %d classes)",
            profile.name,
            profile.grid_rows,
            profile.grid_cols,
            len(profile.anchors),
            len(profile.labels),
        )
        return profile

    @property
    def geometry(self) -> GridGeometry:
        return GridGeometry(
            grid_rows=self.grid_rows,
            grid_cols=self.grid_cols,
            anchor_count=len(self.anchors),
            class_count=len(self.labels),
        )


def load_profile(path: Optional[Path] = None) -> ModelProfile:
    """Return the model profile at ``path`` or the bundled Tiny YOLOv2 VOC profile."""

    return ModelProfile.from_yaml(path or DEFAULT_PROFILE_PATH)
