from __future__ import annotations

from dataclasses import dataclass, fields
import logging
import math
from pathlib import Path
import tomllib
from typing import Any

from plotcompose.raster.canvas import RGBA
from plotcompose.raster.draw_text import DEFAULT_FONT_FAMILY, DEFAULT_LINE_HEIGHT, FONTFACES

LOGGER = logging.getLogger(__name__)
CONFIG_TABLE = "plotcompose"


@dataclass(frozen=True)
class ComposeDefaults:
    font_family: str = DEFAULT_FONT_FAMILY
    font_size_px: float = 14.0
    line_height: float = DEFAULT_LINE_HEIGHT
    background: RGBA = (255, 255, 255, 255)
    text_color: RGBA = (20, 20, 20, 255)
    tag_size_px: float = 14.0
    tag_fontface: str = "bold"
    figure_width: int = 640
    figure_height: int = 480

    def __post_init__(self) -> None:
        if not self.font_family.strip():
            raise ValueError("font_family must be non-empty")
        for name in ("font_size_px", "line_height", "tag_size_px"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.tag_fontface not in FONTFACES:
            raise ValueError(f"tag_fontface must be one of {FONTFACES}")
        if self.figure_width <= 0 or self.figure_height <= 0:
            raise ValueError("figure_width/figure_height must be > 0")


def load_defaults(path: str | Path) -> ComposeDefaults:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")
    with config_path.open("rb") as f:
        raw = tomllib.load(f)
    section = raw.get(CONFIG_TABLE)
    if not isinstance(section, dict):
        raise ValueError(f"config missing [{CONFIG_TABLE}] table: {config_path}")
    known = {f.name: f for f in fields(ComposeDefaults)}
    unknown = sorted(set(section) - set(known))
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    values: dict[str, Any] = {}
    for key, value in section.items():
        if key in {"background", "text_color"}:
            values[key] = _coerce_color(value, key)
        elif key in {"figure_width", "figure_height"}:
            values[key] = _coerce_int(value, key)
        elif key in {"font_family", "tag_fontface"}:
            if not isinstance(value, str):
                raise ValueError(f"{key} must be a string")
            values[key] = value
        else:
            values[key] = _coerce_float(value, key)
    defaults = ComposeDefaults(**values)
    LOGGER.debug("loaded compose defaults from %s: %s", config_path, defaults)
    return defaults


def _coerce_color(value: Any, key: str) -> RGBA:
    if not isinstance(value, list) or len(value) not in (3, 4):
        raise ValueError(f"{key} must be a list of 3 or 4 integers")
    channels = [_coerce_int(v, key) for v in value]
    if any(c < 0 or c > 255 for c in channels):
        raise ValueError(f"{key} channels must be in [0, 255]")
    if len(channels) == 3:
        channels.append(255)
    r, g, b, a = channels
    return (r, g, b, a)


def _coerce_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return value


def _coerce_float(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)
