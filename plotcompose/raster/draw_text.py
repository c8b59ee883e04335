from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
import math
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

LOGGER = logging.getLogger(__name__)

DEFAULT_FONT_FAMILY = "DejaVu Sans"
DEFAULT_FONT_SIZE_PX = 14.0
DEFAULT_LINE_HEIGHT = 1.2
FONTFACES = ("plain", "bold", "italic", "bold.italic")
ITALIC_SHEAR = 0.2
FONT_FALLBACK_PATTERNS = (
    "dejavu sans",
    "liberation sans",
    "helvetica",
    "arial",
    "freesans",
    "noto sans",
)
FONT_DIRS = (
    Path.home() / "Library" / "Fonts",
    Path("/Library/Fonts"),
    Path("/System/Library/Fonts"),
    Path("/System/Library/Fonts/Supplemental"),
    Path("/usr/share/fonts"),
    Path("/usr/local/share/fonts"),
    Path.home() / ".fonts",
)


@dataclass(frozen=True)
class LoadedFont:
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont
    size_px: int
    synthetic_bold: bool = False
    synthetic_italic: bool = False

    @property
    def embolden_px(self) -> int:
        return max(2, int(round(self.size_px / 12.0))) if self.synthetic_bold else 1

    def metrics(self) -> tuple[int, int]:
        ascent, descent = self.font.getmetrics()
        return int(ascent), int(descent)

    def advance(self, text: str) -> float:
        return float(self.font.getlength(text))


@dataclass(frozen=True)
class TextMetrics:
    width: float
    height: float
    ascent: float
    line_advance: float
    line_count: int = 1


def _face_of(stem: str) -> str:
    bold = "bold" in stem
    italic = "italic" in stem or "oblique" in stem
    if bold and italic:
        return "bold.italic"
    if bold:
        return "bold"
    if italic:
        return "italic"
    return "plain"


@lru_cache(maxsize=1)
def _font_candidates() -> tuple[Path, ...]:
    found: list[Path] = []
    for base in FONT_DIRS:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf", "*.ttc"):
            found.extend(base.rglob(ext))
    return tuple(sorted(found))


def resolve_font_path(font_family: str, fontface: str = "plain") -> tuple[Path, bool] | None:
    """Find a font file for `font_family`; the flag is True when `fontface` must be synthesised."""
    wanted = font_family.strip().lower() or DEFAULT_FONT_FAMILY.lower()
    candidates = _font_candidates()
    for pattern in (wanted,) + FONT_FALLBACK_PATTERNS:
        p = pattern.replace(" ", "")
        matches = [path for path in candidates if p in path.stem.lower().replace(" ", "").replace("-", "")]
        if not matches:
            continue
        exact = [path for path in matches if _face_of(path.stem.lower()) == fontface]
        if exact:
            return min(exact, key=lambda path: (len(path.stem), str(path))), False
        plain = [path for path in matches if _face_of(path.stem.lower()) == "plain"]
        if plain:
            return min(plain, key=lambda path: (len(path.stem), str(path))), fontface != "plain"
    return None


@lru_cache(maxsize=None)
def _warn_font_fallback(font_family: str, reason: str) -> None:
    LOGGER.warning("font family %r unavailable (%s); using Pillow's built-in font", font_family, reason)


@lru_cache(maxsize=128)
def load_font(font_family: str, font_size_px: float, fontface: str = "plain") -> LoadedFont:
    if fontface not in FONTFACES:
        raise ValueError(f"unknown fontface: {fontface!r}")
    size = max(1, int(round(font_size_px)))
    resolved = resolve_font_path(font_family, fontface)
    if resolved is not None:
        path, synthetic = resolved
        try:
            font = ImageFont.truetype(str(path), size=size)
        except OSError as exc:
            _warn_font_fallback(font_family, str(exc))
        else:
            return LoadedFont(
                font=font,
                size_px=size,
                synthetic_bold=synthetic and "bold" in fontface,
                synthetic_italic=synthetic and "italic" in fontface,
            )
    else:
        _warn_font_fallback(font_family, "no matching font file")
    return LoadedFont(
        font=ImageFont.load_default(size=size),
        size_px=size,
        synthetic_bold="bold" in fontface,
        synthetic_italic="italic" in fontface,
    )


def measure_text(text: str, loaded: LoadedFont, *, line_height: float = DEFAULT_LINE_HEIGHT) -> TextMetrics:
    # Heights come from font metrics, not glyph ink, so boxes do not depend on which letters are used.
    ascent, descent = loaded.metrics()
    lines = text.split("\n")
    advance = max(float(ascent + descent), loaded.size_px * line_height)
    width = max(loaded.advance(line) for line in lines)
    height = float(ascent + descent) + advance * (len(lines) - 1)
    width += loaded.embolden_px - 1
    if loaded.synthetic_italic:
        width += ITALIC_SHEAR * height
    return TextMetrics(width=width, height=height, ascent=float(ascent), line_advance=advance, line_count=len(lines))


def render_text_mask(text: str, loaded: LoadedFont, *, line_height: float = DEFAULT_LINE_HEIGHT) -> np.ndarray:
    m = measure_text(text, loaded, line_height=line_height)
    plain_w = m.width - (ITALIC_SHEAR * m.height if loaded.synthetic_italic else 0.0) - (loaded.embolden_px - 1)
    image = Image.new("L", (max(1, math.ceil(plain_w)), max(1, math.ceil(m.height))), 0)
    draw = ImageDraw.Draw(image)
    for i, line in enumerate(text.split("\n")):
        draw.text((0, i * m.line_advance), line, fill=255, font=loaded.font, anchor="la")
    return finish_mask(np.asarray(image, dtype=np.uint8), loaded)


def finish_mask(mask: np.ndarray, loaded: LoadedFont) -> np.ndarray:
    if loaded.embolden_px > 1:
        mask = _embolden(mask, loaded.embolden_px)
    if loaded.synthetic_italic:
        mask = _shear(mask, ITALIC_SHEAR)
    return mask


def _embolden(mask: np.ndarray, embolden_px: int) -> np.ndarray:
    h, w = mask.shape
    out = np.zeros((h, w + embolden_px - 1), dtype=np.uint8)
    for shift in range(embolden_px):
        np.maximum(out[:, shift : shift + w], mask, out=out[:, shift : shift + w])
    return out


def _shear(mask: np.ndarray, factor: float) -> np.ndarray:
    h, w = mask.shape
    extra = int(math.ceil(factor * h))
    image = Image.fromarray(mask)
    sheared = image.transform(
        (w + extra, h),
        Image.Transform.AFFINE,
        (1.0, factor, -factor * h, 0.0, 1.0, 0.0),
        resample=Image.Resampling.BICUBIC,
    )
    return np.asarray(sheared, dtype=np.uint8)


def rotate_mask(mask: np.ndarray, angle: float) -> np.ndarray:
    """Rotate counter-clockwise by `angle` degrees, growing the mask to hold the result."""
    turns, rem = divmod(float(angle), 90.0)
    if abs(rem) < 1e-9:
        k = int(turns) % 4
        return mask if k == 0 else np.ascontiguousarray(np.rot90(mask, k=k))
    image = Image.fromarray(mask)
    return np.asarray(image.rotate(float(angle), resample=Image.Resampling.BICUBIC, expand=True), dtype=np.uint8)


def rotated_extent(width: float, height: float, angle: float) -> tuple[float, float]:
    turns, rem = divmod(float(angle), 90.0)
    if abs(rem) < 1e-9:
        return (height, width) if int(turns) % 2 else (width, height)
    rad = math.radians(angle)
    c = abs(math.cos(rad))
    s = abs(math.sin(rad))
    return (width * c + height * s, width * s + height * c)

