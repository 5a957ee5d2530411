from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from ..core.errors import BuildError


@dataclass(frozen=True)
class Color:
    red: float
    green: float
    blue: float
    alpha: float = 1.0

    def rgba(self) -> tuple[int, int, int, int]:
        return tuple(max(0, min(255, int(round(c * 255)))) for c in (self.red, self.green, self.blue, self.alpha))  # type: ignore[return-value]


WHITE = Color(1, 1, 1, 1)
TRANSLUCENT_BLACK = Color(0, 0, 0, 0.5)

_BANNER_RATIO = 0.3
_MAX_TEXT_WIDTH_RATIO = 0.9


def _font(size: int):
    size = max(1, size)
    for name in ("DejaVuSans.ttf", "Arial.ttf", "Helvetica.ttc"):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def _fit_font(draw: ImageDraw.ImageDraw, text: str, width: int, height: int):
    font = _font(height)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    text_w, text_h = right - left, bottom - top
    max_w = width * _MAX_TEXT_WIDTH_RATIO
    if text_h > 0 and text_h > height:
        font = _font(int(height * height / text_h))
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        text_w = right - left
    if text_w > max_w:
        font = _font(int(getattr(font, "size", height) * max_w / text_w))
    return font


def _image_files(icon_dir: Path) -> list[Path]:
    try:
        return sorted(p for p in icon_dir.iterdir() if p.suffix == ".png" and p.is_file())
    except OSError as e:
        raise BuildError(f"Failed to list icon files in '{icon_dir}'") from e


def add_text_to_image(
    path: Path,
    text: str,
    *,
    foreground: Color = WHITE,
    background: Color = TRANSLUCENT_BLACK,
) -> None:
    try:
        img = Image.open(path).convert("RGBA")
    except OSError as e:
        raise BuildError(f"Failed to load image '{path}'") from e

    w, h = img.size
    banner_h = int(math.ceil(h * _BANNER_RATIO))

    overlay = Image.new("RGBA", img.size, color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    draw.rectangle((0, h - banner_h, w, h), fill=background.rgba())

    font = _fit_font(draw, text, w, banner_h)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = (w - (right - left)) / 2 - left
    y = h - banner_h + (banner_h - (bottom - top)) / 2 - top
    draw.text((x, y), text, font=font, fill=foreground.rgba())

    img.alpha_composite(overlay)
    try:
        img.save(path, format="PNG")
    except OSError as e:
        raise BuildError(f"Failed to save image '{path}'") from e


def add_text(
    icon_dir: str | Path,
    text: str,
    *,
    foreground: Color = WHITE,
    background: Color = TRANSLUCENT_BLACK,
) -> list[Path]:
    """Draw a *text* banner over the bottom of every PNG in *icon_dir*."""

    files = _image_files(Path(icon_dir))
    for path in files:
        add_text_to_image(path, text, foreground=foreground, background=background)
    return files
