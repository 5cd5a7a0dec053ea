"""
Cover Image
===========

Draws a 1600x2400 JPEG cover for an exported book: a diagonal two-stop
gradient, an accent bar and a translucent accent circle, the word-wrapped
title, and a rounded panel with the creator name and export date.

The palette comes from a random hue. Pass a seeded ``random.Random`` as
``rng`` to get the same cover twice.
"""

import io
import logging
import random
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional, Tuple

from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFilter, ImageFont

from .exceptions import CoverRenderError
from .text import normalize_whitespace

logger = logging.getLogger(__name__)

WIDTH = 1600
HEIGHT = 2400
PADDING = 140
ACCENT_BAR_HEIGHT = 26
JPEG_QUALITY = 92

TITLE_TOP = 360
TITLE_BOTTOM_RESERVE = 520
TITLE_MAX_SIZE = 132
TITLE_MIN_SIZE = 84
TITLE_SIZE_STEP = 4
TITLE_MAX_LINES = 6
TITLE_LINE_HEIGHT_RATIO = 1.18

CREATOR_FONT_SIZE = 56
DATE_FONT_SIZE = 48

PLACEHOLDER_COLOR = (47, 72, 88)

SERIF_BOLD_FONTS = (
    "DejaVuSerif-Bold.ttf",
    "LiberationSerif-Bold.ttf",
    "georgiab.ttf",
    "Georgia Bold.ttf",
    "timesbd.ttf",
)
SANS_BOLD_FONTS = (
    "DejaVuSans-Bold.ttf",
    "LiberationSans-Bold.ttf",
    "trebucbd.ttf",
    "arialbd.ttf",
    "Arial Bold.ttf",
)
SANS_FONTS = (
    "DejaVuSans.ttf",
    "LiberationSans-Regular.ttf",
    "trebuc.ttf",
    "arial.ttf",
    "Arial.ttf",
)

Color = Tuple[int, ...]
Measure = Callable[[str, int], float]


@dataclass
class CoverPalette:
    background: Color
    background_alt: Color
    accent: Color
    text: Color
    meta: Color
    sub: Color
    panel: Color
    shadow: Color
    dark: bool


@dataclass
class TitleFit:
    lines: List[str]
    font_size: int
    line_height: int


def _hsl(hue: int, saturation: int, lightness: int) -> Color:
    return ImageColor.getrgb(f"hsl({hue}, {saturation}%, {lightness}%)")


def _line_height(size: int) -> int:
    return int(size * TITLE_LINE_HEIGHT_RATIO + 0.5)


def pick_cover_palette(rng: Optional[random.Random] = None) -> CoverPalette:
    """Random hue, complementary accent, and ink chosen for the theme."""
    rng = rng or random.Random()
    hue = rng.randrange(360)
    dark = rng.random() < 0.45
    accent_hue = (hue + 160 + rng.randrange(40)) % 360

    if dark:
        return CoverPalette(
            background=_hsl(hue, 42, 22),
            background_alt=_hsl((hue + 18) % 360, 45, 30),
            accent=_hsl(accent_hue, 72, 64),
            text=(254, 246, 232),
            meta=(254, 246, 232, 230),
            sub=(254, 246, 232, 191),
            panel=(0, 0, 0, 82),
            shadow=(0, 0, 0, 89),
            dark=True,
        )
    return CoverPalette(
        background=_hsl(hue, 42, 88),
        background_alt=_hsl((hue + 18) % 360, 45, 78),
        accent=_hsl(accent_hue, 72, 38),
        text=(27, 27, 27),
        meta=(47, 72, 88),
        sub=(107, 107, 107),
        panel=(255, 255, 255, 179),
        shadow=(0, 0, 0, 46),
        dark=False,
    )


@lru_cache(maxsize=64)
def load_font(candidates: Tuple[str, ...], size: int) -> ImageFont.ImageFont:
    """First installed TrueType font out of ``candidates``, else Pillow's default."""
    for name in candidates:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def measure_title(text: str, size: int) -> float:
    return load_font(SERIF_BOLD_FONTS, size).getlength(text)


def wrap_text(text: str, max_width: float, measure: Callable[[str], float]) -> List[str]:
    """Greedy word wrap. A single word wider than ``max_width`` gets its own line."""
    lines = []
    current = ""
    for word in normalize_whitespace(text).split(" "):
        candidate = f"{current} {word}" if current else word
        if measure(candidate) > max_width and current:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def fit_cover_title(text: str, max_width: float, max_height: float,
                    measure: Measure = measure_title) -> TitleFit:
    """Pick the largest font size at which the wrapped title fits.

    Sizes go from 132 down to 84 in steps of 4. When even the smallest size
    needs too many lines, the title is cut to the lines that fit and the last
    one ends in an ellipsis.
    """
    for size in range(TITLE_MAX_SIZE, TITLE_MIN_SIZE - 1, -TITLE_SIZE_STEP):
        lines = wrap_text(text, max_width, lambda value: measure(value, size))
        line_height = _line_height(size)
        if len(lines) <= TITLE_MAX_LINES and len(lines) * line_height <= max_height:
            return TitleFit(lines=lines, font_size=size, line_height=line_height)

    line_height = _line_height(TITLE_MIN_SIZE)
    max_fit_lines = max(1, min(TITLE_MAX_LINES, int(max_height // line_height)))
    lines = wrap_text(text, max_width, lambda value: measure(value, TITLE_MIN_SIZE))
    if len(lines) > max_fit_lines:
        lines = lines[:max_fit_lines]
        lines[-1] = f"{lines[-1].strip()}..."
    return TitleFit(lines=lines, font_size=TITLE_MIN_SIZE, line_height=line_height)


def _diagonal_gradient(start: Color, end: Color) -> Image.Image:
    # Mask value at (x, y) is the projection onto the top-left to bottom-right diagonal
    total = WIDTH * WIDTH + HEIGHT * HEIGHT
    ramp = Image.linear_gradient("L")
    vertical = ramp.resize((WIDTH, HEIGHT)).point(lambda v: int(v * HEIGHT * HEIGHT / total))
    horizontal = ramp.rotate(90).resize((WIDTH, HEIGHT)).point(lambda v: int(v * WIDTH * WIDTH / total))
    mask = ImageChops.add(vertical, horizontal)
    return Image.composite(Image.new("RGB", (WIDTH, HEIGHT), end[:3]),
                           Image.new("RGB", (WIDTH, HEIGHT), start[:3]),
                           mask)


def _draw_title_shadow(image: Image.Image, fit: TitleFit, font: ImageFont.ImageFont,
                       color: Color) -> None:
    mask = Image.new("L", image.size, 0)
    mask_draw = ImageDraw.Draw(mask)
    y = TITLE_TOP
    for line in fit.lines:
        mask_draw.text((PADDING, y + 4), line, font=font, fill=255)
        y += fit.line_height
    alpha = color[3] if len(color) > 3 else 255
    mask = mask.filter(ImageFilter.GaussianBlur(7)).point(lambda v: v * alpha // 255)
    image.paste(Image.new("RGB", image.size, color[:3]), (0, 0), mask)


def _draw_cover(title: str, creator: str, export_date: str, palette: CoverPalette) -> Image.Image:
    image = _diagonal_gradient(palette.background, palette.background_alt)
    draw = ImageDraw.Draw(image, "RGBA")

    draw.rectangle((0, 0, WIDTH, ACCENT_BAR_HEIGHT), fill=palette.accent)

    cx, cy, radius = WIDTH * 0.82, HEIGHT * 0.78, WIDTH * 0.36
    draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius),
                 fill=tuple(palette.accent[:3]) + (46,))

    title_text = normalize_whitespace(title or "To Be Read")
    fit = fit_cover_title(title_text, WIDTH - PADDING * 2, HEIGHT - TITLE_TOP - TITLE_BOTTOM_RESERVE)
    title_font = load_font(SERIF_BOLD_FONTS, fit.font_size)

    _draw_title_shadow(image, fit, title_font, palette.shadow)
    draw = ImageDraw.Draw(image, "RGBA")
    y = TITLE_TOP
    for line in fit.lines:
        draw.text((PADDING, y), line, font=title_font, fill=palette.text)
        y += fit.line_height

    creator_text = normalize_whitespace(creator or "Tsundoku")
    date_text = normalize_whitespace(export_date)
    creator_font = load_font(SANS_BOLD_FONTS, CREATOR_FONT_SIZE)
    date_font = load_font(SANS_FONTS, DATE_FONT_SIZE)
    creator_line_height = int(CREATOR_FONT_SIZE * 1.16 + 0.5)
    date_line_height = int(DATE_FONT_SIZE * 1.2 + 0.5)

    meta_block_height = creator_line_height + (date_line_height if date_text else 0)
    meta_y = max(y + 120, HEIGHT - meta_block_height - 220)

    creator_width = creator_font.getlength(creator_text)
    date_width = date_font.getlength(date_text) if date_text else 0
    panel_width = max(creator_width, date_width) + 72
    panel_height = meta_block_height + 24
    panel_radius = min(28, panel_width / 2, panel_height / 2)
    draw.rounded_rectangle(
        (PADDING - 12, meta_y - 12, PADDING - 12 + panel_width, meta_y - 12 + panel_height),
        radius=panel_radius,
        fill=palette.panel,
    )

    draw.text((PADDING, meta_y), creator_text, font=creator_font, fill=palette.meta)
    if date_text:
        draw.text((PADDING, meta_y + creator_line_height), date_text, font=date_font, fill=palette.sub)

    return image


def _to_jpeg(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()


def render_cover(title: str, creator: str, export_date: str,
                 rng: Optional[random.Random] = None) -> bytes:
    """Draw the cover and encode it.

    Raises:
        CoverRenderError: if drawing or encoding fails.
    """
    try:
        palette = pick_cover_palette(rng)
        image = _draw_cover(title, creator, export_date, palette)
        return _to_jpeg(image)
    except (OSError, ValueError, TypeError, MemoryError) as e:
        raise CoverRenderError(f"Cover drawing failed: {e}") from e


def build_placeholder_cover() -> bytes:
    """Solid-color cover used when the real one cannot be drawn."""
    return _to_jpeg(Image.new("RGB", (WIDTH, HEIGHT), PLACEHOLDER_COLOR))


def build_cover_image(title: str, creator: str, export_date: str,
                      rng: Optional[random.Random] = None) -> bytes:
    """JPEG bytes for the book cover; never empty."""
    try:
        return render_cover(title, creator, export_date, rng=rng)
    except CoverRenderError as e:
        logger.warning(f"{e}; using placeholder cover")
        return build_placeholder_cover()
