"""
Text-fit engine for the poster footer.

Sizes four contact lines to the widest font that fits a text column, using a
fixed average-glyph-width estimate, and renders them two ways: an SVG
description of the block (escaped markup) and a Pillow raster with a
horizontal gradient fill.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import cached_property
from html import escape

from PIL import Image, ImageDraw

from config.layout import FONT_FIT, TEXT_GRADIENT
from posterkit.imaging import draw_horizontal_gradient, get_font
from posterkit.members import Member

logger = logging.getLogger(__name__)


@dataclass
class TextBlock:
    image: Image.Image
    font_size: int
    line_height: int
    block_height: int
    width: int
    lines: tuple[str, ...]

    @cached_property
    def markup(self) -> str:
        """SVG document for the block, built on first access (export only)."""
        return _render_markup(list(self.lines), self.width, self.line_height, self.font_size)


def normalize_designation(designation: str | None, brand: str) -> str:
    """Return the footer label for a designation, e.g. ``Wealth Manager | Brand``."""
    raw = re.sub(r"\s+", " ", str(designation or "")).strip()
    if not raw:
        return f"N/A | {brand}"
    low = raw.lower()
    if "wealth" in low:
        return f"Wealth Manager | {brand}"
    if "health" in low:
        return f"Health Insurance Advisor | {brand}"
    return f"{raw} | {brand}"


def build_footer_lines(member: Member, brand: str) -> list[str]:
    return [
        member.name,
        normalize_designation(member.designation, brand),
        f"Phone: {member.phone}",
        f"Email: {member.email}",
    ]


def escape_markup(text: str) -> str:
    return escape(str(text), quote=True)


def preferred_font_size(column_width: int) -> int:
    size = int(column_width * FONT_FIT["preferred_ratio"])
    return max(FONT_FIT["preferred_min"], min(FONT_FIT["preferred_max"], size))


def min_font_size(max_width: int) -> int:
    size = max_width // FONT_FIT["floor_divisor"]
    return max(FONT_FIT["floor_min"], min(FONT_FIT["floor_max"], size))


def estimate_line_width(line: str, font_size: int) -> float:
    return len(line) * font_size * FONT_FIT["char_width_ratio"]


def choose_font_size(lines: list[str], max_width: int, preferred_size: float) -> int:
    """Largest size <= preferred at which every line fits, never below the floor."""
    floor = min_font_size(max_width)
    available = max(10, max_width - FONT_FIT["padding"] * 2)
    size = max(floor, int(preferred_size))

    def fits(candidate: int) -> bool:
        return all(estimate_line_width(line, candidate) <= available for line in lines)

    # Strictly decreasing integers, bounded by the floor.
    while size > floor and not fits(size):
        size = max(floor, int(size * FONT_FIT["shrink_ratio"]))

    if not fits(size):
        logger.debug(f"Text overflows {max_width}px column even at floor size {size}px")
    return size


def _render_markup(lines: list[str], width: int, line_height: int, font_size: int) -> str:
    padding = FONT_FIT["padding"]
    (r1, g1, b1), (r2, g2, b2) = TEXT_GRADIENT
    height = line_height * len(lines)
    rows = []
    for i, line in enumerate(lines):
        y = round(line_height * i + line_height / 2)
        rows.append(f'<text x="{padding}" y="{y}" class="footertext">{escape_markup(line)}</text>')

    return (
        f'<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">'
        "<defs>"
        '<linearGradient id="gradText" x1="0%" y1="0%" x2="100%" y2="0%">'
        f'<stop offset="0%" stop-color="rgb({r1},{g1},{b1})"/>'
        f'<stop offset="100%" stop-color="rgb({r2},{g2},{b2})"/>'
        "</linearGradient>"
        "</defs>"
        "<style>.footertext { font-family: Arial, sans-serif; fill: url(#gradText); "
        f"font-weight: bold; font-size: {font_size}px; dominant-baseline: middle; }}</style>"
        + "".join(rows)
        + "</svg>"
    )


def _render_raster(lines: list[str], width: int, line_height: int, font_size: int) -> Image.Image:
    height = line_height * len(lines)
    font = get_font(font_size, bold=True)

    mask = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(mask)
    for i, line in enumerate(lines):
        if not line:
            continue
        bbox = draw.textbbox((0, 0), line, font=font)
        text_h = bbox[3] - bbox[1]
        y = line_height * i + (line_height - text_h) // 2 - bbox[1]
        draw.text((FONT_FIT["padding"], y), line, font=font, fill=255)

    fill = draw_horizontal_gradient(width, height, *TEXT_GRADIENT)
    block = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    block.paste(fill, (0, 0), mask)
    return block


def fit_text(lines: list[str], max_width: int, preferred_size: float) -> TextBlock:
    """Fit and render the four footer lines into a ``max_width`` wide block."""
    lines = [str(line if line is not None else "") for line in lines]
    if len(lines) != FONT_FIT["line_count"]:
        raise ValueError(f"expected {FONT_FIT['line_count']} text lines, got {len(lines)}")
    if max_width <= 0:
        raise ValueError(f"max_width must be positive, got {max_width}")
    if preferred_size <= 0:
        raise ValueError(f"preferred_size must be positive, got {preferred_size}")

    font_size = choose_font_size(lines, max_width, preferred_size)
    line_height = round(font_size * FONT_FIT["line_height"])

    return TextBlock(
        image=_render_raster(lines, max_width, line_height, font_size),
        font_size=font_size,
        line_height=line_height,
        block_height=line_height * len(lines),
        width=max_width,
        lines=tuple(lines),
    )
