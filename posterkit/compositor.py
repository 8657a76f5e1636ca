"""
Footer layout: computes where the photo, text block, separator and logo go
for a given template width and composites them onto a tinted band.

Layout (left to right):
  margin | photo | gap | text column | gap | separator | gap | logo | margin
"""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image, ImageDraw

from config.layout import FOOTER_BACKGROUND, LAYOUT, SEPARATOR_COLOR


@dataclass(frozen=True)
class FooterGeometry:
    width: int
    height: int
    photo_left: int
    photo_top: int
    photo_size: int
    text_left: int
    text_top: int
    text_width: int
    text_height: int
    separator_left: int
    separator_top: int
    separator_height: int
    logo_left: int
    logo_top: int
    logo_size: int


def photo_diameter(template_width: int, layout: dict = LAYOUT) -> int:
    return max(layout["min_photo_size"], int(template_width * layout["photo_ratio"]))


def text_column_width(template_width: int, photo_size: int, logo_size: int, layout: dict = LAYOUT) -> int:
    """Width left for text once the photo, separator and logo have their space."""
    reserved_left = layout["left_margin"] + photo_size + layout["photo_gap"]
    reserved_right = (
        layout["text_gap"]
        + layout["separator_width"]
        + layout["separator_gap"]
        + logo_size
        + layout["right_margin"]
    )
    return max(layout["min_text_column"], template_width - reserved_left - reserved_right)


def _centered(total: int, size: int) -> int:
    return max(0, (total - size) // 2)


def plan_footer(
    template_width: int,
    photo_size: int,
    text_size: tuple[int, int],
    logo_size: int,
    layout: dict = LAYOUT,
) -> FooterGeometry:
    """Compute footer pixel geometry for one poster."""
    if template_width <= 0:
        raise ValueError(f"template_width must be positive, got {template_width}")
    text_width, text_height = text_size

    height = max(photo_size, text_height, logo_size) + layout["vertical_padding"] * 2

    photo_left = layout["left_margin"]
    text_left = photo_left + photo_size + layout["photo_gap"]
    separator_left = text_left + text_width + layout["text_gap"]
    logo_left = separator_left + layout["separator_width"] + layout["separator_gap"]

    # Keep the logo inside the template even when the text column was floored.
    max_logo_left = max(0, template_width - logo_size - layout["right_margin"])
    if logo_left > max_logo_left:
        logo_left = max_logo_left
        separator_left = max(0, logo_left - layout["separator_gap"] - layout["separator_width"])
    logo_size = min(logo_size, template_width - logo_left)

    return FooterGeometry(
        width=template_width,
        height=height,
        photo_left=photo_left,
        photo_top=_centered(height, photo_size),
        photo_size=photo_size,
        text_left=text_left,
        text_top=_centered(height, text_height),
        text_width=text_width,
        text_height=text_height,
        separator_left=separator_left,
        separator_top=_centered(height, photo_size),
        separator_height=photo_size,
        logo_left=logo_left,
        logo_top=_centered(height, logo_size),
        logo_size=logo_size,
    )


def compose_footer(
    photo: Image.Image,
    text_block: Image.Image,
    logo: Image.Image,
    template_width: int,
    *,
    background: tuple = FOOTER_BACKGROUND,
    separator_color: tuple = SEPARATOR_COLOR,
    layout: dict = LAYOUT,
) -> tuple[Image.Image, FooterGeometry]:
    """Composite the footer band. Returns the RGB band and its geometry."""
    geo = plan_footer(template_width, photo.width, text_block.size, logo.width, layout)

    band = Image.new("RGBA", (geo.width, geo.height), (*background[:3], 255))
    band.alpha_composite(photo.convert("RGBA"), (geo.photo_left, geo.photo_top))
    band.alpha_composite(text_block.convert("RGBA"), (geo.text_left, geo.text_top))

    draw = ImageDraw.Draw(band)
    draw.rectangle(
        [
            geo.separator_left,
            geo.separator_top,
            geo.separator_left + layout["separator_width"] - 1,
            geo.separator_top + geo.separator_height - 1,
        ],
        fill=tuple(separator_color[:3]),
    )

    if geo.logo_size != logo.width:
        logo = logo.crop((0, 0, geo.logo_size, geo.logo_size))
    band.paste(logo.convert("RGB"), (geo.logo_left, geo.logo_top))

    return band.convert("RGB"), geo
