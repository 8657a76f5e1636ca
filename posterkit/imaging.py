"""
Raster helpers for poster generation: loading, cover/contain fitting,
circular photo masks and logo normalization.
"""

import io
import logging
from pathlib import Path

import requests
from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from config.settings import FONTS_DIR
from posterkit.errors import ImageReadError, MissingAssetError, UnsupportedFormatError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {"JPEG", "PNG"}
REMOTE_TIMEOUT = 30


def get_font(size: int, bold: bool = True) -> ImageFont.FreeTypeFont:
    """Load a bold sans font at the given size. Falls back to system fonts."""
    font_names = (
        ["Arial-Bold.ttf", "Inter-Bold.ttf", "DejaVuSans-Bold.ttf"]
        if bold
        else ["Arial.ttf", "Inter-Regular.ttf", "DejaVuSans.ttf"]
    )
    for name in font_names:
        font_path = FONTS_DIR / name
        if font_path.exists():
            return ImageFont.truetype(str(font_path), size)

    # System fonts
    system_paths = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/System/Library/Fonts/Helvetica.ttc",
        "C:\\Windows\\Fonts\\arial.ttf",
    ]
    if bold:
        system_paths = [
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
            "C:\\Windows\\Fonts\\arialbd.ttf",
        ] + system_paths

    for path in system_paths:
        if Path(path).exists():
            return ImageFont.truetype(path, size)

    return ImageFont.load_default(size=size)


def is_remote(source) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


def _read_remote(url: str, asset: str) -> bytes:
    try:
        resp = requests.get(url, timeout=REMOTE_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise MissingAssetError(asset, url, str(e)) from e
    return resp.content


def load_raster(source, asset: str = "image") -> Image.Image:
    """Open a JPEG/PNG from a path or http(s) URL and decode it fully.

    Raises MissingAssetError when the file is absent, ImageReadError when it
    cannot be decoded and UnsupportedFormatError for other formats.
    """
    if is_remote(source):
        stream = io.BytesIO(_read_remote(source, asset))
    else:
        path = Path(source)
        if not path.is_file():
            raise MissingAssetError(asset, path)
        try:
            stream = io.BytesIO(path.read_bytes())
        except OSError as e:
            raise MissingAssetError(asset, path, str(e)) from e

    try:
        img = Image.open(stream)
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageReadError(asset, source, str(e)) from e

    if img.format not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(asset, source, img.format)
    return img


def fit_image_cover(img: Image.Image, width: int, height: int) -> Image.Image:
    """Resize + crop image to fully cover a target rectangle."""
    src_w, src_h = img.size
    if src_w <= 0 or src_h <= 0:
        return img.resize((width, height), Image.LANCZOS)

    scale = max(width / src_w, height / src_h)
    new_w = max(width, round(src_w * scale))
    new_h = max(height, round(src_h * scale))
    resized = img.resize((new_w, new_h), Image.LANCZOS)

    left = (new_w - width) // 2
    top = (new_h - height) // 2
    return resized.crop((left, top, left + width, top + height))


def circle_mask(diameter: int) -> Image.Image:
    mask = Image.new("L", (diameter, diameter), 0)
    ImageDraw.Draw(mask).ellipse([0, 0, diameter - 1, diameter - 1], fill=255)
    return mask


def crop_circular(source: Image.Image, diameter: int) -> Image.Image:
    """Cover-fit a photo to diameter x diameter and mask everything outside the disk."""
    if diameter <= 0:
        raise ValueError(f"diameter must be positive, got {diameter}")

    pic = ImageOps.exif_transpose(source).convert("RGBA")
    pic = fit_image_cover(pic, diameter, diameter)

    circle = Image.new("RGBA", (diameter, diameter), (0, 0, 0, 0))
    circle.paste(pic, (0, 0), circle_mask(diameter))
    return circle


def normalize_logo(logo: Image.Image, square_size: int, background: tuple) -> Image.Image:
    """Fit a logo inside an opaque square without cropping it.

    Transparency is flattened against ``background`` so the result can be
    pasted directly without alpha blending.
    """
    if square_size <= 0:
        raise ValueError(f"square_size must be positive, got {square_size}")

    rgba = logo.convert("RGBA")
    fitted = ImageOps.contain(rgba, (square_size, square_size), Image.LANCZOS)

    square = Image.new("RGB", (square_size, square_size), tuple(background[:3]))
    x = (square_size - fitted.width) // 2
    y = (square_size - fitted.height) // 2
    square.paste(fitted, (x, y), fitted)
    return square


def draw_horizontal_gradient(width: int, height: int, color_left: tuple, color_right: tuple) -> Image.Image:
    """Return an RGB image filled with a left-to-right gradient."""
    img = Image.new("RGB", (max(1, width), max(1, height)))
    draw = ImageDraw.Draw(img)
    span = max(1, width - 1)
    for x in range(width):
        ratio = x / span
        r = int(color_left[0] + (color_right[0] - color_left[0]) * ratio)
        g = int(color_left[1] + (color_right[1] - color_left[1]) * ratio)
        b = int(color_left[2] + (color_right[2] - color_left[2]) * ratio)
        draw.line([(x, 0), (x, height)], fill=(r, g, b))
    return img
