"""
Poster assembler: stacks the resized template above a personalized footer
(circular photo, contact text, separator, logo) and writes the result.

Each call is independent: geometry is derived from the template being
processed and nothing is cached between posters, so the same inputs always
produce the same file.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from PIL import Image

from config import settings
from config.layout import FOOTER_BACKGROUND, LAYOUT, LOGO_BACKGROUND, SEPARATOR_COLOR
from posterkit.compositor import compose_footer, photo_diameter, text_column_width
from posterkit.errors import MissingAssetError, PosterError, WriteError
from posterkit.imaging import crop_circular, is_remote, load_raster, normalize_logo
from posterkit.members import Member
from posterkit.text_fit import build_footer_lines, fit_text, preferred_font_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PosterConfig:
    logo_path: Path
    upload_root: Path
    brand: str = "WealthPlus"
    max_template_width: int = 2400
    footer_background: tuple = FOOTER_BACKGROUND
    separator_color: tuple = SEPARATOR_COLOR
    logo_background: tuple = LOGO_BACKGROUND
    layout: dict = field(default_factory=lambda: dict(LAYOUT))
    jpeg_quality: int = 95

    @classmethod
    def from_settings(cls, **overrides) -> PosterConfig:
        values = dict(
            logo_path=Path(settings.LOGO_PATH),
            upload_root=Path(settings.UPLOADS_DIR),
            brand=settings.BRAND_NAME,
            max_template_width=settings.MAX_TEMPLATE_WIDTH,
        )
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class PosterRequest:
    template_path: Path
    person: Member
    output_path: Path
    logo_path: Path | None = None


@dataclass(frozen=True)
class PosterOutcome:
    ok: bool
    path: Path | None = None
    kind: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        data = {"ok": self.ok}
        if self.ok:
            data["path"] = str(self.path)
        else:
            data.update({"kind": self.kind, "error": self.error})
        return data


def resolve_photo_path(photo: str | None, upload_root: Path) -> str | Path | None:
    """Map a stored photo reference to something readable.

    - http(s) URLs are returned unchanged (fetched later)
    - ``/uploads/x.jpg`` (web path) and ``uploads/x.jpg`` resolve under upload_root
    - bare file names resolve under upload_root
    - existing absolute paths are kept
    """
    if not photo:
        return None
    raw = str(photo).strip()
    if is_remote(raw):
        return raw

    as_path = Path(raw)
    if as_path.is_absolute() and as_path.exists():
        return as_path

    parts = [p for p in PurePosixPath(raw.replace("\\", "/")).parts if p not in ("/", "", ".")]
    if parts and parts[0] == upload_root.name:
        parts = parts[1:]
    if not parts or ".." in parts:
        return upload_root / Path(raw).name
    return upload_root.joinpath(*parts)


def _resize_template(template: Image.Image, max_width: int) -> Image.Image:
    """Preserve aspect ratio; downscale only when wider than max_width."""
    width, height = template.size
    if width <= max_width:
        return template.copy()
    new_h = max(1, round(height * max_width / width))
    return template.resize((max_width, new_h), Image.LANCZOS)


def _flatten(img: Image.Image, background: tuple = (255, 255, 255)) -> Image.Image:
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        flat = Image.new("RGB", rgba.size, background)
        flat.paste(rgba, mask=rgba.split()[3])
        return flat
    return img.convert("RGB")


class PosterAssembler:
    def __init__(self, config: PosterConfig):
        self.config = config

    def _check_assets(self, request: PosterRequest) -> tuple[Path, Path, str | Path]:
        template_path = Path(request.template_path)
        logo_path = Path(request.logo_path or self.config.logo_path)
        photo = resolve_photo_path(request.person.photo, self.config.upload_root)

        if not template_path.is_file():
            raise MissingAssetError("template", template_path)
        if not logo_path.is_file():
            raise MissingAssetError("logo", logo_path)
        if photo is None:
            raise MissingAssetError("photo", None, f"member {request.person.name!r} has no photo")
        if not is_remote(photo) and not Path(photo).is_file():
            raise MissingAssetError("photo", photo, f"member photo {request.person.photo!r}")
        return template_path, logo_path, photo

    def render(self, request: PosterRequest) -> Image.Image:
        """Build the final poster in memory (RGB, no alpha)."""
        template_path, logo_path, photo_source = self._check_assets(request)
        cfg = self.config

        template = _flatten(load_raster(template_path, "template"))
        template = _resize_template(template, cfg.max_template_width)
        width = template.width

        photo_size = photo_diameter(width, cfg.layout)
        logo_size = photo_size
        column = text_column_width(width, photo_size, logo_size, cfg.layout)

        photo = crop_circular(load_raster(photo_source, "photo"), photo_size)
        logo = normalize_logo(load_raster(logo_path, "logo"), logo_size, cfg.logo_background)
        lines = build_footer_lines(request.person, cfg.brand)
        text = fit_text(lines, column, preferred_font_size(column))

        footer, geo = compose_footer(
            photo,
            text.image,
            logo,
            width,
            background=cfg.footer_background,
            separator_color=cfg.separator_color,
            layout=cfg.layout,
        )
        logger.debug(
            f"Layout for {request.person.name}: width={width} footer={geo.height} "
            f"font={text.font_size}px column={column}"
        )

        poster = Image.new("RGB", (width, template.height + footer.height), (255, 255, 255))
        poster.paste(template, (0, 0))
        poster.paste(footer, (0, template.height))
        return poster

    def _write(self, poster: Image.Image, output_path: Path) -> Path:
        """Write via a sibling temp file + rename so no partial poster is ever visible."""
        fmt = "PNG" if output_path.suffix.lower() == ".png" else "JPEG"
        save_kwargs = {"optimize": True} if fmt == "PNG" else {"quality": self.config.jpeg_quality}
        tmp_name = None
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=output_path.parent,
                prefix=f".{output_path.stem}.",
                suffix=output_path.suffix,
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                poster.save(tmp, fmt, **save_kwargs)
            os.replace(tmp_name, output_path)
        except OSError as e:
            if tmp_name:
                Path(tmp_name).unlink(missing_ok=True)
            raise WriteError(output_path, str(e)) from e
        return output_path

    def assemble(self, request: PosterRequest) -> Path:
        output_path = Path(request.output_path)
        poster = self.render(request)
        path = self._write(poster, output_path)
        logger.info(f"Poster written for {request.person.name}: {path.name}")
        return path


def compose_poster(request: PosterRequest, config: PosterConfig | None = None) -> PosterOutcome:
    """Compose one poster and report the outcome instead of raising."""
    assembler = PosterAssembler(config or PosterConfig.from_settings())
    try:
        path = assembler.assemble(request)
    except PosterError as e:
        logger.error(f"Poster failed for {request.person.name} [{e.kind}]: {e}")
        return PosterOutcome(ok=False, kind=e.kind, error=str(e))
    return PosterOutcome(ok=True, path=path)
