from __future__ import annotations

import io
import logging
import re
import time
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

ALLOWED_MIMETYPES = {"image/jpeg", "image/jpg", "image/png"}
ALLOWED_FORMATS = {"JPEG", "PNG"}
MAX_PHOTO_EDGE = 1024


class UploadError(ValueError):
    pass


def _read_image_upload(file: FileStorage | None, max_bytes: int, label: str) -> tuple[bytes, Image.Image]:
    if file is None or not file.filename:
        raise UploadError(f"{label} is required")
    if file.mimetype and file.mimetype.lower() not in ALLOWED_MIMETYPES:
        raise UploadError("Only JPG, JPEG and PNG files are allowed")

    data = file.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise UploadError(f"{label} exceeds {max_bytes // (1024 * 1024)} MB")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise UploadError(f"{label} is not a valid image") from e
    if img.format not in ALLOWED_FORMATS:
        raise UploadError("Only JPG, JPEG and PNG files are allowed")
    return data, img


def save_member_photo(file: FileStorage | None, uploads_dir: Path, name: str, max_bytes: int) -> str:
    """Validate, normalize (orientation, size, JPEG) and store a member photo.

    Returns the web path, e.g. ``/uploads/jane_doe_1700000000000000000.jpeg``.
    """
    _, img = _read_image_upload(file, max_bytes, "Photo")

    img = ImageOps.exif_transpose(img)
    if img.mode in ("RGBA", "LA", "P"):
        rgba = img.convert("RGBA")
        flat = Image.new("RGB", rgba.size, (255, 255, 255))
        flat.paste(rgba, mask=rgba.split()[3])
        img = flat
    else:
        img = img.convert("RGB")
    img.thumbnail((MAX_PHOTO_EDGE, MAX_PHOTO_EDGE), Image.LANCZOS)

    safe = re.sub(r"[^a-z0-9]+", "_", str(name or "").lower()).strip("_") or "member"
    filename = f"{safe[:40]}_{time.time_ns()}.jpeg"
    uploads_dir.mkdir(parents=True, exist_ok=True)
    img.save(uploads_dir / filename, "JPEG", quality=90)
    logger.info(f"Stored member photo {filename}")
    return f"/uploads/{filename}"


def save_template(file: FileStorage | None, uploads_dir: Path, max_bytes: int) -> Path:
    """Store an uploaded poster template under a unique name. Caller deletes it."""
    data, img = _read_image_upload(file, max_bytes, "Template image")
    suffix = ".png" if img.format == "PNG" else ".jpg"
    stem = Path(secure_filename(file.filename or "")).stem or "template"
    path = uploads_dir / f"template_{time.time_ns()}_{stem[:40]}{suffix}"
    uploads_dir.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def delete_upload(photo_url: str | None, uploads_dir: Path) -> bool:
    """Delete a stored upload referenced by its web path. Returns True if removed."""
    if not photo_url:
        return False
    name = Path(str(photo_url)).name
    if not name:
        return False
    path = uploads_dir / name
    try:
        if path.is_file():
            path.unlink()
            return True
    except OSError as e:
        logger.warning(f"Could not delete upload {path}: {e}")
    return False
