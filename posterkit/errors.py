"""
Poster pipeline errors.

Every error carries a stable ``kind`` string so callers (batch runner, HTTP
routes) can report failures per member without matching on class names.
"""

from __future__ import annotations

from pathlib import Path


class PosterError(Exception):
    kind = "poster_error"


class MissingAssetError(PosterError):
    """A template, logo or member photo is absent or unreadable."""

    kind = "missing_asset"
    reason = "not found"

    def __init__(self, asset: str, path: str | Path | None, detail: str | None = None):
        self.asset = asset
        self.path = str(path) if path is not None else None
        message = f"{asset} {self.reason}: {self.path}" if self.path else f"{asset} not provided"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ImageReadError(MissingAssetError):
    """The file exists but cannot be decoded as an image."""

    reason = "is not a readable image"


class UnsupportedFormatError(PosterError):
    kind = "unsupported_format"

    def __init__(self, asset: str, path: str | Path | None, image_format: str | None):
        self.asset = asset
        self.path = str(path) if path is not None else None
        self.image_format = image_format
        super().__init__(f"{asset} has unsupported format {image_format or 'unknown'}: {self.path}")


class WriteError(PosterError):
    kind = "write_error"

    def __init__(self, path: str | Path, detail: str):
        self.path = str(path)
        super().__init__(f"could not write poster to {self.path}: {detail}")
