"""Turn a product image file into the in-memory payload every stage receives."""

from __future__ import annotations

import mimetypes
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from ..types import ImagePayload
from .files import read_binary

MAX_REFERENCE_DIM = 4096


def load_image(path: str | Path) -> ImagePayload:
    """Read ``path`` and normalise it into a provider-safe ``ImagePayload``."""
    raw_bytes = read_binary(path)
    return prepare_image(raw_bytes, fallback_mime=_guess_mime(path))


def prepare_image(raw_bytes: bytes, fallback_mime: str = "image/png") -> ImagePayload:
    """Convert large or exotic images into PNG/JPEG.

    Bytes Pillow cannot decode are passed through unchanged with
    ``fallback_mime``; the provider decides whether it accepts them.
    """
    buffer = BytesIO(raw_bytes)
    try:
        with Image.open(buffer) as image:
            if getattr(image, "n_frames", 1) > 1:
                image.seek(0)

            image = ImageOps.exif_transpose(image)
            if image.mode not in {"RGB", "RGBA"}:
                image = image.convert("RGBA" if "A" in image.getbands() else "RGB")

            if max(image.size) > MAX_REFERENCE_DIM:
                image.thumbnail((MAX_REFERENCE_DIM, MAX_REFERENCE_DIM), Image.LANCZOS)

            has_alpha = "A" in image.getbands()
            format_ = "PNG" if has_alpha else "JPEG"
            save_kwargs = {"format": format_, "optimize": True}
            if format_ == "JPEG":
                save_kwargs["quality"] = 90

            output = BytesIO()
            image.save(output, **save_kwargs)
            mime = "image/png" if has_alpha else "image/jpeg"
            return ImagePayload.from_bytes(output.getvalue(), mime)
    except (UnidentifiedImageError, OSError):
        pass
    return ImagePayload.from_bytes(raw_bytes, fallback_mime)


def _guess_mime(path: str | Path) -> str:
    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or "image/png"


__all__ = ["MAX_REFERENCE_DIM", "load_image", "prepare_image"]
