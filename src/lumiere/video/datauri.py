"""Image reference helpers for job submission."""

from __future__ import annotations

import base64
from pathlib import Path

from lumiere.common.errors import ImageReadError


def media_type_for(path: Path | str) -> str:
    """``image/png`` for ``.png`` files, ``image/jpeg`` for everything else."""
    return "image/png" if str(path).lower().endswith(".png") else "image/jpeg"


def to_data_uri(path: Path | str) -> str:
    """Read an image file and embed it as a base64 data URI."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise ImageReadError(f"Failed to read image file: {e}") from e
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{media_type_for(path)};base64,{encoded}"


def resolve_image_reference(reference: str | Path) -> str:
    """Pass URLs through unchanged and turn local paths into data URIs."""
    text = str(reference)
    if text.startswith("http"):
        return text
    return to_data_uri(reference)
