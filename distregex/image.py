"""Pixel assembly and image file output."""

from __future__ import annotations

import math
import os
import stat
import tempfile
from pathlib import Path
from typing import Optional, Union

import numpy as np
import PIL.Image

from .errors import ImageWriteFailure


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def to_image(pixels: np.ndarray) -> PIL.Image.Image:
    """Assemble pixels into a square RGB image, row-major.

    ``pixels`` is either a ``(size, size, 3)`` array or a flat sequence of
    RGB triples whose length is a perfect square; pixel ``i`` lands on row
    ``i // size`` and column ``i % size``.
    """

    array = np.asarray(pixels, dtype=np.uint8)
    if array.ndim == 2 and array.shape[1] == 3:
        size = math.isqrt(array.shape[0])
        if size * size != array.shape[0]:
            raise ValueError(f"{array.shape[0]} pixels do not form a square image")
        array = array.reshape(size, size, 3)
    if array.ndim != 3 or array.shape[2] != 3 or array.shape[0] != array.shape[1]:
        raise ValueError(f"expected square RGB pixels, got shape {array.shape}")
    return PIL.Image.fromarray(np.ascontiguousarray(array))


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_image(image: PIL.Image.Image, output_path: Union[str, Path], image_format: Optional[str] = None) -> Path:
    """Write ``image`` to ``output_path``, replacing any existing file.

    The image is saved to a temporary file beside the target and renamed into
    place, so a failed write leaves nothing behind. A new file gets the
    usual umask-derived mode, a replaced one keeps its mode.
    """

    path = Path(output_path).expanduser()
    ext = (image_format or path.suffix.lstrip(".") or "png").lower()
    pil_format = _pil_format_name(ext)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        with os.fdopen(fd, "wb") as handle:
            image.save(handle, format=pil_format)
        os.chmod(tmp_name, _target_mode(path))
        os.replace(tmp_name, path)
        tmp_name = None
    except (OSError, ValueError, KeyError) as exc:
        raise ImageWriteFailure(f"could not write {path}: {exc}", stage="write") from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
    return path.resolve()
