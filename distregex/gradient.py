"""Two-color gradient mapping from normalized distance to RGB."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from matplotlib import colors as mcolors

from .distance import normalize_distances

RGB = tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)


def _validate_rgb(name: str, value) -> RGB:
    try:
        channels = tuple(value)
    except TypeError as exc:
        raise ValueError(f"{name} must be an (r, g, b) triple, got {value!r}") from exc
    if len(channels) != 3:
        raise ValueError(f"{name} must have exactly three channels, got {len(channels)}")
    for channel in channels:
        if isinstance(channel, bool) or not isinstance(channel, (int, np.integer)):
            raise ValueError(f"{name} channels must be integers, got {channel!r}")
        if not 0 <= int(channel) <= 255:
            raise ValueError(f"{name} channels must lie in 0..255, got {int(channel)}")
    return tuple(int(channel) for channel in channels)


@dataclass(frozen=True)
class Gradient:
    """Endpoints of the color ramp: ``start`` at distance 0, ``end`` at distance 1."""

    start: RGB = BLACK
    end: RGB = WHITE

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _validate_rgb("start", self.start))
        object.__setattr__(self, "end", _validate_rgb("end", self.end))

    def color_at(self, norm: float) -> RGB:
        """Color for a single normalized distance in ``[0, 1]``."""

        return tuple(int(v) for v in _interpolate(np.array([norm], dtype=np.float64), self)[0])


def parse_color(spec: str) -> RGB:
    """Parse ``#rrggbb``, ``rrggbb``, ``r,g,b`` or a matplotlib color name."""

    text = str(spec).strip()
    if not text:
        raise ValueError("empty color")
    if "," in text:
        parts = [part.strip() for part in text.split(",")]
        try:
            values = tuple(int(part, 10) for part in parts)
        except ValueError as exc:
            raise ValueError(f"invalid color triple {spec!r}") from exc
        return _validate_rgb("color", values)
    if len(text) == 6 and all(ch in "0123456789abcdefABCDEF" for ch in text):
        text = "#" + text
    try:
        rgb = mcolors.to_rgb(text)
    except ValueError as exc:
        raise ValueError(f"unknown color {spec!r}") from exc
    return tuple(int(round(channel * 255)) for channel in rgb)


def _interpolate(norm: np.ndarray, gradient: Gradient) -> np.ndarray:
    start = np.asarray(gradient.start, dtype=np.float64)
    end = np.asarray(gradient.end, dtype=np.float64)
    low = np.minimum(start, end)
    span = np.abs(end - start)
    norm = np.asarray(norm, dtype=np.float64)[..., np.newaxis]
    # Per channel, so a descending channel still lands on ``end`` at 1.
    effective = np.where(end >= start, norm, 1.0 - norm)
    values = low + effective * span
    return np.clip(np.trunc(values), 0, 255).astype(np.uint8)


def build_palette(depth: int, gradient: Gradient) -> np.ndarray:
    """Return the ``(depth + 1, 3)`` colors for every possible distance."""

    levels = normalize_distances(np.arange(depth + 1), depth)
    return _interpolate(levels, gradient)


def colorize(distances: np.ndarray, depth: int, gradient: Gradient) -> np.ndarray:
    """Map a distance grid to a ``uint8`` RGB array of the same layout."""

    distances = np.asarray(distances)
    if distances.size and (distances.min() < 0 or distances.max() > depth):
        raise ValueError(f"distances must lie in [0, {depth}]")
    palette = build_palette(depth, gradient)
    return palette[distances.astype(np.intp)]
