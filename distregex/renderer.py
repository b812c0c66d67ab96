"""Rendering pipeline for regex distance images."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import numpy as np
import PIL.Image
import tensorflow as tf

from .address import MAX_CELLS, build_address_matrix, check_capacity
from .distance import (
    DEFAULT_BLOCK_SIZE,
    DEFAULT_CHUNK_SIZE,
    SelectedSet,
    compile_pattern,
    compute_distance_field,
    select_addresses,
)
from .errors import CapacityExceeded, DistRegexError
from .gradient import BLACK, WHITE, RGB, Gradient, colorize
from .image import to_image, write_image


@dataclass(frozen=True)
class RenderParameters:
    """Parameters that describe a single regex distance render."""

    depth: int
    pattern: str
    gradient_start: RGB = BLACK
    gradient_end: RGB = WHITE
    max_cells: int = MAX_CELLS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    block_size: int = DEFAULT_BLOCK_SIZE

    @property
    def gradient(self) -> Gradient:
        return Gradient(self.gradient_start, self.gradient_end)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "RenderParameters":
        """Build parameters from a mapping, defaulting every absent option."""

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(f"unrecognized options: {', '.join(unknown)}")
        missing = [name for name in ("depth", "pattern") if name not in options]
        if missing:
            raise ValueError(f"missing required options: {', '.join(missing)}")
        values = dict(options)
        for name in ("gradient_start", "gradient_end"):
            if name in values and values[name] is not None:
                values[name] = tuple(values[name])
            else:
                values.pop(name, None)
        return cls(**values)


@dataclass(frozen=True)
class RenderMetadata:
    """Sizes and per-stage timings (seconds) of a finished render."""

    depth: int
    size: int
    selected_count: int
    timings: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class RenderResult:
    """Container for the arrays produced by a render."""

    addresses: np.ndarray
    selected: SelectedSet
    distances: np.ndarray
    pixels: np.ndarray
    metadata: RenderMetadata

    def image(self) -> PIL.Image.Image:
        return to_image(self.pixels)


def render(params: RenderParameters, *, device: Optional[str] = None) -> RenderResult:
    """Render the distance image described by ``params``.

    The pattern and depth are validated before any grid is allocated. Every
    failure is raised as a :class:`~distregex.errors.DistRegexError` whose
    ``stage`` names the step that failed.
    """

    timings: dict[str, float] = {}
    check_capacity(params.depth, params.max_cells)
    try:
        gradient = params.gradient
    except ValueError as exc:
        raise DistRegexError(str(exc), stage="parameters") from exc
    for name in ("chunk_size", "block_size"):
        value = getattr(params, name)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise DistRegexError(f"{name} must be a positive integer, got {value!r}", stage="parameters")
    pattern = compile_pattern(params.pattern)
    depth = int(params.depth)

    started = time.perf_counter()
    addresses = build_address_matrix(depth, max_cells=params.max_cells)
    timings["address"] = time.perf_counter() - started

    started = time.perf_counter()
    selected = select_addresses(addresses, pattern, depth)
    timings["selection"] = time.perf_counter() - started

    started = time.perf_counter()
    try:
        distances = compute_distance_field(
            addresses,
            selected,
            depth,
            chunk_size=params.chunk_size,
            block_size=params.block_size,
            device=device,
        )
    except (MemoryError, tf.errors.ResourceExhaustedError) as exc:
        raise CapacityExceeded(f"out of memory computing distances: {exc}", stage="distance") from exc
    timings["distance"] = time.perf_counter() - started

    started = time.perf_counter()
    try:
        pixels = colorize(distances, depth, gradient)
    except MemoryError as exc:
        raise CapacityExceeded("out of memory assembling pixels", stage="colorize") from exc
    timings["colorize"] = time.perf_counter() - started

    metadata = RenderMetadata(
        depth=depth,
        size=int(addresses.shape[0]),
        selected_count=len(selected),
        timings=timings,
    )
    return RenderResult(
        addresses=addresses,
        selected=selected,
        distances=distances,
        pixels=pixels,
        metadata=metadata,
    )


def render_to_file(
    params: RenderParameters,
    output_path: Union[str, Path],
    *,
    image_format: Optional[str] = None,
    device: Optional[str] = None,
) -> tuple[RenderResult, Path]:
    """Render ``params`` and write the image. Nothing is written on failure."""

    result = render(params, device=device)
    started = time.perf_counter()
    path = write_image(result.image(), output_path, image_format)
    timings = {**result.metadata.timings, "write": time.perf_counter() - started}
    result = replace(result, metadata=replace(result.metadata, timings=timings))
    return result, path
