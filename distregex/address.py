"""Quad-tree address grid generation."""

from __future__ import annotations

import numpy as np

from .errors import CapacityExceeded, InvalidDepth

# int64 holds every 18-digit decimal number.
MAX_DEPTH = 18
MAX_CELLS = 1 << 28


def check_capacity(depth: int, max_cells: int = MAX_CELLS) -> int:
    """Validate ``depth`` and return the canvas side length ``2**depth``."""

    if isinstance(depth, bool) or not isinstance(depth, (int, np.integer)):
        raise InvalidDepth(f"depth must be an integer, got {depth!r}", stage="parameters")
    depth = int(depth)
    if depth < 0:
        raise InvalidDepth(f"depth must be non-negative, got {depth}", stage="parameters")
    if depth > MAX_DEPTH:
        raise CapacityExceeded(
            f"depth {depth} needs more than {MAX_DEPTH} address digits",
            stage="parameters",
        )
    size = 1 << depth
    if size * size > max_cells:
        raise CapacityExceeded(
            f"a {size}x{size} canvas has {size * size} cells, above the ceiling of {max_cells}",
            stage="parameters",
        )
    return size


def build_address_matrix(depth: int, *, max_cells: int = MAX_CELLS) -> np.ndarray:
    """Build the ``2**depth`` square grid of quad-tree address codes.

    Each level splits every quadrant into four and appends one digit:
    1 top-left, 2 top-right, 3 bottom-left, 4 bottom-right. The coarsest
    level supplies the most significant digit. The levels are applied as
    whole-grid passes instead of recursive calls, so large depths do not
    recurse.
    """

    size = check_capacity(depth, max_cells)
    try:
        grid = np.zeros((size, size), dtype=np.int64)
        rows = np.arange(size, dtype=np.int64)[:, np.newaxis]
        cols = np.arange(size, dtype=np.int64)[np.newaxis, :]
    except MemoryError as exc:
        raise CapacityExceeded(f"could not allocate a {size}x{size} grid", stage="address") from exc

    block = size
    while block > 1:
        half = block // 2
        lower = (rows % block) >= half
        right = (cols % block) >= half
        grid *= 10
        grid += 1 + 2 * lower.astype(np.int64) + right.astype(np.int64)
        block = half

    grid.setflags(write=False)
    return grid


def format_address(address: int, depth: int) -> str:
    """Return the zero-padded ``depth``-digit text form of ``address``."""

    return str(int(address)).zfill(depth)


def address_digits(addresses: np.ndarray, depth: int) -> np.ndarray:
    """Split addresses into digits, most significant first.

    Returns an ``int32`` array of shape ``addresses.shape + (depth,)``.
    """

    values = np.asarray(addresses, dtype=np.int64)
    powers = np.power(np.int64(10), np.arange(depth - 1, -1, -1, dtype=np.int64))
    return ((values[..., np.newaxis] // powers) % 10).astype(np.int32)
