"""Selection of matching addresses and the nearest-mismatch distance field."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import tensorflow as tf

from .address import address_digits, format_address
from .errors import InvalidPattern

DEFAULT_CHUNK_SIZE = 4096
DEFAULT_BLOCK_SIZE = 4096


@dataclass(frozen=True, eq=False)
class SelectedSet:
    """Read-only snapshot of the addresses whose text matched the pattern."""

    addresses: np.ndarray
    depth: int

    def __post_init__(self) -> None:
        addresses = np.unique(np.asarray(self.addresses, dtype=np.int64).ravel())
        addresses.setflags(write=False)
        object.__setattr__(self, "addresses", addresses)

    def __len__(self) -> int:
        return int(self.addresses.size)

    def __contains__(self, address: object) -> bool:
        if isinstance(address, bool) or not isinstance(address, (int, np.integer)):
            return False
        index = int(np.searchsorted(self.addresses, address))
        return index < self.addresses.size and int(self.addresses[index]) == int(address)


def compile_pattern(pattern: Union[str, "re.Pattern[str]"]) -> "re.Pattern[str]":
    """Compile ``pattern``, raising :class:`InvalidPattern` when it is malformed."""

    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str):
        raise InvalidPattern(f"pattern must be a string, got {type(pattern).__name__}", stage="pattern")
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise InvalidPattern(f"invalid pattern {pattern!r}: {exc}", stage="pattern") from exc


def select_addresses(grid: np.ndarray, pattern: Union[str, "re.Pattern[str]"], depth: int) -> SelectedSet:
    """Collect every address whose text form contains a match for ``pattern``."""

    compiled = compile_pattern(pattern)
    search = compiled.search
    matched = [
        address
        for address in np.asarray(grid, dtype=np.int64).ravel().tolist()
        if search(format_address(address, depth)) is not None
    ]
    return SelectedSet(addresses=np.array(matched, dtype=np.int64), depth=depth)


def mismatch_count(query: int, candidate: int) -> int:
    """Count the digit positions where ``query`` and ``candidate`` differ.

    Digits are compared from least significant upward and the walk ends once
    the query runs out of digits, so both operands must have the same length.
    """

    query = int(query)
    candidate = int(candidate)
    assert len(str(query)) == len(str(candidate)), (query, candidate)
    distance = 0
    while query != 0:
        if query % 10 != candidate % 10:
            distance += 1
        query //= 10
        candidate //= 10
    return distance


def nearest_distance(address: int, selected: SelectedSet) -> int:
    """Smallest mismatch count between ``address`` and the selected set."""

    best = selected.depth
    for candidate in selected.addresses.tolist():
        distance = mismatch_count(address, candidate)
        if distance == 0:
            return 0
        if distance < best:
            best = distance
    return best


def _one_hot(addresses: np.ndarray, depth: int) -> np.ndarray:
    digits = address_digits(np.asarray(addresses, dtype=np.int64).ravel(), depth)
    encoded = np.eye(4, dtype=np.float32)[digits - 1]
    return encoded.reshape(digits.shape[0], depth * 4)


@tf.function(
    input_signature=[
        tf.TensorSpec(shape=[None, None], dtype=tf.float32),
        tf.TensorSpec(shape=[None, None], dtype=tf.float32),
        tf.TensorSpec(shape=[], dtype=tf.int32),
    ]
)
def _block_mismatch(queries: tf.Tensor, candidates: tf.Tensor, depth: tf.Tensor) -> tf.Tensor:
    """Minimum mismatch count of each query row against a block of candidates."""

    agreements = tf.matmul(queries, candidates, transpose_b=True)
    best = tf.cast(tf.round(tf.reduce_max(agreements, axis=1)), tf.int32)
    return depth - best


def compute_distance_field(
    grid: np.ndarray,
    selected: SelectedSet,
    depth: int,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    block_size: int = DEFAULT_BLOCK_SIZE,
    device: Optional[str] = None,
) -> np.ndarray:
    """Compute the per-cell distance to the nearest selected address.

    The result has the shape of ``grid`` and values in ``[0, depth]``. An
    empty selection yields ``depth`` everywhere.
    """

    if chunk_size <= 0 or block_size <= 0:
        raise ValueError("chunk_size and block_size must be positive")
    if selected.depth != depth:
        raise ValueError(f"selected set was built for depth {selected.depth}, not {depth}")

    grid = np.asarray(grid, dtype=np.int64)
    flat = grid.ravel()
    distances = np.full(flat.shape, depth, dtype=np.int32)
    # A depth of zero already fills with zeros.
    if len(selected) == 0 or depth == 0 or flat.size == 0:
        return distances.reshape(grid.shape)

    candidates = selected.addresses
    depth_tensor = tf.constant(depth, dtype=tf.int32)

    with tf.device(device if device is not None else "/CPU:0"):
        for start in range(0, flat.size, chunk_size):
            stop = min(start + chunk_size, flat.size)
            queries = tf.convert_to_tensor(_one_hot(flat[start:stop], depth))
            best = None
            for offset in range(0, candidates.size, block_size):
                # Peak one-hot memory is bounded by block_size.
                block = tf.convert_to_tensor(_one_hot(candidates[offset:offset + block_size], depth))
                current = _block_mismatch(queries, block, depth_tensor)
                best = current if best is None else tf.minimum(best, current)
                if not bool(tf.reduce_any(best > 0)):
                    break
            distances[start:stop] = best.numpy()

    return distances.reshape(grid.shape)


def normalize_distances(distances: np.ndarray, depth: int) -> np.ndarray:
    """Scale distances into ``[0, 1]``. A depth of zero normalizes to zero."""

    distances = np.asarray(distances)
    if depth == 0:
        return np.zeros(distances.shape, dtype=np.float64)
    return distances.astype(np.float64) / np.float64(depth)
