"""Public API for regex distance rendering utilities."""

from .address import MAX_CELLS, MAX_DEPTH, address_digits, build_address_matrix, check_capacity, format_address
from .distance import (
    SelectedSet,
    compile_pattern,
    compute_distance_field,
    mismatch_count,
    nearest_distance,
    normalize_distances,
    select_addresses,
)
from .errors import CapacityExceeded, DistRegexError, ImageWriteFailure, InvalidDepth, InvalidPattern
from .gradient import Gradient, build_palette, colorize, parse_color
from .image import to_image, write_image
from .renderer import RenderMetadata, RenderParameters, RenderResult, render, render_to_file

__all__ = [
    "CapacityExceeded",
    "DistRegexError",
    "Gradient",
    "ImageWriteFailure",
    "InvalidDepth",
    "InvalidPattern",
    "MAX_CELLS",
    "MAX_DEPTH",
    "RenderMetadata",
    "RenderParameters",
    "RenderResult",
    "SelectedSet",
    "address_digits",
    "build_address_matrix",
    "build_palette",
    "check_capacity",
    "colorize",
    "compile_pattern",
    "compute_distance_field",
    "format_address",
    "mismatch_count",
    "nearest_distance",
    "normalize_distances",
    "parse_color",
    "render",
    "render_to_file",
    "select_addresses",
    "to_image",
    "write_image",
]
