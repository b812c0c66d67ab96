import os
import sys
import time
import warnings
from argparse import ArgumentParser, ArgumentTypeError, RawDescriptionHelpFormatter
from datetime import timedelta
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

from distregex import DistRegexError, RenderParameters, parse_color, render_to_file
from distregex.address import MAX_CELLS
from distregex.distance import DEFAULT_BLOCK_SIZE, DEFAULT_CHUNK_SIZE

log("TensorFlow version: %s" % tf.__version__)

# Place the distance kernel on the first GPU when there is one; CPU otherwise.
gpus = tf.config.list_physical_devices('GPU')
if gpus:
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
        DEVICE = '/GPU:0'
        log("GPU found, using %s" % gpus[0].name)
    except RuntimeError as e:
        log(e)
        DEVICE = '/CPU:0'
else:
    DEVICE = '/CPU:0'
    log("No GPU found, using CPU")

DESCRIPTION = """\
Render a 2^depth x 2^depth image where every pixel is colored by how many
quad-tree address digits separate it from the nearest address matching a
regular expression.

Addresses use one digit per subdivision level: 1 top-left, 2 top-right,
3 bottom-left, 4 bottom-right. A depth of 10 gives a 1024x1024 image.

Scope: https://ssodelta.wordpress.com/2015/01/26/gradient-images-from-regular-expression
"""


def _color_arg(value):
    try:
        return parse_color(value)
    except ValueError as exc:
        raise ArgumentTypeError(str(exc)) from exc


def _positive_int(value):
    try:
        number = int(value)
    except ValueError as exc:
        raise ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number <= 0:
        raise ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def build_parser():
    parser = ArgumentParser(description=DESCRIPTION, formatter_class=RawDescriptionHelpFormatter)

    parser.add_argument('output', type=str,
                        help='path of the image to write; overwritten when it exists')

    parser.add_argument('depth', type=int,
                        help='recursion depth of the canvas generator, the image side is 2^depth')

    parser.add_argument('pattern', type=str,
                        help='regular expression searched for in each zero-padded address')

    parser.add_argument('--start', type=_color_arg,
                        dest='gradient_start', help='color of matching addresses (distance 0): #rrggbb, r,g,b or a color name',
                        metavar='COLOR', default=(0, 0, 0))

    parser.add_argument('--end', type=_color_arg,
                        dest='gradient_end', help='color of addresses at the maximal distance',
                        metavar='COLOR', default=(255, 255, 255))

    parser.add_argument('--format', type=str,
                        dest='format', help='image file format. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--chunk-size', type=_positive_int,
                        dest='chunk_size', help='pixels per distance batch',
                        metavar='CHUNK_SIZE', default=DEFAULT_CHUNK_SIZE)

    parser.add_argument('--block-size', type=_positive_int,
                        dest='block_size', help='matching addresses compared per batch',
                        metavar='BLOCK_SIZE', default=DEFAULT_BLOCK_SIZE)

    parser.add_argument('--max-cells', type=_positive_int,
                        dest='max_cells', help='refuse canvases with more pixels than this',
                        metavar='MAX_CELLS', default=MAX_CELLS)

    parser.add_argument('--device', type=str, default=None,
                        help='TensorFlow device for the distance kernel, e.g. "/CPU:0". Defaults to the first GPU if present.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_output_path(opt, parser):
    image_format = (opt.format or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"

    output_arg = opt.output
    if str(output_arg).endswith(tuple(filter(None, {os.sep, os.altsep}))) or str(output_arg).endswith("/"):
        parser.error("output must be a file path.")
    output_path = Path(output_arg).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error("output must point to a file, not a directory.")

    suffix = output_path.suffix
    expected_suffix = f".{image_format}"
    if suffix:
        if suffix.lower() != expected_suffix.lower():
            parser.error(f"output extension {suffix} does not match --format {image_format}.")
    else:
        output_path = output_path.with_suffix(expected_suffix)
    return output_path.resolve(), image_format


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    output_path, image_format = resolve_output_path(opt, parser)

    params = RenderParameters(
        depth=opt.depth,
        pattern=opt.pattern,
        gradient_start=opt.gradient_start,
        gradient_end=opt.gradient_end,
        max_cells=opt.max_cells,
        chunk_size=opt.chunk_size,
        block_size=opt.block_size,
    )
    device = opt.device or DEVICE

    log("Rendering depth %d for pattern %r on %s" % (opt.depth, opt.pattern, device))
    started = time.perf_counter()
    try:
        result, written = render_to_file(params, output_path, image_format=image_format, device=device)
    except DistRegexError as exc:
        print(f"error ({exc.stage}): {exc}", file=sys.stderr)
        return 1

    log("%d of %d addresses match" % (result.metadata.selected_count, result.metadata.size ** 2))
    for stage, seconds in result.metadata.timings.items():
        log("  %-10s %.3fs" % (stage, seconds))
    log("Wrote %s" % written)
    print(f"Elapsed time: {timedelta(seconds=time.perf_counter() - started)}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
