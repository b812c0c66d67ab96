import numpy as np
import PIL.Image
import pytest

import distregex.renderer as renderer
from distregex import (
    CapacityExceeded,
    DistRegexError,
    InvalidPattern,
    RenderParameters,
    render,
    render_to_file,
)


def test_depth_one_scenario():
    result = render(RenderParameters(depth=1, pattern="1"))
    assert result.metadata.size == 2
    assert result.metadata.selected_count == 1
    np.testing.assert_array_equal(result.distances, [[0, 1], [1, 1]])
    assert result.pixels[0, 0].tolist() == [0, 0, 0]
    assert result.pixels[0, 1].tolist() == [255, 255, 255]
    assert result.pixels[1, 0].tolist() == [255, 255, 255]
    assert result.pixels[1, 1].tolist() == [255, 255, 255]


def test_depth_zero_is_one_start_colored_pixel():
    params = RenderParameters(depth=0, pattern="nothing", gradient_start=(12, 34, 56))
    image = render(params).image()
    assert image.size == (1, 1)
    assert image.getpixel((0, 0)) == (12, 34, 56)


def test_match_all_renders_start_color():
    params = RenderParameters(depth=3, pattern=".*", gradient_start=(143, 143, 236), gradient_end=(255, 220, 0))
    pixels = render(params).pixels
    assert (pixels == np.array([143, 143, 236], dtype=np.uint8)).all()


def test_no_match_renders_end_color():
    params = RenderParameters(depth=3, pattern="0", gradient_start=(143, 143, 236), gradient_end=(255, 220, 0))
    pixels = render(params).pixels
    assert (pixels == np.array([255, 220, 0], dtype=np.uint8)).all()


def test_invalid_pattern_fails_before_grid(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("grid built for an invalid pattern")

    monkeypatch.setattr(renderer, "build_address_matrix", fail)
    with pytest.raises(InvalidPattern):
        render(RenderParameters(depth=2, pattern="[12"))


def test_capacity_ceiling():
    with pytest.raises(CapacityExceeded) as excinfo:
        render(RenderParameters(depth=6, pattern="1", max_cells=1000))
    assert excinfo.value.stage == "parameters"


def test_bad_gradient_reported_as_parameter_error():
    with pytest.raises(DistRegexError) as excinfo:
        render(RenderParameters(depth=1, pattern="1", gradient_end=(0, 0, 999)))
    assert excinfo.value.stage == "parameters"


def test_render_to_file(tmp_path):
    params = RenderParameters(depth=2, pattern=".*4$")
    result, path = render_to_file(params, tmp_path / "out.png")
    assert path.is_file()
    assert "write" in result.metadata.timings
    with PIL.Image.open(path) as image:
        assert image.size == (4, 4)
        assert image.getpixel((1, 1)) == (0, 0, 0)
        assert image.getpixel((0, 0)) == (127, 127, 127)


def test_render_to_file_writes_nothing_on_failure(tmp_path):
    with pytest.raises(InvalidPattern):
        render_to_file(RenderParameters(depth=2, pattern="(("), tmp_path / "out.png")
    assert list(tmp_path.iterdir()) == []


def test_from_options_defaults():
    params = RenderParameters.from_options({"depth": 3, "pattern": "12"})
    assert params.gradient_start == (0, 0, 0)
    assert params.gradient_end == (255, 255, 255)


def test_from_options_overrides():
    params = RenderParameters.from_options(
        {"depth": 3, "pattern": "12", "gradient_start": [1, 2, 3], "gradient_end": None}
    )
    assert params.gradient_start == (1, 2, 3)
    assert params.gradient_end == (255, 255, 255)


@pytest.mark.parametrize("options", [{"depth": 1}, {"depth": 1, "pattern": "1", "colour": "red"}])
def test_from_options_rejects(options):
    with pytest.raises(ValueError):
        RenderParameters.from_options(options)


@pytest.mark.parametrize("option", ["chunk_size", "block_size"])
def test_batch_sizes_are_parameter_errors(monkeypatch, option):
    def fail(*args, **kwargs):
        raise AssertionError("grid built for invalid batch sizes")

    monkeypatch.setattr(renderer, "build_address_matrix", fail)
    with pytest.raises(DistRegexError) as excinfo:
        render(RenderParameters(depth=2, pattern="1", **{option: 0}))
    assert excinfo.value.stage == "parameters"
    assert option in str(excinfo.value)


def test_write_timing_lands_on_a_new_metadata(tmp_path, monkeypatch):
    rendered = []
    original = renderer.render

    def recording_render(params, **kwargs):
        result = original(params, **kwargs)
        rendered.append(result)
        return result

    monkeypatch.setattr(renderer, "render", recording_render)
    result, _ = render_to_file(RenderParameters(depth=1, pattern="1"), tmp_path / "out.png")
    assert set(result.metadata.timings) == {"address", "selection", "distance", "colorize", "write"}
    assert "write" not in rendered[0].metadata.timings
