import PIL.Image
import pytest

import distrx


def test_renders_png(tmp_path, capsys):
    output = tmp_path / "out"
    assert distrx.main([str(output), "1", "1"]) == 0
    written = tmp_path / "out.png"
    with PIL.Image.open(written) as image:
        assert image.size == (2, 2)
        assert image.getpixel((0, 0)) == (0, 0, 0)
        assert image.getpixel((1, 1)) == (255, 255, 255)
    assert "Elapsed time:" in capsys.readouterr().out


def test_gradient_options(tmp_path):
    output = tmp_path / "out.png"
    args = [str(output), "1", "4", "--start", "143,143,236", "--end", "#ffdc00"]
    assert distrx.main(args) == 0
    with PIL.Image.open(output) as image:
        assert image.getpixel((1, 1)) == (143, 143, 236)
        assert image.getpixel((0, 0)) == (255, 220, 0)


def test_format_option_adds_extension(tmp_path):
    assert distrx.main([str(tmp_path / "out"), "2", "1", "--format", "bmp"]) == 0
    assert (tmp_path / "out.bmp").is_file()


def test_mismatched_extension_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit):
        distrx.main([str(tmp_path / "out.png"), "2", "1", "--format", "bmp"])


def test_bad_color_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit):
        distrx.main([str(tmp_path / "out.png"), "2", "1", "--start", "nope"])


def test_invalid_pattern_reports_stage(tmp_path, capsys):
    assert distrx.main([str(tmp_path / "out.png"), "2", "(1"]) == 1
    assert "error (pattern)" in capsys.readouterr().err
    assert list(tmp_path.iterdir()) == []


def test_negative_depth_reports_stage(tmp_path, capsys):
    assert distrx.main([str(tmp_path / "out.png"), "-1", "1"]) == 1
    assert "error (parameters)" in capsys.readouterr().err


def test_max_cells_option(tmp_path, capsys):
    assert distrx.main([str(tmp_path / "out.png"), "4", "1", "--max-cells", "100"]) == 1
    assert "error (parameters)" in capsys.readouterr().err


def test_verbose_reports_stages(tmp_path, capsys):
    assert distrx.main([str(tmp_path / "out.png"), "2", "1", "--verbose", "--device", "/CPU:0"]) == 0
    out = capsys.readouterr().out
    assert "addresses match" in out
    assert "distance" in out
