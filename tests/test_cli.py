"""End-to-end tests for the command line."""

import os

import numpy as np
import pytest

from cli import main, parse_args
from utils import load_rgba, save_rgba, DimComponent


@pytest.fixture
def input_image(tmp_path, random_rgba):
    path = str(tmp_path / "in.png")
    save_rgba(path, random_rgba.array)
    return path


def run(*argv):
    return main(list(argv))


class TestParseArgs:
    def test_parses_size_and_paths(self):
        args = parse_args(["-i", "a.png", "-s", "?-3xP", "-o", "b.png"])
        assert args["input"] == "a.png"
        assert args["output"] == "b.png"
        assert args["to_size"] == (DimComponent(True, -3), DimComponent(True, 0))
        assert args["timings"] is False

    def test_bad_size_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc:
            parse_args(["-i", "a.png", "-s", "300by200"])
        assert exc.value.code == 2
        assert "WIDTHxHEIGHT" in capsys.readouterr().err

    def test_bad_emit_target_is_usage_error(self):
        with pytest.raises(SystemExit):
            parse_args(["-i", "a.png", "-s", "3xP", "-W", "noext"])


class TestMain:
    def test_resizes_to_target_width(self, input_image, tmp_path):
        out = str(tmp_path / "out.png")
        run("-i", input_image, "-s", "10xP", "-o", out)
        assert load_rgba(out).size() == (10, 12)

    def test_relative_width(self, input_image, tmp_path):
        out = str(tmp_path / "out.png")
        run("-i", input_image, "-s", "?-4x12", "-o", out)
        assert load_rgba(out).size() == (12, 12)

    def test_preserve_width_is_identity(self, input_image, tmp_path):
        out = str(tmp_path / "out.png")
        run("-i", input_image, "-s", "PxP", "-o", out)
        assert np.array_equal(load_rgba(out).array, load_rgba(input_image).array)

    @pytest.mark.parametrize("size", ["17xP", "8x13", "0xP", "?-16xP"])
    def test_rejected_sizes_write_nothing(self, input_image, tmp_path, size, capsys):
        out = str(tmp_path / "out.png")
        with pytest.raises(SystemExit) as exc:
            run("-i", input_image, "-s", size, "-o", out)
        assert exc.value.code != 0
        assert str(exc.value.code).startswith("Error:")
        assert not os.path.exists(out)

    def test_missing_input(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            run("-i", str(tmp_path / "missing.png"), "-s", "3xP")
        assert "missing.png" in str(exc.value.code)

    def test_unreadable_input(self, tmp_path):
        path = tmp_path / "junk.png"
        path.write_bytes(b"not an image")
        with pytest.raises(SystemExit) as exc:
            run("-i", str(path), "-s", "3xP")
        assert "junk.png" in str(exc.value.code)

    def test_emit_debug_images(self, input_image, tmp_path):
        sobel = str(tmp_path / "dbg" / "sobel.png")
        seams = str(tmp_path / "dbg" / "seams.png")
        orig = str(tmp_path / "dbg" / "orig.png")
        run("-i", input_image, "-s", "12xP",
            "-W", sobel + ":0,2", "-S", seams, "--emit-seams-on-original", orig)

        assert load_rgba(sobel).size() == (16, 12)
        assert load_rgba(str(tmp_path / "dbg" / "sobel-2.png")).size() == (14, 12)
        assert load_rgba(seams).size() == (16, 12)
        assert load_rgba(orig).size() == (16, 12)

    def test_seams_on_original_coloured_by_order(self, tmp_path):
        path = str(tmp_path / "flat.png")
        save_rgba(path, np.full((4, 6, 4), 255, dtype=np.uint8))
        orig = str(tmp_path / "orig.png")
        run("-i", path, "-s", "4xP", "--emit-seams-on-original", orig)

        canvas = load_rgba(orig).array
        greens = (canvas[..., 1] == 255) & (canvas[..., 0] == 0)
        reds = (canvas[..., 0] == 255) & (canvas[..., 1] == 0)
        assert greens.sum(axis=1).tolist() == [1] * 4
        assert reds.sum(axis=1).tolist() == [1] * 4

    def test_emit_step_out_of_range(self, input_image, tmp_path):
        sobel = str(tmp_path / "sobel.png")
        with pytest.raises(SystemExit) as exc:
            run("-i", input_image, "-s", "14xP", "-W", sobel + ":0,2")
        assert "emission indices: 2" in str(exc.value.code)
        assert not os.path.exists(sobel)

    def test_plan_only(self, input_image, tmp_path, capsys):
        out = str(tmp_path / "out.png")
        with pytest.raises(SystemExit) as exc:
            run("-i", input_image, "-s", "10xP", "-o", out, "--plan-only")
        assert exc.value.code == 0
        text = capsys.readouterr().out
        assert "16x12" in text and "10x12" in text
        assert "6 vertical seams" in text
        assert not os.path.exists(out)

    def test_timings_summary(self, input_image, capsys):
        run("-i", input_image, "-s", "15xP", "-v")
        out = capsys.readouterr().out
        assert "+ main" in out
        assert "=== Timing Summary ===" in out

    def test_initial_energy_only_computed_for_debug_views(self, input_image, tmp_path, monkeypatch):
        import cli

        def fail(*args, **kwargs):
            raise AssertionError("initial energy computed without a debug view")

        monkeypatch.setattr(cli, "sobel_energy", fail)
        out = str(tmp_path / "out.png")
        run("-i", input_image, "-s", "14xP", "-o", out)
        assert load_rgba(out).size() == (14, 12)

    def test_loose_size_is_usage_error(self, input_image, tmp_path):
        out = str(tmp_path / "out.png")
        with pytest.raises(SystemExit) as exc:
            run("-i", input_image, "-s", "1_0xP", "-o", out)
        assert exc.value.code == 2
        assert not os.path.exists(out)
