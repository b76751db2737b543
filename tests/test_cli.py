from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

import emojify
from conftest import BLUE, RED
from emoji_mosaic.core_types import ConfigError


def _write_input(path, width=16, height=8):
    rgb = np.zeros((height, width, 3), dtype=np.uint8)
    rgb[:, : width // 2] = RED
    rgb[:, width // 2 :] = BLUE
    Image.fromarray(rgb).save(path)
    return path


def test_full_run_writes_outputs(tmp_path, emoticon_dir, capsys):
    src = _write_input(tmp_path / "input.png")
    out = tmp_path / "mosaic.png"
    text_out = tmp_path / "mosaic.txt"
    preview = tmp_path / "preview.png"
    emojify.main(
        [
            str(src),
            "--emoticons", str(emoticon_dir),
            "--out", str(out),
            "--text-out", str(text_out),
            "--preview", str(preview),
            "--depth", "8",
            "--workers", "1",
        ]
    )
    assert text_out.read_text(encoding="utf-8") == "\U0001F534\U0001F535\n"
    assert Image.open(out).size == (16, 8)
    assert Image.open(preview).size == (16, 8)
    stdout = capsys.readouterr().out
    assert "\U0001F534\U0001F535" in stdout
    assert "[match]" in stdout


def test_peak_algorithm_and_tile_size(tmp_path, emoticon_dir, capsys):
    src = _write_input(tmp_path / "input.png")
    emojify.main(
        [
            str(src),
            "--emoticons", str(emoticon_dir),
            "--algorithm", "peak",
            "--tile-size", "4",
            "--peak-scale", "1", "1", "2",
            "--workers", "1",
        ]
    )
    lines = capsys.readouterr().out.splitlines()
    assert "\U0001F534\U0001F534\U0001F535\U0001F535" in lines


def test_height_resizes_input(tmp_path, emoticon_dir, capsys):
    src = _write_input(tmp_path / "input.png", width=32, height=16)
    emojify.main([str(src), "--emoticons", str(emoticon_dir), "--height", "8", "--workers", "1"])
    assert "\U0001F534\U0001F535" in capsys.readouterr().out.splitlines()


def test_missing_input_exits_2(tmp_path, emoticon_dir):
    with pytest.raises(SystemExit) as exc:
        emojify.main([str(tmp_path / "nope.png"), "--emoticons", str(emoticon_dir)])
    assert exc.value.code == 2


def test_mosaic_error_exits_1(tmp_path, capsys):
    src = _write_input(tmp_path / "input.png")
    empty = tmp_path / "empty"
    empty.mkdir()
    with pytest.raises(SystemExit) as exc:
        emojify.main([str(src), "--emoticons", str(empty)])
    assert exc.value.code == 1
    assert "[error]" in capsys.readouterr().err


def test_bad_option_value_exits_1(tmp_path, emoticon_dir):
    src = _write_input(tmp_path / "input.png")
    with pytest.raises(SystemExit) as exc:
        emojify.main([str(src), "--emoticons", str(emoticon_dir), "--depth", "1"])
    assert exc.value.code == 1


def test_build_config_square_tile():
    args = emojify.parse_cli_args(["in.png", "--emoticons", "e", "--tile-size", "6"])
    assert emojify.build_config(args).tile_size == (6, 6)
    args = emojify.parse_cli_args(["in.png", "--emoticons", "e", "--sigma", "-1"])
    with pytest.raises(ConfigError):
        emojify.build_config(args)


def test_tile_size_takes_at_most_two_values():
    with pytest.raises(SystemExit):
        emojify.parse_cli_args(["in.png", "--emoticons", "e", "--tile-size", "1", "2", "3"])
