import numpy as np
import pytest

from sphfluids.cli import main
from sphfluids.recording import read_points

BASE = ["--example", "0", "--num", "27", "--seed", "2"]


def test_runs_grid_steps(capsys):
    assert main(BASE + ["--steps", "2"]) == 0
    out = capsys.readouterr().out
    assert "SIMULATE CPU Grid" in out
    assert "frame: 2" in out


def test_search_mode(capsys):
    assert main(BASE + ["--mode", "search"]) == 0
    assert "SEARCH ONLY (CPU)" in capsys.readouterr().out


def test_frame_range_exits(capsys):
    assert main(BASE + ["--frames", "0", "1", "1", "--steps", "5"]) == 0
    assert "Exiting." in capsys.readouterr().out


def test_write_points_then_playback(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(BASE + ["--write-points", "--steps", "1"]) == 0
    files = sorted(tmp_path.glob("jet*.pts"))
    assert files
    frame = read_points(files[0])
    assert len(frame) > 0
    assert np.all(np.isfinite(frame.positions))
    capsys.readouterr()

    assert main(BASE + ["--playback", "--in-file", "jet####.pts", "--frames", "1", "-1", "1"]) == 0
    out = capsys.readouterr().out
    assert "PLAYBACK" in out
    assert f"Particles: {len(frame)}" in out


def test_memory_report_flag(capsys):
    assert main(BASE + ["--memory"]) == 0
    assert "MEMORY:" in capsys.readouterr().out


def test_playback_needs_input():
    with pytest.raises(SystemExit):
        main(BASE + ["--playback"])


def test_unknown_mode_rejected():
    with pytest.raises(SystemExit):
        main(BASE + ["--mode", "gpu"])