"""Tests for the command-line interface."""

import pytest

from avatar_puppet import __version__
from avatar_puppet.cli import main, parse_args
from avatar_puppet.config.settings import Settings
from avatar_puppet.core.landmarks import LandmarkFrame
from avatar_puppet.data.recording import Recording, save_recording


@pytest.fixture
def recording_path(tmp_path, thumbs_up_hand):
    rec = Recording(name="cli")
    for i in range(4):
        rec.add_frame(LandmarkFrame(right_hand=thumbs_up_hand, timestamp=i / 30))
    path = tmp_path / "cli.json"
    save_recording(rec, path)
    return path


def test_parse_args_defaults():
    args = parse_args([])
    assert args.replay is None
    assert args.every == 1
    assert not args.verbose


def test_version(capsys):
    assert main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_nothing_to_do(capsys):
    assert main([]) == 2
    assert "Nothing to do" in capsys.readouterr().out


def test_write_config(tmp_path):
    path = tmp_path / "defaults.yaml"
    assert main(["--write-config", str(path)]) == 0
    assert Settings.from_yaml(path) == Settings()


def test_replay(recording_path, capsys):
    assert main(["--replay", str(recording_path), "--every", "2"]) == 0
    out = capsys.readouterr().out
    assert "Total frames: 4" in out
    assert "Gesture summary" in out


def test_replay_with_config(recording_path, tmp_path, capsys):
    config = tmp_path / "tuning.yaml"
    config.write_text("debounce:\n  recent_window: 50\n")
    assert main(["--replay", str(recording_path), "--config", str(config)]) == 0
    assert "Configuration warnings" in capsys.readouterr().out


def test_replay_missing_recording(tmp_path, capsys):
    assert main(["--replay", str(tmp_path / "missing.json")]) == 1
    assert "Error" in capsys.readouterr().out


def test_replay_bad_config(recording_path, tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("- not\n- a mapping\n")
    assert main(["--replay", str(recording_path), "--config", str(config)]) == 1


def test_replay_malformed_metadata(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text('{"format": "avatar_puppet_landmarks", "metadata": {"fps": "abc"}}')
    assert main(["--replay", str(path)]) == 1
    assert "Error" in capsys.readouterr().out
