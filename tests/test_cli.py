"""Tests for the typer command line interface."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from karaoke_timer.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _workdir(tmp_path, monkeypatch):
    # keeps load_config() from picking up a stray config.yaml
    monkeypatch.chdir(tmp_path)


class TestSyllablize:
    def test_to_stdout(self, tmp_path):
        src = tmp_path / "lyrics.txt"
        src.write_text("tokyou\r\nkitte\r\n", encoding="utf-8")
        result = runner.invoke(app, ["syllablize", "-i", str(src), "--level", "1"])
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "to|kyou\nki|tte"

    def test_to_file(self, tmp_path):
        src = tmp_path / "lyrics.txt"
        src.write_text("kyou", encoding="utf-8")
        out = tmp_path / "out" / "lyrics.txt"
        result = runner.invoke(app, ["syllablize", "-i", str(src), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8") == "kyo|u\n"

    def test_level_from_config(self, tmp_path):
        (tmp_path / "config.yaml").write_text("syllablize:\n  level: 0\n", encoding="utf-8")
        src = tmp_path / "lyrics.txt"
        src.write_text("tokyou", encoding="utf-8")
        result = runner.invoke(app, ["syllablize", "-i", str(src)])
        assert result.stdout.strip() == "tokyou"

    def test_custom_dictionary(self, tmp_path):
        (tmp_path / "dict.yaml").write_text("- ab\n", encoding="utf-8")
        (tmp_path / "config.yaml").write_text(
            "syllablize:\n  level: 1\n  dictionary_path: dict.yaml\n", encoding="utf-8")
        src = tmp_path / "lyrics.txt"
        src.write_text("abab", encoding="utf-8")
        result = runner.invoke(app, ["syllablize", "-i", str(src)])
        assert result.stdout.strip() == "ab|ab"

    def test_missing_input(self, tmp_path):
        result = runner.invoke(app, ["syllablize", "-i", str(tmp_path / "nope.txt")])
        assert result.exit_code == 1

    def test_level_out_of_range(self, tmp_path):
        src = tmp_path / "lyrics.txt"
        src.write_text("kyou", encoding="utf-8")
        result = runner.invoke(app, ["syllablize", "-i", str(src), "--level", "3"])
        assert result.exit_code != 0


class TestStrip:
    def test_strips_header(self, tmp_path, sample_ass):
        src = tmp_path / "song.ass"
        src.write_text(sample_ass, encoding="utf-8")
        out = tmp_path / "events.txt"
        result = runner.invoke(app, ["strip", "-i", str(src), "-o", str(out)])
        assert result.exit_code == 0, result.output
        lines = out.read_text(encoding="utf-8").split("\n")
        assert lines[0].startswith("Dialogue: 0,0:00:00.00,0:00:02.50,Romaji")
        assert lines[1] == "ko|ko|ro"


class TestRows:
    def test_lists_rows(self, tmp_path, sample_lyrics):
        src = tmp_path / "lyrics.txt"
        src.write_text(sample_lyrics, encoding="utf-8")
        result = runner.invoke(app, ["rows", "-i", str(src)])
        assert result.exit_code == 0, result.output
        assert "3 rows" in result.stdout

    def test_ass_suffix_strips_header(self, tmp_path, sample_ass):
        src = tmp_path / "song.ass"
        src.write_text(sample_ass, encoding="utf-8")
        result = runner.invoke(app, ["rows", "-i", str(src)])
        assert result.exit_code == 0, result.output
        assert "1 rows" in result.stdout

    def test_malformed_dialogue(self, tmp_path):
        src = tmp_path / "bad.txt"
        src.write_text("ka|mi\nDialogue: broken", encoding="utf-8")
        result = runner.invoke(app, ["rows", "-i", str(src)])
        assert result.exit_code == 1


class TestReplay:
    def _files(self, tmp_path):
        src = tmp_path / "lyrics.txt"
        src.write_text("ka|mi\nso", encoding="utf-8")
        log = tmp_path / "taps.json"
        log.write_text(json.dumps([
            {"command": "tap", "position": 1.0},
            {"command": "tap", "position": 1.5},
            {"command": "end", "position": 2.0},
        ]), encoding="utf-8")
        return src, log

    def test_new_output(self, tmp_path):
        src, log = self._files(tmp_path)
        out = tmp_path / "timed.ass"
        result = runner.invoke(app, [
            "replay", "-i", str(src), "-e", str(log), "-o", str(out), "--time-shift", "0",
        ])
        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8") == (
            "Dialogue: 0,0:00:01.00,0:00:02.00,Romaji,,0,0,0,,{\\k50}ka{\\k50}mi\n"
        )

    def test_full_output_default_shift(self, tmp_path):
        src, log = self._files(tmp_path)
        out = tmp_path / "timed.ass"
        result = runner.invoke(app, [
            "replay", "-i", str(src), "-e", str(log), "-o", str(out),
            "--format", "full", "--style", "Lyrics",
        ])
        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8").split("\n") == [
            "Dialogue: 0,0:00:00.98,0:00:01.98,Lyrics,,0,0,0,,{\\k50}ka{\\k50}mi",
            "so",
            "",
        ]

    def test_invalid_log(self, tmp_path):
        src, log = self._files(tmp_path)
        log.write_text('[{"command": "warp"}]', encoding="utf-8")
        result = runner.invoke(app, ["replay", "-i", str(src), "-e", str(log)])
        assert result.exit_code == 1

    def test_missing_log(self, tmp_path):
        src, _ = self._files(tmp_path)
        result = runner.invoke(app, ["replay", "-i", str(src), "-e", str(tmp_path / "none.json")])
        assert result.exit_code == 1


class TestInit:
    def test_writes_default_config(self, tmp_path):
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0, result.output
        text = (tmp_path / "config.yaml").read_text(encoding="utf-8")
        assert "correction_threshold: 0.5" in text
