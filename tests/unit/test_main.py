"""Unit tests for main CLI module."""

import json
import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

from click.testing import CliRunner

from release_decision.main import cli

SCENE_TITLE = "Show.S01E01.720p.HDTV.x264-GROUP"
HDTV = "Show.S01E01.1080p.HDTV.x264-GRP"
WEB_DL = "Show.S01E01.1080p.WEB-DL.x265-GRP"


def write_snapshot(data: dict[str, Any]) -> str:
    path = Path("snapshot.json")
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


class TestCli:
    """Test CLI functionality."""

    def test_cli_version(self) -> None:
        """Test CLI version option."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "version" in result.output

    def test_parse(self) -> None:
        """Test parse prints the extracted fields."""
        runner = CliRunner()

        with patch.dict(os.environ, {}, clear=True):
            result = runner.invoke(cli, ["parse", SCENE_TITLE])

        assert result.exit_code == 0
        assert f"🎬 {SCENE_TITLE}" in result.output
        assert "Title: Show (show)" in result.output
        assert "Season: 1  Episodes: 1" in result.output
        assert "Quality: tv 720p codec=x264" in result.output
        assert "Group: GROUP" in result.output
        assert "✅ Confidence: 100" in result.output

    def test_parse_low_confidence(self) -> None:
        runner = CliRunner()

        with patch.dict(os.environ, {}, clear=True):
            result = runner.invoke(cli, ["parse", "S01E01"])

        assert result.exit_code == 0
        assert "⚠️ Confidence:" in result.output

    def test_invalid_configuration(self) -> None:
        """Test CLI with an out-of-range setting."""
        runner = CliRunner()

        with patch.dict(os.environ, {"CONFIDENCE_FLOOR": "500"}, clear=True):
            result = runner.invoke(cli, ["parse", SCENE_TITLE])

        assert result.exit_code == 1
        assert "❌ Configuration error:" in result.output

    def test_formats(self) -> None:
        """Test formats explains which custom formats match."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            path = write_snapshot(
                {
                    "custom_formats": [
                        {
                            "id": 1,
                            "name": "x265",
                            "conditions": [{"type": "codec", "pattern": "x265"}],
                        },
                        {
                            "id": 2,
                            "name": "Remux",
                            "conditions": [{"type": "source", "pattern": "remux"}],
                        },
                    ]
                }
            )
            with patch.dict(os.environ, {}, clear=True):
                result = runner.invoke(cli, ["formats", path, WEB_DL])

        assert result.exit_code == 0
        assert "✅ x265" in result.output
        assert "❌ Remux" in result.output
        assert "x265: codec /x265/ -> pass" in result.output

    def test_formats_nothing_matched(self) -> None:
        runner = CliRunner()

        with runner.isolated_filesystem():
            path = write_snapshot({})
            with patch.dict(os.environ, {}, clear=True):
                result = runner.invoke(cli, ["formats", path, WEB_DL])

        assert result.exit_code == 0
        assert "No custom formats matched" in result.output

    def test_decide(self) -> None:
        """Test decide prints every decision and the best pick."""
        runner = CliRunner()

        with runner.isolated_filesystem():
            path = write_snapshot({"profile": "HD-1080p"})
            with patch.dict(os.environ, {}, clear=True):
                result = runner.invoke(
                    cli,
                    [
                        "decide",
                        path,
                        "--candidate",
                        HDTV,
                        "1500",
                        "--candidate",
                        WEB_DL,
                        "1500",
                    ],
                )

        assert result.exit_code == 0
        assert f"✅ Best: {WEB_DL}" in result.output

    def test_decide_nothing_acceptable(self) -> None:
        runner = CliRunner()

        with runner.isolated_filesystem():
            path = write_snapshot({"profile": "HD-1080p"})
            with patch.dict(os.environ, {}, clear=True):
                result = runner.invoke(
                    cli,
                    [
                        "decide",
                        path,
                        "--candidate",
                        HDTV,
                        "1500",
                        "--current-quality-id",
                        "15",
                    ],
                )

        assert result.exit_code == 0
        assert "cutoff already met" in result.output
        assert "❌ Nothing acceptable" in result.output

    def test_decide_unreadable_snapshot(self) -> None:
        runner = CliRunner()

        with runner.isolated_filesystem():
            Path("broken.json").write_text("{not json", encoding="utf-8")
            with patch.dict(os.environ, {}, clear=True):
                result = runner.invoke(
                    cli, ["decide", "broken.json", "--candidate", HDTV, "1500"]
                )

        assert result.exit_code == 1
        assert "❌ Cannot read snapshot" in result.output
