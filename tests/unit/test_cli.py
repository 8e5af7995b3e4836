"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from lumiere.cli import DEFAULT_PROMPT, app, read_prompt
from lumiere.common.errors import LumiereError

runner = CliRunner()


class TestReadPrompt:
    def test_default(self):
        assert read_prompt(None, None) == DEFAULT_PROMPT

    def test_file_wins(self, tmp_path: Path):
        path = tmp_path / "prompt.txt"
        path.write_text("  The lamp dances.\n")
        assert read_prompt("ignored", path) == "The lamp dances."

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(LumiereError, match="Failed to read prompt file"):
            read_prompt(None, tmp_path / "missing.txt")


class TestAnimate:
    def test_missing_image_is_logged(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv("RUNWAYML_API_SECRET", "rw-test-key")
        diagnostics = tmp_path / "diag"

        result = runner.invoke(
            app,
            ["animate", str(tmp_path / "missing.jpg"), "--diagnostics-dir", str(diagnostics)],
        )

        assert result.exit_code == 1
        error = json.loads((diagnostics / "error_log.json").read_text())
        assert error["error"]["name"] == "ImageReadError"

    def test_missing_prompt_file_is_logged(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, mock_image_bytes: bytes
    ):
        monkeypatch.setenv("RUNWAYML_API_SECRET", "rw-test-key")
        image = tmp_path / "still.jpg"
        image.write_bytes(mock_image_bytes)
        diagnostics = tmp_path / "diag"

        result = runner.invoke(
            app,
            [
                "animate",
                str(image),
                "--prompt-file",
                str(tmp_path / "missing.txt"),
                "--diagnostics-dir",
                str(diagnostics),
            ],
        )

        assert result.exit_code == 1
        error = json.loads((diagnostics / "error_log.json").read_text())
        assert "Failed to read prompt file" in error["error"]["message"]

    def test_requires_api_key(self):
        result = runner.invoke(app, ["animate", "still.jpg"])
        assert result.exit_code == 1


class TestChat:
    def test_press_uses_configured_trigger(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LUMIERE_VOICE__TRIGGER_PRESS_TYPE", "double")

        result = runner.invoke(app, ["chat", "--mock"], input="!press\nq\n")

        assert result.exit_code == 0
        assert "We are ready!" in result.output
