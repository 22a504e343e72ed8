"""CLI integration tests for `assetprep transcode`."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from assetprep.cli import cli


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    env["ASSETPREP__LOGGING__LEVEL"] = "ERROR"
    return env


@pytest.fixture()
def media(tmp_path: Path) -> Path:
    root = tmp_path / "media"
    root.mkdir()
    (root / "trailer.mp4").write_bytes(b"video")
    (root / "poster.png").write_bytes(b"image")
    return root


def test_transcode_dry_run_json(
    tmp_path: Path, media: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("assetprep.transcode.engine.command_exists", lambda name: False)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["transcode", str(media), "--profile", "webm", "--dry-run", "--json"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["counts"]["what_if"] == 1
    assert payload["outcomes"][0]["destination"].endswith("trailer.webm")


def test_transcode_unknown_profile(tmp_path: Path, media: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["transcode", str(media), "--profile", "gif", "--json"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 1
    assert json.loads(result.stdout)["error"]["code"] == "transcode_error"


def test_transcode_summary_line(
    tmp_path: Path, media: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("assetprep.transcode.engine.command_exists", lambda name: False)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["transcode", str(media), "--profile", "webp", "--dry-run", "--summary"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    assert "Transcode summary" in result.output
    assert "what_if=1" in result.output
