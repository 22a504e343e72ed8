"""CLI integration tests for `assetprep names`."""

from __future__ import annotations

import csv
import json
import os
from pathlib import Path

from click.testing import CliRunner

from assetprep.cli import cli


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        dict[str, str]: Environment mapping with HOME set and console logging quieted.
    """
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    env["ASSETPREP__LOGGING__LEVEL"] = "ERROR"
    return env


def _make_tree(tmp_path: Path) -> Path:
    root = tmp_path / "assets"
    (root / "Level One").mkdir(parents=True)
    (root / "Level One" / "Hero Image.PNG").write_bytes(b"png")
    (root / "Read Me.txt").write_text("hello", encoding="utf-8")
    return root


def test_names_json_reports_counts_and_ledger(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["names", str(root), "--json"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["counts"]["renamed"] == 3
    assert payload["counts"]["failed"] == 0
    assert payload["ledger_path"] is not None
    assert Path(payload["ledger_path"]).is_file()
    assert [record["status"] for record in payload["records"]] == ["Success"] * 3
    assert (root / "level_one" / "hero_image.png").exists()


def test_names_dry_run_leaves_tree_alone(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["names", str(root), "--dry-run"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Names summary" in result.output
    assert "what_if=3" in result.output
    assert "Dry run" in result.output
    assert (root / "Level One" / "Hero Image.PNG").exists()
    assert not (root / ".assetprep").exists()


def test_names_summary_mode_prints_summary_line(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["names", str(root), "--summary"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Names summary" in result.output
    assert "Undo ledger written" not in result.output


def test_names_configuration_defaults_and_cli_overrides(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    env = _env_with_home(tmp_path)
    env["ASSETPREP__NAMING__SPACE_REPLACEMENT"] = "dash"
    runner = CliRunner()

    from_env = runner.invoke(cli, ["names", str(root), "--dry-run", "--json"], env=env)
    from_cli = runner.invoke(
        cli, ["names", str(root), "--dry-run", "--json", "--spaces", "remove"], env=env
    )

    env_names = {record["new_name"] for record in json.loads(from_env.stdout)["records"]}
    cli_names = {record["new_name"] for record in json.loads(from_cli.stdout)["records"]}
    assert "read-me.txt" in env_names
    assert "readme.txt" in cli_names


def test_names_include_extension_filter(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["names", str(root), "--json", "--include-ext", "png,jpg"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert {record["original_name"] for record in payload["records"]} == {
        "Level One",
        "Hero Image.PNG",
    }
    assert (root / "Read Me.txt").exists()


def test_names_export_csv(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    report = tmp_path / "report.csv"
    runner = CliRunner()

    result = runner.invoke(
        cli, ["names", str(root), "--export", str(report)], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0, result.output
    with report.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 3
    assert {row["new_name"] for row in rows} == {"level_one", "hero_image.png", "read_me.txt"}


def test_names_rejects_unknown_export_format_before_renaming(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["names", str(root), "--export", str(tmp_path / "report.xml")],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert "Unsupported report format" in result.output
    assert (root / "Read Me.txt").exists()


def test_names_output_inside_root_is_a_planning_error(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["names", str(root), "--json", "--output", str(root / "web")],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["error"]["code"] == "planning_error"


def test_names_copy_mode_writes_sanitized_copies(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    output = tmp_path / "web"
    runner = CliRunner()

    result = runner.invoke(
        cli, ["names", str(root), "--output", str(output)], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0, result.output
    assert "Copy mode enabled" in result.output
    assert (output / "level_one" / "hero_image.png").read_bytes() == b"png"
    assert (root / "Level One" / "Hero Image.PNG").exists()


def test_names_json_conflicts_with_quiet(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli, ["names", str(root), "--json", "--quiet"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["error"]["code"] == "cli_error"


def test_names_parallel_flag(tmp_path: Path) -> None:
    root = _make_tree(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["names", str(root), "--json", "--parallel", "--throttle-limit", "2", "--chunk-size", "1"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["context"]["parallel"] is True
    assert payload["context"]["throttle_limit"] == 2
    assert payload["counts"]["renamed"] == 3
