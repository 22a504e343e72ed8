"""Command line interface for the assetprep project."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from assetprep.config import STAMP_PREFIX, AssetPrepConfig, ConfigError, ConfigManager
from assetprep.logs import configure_logging
from assetprep.naming import PlanningError, optimize_names
from assetprep.naming.models import OperationRecord, OperationStatus, SpaceReplacement
from assetprep.reporting import SUPPORTED_SUFFIXES, export_records
from assetprep.transcode import TranscodeBatch, TranscodeError, Transcoder, TranscodeStatus
from assetprep.undo import (
    LedgerFormatError,
    LedgerRepository,
    MissingLedgerError,
    UndoEngine,
    UndoStatus,
    UndoValidationError,
)

console = Console()

# Rows rendered in detail tables before the remainder is summarized.
_MAX_TABLE_ROWS = 200

_NAMES_OVERRIDES = {
    "recursive": "processing.recurse_directories",
    "parallel": "processing.parallel",
    "throttle_limit": "processing.throttle_limit",
    "chunk_size": "processing.chunk_size",
    "include_ext": "processing.include_extensions",
    "exclude_ext": "processing.exclude_extensions",
    "remove_metadata": "naming.remove_metadata",
    "spaces": "naming.space_replacement",
    "expand_ampersand": "naming.expand_ampersand",
    "preserve_case": "naming.preserve_case",
    "lowercase_extensions": "naming.lowercase_extensions",
}

_TRANSCODE_OVERRIDES = {
    "throttle_limit": "transcode.throttle_limit",
}


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        root: Target root path relevant to the command.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    formatted_root = str(root)
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {formatted_root}: {parts}.[/green]"


def _split_extensions(values: Iterable[str]) -> list[str]:
    """Flatten repeated and comma-separated extension options."""
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


def _commandline_overrides(ctx: click.Context, mapping: Mapping[str, str]) -> dict[str, Any]:
    """Return dotted config overrides for parameters given on the command line.

    Args:
        ctx: Click context used for parameter source inspection.
        mapping: Parameter name to dotted configuration key.

    Returns:
        dict[str, Any]: Overrides suitable for :meth:`ConfigManager.load`.
    """

    overrides: dict[str, Any] = {}
    for name, key in mapping.items():
        if ctx.get_parameter_source(name) != ParameterSource.COMMANDLINE:
            continue
        value = ctx.params[name]
        if isinstance(value, tuple):
            value = _split_extensions(value)
        overrides[key] = value
    return overrides


def _load_config(cli_overrides: Mapping[str, Any] | None = None) -> AssetPrepConfig:
    """Load configuration with CLI overrides and configure logging from it."""
    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load(cli_overrides=cli_overrides)
    configure_logging(config.logging, manager.log_path)
    return config


def _resolve_output_modes(
    ctx: click.Context,
    config: AssetPrepConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Combine CLI flags with configured defaults into (quiet, summary_only).

    Raises:
        click.ClickException: If the requested modes are incompatible.
    """

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _progress_bar(enabled: bool) -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
        disable=not enabled,
    )


def _progress_callback(progress: Progress, description: str) -> Callable[[int, int], None]:
    task_id = progress.add_task(description, total=None)

    def _update(completed: int, total: int) -> None:
        progress.update(task_id, completed=completed, total=total)

    return _update


def _records_table(records: Iterable[OperationRecord], title: str) -> tuple[Table, int]:
    """Build a table of records that changed or need attention.

    Returns:
        tuple[Table, int]: The table and the number of rows left out of it.
    """

    table = Table(title=title)
    table.add_column("Type")
    table.add_column("Original", overflow="fold")
    table.add_column("New", overflow="fold")
    table.add_column("Status")
    table.add_column("Note", overflow="fold")

    rows = [record for record in records if record.status is not OperationStatus.ALREADY_OPTIMIZED]
    rows.sort(key=lambda record: record.operation_id)
    for record in rows[:_MAX_TABLE_ROWS]:
        table.add_row(
            record.type.value,
            record.original_name,
            record.new_name,
            record.status.value,
            record.error or "",
        )
    return table, max(0, len(rows) - _MAX_TABLE_ROWS)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="assetprep")
def cli() -> None:
    """assetprep sanitizes asset names into web-safe form and prepares media.

    Returns:
        None: This function is invoked for its side effects.
    """


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--dry-run", is_flag=True, help="Preview renames without modifying files.")
@click.option("--force", is_flag=True, help="Overwrite existing targets instead of skipping.")
@click.option(
    "--parallel/--sequential",
    "parallel",
    default=False,
    help="Rename files on a bounded worker pool.",
)
@click.option(
    "--throttle-limit",
    type=click.IntRange(1, 32),
    default=8,
    help="Maximum concurrent rename workers.",
)
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    default=5000,
    help="Files processed per memory-bounded chunk.",
)
@click.option(
    "--undo-log",
    type=click.Path(dir_okay=False, path_type=str),
    help="Write the undo ledger to this file.",
)
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=str),
    help="Copy sanitized entries into this directory instead of renaming in place.",
)
@click.option(
    "-r",
    "--recursive/--no-recursive",
    "recursive",
    default=True,
    help="Include all subdirectories.",
)
@click.option(
    "--remove-metadata/--keep-metadata",
    default=False,
    help="Strip bracketed metadata and WxH dimension suffixes.",
)
@click.option(
    "--spaces",
    type=click.Choice([choice.value for choice in SpaceReplacement]),
    default=SpaceReplacement.UNDERSCORE.value,
    help="How whitespace is replaced.",
)
@click.option(
    "--expand-ampersand/--no-expand-ampersand",
    default=False,
    help="Rewrite '&' as '_and_'.",
)
@click.option(
    "--preserve-case/--lowercase",
    default=False,
    help="Keep the base name's case.",
)
@click.option(
    "--lowercase-extensions/--keep-extension-case",
    default=True,
    help="Lowercase file extensions.",
)
@click.option(
    "--include-ext",
    multiple=True,
    help="Only rename files with these extensions (repeatable or comma-separated).",
)
@click.option(
    "--exclude-ext",
    multiple=True,
    help="Never rename files with these extensions (repeatable or comma-separated).",
)
@click.option(
    "--export",
    "export_path",
    type=click.Path(dir_okay=False, path_type=str),
    help="Write operation records to a .csv or .json report.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the run.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def names(
    ctx: click.Context,
    path: str,
    dry_run: bool,
    force: bool,
    parallel: bool,
    throttle_limit: int,
    chunk_size: int,
    undo_log: str | None,
    output: str | None,
    recursive: bool,
    remove_metadata: bool,
    spaces: str,
    expand_ampersand: bool,
    preserve_case: bool,
    lowercase_extensions: bool,
    include_ext: tuple[str, ...],
    exclude_ext: tuple[str, ...],
    export_path: str | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Rename files and directories under PATH into sanitized, web-safe names.

    Options not given on the command line fall back to the configuration file
    and ASSETPREP__ environment variables.

    Args:
        ctx: Click context used for parameter source inspection.
        path: Root directory whose contents are renamed.

    Raises:
        click.ClickException: If configuration, planning, or export fails.
    """

    json_enabled = json_output
    try:
        config = _load_config(_commandline_overrides(ctx, _NAMES_OVERRIDES))
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )

        if export_path and Path(export_path).suffix.lower() not in SUPPORTED_SUFFIXES:
            raise click.ClickException(
                f"Unsupported report format for {export_path}; use .csv or .json."
            )

        root = Path(path).expanduser().resolve()
        output_root = Path(output).expanduser().resolve() if output else None
        processing = config.processing
        show_details = not (quiet_enabled or summary_only or json_output)

        with _progress_bar(show_details) as progress:
            result = optimize_names(
                root,
                config.naming.to_options(force=force),
                dry_run=dry_run,
                parallel=processing.parallel,
                throttle_limit=processing.throttle_limit,
                chunk_size=processing.chunk_size,
                undo_log_path=Path(undo_log).expanduser() if undo_log else None,
                output_root=output_root,
                recursive=processing.recurse_directories,
                include_extensions=processing.include_extensions,
                exclude_extensions=processing.exclude_extensions,
                include_hidden=processing.process_hidden_files,
                state_dirname=config.undo.state_dirname,
                retain_records=show_details or json_output or export_path is not None,
                progress=_progress_callback(progress, "Renaming"),
            )

        export_target = None
        if export_path:
            export_target = export_records(result.records, Path(export_path).expanduser())

        summary = result.summary
        if json_output:
            payload: dict[str, Any] = {
                "context": {
                    "root": str(result.root),
                    "dry_run": dry_run,
                    "output_root": str(output_root) if output_root else None,
                    "parallel": processing.parallel,
                    "throttle_limit": processing.throttle_limit,
                    "chunk_size": processing.chunk_size,
                },
                "counts": summary.model_dump(),
                "records": [
                    record.model_dump(mode="json")
                    for record in sorted(result.records, key=lambda item: item.operation_id)
                ],
                "ledger_path": str(result.ledger_path) if result.ledger_path else None,
                "export_path": str(export_target) if export_target else None,
            }
            console.print_json(data=payload)
            return

        if show_details:
            table, hidden = _records_table(result.records, f"Name changes for {result.root}")
            if table.row_count:
                _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)
            if hidden:
                _emit_message(
                    f"[cyan]{hidden} additional change(s) not shown.[/cyan]",
                    mode="detail",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )

        if summary.failed:
            _emit_message(
                f"[red]{summary.failed} operation(s) failed; see the log or --json output.[/red]",
                mode="error",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        if summary.skipped:
            _emit_message(
                f"[yellow]{summary.skipped} operation(s) skipped because of conflicts or missing "
                "paths.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )

        metrics: dict[str, Any] = {
            "total": summary.total,
            "renamed": summary.renamed,
            "skipped": summary.skipped,
            "failed": summary.failed,
            "already_optimized": summary.already_optimized,
        }
        if dry_run:
            metrics["what_if"] = summary.what_if
        _emit_message(
            _format_summary_line("Names", result.root, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

        if dry_run:
            _emit_message(
                "[yellow]Dry run selected; no files were changed and no undo ledger was "
                "written.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        elif output_root is not None:
            _emit_message(
                f"[cyan]Copy mode enabled; sanitized copies written to {output_root} while "
                f"preserving originals at {result.root}.[/cyan]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        elif result.ledger_path is not None:
            _emit_message(
                f"[green]Undo ledger written to {result.ledger_path}.[/green]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        if export_target is not None:
            _emit_message(
                f"[green]Report exported to {export_target}.[/green]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except PlanningError as exc:
        _handle_cli_error(str(exc), code="planning_error", json_output=json_enabled, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while renaming: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.command()
@click.argument("target", type=click.Path(exists=True, path_type=str))
@click.option("--force", is_flag=True, help="Proceed despite validation failures.")
@click.option(
    "--backup",
    "backup_dir",
    type=click.Path(file_okay=False, path_type=str),
    help="Move entries occupying original paths here instead of deleting them (with --force).",
)
@click.option("--dry-run", is_flag=True, help="Preview the restore without applying it.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the restore.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def undo(
    ctx: click.Context,
    target: str,
    force: bool,
    backup_dir: str | None,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Restore original names recorded in an undo ledger.

    TARGET is a ledger file, or a root directory whose most recent ledger is used.

    Args:
        ctx: Click context for parameter inspection.
        target: Ledger file or renamed root directory.
        force: Whether blocking validation failures are overridden.
        backup_dir: Where entries blocking a restore are moved when forced.
        dry_run: If True, only preview the restore.
        json_output: When True, emit JSON instead of textual output.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error output entirely.

    Raises:
        click.ClickException: If the ledger is missing, malformed, or fails validation.
    """

    json_enabled = json_output
    try:
        config = _load_config()
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )

        repository = LedgerRepository(config.undo.state_dirname)
        target_path = Path(target).expanduser().resolve()
        ledger_path = repository.latest(target_path) if target_path.is_dir() else target_path

        engine = UndoEngine(
            force=force,
            backup_dir=Path(backup_dir).expanduser().resolve() if backup_dir else None,
            dry_run=dry_run,
            mtime_tolerance=config.undo.mtime_tolerance_seconds,
            repository=repository,
        )
        summary = engine.undo(ledger_path)

        if json_output:
            payload = {
                "context": {"ledger_path": str(ledger_path), "dry_run": dry_run, "force": force},
                "counts": {
                    "total": summary.total,
                    "restored": summary.restored,
                    "skipped": summary.skipped,
                    "failed": summary.failed,
                    "what_if": summary.what_if,
                },
                "warnings": [issue.model_dump(mode="json") for issue in summary.warnings],
                "failures": [issue.model_dump(mode="json") for issue in summary.failures],
                "results": [result.model_dump(mode="json") for result in summary.results],
                "audit_log_path": summary.audit_log_path,
            }
            console.print_json(data=payload)
            return

        for issue in [*summary.failures, *summary.warnings]:
            _emit_message(
                f"[yellow]Operation {issue.operation_id}: {issue.message}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )

        attention = [
            result for result in summary.results if result.status is not UndoStatus.SUCCESS
        ]
        if attention:
            table = Table(title=f"Undo results for {ledger_path.name}")
            table.add_column("Type")
            table.add_column("Current", overflow="fold")
            table.add_column("Original", overflow="fold")
            table.add_column("Status")
            table.add_column("Note", overflow="fold")
            for result in attention[:_MAX_TABLE_ROWS]:
                table.add_row(
                    result.type.value,
                    result.current_path,
                    result.target_path,
                    result.status.value,
                    result.error or "",
                )
            _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)

        if summary.failed:
            _emit_message(
                f"[red]{summary.failed} operation(s) could not be restored.[/red]",
                mode="error",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )

        metrics: dict[str, Any] = {
            "total": summary.total,
            "restored": summary.restored,
            "skipped": summary.skipped,
            "failed": summary.failed,
        }
        if dry_run:
            metrics["what_if"] = summary.what_if
        _emit_message(
            _format_summary_line("Undo", ledger_path, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
        if dry_run:
            _emit_message(
                "[yellow]Dry run: nothing was restored.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        elif summary.audit_log_path:
            _emit_message(
                f"[green]Undo results written to {summary.audit_log_path}.[/green]",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except MissingLedgerError as exc:
        _handle_cli_error(str(exc), code="missing_ledger", json_output=json_enabled, original=exc)
    except LedgerFormatError as exc:
        _handle_cli_error(
            str(exc), code="ledger_format_error", json_output=json_enabled, original=exc
        )
    except UndoValidationError as exc:
        if not json_enabled:
            for issue in exc.failures[:_MAX_TABLE_ROWS]:
                console.print(f"[red]  - {issue.message}[/red]")
        _handle_cli_error(
            str(exc),
            code="undo_validation_failed",
            json_output=json_enabled,
            details=[issue.model_dump(mode="json") for issue in exc.failures],
            original=exc,
        )
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while restoring names: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--profile", "profile_name", required=True, help="Configured profile to apply.")
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=str),
    help="Mirror transcoded files into this directory.",
)
@click.option("--force", is_flag=True, help="Re-encode even when the destination is newer.")
@click.option("--dry-run", is_flag=True, help="Preview conversions without running the encoder.")
@click.option(
    "--throttle-limit",
    type=click.IntRange(1, 64),
    default=4,
    help="Maximum concurrent encoder processes.",
)
@click.option(
    "-r",
    "--recursive/--no-recursive",
    "recursive",
    default=True,
    help="Include all subdirectories.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the batch.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def transcode(
    ctx: click.Context,
    path: str,
    profile_name: str,
    output: str | None,
    force: bool,
    dry_run: bool,
    throttle_limit: int,
    recursive: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Transcode media under PATH with the encoder profile given by --profile."""

    json_enabled = json_output
    try:
        config = _load_config(_commandline_overrides(ctx, _TRANSCODE_OVERRIDES))
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )

        root = Path(path).expanduser().resolve()
        output_root = Path(output).expanduser().resolve() if output else None
        transcoder = Transcoder(config.transcode, force=force, dry_run=dry_run)
        batch = TranscodeBatch(transcoder, config.transcode.throttle_limit)
        show_details = not (quiet_enabled or summary_only or json_output)

        with _progress_bar(show_details) as progress:
            report = batch.run(
                root,
                profile_name,
                output_root=output_root,
                recursive=recursive,
                progress=_progress_callback(progress, "Transcoding"),
            )

        counts = report.counts()
        if json_output:
            console.print_json(
                data={
                    "context": {
                        "root": str(root),
                        "profile": profile_name,
                        "output_root": str(output_root) if output_root else None,
                        "dry_run": dry_run,
                    },
                    "counts": counts,
                    "outcomes": [outcome.model_dump(mode="json") for outcome in report.outcomes],
                }
            )
            return

        if show_details and report.outcomes:
            table = Table(title=f"Transcode results ({profile_name})")
            table.add_column("Source", overflow="fold")
            table.add_column("Destination", overflow="fold")
            table.add_column("Status")
            table.add_column("Size", justify="right")
            table.add_column("Note", overflow="fold")
            for outcome in report.outcomes[:_MAX_TABLE_ROWS]:
                size = f"{outcome.src_bytes}"
                if outcome.dst_bytes is not None:
                    size = f"{outcome.src_bytes} -> {outcome.dst_bytes}"
                table.add_row(
                    str(outcome.source.relative_to(root)),
                    outcome.destination.name,
                    outcome.status.value,
                    size,
                    outcome.error or "",
                )
            _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)

        failed = [item for item in report.outcomes if item.status is TranscodeStatus.FAILED]
        for outcome in failed:
            _emit_message(
                f"[red]{outcome.source}: {outcome.error}[/red]",
                mode="error",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )

        _emit_message(
            _format_summary_line("Transcode", root, counts),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except TranscodeError as exc:
        _handle_cli_error(str(exc), code="transcode_error", json_output=json_enabled, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while transcoding: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.group()
def config() -> None:
    """Manage assetprep configuration files and overrides.

    Returns:
        None: This function is invoked for its side effects.
    """


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML literal to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()
    before = manager.read_text().splitlines()

    try:
        manager.set_value(key, value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    diff = list(
        difflib.unified_diff(
            before,
            manager.read_text().splitlines(),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    edits = [
        line
        for line in diff
        if line[:1] in {"+", "-"}
        and not line.startswith(("+++", "---", f"+{STAMP_PREFIX}", f"-{STAMP_PREFIX}"))
    ]
    if not edits:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an editor and validate the result.

    Raises:
        click.ClickException: If the edited content is invalid.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes applied.[/yellow]")
        return

    try:
        manager.apply_text(edited)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Configuration updated.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point.

    Returns:
        None: This function is invoked for its side effects.
    """
    cli()


if __name__ == "__main__":
    main()
