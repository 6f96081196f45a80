"""auditgate CLI: Typer application with check, exceptions, and init commands."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from auditgate import __version__

app = typer.Typer(
    name="auditgate",
    help="Fail CI on npm audit findings that have no valid exception.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _load_config(config: Optional[str]):
    """Load config from the current directory, exit 2 on failure."""
    from auditgate.config.loader import ConfigError, load_config

    try:
        return load_config(Path.cwd(), config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


def _load_exceptions(cfg):
    """Build the exception set from the exceptions file and config lists."""
    from auditgate.config.loader import ConfigError
    from auditgate.exceptions.store import build_exception_set, load_declarations

    path = Path.cwd() / cfg.audit.exceptions_file
    try:
        declarations = load_declarations(path)
    except ConfigError as exc:
        console.print(f"[bold red]Exceptions error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    return build_exception_set(declarations, cfg.audit.exclude, cfg.audit.module_ignore)


def _read_report(report: str) -> bytes:
    """Raw report bytes; decoding is left to the parser."""
    if report == "-":
        return sys.stdin.buffer.read()
    path = Path(report)
    try:
        return path.read_bytes()
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] cannot read {escape(report)}: {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


# ── check ─────────────────────────────────────────────────────────────────────


@app.command()
def check(
    report: str = typer.Argument("-", help="npm audit --json report file, or - for stdin"),
    level: Optional[str] = typer.Option(None, "--level", "-l", help="Minimum severity: info | low | moderate | high | critical"),
    exclude: Optional[str] = typer.Option(None, "--exclude", "-x", help="Comma-separated advisory ids to except"),
    module_ignore: Optional[str] = typer.Option(None, "--module-ignore", "-m", help="Comma-separated module names to except"),
    include_columns: Optional[str] = typer.Option(None, "--include-columns", "-i", help="Comma-separated report columns"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .auditgate.toml"),
    exceptions_file: Optional[str] = typer.Option(None, "--exceptions-file", "-e", help="Path to the exceptions file"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the JSON report to file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Check an npm audit report against the severity level and exceptions."""
    from auditgate.config.loader import normalize, split_csv
    from auditgate.config.schema import OUTPUT_FORMATS
    from auditgate.output import json_report, terminal
    from auditgate.output.report import assemble
    from auditgate.reconciler.engine import process_payload
    from auditgate.reconciler.severity import admissible_severities

    cfg = _load_config(config)

    # --- CLI overrides ---
    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {escape(format)}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    if level is not None:
        cfg.audit.level = level
    if exclude:
        cfg.audit.exclude.extend(split_csv(exclude))
    if module_ignore:
        cfg.audit.module_ignore.extend(split_csv(module_ignore))
    if include_columns:
        cfg.output.columns = split_csv(include_columns)
    if exceptions_file:
        cfg.audit.exceptions_file = exceptions_file
    normalize(cfg)

    exceptions = _load_exceptions(cfg)
    admissible = admissible_severities(cfg.audit.level)

    if verbose:
        console.print(f"[dim]Audit level: {cfg.audit.level}[/dim]")
        console.print(f"[dim]Exceptions file: {escape(cfg.audit.exceptions_file)}[/dim]")
        console.print(
            f"[dim]Exceptions: {len(exceptions.ids())} ids, "
            f"{len(exceptions.modules())} modules[/dim]"
        )

    payload = _read_report(report)
    result = process_payload(payload, exceptions, admissible)
    assembled = assemble(result, exceptions, cfg.output.columns)

    if verbose and not result.failed:
        console.print(f"[dim]Reported findings: {len(result.report_rows)}[/dim]")

    # --- Output ---
    report_text: Optional[str] = None

    if cfg.output.format == "json":
        report_text = json_report.render(result, assembled)
        print(report_text)
        if result.failed:
            console.print("[bold red]Unable to process the audit report.[/bold red]")
    else:
        terminal.render(
            result,
            assembled,
            show_exceptions=cfg.output.show_exceptions,
            show_summary=cfg.output.show_summary,
            exceptions_file=cfg.audit.exceptions_file,
            console=console,
        )

    # --- Write to file ---
    if output:
        if report_text is None:
            report_text = json_report.render(result, assembled)
        Path(output).write_text(report_text, encoding="utf-8")
        if verbose:
            console.print(f"[dim]Report written to {escape(output)}[/dim]")

    # --- Exit code ---
    if not result.passed:
        raise typer.Exit(code=1)
    raise typer.Exit(code=0)


# ── exceptions ────────────────────────────────────────────────────────────────


@app.command()
def exceptions(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .auditgate.toml"),
    exceptions_file: Optional[str] = typer.Option(None, "--exceptions-file", "-e", help="Path to the exceptions file"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
) -> None:
    """List declared exceptions with their current status."""
    import json

    from auditgate.config.schema import OUTPUT_FORMATS
    from auditgate.output import terminal
    from auditgate.output.report import AssembledReport

    cfg = _load_config(config)
    if exceptions_file:
        cfg.audit.exceptions_file = exceptions_file
    fmt = format or cfg.output.format
    if fmt not in OUTPUT_FORMATS:
        console.print(f"[bold red]Invalid format:[/bold red] {escape(fmt)}")
        raise typer.Exit(code=2)

    declared = _load_exceptions(cfg)
    report = AssembledReport(exception_rows=declared.report_rows())

    if fmt == "json":
        print(json.dumps(report.as_dicts()["exceptions"], indent=2))
        raise typer.Exit(code=0)

    if not report.exception_rows:
        console.print(f"[green]No exceptions declared in {escape(cfg.audit.exceptions_file)}.[/green]")
        raise typer.Exit(code=0)

    terminal.render_exceptions(console, report)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing .auditgate.toml"),
) -> None:
    """Generate a starter .auditgate.toml in the current directory."""
    from auditgate.config.defaults import DEFAULT_TOML
    from auditgate.config.loader import CONFIG_FILENAME

    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists() and not force:
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {escape(str(config_path))}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {escape(str(config_path))}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"auditgate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """auditgate: Fail CI on npm audit findings that have no valid exception."""
