"""Rich terminal reporter: vulnerability and exception tables, verdict."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from auditgate.findings.models import ReconciliationResult
from auditgate.output.report import AssembledReport

_SEVERITY_STYLE = {
    "critical": "bold white on red",
    "high": "bold white on dark_orange",
    "moderate": "bold black on yellow",
    "low": "bold black on bright_cyan",
    "info": "dim",
}

_STATUS_STYLE = {
    "active": "green",
    "expired": "red",
    "invalid": "red",
    "inactive": "yellow",
}


def _severity_pill(severity: str) -> Text:
    return Text(f" {severity.upper()} ", style=_SEVERITY_STYLE.get(severity, ""))


def render_vulnerabilities(console: Console, report: AssembledReport) -> None:
    table = Table(
        title="=== npm audit security report ===",
        show_lines=True,
        title_style="bold",
        border_style="dim",
    )
    for header in report.vulnerability_headers:
        if header in ("Title", "Paths"):
            table.add_column(header, overflow="fold")
        elif header == "Severity":
            table.add_column(header, justify="center")
        else:
            table.add_column(header, style="cyan" if header == "ID" else None)

    for row in report.vulnerability_rows:
        cells = []
        for header, cell in zip(report.vulnerability_headers, row):
            if header == "Severity":
                cells.append(_severity_pill(cell))
            elif header == "Ex.":
                cells.append(Text(cell, style="green" if cell == "y" else "red"))
            else:
                cells.append(Text(cell))
        table.add_row(*cells)

    console.print(table)


def render_exceptions(console: Console, report: AssembledReport) -> None:
    table = Table(
        title="=== list of exceptions ===",
        show_lines=True,
        title_style="bold",
        border_style="dim",
    )
    for header in report.exception_headers:
        table.add_column(header, overflow="fold" if header == "Notes" else "ellipsis")

    for key, status, expiry, notes in report.exception_rows:
        table.add_row(
            Text(key, style="cyan"),
            Text(status, style=_STATUS_STYLE.get(status, "")),
            Text(expiry),
            Text(notes),
        )

    console.print(table)


def render_unused(console: Console, result: ReconciliationResult, exceptions_file: str) -> None:
    """Warn about exceptions that matched nothing; never fatal."""
    ids = result.unused_exception_ids
    modules = result.unused_exception_modules
    if ids:
        console.print(
            f"[yellow]⚠  {len(ids)} of the excluded vulnerabilities did not match any of "
            f"the found vulnerabilities: {escape(', '.join(ids))}. They can be removed "
            f"from {escape(exceptions_file)} or the --exclude flag.[/yellow]"
        )
    if modules:
        console.print(
            f"[yellow]⚠  {len(modules)} of the ignored modules did not match any of "
            f"the found vulnerabilities: {escape(', '.join(modules))}. They can be removed "
            f"from {escape(exceptions_file)} or the --module-ignore flag.[/yellow]"
        )


def render_verdict(console: Console, result: ReconciliationResult) -> None:
    console.print()
    if result.failed:
        console.print("[bold red]Unable to process the audit report.[/bold red]")
    elif result.unhandled_ids:
        ids = ", ".join(str(i) for i in result.unhandled_ids)
        console.print(
            f"[bold red]❌ {len(result.unhandled_ids)} vulnerabilities found. "
            f"Advisories: {escape(ids)}[/bold red]"
        )
    else:
        console.print("[bold green]🤝  All good![/bold green]")


def _print_summary(console: Console, result: ReconciliationResult) -> None:
    excepted = sum(1 for row in result.report_rows if row.excepted)
    console.print()
    console.print(f"[dim]Reported:[/dim]   {len(result.report_rows)}")
    console.print(f"[dim]Excepted:[/dim]   {excepted}")
    console.print(f"[dim]Unhandled:[/dim]  {len(result.unhandled_ids)}")
    console.print(f"[dim]Unused:[/dim]     {len(result.unused_exceptions)}")


def render(
    result: ReconciliationResult,
    report: AssembledReport,
    *,
    show_exceptions: bool = True,
    show_summary: bool = True,
    exceptions_file: str = ".nsprc",
    console: Optional[Console] = None,
) -> None:
    """Print the reports and the verdict to the terminal using Rich."""
    console = console or Console(stderr=True)

    if result.failed:
        render_verdict(console, result)
        return

    if show_exceptions and report.exception_rows:
        console.print()
        render_exceptions(console, report)

    if report.vulnerability_rows:
        console.print()
        render_vulnerabilities(console, report)

    render_unused(console, result, exceptions_file)

    if show_summary:
        _print_summary(console, result)

    render_verdict(console, result)
