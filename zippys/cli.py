"""zippys CLI: generate and detect Zip Slip archives.

Commands:
- generate OUTPUT [-p PAYLOAD ...] [-d DEPTH]
- scan SOURCE... [--json] [--fail-on-findings]
- test (built-in classifier self test)

Exit codes: 0 ok, 1 error (bad args, unreadable archive, failed self test),
2 vulnerable entries found when --fail-on-findings is set.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from zippys import __version__
from zippys.conformance.selftest import run_self_tests
from zippys.logging import set_level
from zippys.package.zip import CLI_DEFAULT_PAYLOADS, DEFAULT_DEPTH, make_traversal_zip
from zippys.security.archive import scan_sources
from zippys.validator import dump_scan_reports

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Zip Slip security tool: generate and detect path traversal archives",
)
console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

BANNER = f"""
 ███████╗██╗██████╗ ██████╗ ██╗   ██╗███████╗
 ╚══███╔╝██║██╔══██╗██╔══██╗╚██╗ ██╔╝██╔════╝
   ███╔╝ ██║██████╔╝██████╔╝ ╚████╔╝ ███████╗
  ███╔╝  ██║██╔═══╝ ██╔═══╝   ╚██╔╝  ╚════██║
 ███████╗██║██║     ██║        ██║   ███████║
 ╚══════╝╚═╝╚═╝     ╚═╝        ╚═╝   ╚══════╝

 Zip Slip Security Tool v{__version__}
 path traversal detection and exploitation
"""


class LogLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"


def _tagged(tag: str, style: str, *parts: str) -> Text:
    # Entry names are untrusted; never let them through as markup
    return Text.assemble("[", (tag, style), "] ", *parts)


def _emit(text: Text, err: bool = False) -> None:
    # soft wrap keeps long archive paths on one line
    (err_console if err else console).print(text, soft_wrap=True)


def _banner(ctx: typer.Context) -> None:
    if not (ctx.obj or {}).get("quiet"):
        console.print(Text(BANNER, style="cyan"))


def _fail(message: str, code: int = 1) -> typer.Exit:
    _emit(_tagged("ERROR", "red", message), err=True)
    return typer.Exit(code=code)


def _version(value: bool) -> None:
    if value:
        console.print(f"zippys {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print the banner"),
    log_level: LogLevel | None = typer.Option(
        None, "--log-level", help="Override ZIPPYS_LOG_LEVEL", case_sensitive=False
    ),
    version: bool = typer.Option(
        False, "--version", callback=_version, is_eager=True, help="Show version and exit"
    ),
) -> None:
    ctx.obj = {"quiet": quiet}
    if log_level is not None:
        set_level(log_level.value)


@app.command()
def generate(
    ctx: typer.Context,
    output: Path = typer.Argument(..., help="Zip file to create"),
    payloads: list[str] = typer.Option(
        list(CLI_DEFAULT_PAYLOADS), "--payloads", "-p", help="Payload path (repeatable)"
    ),
    depth: int = typer.Option(
        DEFAULT_DEPTH, "--depth", "-d", min=0, help="Directory traversal depth"
    ),
) -> None:
    """Generate a malicious zip file with path traversal payloads."""
    _banner(ctx)
    try:
        result = make_traversal_zip(output, payloads, depth)
    except (OSError, ValueError) as exc:
        raise _fail(str(exc)) from exc
    _emit(_tagged("SUCCESS", "green", "Generated malicious ZIP: ", result.path))


@app.command()
def scan(
    ctx: typer.Context,
    sources: list[str] = typer.Argument(..., help="Zip files or http(s) URLs"),
    json_out: bool = typer.Option(False, "--json", help="Print reports as JSON"),
    fail_on_findings: bool = typer.Option(
        False, "--fail-on-findings", help="Exit 2 if any archive is vulnerable"
    ),
) -> None:
    """Scan zip files for path traversal vulnerabilities."""
    if not json_out:
        _banner(ctx)
        _emit(
            _tagged(
                "INFO",
                "blue",
                f"Scanning {len(sources)} ZIP file(s) for path traversal vulnerabilities...",
            )
        )

    reports = scan_sources(sources)

    if json_out:
        typer.echo(dump_scan_reports(reports))
    else:
        table = Table(header_style="green underline")
        table.add_column("ZIP File")
        table.add_column("Status", no_wrap=True)
        table.add_column("Vulnerable Paths")
        for r in reports:
            if r.status == "error":
                _emit(_tagged("ERROR", "red", f"Error scanning {r.source}: {r.error}"), err=True)
                status, detail = Text("ERROR", style="red"), Text(r.error or "")
            elif r.vulnerable:
                status = Text("VULNERABLE", style="red")
                detail = Text(", ".join(r.vulnerable_paths))
            else:
                status, detail = Text("SAFE", style="green"), Text("")
            table.add_row(Text(r.source, style="yellow"), status, detail)
        console.print(table)

    if any(r.status == "error" for r in reports):
        raise typer.Exit(code=1)
    if fail_on_findings and any(r.vulnerable for r in reports):
        raise typer.Exit(code=2)


@app.command("test")
def self_test(ctx: typer.Context) -> None:
    """Run the built-in path traversal detection tests."""
    _banner(ctx)
    summary = run_self_tests()
    _emit(_tagged("INFO", "blue", f"Running {len(summary.results)} test cases..."))
    for i, r in enumerate(summary.results, start=1):
        label = f"'{r.case.path}' ({r.case.reason})"
        if r.passed:
            _emit(_tagged("✓", "green", f"Test {i} PASSED: {label}"))
        else:
            _emit(
                _tagged(
                    "✗",
                    "red",
                    f"Test {i} FAILED: {label} - Expected: {r.case.vulnerable}, Got: {r.got}",
                )
            )
    console.print()
    _emit(
        _tagged(
            "SUMMARY",
            "blue",
            f"Test Results: {summary.passed} passed, {summary.failed} failed",
        )
    )
    if summary.failed:
        raise _fail(f"{summary.failed} test(s) failed")
    _emit(_tagged("SUCCESS", "green", "All tests completed successfully!"))


if __name__ == "__main__":
    app()
