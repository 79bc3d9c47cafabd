"""kotaemon-install CLI.

Running without a subcommand provisions everything and launches the app:
- --workdir DIR (defaults to the current directory)
- --skip-ollama (do not install the local model runtime)
- --pdfjs-sha256 HEX (verify the PDF.js archive)
- --no-launch (stop after provisioning)
- --pause (wait for Enter before exiting)
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich import print as rprint

from kotaemon_installer.config import build_config
from kotaemon_installer.core import PipelineOptions, run_pipeline
from kotaemon_installer.errors import InstallerError
from kotaemon_installer.installer.fetch import fetch_and_extract, make_client
from kotaemon_installer.logging import get_logger, set_level
from kotaemon_installer.planner import emit_install_plan
from kotaemon_installer.preflight import check_path_for_spaces

app = typer.Typer(
    add_completion=False,
    invoke_without_command=True,
    help="Provision the local kotaemon environment and launch the web UI",
)
log = get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _fail(exc: InstallerError) -> typer.Exit:
    rprint(f"[red]{exc}[/red]")
    if exc.hint:
        rprint(f"[yellow]{exc.hint}[/yellow]")
    log.error("%s: %s", type(exc).__name__, exc)
    return typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    workdir: Path | None = typer.Option(None, "--workdir", help="Project root (default: CWD)"),
    skip_ollama: bool = typer.Option(False, "--skip-ollama", help="Do not install Ollama"),
    pdfjs_sha256: str | None = typer.Option(
        None, "--pdfjs-sha256", help="Expected SHA-256 of the PDF.js archive"
    ),
    launch: bool = typer.Option(True, "--launch/--no-launch", help="Start the web UI at the end"),
    pause: bool = typer.Option(False, "--pause/--no-pause", help="Wait for Enter before exiting"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    if log_level.upper() not in LOG_LEVELS:
        raise typer.BadParameter(
            f"expected one of {', '.join(LOG_LEVELS)}", param_hint="--log-level"
        )
    set_level(log_level)
    if ctx.invoked_subcommand is not None:
        return

    try:
        root = check_path_for_spaces(workdir)
        config = build_config(root, pdfjs_sha256=pdfjs_sha256)
        with make_client() as client:
            run_pipeline(
                config,
                client,
                PipelineOptions(skip_ollama=skip_ollama, launch=launch),
            )
    except InstallerError as exc:
        raise _fail(exc) from exc

    rprint("[green]Done.[/green]")
    if pause:
        typer.prompt("Press enter to exit", default="", show_default=False)


@app.command()
def plan(
    workdir: Path | None = typer.Option(None, "--workdir", help="Project root (default: CWD)"),
    out: str | None = typer.Option(None, "--out", help="Write to file instead of stdout"),
) -> None:
    """Print the resolved configuration and step order without running anything."""
    try:
        config = build_config(check_path_for_spaces(workdir))
    except InstallerError as exc:
        raise _fail(exc) from exc
    payload = emit_install_plan(config)
    if out:
        Path(out).write_text(payload, encoding="utf-8")
        rprint(f"[green]Plan written:[/green] {out}")
    else:
        print(payload)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="URL of a zip archive"),
    dest: Path = typer.Argument(..., help="Directory to extract into"),
    sha256: str | None = typer.Option(None, "--sha256", help="Expected digest"),
    retries: int = typer.Option(3, "--retries", min=1, help="Download attempts"),
) -> None:
    """Download and unpack an archive unless DEST already exists."""
    try:
        done = fetch_and_extract(url, dest.resolve(), expected_sha256=sha256, retries=retries)
    except InstallerError as exc:
        raise _fail(exc) from exc
    if done:
        rprint(f"[green]Extracted:[/green] {dest}")
    else:
        rprint(f"[yellow]Skipped, already present:[/yellow] {dest}")


@app.command()
def verify(
    file: Path = typer.Argument(..., help="Path to a downloaded file"),
    sha256: str = typer.Argument(..., help="Expected digest (hex or sha256:<hex>)"),
) -> None:
    from kotaemon_installer.signing.checks import verify_sha256

    try:
        verify_sha256(file, expected=sha256)
    except InstallerError as exc:
        raise _fail(exc) from exc
    rprint("[green]SHA-256 verified.[/green]")


if __name__ == "__main__":
    app()
