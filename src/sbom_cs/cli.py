from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from .config import REPORT_FORMATS, get_settings
from .criteria import NTIA_CRITERIA
from .sbom_loader import SbomLoadError
from .service import ComplianceService

app = typer.Typer(help="SBOM compliance scorer")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)


@app.command()
def compliance(
    paths: Annotated[
        List[Path],
        typer.Argument(exists=True, readable=True, dir_okay=False, help="SBOM files (SPDX or CycloneDX JSON)"),
    ],
    report_format: Annotated[
        Optional[str],
        typer.Option("--format", "-f", help=f"Report format: {', '.join(REPORT_FORMATS)}"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the report to a file instead of stdout"),
    ] = None,
) -> None:
    """Score SBOMs against the NTIA minimum elements."""
    if report_format is not None and report_format not in REPORT_FORMATS:
        raise typer.BadParameter(f"expected one of {', '.join(REPORT_FORMATS)}", param_hint="--format")

    service = ComplianceService(report_format=report_format)
    try:
        if output is None:
            service.run_many(paths, sys.stdout)
        else:
            output.parent.mkdir(parents=True, exist_ok=True)
            with output.open("w", encoding="utf-8") as fh:
                service.run_many(paths, fh)
            typer.echo(f"[sbom-cs] report written to {output}")
    except SbomLoadError as exc:
        typer.echo(f"[sbom-cs] {exc}", err=True)
        raise typer.Exit(code=1)


@app.command()
def criteria() -> None:
    """List the NTIA minimum-element criteria."""
    typer.echo("NTIA minimum elements:")
    for key, criterion in sorted(NTIA_CRITERIA.items()):
        marker = "" if criterion.required else "*"
        typer.echo(f"- {key}: {criterion.section_id}{marker} {criterion.data_field} ({criterion.title})")


@app.command()
def serve(
    host: Annotated[str, typer.Option()] = "127.0.0.1",
    port: Annotated[int, typer.Option()] = 8000,
) -> None:
    from uvicorn import run

    from .api import build_app

    typer.echo(f"[sbom-cs] starting API on http://{host}:{port}")
    run(build_app(), host=host, port=port)
