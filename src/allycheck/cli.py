"""
allycheck CLI - run audits locally or serve the API.

Commands:
    allycheck scan <url>       Audit a URL and print prioritized issues
    allycheck scan <url> --json  Print the full API payload instead
    allycheck serve            Run the HTTP API with uvicorn
"""

import asyncio
import json
import logging

import typer
from rich.console import Console
from rich.table import Table

from .api.routes.scan import INVALID_URL_MESSAGE, to_scan_response
from .audit import AuditPipeline
from .config import AuditSettings
from .errors import ScanFailure
from .llm import create_assistant
from .scanner import AxeScanner
from .security import ValidationError, normalize_target_url

app = typer.Typer(help="Accessibility audits with scoring, validation and AI explanations")
console = Console()

IMPACT_STYLES = {
    "critical": "bold red",
    "serious": "red",
    "high": "red",
    "moderate": "yellow",
    "low": "cyan",
    "minor": "cyan",
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# =============================================================================
# SCAN
# =============================================================================


@app.command()
def scan(
    url: str = typer.Argument(..., help="URL to audit, e.g. example.com"),
    as_json: bool = typer.Option(False, "--json", help="Print the full JSON payload"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Audit a URL and print its score and prioritized issues."""
    _configure_logging(verbose)
    settings = AuditSettings.from_env()

    try:
        target = normalize_target_url(url, allow_private=settings.allow_private_targets)
    except ValidationError:
        console.print(f"[bold red]Error:[/bold red] {INVALID_URL_MESSAGE}")
        raise typer.Exit(2)

    pipeline = AuditPipeline(
        scanner=AxeScanner(settings), assistant=create_assistant(), settings=settings
    )

    try:
        with console.status(f"Scanning {target}..."):
            outcome = asyncio.run(pipeline.run(target))
    except ScanFailure as e:
        console.print(f"[bold red]Error:[/bold red] {e.public_message}")
        raise typer.Exit(1)

    if as_json:
        payload = to_scan_response(outcome).model_dump(by_alias=True)
        console.print_json(json.dumps(payload, default=str))
        return

    report = outcome.report
    explanations = outcome.explanations()

    console.print(f"\n[bold blue]{report.url}[/bold blue]")
    console.print(
        f"Score: [bold]{report.accessibility_score}[/bold]/100  "
        f"Quality: {outcome.validation.overall_quality} "
        f"({outcome.validation.validation_score})"
    )
    console.print(report.summary + "\n")

    table = Table(title="Prioritized Issues")
    table.add_column("#", justify="right")
    table.add_column("Impact")
    table.add_column("Rule", style="bold")
    table.add_column("WCAG")
    table.add_column("Elements", justify="right")
    table.add_column("Description")

    for rank, violation in enumerate(outcome.prioritized, start=1):
        style = IMPACT_STYLES.get(violation.impact, "")
        table.add_row(
            str(rank),
            f"[{style}]{violation.impact}[/{style}]" if style else violation.impact,
            violation.id,
            ", ".join(violation.wcag),
            str(len(violation.nodes)),
            violation.description,
        )
    console.print(table)

    for violation in outcome.prioritized:
        text = explanations.get(violation.position)
        if text:
            console.print(f"\n[bold]{violation.id}[/bold]: {text}")

    if not outcome.sanity.passed:
        console.print(f"\n[yellow]Sanity check failed: {', '.join(outcome.sanity.notes)}[/yellow]")


# =============================================================================
# SERVE
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes"),
):
    """Run the HTTP API."""
    import uvicorn

    _configure_logging(False)
    console.print(f"[bold blue]allycheck[/bold blue] serving on http://{host}:{port}")
    uvicorn.run(
        "allycheck.api.gateway:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    app()
