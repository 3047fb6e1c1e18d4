"""
Command line entry point.

Run with: demomed-assess [--dry-run] [--show-config]
"""

import asyncio

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.demomed.client import DemoMedClient
from core.config import AppConfig, print_config_summary, validate_config
from core.errors import AssessmentError
from core.observability import configure_logging
from core.services.assessment import AssessmentOutcome, AssessmentService
from core.services.resilient_fetcher import ResilientFetcher

app = typer.Typer(add_completion=False, help="Patient risk assessment against the DemoMed API")
console = Console()
logger = structlog.get_logger(__name__)


async def run_assessment(config: AppConfig, submit: bool = True) -> AssessmentOutcome:
    """Wire fetcher, client and service from config and run once."""
    async with ResilientFetcher(
        policy=config.retry, timeout_seconds=config.api.request_timeout_seconds
    ) as fetcher:
        client = DemoMedClient(config.api, fetcher)
        service = AssessmentService(client, config.scoring)
        return await service.run(submit=submit)


def render_outcome(outcome: AssessmentOutcome) -> None:
    table = Table(title="Assessment Results")
    table.add_column("List", style="cyan")
    table.add_column("Patients", justify="right")
    table.add_column("IDs")

    payload = outcome.payload
    for name, ids in (
        ("high_risk_patients", payload.high_risk_patients),
        ("fever_patients", payload.fever_patients),
        ("data_quality_issues", payload.data_quality_issues),
    ):
        table.add_row(name, str(len(ids)), ", ".join(ids))

    console.print(table)
    console.print(
        f"Records seen: {outcome.summary.records_seen}, "
        f"skipped without id: {outcome.summary.records_skipped}, "
        f"assessed: {outcome.summary.patients_assessed} "
        f"({outcome.duration_seconds}s)"
    )

    if outcome.submitted:
        console.print(Panel.fit(str(outcome.acknowledgment), title="Assessment Response"))
    else:
        console.print(Panel.fit(payload.model_dump_json(indent=2), title="Dry run: not submitted"))


@app.command()
def main(
    dry_run: bool = typer.Option(False, "--dry-run", help="Fetch and classify without submitting"),
    show_config: bool = typer.Option(False, "--show-config", help="Print configuration first"),
) -> None:
    """Fetch all patients, classify risk and submit the three alert lists."""
    try:
        config = validate_config()
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Configuration invalid:[/red] {e}")
        raise typer.Exit(code=1)

    configure_logging(config.logging)
    if show_config:
        print_config_summary()

    try:
        outcome = asyncio.run(run_assessment(config, submit=not dry_run))
    except AssessmentError as e:
        logger.error("assessment_failed", error_type=type(e).__name__, error=str(e))
        console.print(f"[red]Assessment failed:[/red] {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        logger.exception("assessment_crashed", error=str(e))
        console.print(f"[red]Fatal error:[/red] {e}")
        raise typer.Exit(code=1)

    render_outcome(outcome)


if __name__ == "__main__":
    app()
