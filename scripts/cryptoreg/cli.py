"""
Command-line interface for CryptoReg Pulse.

Provides commands for running the weekly regulatory scan, generating the AI
brief and inspecting the rolling history.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

# Load environment variables from .env file (if it exists)
load_dotenv()

from . import __version__
from .config import config
from .intelligence.aggregator import AggregationResult
from .intelligence.classifier import categorize_event, classify_severity, extract_jurisdiction
from .intelligence.fetcher import MissingCredentialError, RegulatoryEvent
from .intelligence.pipeline import EnrichmentPipeline, analyze_stored_events
from .intelligence.storage import EventStore, StorageError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)

SEVERITY_COLORS = {
    "critical": "red",
    "high": "yellow",
    "medium": "cyan",
    "low": "white",
}


def setup_file_logging() -> None:
    """Set up file logging if enabled."""
    if config.get("logging.file_enabled", True):
        log_file = config.logs_dir / "cryptoreg.log"
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(config.get("logging.format")))
        logging.getLogger().addHandler(file_handler)


@click.group()
@click.version_option(version=__version__, prog_name="cryptoreg")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """CryptoReg Pulse - Weekly crypto regulatory intelligence."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(config.get("logging.level", "INFO"))
    setup_file_logging()


def _print_events(result: AggregationResult, limit: int) -> None:
    """Print enriched events as a compact list."""
    for event in result.events[:limit]:
        color = SEVERITY_COLORS.get(event.severity, "white")
        label = click.style(f"[{str(event.severity).upper():8}]", fg=color, bold=True)
        timestamp = str(event.timestamp or "")[:10] or "----------"
        description = (event.description_text or "No description")[:70]
        click.echo(f"  {label} {timestamp}  {event.entity or 'Unknown'}: {description}")
        click.echo(f"             {event.jurisdiction} / {event.category}")

    if len(result.events) > limit:
        click.echo(f"  ... and {len(result.events) - limit} more events")


@cli.command()
@click.option("--no-analysis", is_flag=True, help="Skip the AI brief")
def run(no_analysis: bool) -> None:
    """
    Run the full weekly scan.

    Fetches every configured query, deduplicates and classifies the events,
    saves them with the updated history and, if a token is available,
    generates the AI brief.
    """
    click.echo(click.style("\nCryptoReg Pulse - Regulatory Scan", fg="bright_white", bold=True))
    click.echo("=" * 50)

    try:
        pipeline = EnrichmentPipeline()
        result = pipeline.run(analyze=not no_analysis, progress=True)
    except MissingCredentialError as err:
        click.echo(click.style(f"Error: {err}", fg="red"))
        raise SystemExit(1) from err
    except StorageError as err:
        click.echo(click.style(f"Update failed: {err}", fg="red"))
        logger.exception("Storage error")
        raise SystemExit(1) from err

    snapshot = result.snapshot
    click.echo(f"\nRaw events:     {result.raw_count}")
    click.echo(f"Saved events:   {len(result.events)}")
    if snapshot:
        click.echo(f"Critical:       {snapshot.critical}")
        click.echo(f"High:           {snapshot.high}")
        click.echo(f"History weeks:  {len(result.history)}")

    if result.query_errors:
        click.echo(click.style(f"\n{len(result.query_errors)} queries failed:", fg="yellow"))
        for error in result.query_errors:
            click.echo(f"  - {error}")

    if result.brief:
        click.echo(click.style(f"\nRisk level: {result.brief.risk_level}", bold=True))
        click.echo(result.brief.summary)
    elif not no_analysis:
        click.echo(click.style("\nNo AI brief generated", fg="yellow"))

    click.echo(click.style("\nUpdate complete!", fg="green"))


@cli.command()
@click.option(
    "-d", "--days", default=None, type=click.IntRange(1, 365), help="Days to look back (1-365)"
)
@click.option("-n", "--limit", default=25, help="Maximum events to show")
@click.option("--export", "export_path", type=click.Path(path_type=Path), help="Export to JSON file")
def fetch(days: Optional[int], limit: int, export_path: Optional[Path]) -> None:
    """Fetch and classify events without saving them."""
    try:
        pipeline = EnrichmentPipeline()
        result = pipeline.collect(days=days, progress=True)
    except MissingCredentialError as err:
        click.echo(click.style(f"Error: {err}", fg="red"))
        raise SystemExit(1) from err
    except StorageError as err:
        click.echo(click.style(f"Error: {err}", fg="red"))
        raise SystemExit(1) from err

    click.echo(click.style(f"\n{result}", fg="cyan"))
    if result.errors:
        click.echo(click.style(f"{len(result.errors)} errors during fetch", fg="yellow"))

    if not result.events:
        click.echo(click.style("No events found.", fg="yellow"))
        return

    _print_events(result, limit)

    if export_path:
        export_path.parent.mkdir(parents=True, exist_ok=True)
        with open(export_path, "w", encoding="utf-8") as f:
            json.dump([e.to_dict() for e in result.events], f, indent=2, ensure_ascii=False)
        click.echo(click.style(f"\nExported {len(result.events)} events to {export_path}", fg="green"))


@cli.command()
def analyze() -> None:
    """Generate the AI brief for the saved events."""
    try:
        brief = analyze_stored_events()
    except StorageError as err:
        click.echo(click.style(f"Error: {err}", fg="red"))
        raise SystemExit(1) from err

    if brief is None:
        click.echo(click.style("No AI brief generated", fg="yellow"))
        return

    click.echo(click.style(f"\nRisk level: {brief.risk_level}", fg="bright_white", bold=True))
    click.echo("=" * 50)
    click.echo(brief.summary)

    if brief.key_developments:
        click.echo("\nKey developments:")
        for dev in brief.key_developments:
            click.echo(f"  - {dev.get('title', '')} ({dev.get('jurisdiction', 'Unknown')})")
            if dev.get("impact"):
                click.echo(f"    {dev['impact']}")

    if brief.trends:
        click.echo("\nTrends:")
        for trend in brief.trends:
            click.echo(f"  - {trend}")

    if brief.outlook:
        click.echo(f"\nOutlook: {brief.outlook}")

    if brief.recommendations:
        click.echo("\nRecommendations:")
        for rec in brief.recommendations:
            click.echo(f"  - {rec}")


@cli.command()
@click.option("-n", "--limit", default=12, help="Number of weeks to show")
def history(limit: int) -> None:
    """Show the rolling weekly history."""
    try:
        snapshots = EventStore().load_history()
    except StorageError as err:
        click.echo(click.style(f"Error: {err}", fg="red"))
        raise SystemExit(1) from err

    if not snapshots:
        click.echo(click.style("No history yet.", fg="yellow"))
        return

    click.echo(click.style("\nWeekly History", fg="bright_white", bold=True))
    click.echo("=" * 40)
    click.echo(f"{'Week':12} {'Events':>7} {'Critical':>9} {'High':>6}")
    for snapshot in snapshots[-limit:]:
        click.echo(
            f"{snapshot.week:12} {snapshot.count:>7} {snapshot.critical:>9} {snapshot.high:>6}"
        )
    click.echo(f"\n{len(snapshots)} weeks recorded")


@cli.command()
@click.argument("text")
@click.option("-e", "--entity", help="Entity name")
def classify(text: str, entity: Optional[str]) -> None:
    """Classify TEXT with the severity, jurisdiction and category rules."""
    event = RegulatoryEvent(entity=entity, description=text)
    severity = classify_severity(event)

    click.echo(f"Severity:     {click.style(severity, fg=SEVERITY_COLORS.get(severity, 'white'))}")
    click.echo(f"Jurisdiction: {extract_jurisdiction(event)}")
    click.echo(f"Category:     {categorize_event(event)}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
