"""
Command-line interface for user-aggregator.

Fetches user records from the configured public APIs, normalizes them
into one schema and writes users.json or users.csv.

Usage:
    user-aggregator aggregate                       # Prompt for folder and format
    user-aggregator aggregate -o ./out -f csv       # Non-interactive
    user-aggregator aggregate --dry-run             # Fetch and normalize only
    user-aggregator sources                         # List configured sources
"""

import asyncio
import os
import sys

import click

from user_aggregator.config.settings import get_settings
from user_aggregator.ingestion.normalizer import UserNormalizer
from user_aggregator.ingestion.schemas import OutputFormat
from user_aggregator.observability.logging import setup_logging
from user_aggregator.output.writer import OutputWriteError
from user_aggregator.services.aggregation_service import (
    AggregationResult,
    AggregationService,
)

FORMAT_CHOICE = click.Choice([fmt.value for fmt in OutputFormat], case_sensitive=False)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """User Aggregator - Merge user records from several public APIs."""
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


def _print_summary(result: AggregationResult) -> None:
    click.echo("\nSources:")
    click.echo("-" * 60)
    for source in result.sources:
        if source.ok:
            line = f"  ✓ {source.url}: {source.accepted} users"
            if source.skipped:
                line += f" ({source.skipped} skipped)"
            click.echo(click.style(line, fg="green"))
        else:
            click.echo(click.style(f"  ✗ {source.url}: {source.error}", fg="red"))
    click.echo("-" * 60)


@main.command()
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False),
    default=None,
    help="Folder to write users.<format> into (prompted if omitted)",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=FORMAT_CHOICE,
    default=None,
    help="Output format (prompted if omitted)",
)
@click.option(
    "--source",
    "sources",
    multiple=True,
    help="Source URL to fetch (repeatable, overrides configured sources)",
)
@click.option("--require-email", is_flag=True, help="Skip records without an email")
@click.option("--dry-run", is_flag=True, help="Fetch and normalize without writing")
def aggregate(
    output_dir: str | None,
    output_format: str | None,
    sources: tuple[str, ...],
    require_email: bool,
    dry_run: bool,
) -> None:
    """Fetch users from all sources and write them to one file."""
    settings = get_settings()

    if not dry_run:
        output_dir = output_dir or settings.output_dir
        if not output_dir:
            output_dir = click.prompt(
                "Please enter the path to the folder",
                type=click.Path(file_okay=False),
            )

        output_format = output_format or settings.output_format
        if not output_format:
            # Invalid answers are rejected and asked again
            output_format = click.prompt(
                "Please enter the file format (JSON or CSV)",
                type=FORMAT_CHOICE,
            )

    service = AggregationService(
        source_urls=list(sources) or None,
        normalizer=UserNormalizer(require_email=require_email),
    )

    if dry_run:
        result = asyncio.run(service.collect())
        _print_summary(result)
        click.echo(f"Total number of users: {result.total_users} (dry run, nothing written)")
        return

    fmt = OutputFormat.parse(output_format)

    try:
        result = asyncio.run(service.run(output_dir, fmt))
    except OutputWriteError as e:
        click.echo(
            click.style(f"Error: cannot write output to {e.path}: {e}", fg="red"),
            err=True,
        )
        sys.exit(1)

    _print_summary(result)
    click.echo(f"Data written successfully to {result.output_path}")
    click.echo(f"Total number of users: {result.total_users}")


@main.command("sources")
def list_sources() -> None:
    """List the configured source URLs."""
    settings = get_settings()

    if not settings.source_urls:
        click.echo("No sources configured.")
        return

    click.echo("Configured sources:")
    for index, url in enumerate(settings.source_urls, start=1):
        click.echo(f"  {index}. {url}")


if __name__ == "__main__":
    main()
