"""Command-line interface for zae-migrator."""

import asyncio
import logging
import sys

import click

from .exceptions import ZAEMigratorError
from .models import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_SEGMENTS,
    RunConfig,
)
from .naming import DESTINATION_TABLE_ENV_VAR, SOURCE_TABLE_ENV_VAR
from .repository import Repository
from .runner import MigrationRunner

_table_options = [
    click.option(
        "--source-table",
        envvar=SOURCE_TABLE_ENV_VAR,
        help="Table holding legacy records (default: registration-recovery-passwords)",
    ),
    click.option(
        "--destination-table",
        envvar=DESTINATION_TABLE_ENV_VAR,
        help="Table receiving migrated records (default: registration-recovery-passwords-v2)",
    ),
    click.option(
        "--region",
        help="AWS region (default: use boto3 defaults)",
    ),
    click.option(
        "--endpoint-url",
        help=(
            "AWS endpoint URL "
            "(e.g., http://localhost:4566 for LocalStack, or other AWS-compatible services)"
        ),
    ),
]


def table_options(func):  # type: ignore[no-untyped-def]
    """Attach the shared table/connection options to a command."""
    for option in reversed(_table_options):
        func = option(func)
    return func


@click.group()
@click.version_option(package_name="zae-migrator")
def cli() -> None:
    """zae-migrator registration recovery password migration CLI."""
    pass


@cli.command()
@table_options
@click.option(
    "--dry-run",
    type=click.BOOL,
    default=True,
    show_default=True,
    help="Inspect records without writing anything (pass --dry-run false to migrate)",
)
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_CONCURRENCY,
    help=f"Max concurrency for DynamoDB operations (default: {DEFAULT_MAX_CONCURRENCY})",
)
@click.option(
    "--segments",
    type=click.IntRange(min=1),
    default=DEFAULT_SEGMENTS,
    help=f"The total number of segments for a DynamoDB scan (default: {DEFAULT_SEGMENTS})",
)
@click.option(
    "--buffer",
    "buffer_size",
    type=click.IntRange(min=1),
    default=DEFAULT_BUFFER_SIZE,
    help=f"Records to buffer and shuffle per window (default: {DEFAULT_BUFFER_SIZE})",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    help="Logging level (default: INFO)",
)
def migrate(
    source_table: str | None,
    destination_table: str | None,
    region: str | None,
    endpoint_url: str | None,
    dry_run: bool,
    max_concurrency: int,
    segments: int,
    buffer_size: int,
    log_level: str,
) -> None:
    """Migrate phone-number-keyed recovery passwords to the new table."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        config = RunConfig(
            dry_run=dry_run,
            max_concurrency=max_concurrency,
            segments=segments,
            buffer_size=buffer_size,
        )
        repository = Repository(
            source_table=source_table,
            destination_table=destination_table,
            region=region,
            endpoint_url=endpoint_url,
        )
    except ZAEMigratorError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    async def _migrate() -> None:
        async with repository:
            click.echo(f"Migrating: {repository.source_table} -> {repository.destination_table}")
            click.echo(f"  Dry run: {'yes' if config.dry_run else 'no'}")
            click.echo(f"  Segments: {config.segments}")
            click.echo(f"  Buffer: {config.buffer_size}")
            click.echo(f"  Max concurrency: {config.max_concurrency}")
            click.echo()

            try:
                summary = await MigrationRunner(repository, config).run()
            except Exception as e:
                click.echo(f"✗ Migration failed: {e}", err=True)
                sys.exit(1)

            click.echo(f"✓ Migration {'dry run ' if summary.dry_run else ''}complete")
            click.echo(f"  Records inspected: {summary.inspected}")
            click.echo(f"  Records migrated: {summary.migrated}")
            if summary.abandoned:
                click.echo(f"  Records abandoned: {summary.abandoned}")
            click.echo(f"  Elapsed: {summary.elapsed_seconds:.1f}s")

    asyncio.run(_migrate())


@cli.command()
@table_options
def create_tables(
    source_table: str | None,
    destination_table: str | None,
    region: str | None,
    endpoint_url: str | None,
) -> None:
    """Create the source and destination tables (for local development)."""

    async def _create() -> None:
        async with Repository(
            source_table=source_table,
            destination_table=destination_table,
            region=region,
            endpoint_url=endpoint_url,
        ) as repository:
            try:
                await repository.create_tables()
            except Exception as e:
                click.echo(f"✗ Table creation failed: {e}", err=True)
                sys.exit(1)
            click.echo(f"✓ Tables ready: {repository.source_table}, {repository.destination_table}")

    try:
        asyncio.run(_create())
    except ZAEMigratorError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
