"""CLI entry point for dep-inventory."""

import asyncio
from pathlib import Path
from typing import Callable, Optional

import click
import structlog

from dep_inventory.aggregator import Aggregator
from dep_inventory.config import InventoryConfig
from dep_inventory.errors import InventoryError
from dep_inventory.installer import NpmInstaller
from dep_inventory.manifest import DEFAULT_INTERNAL_PREFIXES
from dep_inventory.models import AggregateReport
from dep_inventory.report import render_html, write_report
from dep_inventory.resolver import MetadataResolver

log = structlog.get_logger("dep_inventory.cli")


async def run_inventory(
    config: InventoryConfig,
    on_status: Optional[Callable[[str], None]] = None,
) -> AggregateReport:
    """Aggregate, render and write the report described by *config*."""
    applications = config.require_applications()
    installer = NpmInstaller(
        command=(config.npm_command, "install"),
        retries=config.install_retries,
    )
    aggregator = Aggregator(
        MetadataResolver(installer),
        internal_prefixes=config.internal_prefixes,
        max_concurrency=config.max_concurrency,
        keep_going=config.keep_going,
        on_status=on_status,
    )
    report = await aggregator.aggregate(applications)
    write_report(
        render_html(report, include_conflicts=config.include_conflicts),
        config.output,
    )
    return report


@click.command()
@click.argument(
    "applications",
    nargs=-1,
    type=click.Path(file_okay=False, path_type=Path),
    envvar="DEP_INVENTORY_APPLICATIONS",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default="dependencies.html",
    show_default=True,
    envvar="DEP_INVENTORY_OUTPUT",
    help="Where to write the HTML report.",
)
@click.option(
    "--internal-prefix",
    "internal_prefixes",
    multiple=True,
    default=DEFAULT_INTERNAL_PREFIXES,
    show_default=True,
    envvar="DEP_INVENTORY_INTERNAL_PREFIXES",
    help="Identifier prefix excluded from the report (repeatable).",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=4,
    show_default=True,
    envvar="DEP_INVENTORY_CONCURRENCY",
    help="Parallel metadata lookups within one application.",
)
@click.option(
    "--install-retries",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    envvar="DEP_INVENTORY_INSTALL_RETRIES",
    help="Extra attempts when npm install fails.",
)
@click.option(
    "--keep-going/--fail-fast",
    default=False,
    show_default=True,
    envvar="DEP_INVENTORY_KEEP_GOING",
    help="Skip dependencies that fail to install or resolve instead of aborting.",
)
@click.option(
    "--conflicts",
    "include_conflicts",
    is_flag=True,
    envvar="DEP_INVENTORY_CONFLICTS",
    help="Add a table of dependencies declared with different versions.",
)
@click.option(
    "--npm",
    "npm_command",
    default="npm",
    show_default=True,
    envvar="DEP_INVENTORY_NPM",
    help="npm executable used to install missing node_modules.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    applications: tuple[Path, ...],
    output: Path,
    internal_prefixes: tuple[str, ...],
    concurrency: int,
    install_retries: int,
    keep_going: bool,
    include_conflicts: bool,
    npm_command: str,
    verbose: bool,
) -> None:
    """Report the third-party dependencies of one or more APPLICATIONS.

    Each APPLICATION is a directory containing a package.json.
    """
    from dep_inventory.logconfig import bind_run, setup_logging

    setup_logging("DEBUG" if verbose else None)

    config = InventoryConfig(
        applications=list(applications),
        output=output,
        internal_prefixes=list(internal_prefixes),
        max_concurrency=concurrency,
        install_retries=install_retries,
        keep_going=keep_going,
        include_conflicts=include_conflicts,
        npm_command=npm_command,
    )
    bind_run(config)
    log.info("cli.run_start", output=str(config.output))

    def on_status(msg: str) -> None:
        log.debug("cli.status", msg=msg)

    try:
        report = asyncio.run(run_inventory(config, on_status=on_status))
    except InventoryError as e:
        log.error("cli.failed", error=str(e))
        raise click.ClickException(str(e)) from e

    click.echo(f"Wrote {config.output} ({report.total} dependencies)")
    if report.is_partial:
        click.echo(f"Skipped {len(report.failures)} entries:", err=True)
        for f in report.failures:
            what = f.identifier or "(install)"
            click.echo(f"  {f.application}: {what}: {f.error}", err=True)
        ctx.exit(2)


def main() -> None:
    """Load .env, then run the CLI."""
    from dotenv import load_dotenv

    load_dotenv()  # DEP_INVENTORY_* defaults

    cli()


if __name__ == "__main__":
    main()
