"""CLI interface for bookmark-router.

Commands:
    init       - Write a default config file
    run        - Fetch new bookmarks, enrich them and route each one
    list       - Show recently processed bookmarks
    reprocess  - Run a processed bookmark through again
    status     - Show config and state summary
"""

import sys
from datetime import timedelta
from pathlib import Path

import click

from .config import CONFIG_FILE, AppConfig, config_exists, load_config, save_config
from .logging_config import setup_logging


def _load(ctx) -> AppConfig:
    try:
        return load_config(ctx.obj["config_path"])
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _build_processor(config: AppConfig):
    """Wire up the ledger, collaborators and processor for one run."""
    # Lazy imports so --help stays fast
    from .agent import AnthropicDecider
    from .destinations import DestinationRegistry
    from .enrichment import Enricher
    from .processor import BookmarkProcessor
    from .source import BirdClient
    from .state import ProcessedLedger

    source = BirdClient(config.source.command, timeout=config.source.timeout)
    ledger = ProcessedLedger(config.state_path)
    enricher = Enricher(config.enrichment, thread_source=source)
    decider = AnthropicDecider(
        config.agent.api_key,
        config.agent.model,
        max_tokens=config.agent.max_tokens,
        timeout=config.agent.timeout,
    )
    processor = BookmarkProcessor(
        ledger,
        enricher,
        decider,
        DestinationRegistry.from_config(config),
        dry_run=config.dry_run,
    )
    return processor, source


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(), default=None, help="Config file path")
@click.pass_context
def main(ctx, verbose, config):
    """Bookmark Router — Enrich X/Twitter bookmarks and route them to your tools."""
    setup_logging(debug=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else CONFIG_FILE


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx, force):
    """Write a default config file."""
    config_path = ctx.obj["config_path"]
    if config_exists(config_path) and not force:
        click.echo(f"Config already exists at {config_path} (use --force to overwrite).")
        return
    save_config(AppConfig(), config_path)
    click.echo(f"Config saved to {config_path}")
    click.echo("Set ANTHROPIC_API_KEY, AUTH_TOKEN and CT0, then run 'bookmark-router run'.")


@main.command()
@click.option("--dry-run", is_flag=True, help="Validate routing but don't send or save")
@click.option("-n", "--count", type=int, default=None, help="Number of bookmarks to fetch")
@click.pass_context
def run(ctx, dry_run, count):
    """Fetch new bookmarks, enrich them and route each one."""
    from .source import SourceError

    config = _load(ctx)
    if dry_run:
        config.dry_run = True
    if count is not None:
        config.source.bookmark_count = count

    processor, source = _build_processor(config)
    ledger = processor.ledger

    click.echo(f"Mode: {'DRY RUN' if config.dry_run else 'LIVE'}")
    click.echo(f"State file: {config.state_path}")
    click.echo(f"Previously processed: {ledger.count} bookmarks")
    configured = processor.registry.configured_names()
    click.echo(f"Enabled destinations: {', '.join(configured) or 'none'}")
    click.echo(f"Fetching {config.source.bookmark_count} bookmarks...")

    try:
        with processor.enricher, processor.decider, processor.registry:
            summary = processor.run(
                source,
                config.source.bookmark_count,
                prune_max_age=timedelta(days=config.prune_days),
            )
    except SourceError as e:
        click.echo(f"Error: Failed to fetch bookmarks: {e}", err=True)
        click.echo("Make sure AUTH_TOKEN and CT0 environment variables are set.", err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(f"Error: Failed to save state to {config.state_path}: {e}", err=True)
        sys.exit(1)

    if summary.pruned:
        click.echo(f"Pruned {summary.pruned} old entries from state")
    click.echo(f"Fetched {summary.fetched} bookmarks, {summary.new} new.")
    if not summary.new:
        click.echo("No new bookmarks to process.")
        return

    click.echo("")
    click.echo("Summary")
    click.echo("=" * 40)
    click.echo(f"Processed: {summary.new}")
    click.echo(f"Success: {summary.succeeded}")
    click.echo(f"Errors: {summary.failed}")
    click.echo(f"Total in state: {ledger.count}")


@main.command(name="list")
@click.option("-n", "--limit", type=int, default=20, help="Number of entries to show")
@click.pass_context
def list_entries(ctx, limit):
    """Show recently processed bookmarks."""
    from .state import ProcessedLedger

    config = _load(ctx)
    ledger = ProcessedLedger(config.state_path)
    entries = ledger.get_recent_entries(limit)

    if not entries:
        click.echo("No processed bookmarks yet.")
        return

    click.echo(f"{'Index':>5} | {'ID':<19} | {'Author':<16} | {'Outcome':<20} | Date")
    click.echo("-" * 90)
    for i, entry in enumerate(entries, start=1):
        author = f"@{entry.author or 'unknown'}"
        if entry.error:
            outcome = f"ERROR {entry.error}"[:20]
        else:
            outcome = (entry.destination or "unknown")[:20]
        date = entry.processed_at.strftime("%Y-%m-%d %H:%M UTC")
        click.echo(f"{-i:>5} | {entry.id:<19} | {author:<16} | {outcome:<20} | {date}")

    click.echo(f"\nTotal: {ledger.count} processed bookmarks")
    click.echo("To reprocess: bookmark-router reprocess last   (or -N, or an ID)")


@main.command(context_settings={"ignore_unknown_options": True})
@click.argument("target")
@click.option("--dry-run", is_flag=True, help="Validate routing but don't send or save")
@click.pass_context
def reprocess(ctx, target, dry_run):
    """Run a processed bookmark through again.

    TARGET is 'last', a negative index such as -2 (second most recent),
    or a bookmark ID.
    """
    from .processor import ReprocessError

    config = _load(ctx)
    if dry_run:
        config.dry_run = True

    processor, source = _build_processor(config)
    click.echo(f"Mode: {'DRY RUN' if config.dry_run else 'LIVE'}")

    try:
        with processor.enricher, processor.decider, processor.registry:
            success = processor.reprocess(target, source)
    except ReprocessError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(f"Error: Failed to save state to {config.state_path}: {e}", err=True)
        sys.exit(1)

    if success:
        click.echo("Reprocessing complete.")
    else:
        click.echo("Reprocessing failed.", err=True)
        sys.exit(1)


@main.command()
@click.pass_context
def status(ctx):
    """Show config and state summary."""
    config_path = ctx.obj["config_path"]
    has_config = config_exists(config_path)

    click.echo("Bookmark Router — Status")
    click.echo("=" * 40)
    click.echo(f"Config: {'Found' if has_config else 'Not configured'} ({config_path})")

    config = _load(ctx)

    from .state import ProcessedLedger

    ledger = ProcessedLedger(config.state_path)
    click.echo(f"State file: {config.state_path}")
    click.echo(f"Processed bookmarks: {ledger.count}")
    if ledger.last_run:
        click.echo(f"Last run: {ledger.last_run.strftime('%Y-%m-%d %H:%M UTC')}")
    else:
        click.echo("Last run: never")
    click.echo(f"API key: {'set' if config.agent.api_key else 'missing (ANTHROPIC_API_KEY)'}")
