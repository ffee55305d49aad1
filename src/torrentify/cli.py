"""Command-line interface for torrentify."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import TorrentifyConfig, create_sample_config, load_config
from .core.fingerprint import FingerprintGate
from .core.orchestrator import TorrentifyOrchestrator
from .core.stats import render_summary
from .error_handling import (
    ConfigurationError,
    check_dependencies,
    graceful_exit,
    handle_error,
)
from .process_lock import ProcessLock
from .storage.cache import CacheStore

console = Console()


def setup_logging(
    *,
    verbose: bool = False,
    config: TorrentifyConfig | None = None,
) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    # Clean up existing handlers first to prevent resource leaks
    cleanup_logging()

    # Configure RichHandler to show path only at DEBUG level
    show_path = level == logging.DEBUG
    handlers: list[logging.Handler] = [
        RichHandler(console=console, rich_tracebacks=True, show_path=show_path),
    ]

    if config and config.log_dir:
        try:
            config.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(config.log_dir / "torrentify.log")
        except OSError as e:
            console.print(f"[yellow]File logging disabled: {e}[/yellow]")
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                ),
            )
            handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,  # Force reconfiguration of root logger
    )
    # Request-level chatter from the HTTP client is only useful when debugging
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def cleanup_logging() -> None:
    """Clean up logging handlers to prevent ResourceWarnings."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            root_logger.removeHandler(handler)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """torrentify - Build release folders (nfo, torrent, lookup tag) from media libraries."""
    try:
        ctx.ensure_object(dict)
        loaded_config = load_config(config)
        ctx.obj["config"] = loaded_config
        ctx.obj["config_path"] = config
        ctx.obj["verbose"] = verbose

        setup_logging(verbose=verbose, config=loaded_config)
    except (OSError, ValueError, RuntimeError) as e:
        config_error = ConfigurationError(
            f"Failed to load configuration: {e}",
            config_path=config,
            solution="Run 'torrentify config validate' to check your configuration file",
        )
        console.print(f"[red]Configuration Error:[/red] {config_error}")
        sys.exit(1)


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Process every enabled category once and print a summary."""
    config: TorrentifyConfig = ctx.obj["config"]

    problems = config.validate_for_run()
    if problems:
        ConfigurationError(
            "Invalid configuration",
            config_path=ctx.obj.get("config_path"),
            details="; ".join(problems),
        ).display_to_user()
        sys.exit(1)

    missing_deps = check_dependencies(config.mediainfo_binary, config.mkbrr_binary)
    if missing_deps:
        console.print("[red bold]🚫 Missing Dependencies[/red bold]")
        for dep in missing_deps:
            dep.display_to_user()
        sys.exit(1)

    lock = ProcessLock(config)
    if not lock.acquire():
        pid = lock.holder_pid()
        holder = f" (PID {pid})" if pid else ""
        console.print(f"[red]Another torrentify run is already in progress{holder}[/red]")
        sys.exit(1)

    try:
        orchestrator = TorrentifyOrchestrator(config)
        stats = asyncio.run(orchestrator.run())
    except Exception as e:
        # Per-item failures never get here; this is the whole run failing
        handle_error(e)
        graceful_exit(1)
    finally:
        lock.release()

    render_summary(stats, console, trackers_changed=orchestrator.trackers_changed)


@cli.command()
@click.pass_context
def fingerprint(ctx: click.Context) -> None:
    """Show whether the tracker list changed since the last run."""
    config: TorrentifyConfig = ctx.obj["config"]
    gate = FingerprintGate(config.fingerprint_file, config.trackers)

    console.print(f"Current fingerprint: {gate.current}")
    console.print(f"Stored fingerprint:  {gate.previous or 'None'}")
    if gate.changed:
        console.print("[yellow]Trackers changed: existing torrents will be retagged on next run[/yellow]")
    else:
        console.print("[green]Trackers unchanged[/green]")


@cli.group("config")
@click.pass_context
def config_cmd(ctx: click.Context) -> None:
    """Configuration management commands."""


@config_cmd.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: TorrentifyConfig = ctx.obj["config"]

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("Destination Directory", str(config.dest_dir))
    table.add_row("State Directory", str(config.state_dir))
    table.add_row("Log Directory", str(config.log_dir))
    for category in config.enabled_categories():
        settings = config.category_settings(category)
        table.add_row(
            f"{category.label} ({category.value})",
            f"{settings.source} → {config.destination(category)}",
        )
    table.add_row("Trackers", str(len(config.trackers)))
    table.add_row("Parallel Jobs", str(config.parallel_jobs))
    table.add_row("TMDB API Key", "***" if config.tmdb_api_key else "Not configured")
    table.add_row("TMDB Language", f"{config.tmdb_language} (fallback {config.fallback_language})")

    console.print(table)


@config_cmd.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate current configuration."""
    config: TorrentifyConfig = ctx.obj["config"]

    console.print("[bold]Configuration Validation[/bold]")

    errors = list(config.validate_for_run())
    for problem in errors:
        console.print(f"[red]✗[/red] {problem}")

    for category in config.enabled_categories():
        source = config.category_settings(category).source
        if source.is_dir():
            console.print(f"[green]✓[/green] {category.label} source: {source}")
        else:
            console.print(f"[red]✗[/red] {category.label} source not found: {source}")
            errors.append(f"{category.label} source not found")

    for dep in check_dependencies(config.mediainfo_binary, config.mkbrr_binary):
        console.print(f"[yellow]⚠[/yellow] {dep.message}")

    if errors:
        console.print(f"\n[red]Found {len(errors)} configuration errors[/red]")
        sys.exit(1)
    else:
        console.print("\n[green]Configuration is valid[/green]")


@config_cmd.command("init")
@click.option(
    "--path",
    "-p",
    type=click.Path(path_type=Path),
    default=Path.home() / ".config" / "torrentify" / "config.toml",
    help="Path for the configuration file",
)
def config_init(path: Path) -> None:
    """Create a sample configuration file."""
    try:
        create_sample_config(path)
        console.print(f"[green]Created sample configuration at {path}[/green]")
        console.print("Please edit the configuration file with your settings.")
    except OSError as e:
        console.print(f"[red]Error creating configuration: {e}[/red]")
        sys.exit(1)


@cli.group()
@click.pass_context
def cache(ctx: click.Context) -> None:
    """Lookup cache commands."""


def _caches(config: TorrentifyConfig) -> list[CacheStore]:
    return [
        CacheStore(config.tmdb_cache_dir, name="tmdb"),
        CacheStore(config.itunes_cache_dir, name="itunes"),
    ]


@cache.command("stats")
@click.pass_context
def cache_stats(ctx: click.Context) -> None:
    """Show lookup cache statistics."""
    config: TorrentifyConfig = ctx.obj["config"]

    table = Table()
    table.add_column("Cache")
    table.add_column("Entries", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Path")

    for store in _caches(config):
        stats = store.stats()
        table.add_row(
            stats["name"],
            str(stats["total_entries"]),
            format_file_size(stats["size_bytes"]),
            stats["path"],
        )

    console.print(table)


@cache.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def cache_clear(ctx: click.Context, yes: bool) -> None:
    """Delete every cached lookup result."""
    config: TorrentifyConfig = ctx.obj["config"]

    if not yes and not click.confirm("Are you sure you want to clear all lookup caches?"):
        return

    removed = sum(store.clear() for store in _caches(config))
    console.print(f"[green]Cleared {removed} cache entries[/green]")


def format_file_size(size_bytes: int) -> str:
    """Format file size in bytes to human readable format."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    if size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
