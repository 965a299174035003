"""Typer CLI: init, write, status, logs and config commands."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from genlog import __version__
from genlog.config import (
    DEFAULT_CONFIG,
    get_config_path,
    load_config,
    load_settings,
    resolve_home,
    save_config,
    set_config_value,
    validate_config,
)
from genlog.errors import ConfigurationError
from genlog.levels import parse_level, should_write
from genlog.logger import ManagedLog
from genlog.retention import generation_pattern

app = typer.Typer(
    name="genlog",
    help="Size-bounded log rotation and retention.",
    no_args_is_help=True,
)
logs_app = typer.Typer(help="View, search, rotate and clean logs.", no_args_is_help=True)
config_app = typer.Typer(help="Show and change configuration.", no_args_is_help=True)
app.add_typer(logs_app, name="logs")
app.add_typer(config_app, name="config")

console = Console()

HOME_OPTION_HELP = "genlog home directory (default: $GENLOG_HOME or ~/.genlog)"


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"genlog v{__version__}")
        raise typer.Exit()


def _enable_debug_logging() -> None:
    from rich.logging import RichHandler

    pkg_logger = logging.getLogger("genlog")
    pkg_logger.setLevel(logging.DEBUG)
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        pkg_logger.addHandler(
            RichHandler(console=Console(stderr=True), show_path=False)
        )


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version.", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show internal diagnostics."),
) -> None:
    """genlog - size-bounded log rotation and retention."""
    if verbose:
        _enable_debug_logging()


def _open_log(home: Path | None) -> ManagedLog:
    """Validate the config once, then return a log that re-reads it per call."""
    try:
        load_settings(home)
    except ConfigurationError as exc:
        console.print(f"[red]Config error: {exc}[/red]")
        raise typer.Exit(1)
    return ManagedLog.from_home(home)


def _human_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Create the config file and the active log."""
    console.print(Panel("[bold]genlog init[/bold]", style="blue"))

    home_dir = resolve_home(home)
    config_path = get_config_path(home_dir)
    created = False
    if config_path.exists() and not force:
        config = load_config(home_dir)
        console.print("  [yellow]Merged with existing config[/yellow]")
    else:
        config = DEFAULT_CONFIG.copy()
        created = True
        console.print("  [green]Created default config[/green]")

    errors = validate_config(config)
    if errors:
        for e in errors:
            console.print(f"  [red]Config error: {e}[/red]")
        raise typer.Exit(1)

    save_config(config, home_dir)
    console.print(f"  Config: [cyan]{config_path}[/cyan]")

    log = ManagedLog.from_home(home_dir)
    if not log.init():
        console.print(f"  [red]Could not create log file: {log.active_log_path}[/red]")
        raise typer.Exit(1)
    console.print(f"  Log: [cyan]{log.active_log_path}[/cyan]")
    if created:
        log.info(f"Created default configuration file: {config_path}")


@app.command()
def write(
    level: str = typer.Argument(..., help="DEBUG, INFO, WARN or ERROR"),
    message: str = typer.Argument(..., help="Message text"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Write one record to the active log."""
    try:
        severity = parse_level(level)
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    log = _open_log(home)
    settings = log.settings
    if not should_write(severity, settings.min_level):
        console.print(f"[dim]Filtered (minimum level is {settings.min_level.label})[/dim]")
        return

    if log.write(severity, message):
        console.print(f"[green]Written[/green] to {settings.active_log_path}")
    else:
        console.print(f"[yellow]Log unavailable:[/yellow] {settings.active_log_path}")


@app.command()
def status(
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Show the active log, its generations and the effective settings."""
    log = _open_log(home)
    settings = log.settings

    console.print(Panel("[bold]genlog status[/bold]", style="blue"))

    active = settings.active_log_path
    if active.exists():
        console.print(f"  Active log: [cyan]{active}[/cyan] ({_human_size(active.stat().st_size)})")
    else:
        console.print(f"  Active log: [red]missing[/red] ({active})")

    console.print(
        f"  Rotation: at {_human_size(settings.max_size_bytes)}, "
        f"keep {settings.max_generations} generation(s)"
    )
    console.print(f"  Retention: {settings.retention_days} day(s)")
    console.print(f"  Level: {settings.min_level.label}")

    pattern = generation_pattern(settings.base_name)
    generations = []
    if settings.log_dir.is_dir():
        generations = [p for p in settings.log_dir.iterdir() if pattern.fullmatch(p.name)]
    if not generations:
        console.print("  Generations: [dim]none[/dim]")
        return

    table = Table(title="Generations")
    table.add_column("File")
    table.add_column("Size", justify="right")
    table.add_column("Age (days)", justify="right")
    now = time.time()
    for p in sorted(generations, key=lambda p: int(p.name.rsplit(".", 1)[1])):
        st = p.stat()
        table.add_row(p.name, _human_size(st.st_size), f"{(now - st.st_mtime) / 86400:.1f}")
    console.print(table)


# --- logs -------------------------------------------------------------------


def _resolve_log_file(log: ManagedLog, file: Path | None) -> Path:
    path = file or log.active_log_path
    if not path.is_file():
        console.print(f"[red]Log file not found: {path}[/red]")
        raise typer.Exit(1)
    return path


@logs_app.command("view")
def logs_view(
    file: Path = typer.Argument(None, help="Log file (default: active log)"),
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of lines to show"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Show the last lines of a log file."""
    from genlog.viewer import tail_lines

    log = _open_log(home)
    path = _resolve_log_file(log, file)
    log.log_command(f"logs view {path}")

    console.print(f"[blue]Viewing last {lines} lines of:[/blue] {path}")
    for line in tail_lines(path, lines):
        console.print(line, markup=False, highlight=False)


@logs_app.command("tail")
def logs_tail(
    file: Path = typer.Argument(None, help="Log file (default: active log)"),
    refresh: float = typer.Option(0.5, "--refresh", help="Poll interval in seconds"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Follow a log file (Ctrl+C to stop)."""
    from genlog.viewer import follow, tail_lines

    log = _open_log(home)
    path = _resolve_log_file(log, file)
    log.log_command(f"logs tail {path}")

    console.print(f"[blue]Tailing log file:[/blue] {path} (Ctrl+C to stop)")
    for line in tail_lines(path, 10):
        console.print(line, markup=False, highlight=False)
    follow(path, lambda line: console.print(line, markup=False, highlight=False), refresh)
    console.print("\n[bold]Stopped.[/bold]")


@logs_app.command("search")
def logs_search(
    pattern: str = typer.Argument(..., help="Pattern (case-insensitive regex)"),
    file: Path = typer.Argument(None, help="Log file (default: active log)"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Search a log file for a pattern."""
    from genlog.viewer import search_log

    if not pattern.strip():
        console.print("[red]Search pattern cannot be empty[/red]")
        raise typer.Exit(1)

    log = _open_log(home)
    path = _resolve_log_file(log, file)
    console.print(f"[blue]Searching for '{escape(pattern)}' in:[/blue] {path}", highlight=False)
    matches = search_log(path, pattern)
    # Recorded after the scan so the command line cannot match itself
    log.log_command(f"logs search {pattern} {path}")
    if not matches:
        console.print(f"[yellow]No matches found for:[/yellow] {escape(pattern)}", highlight=False)
        return
    for line in matches:
        console.print(line, markup=False, highlight=False)
    console.print(f"\n[green]Found {len(matches)} match(es)[/green]")


@logs_app.command("rotate")
def logs_rotate(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Rotate the active log now, regardless of its size."""
    log = _open_log(home)
    log.log_command("logs rotate")

    if not yes and not Confirm.ask("Rotate logs now?"):
        console.print("Rotation cancelled")
        return

    report = log.force_rotate()
    if not report.ok:
        for err in report.errors:
            console.print(f"  [red]{err}[/red]")
        console.print("[red]Log rotation partially applied[/red]")
        raise typer.Exit(1)

    log.info("Log rotation completed")
    console.print(
        f"[green]Log rotation completed[/green] "
        f"(shifted {len(report.shifted)}, evicted {'1' if report.evicted else '0'})"
    )


@logs_app.command("clean")
def logs_clean(
    days: int = typer.Argument(None, min=0, help="Maximum age in days (default: log_retention_days)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Delete rotated logs older than DAYS."""
    log = _open_log(home)
    if days is None:
        days = log.settings.retention_days
    log.log_command(f"logs clean {days}")

    if not yes and not Confirm.ask(f"Delete logs older than {days} days?"):
        console.print("Clean cancelled")
        return

    removed = log.sweep(days)
    log.info(f"Cleaned logs older than {days} days")
    console.print(f"[green]Removed {removed} old log file(s)[/green]")


# --- config -----------------------------------------------------------------


@config_app.command("show")
def config_show(
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Show all configuration values."""
    config = load_config(home)
    table = Table(title="Current Configuration")
    table.add_column("Key")
    table.add_column("Value")
    for key in sorted(config):
        table.add_row(key, str(config[key]))
    console.print(table)
    console.print(f"Config file: [cyan]{get_config_path(home)}[/cyan]")


@config_app.command("get")
def config_get(
    key: str = typer.Argument(..., help="Config key"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Print one configuration value."""
    config = load_config(home)
    if key not in config:
        console.print(f"[red]Unknown config key: {key}[/red]")
        raise typer.Exit(1)
    console.print(str(config[key]), markup=False, highlight=False)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key"),
    value: str = typer.Argument(..., help="New value"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Set one configuration value (validated immediately)."""
    try:
        config = set_config_value(load_config(home), key, value)
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    save_config(config, home)
    ManagedLog.from_home(home).info(f"Configuration updated: {key}={config[key]}")
    console.print(f"[green]Set {key} = {config[key]}[/green]")


@config_app.command("validate")
def config_validate(
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Check the configuration file for invalid values."""
    errors = validate_config(load_config(home))
    if errors:
        for e in errors:
            console.print(f"  [red]{e}[/red]")
        console.print(f"[red]Configuration has {len(errors)} error(s)[/red]")
        raise typer.Exit(1)
    console.print("[green]Configuration is valid[/green]")


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    home: Path = typer.Option(None, "--home", envvar="GENLOG_HOME", help=HOME_OPTION_HELP),
) -> None:
    """Reset configuration to defaults."""
    if not yes and not Confirm.ask("Reset configuration to defaults?"):
        console.print("Reset cancelled")
        return
    save_config(DEFAULT_CONFIG.copy(), home)
    ManagedLog.from_home(home).info("Configuration reset to defaults")
    console.print("[green]Configuration reset to defaults[/green]")
