"""CLI interface for wakacollect.

Settings come from ~/.wakacollect/config.yaml.

Quick start:
    wakacollect branch .                        # Which branch would be reported?
    wakacollect branch . --strategy file_io     # Same, without running git
    wakacollect replay events.yaml              # Feed recorded editor events
    wakacollect config --show                   # Show current configuration
"""

import json
import logging
from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from wakacollect import __version__
from wakacollect.config import get_config_path, load_settings, save_settings
from wakacollect.errors import ConfigError
from wakacollect.heartbeat import DedupGate, Heartbeat, HeartbeatCollector
from wakacollect.host import Document, EditorBridge, EditorEvent, EventHub
from wakacollect.vcs import GitOptions, make_resolver

app = typer.Typer(
    name="wakacollect",
    help="Editor activity heartbeat collector",
    no_args_is_help=True,
)

console = Console()


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_settings_or_exit():
    try:
        return load_settings()
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
) -> None:
    """Editor activity heartbeat collector."""
    _configure_logging(debug)


@app.command()
def version() -> None:
    """Show the installed version."""
    console.print(f"wakacollect {__version__}")


@app.command()
def branch(
    path: Path = typer.Argument(Path("."), help="Working directory"),
    strategy: GitOptions = typer.Option(
        None, "--strategy", "-s", help="Override the configured git_options"),
) -> None:
    """Print the branch that heartbeats for PATH would carry."""
    settings = _load_settings_or_exit()
    resolver = make_resolver(
        strategy or settings.git_options,
        git_timeout_s=settings.git_timeout,
    )
    name = resolver.resolve(path)
    if name is None:
        console.print(f"[dim]no branch ({resolver.name})[/dim]")
        raise typer.Exit(1)
    console.print(name)


@app.command()
def config(
    show: bool = typer.Option(
        False, "--show", help="Show current configuration"),
    set_git_options: GitOptions = typer.Option(
        None, "--set-git-options", help="How to determine the branch"),
    set_timeout: float = typer.Option(
        None, "--set-timeout", help="Seconds between heartbeats for one entity"),
) -> None:
    """Manage wakacollect configuration."""
    settings = _load_settings_or_exit()

    if set_git_options is not None or set_timeout is not None:
        updates = {}
        if set_git_options is not None:
            updates["git_options"] = set_git_options
        if set_timeout is not None:
            updates["same_file_timeout"] = set_timeout
        try:
            settings = settings.model_validate({**settings.model_dump(), **updates})
        except ValueError as e:
            console.print(f"[red]Invalid setting: {e}[/red]")
            raise typer.Exit(2)
        written = save_settings(settings)
        console.print(f"[green]Configuration saved to {written}[/green]")
        return

    if show:
        console.print(Panel(
            f"Git options: {settings.git_options.value}\n"
            f"Same file timeout: {settings.same_file_timeout}s\n"
            f"Git timeout: {settings.git_timeout}s\n"
            f"Branch cache TTL: {settings.branch_cache_ttl}s\n"
            f"Language: {settings.language}\n"
            f"Config file: {get_config_path()}",
            title="Configuration",
        ))
        return

    console.print("Use --show to view configuration or --set-* to change it")


def _read_events(events_file: Path) -> list[dict]:
    with open(events_file) as f:
        data = yaml.safe_load(f) or []
    if not isinstance(data, list):
        raise ValueError("expected a list of events")
    events = []
    for i, item in enumerate(data):
        if not isinstance(item, dict) or "event" not in item:
            raise ValueError(f"event #{i} needs an 'event' key")
        path = item.get("path")
        if path is not None and not isinstance(path, str):
            raise ValueError(f"event #{i} has a non-string path: {path!r}")
        events.append({
            "event": EditorEvent(item["event"]),
            "path": path,
            "at": float(item.get("at", 0.0)),
        })
    return events


@app.command()
def replay(
    events_file: Path = typer.Argument(..., help="YAML list of {event, path, at}"),
    data_path: Path = typer.Option(
        Path("Assets"), "--data-path", "-d", help="Editor data (Assets) directory"),
    project: str = typer.Option(None, "--project", "-p", help="Project name"),
    json_output: bool = typer.Option(
        False, "--json", "-j", help="JSON output"),
) -> None:
    """Replay recorded editor events and print the heartbeats they produce.

    `at` is seconds since the start of the recording and drives the
    cooldown clock, so a replay is deterministic.
    """
    settings = _load_settings_or_exit()
    try:
        events = _read_events(events_file)
    except (OSError, yaml.YAMLError, ValueError) as e:
        console.print(f"[red]Can't read {events_file}: {e}[/red]")
        raise typer.Exit(2)

    clock = {"now": 0.0}
    data_path = data_path.absolute()
    collector = HeartbeatCollector(
        project=project or settings.project_name or data_path.parent.name,
        project_root=data_path,
        resolver=make_resolver(
            settings.git_options,
            git_timeout_s=settings.git_timeout,
            cache_ttl_s=settings.branch_cache_ttl,
        ),
        language=settings.language,
        gate=DedupGate(settings.same_file_timeout, clock=lambda: clock["now"]),
    )
    emitted: list[Heartbeat] = []
    collector.subscribe(emitted.append)

    hub = EventHub()
    with EditorBridge(collector, hub, data_path=data_path):
        for item in events:
            clock["now"] = item["at"]
            hub.emit(item["event"], Document(item["path"]))

    if json_output:
        print(json.dumps([hb.to_dict() for hb in emitted], indent=2))
        return

    table = Table(title=f"{len(emitted)} heartbeat(s) from {len(events)} event(s)")
    table.add_column("Entity")
    table.add_column("Branch")
    table.add_column("Write")
    for hb in emitted:
        table.add_row(hb.entity, hb.branch or "-", "yes" if hb.is_write else "")
    console.print(table)


if __name__ == "__main__":
    app()
