"""CLI entry point for plughost.

Invoked as::

    plughost [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m plughost.cli.main
"""
from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

console = Console()
error_console = Console(stderr=True, style="bold red")


def _load_config(config: str | None, start_dir: str | None = None):  # noqa: ANN202
    from plughost.config.loader import ConfigLoader

    try:
        return ConfigLoader().load(config, start_dir=start_dir)
    except Exception as exc:  # noqa: BLE001
        error_console.print(f"Could not load config: {exc}")
        raise SystemExit(1) from exc


def _make_host(config: str | None, start_dir: str | None = None):  # noqa: ANN202
    from plughost.plugins.host import PluginHost

    return PluginHost(_load_config(config, start_dir))


config_option = click.option(
    "--config",
    "-c",
    default=None,
    help="Path to plughost config file.",
)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="plughost")
def cli() -> None:
    """Install plugins and run the commands they provide."""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from plughost import __version__

    console.print(f"[bold]plughost[/bold] v{__version__}")
    console.print(f"Python {sys.version}")


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@cli.command(name="config")
@config_option
def config_command(config: str | None) -> None:
    """Show the effective configuration and plugin directories."""
    cfg = _load_config(config)
    console.print_json(cfg.model_dump_json(indent=2))

    table = Table(title="plugin directories", show_header=True, header_style="bold cyan")
    table.add_column("Directory", style="dim")
    table.add_column("Path")
    table.add_row("root", str(cfg.root))
    table.add_row("packages", str(cfg.packages_dir))
    table.add_row("cache", str(cfg.cache_dir))
    table.add_row("index", str(cfg.index_path))
    console.print(table)


# ---------------------------------------------------------------------------
# install
# ---------------------------------------------------------------------------


@cli.command(name="install")
@click.argument("names", nargs=-1)
@click.option(
    "--path",
    "source_path",
    default=None,
    type=click.Path(exists=True, file_okay=False),
    help="Directory holding the plugin package (or a directory of packages).",
)
@click.option(
    "--declaration",
    "-d",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Install the plugins requested by a YAML declaration file.",
)
@config_option
def install_command(
    names: tuple[str, ...],
    source_path: str | None,
    declaration: str | None,
    config: str | None,
) -> None:
    """Install plugins NAMES, or those listed in a declaration.

    Without --config, a declaration is installed with the config found
    nearest to the declaration file.
    """
    start_dir = str(Path(declaration).parent) if declaration else None
    host = _make_host(config, start_dir)

    if declaration:
        try:
            host.install_from_declaration(path=declaration)
        except Exception as exc:  # noqa: BLE001
            error_console.print(f"Failed to install plugins: {exc}")
            raise SystemExit(1) from exc
    elif names:
        options = {"path": source_path} if source_path else {}
        host.install(list(names), options)
    else:
        error_console.print("Give plugin names or --declaration.")
        raise SystemExit(1)

    requested = list(names)
    missing = [name for name in requested if host.installed(name) is None]
    for name in requested:
        if name not in missing:
            console.print(f"[green]Installed plugin {name}[/green]")
    if missing:
        error_console.print(f"Not installed: {', '.join(missing)}")
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


@cli.command(name="list")
@config_option
def list_command(config: str | None) -> None:
    """List installed plugins and the capabilities they provide."""
    host = _make_host(config)
    records = host.index.records()

    if not records:
        console.print(
            "[bold]Installed plugins:[/bold]\n"
            "  [dim](No plugins installed. Run `plughost install` to add one.)[/dim]"
        )
        return

    table = Table(title="Installed plugins", header_style="bold cyan")
    table.add_column("Name")
    table.add_column("Commands")
    table.add_column("Sources")
    table.add_column("Path", style="dim")
    for record in records:
        table.add_row(
            record.name,
            ", ".join(record.commands) or "-",
            ", ".join(record.sources) or "-",
            record.path,
        )
    console.print(table)


# ---------------------------------------------------------------------------
# exec
# ---------------------------------------------------------------------------


@cli.command(
    name="exec",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("command")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@config_option
def exec_command(command: str, args: tuple[str, ...], config: str | None) -> None:
    """Run plugin-provided COMMAND with ARGS."""
    from plughost.schema.errors import UndefinedCommandError

    host = _make_host(config)
    try:
        result = host.exec_command(command, list(args))
    except UndefinedCommandError as exc:
        error_console.print(str(exc))
        raise SystemExit(1) from exc
    except Exception as exc:  # noqa: BLE001
        error_console.print(f"Command `{command}` failed: {exc}")
        raise SystemExit(1) from exc

    if result is not None:
        console.print(result)


if __name__ == "__main__":
    cli()
