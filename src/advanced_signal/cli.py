"""Command line interface for inspecting advanced-signal defaults."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .config import CONFIG_ENV_VAR, SignalSettings, load_settings
from .exceptions import ConfigurationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect advanced-signal settings")
    subparsers = parser.add_subparsers(dest="command")

    settings_parser = subparsers.add_parser(
        "settings", help="Show the defaults new signals are built with"
    )
    settings_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Settings file to read (default: ${CONFIG_ENV_VAR} or ./advanced_signal.json|yaml)",
    )
    settings_parser.add_argument(
        "--json", action="store_true", help="Print the settings as JSON"
    )
    settings_parser.set_defaults(handler=_settings_command)

    return parser


def _render_table(settings: SignalSettings, console: Console) -> None:
    table = Table(title="advanced-signal defaults")
    table.add_column("Option", style="cyan")
    table.add_column("Value", style="bold")
    table.add_column("Description")
    for name, field in SignalSettings.model_fields.items():
        table.add_row(name, str(getattr(settings, name)), field.description or "")
    console.print(table)


def _settings_command(arguments: argparse.Namespace, console: Console) -> int:
    try:
        settings = load_settings(arguments.config)
    except ConfigurationError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        return 1

    if arguments.json:
        console.print_json(json.dumps(settings.model_dump()))
    else:
        _render_table(settings, console)
    return 0


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    """CLI entry point used by ``python -m advanced_signal.cli``."""

    parser = _build_parser()
    arguments = parser.parse_args(argv)
    handler = getattr(arguments, "handler", None)
    if handler is None:
        parser.error("No command given")
    return handler(arguments, console or Console())


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
