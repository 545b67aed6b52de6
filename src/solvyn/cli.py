# src/solvyn/cli.py
"""Solvyn Command Line Interface.

Entry point for the solvyn CLI tool.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from pydantic import ValidationError

from solvyn import __version__
from solvyn.contracts.enums import ResultStatus
from solvyn.contracts.errors import SnapshotFormatError
from solvyn.contracts.results import Result
from solvyn.core.config import SolvynSettings, load_settings, resolve_config

if TYPE_CHECKING:
    from solvyn.core.history.manager import HistoryManager
    from solvyn.engine.resolver import SolvynEngine
    from solvyn.plugins.manager import PluginManager

__all__ = [
    "app",
]

app = typer.Typer(
    name="solvyn",
    help="Solvyn: headless computation resolution.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"solvyn version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # We handle existence check ourselves for better error message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Solvyn: headless computation resolution."""
    from solvyn.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(json_output=json_logs, level=log_level)

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


# === Helpers ===


def _format_validation_error(
    title: str,
    message: str,
    details: list[str] | None = None,
    hint: str | None = None,
) -> None:
    """Print a formatted configuration error to stderr."""
    typer.secho(f"Error: {title}", fg=typer.colors.RED, err=True)
    typer.echo(f"  {message}", err=True)
    for detail in details or []:
        typer.echo(f"  - {detail}", err=True)
    if hint:
        typer.echo(f"  Hint: {hint}", err=True)


def _load_cli_settings(settings: str | None) -> SolvynSettings:
    """Load settings from a file, or defaults when no file is given.

    Raises:
        typer.Exit: On any configuration error (already reported)
    """
    if settings is None:
        return SolvynSettings()

    settings_path = Path(settings).expanduser()
    try:
        return load_settings(settings_path)
    except FileNotFoundError:
        _format_validation_error(
            title="File Not Found",
            message=f"Settings file does not exist: {settings}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        # Must be before ValueError - ValidationError inherits from it
        details = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            details.append(f"{loc}: {error['msg']}")
        _format_validation_error(
            title="Configuration Validation Failed",
            message=f"Invalid settings in {settings_path.name}",
            details=details,
            hint="Check field names, types, and required values.",
        )
        raise typer.Exit(1) from None
    except Exception as e:
        # Dynaconf surfaces YAML/TOML syntax errors with parser-specific types
        _format_validation_error(
            title="Configuration Error",
            message=f"Failed to load {settings_path.name}: {e}",
            hint="Check for unclosed brackets, incorrect indentation, or invalid characters.",
        )
        raise typer.Exit(1) from None


def _build_cli_engine(config: SolvynSettings) -> SolvynEngine:
    from solvyn.engine.factory import build_engine

    try:
        return build_engine(config)
    except (ValueError, TypeError) as e:
        _format_validation_error(title="Engine Configuration Error", message=str(e))
        raise typer.Exit(1) from None


def _get_plugin_manager() -> PluginManager:
    """Plugin manager with built-in and entry-point plugins registered."""
    from solvyn.plugins.manager import PluginManager

    manager = PluginManager()
    manager.register_builtin_plugins()
    manager.load_entrypoint_plugins()
    return manager


def _echo_result(result: Result, *, as_json: bool) -> None:
    """Print a result and exit 1 if it is an error."""
    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif result.status == ResultStatus.SUCCESS:
        typer.echo(result.value)
        for step in result.steps:
            typer.echo(f"  {step}")
        if result.confidence is not None:
            typer.echo(f"  (confidence {result.confidence:.2f})")
    elif result.status == ResultStatus.FALLBACK:
        typer.echo("Could not resolve locally. Run `solvyn escalate` to ask the AI provider.")
    else:
        assert result.error is not None
        typer.secho(f"Error [{result.error.code}]: {result.error.message}", fg=typer.colors.RED, err=True)
        if result.error.suggestion:
            typer.echo(f"  Suggestion: {result.error.suggestion}", err=True)

    if result.status == ResultStatus.ERROR:
        raise typer.Exit(1)


def _settings_option() -> typer.models.OptionInfo:
    return typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML/TOML file (defaults apply when omitted).",
    )


# === Resolution commands ===


@app.command()
def solve(
    text: str = typer.Argument(..., help="Expression or question to resolve."),
    settings: str | None = _settings_option(),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Resolve input through plugins, local evaluation, and escalation policy."""
    config = _load_cli_settings(settings)
    engine = _build_cli_engine(config)
    result = asyncio.run(engine.solve(text))
    _echo_result(result, as_json=as_json)


@app.command()
def escalate(
    text: str = typer.Argument(..., help="Input to send to the AI provider."),
    settings: str | None = _settings_option(),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Send input straight to the AI provider (continues a manual fallback)."""
    config = _load_cli_settings(settings)
    engine = _build_cli_engine(config)
    result = asyncio.run(engine.escalate(text))
    _echo_result(result, as_json=as_json)


# === History subcommand group ===

history_app = typer.Typer(help="History log commands.")
app.add_typer(history_app, name="history")


def _history_manager(settings: str | None) -> HistoryManager:
    config = _load_cli_settings(settings)
    engine = _build_cli_engine(config)
    if engine.history is None:
        typer.echo("Error: History is disabled (history.enabled: false).", err=True)
        raise typer.Exit(1)
    return engine.history


@history_app.command("list")
def history_list(
    settings: str | None = _settings_option(),
    limit: int | None = typer.Option(None, "--limit", "-n", min=1, help="Show only the newest N items."),
) -> None:
    """List recorded resolutions, oldest first."""
    manager = _history_manager(settings)

    async def _load() -> None:
        await manager.wait_loaded()

    asyncio.run(_load())
    items = manager.get()
    if limit is not None:
        items = items[-limit:]

    if not items:
        typer.echo("No history.")
        return
    for item in items:
        result = item.result
        if result.status == ResultStatus.SUCCESS:
            outcome = f"{result.value} ({result.source.value if result.source else 'unknown'})"
        elif result.status == ResultStatus.ERROR and result.error is not None:
            outcome = f"error {result.error.code}"
        else:
            outcome = result.status.value
        typer.echo(f"{item.id[:8]}  {item.input!r} -> {outcome}")


@history_app.command("export")
def history_export(
    settings: str | None = _settings_option(),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to file instead of stdout."),
) -> None:
    """Export the history log as a JSON snapshot."""
    manager = _history_manager(settings)

    async def _load() -> None:
        await manager.wait_loaded()

    asyncio.run(_load())
    snapshot = manager.export()
    if output is None:
        typer.echo(snapshot)
    else:
        output.write_text(snapshot + "\n", encoding="utf-8")
        typer.echo(f"Exported {len(manager)} item(s) to {output}", err=True)


@history_app.command("import")
def history_import(
    source: str = typer.Argument(..., help="Snapshot file to import, or '-' for stdin."),
    settings: str | None = _settings_option(),
) -> None:
    """Replace the history log with a JSON snapshot."""
    if source == "-":
        text = sys.stdin.read()
    else:
        path = Path(source).expanduser()
        if not path.exists():
            typer.echo(f"Error: Snapshot file not found: {source}", err=True)
            raise typer.Exit(1)
        text = path.read_text(encoding="utf-8")

    manager = _history_manager(settings)
    try:
        count = asyncio.run(manager.import_snapshot(text))
    except SnapshotFormatError as e:
        typer.echo(f"Error: Invalid snapshot: {e}", err=True)
        raise typer.Exit(1) from None
    typer.echo(f"Imported {count} item(s).")


@history_app.command("clear")
def history_clear(
    settings: str | None = _settings_option(),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt."),
) -> None:
    """Delete all recorded resolutions."""
    manager = _history_manager(settings)
    if not yes and not typer.confirm("Delete all history?"):
        typer.echo("Aborted.")
        raise typer.Exit(1)
    asyncio.run(manager.clear())
    typer.echo("History cleared.")


# === Plugins subcommand group ===

plugins_app = typer.Typer(help="Plugin management commands.")
app.add_typer(plugins_app, name="plugins")


@plugins_app.command("list")
def plugins_list() -> None:
    """List available plugins (built-in and installed)."""
    try:
        manager = _get_plugin_manager()
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    plugins = manager.get_plugins()
    if not plugins:
        typer.echo("  (none available)")
        return
    for cls in plugins:
        typer.echo(f"  {cls.name:20} - {cls.description}")


# === Validation ===


@app.command()
def validate(
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML/TOML file.",
    ),
    show: bool = typer.Option(False, "--show", help="Print the resolved configuration (secrets masked)."),
) -> None:
    """Validate a settings file without resolving anything."""
    from solvyn.plugins.providers import TemplateError, create_provider

    config = _load_cli_settings(settings)

    try:
        plugins = _get_plugin_manager().create_plugins(config.plugins)
    except ValueError as e:
        _format_validation_error(
            title="Plugin Configuration Error",
            message=str(e),
            hint="Run `solvyn plugins list` to see available plugins.",
        )
        raise typer.Exit(1) from None

    provider_name = None
    if config.ai is not None:
        try:
            provider_name = create_provider(config.ai, timeout=config.timeout_seconds).name
        except TemplateError as e:
            _format_validation_error(title="Prompt Template Error", message=str(e))
            raise typer.Exit(1) from None

    typer.echo("✅ Configuration valid!")
    typer.echo(f"  Mode: {config.mode.value}")
    typer.echo(f"  Escalation: {config.escalation.value}{' (offline only)' if config.offline_only else ''}")
    typer.echo(f"  Provider: {provider_name or '(none)'}")
    typer.echo(f"  Plugins: {', '.join(plugin.name for plugin in plugins) or '(none)'}")
    history = config.history
    typer.echo(f"  History: {history.storage.value}, max {history.max_items}" if history.enabled else "  History: disabled")

    if show:
        typer.echo(json.dumps(resolve_config(config), indent=2))


if __name__ == "__main__":
    app()
