"""CLI utilities package."""

import sys
from typing import Any, Dict, Optional, Tuple
import click
from ...config import Settings, load_settings
from ...registry import SchemaRegistry, load_registry
from ...state import JsonStateStore
from ...utils.errors import InfraPlanError, PlanningError
from ...utils.logging import get_logger
from .file_resolver import resolve_file_path

logger = get_logger("cli.utils")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PLANNING = 2


def parse_variables(pairs: Tuple[str, ...]) -> Dict[str, str]:
    """
    Parse repeated --var name=value options.

    Raises:
        click.BadParameter: If an entry has no '='
    """
    variables = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected name=value, got '{pair}'", param_hint="--var")
        variables[name.strip()] = value
    return variables


def get_settings(ctx: click.Context, **overrides: Any) -> Settings:
    """Load settings for a command, applying the group's --config and any flag overrides."""
    obj = ctx.find_root().obj or {}
    return load_settings(obj.get("config_path"), overrides)


def get_registry(settings: Settings) -> SchemaRegistry:
    return load_registry(settings.schema_paths)


def open_state_store(settings: Settings) -> JsonStateStore:
    return JsonStateStore(settings.state_path)


def resolve_declarations(declarations: str) -> str:
    """Resolve a declarations path, exiting with a friendly error if it is missing."""
    try:
        return str(resolve_file_path(declarations))
    except FileNotFoundError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_FAILED)


def progress(message: str, quiet: bool = False) -> None:
    """Print a progress line to stderr unless quiet."""
    if not quiet:
        click.echo(message, err=True)


def echo_text(text: str) -> None:
    """Print text, degrading to ASCII on terminals that cannot encode it."""
    try:
        click.echo(text)
    except UnicodeEncodeError:
        click.echo(text.encode('ascii', errors='replace').decode('ascii'))


def exit_for_error(error: InfraPlanError, suggestion: Optional[str] = None) -> None:
    """Report an infraplan error and exit: 2 for planning errors, 1 otherwise."""
    click.echo(format_error(str(error), suggestion), err=True)
    sys.exit(EXIT_PLANNING if isinstance(error, PlanningError) else EXIT_FAILED)


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.

    Args:
        message: Error message
        suggestion: Optional suggestion or help text

    Returns:
        Formatted error string
    """
    error = f"Error: {message}"
    if suggestion:
        error += f"\nTip: {suggestion}"
    return error


__all__ = [
    "EXIT_OK",
    "EXIT_FAILED",
    "EXIT_PLANNING",
    "parse_variables",
    "get_settings",
    "get_registry",
    "open_state_store",
    "resolve_declarations",
    "resolve_file_path",
    "progress",
    "echo_text",
    "exit_for_error",
    "format_error",
]
