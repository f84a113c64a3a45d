"""Destroy command - delete every resource recorded in state."""

import sys
import click
from ... import create_plan
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import (
    EXIT_FAILED, exit_for_error, format_error, get_registry, get_settings,
    open_state_store, parse_variables, progress, resolve_declarations,
)
from .apply import run_apply

logger = get_logger("cli.destroy")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@click.option('--state', 'state_path', type=click.Path(), help='State file (default: from config)')
@click.option('--var', 'var_pairs', multiple=True, metavar='NAME=VALUE', help='Set a variable (repeatable)')
@click.option('--parallelism', type=click.IntRange(min=1), help='Maximum concurrent provider calls')
@click.option('--json', 'as_json', is_flag=True, help='Output the apply report as JSON')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
@click.pass_context
def destroy(ctx, declarations, state_path, var_pairs, parallelism, as_json, quiet):
    """
    Delete everything in state, dependents before their producers.

    Same exit codes as apply.
    """
    path = resolve_declarations(declarations)
    variables = parse_variables(var_pairs)
    quiet = quiet or as_json

    try:
        settings = get_settings(ctx, state_path=state_path, parallelism=parallelism)
        registry = get_registry(settings)
        state_store = open_state_store(settings)
        progress(f"Planning destroy of {settings.state_path}", quiet)
        planned = create_plan(path, state_store, registry=registry, variables=variables, destroy=True)
    except InfraPlanError as e:
        exit_for_error(e)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Planning failed: {e}"), err=True)
        sys.exit(EXIT_FAILED)

    run_apply(planned, settings, registry, state_store, as_json, quiet)
