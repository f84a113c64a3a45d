"""Validate command - check declarations without touching state."""

import json
import sys
import click
from ... import load_graph
from ...planner import plan as compute_plan
from ...state import StateSnapshot
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import (
    EXIT_FAILED, exit_for_error, format_error, get_registry, get_settings,
    parse_variables, progress, resolve_declarations,
)

logger = get_logger("cli.validate")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@click.option('--var', 'var_pairs', multiple=True, metavar='NAME=VALUE', help='Set a variable (repeatable)')
@click.option('--json', 'as_json', is_flag=True, help='Output structured JSON')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
@click.pass_context
def validate(ctx, declarations, var_pairs, as_json, quiet):
    """
    Validate declarations: load, expand, resolve references and check schemas.

    Exits 0 when valid, 2 on any declaration error.
    """
    path = resolve_declarations(declarations)
    variables = parse_variables(var_pairs)
    try:
        settings = get_settings(ctx)
        registry = get_registry(settings)
        progress(f"Validating declarations: {path}", quiet or as_json)
        graph = load_graph(path, registry, variables)
        compute_plan(graph, StateSnapshot(), registry)
    except InfraPlanError as e:
        exit_for_error(e)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Validation failed: {e}"), err=True)
        sys.exit(EXIT_FAILED)

    if as_json:
        click.echo(json.dumps({
            "valid": True,
            "resources": len(graph.nodes),
            "references": len(graph.references),
        }, indent=2))
    else:
        click.echo(f"Valid: {len(graph.nodes)} resources, {len(graph.references)} references.")
