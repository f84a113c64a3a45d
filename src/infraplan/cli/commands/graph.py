"""Graph command - print the resolved reference edges."""

import json
import sys
import click
from ... import load_graph
from ...presentation.human_formatter import format_graph
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import (
    EXIT_FAILED, echo_text, exit_for_error, format_error, get_registry, get_settings,
    parse_variables, resolve_declarations,
)

logger = get_logger("cli.graph")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@click.option('--var', 'var_pairs', multiple=True, metavar='NAME=VALUE', help='Set a variable (repeatable)')
@click.option('--json', 'as_json', is_flag=True, help='Output nodes and edges as JSON')
@click.pass_context
def graph(ctx, declarations, var_pairs, as_json):
    """Show resources and their reference edges (consumer -> producer)."""
    path = resolve_declarations(declarations)
    variables = parse_variables(var_pairs)
    try:
        settings = get_settings(ctx)
        resolved = load_graph(path, get_registry(settings), variables)
    except InfraPlanError as e:
        exit_for_error(e)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Graph failed: {e}"), err=True)
        sys.exit(EXIT_FAILED)

    if as_json:
        click.echo(json.dumps({
            "nodes": sorted(node.address for node in resolved.nodes),
            "creation_order": resolved.dag.creation_order(),
            "edges": [
                {
                    "consumer": ref.consumer,
                    "producer": ref.producer,
                    "field": ref.consumer_field,
                    "output": ref.output,
                }
                for ref in sorted(resolved.references, key=lambda r: (r.consumer, r.producer, r.consumer_field or "", r.output or ""))
            ],
        }, indent=2))
    else:
        echo_text(format_graph(resolved))
