"""Output command - evaluate declared outputs against state."""

import json
import sys
import click
from ... import load_graph
from ...ingest.values import UNKNOWN, to_raw
from ...presentation.human_formatter import format_outputs
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import (
    EXIT_FAILED, echo_text, exit_for_error, format_error, get_registry, get_settings,
    open_state_store, parse_variables, resolve_declarations,
)

logger = get_logger("cli.output")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@click.argument('name', required=False)
@click.option('--state', 'state_path', type=click.Path(), help='State file (default: from config)')
@click.option('--var', 'var_pairs', multiple=True, metavar='NAME=VALUE', help='Set a variable (repeatable)')
@click.option('--json', 'as_json', is_flag=True, help='Output values as JSON')
@click.pass_context
def output(ctx, declarations, name, state_path, var_pairs, as_json):
    """Show output values (all, or just NAME) from the last apply."""
    path = resolve_declarations(declarations)
    variables = parse_variables(var_pairs)
    try:
        settings = get_settings(ctx, state_path=state_path)
        resolved = load_graph(path, get_registry(settings), variables)
        expressions = {key: to_raw(value) for key, value in resolved.outputs.items()}
        if name is not None:
            if name not in expressions:
                available = ", ".join(sorted(expressions)) or "none"
                click.echo(format_error(f"Output '{name}' is not declared", f"Available outputs: {available}"), err=True)
                sys.exit(EXIT_FAILED)
            expressions = {name: expressions[name]}
        values = open_state_store(settings).evaluate_outputs(expressions)
    except InfraPlanError as e:
        exit_for_error(e)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Output failed: {e}"), err=True)
        sys.exit(EXIT_FAILED)

    if as_json:
        click.echo(json.dumps(
            {key: (None if value is UNKNOWN else value) for key, value in values.items()},
            indent=2, sort_keys=True,
        ))
    elif name is not None:
        value = values[name]
        echo_text("(known after apply)" if value is UNKNOWN else (value if isinstance(value, str) else json.dumps(value)))
    else:
        echo_text(format_outputs(values))
