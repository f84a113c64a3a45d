"""Plan command - show the changes needed to reach the declared state."""

import sys
import click
from ... import create_plan
from ...planner import save_plan
from ...presentation.human_formatter import format_plan
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import (
    EXIT_FAILED, echo_text, exit_for_error, format_error, get_registry, get_settings,
    open_state_store, parse_variables, progress, resolve_declarations,
)

logger = get_logger("cli.plan")


@click.command()
@click.argument('declarations', type=click.Path(exists=False))
@click.option('--state', 'state_path', type=click.Path(), help='State file (default: from config)')
@click.option('--var', 'var_pairs', multiple=True, metavar='NAME=VALUE', help='Set a variable (repeatable)')
@click.option('--destroy', is_flag=True, help='Plan the deletion of every resource in state')
@click.option('--out', 'out_path', type=click.Path(), help='Save the plan for a later apply --plan-file')
@click.option('--json', 'as_json', is_flag=True, help='Output the plan as JSON')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
@click.pass_context
def plan(ctx, declarations, state_path, var_pairs, destroy, out_path, as_json, quiet):
    """
    Compute the ordered changes that reconcile DECLARATIONS with state.

    Never changes state. Exits 0 on success, 2 on declaration, reference,
    cycle or validation errors.
    """
    path = resolve_declarations(declarations)
    variables = parse_variables(var_pairs)
    quiet = quiet or as_json
    try:
        settings = get_settings(ctx, state_path=state_path)
        progress(f"Planning {path} against {settings.state_path}", quiet)
        result = create_plan(
            path,
            open_state_store(settings),
            registry=get_registry(settings),
            variables=variables,
            destroy=destroy,
        )
        if out_path:
            save_plan(result, out_path)
            progress(f"Plan saved to: {out_path}", quiet)
    except InfraPlanError as e:
        exit_for_error(e)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Planning failed: {e}"), err=True)
        sys.exit(EXIT_FAILED)

    if as_json:
        click.echo(result.to_json())
    else:
        echo_text(format_plan(result))
