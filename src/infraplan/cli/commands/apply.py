"""Apply command - execute a plan against the configured provider."""

import json
import sys
import click
from ... import apply_plan, create_plan
from ...config import Settings
from ...planner import Plan, ensure_current, load_plan
from ...presentation.human_formatter import format_outputs, format_plan, format_report
from ...providers import get_provider
from ...registry import SchemaRegistry
from ...state import StateStore
from ...utils.errors import InfraPlanError
from ...utils.logging import get_logger
from ..utils import (
    EXIT_FAILED, EXIT_OK, echo_text, exit_for_error, format_error, get_registry, get_settings,
    open_state_store, parse_variables, progress, resolve_declarations,
)

logger = get_logger("cli.apply")


@click.command()
@click.argument('declarations', type=click.Path(exists=False), required=False)
@click.option('--plan-file', type=click.Path(), help='Apply a plan saved with plan --out')
@click.option('--state', 'state_path', type=click.Path(), help='State file (default: from config)')
@click.option('--var', 'var_pairs', multiple=True, metavar='NAME=VALUE', help='Set a variable (repeatable)')
@click.option('--parallelism', type=click.IntRange(min=1), help='Maximum concurrent provider calls')
@click.option('--json', 'as_json', is_flag=True, help='Output the apply report as JSON')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
@click.pass_context
def apply(ctx, declarations, plan_file, state_path, var_pairs, parallelism, as_json, quiet):
    """
    Plan DECLARATIONS (or load --plan-file) and execute the changes.

    Exits 0 if every change succeeded, 1 if any failed or the saved plan is
    stale, 2 on declaration errors.
    """
    if bool(declarations) == bool(plan_file):
        raise click.UsageError("Provide either DECLARATIONS or --plan-file, not both")
    variables = parse_variables(var_pairs)
    path = resolve_declarations(declarations) if declarations else None
    quiet = quiet or as_json

    try:
        settings = get_settings(ctx, state_path=state_path, parallelism=parallelism)
        registry = get_registry(settings)
        state_store = open_state_store(settings)
        if plan_file:
            planned = load_plan(plan_file)
            ensure_current(planned, state_store.load())
        else:
            progress(f"Planning {path} against {settings.state_path}", quiet)
            planned = create_plan(path, state_store, registry=registry, variables=variables)
    except InfraPlanError as e:
        exit_for_error(e)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Planning failed: {e}"), err=True)
        sys.exit(EXIT_FAILED)

    run_apply(planned, settings, registry, state_store, as_json, quiet)


def run_apply(planned: Plan, settings: Settings, registry: SchemaRegistry, state_store: StateStore,
              as_json: bool, quiet: bool) -> None:
    """Execute a plan, print the report and outputs, and exit with the apply status."""
    if not quiet:
        echo_text(format_plan(planned))
        click.echo("")

    try:
        provider = get_provider(settings.provider, registry)
        progress(f"Applying with provider '{settings.provider.name}'", quiet)
        report = apply_plan(planned, provider, state_store, settings)
        outputs = state_store.evaluate_outputs(planned.outputs) if report.success else {}
    except InfraPlanError as e:
        exit_for_error(e)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Apply failed: {e}"), err=True)
        sys.exit(EXIT_FAILED)

    if as_json:
        data = report.model_dump(mode="json")
        data["outputs"] = outputs
        click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))
    else:
        echo_text(format_report(report))
        if outputs:
            click.echo("")
            click.echo("Outputs:")
            echo_text(format_outputs(outputs))

    sys.exit(EXIT_OK if report.success else EXIT_FAILED)
