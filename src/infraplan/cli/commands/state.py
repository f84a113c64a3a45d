"""State commands - inspect last-applied state."""

import json
import sys
import click
from ...utils.errors import InfraPlanError
from ..utils import EXIT_FAILED, exit_for_error, format_error, get_settings, open_state_store


@click.group()
def state():
    """Inspect the state file."""
    pass


@state.command(name="list")
@click.option('--state', 'state_path', type=click.Path(), help='State file (default: from config)')
@click.pass_context
def list_resources(ctx, state_path):
    """List every address recorded in state."""
    try:
        store = open_state_store(get_settings(ctx, state_path=state_path))
        addresses = store.list_addresses()
    except InfraPlanError as e:
        exit_for_error(e)
    for address in addresses:
        click.echo(address)


@state.command()
@click.argument('address')
@click.option('--state', 'state_path', type=click.Path(), help='State file (default: from config)')
@click.pass_context
def show(ctx, address, state_path):
    """Show the recorded attributes of ADDRESS as JSON."""
    try:
        store = open_state_store(get_settings(ctx, state_path=state_path))
        resource = store.get(address)
    except InfraPlanError as e:
        exit_for_error(e)
    if resource is None:
        click.echo(format_error(f"{address} is not in state", "Run 'infraplan state list' to see addresses"), err=True)
        sys.exit(EXIT_FAILED)
    click.echo(json.dumps({"address": address, **resource.model_dump(mode="json")}, indent=2, sort_keys=True))
