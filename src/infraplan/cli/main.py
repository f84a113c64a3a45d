"""Main CLI entry point for infraplan."""

import logging
import click
from .commands.validate import validate
from .commands.plan import plan
from .commands.apply import apply
from .commands.destroy import destroy
from .commands.graph import graph
from .commands.output import output
from .commands.state import state
from .commands.version import version as version_command
from ..utils.logging import get_logger, set_level
from .. import __version__

logger = get_logger("cli.main")


@click.group()
@click.version_option(version=__version__, prog_name="infraplan", message="%(prog)s version %(version)s")
@click.option('--config', 'config_path', type=click.Path(), help='Extra config file applied over user/project config')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """infraplan - Declarative resource graph planner."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if verbose:
        set_level(logging.DEBUG)
        logger.debug("Debug logging enabled")


cli.add_command(validate)
cli.add_command(plan)
cli.add_command(apply)
cli.add_command(destroy)
cli.add_command(graph)
cli.add_command(output)
cli.add_command(state)
cli.add_command(version_command)
