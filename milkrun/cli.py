import logging

import anyio
import click

from .config import Config
from .context import RequestResult, ScriptResult
from .exceptions import MilkrunError
from .executor import Executor, discover_names
from .loader import load_resources
from .schedule import create_schedule, resolve_topology

root_argument = click.argument(
    "root", type=click.Path(exists=True, file_okay=False), default="."
)
env_option = click.option(
    "--env",
    "environment",
    default="",
    help="Only load resources labeled for this environment (or unlabeled).",
)


@click.group()
def cli():
    """Run declarative API workflows."""


@cli.command()
@root_argument
@env_option
@click.option("--log-level", default=None, help="Log level (defaults to config).")
def run(root: str, environment: str, log_level: str | None):
    """Load and execute every resource below ROOT."""
    config = Config()
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        resources = load_resources(root, environment)
        order = [resource.name for resource in create_schedule(resources)]
        context = anyio.run(Executor(config).execute, resources)
    except MilkrunError as e:
        raise click.ClickException(str(e)) from e

    for name in order:
        result = context.get(name)
        if isinstance(result, RequestResult):
            click.echo(f"{name}: {result.status}")
        elif isinstance(result, ScriptResult):
            click.echo(f"{name}: ok")
        elif result is None:
            click.echo(f"{name}: failed")
        else:
            click.echo(f"{name}: {result!r}")


@cli.command()
@root_argument
@env_option
def plan(root: str, environment: str):
    """Show the execution order and dependency tree without running anything."""
    try:
        topology = resolve_topology(load_resources(root, environment))
    except MilkrunError as e:
        raise click.ClickException(str(e)) from e

    for idx, resource in enumerate(topology.order, start=1):
        click.echo(f"{idx}. {resource} ({resource.source_path})")

    click.echo()
    click.echo(str(topology))


@cli.command()
@root_argument
@env_option
def names(root: str, environment: str):
    """List resource names in execution order."""
    try:
        order = discover_names(root, environment)
    except MilkrunError as e:
        raise click.ClickException(str(e)) from e

    for name in order:
        click.echo(name)


if __name__ == "__main__":
    cli()
