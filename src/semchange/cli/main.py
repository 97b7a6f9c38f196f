"""semchange CLI - semchange command."""

import click

from semchange.cli.analyze import analyze_command
from semchange.cli.diff import diff_command
from semchange.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="semchange")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """semchange - semantic change detection for TypeScript and JavaScript."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(analyze_command, name="analyze")
cli.add_command(diff_command, name="diff")


if __name__ == "__main__":
    cli()
