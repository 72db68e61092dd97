"""esautocomplete CLI."""

from pathlib import Path

import click

from esautocomplete.cli.load import load_command
from esautocomplete.cli.suggest import count_command, suggest_command
from esautocomplete.cli.utils import get_config
from esautocomplete.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="esautocomplete")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory containing esautocomplete.yaml (default: current directory)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_dir: Path | None) -> None:
    """Context-sensitive autocomplete on Elasticsearch."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_dir"] = config_dir
    config = get_config(ctx)
    if verbose or config.debug.level:
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)


cli.add_command(suggest_command, name="suggest")
cli.add_command(count_command, name="count")
cli.add_command(load_command, name="load")


if __name__ == "__main__":
    cli()
