"""esautocomplete load - build a new generation from a phrase dump and deploy it."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from esautocomplete.cli.utils import get_config, make_engine, make_type, resolve_alias
from esautocomplete.core.errors import AutocompleteError
from esautocomplete.core.logging import set_request_id
from esautocomplete.indexer.lifecycle import IndexLifecycle


@click.command()
@click.argument("phrase_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--alias", "-a", help="Alias to deploy under (default: indexer.alias)")
@click.option("--type", "-t", "type_name", required=True, help="Autocomplete type name")
@click.option("--edit", is_flag=True, help="Add to the live generation instead of a new one")
@click.option(
    "--replace",
    is_flag=True,
    help="With --edit, first delete phrases ranked in the contexts the file covers",
)
@click.option("--min-rank", type=int, default=None, help="Drop contexts ranked below this")
@click.option("--no-optimize", is_flag=True, help="Skip the force-merge before deploy")
@click.pass_context
def load_command(
    ctx: click.Context,
    phrase_file: Path,
    alias: str | None,
    type_name: str,
    edit: bool,
    replace: bool,
    min_rank: int | None,
    no_optimize: bool,
) -> None:
    """Index phrases from PHRASE_FILE and point the alias at them.

    Without --edit a new generation is created; if anything fails before the
    alias is swapped, that generation is deleted again. Re-loading into the
    live generation adds records, so pair --edit with --replace to swap out
    the contexts being loaded.
    """
    config = get_config(ctx)
    alias = resolve_alias(config, alias)
    console = Console(stderr=True)
    set_request_id()

    with make_engine(config) as engine:
        autocomplete = make_type(engine, alias, type_name, config)
        try:
            with IndexLifecycle(
                engine,
                alias,
                types={type_name: autocomplete},
                config=config.indexer,
                edit=edit,
                debug=config.debug.level,
            ) as lifecycle:
                indexer = lifecycle.type(type_name)
                if not edit:
                    indexer.init()
                phrases = indexer.load_phrases(phrase_file, min_rank)
                if edit and replace:
                    indexer.delete_contexts({c for phrase in phrases for c in phrase.rank})
                written = indexer.index_phrases(phrases)
                lifecycle.deploy(optimize=not no_optimize)
                index = lifecycle.index
        except AutocompleteError as e:
            raise click.ClickException(str(e)) from e

    console.print(
        f"[green]✓[/green] Indexed {written} phrases into [cyan]{index}[/cyan] "
        f"as [cyan]{alias}[/cyan]"
    )
