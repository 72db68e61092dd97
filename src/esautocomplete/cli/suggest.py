"""Query commands: suggest and count."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from esautocomplete.cli.utils import get_config, make_engine, make_type, resolve_alias
from esautocomplete.core.errors import AutocompleteError, UnknownContextError
from esautocomplete.core.logging import set_request_id


@click.command()
@click.argument("phrase", default="")
@click.option("--alias", "-a", help="Index or alias to query (default: indexer.alias)")
@click.option("--type", "-t", "type_name", required=True, help="Autocomplete type name")
@click.option("--context", "-c", default=None, help="Context path, e.g. /Inbox/Personal")
@click.option("--size", "-n", type=int, default=None, help="Maximum suggestions")
@click.option("--loose", is_flag=True, help="Match any token instead of all tokens")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def suggest_command(
    ctx: click.Context,
    phrase: str,
    alias: str | None,
    type_name: str,
    context: str | None,
    size: int | None,
    loose: bool,
    as_json: bool,
) -> None:
    """Show suggestions for PHRASE (empty for the most popular phrases)."""
    config = get_config(ctx)
    index = resolve_alias(config, alias)
    set_request_id()

    with make_engine(config) as engine:
        autocomplete = make_type(engine, index, type_name, config)
        try:
            suggestions = autocomplete.suggest(
                phrase, context=context, max_results=size, loose=loose
            )
        except UnknownContextError as e:
            raise click.ClickException(f"Unknown context: {e.context}") from e
        except AutocompleteError as e:
            raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps(suggestions, ensure_ascii=False))
        return

    console = Console()
    if not suggestions:
        console.print("[yellow]No suggestions[/yellow]")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Suggestion")
    for i, label in enumerate(suggestions, 1):
        table.add_row(str(i), str(label))
    console.print(table)


@click.command()
@click.option("--alias", "-a", help="Index or alias to query (default: indexer.alias)")
@click.option("--type", "-t", "type_name", required=True, help="Autocomplete type name")
@click.option("--context", "-c", default=None, help="Count a single context")
@click.option("--prefix", "-p", default=None, help="Only contexts under this path")
@click.option("--max", "max_results", type=int, default=10, help="Maximum contexts listed")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def count_command(
    ctx: click.Context,
    alias: str | None,
    type_name: str,
    context: str | None,
    prefix: str | None,
    max_results: int,
    as_json: bool,
) -> None:
    """Show how many phrases each context holds."""
    config = get_config(ctx)
    index = resolve_alias(config, alias)

    with make_engine(config) as engine:
        autocomplete = make_type(engine, index, type_name, config)
        try:
            if context is not None:
                counts = [(autocomplete.clean_context(context), autocomplete.context_count(context))]
            else:
                counts = autocomplete.context_counts(prefix=prefix, max=max_results)
        except AutocompleteError as e:
            raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps(dict(counts), ensure_ascii=False))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Context")
    table.add_column("Phrases", justify="right")
    for name, total in counts:
        table.add_row(name, str(total))
    Console().print(table)
