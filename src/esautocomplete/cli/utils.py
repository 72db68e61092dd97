"""Shared CLI helpers."""

from __future__ import annotations

from pathlib import Path

import click

from esautocomplete.config.loader import load_config
from esautocomplete.config.models import AutocompleteConfig
from esautocomplete.core.errors import ConfigError
from esautocomplete.engine.http import HttpSearchEngine
from esautocomplete.suggest.service import AutocompleteType


def get_config(ctx: click.Context) -> AutocompleteConfig:
    """Config loaded once per invocation from the --config-dir given to the group."""
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        try:
            obj["config"] = load_config(obj.get("config_dir") or Path.cwd())
        except ConfigError as e:
            raise click.ClickException(str(e)) from e
    return obj["config"]  # type: ignore[no-any-return]


def resolve_alias(config: AutocompleteConfig, alias: str | None) -> str:
    alias = alias or config.indexer.alias
    if not alias:
        raise click.UsageError("No alias given: pass --alias or set indexer.alias in config")
    return alias


def make_engine(config: AutocompleteConfig) -> HttpSearchEngine:
    return HttpSearchEngine(config.engine)


def make_type(
    engine: HttpSearchEngine,
    index: str,
    name: str,
    config: AutocompleteConfig,
) -> AutocompleteType:
    return AutocompleteType(
        engine,
        index,
        name,
        config.type_config(name),
        debug=config.debug.level,
    )
