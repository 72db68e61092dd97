"""Zero-downtime index lifecycle.

Reindexing builds a fresh generation next to the live one, fills it, then
repoints the alias in one atomic request and deletes the old generation:

    init()    -> CREATED      new index "<alias>_<millis>", health green
    type(..)  -> POPULATED    once phrases are written
    deploy()  -> LIVE         force-merge, replicas, atomic alias swap, delete old
    close()   -> RETIRED      only if this process created it and never deployed

``edit()`` attaches to the generation already behind the alias instead
(EDITING); such a generation is never deleted on close.

Usage::

    with IndexLifecycle(engine, "suggest", types={"names": names}) as lifecycle:
        indexer = lifecycle.type("names")
        indexer.init()
        indexer.index_phrases(parser=parse, source=documents)
        lifecycle.deploy()

Concurrent deploys from different processes against the same alias are not
coordinated here.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from types import TracebackType

import structlog

from esautocomplete.config.models import IndexerConfig
from esautocomplete.core.errors import ConfigError, EngineError, LifecycleError
from esautocomplete.engine.base import SearchEngine
from esautocomplete.engine.schema import index_settings
from esautocomplete.indexer.models import IndexGeneration, LifecycleState
from esautocomplete.indexer.writer import TypeIndexer
from esautocomplete.suggest.service import AutocompleteType

logger = structlog.get_logger()


def generation_name(alias: str) -> str:
    return f"{alias}_{time.time_ns() // 1_000_000}"


class IndexLifecycle:
    """Creates, populates, deploys and retires index generations for an alias."""

    def __init__(
        self,
        engine: SearchEngine | None,
        alias: str | None,
        types: Mapping[str, AutocompleteType] | None = None,
        config: IndexerConfig | None = None,
        *,
        edit: bool = False,
        debug: int = 0,
    ) -> None:
        if engine is None:
            raise ConfigError.missing_required("engine")
        if not alias:
            raise ConfigError.missing_required("alias")
        self.engine = engine
        self.alias = alias
        self.types = dict(types or {})
        self.config = config or IndexerConfig()
        self.debug = debug
        self.generation: IndexGeneration | None = None
        if edit:
            self.edit()

    def __enter__(self) -> IndexLifecycle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is None:
            self.close()
            return
        try:
            self.close()
        except EngineError as cleanup_error:
            # The original failure is more useful to the caller
            logger.warning(
                "lifecycle.cleanup_failed",
                index=self.index,
                error=str(cleanup_error),
            )

    @property
    def index(self) -> str | None:
        """Name of the working generation, if any."""
        gen = self.generation
        if gen is None or gen.state is LifecycleState.RETIRED:
            return None
        return gen.name

    @property
    def state(self) -> LifecycleState:
        if self.generation is None:
            return LifecycleState.UNINITIALIZED
        return self.generation.state

    @property
    def owns_lifecycle(self) -> bool:
        gen = self.generation
        return gen is not None and gen.state is not LifecycleState.RETIRED and gen.owns_lifecycle

    def init(self) -> str:
        """Create a new generation unless one is already being worked on."""
        if self.index is not None:
            return self.index

        name = generation_name(self.alias)
        logger.info("lifecycle.create_index", alias=self.alias, index=name)
        self.engine.create_index(name, index_settings())
        self.generation = IndexGeneration(name=name, alias=self.alias)
        self.engine.wait_for_health(name, "green")
        return name

    def edit(self) -> str:
        """Attach to the generation currently behind the alias.

        A generation this process created but never deployed is deleted first.
        """
        current = self.engine.get_alias(self.alias)
        if not current:
            raise LifecycleError.alias_not_found(self.alias)
        self.close()
        logger.info("lifecycle.edit", alias=self.alias, index=current)
        self.generation = IndexGeneration(
            name=current,
            alias=self.alias,
            owns_lifecycle=False,
            state=LifecycleState.EDITING,
        )
        return current

    def type(self, name: str) -> TypeIndexer:
        """Indexer for a configured type, bound to the working generation."""
        if not name:
            raise ConfigError.missing_required("type")
        autocomplete_type = self.types.get(name)
        if autocomplete_type is None:
            raise LifecycleError.unknown_type(name)
        index = self.init()
        return TypeIndexer(
            self.engine,
            index,
            autocomplete_type,
            config=self.config,
            generation=self.generation,
            debug=self.debug,
        )

    def deploy(self, optimize: bool | None = None, replicas: str | None = None) -> None:
        """Make the working generation live under the alias.

        The old generation is removed from the alias and the new one added in
        a single request, so readers never see the alias unbound or doubled.
        The old generation is deleted only after that succeeds.

        Args:
            optimize: Force-merge first (defaults to config.optimize).
            replicas: auto_expand_replicas value (defaults to config.replicas;
                None in config leaves replicas unchanged).
        """
        gen = self.generation
        if gen is None or gen.state is LifecycleState.RETIRED:
            raise LifecycleError.no_index("deploy")
        index = gen.name

        if self.config.optimize if optimize is None else optimize:
            logger.info("lifecycle.optimize", index=index)
            self.engine.optimize(index, max_num_segments=1)

        replicas = replicas or self.config.replicas
        if replicas:
            logger.info("lifecycle.set_replicas", index=index, replicas=replicas)
            self.engine.update_settings(index, {"auto_expand_replicas": replicas})
            self.engine.wait_for_health(index, "green")

        old = self.engine.get_alias(self.alias)
        if old != index:
            actions = []
            if old:
                actions.append({"remove": {"index": old, "alias": self.alias}})
            actions.append({"add": {"index": index, "alias": self.alias}})
            logger.info("lifecycle.swap_alias", alias=self.alias, old=old, new=index)
            self.engine.atomic_alias_swap(actions)

        gen.owns_lifecycle = False
        gen.state = LifecycleState.LIVE
        if old and old != index:
            logger.info("lifecycle.delete_old", index=old)
            self.engine.delete_index(old)

    def delete(self) -> None:
        """Delete the working generation."""
        gen = self.generation
        if gen is None or gen.state is LifecycleState.RETIRED:
            raise LifecycleError.no_index("delete")
        logger.info("lifecycle.delete_index", index=gen.name)
        self.engine.delete_index(gen.name)
        gen.state = LifecycleState.RETIRED

    def close(self) -> None:
        """Delete an owned generation that was never deployed."""
        gen = self.generation
        if gen is None or not gen.owns_lifecycle:
            return
        if gen.state in (LifecycleState.LIVE, LifecycleState.RETIRED):
            return
        logger.info("lifecycle.abandon", index=gen.name, state=gen.state.value)
        self.engine.delete_index(gen.name)
        gen.state = LifecycleState.RETIRED
