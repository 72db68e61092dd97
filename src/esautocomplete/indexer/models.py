"""Index generation state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LifecycleState(str, Enum):
    """Where a generation is in its build → swap → retire cycle."""

    UNINITIALIZED = "uninitialized"
    CREATED = "created"
    POPULATED = "populated"
    LIVE = "live"
    RETIRED = "retired"
    EDITING = "editing"


@dataclass
class IndexGeneration:
    """One versioned engine index behind an alias.

    ``owns_lifecycle`` is True while this process created the index and has
    not yet handed it over to the alias; only then may abandonment delete it.
    """

    name: str
    alias: str
    owns_lifecycle: bool = True
    state: LifecycleState = LifecycleState.CREATED

    def mark_populated(self) -> None:
        if self.state is LifecycleState.CREATED:
            self.state = LifecycleState.POPULATED
