"""Config module exports."""

from esautocomplete.config.loader import load_config
from esautocomplete.config.models import (
    AutocompleteConfig,
    DebugConfig,
    EngineConfig,
    GeoDecayConfig,
    IndexerConfig,
    LoggingConfig,
    TypeConfig,
)

__all__ = [
    "load_config",
    "AutocompleteConfig",
    "DebugConfig",
    "EngineConfig",
    "GeoDecayConfig",
    "IndexerConfig",
    "LoggingConfig",
    "TypeConfig",
]
