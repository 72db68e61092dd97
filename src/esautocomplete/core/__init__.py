"""Core module exports."""

from esautocomplete.core.errors import (
    AggregationError,
    AutocompleteError,
    BulkIndexError,
    ConfigError,
    EngineError,
    ErrorCode,
    LifecycleError,
    UnknownContextError,
)
from esautocomplete.core.logging import (
    clear_request_id,
    configure_logging,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "AggregationError",
    "AutocompleteError",
    "BulkIndexError",
    "ConfigError",
    "EngineError",
    "ErrorCode",
    "LifecycleError",
    "UnknownContextError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_request_id",
    "set_request_id",
]
