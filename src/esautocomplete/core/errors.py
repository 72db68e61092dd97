"""esautocomplete error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index (aggregation, bulk writes)
- 4xxx: Lifecycle
- 5xxx: Suggest
- 6xxx: Engine
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003

    # Index (3xxx)
    INDEX_BULK_FAILED = 3001
    INDEX_MISSING_PARSER = 3002
    INDEX_MISSING_SOURCE = 3003
    INDEX_RANK_MODE_CONFLICT = 3004
    INDEX_PHRASE_FILE = 3005

    # Lifecycle (4xxx)
    LIFECYCLE_NO_INDEX = 4001
    LIFECYCLE_ALIAS_NOT_FOUND = 4002
    LIFECYCLE_UNKNOWN_TYPE = 4003

    # Suggest (5xxx)
    SUGGEST_UNKNOWN_CONTEXT = 5001

    # Engine (6xxx)
    ENGINE_REQUEST_FAILED = 6001
    ENGINE_UNAVAILABLE = 6002
    ENGINE_HEALTH_TIMEOUT = 6003


@dataclass(frozen=True, slots=True)
class AutocompleteError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(AutocompleteError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required param '{field}'",
            details={"field": field},
        )


class AggregationError(AutocompleteError):
    """Errors while folding source documents into phrase records."""

    @classmethod
    def missing_parser(cls) -> "AggregationError":
        return cls(
            code=ErrorCode.INDEX_MISSING_PARSER,
            message="No parser callback passed to aggregate_phrases()",
        )

    @classmethod
    def missing_source(cls) -> "AggregationError":
        return cls(
            code=ErrorCode.INDEX_MISSING_SOURCE,
            message="No query or source passed to aggregate_phrases()",
        )

    @classmethod
    def rank_mode_conflict(cls, phrase_id: str, context: str) -> "AggregationError":
        return cls(
            code=ErrorCode.INDEX_RANK_MODE_CONFLICT,
            message=(
                f"Phrase '{phrase_id}' mixes explicit ranks and counted occurrences "
                f"in context '{context}'"
            ),
            details={"phrase_id": phrase_id, "context": context},
        )

    @classmethod
    def phrase_file(cls, path: str, reason: str) -> "AggregationError":
        return cls(
            code=ErrorCode.INDEX_PHRASE_FILE,
            message=f"Couldn't read phrases from {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class BulkIndexError(AutocompleteError):
    """One or more records in a bulk batch failed to index."""

    @classmethod
    def from_errors(cls, samples: list[str], remaining: int, indexed: int) -> "BulkIndexError":
        lines = list(samples)
        if remaining:
            lines.append(f"...and {remaining} more")
        return cls(
            code=ErrorCode.INDEX_BULK_FAILED,
            message="Errors occurred while indexing: " + "; ".join(lines),
            details={"errors": samples, "remaining": remaining, "indexed": indexed},
        )


class LifecycleError(AutocompleteError):
    """Index generation precondition failures."""

    @classmethod
    def no_index(cls, operation: str) -> "LifecycleError":
        hint = " Did you mean to 'edit' the existing index?" if operation == "delete" else ""
        return cls(
            code=ErrorCode.LIFECYCLE_NO_INDEX,
            message=f"No index to {operation}.{hint}",
            details={"operation": operation},
        )

    @classmethod
    def alias_not_found(cls, alias: str) -> "LifecycleError":
        return cls(
            code=ErrorCode.LIFECYCLE_ALIAS_NOT_FOUND,
            message=f"Cannot edit existing index - Alias '{alias}' doesn't exist",
            details={"alias": alias},
        )

    @classmethod
    def unknown_type(cls, name: str) -> "LifecycleError":
        return cls(
            code=ErrorCode.LIFECYCLE_UNKNOWN_TYPE,
            message=f"Unknown type '{name}'",
            details={"type": name},
        )


class UnknownContextError(AutocompleteError):
    """No phrase was ever indexed under the requested context."""

    @classmethod
    def for_context(cls, context: str, reason: str = "") -> "UnknownContextError":
        return cls(
            code=ErrorCode.SUGGEST_UNKNOWN_CONTEXT,
            message=f"Unknown context: {context}",
            retryable=False,
            details={"context": context, "reason": reason},
        )

    @property
    def context(self) -> str:
        return str(self.details.get("context", ""))


class EngineError(AutocompleteError):
    """Search engine request failures."""

    @classmethod
    def request_failed(
        cls, method: str, path: str, status: int, reason: str
    ) -> "EngineError":
        return cls(
            code=ErrorCode.ENGINE_REQUEST_FAILED,
            message=f"{method} {path} failed with status {status}: {reason}",
            details={"method": method, "path": path, "status": status, "reason": reason},
        )

    @classmethod
    def unavailable(cls, url: str, reason: str) -> "EngineError":
        return cls(
            code=ErrorCode.ENGINE_UNAVAILABLE,
            message=f"Search engine at {url} is unavailable: {reason}",
            retryable=True,
            details={"url": url, "reason": reason},
        )

    @classmethod
    def health_timeout(cls, index: str, status: str) -> "EngineError":
        return cls(
            code=ErrorCode.ENGINE_HEALTH_TIMEOUT,
            message=f"Timed out waiting for index '{index}' to reach status '{status}'",
            retryable=True,
            details={"index": index, "status": status},
        )

    @property
    def reason(self) -> str:
        return str(self.details.get("reason", ""))

