"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (ESAUTOCOMPLETE__SECTION__KEY)
3. Project YAML (./esautocomplete.yaml)
4. Global YAML (~/.config/esautocomplete/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    ESAUTOCOMPLETE__<SECTION>__<KEY>=<VALUE>

Examples:
    ESAUTOCOMPLETE__LOGGING__LEVEL=DEBUG
    ESAUTOCOMPLETE__ENGINE__URL=http://search:9200
    ESAUTOCOMPLETE__SUGGEST__MAX_RESULTS=20
    ESAUTOCOMPLETE__INDEXER__MIN_RANK=2
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

FieldType = Literal[
    "keyword", "text", "integer", "long", "float", "double", "boolean", "date", "geo_point"
]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        ESAUTOCOMPLETE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG is verbose and may impact performance.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class EngineConfig(BaseModel):
    """Search engine connection.

    Env vars:
        ESAUTOCOMPLETE__ENGINE__URL: Base URL of the Elasticsearch node
        ESAUTOCOMPLETE__ENGINE__TIMEOUT_SEC: Per-request timeout
    """

    url: str = Field(
        default="http://127.0.0.1:9200",
        description="Base URL of the search engine REST API.",
    )
    timeout_sec: float = Field(
        default=30.0,
        description="Per-request timeout. Force-merge on large indices may need more.",
    )
    health_timeout: str = Field(
        default="30s",
        description="How long the engine may block a health wait before giving up.",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Engine URL must start with http:// or https://, got {v}")
        return v.rstrip("/")


class GeoDecayConfig(BaseModel):
    """Distance-decay boosting for suggestions near a location.

    The radius is split into ``steps`` concentric bands. Each inner band's
    radius is the previous one divided by ``exponent`` and the innermost band
    gets the full ``boost``.
    """

    boost: float = Field(default=5.0, gt=0)
    radius_km: float = Field(default=1000.0, gt=0)
    exponent: float = Field(default=2.0, gt=0)
    steps: int = Field(default=4, ge=1)
    popular_radius_km: float = Field(
        default=500.0,
        gt=0,
        description="Radius used to filter popular (no-token) suggestions by location.",
    )


class TypeConfig(BaseModel):
    """Per-type suggestion settings.

    Env vars:
        ESAUTOCOMPLETE__SUGGEST__MAX_RESULTS: Default suggestion count
        ESAUTOCOMPLETE__SUGGEST__ASCII_FOLDING: Fold accents when matching
    """

    ascii_folding: bool = Field(
        default=True,
        description="Treat accented and unaccented tokens alike. Must be set before "
        "the type's mapping is created.",
    )
    max_results: int = Field(default=10, ge=1)
    min_length: int = Field(default=1, ge=1)
    max_tokens: int = Field(default=10, ge=1)
    match_boost: float = Field(
        default=1.0,
        ge=0,
        description="Extra weight for whole-token matches over partial ones. 0 disables.",
    )
    stop_words: list[str] = Field(default_factory=list)
    custom_fields: dict[str, FieldType] = Field(
        default_factory=dict,
        description="Declared extra phrase fields, mapped by name to engine field type.",
    )
    suggestion_filters: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Extra engine filter clauses applied to token queries.",
    )
    popular_filters: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Extra engine filter clauses applied to popularity queries.",
    )
    geo: GeoDecayConfig = Field(default_factory=GeoDecayConfig)

    @field_validator("stop_words")
    @classmethod
    def lowercase_stop_words(cls, v: list[str]) -> list[str]:
        return [word.lower() for word in v]

    @field_validator("custom_fields")
    @classmethod
    def validate_custom_fields(cls, v: dict[str, FieldType]) -> dict[str, FieldType]:
        reserved = {"tokens", "label", "rank", "location", "doc_type"}
        clash = sorted(reserved & set(v))
        if clash:
            raise ValueError(f"Custom fields clash with built-in fields: {', '.join(clash)}")
        return v


class IndexerConfig(BaseModel):
    """Phrase aggregation and index lifecycle settings.

    Env vars:
        ESAUTOCOMPLETE__INDEXER__ALIAS: Alias consumers query
        ESAUTOCOMPLETE__INDEXER__MIN_RANK: Drop contexts ranked below this
        ESAUTOCOMPLETE__INDEXER__BATCH_SIZE: Records per bulk request
    """

    alias: str | None = Field(
        default=None,
        description="Stable alias that suggestion queries target.",
    )
    min_rank: int = Field(default=1, ge=1)
    batch_size: int = Field(
        default=5000,
        ge=1,
        description="Phrase records per bulk request. "
        "TRADEOFF: Larger batches are faster but use more memory per request.",
    )
    scroll_size: int = Field(default=100, ge=1)
    scroll_keepalive: str = Field(default="5m")
    replicas: str | None = Field(
        default="0-all",
        description="auto_expand_replicas value applied at deploy. None leaves replicas alone.",
    )
    optimize: bool = Field(
        default=True,
        description="Force-merge the new generation to one segment before deploy.",
    )


class DebugConfig(BaseModel):
    """Debug verbosity.

    Env vars:
        ESAUTOCOMPLETE__DEBUG__LEVEL: 0 quiet, 1 operations, 2 payloads, 3 per-batch
    """

    level: int = Field(default=0, ge=0, le=3)


class AutocompleteConfig(BaseModel):
    """Root configuration for esautocomplete."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    suggest: TypeConfig = Field(default_factory=TypeConfig)
    types: dict[str, TypeConfig] = Field(default_factory=dict)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
    debug: DebugConfig = Field(default_factory=DebugConfig)

    def type_config(self, name: str) -> TypeConfig:
        """Settings for a named type, falling back to the suggest defaults."""
        return self.types.get(name, self.suggest)
