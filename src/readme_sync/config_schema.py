"""Unified configuration schema for readme_sync.

Pydantic models for the YAML config, with one section per concern:

* ``readme``: API connection settings.
* ``sync``: docs directory, default categories and the filter pipeline.
* ``logging``: log level and optional log file.

A flat legacy layout with ``categories`` and ``filters`` at the top level
is accepted too and folded into the ``sync`` section.

Usage:
    from readme_sync.config_schema import build_config

    unified = build_config(load_hierarchical_config())
    fallbacks = unified.readme.model_dump(exclude_none=True)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_DOCS_DIR = "docs"


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ReadmeConfig(BaseModel):
    """ReadMe API connection settings.

    All fields are optional here; env vars and CLI args can supply them.
    """

    api_key: str | None = Field(default=None, description="ReadMe API key")
    docs_version: str | None = Field(
        default=None, description="Documentation version to act upon"
    )
    api_url: str | None = Field(default=None, description="API root URL")
    max_parallel_requests: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum concurrent requests to the ReadMe API (1-100)",
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """What to sync and how to transform it.

    Attributes:
        dir: Local docs directory.
        categories: Category slugs used when none are given on the command line.
        filters: Ordered ``{filter_name: options}`` mapping; order is
            application order.
    """

    dir: str = Field(default=DEFAULT_DOCS_DIR, description="Local docs directory")
    categories: list[str] = Field(default_factory=list)
    filters: dict[str, dict[str, Any]] = Field(default_factory=dict)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration; ``UnifiedConfig()`` is always valid."""

    readme: ReadmeConfig = Field(default_factory=ReadmeConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------

_LEGACY_SYNC_KEYS = ("categories", "filters", "dir")


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from ``load_hierarchical_config()`` output.

    Missing sections get defaults. ``None`` filter options (a bare
    ``footer:`` key in YAML) are read as empty options.

    Raises:
        pydantic.ValidationError: If a section fails validation.
    """
    if not raw_data:
        return UnifiedConfig()

    data = dict(raw_data)
    legacy = {key: data.pop(key) for key in _LEGACY_SYNC_KEYS if key in data}
    if legacy:
        logger.debug("Folding top-level %s into the sync section", sorted(legacy))
        data["sync"] = {**legacy, **(data.get("sync") or {})}

    sync = data.get("sync")
    if isinstance(sync, dict) and isinstance(sync.get("filters"), dict):
        data["sync"] = {
            **sync,
            "filters": {
                name: options or {} for name, options in sync["filters"].items()
            },
        }

    return UnifiedConfig(**data)
