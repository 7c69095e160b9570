"""Connection settings for the ReadMe API.

Reads the API key, docs version and tuning knobs from CLI args, environment
variables, .env files, and the YAML config ``readme`` section.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    README_API_KEY: ReadMe project API key (required)
    README_DOCS_VERSION: Docs version the requests apply to (required)
    README_API_URL: API root (optional, default: https://dash.readme.io/api/v1)
    README_MAX_PARALLEL_REQUESTS: Max concurrent API requests (optional, default: 10)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://dash.readme.io/api/v1"
DEFAULT_MAX_PARALLEL_REQUESTS = 10


@dataclass
class Config:
    api_key: str
    docs_version: str
    api_url: str = DEFAULT_API_URL
    debug: bool = False
    max_parallel_requests: int = DEFAULT_MAX_PARALLEL_REQUESTS


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ConfigurationError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ConfigurationError: If the URL format is invalid or a required value is empty.
    """
    config.api_url = config.api_url.strip()

    if not config.api_url.startswith(("http://", "https://")):
        raise ConfigurationError(
            f"Invalid ReadMe API URL '{config.api_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.api_url)
    if not parsed.hostname:
        raise ConfigurationError(
            f"Invalid ReadMe API URL '{config.api_url}': URL must include a hostname"
        )

    config.api_url = config.api_url.removesuffix("/")

    if not config.api_key.strip():
        raise ConfigurationError(
            "ReadMe API key cannot be empty. Set README_API_KEY environment variable."
        )

    if not config.docs_version.strip():
        raise ConfigurationError(
            "Docs version cannot be empty. Set README_DOCS_VERSION environment variable."
        )

    if not (1 <= config.max_parallel_requests <= 100):
        raise ConfigurationError(
            f"Invalid max_parallel_requests {config.max_parallel_requests}: "
            "must be a number between 1 and 100"
        )


def load_config(
    api_key: str | None = None,
    docs_version: str | None = None,
    api_url: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        api_key: Override API key.
        docs_version: Override docs version.
        api_url: Override API root URL.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML config ``readme`` section.

    Returns:
        Validated Config instance.

    Raises:
        ConfigurationError: If a required value is missing after checking
            all sources, or a value is invalid.
    """
    fb = yaml_fallbacks or {}

    final_api_key = api_key or os.getenv("README_API_KEY") or fb.get("api_key")
    if not final_api_key:
        raise ConfigurationError(
            "ReadMe API key not found. Set README_API_KEY environment variable, "
            "pass --api-key CLI argument, or add 'api_key' to config.yml."
        )

    final_version = (
        docs_version or os.getenv("README_DOCS_VERSION") or fb.get("docs_version")
    )
    if not final_version:
        raise ConfigurationError(
            "Docs version not found. Set README_DOCS_VERSION environment variable, "
            "pass --docs-version CLI argument, or add 'docs_version' to config.yml."
        )

    final_api_url = (
        api_url or os.getenv("README_API_URL") or fb.get("api_url") or DEFAULT_API_URL
    )

    max_parallel_raw = os.getenv("README_MAX_PARALLEL_REQUESTS")
    if max_parallel_raw is not None:
        try:
            final_max_parallel = int(max_parallel_raw)
        except ValueError:
            raise ConfigurationError(
                f"Invalid README_MAX_PARALLEL_REQUESTS '{max_parallel_raw}': must be a number between 1 and 100"
            ) from None
    elif "max_parallel_requests" in fb:
        final_max_parallel = int(fb["max_parallel_requests"])
    else:
        final_max_parallel = DEFAULT_MAX_PARALLEL_REQUESTS

    config = Config(
        api_key=str(final_api_key).strip(),
        docs_version=str(final_version).strip(),
        api_url=str(final_api_url),
        debug=debug,
        max_parallel_requests=final_max_parallel,
    )

    validate_config(config)

    return config
