"""
YAML configuration discovery and loading for readme_sync.

Config files are plain YAML with two extensions:

* ``!include other.yml`` splices another file in place, resolved relative
  to the including file. Include cycles are reported as ``ValueError``.
* ``${VAR}`` / ``${VAR:-default}`` in any string is replaced from the
  environment after all files are merged.

Usage:
    from readme_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "README_SYNC_CONFIG"

# ---------------------------------------------------------------------------
# 1. Env var interpolation
# ---------------------------------------------------------------------------

# ${NAME} or ${NAME:-fallback}
_ENV_REFERENCE = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` references in *value*.

    An unset or empty variable expands to its default, or to ``""`` when
    there is none. An unterminated ``${`` is kept literally.
    """

    def _expand(match: re.Match) -> str:
        current = os.environ.get(match.group(1))
        if current:
            return current
        return match.group(2) or ""

    return _ENV_REFERENCE.sub(_expand, value)


def _interpolate_tree(node: Any) -> Any:
    if isinstance(node, str):
        return interpolate_env_vars(node)
    if isinstance(node, dict):
        return {key: _interpolate_tree(item) for key, item in node.items()}
    if isinstance(node, list):
        return [_interpolate_tree(item) for item in node]
    return node


# ---------------------------------------------------------------------------
# 2. YAML !include support
# ---------------------------------------------------------------------------


class IncludeLoader(yaml.SafeLoader):
    """``yaml.SafeLoader`` with an ``!include`` tag.

    A subclass keeps the tag out of the global SafeLoader. Each instance
    carries the chain of files currently being loaded.
    """

    include_chain: list[Path]


def _construct_include(loader: IncludeLoader, node: yaml.ScalarNode) -> Any:
    target = Path(loader.construct_scalar(node))
    if not target.is_absolute():
        target = Path(loader.name).resolve().parent / target
    target = target.resolve()

    chain = getattr(loader, "include_chain", [])
    if target in chain:
        cycle = " -> ".join(str(p) for p in [*chain, target])
        raise ValueError(f"Circular include detected: {cycle}")

    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} (referenced from {Path(loader.name).resolve()})"
        )

    return load_yaml_file(target, _chain=[*chain, target])


IncludeLoader.add_constructor("!include", _construct_include)


def load_yaml_file(path: Path, *, _chain: list[Path] | None = None) -> Any:
    """Parse one YAML file, following ``!include`` directives."""
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = IncludeLoader(fh)
        loader.include_chain = _chain if _chain is not None else [path]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# 3. Discovery
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Return existing config files, highest precedence first.

    Search order:
        1. ``$README_SYNC_CONFIG`` (explicit single path)
        2. ``config.yml`` in CWD
        3. ``.readme_sync/config.yml`` in CWD
        4. ``~/.config/readme_sync/config.yml``
    """
    candidates: list[Path] = []

    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())

    cwd = Path.cwd()
    candidates.append(cwd / "config.yml")
    candidates.append(cwd / ".readme_sync" / "config.yml")
    candidates.append(Path.home() / ".config" / "readme_sync" / "config.yml")

    return [p for p in candidates if p.exists()]


# ---------------------------------------------------------------------------
# 4. Merge
# ---------------------------------------------------------------------------


def _merge_files(paths: list[Path]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    # Lowest precedence first so later updates win.
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = load_yaml_file(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )
    return _interpolate_tree(merged)


def load_hierarchical_config(explicit_path: str | Path | None = None) -> dict[str, Any]:
    """Load and merge configuration files.

    With *explicit_path* (the CLI ``--config`` option) only that file is
    read. Otherwise every discovered file is merged with "project wins"
    semantics: top-level keys of a higher-precedence file replace those of
    lower ones wholesale.

    Returns an empty dict when no config files exist.

    Raises:
        FileNotFoundError: If *explicit_path* does not exist.
    """
    if explicit_path is not None:
        path = Path(explicit_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        return _merge_files([path])

    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using defaults")
        return {}
    return _merge_files(paths)
