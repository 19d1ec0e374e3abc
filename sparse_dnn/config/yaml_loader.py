"""defaults.yaml access.

The packaged defaults.yaml holds the tunable defaults (delimiter, slab
geometry, value kind, file name templates). Setting SPARSE_DNN_DEFAULTS_PATH
points every lookup at another file instead; the file is read once and
cached until reload_defaults() is called.

Only sparse_dnn.errors is imported here so any config module can use it.

Usage:
    from sparse_dnn.config.yaml_loader import get_default
    width = get_default('packing.col_block_width')
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from sparse_dnn.errors import ConfigurationError

DEFAULTS_ENV_VAR = "SPARSE_DNN_DEFAULTS_PATH"

_PACKAGED_DEFAULTS = Path(__file__).parent / "defaults.yaml"

_cache: dict[str, Any] | None = None


def defaults_path() -> Path:
    """Path of the defaults file in effect.

    Raises:
        ConfigurationError: If SPARSE_DNN_DEFAULTS_PATH names a missing file
    """
    override = os.getenv(DEFAULTS_ENV_VAR)
    if override:
        path = Path(override)
        if not path.is_file():
            raise ConfigurationError(f"{DEFAULTS_ENV_VAR} points to a missing file: {path}")
        return path
    return _PACKAGED_DEFAULTS


def _read_defaults(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {path}: {e}") from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(
            f"{path} must hold a mapping of sections, got {type(loaded).__name__}"
        )
    return loaded


def _defaults() -> dict[str, Any]:
    global _cache
    if _cache is None:
        _cache = _read_defaults(defaults_path())
    return _cache


def get_defaults() -> dict[str, Any]:
    """Shallow copy of every section of the defaults file.

    Example:
        >>> get_defaults()['packing']['slab_count']
        1
    """
    return dict(_defaults())


def get_default(key_path: str, default: Any = None) -> Any:
    """Value at a dotted key path, or default when any part is absent.

    Example:
        >>> get_default('packing.value_kind')
        'float32'
        >>> get_default('packing.missing', 'fallback')
        'fallback'
    """
    node: Any = _defaults()
    for key in key_path.split("."):
        if not isinstance(node, dict) or node.get(key) is None:
            return default
        node = node[key]
    return node


def reload_defaults() -> None:
    """Drop the cached defaults and read the file in effect again."""
    global _cache
    _cache = None
    _defaults()
