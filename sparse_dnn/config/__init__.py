"""Configuration Module - defaults and packing geometry

Default Configuration (loaded from defaults.yaml):
    from sparse_dnn.config import get_default
    width = get_default('packing.col_block_width')

Recommended Usage:
    from sparse_dnn.config import PackingConfig, ValueKind, create_validated_config

    config = create_validated_config(
        rows=1024, cols=1024, max_nnz_per_layer=32768,
        num_layers=120, value_kind=ValueKind.FLOAT32,
    )
    words_per_layer = config.stride

Import Policy:
    DO NOT use: from sparse_dnn.config import *
"""

from sparse_dnn.config.enums import ValueKind
from sparse_dnn.config.yaml_loader import get_default, get_defaults, reload_defaults
from sparse_dnn.config.packing_config import (
    PackingConfig,
    create_default_config,
    slab_count_for,
)
from sparse_dnn.config.validation import (
    ConfigurationWarning,
    create_validated_config,
    validate_config,
    warn_if_unsafe,
)


__all__ = [
    "ValueKind",
    "PackingConfig",
    "create_default_config",
    "slab_count_for",
    "ConfigurationWarning",
    "create_validated_config",
    "validate_config",
    "warn_if_unsafe",
    "get_default",
    "get_defaults",
    "reload_defaults",
]
