"""
Configuration Validation Utilities

Import Policy:
    from sparse_dnn.config.validation import validate_config, create_validated_config

DO NOT use: from sparse_dnn.config.validation import *
"""

import warnings
from typing import List, Tuple

from sparse_dnn.config.packing_config import PackingConfig, create_default_config, slab_count_for
from sparse_dnn.errors import ConfigurationError


class ConfigurationWarning(Warning):
    """Warning for packing choices that work but waste memory."""

    pass


def validate_config(config: PackingConfig, raise_on_error: bool = True) -> Tuple[bool, List[str]]:
    """Validate a packing configuration.

    Args:
        config: PackingConfig to validate
        raise_on_error: If True, raise ConfigurationError on validation failure

    Returns:
        Tuple of (is_valid, error_messages)

    Raises:
        ConfigurationError: If validation fails and raise_on_error=True
    """
    errors = config.validate()

    if errors:
        if raise_on_error:
            raise ConfigurationError(
                f"Packing configuration has {len(errors)} error(s):\n"
                + "\n".join(f"  - {err}" for err in errors)
            )
        return False, errors

    return True, []


def warn_if_unsafe(config: PackingConfig) -> List[str]:
    """Warn about configurations that are valid but wasteful.

    Returns:
        List of warning messages (empty if no warnings)
    """
    warnings_list = []

    # Slabs past the last column block never receive entries
    used_slabs = slab_count_for(config.cols, config.col_block_width)
    if config.slab_count > used_slabs:
        warnings_list.append(
            f"slab_count ({config.slab_count}) exceeds the {used_slabs} slab(s) "
            f"covering cols={config.cols}; trailing offsets will stay flat."
        )

    if config.max_nnz_per_layer > config.rows * config.cols:
        warnings_list.append(
            f"max_nnz_per_layer ({config.max_nnz_per_layer}) exceeds a dense "
            f"{config.rows}x{config.cols} layer."
        )

    for warning_msg in warnings_list:
        warnings.warn(warning_msg, ConfigurationWarning, stacklevel=2)

    return warnings_list


def create_validated_config(rows: int, cols: int, max_nnz_per_layer: int, **kwargs) -> PackingConfig:
    """Create a packing configuration and validate it.

    Example:
        >>> config = create_validated_config(1024, 1024, 32768, num_layers=120)
    """
    config = create_default_config(rows, cols, max_nnz_per_layer, **kwargs)
    validate_config(config)
    warn_if_unsafe(config)
    return config
