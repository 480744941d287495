"""
tippool_config -- restaurant pool settings.

Responsibility:
    Turns a restaurant's YAML pool settings into the immutable
    ``ContributionPool`` values the engines consume.

Architecture position:
    Configuration -- sits above ``tippool_kernel``.  ``tippool_engines``
    MUST NEVER import from ``tippool_config``; callers load settings and
    pass the pools in.
"""

from tippool_config.loader import (
    compute_checksum,
    load_pool_settings,
    parse_pool,
    parse_pool_settings,
)
from tippool_config.schema import PoolSettingsSet

__all__ = [
    "PoolSettingsSet",
    "compute_checksum",
    "load_pool_settings",
    "parse_pool",
    "parse_pool_settings",
]
