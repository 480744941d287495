"""
Pool Settings Loader (``tippool_config.loader``).

Responsibility
--------------
Loads a restaurant's pool settings YAML document and parses it into a
``PoolSettingsSet`` of ``ContributionPool`` value objects ready for the
engines.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on ``tippool_kernel``
only; the engines never import this package.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Percentages and weights are parsed to ``Decimal`` through ``str`` so a
  YAML float such as ``2.5`` is never carried as a binary float.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required key or malformed value  -> ``InvalidPoolConfigError``.
* Unknown share method  -> ``UnknownShareMethodError`` from the value type.

Range checks (percentages within [0, 100], non-negative weights) are left
to ``tippool_engines.validation``, which runs before every allocation.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from tippool_config.schema import PoolSettingsSet
from tippool_kernel.domain.values import ContributionPool, as_decimal
from tippool_kernel.exceptions import InvalidPoolConfigError
from tippool_kernel.logging_config import get_logger

logger = get_logger("config.loader")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _require(data: dict[str, Any], key: str, source: str) -> Any:
    if key not in data or data[key] is None:
        raise InvalidPoolConfigError(source, key, "missing required key")
    return data[key]


def parse_decimal(value: Any, key: str, source: str) -> Decimal:
    """Parse a number from YAML (int, float or string) into a Decimal."""
    try:
        return as_decimal(value)
    except (InvalidOperation, ValueError):
        raise InvalidPoolConfigError(source, key, f"not a number: {value!r}") from None


def parse_date(value: Any, key: str, source: str) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise InvalidPoolConfigError(source, key, f"not an ISO date: {value!r}")


def parse_pool(data: dict[str, Any], source: str = "<dict>") -> ContributionPool:
    """
    Parse a ``ContributionPool`` from a dict.

    Required keys: ``id``, ``name``, ``contribution_percentage``,
    ``share_method``.  Optional: ``eligible_employee_ids`` (list),
    ``role_weights`` (mapping of role name to weight).
    """
    pool_id = str(_require(data, "id", source))
    where = f"{source} pool {pool_id}"

    eligible = data.get("eligible_employee_ids") or []
    if not isinstance(eligible, list):
        raise InvalidPoolConfigError(where, "eligible_employee_ids", "must be a list")

    role_weights = data.get("role_weights") or {}
    if not isinstance(role_weights, dict):
        raise InvalidPoolConfigError(where, "role_weights", "must be a mapping")

    return ContributionPool(
        pool_id=pool_id,
        name=str(_require(data, "name", where)),
        contribution_percentage=parse_decimal(
            _require(data, "contribution_percentage", where),
            "contribution_percentage",
            where,
        ),
        share_method=str(_require(data, "share_method", where)),
        eligible_employee_ids=frozenset(str(e) for e in eligible),
        role_weights={
            str(role): parse_decimal(weight, f"role_weights.{role}", where)
            for role, weight in role_weights.items()
        },
    )


def parse_pool_settings(data: dict[str, Any], source: str = "<dict>") -> PoolSettingsSet:
    """Parse a full ``PoolSettingsSet`` document."""
    pools_data = data.get("pools") or []
    if not isinstance(pools_data, list):
        raise InvalidPoolConfigError(source, "pools", "must be a list")

    version = _require(data, "version", source)
    if isinstance(version, bool) or not isinstance(version, int):
        raise InvalidPoolConfigError(source, "version", f"not an integer: {version!r}")

    return PoolSettingsSet(
        restaurant_id=str(_require(data, "restaurant_id", source)),
        name=str(data.get("name", "")),
        version=version,
        pools=tuple(parse_pool(p, source) for p in pools_data),
        effective_from=(
            parse_date(data["effective_from"], "effective_from", source)
            if data.get("effective_from") else None
        ),
    )


def load_pool_settings(path: Path) -> PoolSettingsSet:
    """Load and parse a pool settings YAML file."""
    settings = parse_pool_settings(load_yaml_file(path), source=str(path))
    logger.info("pool_settings_loaded", extra={
        "source": str(path),
        "restaurant_id": settings.restaurant_id,
        "version": settings.version,
        "pool_count": len(settings.pools),
        "checksum": compute_checksum(settings),
    })
    return settings


def settings_to_dict(settings: PoolSettingsSet) -> dict[str, Any]:
    """Canonical dict form of a settings set (stable ordering, string numbers)."""
    return {
        "restaurant_id": settings.restaurant_id,
        "name": settings.name,
        "version": settings.version,
        "effective_from": settings.effective_from.isoformat() if settings.effective_from else None,
        "pools": [
            {
                "id": p.pool_id,
                "name": p.name,
                "contribution_percentage": str(as_decimal(p.contribution_percentage)),
                "share_method": p.share_method.value,
                "eligible_employee_ids": sorted(p.eligible_employee_ids),
                "role_weights": {
                    role: str(as_decimal(w)) for role, w in sorted(p.role_weights.items())
                },
            }
            for p in settings.pools
        ],
    }


def compute_checksum(settings: PoolSettingsSet) -> str:
    """
    Compute SHA-256 checksum of the canonical JSON serialization.

    Identical settings always produce identical checksums, regardless of
    the order in which eligible ids or role weights were written.
    """
    canonical = json.dumps(settings_to_dict(settings), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
