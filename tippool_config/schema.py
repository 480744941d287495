"""
Pool settings schema.

Defines the human-authored, reviewable source artifact for a restaurant's
contribution pools.  YAML documents are parsed into these types by the
loader; the engines consume the ``ContributionPool`` tuple they hold.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from tippool_kernel.domain.values import ContributionPool, as_decimal


@dataclass(frozen=True)
class PoolSettingsSet:
    """All contribution pools configured for one restaurant."""

    restaurant_id: str
    name: str
    version: int
    pools: tuple[ContributionPool, ...] = ()
    effective_from: date | None = None

    def pool(self, pool_id: str) -> ContributionPool | None:
        for p in self.pools:
            if p.pool_id == pool_id:
                return p
        return None

    @property
    def total_contribution_percentage(self) -> Decimal:
        return sum(
            (as_decimal(p.contribution_percentage) for p in self.pools),
            Decimal("0"),
        )
