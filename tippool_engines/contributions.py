"""
Module: tippool_engines.contributions
Responsibility:
    Compute the cents every server owes every contribution pool.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - One Contribution per (server, pool) pair, server-major order.
    - amount = round(earned * percentage / 100), half away from zero.
    - A server never owes more than it earned in total: a contribution is
      capped at whatever the server has not already given to earlier pools.

Failure modes:
    - None for validated input.  Empty servers or pools yield ().
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from tippool_engines.rounding import round_cents
from tippool_engines.tracer import traced_engine
from tippool_kernel.domain.values import (
    Contribution,
    ContributionPool,
    ServerEarning,
    as_decimal,
)
from tippool_kernel.logging_config import get_logger

logger = get_logger("engines.contributions")

_HUNDRED = Decimal("100")


def contribution_cents(earned_amount_cents: int, percentage: Decimal) -> int:
    """Cents owed on ``earned_amount_cents`` at ``percentage`` percent."""
    return round_cents(Decimal(earned_amount_cents) * percentage / _HUNDRED)


@traced_engine("contributions", "1.0", fingerprint_fields=("servers", "pools"))
def compute_contributions(
    servers: Sequence[ServerEarning],
    pools: Sequence[ContributionPool],
) -> tuple[Contribution, ...]:
    """
    Cross every server with every pool.

    Args:
        servers: Servers with their earned cents for the period.
        pools: Contribution pools for the period.

    Returns:
        Contributions in server-then-pool order.
    """
    percentages = [as_decimal(pool.contribution_percentage) for pool in pools]
    contributions: list[Contribution] = []

    for server in servers:
        available = server.earned_amount_cents
        for pool, percentage in zip(pools, percentages):
            amount = min(
                contribution_cents(server.earned_amount_cents, percentage),
                available,
            )
            available -= amount
            contributions.append(
                Contribution(
                    server_id=server.employee_id,
                    pool_id=pool.pool_id,
                    amount_cents=amount,
                )
            )

    logger.info("contributions_computed", extra={
        "server_count": len(servers),
        "pool_count": len(pools),
        "contribution_count": len(contributions),
        "total_contributed_cents": sum(c.amount_cents for c in contributions),
    })
    return tuple(contributions)
