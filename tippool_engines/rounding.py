"""
Module: tippool_engines.rounding
Responsibility:
    Round to whole cents and split an integer number of cents across
    weighted recipients so that the parts always add back to the whole.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Shared by contributions, pool distribution, refunds and direct splits.

Invariants enforced:
    - Rounding is half away from zero (ROUND_HALF_UP on non-negative
      values) at the cent boundary.
    - allocate_by_weight: sum(parts) == total_cents whenever any weight is
      positive.  Every part is rounded on its own; the last recipient with
      a positive weight absorbs the signed residual.
    - No part is ever negative: a non-last part is capped at what is still
      unallocated, so the residual can never drive the last part below 0.
    - All intermediate arithmetic is Decimal; multiply before dividing.

Failure modes:
    - ValueError on a negative total or a negative weight (programming
      error; user input is rejected earlier by tippool_engines.validation).
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from tippool_kernel.logging_config import get_logger

logger = get_logger("engines.rounding")

_ONE_CENT = Decimal("1")
_ZERO = Decimal("0")


def round_cents(value: Decimal) -> int:
    """Round a Decimal number of cents to the nearest whole cent, half up."""
    return int(value.quantize(_ONE_CENT, rounding=ROUND_HALF_UP))


def allocate_by_weight(total_cents: int, weights: Sequence[Decimal]) -> tuple[int, ...]:
    """
    Split ``total_cents`` proportionally to ``weights``.

    Preconditions:
        - ``total_cents >= 0``; every weight ``>= 0``.
    Postconditions:
        - One part per weight, in input order.
        - If the total weight is zero every part is 0 (nothing can be
          split; callers decide whether that is a refund case).
        - Otherwise ``sum(parts) == total_cents``; zero-weight entries get 0
          and the last positive-weight entry absorbs the rounding residual.
    Raises:
        ValueError: on negative total or weights.
    """
    if total_cents < 0:
        raise ValueError(f"Cannot allocate a negative total: {total_cents}")
    if any(w < _ZERO for w in weights):
        raise ValueError("Weights cannot be negative")

    weight_sum = sum(weights, _ZERO)
    if weight_sum == _ZERO:
        return tuple(0 for _ in weights)

    rounding_index = max(i for i, w in enumerate(weights) if w > _ZERO)
    total = Decimal(total_cents)

    parts: list[int] = []
    allocated_so_far = 0
    naive_total = 0
    for i, weight in enumerate(weights):
        if weight == _ZERO:
            parts.append(0)
            continue
        naive = round_cents(total * weight / weight_sum)
        naive_total += naive
        if i == rounding_index:
            # Rounding target gets the remainder
            part = total_cents - allocated_so_far
        else:
            part = min(naive, total_cents - allocated_so_far)
            allocated_so_far += part
        parts.append(part)

    residual = total_cents - naive_total
    if residual:
        logger.debug("rounding_residual_absorbed", extra={
            "total_cents": total_cents,
            "residual_cents": residual,
            "recipient_index": rounding_index,
            "recipient_count": len(weights),
        })

    return tuple(parts)
