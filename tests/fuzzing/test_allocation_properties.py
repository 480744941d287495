"""
Hypothesis-based property tests for the allocation engines.

Random periods (servers, pools, workers) are generated and the engine's
guarantees are checked on every one:

- Conservation: split items sum to the servers' earnings
- Pool balance: contributed == distributed + refunded, and never both
- Bounds: 0 <= retained <= earned, no negative split item
- Idempotence: identical input gives identical output
- Weighted allocation always sums to its total
"""

from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from tippool_engines.aggregation import compute_percentage_pool_allocations
from tippool_engines.rounding import allocate_by_weight
from tippool_engines.tip_split import rebalance_allocations
from tippool_kernel.domain.values import (
    ContributionPool,
    PoolWorker,
    ServerEarning,
    TipShare,
)
from tippool_kernel.exceptions import OverrideOutOfRangeError

EMPLOYEES = [f"e{i}" for i in range(8)]
ROLES = ["Chef", "Prep", "Host", "Barback"]

FUZZ_SETTINGS = settings(
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)


@composite
def servers(draw):
    ids = draw(st.lists(st.sampled_from(EMPLOYEES), unique=True, max_size=5))
    return [
        ServerEarning(
            employee_id=employee_id,
            name=employee_id.upper(),
            earned_amount_cents=draw(st.integers(min_value=0, max_value=2_000_000)),
        )
        for employee_id in ids
    ]


@composite
def pools(draw):
    count = draw(st.integers(min_value=0, max_value=4))
    result = []
    for i in range(count):
        result.append(ContributionPool(
            pool_id=f"p{i}",
            name=f"Pool {i}",
            # pools may add up to more than 100%
            contribution_percentage=draw(st.decimals(
                min_value=Decimal("0"),
                max_value=Decimal("100"),
                places=2,
            )),
            share_method=draw(st.sampled_from(["hours", "role", "even"])),
            eligible_employee_ids=frozenset(draw(st.lists(st.sampled_from(EMPLOYEES)))),
            role_weights=draw(st.dictionaries(
                st.sampled_from(ROLES[:3]),
                st.decimals(min_value=Decimal("0"), max_value=Decimal("5"), places=1),
            )),
        ))
    return result


@composite
def workers(draw):
    ids = draw(st.lists(st.sampled_from(EMPLOYEES), unique=True, max_size=8))
    return [
        PoolWorker(
            employee_id=employee_id,
            name=employee_id.upper(),
            hours_worked=draw(st.decimals(
                min_value=Decimal("0"), max_value=Decimal("14"), places=2,
            )),
            role=draw(st.sampled_from(ROLES)),
        )
        for employee_id in ids
    ]


class TestAllocationProperties:
    @given(servers=servers(), pools=pools(), workers=workers())
    @FUZZ_SETTINGS
    def test_conservation(self, servers, pools, workers):
        result = compute_percentage_pool_allocations(servers, pools, workers)
        assert result.total_paid_out == sum(s.earned_amount_cents for s in servers)

    @given(servers=servers(), pools=pools(), workers=workers())
    @FUZZ_SETTINGS
    def test_pool_balance(self, servers, pools, workers):
        result = compute_percentage_pool_allocations(servers, pools, workers)
        assert [p.pool_id for p in result.pool_results] == [p.pool_id for p in pools]
        for pool_result in result.pool_results:
            assert pool_result.total_contributed == (
                pool_result.total_distributed + pool_result.total_refunded
            )
            assert pool_result.total_distributed == 0 or pool_result.total_refunded == 0

    @given(servers=servers(), pools=pools(), workers=workers())
    @FUZZ_SETTINGS
    def test_amounts_in_bounds(self, servers, pools, workers):
        result = compute_percentage_pool_allocations(servers, pools, workers)
        for server_result in result.server_results:
            assert 0 <= server_result.retained_amount_cents <= server_result.earned_amount_cents
            assert server_result.retained_amount_cents == (
                server_result.earned_amount_cents
                - server_result.contributed_amount_cents
                + server_result.refunded_amount_cents
            )
        assert all(item.amount_cents >= 0 for item in result.split_items)
        assert all(share.amount_cents >= 0 for share in result.shares)
        assert all(refund.refund_cents >= 0 for refund in result.refunds)

    @given(servers=servers(), pools=pools(), workers=workers())
    @FUZZ_SETTINGS
    def test_one_split_item_per_employee(self, servers, pools, workers):
        result = compute_percentage_pool_allocations(servers, pools, workers)
        ids = [item.employee_id for item in result.split_items]
        assert len(ids) == len(set(ids))

    @given(servers=servers(), pools=pools(), workers=workers())
    @FUZZ_SETTINGS
    def test_idempotent(self, servers, pools, workers):
        first = compute_percentage_pool_allocations(servers, pools, workers)
        second = compute_percentage_pool_allocations(servers, pools, workers)
        assert first == second


class TestWeightedAllocationProperties:
    @given(
        total=st.integers(min_value=0, max_value=10_000_000),
        weights=st.lists(
            st.decimals(min_value=Decimal("0"), max_value=Decimal("1000"), places=3),
            max_size=20,
        ),
    )
    @FUZZ_SETTINGS
    def test_sums_to_total_and_never_negative(self, total, weights):
        parts = allocate_by_weight(total, weights)
        assert len(parts) == len(weights)
        assert all(part >= 0 for part in parts)
        if any(w > 0 for w in weights):
            assert sum(parts) == total
        else:
            assert sum(parts) == 0
        for part, weight in zip(parts, weights):
            if weight == 0:
                assert part == 0

    @given(
        amounts=st.lists(st.integers(min_value=0, max_value=100_000), min_size=1, max_size=10),
        data=st.data(),
    )
    @FUZZ_SETTINGS
    def test_rebalance_preserves_total(self, amounts, data):
        total = sum(amounts)
        shares = [TipShare(f"e{i}", f"E{i}", cents) for i, cents in enumerate(amounts)]
        target = data.draw(st.sampled_from([s.employee_id for s in shares]))
        new_amount = data.draw(st.integers(min_value=0, max_value=total))

        if len(shares) == 1 and new_amount != total:
            with pytest.raises(OverrideOutOfRangeError):
                rebalance_allocations(total, shares, target, new_amount)
            return

        result = rebalance_allocations(total, shares, target, new_amount)

        assert sum(s.amount_cents for s in result) == total
        assert next(s for s in result if s.employee_id == target).amount_cents == new_amount
        assert all(s.amount_cents >= 0 for s in result)
