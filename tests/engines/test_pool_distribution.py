"""
Tests for the pool distributor / refunder.

Covers:
- Weights for hours, role and even share methods
- Eligible-and-present intersection
- Distribution with residual to the last worker
- Full refunds when nobody with weight is present
- Zero-total pools
"""

from decimal import Decimal

import pytest

from tests.factories import pool, worker
from tippool_engines.pool_distribution import (
    calculate_pool_refunds,
    distribute_pool,
    present_eligible_workers,
    worker_weight,
)
from tippool_kernel.domain.values import Contribution, PoolRefund
from tippool_kernel.exceptions import ConservationViolationError


def contributions(pool_id, *amounts):
    return [
        Contribution(server_id=f"s{i + 1}", pool_id=pool_id, amount_cents=amount)
        for i, amount in enumerate(amounts)
    ]


class TestWorkerWeight:
    """Tests for worker_weight."""

    def test_hours(self):
        p = pool("p1", "Dish", 5, "hours", ["d1"])
        assert worker_weight(p, worker("d1", "A", 6.5)) == Decimal("6.5")

    def test_role(self):
        p = pool("p1", "Kitchen", 5, "role", ["k1"], {"Chef": 3, "Prep": 1})
        assert worker_weight(p, worker("k1", "Kim", 8, "Chef")) == Decimal("3")

    def test_unknown_role_is_zero(self):
        p = pool("p1", "Kitchen", 5, "role", ["k1"], {"Chef": 3})
        assert worker_weight(p, worker("k1", "Kim", 8, "Dishwasher")) == Decimal("0")

    def test_even(self):
        p = pool("p1", "FOH", 5, "even", ["f1"])
        assert worker_weight(p, worker("f1", "Host", 0)) == Decimal("1")


class TestPresentEligibleWorkers:
    def test_intersection_in_worker_order(self):
        p = pool("p1", "Dish", 5, "hours", ["d1", "d2", "d3"])
        workers = [worker("d2", "B", 4), worker("x9", "Other", 8), worker("d1", "A", 6)]

        present = present_eligible_workers(p, workers)

        assert [w.employee_id for w in present] == ["d2", "d1"]

    def test_eligible_but_absent_is_not_a_candidate(self):
        p = pool("p1", "Dish", 5, "hours", ["d1"])
        assert present_eligible_workers(p, [worker("d2", "B", 4)]) == ()


class TestDistributePool:
    """Tests for distribute_pool."""

    def test_hours_split(self):
        p = pool("p1", "Dish", 10, "hours", ["d1", "d2"])
        outcome = distribute_pool(
            p, contributions("p1", 1000), [worker("d1", "A", 6), worker("d2", "B", 4)],
        )

        assert [(s.employee_id, s.amount_cents) for s in outcome.shares] == [
            ("d1", 600),
            ("d2", 400),
        ]
        assert outcome.refunds == ()
        assert outcome.result.total_contributed == 1000
        assert outcome.result.total_distributed == 1000
        assert outcome.result.total_refunded == 0

    def test_role_split(self):
        p = pool("p1", "Kitchen", 10, "role", ["k1", "k2"], {"Chef": 3, "Prep": 1})
        outcome = distribute_pool(
            p,
            contributions("p1", 1000),
            [worker("k1", "Chef Kim", 8, "Chef"), worker("k2", "Prep Pat", 8, "Prep")],
        )
        assert [s.amount_cents for s in outcome.shares] == [750, 250]

    def test_even_split_residual_to_last(self):
        p = pool("p1", "Bussers", 7, "even", ["b1", "b2", "b3"])
        outcome = distribute_pool(
            p,
            contributions("p1", 233, 467),
            [worker("b1", "B1", 4), worker("b2", "B2", 4), worker("b3", "B3", 4)],
        )
        assert [s.amount_cents for s in outcome.shares] == [233, 233, 234]
        assert outcome.result.is_balanced

    def test_unknown_role_excluded_from_distribution(self):
        p = pool("p1", "Kitchen", 10, "role", ["k1", "k2"], {"Chef": 3})
        outcome = distribute_pool(
            p,
            contributions("p1", 1000),
            [worker("k1", "Kim", 8, "Chef"), worker("k2", "Pat", 8, "Porter")],
        )
        assert [(s.employee_id, s.amount_cents) for s in outcome.shares] == [("k1", 1000)]

    def test_zero_hours_worker_excluded(self):
        p = pool("p1", "Dish", 10, "hours", ["d1", "d2"])
        outcome = distribute_pool(
            p, contributions("p1", 999), [worker("d1", "A", 5), worker("d2", "B", 0)],
        )
        assert [(s.employee_id, s.amount_cents) for s in outcome.shares] == [("d1", 999)]

    def test_no_present_workers_refunds_everything(self):
        p = pool("p1", "FOH", 3, "even", ["f1", "f2"])
        outcome = distribute_pool(p, contributions("p1", 600, 450), [worker("d1", "Dish", 6)])

        assert outcome.shares == ()
        assert outcome.was_refunded
        assert [r.refund_cents for r in outcome.refunds] == [600, 450]
        assert outcome.result.total_distributed == 0
        assert outcome.result.total_refunded == 1050

    def test_role_pool_with_only_unweighted_roles_refunds(self):
        p = pool("p1", "Kitchen", 10, "role", ["k1"], {"Chef": 3})
        outcome = distribute_pool(
            p, contributions("p1", 500), [worker("k1", "Pat", 8, "Porter")],
        )
        assert outcome.shares == ()
        assert outcome.result.total_refunded == 500

    def test_all_zero_contributions(self):
        p = pool("p1", "Dish", 5, "hours", ["d1"])
        outcome = distribute_pool(p, contributions("p1", 0, 0), [])

        assert [r.refund_cents for r in outcome.refunds] == [0, 0]
        assert outcome.result.total_contributed == 0
        assert outcome.result.is_balanced


class TestCalculatePoolRefunds:
    """Tests for calculate_pool_refunds."""

    def test_proportional_refund(self):
        refunds = calculate_pool_refunds("p1", contributions("p1", 1000, 750), 1750)
        assert refunds == (
            PoolRefund(server_id="s1", pool_id="p1", refund_cents=1000),
            PoolRefund(server_id="s2", pool_id="p1", refund_cents=750),
        )

    def test_total_matches_pool_total(self):
        refunds = calculate_pool_refunds("p1", contributions("p1", 333, 333, 333), 999)
        assert sum(r.refund_cents for r in refunds) == 999

    def test_zero_pool(self):
        refunds = calculate_pool_refunds("p1", contributions("p1", 0), 0)
        assert refunds == (PoolRefund(server_id="s1", pool_id="p1", refund_cents=0),)

    def test_single_server_gets_full_refund(self):
        refunds = calculate_pool_refunds("p1", contributions("p1", 500), 500)
        assert refunds[0].refund_cents == 500

    def test_positive_total_without_contributions_raises(self):
        with pytest.raises(ConservationViolationError):
            calculate_pool_refunds("p1", contributions("p1", 0, 0), 100)
