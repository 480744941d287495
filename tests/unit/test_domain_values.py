"""Tests for the immutable domain value objects."""

import dataclasses
from decimal import Decimal, InvalidOperation

import pytest

from tests.factories import pool
from tippool_kernel.domain.values import (
    PercentageAllocationResult,
    PoolResult,
    ServerResult,
    SplitItem,
    as_decimal,
)


class TestAsDecimal:
    def test_float_goes_through_str(self):
        assert as_decimal(7.2) == Decimal("7.2")

    def test_decimal_returned_unchanged(self):
        value = Decimal("2.50")
        assert as_decimal(value) is value

    def test_bool_rejected(self):
        with pytest.raises(InvalidOperation):
            as_decimal(True)


class TestContributionPool:
    def test_frozen(self):
        p = pool("p1", "Dish", 5, "hours", ["d1"])
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.name = "Other"

    def test_role_weights_read_only(self):
        weights = {"Chef": 3}
        p = pool("p1", "Kitchen", 5, "role", [], weights)
        weights["Chef"] = 99
        assert p.role_weights["Chef"] == 3
        with pytest.raises(TypeError):
            p.role_weights["Chef"] = 1

    def test_hashable(self):
        a = pool("p1", "Kitchen", 5, "role", ["k1", "k2"], {"Chef": 3, "Prep": 1})
        b = pool("p1", "Kitchen", 5, "role", ["k2", "k1"], {"Prep": 1, "Chef": 3})
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_different_weights_are_distinct(self):
        a = pool("p1", "Kitchen", 5, "role", [], {"Chef": 3})
        b = pool("p1", "Kitchen", 5, "role", [], {"Chef": 2})
        assert a != b
        assert len({a, b}) == 2

    def test_eligibility(self):
        p = pool("p1", "Dish", 5, "hours", ["d1"])
        assert p.is_eligible("d1")
        assert not p.is_eligible("d2")


class TestPoolResult:
    def test_balanced(self):
        assert PoolResult("p1", 100, 100, 0).is_balanced
        assert not PoolResult("p1", 100, 60, 0).is_balanced


class TestPercentageAllocationResult:
    def result(self, paid):
        return PercentageAllocationResult(
            server_results=(ServerResult("s1", 1000, 950, 0, 50),),
            pool_results=(PoolResult("p1", 50, 50, 0),),
            split_items=(SplitItem("s1", 950, "A"), SplitItem("d1", paid, "D")),
        )

    def test_totals(self):
        result = self.result(50)
        assert result.total_earned == 1000
        assert result.total_paid_out == 1000
        assert result.is_balanced

    def test_unbalanced(self):
        assert not self.result(49).is_balanced

    def test_split_item_lookup(self):
        result = self.result(50)
        assert result.split_item_for("d1").amount_cents == 50
        assert result.split_item_for("nobody") is None
