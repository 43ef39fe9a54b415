# tests/test_condition_evaluator.py
"""
Tests for rule condition parsing and evaluation.

Run:
    pytest tests/test_condition_evaluator.py -v
"""
from decimal import Decimal

import pytest

from affiliate_system.config.constants import CustomerType
from affiliate_system.errors import ConditionError
from affiliate_system.rules.evaluator import matches
from affiliate_system.rules.types import OrderContext, RuleConditions


def ctx(amount="100", customer_type=CustomerType.NEW, categories=()):
    return OrderContext(
        order_amount=Decimal(amount),
        customer_type=customer_type,
        category_ids=frozenset(categories),
    )


# =============================================================================
# EMPTY CONDITIONS
# =============================================================================

class TestEmptyConditions:
    """Conditions with no predicates match every order."""

    @pytest.mark.parametrize("raw", [None, {}, {"minOrderAmount": None}, {"categoryIds": []}])
    def test_empty_matches_everything(self, raw):
        """TEST: empty / null / empty-list conditions always match"""
        assert matches(raw, ctx("0")) is True
        assert matches(raw, ctx("99999", CustomerType.RETURNING, ["x"])) is True

    def test_unknown_keys_ignored(self):
        """TEST: unknown keys do not affect matching"""
        assert matches({"somethingElse": 5}, ctx("1")) is True


# =============================================================================
# AMOUNT BOUNDS
# =============================================================================

class TestAmountBounds:

    def test_min_is_inclusive(self):
        """TEST: minOrderAmount uses >="""
        conditions = {"minOrderAmount": 100}
        assert matches(conditions, ctx("100")) is True
        assert matches(conditions, ctx("99.99")) is False

    def test_max_is_inclusive(self):
        """TEST: maxOrderAmount uses <="""
        conditions = {"maxOrderAmount": "250.50"}
        assert matches(conditions, ctx("250.50")) is True
        assert matches(conditions, ctx("250.51")) is False

    def test_string_and_number_equivalent(self):
        """TEST: amounts stored as strings compare like numbers"""
        assert matches({"minOrderAmount": "300"}, ctx("500")) is True
        assert matches({"minOrderAmount": 300.0}, ctx("500")) is True


# =============================================================================
# CUSTOMER TYPE
# =============================================================================

class TestCustomerType:

    def test_all_matches_both(self):
        """TEST: customerType ALL matches NEW and RETURNING"""
        conditions = {"customerType": "ALL"}
        assert matches(conditions, ctx(customer_type=CustomerType.NEW)) is True
        assert matches(conditions, ctx(customer_type=CustomerType.RETURNING)) is True

    def test_specific_type(self):
        """TEST: customerType must equal the order's type"""
        conditions = {"customerType": "RETURNING"}
        assert matches(conditions, ctx(customer_type=CustomerType.RETURNING)) is True
        assert matches(conditions, ctx(customer_type=CustomerType.NEW)) is False

    def test_case_insensitive(self):
        """TEST: stored customerType is case-insensitive"""
        assert matches({"customerType": "new"}, ctx(customer_type=CustomerType.NEW)) is True

    def test_order_cannot_be_all(self):
        """TEST: an order context is never ALL"""
        with pytest.raises(ValueError):
            ctx(customer_type=CustomerType.ALL)


# =============================================================================
# CATEGORIES AND COMBINATION
# =============================================================================

class TestCategoriesAndCombination:

    def test_category_intersection(self):
        """TEST: at least one order category must be listed"""
        conditions = {"categoryIds": ["shoes", "bags"]}
        assert matches(conditions, ctx(categories=["bags", "hats"])) is True
        assert matches(conditions, ctx(categories=["hats"])) is False
        assert matches(conditions, ctx(categories=[])) is False

    def test_all_predicates_must_hold(self):
        """TEST: predicates are ANDed"""
        conditions = {"minOrderAmount": 300, "customerType": "NEW", "categoryIds": ["c1"]}
        assert matches(conditions, ctx("300", CustomerType.NEW, ["c1"])) is True
        assert matches(conditions, ctx("299", CustomerType.NEW, ["c1"])) is False
        assert matches(conditions, ctx("300", CustomerType.RETURNING, ["c1"])) is False
        assert matches(conditions, ctx("300", CustomerType.NEW, ["c2"])) is False

    def test_parsed_conditions_accepted(self):
        """TEST: RuleConditions instances are evaluated directly"""
        conditions = RuleConditions(min_order_amount=Decimal("10"))
        assert matches(conditions, ctx("10")) is True
        assert matches(conditions, ctx("9")) is False


# =============================================================================
# MALFORMED INPUT
# =============================================================================

class TestMalformedConditions:

    @pytest.mark.parametrize("raw", [
        {"minOrderAmount": "abc"},
        {"minOrderAmount": -5},
        {"maxOrderAmount": "Infinity"},
        {"customerType": "VIP"},
        {"categoryIds": "c1"},
        ["not", "a", "mapping"],
    ])
    def test_malformed_never_matches(self, raw):
        """TEST: malformed conditions evaluate to False instead of raising"""
        assert matches(raw, ctx("1000")) is False

    def test_parser_raises(self):
        """TEST: RuleConditions.from_json raises ConditionError"""
        with pytest.raises(ConditionError):
            RuleConditions.from_json({"minOrderAmount": "abc"})

    def test_to_json_round_trip_drops_empty(self):
        """TEST: to_json omits absent predicates"""
        parsed = RuleConditions.from_json({"minOrderAmount": 5, "categoryIds": []})
        assert parsed.to_json() == {"minOrderAmount": "5"}
