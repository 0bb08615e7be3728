"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

import uuid
from decimal import Decimal

import pytest

from events.domain import Capacity, EventId, Money, OrderId
from events.domain.errors import (
    ConflictError,
    DuplicateScanError,
    ErrorCode,
    InvalidIdError,
    ValidationFailedError,
)
from events.domain.merchandise import ItemDefinitionError, normalize_items, quantity_violation
from events.domain.teams import build_team_options, normalize_team_name


class TestMoney:
    """Tests for Money value object."""

    def test_money_accepts_positive_amount(self):
        """Money can be created with positive amount."""
        assert Money(Decimal("12.50")).amount == Decimal("12.50")

    def test_money_accepts_zero(self):
        """Money can be created with zero."""
        assert Money(Decimal("0")).amount == 0

    def test_money_rejects_negative_amount(self):
        """Money raises ValueError for negative amount."""
        with pytest.raises(ValueError):
            Money(Decimal("-0.01"))

    def test_money_str_format(self):
        """Money string representation is formatted to 2 decimal places."""
        assert str(Money(Decimal("5"))) == "5.00"

    def test_times_multiplies_amount(self):
        """Money.times scales the amount by a quantity."""
        assert Money(Decimal("250.00")).times(2) == Money(Decimal("500.00"))


class TestCapacity:
    """Tests for Capacity value object."""

    def test_capacity_accepts_zero(self):
        """Capacity can be created with zero."""
        assert Capacity(0).value == 0

    def test_capacity_rejects_negative_value(self):
        """Capacity raises ValueError for negative value."""
        with pytest.raises(ValueError):
            Capacity(-1)

    def test_remaining_never_negative(self):
        """Remaining seats floor at zero when occupancy exceeds the limit."""
        assert Capacity(3).remaining(5) == 0
        assert Capacity(3).remaining(1) == 2

    def test_admits_up_to_the_limit(self):
        """The last free seat is admitted; one past it is not."""
        assert Capacity(2).admits(1)
        assert not Capacity(2).admits(2)


class TestIds:
    """Tests for UUID-backed identifiers."""

    def test_from_string_valid_uuid(self):
        """EventId.from_string parses valid UUID."""
        value = uuid.uuid4()
        assert EventId.from_string(str(value)).value == value

    def test_from_string_invalid_uuid(self):
        """OrderId.from_string raises ValueError for invalid UUID."""
        with pytest.raises(ValueError):
            OrderId.from_string("not-a-uuid")

    def test_str_is_the_uuid(self):
        """Identifiers render as their bare UUID."""
        value = uuid.uuid4()
        assert str(EventId(value)) == str(value)


class TestErrors:
    """Tests for the domain error taxonomy."""

    def test_validation_failed_defaults_violations_to_message(self):
        """A single-message validation error still lists one violation."""
        error = ValidationFailedError("Name is required")
        assert error.violations == ("Name is required",)
        assert error.code == ErrorCode.VALIDATION_FAILED

    def test_validation_failed_keeps_every_violation(self):
        """All supplied violations are carried."""
        error = ValidationFailedError("first", ["first", "second"])
        assert error.violations == ("first", "second")

    def test_duplicate_scan_is_a_conflict(self):
        """Duplicate scans are reported as conflicts carrying the ticket."""
        error = DuplicateScanError(participant=None, ticket_id="FEL-ABC")
        assert isinstance(error, ConflictError)
        assert error.ticket_id == "FEL-ABC"
        assert error.message == "Duplicate scan rejected"

    def test_invalid_id_message(self):
        """InvalidIdError names the kind of identifier."""
        assert InvalidIdError("event ID").message == "Invalid event ID format"

    def test_str_includes_code(self):
        """str() of a domain error leads with its code."""
        assert str(ConflictError("Taken")) == "CONFLICT: Taken"


class TestTeams:
    """Tests for team grouping."""

    def test_normalize_collapses_whitespace(self):
        """Runs of whitespace collapse to single spaces."""
        assert normalize_team_name("  Code   Ninjas ") == "Code Ninjas"

    def test_names_group_case_insensitively(self):
        """Different casings count toward the same team."""
        options = build_team_options(["Code Ninjas", "code  ninjas", "Bots"], max_team_size=2)
        by_key = {option.team_key: option for option in options}
        assert by_key["code ninjas"].member_count == 2
        assert by_key["code ninjas"].is_full
        assert by_key["code ninjas"].team_name == "Code Ninjas"
        assert by_key["bots"].available_spots == 1

    def test_blank_names_ignored(self):
        """Solo registrations do not form a team."""
        assert build_team_options(["", "  "], max_team_size=3) == ()

    def test_options_sorted_by_name(self):
        """Options are listed alphabetically."""
        options = build_team_options(["Zeta", "alpha"], max_team_size=3)
        assert [option.team_name for option in options] == ["alpha", "Zeta"]


class TestMerchandiseItems:
    """Tests for item definitions and purchase limits."""

    def test_normalize_items_builds_value_objects(self):
        """Valid definitions become MerchandiseItems."""
        (item,) = normalize_items([{"sku": "TEE", "name": "Tee", "price": "199.5", "stock": 3, "purchase_limit": 2}])
        assert item.price == Money(Decimal("199.5"))
        assert item.stock == Capacity(3)
        assert item.purchase_limit == 2

    def test_normalize_items_reports_every_problem(self):
        """Duplicate skus and bad numbers are all reported."""
        with pytest.raises(ItemDefinitionError) as excinfo:
            normalize_items(
                [
                    {"sku": "TEE", "name": "Tee", "price": "10", "stock": 1},
                    {"sku": "TEE", "name": "", "price": "-1", "stock": -2, "purchase_limit": 0},
                ]
            )
        violations = excinfo.value.violations
        assert "Duplicate item sku: TEE" in violations
        assert "Item TEE is missing a name" in violations
        assert "Item TEE price must be a non-negative amount" in violations
        assert "Item TEE stock must be a non-negative integer" in violations
        assert "Item TEE purchase limit must be at least 1" in violations

    def test_quantity_outside_limit(self):
        """Quantities outside 1..purchase_limit are refused."""
        (item,) = normalize_items([{"sku": "TEE", "name": "Tee", "price": "10", "stock": 9, "purchase_limit": 2}])
        assert quantity_violation(item, 0, 0) == "Quantity must be between 1 and 2"
        assert quantity_violation(item, 3, 0) == "Quantity must be between 1 and 2"
        assert quantity_violation(item, 2, 0) is None

    def test_quantity_counts_committed_orders(self):
        """Earlier committed quantity counts toward the per-participant limit."""
        (item,) = normalize_items([{"sku": "TEE", "name": "Tee", "price": "10", "stock": 9, "purchase_limit": 2}])
        assert quantity_violation(item, 2, 1) == "Per-participant purchase limit exceeded for this item (max 2)"
