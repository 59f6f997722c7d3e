"""Tests for two-stage form validation."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from budget_tracker.models import BudgetPeriod, TransactionType
from budget_tracker.validation import parse_amount, parse_date


class TestParsing:
    """Tests for form value coercion."""

    @pytest.mark.parametrize("raw, expected", [
        ("85.75", Decimal("85.75")),
        (85.75, Decimal("85.75")),
        ("1,250.5", Decimal("1250.50")),
        ("10.005", Decimal("10.01")),
        (3, Decimal("3.00")),
    ])
    def test_parse_amount(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", [
        None, "", "abc", "nan", True, "1e30", "12345678901234567890123456789",
    ])
    def test_parse_amount_rejects(self, raw):
        assert parse_amount(raw) is None

    def test_parse_date(self):
        assert parse_date("2024-06-01") == date(2024, 6, 1)
        assert parse_date(date(2024, 6, 1)) == date(2024, 6, 1)
        assert parse_date("June 1st") is None


class TestBudgetForm:
    """Tests for the budget form."""

    def test_valid_budget(self, validator):
        draft, result = validator.validate_budget_form(
            {"category": "Food", "amount": "500", "period": "monthly"}
        )
        assert result.is_valid
        assert draft.amount == Decimal("500.00")
        assert draft.period == BudgetPeriod.MONTHLY

    def test_zero_amount_is_rejected(self, validator):
        draft, result = validator.validate_budget_form({"category": "Food", "amount": 0})
        assert draft is None
        assert result.errors_for("amount") == ["Amount must be positive"]

    def test_oversized_amount_is_a_field_error(self, validator):
        draft, result = validator.validate_budget_form({"category": "Food", "amount": "1e30"})
        assert draft is None
        assert result.errors_for("amount") == ["Amount must be positive"]

    def test_missing_category(self, validator):
        draft, result = validator.validate_budget_form({"category": "", "amount": "10"})
        assert draft is None
        assert result.errors_for("category") == ["Category is required"]

    def test_invalid_period(self, validator):
        _, result = validator.validate_budget_form(
            {"category": "Food", "amount": "10", "period": "daily"}
        )
        assert result.errors_for("period")

    def test_unknown_category_is_only_a_warning(self, validator):
        draft, result = validator.validate_budget_form({"category": "Pets", "amount": "10"})
        assert draft is not None
        assert result.is_valid
        assert any("not a standard category" in w for w in result.warnings)

    def test_large_amount_warning(self, validator):
        draft, result = validator.validate_budget_form(
            {"category": "Housing", "amount": "250000"}
        )
        assert draft is not None
        assert any("unusually high" in w for w in result.warnings)


class TestTransactionForm:
    """Tests for the transaction form."""

    def form(self, **overrides):
        values = {
            "description": "Grocery shopping",
            "amount": "85.75",
            "category": "Food",
            "date": "2024-06-15",
            "type": "expense",
        }
        values.update(overrides)
        return values

    def test_valid_transaction(self, validator):
        draft, result = validator.validate_transaction_form(self.form())
        assert result.is_valid
        assert result.issues == []
        assert draft.transaction_date == date(2024, 6, 15)
        assert draft.type == TransactionType.EXPENSE

    def test_short_description(self, validator):
        draft, result = validator.validate_transaction_form(self.form(description="a"))
        assert draft is None
        assert result.errors_for("description") == ["Description is required"]

    def test_negative_amount(self, validator):
        _, result = validator.validate_transaction_form(self.form(amount="-5"))
        assert result.errors_for("amount") == ["Amount must be positive"]

    def test_missing_date(self, validator):
        _, result = validator.validate_transaction_form(self.form(date=None))
        assert result.errors_for("date") == ["Date is required"]

    def test_errors_are_reported_together(self, validator):
        _, result = validator.validate_transaction_form(
            self.form(description="", amount="0", category="")
        )
        assert result.error_count == 3

    def test_future_date_warns(self, validator, today):
        draft, result = validator.validate_transaction_form(
            self.form(date=today + timedelta(days=3))
        )
        assert draft is not None
        assert any("in the future" in w for w in result.warnings)

    def test_income_outside_income_category_warns(self, validator):
        draft, result = validator.validate_transaction_form(
            self.form(type="income", category="Food")
        )
        assert draft is not None
        assert result.warnings


class TestGoalForm:
    """Tests for the goal form."""

    def form(self, **overrides):
        values = {
            "title": "Vacation Fund",
            "targetAmount": "2000",
            "currentAmount": "500",
            "deadline": "2024-12-31",
            "category": "Travel",
        }
        values.update(overrides)
        return values

    def test_valid_goal(self, validator):
        draft, result = validator.validate_goal_form(self.form())
        assert result.is_valid
        assert draft.target_amount == Decimal("2000.00")
        assert draft.current_amount == Decimal("500.00")

    def test_current_amount_defaults_to_zero(self, validator):
        draft, _ = validator.validate_goal_form(self.form(currentAmount=""))
        assert draft.current_amount == Decimal("0")

    def test_messages(self, validator):
        draft, result = validator.validate_goal_form(
            self.form(title="x", targetAmount="0", currentAmount="-1")
        )
        assert draft is None
        assert result.errors_for("title") == ["Title is required"]
        assert result.errors_for("targetAmount") == ["Target amount must be positive"]
        assert result.errors_for("currentAmount") == ["Current amount cannot be negative"]

    def test_past_deadline_warns(self, validator):
        draft, result = validator.validate_goal_form(self.form(deadline="2024-01-01"))
        assert draft is not None
        assert any("already passed" in w for w in result.warnings)

    def test_already_funded_warns(self, validator):
        _, result = validator.validate_goal_form(self.form(currentAmount="2000"))
        assert any("fully funded" in w for w in result.warnings)


class TestContribution:
    """Tests for goal contributions."""

    def test_valid(self, validator):
        amount, result = validator.validate_contribution({"amount": "300"})
        assert amount == Decimal("300.00")
        assert result.is_valid

    @pytest.mark.parametrize("raw", ["0", "-10", "", None, "1e30"])
    def test_rejected(self, validator, raw):
        amount, result = validator.validate_contribution({"amount": raw})
        assert amount is None
        assert result.errors_for("amount") == ["Amount must be positive"]

