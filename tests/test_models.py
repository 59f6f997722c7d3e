"""
Tests for Budget Tracker

Test strategy:
1. Unit tests for individual components (models, validators)
2. Integration tests for flows (with mocked external services)
3. No real API calls in tests (use mocks)
"""

import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from budget_tracker.models import (
    CATEGORY_COLORS,
    DEFAULT_CATEGORIES,
    EXPENSE_CATEGORIES,
    FALLBACK_COLOR,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Budget,
    BudgetDraft,
    BudgetPeriod,
    FinancialData,
    Goal,
    GoalDraft,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    color_for_category,
)


class TestCategoryPalette:
    """Tests for the category palette."""

    def test_palette_has_fourteen_categories(self):
        assert len(CATEGORY_COLORS) == 14
        assert DEFAULT_CATEGORIES[-1] == "Other"

    def test_expense_categories_exclude_income(self):
        assert "Income" not in EXPENSE_CATEGORIES
        assert "Food" in EXPENSE_CATEGORIES

    def test_known_category_color(self):
        assert color_for_category("Food") == "#22c55e"

    def test_unknown_category_falls_back_to_gray(self):
        """Test categories outside the palette render gray."""
        assert color_for_category("Crypto") == FALLBACK_COLOR == "#6b7280"


class TestBudgetModels:
    """Tests for budget models."""

    def test_budget_from_draft_assigns_color_and_zero_spent(self):
        draft = BudgetDraft(category="Food", amount=Decimal("500"))
        budget = Budget.from_draft(draft)
        assert budget.color == CATEGORY_COLORS["Food"]
        assert budget.spent == Decimal("0")
        assert budget.period == BudgetPeriod.MONTHLY

    def test_budget_draft_rejects_zero_amount(self):
        with pytest.raises(ValidationError):
            BudgetDraft(category="Food", amount=Decimal("0"))

    def test_budget_derived_figures(self):
        budget = Budget(category="Food", amount=Decimal("500"), spent=Decimal("85.75"))
        assert budget.remaining == Decimal("414.25")
        assert budget.percent_spent == pytest.approx(17.15)
        assert budget.is_over_budget is False

    def test_budget_over_budget(self):
        budget = Budget(category="Food", amount=Decimal("100"), spent=Decimal("100.01"))
        assert budget.is_over_budget is True


class TestTransactionModels:
    """Tests for transaction models."""

    def test_transaction_draft_accepts_date_alias(self):
        draft = TransactionDraft.model_validate({
            "description": "Coffee",
            "amount": "4.50",
            "category": "Food",
            "date": "2024-06-01",
            "type": "expense",
        })
        assert draft.transaction_date == date(2024, 6, 1)
        assert draft.type == TransactionType.EXPENSE

    def test_transaction_description_is_stripped(self):
        draft = TransactionDraft(
            description="  Coffee  ",
            amount=Decimal("4.50"),
            category="Food",
            transaction_date=date(2024, 6, 1),
        )
        assert draft.description == "Coffee"

    def test_transaction_from_draft_keeps_fields(self):
        draft = TransactionDraft(
            description="Salary",
            amount=Decimal("3000"),
            category="Income",
            transaction_date=date(2024, 6, 1),
            type=TransactionType.INCOME,
        )
        tx_id = uuid4()
        tx = Transaction.from_draft(draft, tx_id)
        assert tx.id == tx_id
        assert tx.is_expense is False
        assert tx.amount == Decimal("3000")


class TestGoalModels:
    """Tests for savings goal models."""

    def test_goal_progress(self):
        goal = Goal(
            title="Vacation Fund",
            target_amount=Decimal("2000"),
            current_amount=Decimal("800"),
            deadline=date(2024, 12, 31),
            category="Travel",
        )
        assert goal.progress_percent == pytest.approx(40.0)
        assert goal.remaining_amount == Decimal("1200")
        assert goal.is_complete is False

    def test_goal_progress_is_not_capped(self):
        goal = Goal(
            title="Bike",
            target_amount=Decimal("2000"),
            current_amount=Decimal("2500"),
            deadline=date(2024, 12, 31),
            category="Personal",
        )
        assert goal.progress_percent == pytest.approx(125.0)
        assert goal.remaining_amount == Decimal("0")
        assert goal.is_complete is True

    def test_goal_draft_rejects_negative_current_amount(self):
        with pytest.raises(ValidationError):
            GoalDraft(
                title="Bike",
                target_amount=Decimal("100"),
                current_amount=Decimal("-1"),
                deadline=date(2024, 12, 31),
                category="Personal",
            )


class TestFinancialData:
    """Tests for the persisted aggregate layout."""

    def test_storage_json_uses_camel_case(self):
        data = FinancialData(
            goals=[Goal(
                title="Bike",
                target_amount=Decimal("100"),
                deadline=date(2024, 12, 31),
                category="Personal",
            )],
            transactions=[Transaction(
                description="Coffee",
                amount=Decimal("4.50"),
                category="Food",
                transaction_date=date(2024, 6, 1),
            )],
        )
        payload = json.loads(data.to_storage_json())

        assert set(payload) == {"budgets", "transactions", "goals"}
        assert "targetAmount" in payload["goals"][0]
        assert "currentAmount" in payload["goals"][0]
        assert payload["transactions"][0]["date"] == "2024-06-01"
        assert Decimal(payload["transactions"][0]["amount"]) == Decimal("4.50")

    def test_storage_json_reloads(self):
        data = FinancialData(budgets=[Budget(category="Food", amount=Decimal("500"))])
        reloaded = FinancialData.model_validate(json.loads(data.to_storage_json()))
        assert reloaded == data


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description="Loaded",
        )
        assert event.event_type == AuditEventType.DATA_LOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.ENTITY_ADDED,
            description="Budget added",
            details={"label": "Food"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "entity_added"
        assert log_dict["details"]["label"] == "Food"

    def test_audit_event_builder_entity_added(self):
        budget_id = uuid4()
        event = AuditEventBuilder.entity_added("budget", budget_id, "Food")
        assert event.event_type == AuditEventType.ENTITY_ADDED
        assert event.entity_id == budget_id
        assert event.is_user_action is True

    def test_audit_event_builder_persist_failed_is_error(self):
        event = AuditEventBuilder.persist_failed("financialData", "quota exceeded")
        assert event.severity == AuditSeverity.ERROR


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            form="budget",
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="not_positive",
                    message="Amount must be positive",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.is_valid is False
        assert result.error_count == 1
        assert result.errors_for("amount") == ["Amount must be positive"]

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            form="transaction",
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.warnings == ["Date in future"]

    def test_validation_issue_rejects_unknown_severity(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")
