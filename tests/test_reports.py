"""Tests for dashboard aggregates."""

from datetime import date
from decimal import Decimal

import pytest

from budget_tracker.models import Budget, FinancialData, Goal, Transaction, TransactionType
from budget_tracker.reports import (
    budget_progress,
    budget_status,
    compute_financial_summary,
    expenses_by_category,
    goal_progress,
    recent_transactions,
)


class TestSummary:
    def test_demo_summary(self, state):
        summary = compute_financial_summary(state.data)
        assert summary.total_income == Decimal("3000")
        assert summary.total_expenses == Decimal("205.75")
        assert summary.balance == Decimal("2794.25")
        assert summary.total_budget == Decimal("2300")
        assert summary.total_spent == Decimal("85.75")
        assert summary.remaining_budget == Decimal("2214.25")
        assert summary.savings_target == Decimal("12000")
        assert summary.current_savings == Decimal("4000")

    def test_savings_rate(self, state):
        summary = compute_financial_summary(state.data)
        assert summary.savings_rate == pytest.approx(93.1416, rel=1e-4)

    def test_empty_data(self):
        summary = compute_financial_summary(FinancialData())
        assert summary.savings_rate is None
        assert summary.budget_used_percent == 0.0
        assert summary.savings_percent == 0.0


class TestCategoryTotals:
    def test_sorted_largest_first_with_shares(self, state):
        totals = expenses_by_category(state.transactions)
        assert [t.category for t in totals] == ["Utilities", "Food"]
        assert sum(t.share_percent for t in totals) == pytest.approx(100.0)
        assert totals[0].color == "#06b6d4"

    def test_income_is_ignored(self):
        income = Transaction(
            description="Salary",
            amount=Decimal("100"),
            category="Income",
            transaction_date=date(2024, 6, 1),
            type=TransactionType.INCOME,
        )
        assert expenses_by_category([income]) == []


class TestBudgetProgress:
    @pytest.mark.parametrize("percent, status", [
        (0, "ok"),
        (75, "ok"),
        (75.1, "warning"),
        (90, "warning"),
        (90.1, "over"),
        (150, "over"),
    ])
    def test_status_thresholds(self, percent, status):
        assert budget_status(percent) == status

    def test_sorted_by_percent(self):
        budgets = [
            Budget(category="Food", amount=Decimal("100"), spent=Decimal("50")),
            Budget(category="Housing", amount=Decimal("100"), spent=Decimal("95")),
            Budget(category="Travel", amount=Decimal("100"), spent=Decimal("10")),
        ]
        rows = budget_progress(budgets)
        assert [r.category for r in rows] == ["Housing", "Food", "Travel"]
        assert rows[0].status == "over"
        assert rows[0].remaining == Decimal("5")


class TestGoalProgress:
    def test_days_left(self):
        goal = Goal(
            title="Bike",
            target_amount=Decimal("1000"),
            current_amount=Decimal("250"),
            deadline=date(2024, 7, 1),
            category="Personal",
        )
        row = goal_progress([goal], today=date(2024, 6, 20))[0]
        assert row.days_left == 11
        assert row.percent == pytest.approx(25.0)
        assert goal_progress([goal])[0].days_left is None


def test_recent_transactions_newest_first(state):
    recent = recent_transactions(state.transactions, limit=2)
    assert len(recent) == 2
    assert recent[0].transaction_date >= recent[1].transaction_date
