"""
Demo Data

Shown on first launch (nothing stored yet) and restored by
"Reset to Demo Data". Dates are placed in the current month so the
budget overview has something to show.
"""

from datetime import date, timedelta
from decimal import Decimal

from budget_tracker.models.finance import (
    Budget,
    BudgetPeriod,
    FinancialData,
    Goal,
    Transaction,
    TransactionType,
    color_for_category,
)


def _this_month(today: date, day: int) -> date:
    return today.replace(day=min(day, today.day))


def build_demo_data(today: date) -> FinancialData:
    """Three budgets, three transactions and two goals."""
    budgets = [
        Budget(
            category=category,
            amount=Decimal(amount),
            period=BudgetPeriod.MONTHLY,
            color=color_for_category(category),
        )
        for category, amount in (
            ("Housing", "1500"),
            ("Food", "500"),
            ("Transportation", "300"),
        )
    ]

    transactions = [
        Transaction(
            description="Grocery shopping",
            amount=Decimal("85.75"),
            category="Food",
            transaction_date=_this_month(today, 15),
            type=TransactionType.EXPENSE,
        ),
        Transaction(
            description="Monthly salary",
            amount=Decimal("3000"),
            category="Income",
            transaction_date=_this_month(today, 1),
            type=TransactionType.INCOME,
        ),
        Transaction(
            description="Electric bill",
            amount=Decimal("120"),
            category="Utilities",
            transaction_date=_this_month(today, 10),
            type=TransactionType.EXPENSE,
        ),
    ]

    goals = [
        Goal(
            title="Vacation Fund",
            target_amount=Decimal("2000"),
            current_amount=Decimal("500"),
            deadline=today + timedelta(days=120),
            category="Travel",
            color=color_for_category("Travel"),
        ),
        Goal(
            title="Emergency Fund",
            target_amount=Decimal("10000"),
            current_amount=Decimal("3500"),
            deadline=today + timedelta(days=365),
            category="Savings",
            color=color_for_category("Savings"),
        ),
    ]

    return FinancialData(budgets=budgets, transactions=transactions, goals=goals)
