"""
Derived financial figures for the dashboard and the advisor.

Everything here is a pure function of a `FinancialData` snapshot.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from budget_tracker.models.finance import (
    Budget,
    FinancialData,
    Goal,
    Transaction,
    TransactionType,
    color_for_category,
)


WARNING_THRESHOLD = 75.0
OVER_THRESHOLD = 90.0

_ZERO = Decimal("0")


class FinancialSummary(BaseModel):
    """Headline totals shown on the dashboard cards."""
    total_income: Decimal = _ZERO
    total_expenses: Decimal = _ZERO
    balance: Decimal = _ZERO
    total_budget: Decimal = _ZERO
    total_spent: Decimal = _ZERO
    remaining_budget: Decimal = _ZERO
    savings_target: Decimal = _ZERO
    current_savings: Decimal = _ZERO

    @property
    def savings_rate(self) -> Optional[float]:
        """(income - expenses) / income as a percentage, None without income."""
        if self.total_income <= 0:
            return None
        return float((self.total_income - self.total_expenses) / self.total_income * 100)

    @property
    def budget_used_percent(self) -> float:
        if self.total_budget <= 0:
            return 0.0
        return float(self.total_spent / self.total_budget * 100)

    @property
    def savings_percent(self) -> float:
        if self.savings_target <= 0:
            return 0.0
        return float(self.current_savings / self.savings_target * 100)


class CategoryTotal(BaseModel):
    category: str
    amount: Decimal
    color: str
    share_percent: float = Field(default=0.0, ge=0.0)


class BudgetProgress(BaseModel):
    """One row of the budget overview."""
    budget_id: str
    category: str
    amount: Decimal
    spent: Decimal
    remaining: Decimal
    percent: float
    status: str = Field(..., pattern="^(ok|warning|over)$")
    color: str


class GoalProgress(BaseModel):
    goal_id: str
    title: str
    target_amount: Decimal
    current_amount: Decimal
    percent: float
    days_left: Optional[int] = None
    is_complete: bool = False


def budget_status(percent: float) -> str:
    """ok up to 75 %, warning up to 90 %, over beyond."""
    if percent > OVER_THRESHOLD:
        return "over"
    if percent > WARNING_THRESHOLD:
        return "warning"
    return "ok"


def compute_financial_summary(data: FinancialData) -> FinancialSummary:
    income = sum(
        (t.amount for t in data.transactions if t.type == TransactionType.INCOME),
        _ZERO,
    )
    expenses = sum((t.amount for t in data.transactions if t.is_expense), _ZERO)
    total_budget = sum((b.amount for b in data.budgets), _ZERO)
    total_spent = sum((b.spent for b in data.budgets), _ZERO)

    return FinancialSummary(
        total_income=income,
        total_expenses=expenses,
        balance=income - expenses,
        total_budget=total_budget,
        total_spent=total_spent,
        remaining_budget=total_budget - total_spent,
        savings_target=sum((g.target_amount for g in data.goals), _ZERO),
        current_savings=sum((g.current_amount for g in data.goals), _ZERO),
    )


def expenses_by_category(transactions: list[Transaction]) -> list[CategoryTotal]:
    """Expense totals per category, largest first."""
    totals: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    for t in transactions:
        if t.is_expense:
            totals[t.category] += t.amount

    grand_total = sum(totals.values(), _ZERO)
    rows = [
        CategoryTotal(
            category=category,
            amount=amount,
            color=color_for_category(category),
            share_percent=float(amount / grand_total * 100) if grand_total > 0 else 0.0,
        )
        for category, amount in totals.items()
    ]
    return sorted(rows, key=lambda row: row.amount, reverse=True)


def budget_progress(budgets: list[Budget]) -> list[BudgetProgress]:
    """Budget rows sorted by percent spent, most used first."""
    rows = [
        BudgetProgress(
            budget_id=str(b.id),
            category=b.category,
            amount=b.amount,
            spent=b.spent,
            remaining=b.remaining,
            percent=b.percent_spent,
            status=budget_status(b.percent_spent),
            color=b.color,
        )
        for b in budgets
    ]
    return sorted(rows, key=lambda row: row.percent, reverse=True)


def goal_progress(goals: list[Goal], today: Optional[date] = None) -> list[GoalProgress]:
    return [
        GoalProgress(
            goal_id=str(g.id),
            title=g.title,
            target_amount=g.target_amount,
            current_amount=g.current_amount,
            percent=g.progress_percent,
            days_left=(g.deadline - today).days if today else None,
            is_complete=g.is_complete,
        )
        for g in goals
    ]


def recent_transactions(transactions: list[Transaction], limit: int = 5) -> list[Transaction]:
    """Newest first by date."""
    return sorted(transactions, key=lambda t: t.transaction_date, reverse=True)[:limit]
