"""Reports package: dashboard aggregates."""

from budget_tracker.reports.summary import (
    OVER_THRESHOLD,
    WARNING_THRESHOLD,
    BudgetProgress,
    CategoryTotal,
    FinancialSummary,
    GoalProgress,
    budget_progress,
    budget_status,
    compute_financial_summary,
    expenses_by_category,
    goal_progress,
    recent_transactions,
)

__all__ = [
    "OVER_THRESHOLD",
    "WARNING_THRESHOLD",
    "BudgetProgress",
    "CategoryTotal",
    "FinancialSummary",
    "GoalProgress",
    "budget_progress",
    "budget_status",
    "compute_financial_summary",
    "expenses_by_category",
    "goal_progress",
    "recent_transactions",
]
