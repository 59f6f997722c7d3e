"""
Core Data Models for Budget Tracker

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Serialize to the persisted JSON layout (camelCase keys)

DESIGN DECISION: Money is Decimal with two places. Budget spend is a
sum of transaction amounts and must compare exactly against the
budget amount.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# CATEGORY PALETTE
# =============================================================================

CATEGORY_COLORS: dict[str, str] = {
    "Housing": "#3b82f6",
    "Food": "#22c55e",
    "Transportation": "#f59e0b",
    "Entertainment": "#8b5cf6",
    "Shopping": "#ec4899",
    "Utilities": "#06b6d4",
    "Healthcare": "#ef4444",
    "Personal": "#64748b",
    "Education": "#0ea5e9",
    "Travel": "#84cc16",
    "Debt": "#d97706",
    "Savings": "#059669",
    "Income": "#10b981",
    "Other": "#6b7280",
}

DEFAULT_CATEGORIES: list[str] = list(CATEGORY_COLORS)

EXPENSE_CATEGORIES: list[str] = [c for c in DEFAULT_CATEGORIES if c != "Income"]

FALLBACK_CATEGORY = "Other"

FALLBACK_COLOR = CATEGORY_COLORS[FALLBACK_CATEGORY]


def color_for_category(category: str) -> str:
    """Palette colour for a category, gray for anything unknown."""
    return CATEGORY_COLORS.get(category, FALLBACK_COLOR)


# =============================================================================
# ENUMS
# =============================================================================

class BudgetPeriod(str, Enum):
    """Period a budget cap applies to."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class _Record(BaseModel):
    """Shared config: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# FORM DRAFTS (records before an id is assigned)
# =============================================================================

class BudgetDraft(_Record):
    """
    A budget as submitted from the form.

    There is no `spent` here: spend is always derived from transactions.
    """
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    period: BudgetPeriod = BudgetPeriod.MONTHLY


class TransactionDraft(_Record):
    """A transaction as submitted from the form."""
    description: str = Field(..., min_length=2, max_length=200)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    category: str = Field(..., min_length=1)
    transaction_date: date = Field(..., alias="date")
    type: TransactionType = TransactionType.EXPENSE


class GoalDraft(_Record):
    """A savings goal as submitted from the form."""
    title: str = Field(..., min_length=2, max_length=100)
    target_amount: Decimal = Field(..., gt=0, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    deadline: date
    category: str = Field(..., min_length=1)


# =============================================================================
# STORED RECORDS
# =============================================================================

class Budget(_Record):
    """
    A spending cap for one category.

    CRITICAL: `spent` is recomputed from the current month's expense
    transactions on every change. It is never authored by the user.
    """
    id: UUID = Field(default_factory=uuid4)
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    spent: Decimal = Field(default=Decimal("0"), ge=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    color: str = FALLBACK_COLOR

    @classmethod
    def from_draft(cls, draft: BudgetDraft, budget_id: Optional[UUID] = None) -> "Budget":
        return cls(
            id=budget_id or uuid4(),
            category=draft.category,
            amount=draft.amount,
            period=draft.period,
            color=color_for_category(draft.category),
        )

    @property
    def remaining(self) -> Decimal:
        return self.amount - self.spent

    @property
    def percent_spent(self) -> float:
        return float(self.spent / self.amount * 100)

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.amount


class Transaction(_Record):
    """A single income or expense entry."""
    id: UUID = Field(default_factory=uuid4)
    description: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    category: str = Field(..., min_length=1)
    transaction_date: date = Field(..., alias="date")
    type: TransactionType = TransactionType.EXPENSE

    @classmethod
    def from_draft(
        cls,
        draft: TransactionDraft,
        transaction_id: Optional[UUID] = None,
    ) -> "Transaction":
        return cls(
            id=transaction_id or uuid4(),
            **draft.model_dump(),
        )

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE


class Goal(_Record):
    """A savings target with a deadline and accumulated contributions."""
    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, max_length=100)
    target_amount: Decimal = Field(..., gt=0, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    deadline: date
    category: str = Field(..., min_length=1)
    color: str = FALLBACK_COLOR

    @classmethod
    def from_draft(cls, draft: GoalDraft, goal_id: Optional[UUID] = None) -> "Goal":
        return cls(
            id=goal_id or uuid4(),
            **draft.model_dump(),
            color=color_for_category(draft.category),
        )

    @property
    def progress_percent(self) -> float:
        return float(self.current_amount / self.target_amount * 100)

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0"))

    @property
    def is_complete(self) -> bool:
        return self.current_amount >= self.target_amount


class FinancialData(_Record):
    """
    The aggregate root, persisted wholesale.

    Layout on disk: {"budgets": [...], "transactions": [...], "goals": [...]}
    """
    budgets: list[Budget] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)

    def to_storage_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found on a form field."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_positive', 'unknown_category')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating one form submission.

    Errors block submission; warnings are shown but do not.
    """

    form: str = Field(
        ...,
        description="Which form was validated (budget, transaction, goal, contribution)"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    def errors_for(self, field: str) -> list[str]:
        """Error messages for one field, for inline display."""
        return [
            issue.message
            for issue in self.issues
            if issue.field == field and issue.severity == "error"
        ]
