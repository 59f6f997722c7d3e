"""
Data Models Package

This package contains all Pydantic models used in Budget Tracker.
All data flowing through the system must conform to these schemas.
"""

from budget_tracker.models.finance import (
    CATEGORY_COLORS,
    DEFAULT_CATEGORIES,
    EXPENSE_CATEGORIES,
    FALLBACK_CATEGORY,
    FALLBACK_COLOR,
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
from budget_tracker.models.advice import (
    Advice,
    AdviceKind,
    AdvisorReply,
    ChatMessage,
    ChatRole,
)
from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Palette
    "CATEGORY_COLORS",
    "DEFAULT_CATEGORIES",
    "EXPENSE_CATEGORIES",
    "FALLBACK_CATEGORY",
    "FALLBACK_COLOR",
    "color_for_category",
    # Finance models
    "Budget",
    "BudgetDraft",
    "BudgetPeriod",
    "FinancialData",
    "Goal",
    "GoalDraft",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Advisor models
    "Advice",
    "AdviceKind",
    "AdvisorReply",
    "ChatMessage",
    "ChatRole",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
