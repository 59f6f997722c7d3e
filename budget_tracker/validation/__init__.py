"""Form validation package."""

from budget_tracker.validation.validator import (
    FormValidator,
    parse_amount,
    parse_date,
)

__all__ = ["FormValidator", "parse_amount", "parse_date"]
