"""Financial state package."""

from budget_tracker.state.container import (
    EntityNotFoundError,
    FinancialState,
    StateError,
    recompute_budget_spent,
)
from budget_tracker.state.demo import build_demo_data

__all__ = [
    "EntityNotFoundError",
    "FinancialState",
    "StateError",
    "build_demo_data",
    "recompute_budget_spent",
]
