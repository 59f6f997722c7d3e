"""
Financial State Container

DESIGN DECISION: All budgets, transactions and goals live in one
`FinancialData` aggregate owned by a `FinancialState` instance. There is
no module-level singleton; whoever needs the data is handed the
instance (see `budget_tracker.orchestrator.AppContext`).

Every mutation follows the same three steps:
1. Build a new aggregate with the change applied
2. Recompute every budget's `spent` from this month's expenses
3. Persist the whole aggregate

A persistence failure is logged and otherwise ignored. In-memory state
stays ahead of storage until the next successful write.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from budget_tracker.audit import AuditLogger
from budget_tracker.models.audit import AuditEvent, AuditEventBuilder
from budget_tracker.models.finance import (
    Budget,
    BudgetDraft,
    FinancialData,
    Goal,
    GoalDraft,
    Transaction,
    TransactionDraft,
)
from budget_tracker.services.storage import FINANCIAL_DATA_KEY, KeyValueStore
from budget_tracker.state.demo import build_demo_data


logger = structlog.get_logger(__name__)


class StateError(Exception):
    """Base exception for state container operations."""
    pass


class EntityNotFoundError(StateError):
    """No record with the given id exists."""

    def __init__(self, entity_type: str, entity_id: UUID):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")


def recompute_budget_spent(data: FinancialData, today: date) -> FinancialData:
    """
    Return a copy of `data` with every budget's `spent` recomputed.

    spent = sum of expense transactions dated in the calendar month of
    `today` whose category equals the budget's category (0 if none).
    """
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for transaction in data.transactions:
        tx_date = transaction.transaction_date
        if (
            transaction.is_expense
            and tx_date.year == today.year
            and tx_date.month == today.month
        ):
            totals[transaction.category] += transaction.amount

    budgets = [
        budget.model_copy(update={"spent": totals.get(budget.category, Decimal("0"))})
        for budget in data.budgets
    ]
    return data.model_copy(update={"budgets": budgets})


class FinancialState:
    """
    In-memory owner of the financial aggregate.

    Args:
        store: Where the aggregate is persisted
        audit_logger: Receives one event per mutation (optional)
        today: Clock used for the "current month" window
    """

    def __init__(
        self,
        store: KeyValueStore,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._today = today
        self._data = FinancialData()
        self._last_persist_ok = True

    @property
    def data(self) -> FinancialData:
        return self._data

    @property
    def budgets(self) -> list[Budget]:
        return self._data.budgets

    @property
    def transactions(self) -> list[Transaction]:
        return self._data.transactions

    @property
    def goals(self) -> list[Goal]:
        return self._data.goals

    @property
    def last_persist_ok(self) -> bool:
        """False when the most recent write did not reach storage."""
        return self._last_persist_ok

    def today(self) -> date:
        return self._today()

    # -------------------------------------------------------------------------
    # Loading and persistence
    # -------------------------------------------------------------------------

    def load(self) -> FinancialData:
        """
        Load the aggregate from storage.

        Missing key → demo data. Unreadable or invalid blob → empty aggregate.
        """
        raw = self._store.load_json(FINANCIAL_DATA_KEY)

        if raw is None:
            data = build_demo_data(self._today())
            source = "demo"
        else:
            try:
                data = FinancialData.model_validate(raw)
                source = self._store.name
            except ValidationError as e:
                logger.error("financial_data_invalid", error=str(e))
                data = FinancialData()
                source = "empty"

        self._data = recompute_budget_spent(data, self._today())
        self._audit(AuditEventBuilder.data_loaded(source, {
            "budgets": len(self._data.budgets),
            "transactions": len(self._data.transactions),
            "goals": len(self._data.goals),
        }))
        return self._data

    def persist(self) -> bool:
        """Write the whole aggregate to storage."""
        ok = self._store.save_raw(FINANCIAL_DATA_KEY, self._data.to_storage_json())
        if not ok:
            self._audit(AuditEventBuilder.persist_failed(
                FINANCIAL_DATA_KEY,
                f"{self._store.name} store rejected the write",
            ))
        self._last_persist_ok = ok
        return ok

    def export_json(self) -> str:
        """The aggregate in its persisted layout, for download."""
        return self._data.to_storage_json()

    def _commit(self, data: FinancialData, event: Optional[AuditEvent] = None) -> None:
        self._data = recompute_budget_spent(data, self._today())
        self.persist()
        if event is not None:
            self._audit(event)

    def _audit(self, event: AuditEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def get_budget(self, budget_id: UUID) -> Optional[Budget]:
        return next((b for b in self._data.budgets if b.id == budget_id), None)

    def add_budget(self, draft: BudgetDraft) -> Budget:
        budget = Budget.from_draft(draft)
        self._commit(
            self._data.model_copy(update={"budgets": [*self._data.budgets, budget]}),
            AuditEventBuilder.entity_added("budget", budget.id, budget.category),
        )
        return self.get_budget(budget.id)

    def update_budget(self, budget: Budget) -> Budget:
        if self.get_budget(budget.id) is None:
            raise EntityNotFoundError("budget", budget.id)
        budgets = [budget if b.id == budget.id else b for b in self._data.budgets]
        self._commit(
            self._data.model_copy(update={"budgets": budgets}),
            AuditEventBuilder.entity_updated("budget", budget.id, budget.category),
        )
        return self.get_budget(budget.id)

    def delete_budget(self, budget_id: UUID) -> bool:
        budgets = [b for b in self._data.budgets if b.id != budget_id]
        if len(budgets) == len(self._data.budgets):
            return False
        self._commit(
            self._data.model_copy(update={"budgets": budgets}),
            AuditEventBuilder.entity_deleted("budget", budget_id),
        )
        return True

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return next((t for t in self._data.transactions if t.id == transaction_id), None)

    def add_transaction(self, draft: TransactionDraft) -> Transaction:
        transaction = Transaction.from_draft(draft)
        self._commit(
            self._data.model_copy(
                update={"transactions": [*self._data.transactions, transaction]}
            ),
            AuditEventBuilder.entity_added("transaction", transaction.id, transaction.description),
        )
        return transaction

    def update_transaction(self, transaction: Transaction) -> Transaction:
        if self.get_transaction(transaction.id) is None:
            raise EntityNotFoundError("transaction", transaction.id)
        transactions = [
            transaction if t.id == transaction.id else t
            for t in self._data.transactions
        ]
        self._commit(
            self._data.model_copy(update={"transactions": transactions}),
            AuditEventBuilder.entity_updated(
                "transaction", transaction.id, transaction.description
            ),
        )
        return transaction

    def delete_transaction(self, transaction_id: UUID) -> bool:
        transactions = [t for t in self._data.transactions if t.id != transaction_id]
        if len(transactions) == len(self._data.transactions):
            return False
        self._commit(
            self._data.model_copy(update={"transactions": transactions}),
            AuditEventBuilder.entity_deleted("transaction", transaction_id),
        )
        return True

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    def get_goal(self, goal_id: UUID) -> Optional[Goal]:
        return next((g for g in self._data.goals if g.id == goal_id), None)

    def add_goal(self, draft: GoalDraft) -> Goal:
        goal = Goal.from_draft(draft)
        self._commit(
            self._data.model_copy(update={"goals": [*self._data.goals, goal]}),
            AuditEventBuilder.entity_added("goal", goal.id, goal.title),
        )
        return goal

    def update_goal(self, goal: Goal) -> Goal:
        if self.get_goal(goal.id) is None:
            raise EntityNotFoundError("goal", goal.id)
        goals = [goal if g.id == goal.id else g for g in self._data.goals]
        self._commit(
            self._data.model_copy(update={"goals": goals}),
            AuditEventBuilder.entity_updated("goal", goal.id, goal.title),
        )
        return goal

    def delete_goal(self, goal_id: UUID) -> bool:
        goals = [g for g in self._data.goals if g.id != goal_id]
        if len(goals) == len(self._data.goals):
            return False
        self._commit(
            self._data.model_copy(update={"goals": goals}),
            AuditEventBuilder.entity_deleted("goal", goal_id),
        )
        return True

    def contribute_to_goal(self, goal_id: UUID, amount: Decimal) -> Goal:
        """
        Add a contribution to a goal's saved amount.

        Contributions only ever increase `current_amount`.
        """
        if amount <= 0:
            raise ValueError("Contribution must be positive")

        goal = self.get_goal(goal_id)
        if goal is None:
            raise EntityNotFoundError("goal", goal_id)

        updated = goal.model_copy(update={"current_amount": goal.current_amount + amount})
        goals = [updated if g.id == goal_id else g for g in self._data.goals]
        self._commit(
            self._data.model_copy(update={"goals": goals}),
            AuditEventBuilder.goal_contribution(
                goal_id, str(amount), str(updated.current_amount)
            ),
        )
        return updated

    # -------------------------------------------------------------------------
    # Whole-aggregate operations
    # -------------------------------------------------------------------------

    def reset_to_demo_data(self) -> FinancialData:
        self._commit(build_demo_data(self._today()), AuditEventBuilder.data_reset())
        return self._data
