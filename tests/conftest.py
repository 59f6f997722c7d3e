"""
Shared fixtures for the Budget Tracker test suite.

No test touches the network or the real data directory: storage is
in-memory (or a pytest tmp_path) and the clock is pinned.
"""

from datetime import date
from decimal import Decimal

import pytest

from budget_tracker.audit import AuditLogger
from budget_tracker.config import AppSettings, ClassifierSettings
from budget_tracker.models.finance import (
    FinancialData,
    Transaction,
    TransactionType,
)
from budget_tracker.services.storage import FINANCIAL_DATA_KEY, InMemoryStore
from budget_tracker.state import FinancialState
from budget_tracker.validation import FormValidator


TODAY = date(2024, 6, 20)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def app_settings(tmp_path) -> AppSettings:
    return AppSettings(
        storage_backend="memory",
        data_dir=tmp_path / "data",
        large_amount_threshold=100000.0,
    )


@pytest.fixture
def classifier_settings() -> ClassifierSettings:
    """Full-size network, but only a couple of epochs."""
    return ClassifierSettings(epochs=2, batch_size=8)


@pytest.fixture
def state(store, audit_logger, today) -> FinancialState:
    """State loaded with the demo data (nothing stored yet)."""
    financial_state = FinancialState(store, audit_logger, today=lambda: today)
    financial_state.load()
    return financial_state


@pytest.fixture
def empty_state(store, audit_logger, today) -> FinancialState:
    """State loaded from a stored, empty aggregate."""
    store.save_raw(FINANCIAL_DATA_KEY, FinancialData().to_storage_json())
    financial_state = FinancialState(store, audit_logger, today=lambda: today)
    financial_state.load()
    return financial_state


@pytest.fixture
def validator(app_settings, today) -> FormValidator:
    return FormValidator(settings=app_settings, today=today)


def make_transaction(
    description: str,
    amount: str,
    category: str,
    tx_date: date = TODAY,
    tx_type: TransactionType = TransactionType.EXPENSE,
) -> Transaction:
    return Transaction(
        description=description,
        amount=Decimal(amount),
        category=category,
        transaction_date=tx_date,
        type=tx_type,
    )


@pytest.fixture
def labelled_transactions() -> list[Transaction]:
    """Enough clearly separable history to train the classifier."""
    return [
        make_transaction("Grocery shopping at market", "85.75", "Food"),
        make_transaction("Supermarket groceries", "42.10", "Food"),
        make_transaction("Restaurant dinner", "60.00", "Food"),
        make_transaction("Uber ride to airport", "35.00", "Transportation"),
        make_transaction("Gas station fuel", "50.00", "Transportation"),
        make_transaction("Bus ticket", "2.50", "Transportation"),
        make_transaction("Electric bill", "120.00", "Utilities"),
        make_transaction("Water bill", "30.00", "Utilities"),
        make_transaction(
            "Monthly salary", "3000.00", "Income", tx_type=TransactionType.INCOME
        ),
    ]
