"""
Main Orchestrator for Budget Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Form submission (raw form → validate → mutate state → persist)
2. Advisor chat (question → local or Gemini responder)
3. Classifier lifecycle (restore or train at startup)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No state mutation without a valid form
- No failure is fatal: storage falls back to memory, the classifier
  falls back to "Other", the advisor falls back to an apology
- Every step is audited

Nothing here is a global. `create_app_context` builds one `AppContext`
and the caller (the Streamlit app, a test) owns it.
"""

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from uuid import UUID

import structlog

from budget_tracker.agents import AdviceEngine, AdvisorChat, GeminiAdvisor, LocalAdvisor
from budget_tracker.audit import AuditLogger, configure_logging
from budget_tracker.classifier import CategoryService, TransactionClassifier
from budget_tracker.config import Settings, get_settings
from budget_tracker.models.audit import AuditEventBuilder
from budget_tracker.models.finance import (
    Budget,
    Goal,
    Transaction,
    ValidationResult,
)
from budget_tracker.services.storage import (
    API_KEY_KEY,
    GoogleSheetsClient,
    GoogleSheetsStore,
    InMemoryStore,
    KeyValueStore,
    LocalFileStore,
    StorageError,
)
from budget_tracker.state import FinancialState
from budget_tracker.validation import FormValidator


logger = structlog.get_logger(__name__)


@dataclass
class AppContext:
    """Everything the presentation layer needs, built once per session."""
    settings: Settings
    store: KeyValueStore
    audit_logger: AuditLogger
    state: FinancialState
    validator: FormValidator
    category_service: CategoryService
    advice_engine: AdviceEngine
    storage_fallback: bool = False

    @property
    def flow(self) -> "FinanceFlow":
        return FinanceFlow(self)


class FinanceFlow:
    """
    Orchestrates form submissions.

    Flow:
    1. Validate → per-field errors and warnings
    2. Only if valid: mutate state (which recomputes spend and persists)
    3. Audit the outcome

    Every `submit_*` returns `(record | None, ValidationResult)`.
    """

    def __init__(self, context: AppContext):
        self._context = context
        self._state = context.state
        self._validator = context.validator
        self._audit_logger = context.audit_logger

    def _rejected(self, result: ValidationResult) -> None:
        self._audit_logger.log(AuditEventBuilder.validation_failed(
            result.form,
            [issue.model_dump() for issue in result.issues if issue.severity == "error"],
        ))

    def submit_budget_form(
        self,
        form: Mapping[str, Any],
        budget_id: Optional[UUID] = None,
    ) -> tuple[Optional[Budget], ValidationResult]:
        """Create a budget, or replace the one with `budget_id`."""
        draft, result = self._validator.validate_budget_form(form)
        if draft is None:
            self._rejected(result)
            return None, result

        if budget_id is None:
            return self._state.add_budget(draft), result
        return self._state.update_budget(Budget.from_draft(draft, budget_id)), result

    def submit_transaction_form(
        self,
        form: Mapping[str, Any],
        transaction_id: Optional[UUID] = None,
    ) -> tuple[Optional[Transaction], ValidationResult]:
        draft, result = self._validator.validate_transaction_form(form)
        if draft is None:
            self._rejected(result)
            return None, result

        if transaction_id is None:
            return self._state.add_transaction(draft), result
        return self._state.update_transaction(
            Transaction.from_draft(draft, transaction_id)
        ), result

    def submit_goal_form(
        self,
        form: Mapping[str, Any],
        goal_id: Optional[UUID] = None,
    ) -> tuple[Optional[Goal], ValidationResult]:
        draft, result = self._validator.validate_goal_form(form)
        if draft is None:
            self._rejected(result)
            return None, result

        if goal_id is None:
            return self._state.add_goal(draft), result
        return self._state.update_goal(Goal.from_draft(draft, goal_id)), result

    def submit_contribution(
        self,
        goal_id: UUID,
        form: Mapping[str, Any],
    ) -> tuple[Optional[Goal], ValidationResult]:
        amount, result = self._validator.validate_contribution(form)
        if amount is None:
            self._rejected(result)
            return None, result
        return self._state.contribute_to_goal(goal_id, amount), result

    def suggest_category(self, description: str) -> Optional[str]:
        """
        Category suggestion for a new expense description.

        Only descriptions longer than three characters get a suggestion.
        """
        if len(description.strip()) <= 3:
            return None
        return self._context.category_service.predict_category(description)


# =============================================================================
# STORAGE AND API KEY
# =============================================================================

def create_store(settings: Settings) -> tuple[KeyValueStore, bool]:
    """
    Build the configured store.

    Returns (store, fell_back). Falls back to an in-memory store when the
    configured backend cannot be reached.
    """
    app = settings.app
    try:
        if app.storage_backend == "memory":
            return InMemoryStore(), False
        if app.storage_backend == "google_sheets":
            store: KeyValueStore = GoogleSheetsStore(GoogleSheetsClient(settings.google_sheets))
        else:
            store = LocalFileStore(app.data_dir, quota_bytes=app.storage_quota_bytes)
    except (StorageError, ValueError) as e:
        logger.warning("storage_unavailable", backend=app.storage_backend, error=str(e))
        return InMemoryStore(), True

    if not store.is_available():
        logger.warning("storage_unavailable", backend=app.storage_backend)
        return InMemoryStore(), True
    return store, False


def save_api_key(context: AppContext, api_key: str) -> bool:
    """Store the advisor API key. An empty key removes it."""
    api_key = api_key.strip()
    if not api_key:
        return context.store.clear(API_KEY_KEY)
    ok = context.store.save_json(API_KEY_KEY, {"apiKey": api_key})
    if ok:
        context.audit_logger.log(AuditEventBuilder.api_key_saved())
    return ok


def load_api_key(context: AppContext) -> Optional[str]:
    """Stored key first, then `GEMINI_API_KEY` from the environment."""
    stored = context.store.load_json(API_KEY_KEY)
    if isinstance(stored, dict) and stored.get("apiKey"):
        return str(stored["apiKey"])
    if isinstance(stored, str) and stored:
        return stored
    return context.settings.gemini.api_key or os.environ.get("GEMINI_API_KEY") or None


def build_advisor_chat(context: AppContext) -> AdvisorChat:
    """Chat backed by Gemini when a key is configured, the scripted responder otherwise."""
    api_key = load_api_key(context)
    remote = GeminiAdvisor(api_key, context.settings.gemini) if api_key else None
    return AdvisorChat(
        data_provider=lambda: context.state.data,
        local=LocalAdvisor(),
        remote=remote,
        audit_logger=context.audit_logger,
    )


# =============================================================================
# FACTORY
# =============================================================================

def create_app_context(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    initialize_classifier: bool = True,
) -> AppContext:
    """
    Factory function to create all application components.

    Args:
        settings: Defaults to `get_settings()`
        store: Use this store instead of the configured backend
        initialize_classifier: Restore (or auto-train) the classifier now.
            Set to False for tests that do not need it.

    Returns:
        A loaded, ready-to-use AppContext
    """
    settings = settings or get_settings()
    app = settings.app
    configure_logging(app.log_level, debug=app.debug_mode)

    fell_back = False
    if store is None:
        store, fell_back = create_store(settings)

    audit_logger = AuditLogger()
    if fell_back:
        audit_logger.log_error(
            "StorageUnavailable",
            f"{app.storage_backend} storage is unavailable; changes will not be saved",
        )

    state = FinancialState(store, audit_logger)
    state.load()

    classifier_settings = settings.classifier
    category_service = CategoryService(
        TransactionClassifier(settings=classifier_settings),
        store,
        state,
        audit_logger,
        settings=classifier_settings,
    )
    if initialize_classifier:
        category_service.initialize()

    return AppContext(
        settings=settings,
        store=store,
        audit_logger=audit_logger,
        state=state,
        validator=FormValidator(app),
        category_service=category_service,
        advice_engine=AdviceEngine(),
        storage_fallback=fell_back,
    )

