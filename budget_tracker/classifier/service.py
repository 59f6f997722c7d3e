"""
Category Service

Owns the classifier's lifecycle for the running app: restoring it at
startup, training it (in the foreground or on a background worker),
persisting it, and answering category suggestions.

FAILURE POLICY:
- Restore fails → untrained, background auto-train if there is enough history
- Not enough labelled transactions → untrained, `last_error` set
- Training fails → previous network (if any) keeps serving
- Prediction fails → "Other"
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import structlog

from budget_tracker.audit import AuditLogger
from budget_tracker.classifier.network import (
    ClassifierError,
    InsufficientDataError,
    TransactionClassifier,
)
from budget_tracker.config import ClassifierSettings, get_settings
from budget_tracker.models.audit import AuditEvent, AuditEventBuilder
from budget_tracker.models.finance import FALLBACK_CATEGORY
from budget_tracker.services.storage import KeyValueStore
from budget_tracker.state import FinancialState


logger = structlog.get_logger(__name__)


class CategoryService:
    """
    Single owner of the trained classifier.

    Args:
        classifier: The network wrapper
        store: Where the network and vocabulary are persisted
        state: Source of labelled transactions
        audit_logger: Receives training and restore events (optional)
    """

    def __init__(
        self,
        classifier: TransactionClassifier,
        store: KeyValueStore,
        state: FinancialState,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[ClassifierSettings] = None,
    ):
        self._classifier = classifier
        self._store = store
        self._state = state
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().classifier
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="classifier")
        self._training_lock = threading.Lock()
        self._is_training = False
        self._training_future: Optional[Future] = None
        self._last_error: Optional[str] = None

    @property
    def is_trained(self) -> bool:
        return self._classifier.is_trained

    @property
    def is_training(self) -> bool:
        return self._is_training

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def initialize(self) -> bool:
        """
        Restore the persisted network, or start training one in the
        background if enough history exists.

        Returns whether a trained network is available right now. An
        auto-train run reports False here; see `wait_for_training`.
        """
        if self._classifier.load(self._store):
            self._audit(AuditEventBuilder.classifier_restored(len(self._classifier.vocabulary)))
            return True

        if len(self._state.transactions) > self._settings.auto_train_threshold:
            self.start_training()
        return False

    def training_samples(self) -> list[tuple[str, str]]:
        """(description, category) for every transaction with a known category."""
        categories = set(self._classifier.categories)
        return [
            (t.description, t.category)
            for t in self._state.transactions
            if t.category in categories
        ]

    def train(self) -> bool:
        """
        Train on the current transactions and persist the result.

        Returns False if a run is already in progress, if there is too
        little data, or if fitting fails. The reason is in `last_error`.
        """
        with self._training_lock:
            if self._is_training:
                return False
            self._is_training = True

        try:
            return self._run_training()
        finally:
            self._is_training = False

    def start_training(self) -> Optional[Future]:
        """
        Train on the background worker.

        Returns None when a run is already in progress. The run cannot be
        cancelled once started.
        """
        with self._training_lock:
            if self._is_training:
                return None
            self._is_training = True

        def run() -> bool:
            try:
                return self._run_training()
            finally:
                self._is_training = False

        self._training_future = self._executor.submit(run)
        return self._training_future

    def wait_for_training(self, timeout: Optional[float] = None) -> bool:
        """Block until the latest background run ends; True if a network is trained."""
        future = self._training_future
        if future is not None:
            future.result(timeout=timeout)
        return self.is_trained

    def _run_training(self) -> bool:
        samples = self.training_samples()
        self._audit(AuditEventBuilder.classifier_training_started(len(samples)))

        try:
            summary = self._classifier.train(samples)
        except InsufficientDataError as e:
            self._last_error = str(e)
            self._audit(AuditEventBuilder.classifier_insufficient_data(e.sample_count, e.required))
            return False
        except ClassifierError as e:
            self._last_error = str(e)
            self._audit(AuditEventBuilder.classifier_training_failed(str(e)))
            return False
        except Exception as e:
            # Keras surfaces fitting problems as assorted exception types
            self._last_error = f"Training failed: {e}"
            self._audit(AuditEventBuilder.classifier_training_failed(str(e)))
            return False

        if not self._classifier.save(self._store):
            logger.warning("classifier_persist_failed", store=self._store.name)

        self._last_error = None
        self._audit(AuditEventBuilder.classifier_trained(
            summary.sample_count,
            summary.vocabulary_size,
        ))
        return True

    def predict_category(self, description: str) -> str:
        """Suggested category, "Other" when untrained or on any failure."""
        if not self._classifier.is_trained:
            return FALLBACK_CATEGORY
        try:
            return self._classifier.predict_category(description)
        except Exception as e:
            self._audit(AuditEventBuilder.prediction_failed(str(e)))
            return FALLBACK_CATEGORY

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _audit(self, event: AuditEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)
