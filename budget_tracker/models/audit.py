"""
Audit Models for Budget Tracker

Every mutation of the financial data, every persistence failure and every
classifier lifecycle step is recorded as an audit event. The UI shows the
most recent ones as notifications; the structured log keeps all of them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Financial data
    ENTITY_ADDED = "entity_added"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_DELETED = "entity_deleted"
    GOAL_CONTRIBUTION = "goal_contribution"
    DATA_LOADED = "data_loaded"
    DATA_RESET = "data_reset"
    DATA_EXPORTED = "data_exported"

    # Forms
    VALIDATION_FAILED = "validation_failed"

    # Persistence
    PERSIST_FAILED = "persist_failed"

    # Classifier
    CLASSIFIER_RESTORED = "classifier_restored"
    CLASSIFIER_TRAINING_STARTED = "classifier_training_started"
    CLASSIFIER_TRAINED = "classifier_trained"
    CLASSIFIER_INSUFFICIENT_DATA = "classifier_insufficient_data"
    CLASSIFIER_TRAINING_FAILED = "classifier_training_failed"
    PREDICTION_FAILED = "prediction_failed"

    # Advisor
    API_KEY_SAVED = "api_key_saved"
    ADVISOR_ERROR = "advisor_error"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (budget, transaction, goal, classifier)"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entity_added("budget", budget.id, "Food")
        event = AuditEventBuilder.persist_failed("financialData", str(exc))
    """

    @staticmethod
    def entity_added(entity_type: str, entity_id: UUID, label: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_ADDED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} added successfully",
            details={"label": label},
            is_user_action=True,
        )

    @staticmethod
    def entity_updated(entity_type: str, entity_id: UUID, label: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_UPDATED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} updated successfully",
            details={"label": label},
            is_user_action=True,
        )

    @staticmethod
    def entity_deleted(entity_type: str, entity_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_DELETED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} deleted successfully",
            is_user_action=True,
        )

    @staticmethod
    def goal_contribution(goal_id: UUID, amount: str, new_total: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_CONTRIBUTION,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Added ${amount} to goal",
            details={"amount": amount, "current_amount": new_total},
            is_user_action=True,
        )

    @staticmethod
    def data_loaded(source: str, counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description=f"Financial data loaded from {source}",
            details={"source": source, **counts},
        )

    @staticmethod
    def data_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_RESET,
            description="Reset to default data successfully",
            is_user_action=True,
        )

    @staticmethod
    def data_exported() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            description="Data exported successfully",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(form: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=form,
            description=f"{form.capitalize()} form rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def persist_failed(key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSIST_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Could not persist '{key}'; continuing in memory",
            error_message=error_message,
            details={"key": key},
        )

    @staticmethod
    def classifier_restored(vocabulary_size: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLASSIFIER_RESTORED,
            entity_type="classifier",
            description="Model loaded from storage",
            details={"vocabulary_size": vocabulary_size},
        )

    @staticmethod
    def classifier_training_started(sample_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLASSIFIER_TRAINING_STARTED,
            entity_type="classifier",
            description=f"Training started on {sample_count} transactions",
            details={"sample_count": sample_count},
        )

    @staticmethod
    def classifier_trained(sample_count: int, vocabulary_size: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLASSIFIER_TRAINED,
            entity_type="classifier",
            description="Model trained successfully!",
            details={
                "sample_count": sample_count,
                "vocabulary_size": vocabulary_size,
            },
        )

    @staticmethod
    def classifier_insufficient_data(sample_count: int, required: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLASSIFIER_INSUFFICIENT_DATA,
            severity=AuditSeverity.WARNING,
            entity_type="classifier",
            description=f"Need at least {required} transactions to train the model",
            details={"sample_count": sample_count, "required": required},
        )

    @staticmethod
    def classifier_training_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLASSIFIER_TRAINING_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="classifier",
            description="Failed to train model",
            error_message=error_message,
        )

    @staticmethod
    def prediction_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREDICTION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="classifier",
            description="Category prediction failed; using fallback",
            error_message=error_message,
        )

    @staticmethod
    def api_key_saved() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.API_KEY_SAVED,
            description="API key saved successfully",
            is_user_action=True,
        )

    @staticmethod
    def advisor_error(service: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVISOR_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External advisor error: {service}",
            error_message=error_message,
            details={"service": service},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
