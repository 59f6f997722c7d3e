"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of every change to the financial data
2. Debugging capability when persistence or training fails
3. A short notification feed for the UI

The audit logger:
- Gracefully handles failures (doesn't crash the app if logging fails)
- Keeps only a bounded in-memory history; the structured log has the rest
"""

import logging
import sys
from collections import deque
from typing import Optional

import structlog

from budget_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """
    Configure stdlib logging and structlog.

    JSON lines by default; a human-friendly console renderer in debug mode.
    Safe to call more than once.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if debug
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. A bounded in-memory history (for the notification list)
    """

    def __init__(self, history_size: int = 50):
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("budget_tracker.audit")

    def log(self, event: AuditEvent) -> None:
        """
        Log an audit event.

        Never raises: an audit failure must not break the action being audited.
        """
        self._history.append(event)

        try:
            log_dict = event.to_log_dict()
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Logging itself failed; the history still has the event
            print(f"WARNING: Failed to write audit event: {e}", file=sys.stderr)

    def recent_events(
        self,
        limit: int = 10,
        min_severity: Optional[AuditSeverity] = None,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        order = list(AuditSeverity)
        events = [
            event
            for event in reversed(self._history)
            if min_severity is None or order.index(event.severity) >= order.index(min_severity)
        ]
        return events[:limit]

    def clear(self) -> None:
        self._history.clear()

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))
