"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. Complete traceability
2. Debugging capability when writes fail
3. The user can see a history of their actions

The audit logger:
- Is synchronous, like the rest of the engine
- Never raises into the caller's flow
- Keeps a bounded in-memory history, newest events last
"""

import logging
import sys
from collections import deque
from typing import Callable, Optional

import structlog

from orcamais.config import LoggingSettings
from orcamais.models.audit import AuditEvent, AuditEventBuilder, AuditEventType


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog on top of stdlib logging.

    Call from the composition root. Calling again replaces the handler,
    level and renderer for every logger, including ones already in use
    (loggers are not cached on first use).
    """
    settings = settings or LoggingSettings()
    level = getattr(logging, settings.level, logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    logging.getLogger("orcamais").setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
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
        cache_logger_on_first_use=False,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. A bounded in-memory history (for the host app to display)
    3. An optional sink supplied by the host (e.g. an audit table)
    """

    def __init__(
        self,
        history_size: int = 200,
        sink: Optional[Callable[[AuditEvent], None]] = None,
    ):
        """
        Initialize audit logger.

        Args:
            history_size: How many events to keep. 0 disables the history.
            sink: Called with every event. If None, events stay local.
        """
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._sink = sink
        self._logger = structlog.get_logger("orcamais.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event and record it in the history.

        Returns True unless the sink failed. A sink failure is logged, never raised.
        """
        log_dict = event.to_log_dict()
        severity = event.severity.value

        if severity in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        self._history.append(event)

        if self._sink:
            try:
                self._sink(event)
            except Exception as e:
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def recent_events(
        self,
        limit: Optional[int] = None,
        event_type: Optional[AuditEventType] = None,
        account_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).

        Args:
            limit: Maximum number of events to return
            event_type: Only events of this type
            account_id: Only events that happened in this account
        """
        events = [
            event for event in reversed(self._history)
            if (event_type is None or event.event_type == event_type)
            and (account_id is None or event.account_id == account_id)
        ]
        return events[:limit] if limit is not None else events

    def clear(self) -> None:
        self._history.clear()

    def log_validation_failed(
        self,
        operation: str,
        issues: list[dict],
        account_id: Optional[str] = None,
    ) -> None:
        """Log rejected caller input."""
        self.log(AuditEventBuilder.validation_failed(
            operation=operation,
            issues=issues,
            account_id=account_id,
        ))

    def log_persistence_failed(
        self,
        operation: str,
        applied: bool,
        account_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Log a ledger write that did not reach storage."""
        self.log(AuditEventBuilder.persistence_failed(
            operation=operation,
            applied=applied,
            account_id=account_id,
            error_message=error_message,
        ))
