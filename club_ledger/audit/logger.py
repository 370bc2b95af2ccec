"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Complete traceability
2. Debugging capability when a store call fails
3. A history of who settled which credit sale

The audit logger:
- Is async, like the stores it writes to
- Never raises: a failed audit write is logged locally and reported
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from club_ledger.config import AppSettings, get_settings
from club_ledger.models.audit import AuditEvent, AuditEventBuilder
from club_ledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(app: Optional[AppSettings] = None) -> None:
    """
    Apply the app settings to local logging.

    `debug_mode` lowers the package log level to DEBUG, and every event
    carries the `environment` it was emitted from.
    """
    app = app or get_settings().app
    logging.getLogger("club_ledger").setLevel(
        logging.DEBUG if app.debug_mode else logging.INFO
    )
    structlog.contextvars.bind_contextvars(environment=app.app_environment)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("club_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is None:
            return True

        try:
            stored = await self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

        if not stored:
            self._logger.error(
                "audit_storage_failed",
                event_id=str(event.event_id),
            )
        return stored

    async def log_transaction_created(
        self,
        transaction_id: str,
        user_id: str,
        category: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log a stored transaction."""
        await self.log(AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            user_id=user_id,
            category=category,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        user_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected entry."""
        await self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_transaction_settled(
        self,
        transaction_id: str,
        user_id: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log a collected credit sale."""
        await self.log(AuditEventBuilder.transaction_settled(
            transaction_id=transaction_id,
            user_id=user_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_settle_ignored(
        self,
        transaction_id: str,
        user_id: str,
        status: str,
        correlation_id: UUID,
    ) -> None:
        """Log a settle request on a record that was not pending."""
        await self.log(AuditEventBuilder.settle_ignored(
            transaction_id=transaction_id,
            user_id=user_id,
            status=status,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        user_id: Optional[str],
        existed: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            user_id=user_id,
            existed=existed,
            correlation_id=correlation_id,
        ))

    async def log_store_unavailable(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a store that could not be reached."""
        await self.log(AuditEventBuilder.store_unavailable(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving an entry).
    Pass it through all subsequent operations.
    """
    return uuid4()
