"""
Audit Logger

DESIGN DECISION: Every change to a user's finance data is logged.
This provides:
1. Complete traceability of writes, imports and exports
2. Debugging capability for failed saves and rate refreshes
3. A history the user can review

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to tie a recurring series or an import together
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_dashboard.models.audit import AuditEvent, AuditEventBuilder
from finance_dashboard.models.finance import Transaction
from finance_dashboard.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
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
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_added(
        self,
        user_id: str,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
        source: str = "user",
    ) -> None:
        """Log a stored transaction."""
        event = AuditEventBuilder.transaction_added(
            user_id=user_id,
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=str(transaction.amount),
            category=transaction.category,
            correlation_id=correlation_id,
            source=source,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        user_id: str,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            user_id=user_id,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        user_id: str,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            user_id=user_id,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    async def log_transaction_rejected(
        self,
        user_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log form input that failed validation."""
        await self.log(AuditEventBuilder.transaction_rejected(
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_occurrence_scheduled(
        self,
        user_id: str,
        template: Transaction,
        occurrence: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.occurrence_scheduled(
            user_id=user_id,
            template_id=template.id,
            occurrence_id=occurrence.id,
            occurrence_date=occurrence.date.isoformat(),
            correlation_id=correlation_id,
        ))

    async def log_recurrence_ended(
        self,
        user_id: str,
        template: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.recurrence_ended(
            user_id=user_id,
            template_id=template.id,
            interval=template.recurrence.interval if template.recurrence else "",
            correlation_id=correlation_id,
        ))

    async def log_budget_alert(
        self,
        user_id: str,
        category: str,
        percent_spent: int,
        delivered: bool,
    ) -> None:
        await self.log(AuditEventBuilder.budget_alert_raised(
            user_id=user_id,
            category=category,
            percent_spent=percent_spent,
            delivered=delivered,
        ))

    async def log_save_failed(
        self,
        user_id: str,
        entity_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a storage write that raised."""
        await self.log(AuditEventBuilder.save_failed(
            user_id=user_id,
            entity_type=entity_type,
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
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a bank import).
    Pass it through all subsequent operations.
    """
    return uuid4()
