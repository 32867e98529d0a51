"""
Audit Models for the Finance Dashboard

Every state-changing action (a transaction saved, a budget replaced, an
alert raised, an import run) is recorded as an AuditEvent.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_REJECTED = "transaction_rejected"
    OCCURRENCE_SCHEDULED = "occurrence_scheduled"
    RECURRENCE_ENDED = "recurrence_ended"

    # Planning
    BUDGETS_SAVED = "budgets_saved"
    GOAL_CREATED = "goal_created"
    INVESTMENT_ADDED = "investment_added"
    PREFERENCES_UPDATED = "preferences_updated"

    # Import / export
    BANK_IMPORT_COMPLETED = "bank_import_completed"
    EXPORT_GENERATED = "export_generated"

    # Alerts
    BUDGET_ALERT_RAISED = "budget_alert_raised"

    # Exchange rates
    RATES_REFRESHED = "rates_refreshed"
    RATES_REFRESH_FAILED = "rates_refresh_failed"

    # System events
    SAVE_FAILED = "save_failed"
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


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

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which user and which entity is this about?
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the affected data"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'budget')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a template and its next occurrence)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
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
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(user_id, tx_id, ...)
        event = AuditEventBuilder.budget_alert_raised(user_id, "Food", 95)
    """

    @staticmethod
    def transaction_added(
        user_id: str,
        transaction_id: UUID,
        transaction_type: str,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
        source: str = "user",
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{transaction_type.capitalize()} added: {category} {amount}",
            details={
                "type": transaction_type,
                "amount": amount,
                "category": category,
                "source": source,
            },
            is_user_action=source == "user",
        )

    @staticmethod
    def transaction_updated(
        user_id: str,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction updated",
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        user_id: str,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction marked as deleted",
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        user_id: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction input rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def occurrence_scheduled(
        user_id: str,
        template_id: UUID,
        occurrence_id: UUID,
        occurrence_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCCURRENCE_SCHEDULED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=occurrence_id,
            correlation_id=correlation_id,
            description=f"Next occurrence scheduled for {occurrence_date}",
            details={
                "template_id": str(template_id),
                "date": occurrence_date,
            },
        )

    @staticmethod
    def recurrence_ended(
        user_id: str,
        template_id: UUID,
        interval: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRENCE_ENDED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=template_id,
            correlation_id=correlation_id,
            description="Recurring series has no next occurrence",
            details={"interval": interval},
        )

    @staticmethod
    def budgets_saved(
        user_id: str,
        categories: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGETS_SAVED,
            user_id=user_id,
            entity_type="budget",
            description=f"Budgets saved for {len(categories)} categories",
            details={"categories": categories},
            is_user_action=True,
        )

    @staticmethod
    def goal_created(
        user_id: str,
        goal_id: UUID,
        name: str,
        target: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_CREATED,
            user_id=user_id,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Goal created: {name}",
            details={"name": name, "target": target},
            is_user_action=True,
        )

    @staticmethod
    def investment_added(
        user_id: str,
        investment_id: UUID,
        symbol: str,
        quantity: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVESTMENT_ADDED,
            user_id=user_id,
            entity_type="investment",
            entity_id=investment_id,
            description=f"Investment added: {symbol}",
            details={"symbol": symbol, "quantity": quantity},
            is_user_action=True,
        )

    @staticmethod
    def preferences_updated(
        user_id: str,
        preferences: dict,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREFERENCES_UPDATED,
            user_id=user_id,
            entity_type="preferences",
            description="Preferences updated",
            details=preferences,
            is_user_action=True,
        )

    @staticmethod
    def bank_import_completed(
        user_id: str,
        imported: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BANK_IMPORT_COMPLETED,
            user_id=user_id,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Bank import added {imported} transactions",
            details={"imported": imported},
        )

    @staticmethod
    def export_generated(
        user_id: str,
        export_format: str,
        row_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            user_id=user_id,
            description=f"{export_format.upper()} export generated ({row_count} rows)",
            details={"format": export_format, "rows": row_count},
            is_user_action=True,
        )

    @staticmethod
    def budget_alert_raised(
        user_id: str,
        category: str,
        percent_spent: int,
        delivered: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_ALERT_RAISED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="budget",
            description=f"Budget alert: {category} at {percent_spent}%",
            details={
                "category": category,
                "percent_spent": percent_spent,
                "delivered": delivered,
            },
        )

    @staticmethod
    def rates_refreshed(
        base: str,
        currency_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATES_REFRESHED,
            severity=AuditSeverity.DEBUG,
            description=f"Exchange rates refreshed for base {base}",
            details={"base": base, "currencies": currency_count},
        )

    @staticmethod
    def rates_refresh_failed(
        base: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATES_REFRESH_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Exchange rate refresh failed for base {base}",
            error_message=error_message,
            details={"base": base},
        )

    @staticmethod
    def save_failed(
        user_id: str,
        entity_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Failed to save {entity_type}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
