"""Notification services package."""

from finance_dashboard.services.notifications.notifier import (
    ALERT_TITLE,
    BudgetAlertService,
    LoggingNotifier,
    NotifierInterface,
)

__all__ = [
    "ALERT_TITLE",
    "BudgetAlertService",
    "LoggingNotifier",
    "NotifierInterface",
]
