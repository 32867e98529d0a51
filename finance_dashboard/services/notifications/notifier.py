"""
Budget Alert Notifications

The platform notification channel (browser push, desktop toast, mobile
push) is a collaborator behind NotifierInterface. The default
LoggingNotifier only writes a structured log line, which is what a
headless run or a user without notification permission gets.

Delivery is best effort: a notifier that returns False or raises never
blocks the alert check, and the alert is still reported to the caller.
"""

from abc import ABC, abstractmethod
from typing import Iterable

import structlog

from finance_dashboard.models.finance import BudgetAlert

logger = structlog.get_logger(__name__)

ALERT_TITLE = "Budget Alert"


class NotifierInterface(ABC):
    """A channel that can show a short title/body message to the user."""

    @abstractmethod
    def notify(self, title: str, body: str) -> bool:
        """
        Show a notification.

        Returns:
            True if the platform accepted it, False if permission is
            missing or the channel is unavailable
        """
        pass


class LoggingNotifier(NotifierInterface):
    """Writes notifications to the structured log."""

    def notify(self, title: str, body: str) -> bool:
        logger.info("notification", title=title, body=body)
        return True


class BudgetAlertService:
    """Turns budget alerts into user notifications."""

    def __init__(self, notifier: NotifierInterface):
        self._notifier = notifier

    def send(self, alert: BudgetAlert) -> bool:
        """Deliver one alert; returns whether the notifier accepted it."""
        try:
            delivered = self._notifier.notify(ALERT_TITLE, alert.message)
        except Exception as e:
            logger.warning(
                "notification_failed",
                category=alert.category,
                error=str(e),
            )
            return False
        if not delivered:
            logger.info("notification_not_delivered", category=alert.category)
        return delivered

    def send_all(self, alerts: Iterable[BudgetAlert]) -> list[tuple[BudgetAlert, bool]]:
        """Deliver alerts in order, pairing each with its delivery result."""
        return [(alert, self.send(alert)) for alert in alerts]
