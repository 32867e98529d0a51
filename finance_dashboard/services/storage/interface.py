"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for another document store later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

All data is owned by a single user; every operation is scoped by user_id.
There is no conflict resolution or merge logic: the last write wins.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional
from uuid import UUID

from finance_dashboard.models.finance import (
    Budgets,
    Goal,
    Investment,
    Preferences,
    SnapshotCollection,
    Transaction,
)
from finance_dashboard.models.audit import AuditEvent


# Receives the full, materialized entity set of one collection.
SnapshotCallback = Callable[[object], None]


class Subscription(ABC):
    """Handle returned by on_snapshot_change."""

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop delivering snapshots to this subscriber."""
        pass


class FinanceStorageInterface(ABC):
    """
    Abstract interface for per-user finance data.

    Any storage implementation (Google Sheets, Firestore, etc.)
    must implement these methods.
    """

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @abstractmethod
    async def add_transaction(self, user_id: str, transaction: Transaction) -> Transaction:
        """
        Store a new transaction.

        Raises:
            DuplicateError: If a transaction with the same id exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update_transaction(self, user_id: str, transaction: Transaction) -> Transaction:
        """
        Replace every field of an existing transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def soft_delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        """
        Move a transaction to the DELETED state.

        Returns:
            True if a record was marked, False if it did not exist
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        user_id: str,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        """
        List a user's transactions, newest date first.

        Args:
            user_id: Owner of the data
            include_deleted: Also return records in the DELETED state
        """
        pass

    # ------------------------------------------------------------------
    # Budgets, goals, investments, preferences
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_budgets(self, user_id: str) -> Budgets:
        """Category -> monthly limit. Empty when nothing was saved."""
        pass

    @abstractmethod
    async def save_budgets(self, user_id: str, budgets: Budgets) -> bool:
        """Replace the whole budget mapping."""
        pass

    @abstractmethod
    async def add_goal(self, user_id: str, goal: Goal) -> Goal:
        pass

    @abstractmethod
    async def list_goals(self, user_id: str) -> list[Goal]:
        """Goals ordered by deadline, earliest first."""
        pass

    @abstractmethod
    async def add_investment(self, user_id: str, investment: Investment) -> Investment:
        pass

    @abstractmethod
    async def list_investments(self, user_id: str) -> list[Investment]:
        pass

    @abstractmethod
    async def get_preferences(self, user_id: str) -> Preferences:
        """Stored preferences, or defaults when none were saved."""
        pass

    @abstractmethod
    async def save_preferences(self, user_id: str, preferences: Preferences) -> bool:
        pass

    # ------------------------------------------------------------------
    # Real-time updates
    # ------------------------------------------------------------------

    @abstractmethod
    def on_snapshot_change(
        self,
        user_id: str,
        collection: SnapshotCollection,
        callback: SnapshotCallback,
    ) -> Subscription:
        """
        Subscribe to changes of one collection.

        After every change the callback receives the complete current
        entity set: list[Transaction] (active only, newest first),
        Budgets, list[Goal], list[Investment] or Preferences.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Related events in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).

        Args:
            user_id: Only events for this user when given
            limit: Maximum number of events to return
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
