"""
In-Memory Storage Implementation

Dictionary-backed storage used for tests and when no cloud store is
configured. Data lives only as long as the process. Every write publishes
the affected collection to snapshot subscribers, like the cloud backend.
"""

from typing import Optional
from uuid import UUID

from finance_dashboard.models.audit import AuditEvent
from finance_dashboard.models.finance import (
    Budgets,
    Goal,
    Investment,
    Preferences,
    RecordState,
    SnapshotCollection,
    Transaction,
)
from finance_dashboard.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    NotFoundError,
    SnapshotCallback,
    Subscription,
)
from finance_dashboard.services.storage.snapshots import SnapshotHub


class InMemoryFinanceStorage(FinanceStorageInterface):
    """Keeps each user's collections in plain dictionaries."""

    def __init__(self):
        self._transactions: dict[str, dict[UUID, Transaction]] = {}
        self._budgets: dict[str, Budgets] = {}
        self._goals: dict[str, dict[UUID, Goal]] = {}
        self._investments: dict[str, dict[UUID, Investment]] = {}
        self._preferences: dict[str, Preferences] = {}
        self._hub = SnapshotHub()

    # ------------------------------------------------------------------
    # Snapshot helpers
    # ------------------------------------------------------------------

    def _transactions_snapshot(self, user_id: str, include_deleted: bool = False) -> list[Transaction]:
        records = self._transactions.get(user_id, {}).values()
        txs = [
            tx.model_copy(deep=True) for tx in records
            if include_deleted or tx.state == RecordState.ACTIVE
        ]
        txs.sort(key=lambda t: t.date, reverse=True)
        return txs

    def _goals_snapshot(self, user_id: str) -> list[Goal]:
        goals = [g.model_copy() for g in self._goals.get(user_id, {}).values()]
        goals.sort(key=lambda g: g.deadline)
        return goals

    def _investments_snapshot(self, user_id: str) -> list[Investment]:
        return [i.model_copy() for i in self._investments.get(user_id, {}).values()]

    def _publish(self, user_id: str, collection: SnapshotCollection) -> None:
        if not self._hub.has_listeners(user_id, collection):
            return
        if collection == SnapshotCollection.TRANSACTIONS:
            snapshot = self._transactions_snapshot(user_id)
        elif collection == SnapshotCollection.BUDGETS:
            snapshot = dict(self._budgets.get(user_id, {}))
        elif collection == SnapshotCollection.GOALS:
            snapshot = self._goals_snapshot(user_id)
        elif collection == SnapshotCollection.INVESTMENTS:
            snapshot = self._investments_snapshot(user_id)
        else:
            snapshot = self._preferences.get(user_id, Preferences()).model_copy()
        self._hub.publish(user_id, collection, snapshot)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def add_transaction(self, user_id: str, transaction: Transaction) -> Transaction:
        records = self._transactions.setdefault(user_id, {})
        if transaction.id in records:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        records[transaction.id] = transaction.model_copy(deep=True)
        self._publish(user_id, SnapshotCollection.TRANSACTIONS)
        return transaction

    async def update_transaction(self, user_id: str, transaction: Transaction) -> Transaction:
        records = self._transactions.get(user_id, {})
        if transaction.id not in records:
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        records[transaction.id] = transaction.model_copy(deep=True)
        self._publish(user_id, SnapshotCollection.TRANSACTIONS)
        return transaction

    async def soft_delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        records = self._transactions.get(user_id, {})
        existing = records.get(transaction_id)
        if existing is None:
            return False
        records[transaction_id] = existing.model_copy(update={"state": RecordState.DELETED})
        self._publish(user_id, SnapshotCollection.TRANSACTIONS)
        return True

    async def list_transactions(
        self,
        user_id: str,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        return self._transactions_snapshot(user_id, include_deleted)

    # ------------------------------------------------------------------
    # Budgets, goals, investments, preferences
    # ------------------------------------------------------------------

    async def get_budgets(self, user_id: str) -> Budgets:
        return dict(self._budgets.get(user_id, {}))

    async def save_budgets(self, user_id: str, budgets: Budgets) -> bool:
        self._budgets[user_id] = dict(budgets)
        self._publish(user_id, SnapshotCollection.BUDGETS)
        return True

    async def add_goal(self, user_id: str, goal: Goal) -> Goal:
        self._goals.setdefault(user_id, {})[goal.id] = goal.model_copy()
        self._publish(user_id, SnapshotCollection.GOALS)
        return goal

    async def list_goals(self, user_id: str) -> list[Goal]:
        return self._goals_snapshot(user_id)

    async def add_investment(self, user_id: str, investment: Investment) -> Investment:
        self._investments.setdefault(user_id, {})[investment.id] = investment.model_copy()
        self._publish(user_id, SnapshotCollection.INVESTMENTS)
        return investment

    async def list_investments(self, user_id: str) -> list[Investment]:
        return self._investments_snapshot(user_id)

    async def get_preferences(self, user_id: str) -> Preferences:
        return self._preferences.get(user_id, Preferences()).model_copy()

    async def save_preferences(self, user_id: str, preferences: Preferences) -> bool:
        self._preferences[user_id] = preferences.model_copy()
        self._publish(user_id, SnapshotCollection.PREFERENCES)
        return True

    def on_snapshot_change(
        self,
        user_id: str,
        collection: SnapshotCollection,
        callback: SnapshotCallback,
    ) -> Subscription:
        return self._hub.subscribe(user_id, collection, callback)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if user_id is None or e.user_id == user_id]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
