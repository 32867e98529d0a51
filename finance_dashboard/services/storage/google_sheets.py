"""
Google Sheets Storage Implementation

Each collection is one worksheet shared by all users; the second column
holds the owning user_id and every read filters on it.

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions and no conflict resolution (last write wins)
- Limited query capabilities (we filter in Python)
- No push notifications: refresh() re-reads the sheets and publishes
  snapshots so edits made elsewhere reach subscribers
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_dashboard.config import GoogleSheetsSettings, get_settings
from finance_dashboard.models.audit import AuditEvent, AuditEventType, AuditSeverity
from finance_dashboard.models.finance import (
    Budgets,
    Goal,
    Investment,
    Preferences,
    RecordState,
    RecurrenceRule,
    SnapshotCollection,
    Theme,
    Transaction,
    TransactionType,
)
from finance_dashboard.services.storage.interface import (
    AuditStorageInterface,
    FinanceStorageInterface,
    NotFoundError,
    SnapshotCallback,
    StorageConnectionError,
    StorageError,
    Subscription,
)
from finance_dashboard.services.storage.snapshots import SnapshotHub

logger = structlog.get_logger(__name__)


TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "type",
    "amount",
    "category",
    "date",
    "note",
    "currency",
    "recurrence_interval",
    "recurrence_end_date",
    "state",
    "created_at",
]

BUDGET_COLUMNS = ["category", "user_id", "limit"]

GOAL_COLUMNS = ["id", "user_id", "name", "target", "deadline", "progress", "created_at"]

INVESTMENT_COLUMNS = [
    "id",
    "user_id",
    "symbol",
    "quantity",
    "avg_price",
    "current_price",
    "created_at",
]

PREFERENCE_COLUMNS = ["record", "user_id", "currency", "theme", "alerts_enabled"]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

USER_COLUMN = 1


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def worksheet(self, collection: SnapshotCollection) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        titles = {
            SnapshotCollection.TRANSACTIONS: (self._settings.transactions_sheet_name, TRANSACTION_COLUMNS),
            SnapshotCollection.BUDGETS: (self._settings.budgets_sheet_name, BUDGET_COLUMNS),
            SnapshotCollection.GOALS: (self._settings.goals_sheet_name, GOAL_COLUMNS),
            SnapshotCollection.INVESTMENTS: (self._settings.investments_sheet_name, INVESTMENT_COLUMNS),
            SnapshotCollection.PREFERENCES: (self._settings.preferences_sheet_name, PREFERENCE_COLUMNS),
        }
        title, columns = titles[collection]
        return self._get_or_create(title, columns)

    def audit_worksheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class GoogleSheetsFinanceStorage(FinanceStorageInterface):
    """
    Google Sheets implementation of finance storage.

    Transactions, goals and investments are one row per entity. Budgets are
    one row per (user, category). Preferences are one row per user.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._hub = SnapshotHub()

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------

    def _transaction_to_row(self, user_id: str, tx: Transaction) -> list:
        return [
            str(tx.id),
            user_id,
            tx.type.value,
            str(tx.amount),
            tx.category,
            tx.date.isoformat(),
            tx.note or "",
            tx.currency,
            tx.recurrence.interval if tx.recurrence else "",
            tx.recurrence.end_date.isoformat() if tx.recurrence and tx.recurrence.end_date else "",
            tx.state.value,
            tx.created_at.isoformat(),
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        recurrence = None
        if _safe_get(row, 8):
            end = _safe_get(row, 9)
            recurrence = RecurrenceRule(
                interval=_safe_get(row, 8),
                end_date=date.fromisoformat(end) if end else None,
            )
        return Transaction(
            id=UUID(_safe_get(row, 0)),
            type=TransactionType(_safe_get(row, 2)),
            amount=Decimal(_safe_get(row, 3)),
            category=_safe_get(row, 4),
            date=date.fromisoformat(_safe_get(row, 5)),
            note=_safe_get(row, 6) or None,
            currency=_safe_get(row, 7, "INR"),
            recurrence=recurrence,
            state=RecordState(_safe_get(row, 10, RecordState.ACTIVE.value)),
            created_at=datetime.fromisoformat(_safe_get(row, 11)) if _safe_get(row, 11) else datetime.utcnow(),
        )

    def _goal_to_row(self, user_id: str, goal: Goal) -> list:
        return [
            str(goal.id),
            user_id,
            goal.name,
            str(goal.target),
            goal.deadline.isoformat(),
            str(goal.progress),
            goal.created_at.isoformat(),
        ]

    def _row_to_goal(self, row: list) -> Goal:
        return Goal(
            id=UUID(_safe_get(row, 0)),
            name=_safe_get(row, 2),
            target=Decimal(_safe_get(row, 3)),
            deadline=date.fromisoformat(_safe_get(row, 4)),
            progress=Decimal(_safe_get(row, 5, "0")),
            created_at=datetime.fromisoformat(_safe_get(row, 6)) if _safe_get(row, 6) else datetime.utcnow(),
        )

    def _investment_to_row(self, user_id: str, inv: Investment) -> list:
        return [
            str(inv.id),
            user_id,
            inv.symbol,
            str(inv.quantity),
            str(inv.avg_price),
            str(inv.current_price) if inv.current_price is not None else "",
            inv.created_at.isoformat(),
        ]

    def _row_to_investment(self, row: list) -> Investment:
        current = _safe_get(row, 5)
        return Investment(
            id=UUID(_safe_get(row, 0)),
            symbol=_safe_get(row, 2),
            quantity=Decimal(_safe_get(row, 3)),
            avg_price=Decimal(_safe_get(row, 4)),
            current_price=Decimal(current) if current else None,
            created_at=datetime.fromisoformat(_safe_get(row, 6)) if _safe_get(row, 6) else datetime.utcnow(),
        )

    # ------------------------------------------------------------------
    # Sheet access
    # ------------------------------------------------------------------

    def _user_rows(self, collection: SnapshotCollection, user_id: str) -> list[tuple[int, list]]:
        """(sheet row number, row) pairs owned by user_id, header skipped."""
        sheet = self._client.worksheet(collection)
        all_rows = sheet.get_all_values()
        return [
            (idx, row)
            for idx, row in enumerate(all_rows[1:], start=2)  # Row 1 is header
            if row and _safe_get(row, USER_COLUMN) == user_id
        ]

    def _parse_rows(self, rows: list[tuple[int, list]], parse) -> list:
        parsed = []
        for idx, row in rows:
            try:
                parsed.append(parse(row))
            except Exception as e:
                logger.warning("malformed_row_skipped", row_number=idx, error=str(e))
        return parsed

    def _read_transactions(self, user_id: str, include_deleted: bool = False) -> list[Transaction]:
        txs = self._parse_rows(
            self._user_rows(SnapshotCollection.TRANSACTIONS, user_id),
            self._row_to_transaction,
        )
        if not include_deleted:
            txs = [tx for tx in txs if tx.state == RecordState.ACTIVE]
        txs.sort(key=lambda t: t.date, reverse=True)
        return txs

    def _read_budgets(self, user_id: str) -> Budgets:
        budgets: Budgets = {}
        for idx, row in self._user_rows(SnapshotCollection.BUDGETS, user_id):
            try:
                budgets[_safe_get(row, 0)] = Decimal(_safe_get(row, 2, "0"))
            except ArithmeticError as e:
                logger.warning("malformed_row_skipped", row_number=idx, error=str(e))
        return budgets

    def _read_goals(self, user_id: str) -> list[Goal]:
        goals = self._parse_rows(
            self._user_rows(SnapshotCollection.GOALS, user_id),
            self._row_to_goal,
        )
        goals.sort(key=lambda g: g.deadline)
        return goals

    def _read_investments(self, user_id: str) -> list[Investment]:
        return self._parse_rows(
            self._user_rows(SnapshotCollection.INVESTMENTS, user_id),
            self._row_to_investment,
        )

    def _read_preferences(self, user_id: str) -> Preferences:
        rows = self._user_rows(SnapshotCollection.PREFERENCES, user_id)
        if not rows:
            return Preferences()
        _, row = rows[0]
        return Preferences(
            currency=_safe_get(row, 2, "INR"),
            theme=Theme(_safe_get(row, 3, Theme.LIGHT.value)),
            alerts_enabled=_safe_get(row, 4, "True").lower() == "true",
        )

    def _snapshot(self, user_id: str, collection: SnapshotCollection) -> object:
        if collection == SnapshotCollection.TRANSACTIONS:
            return self._read_transactions(user_id)
        if collection == SnapshotCollection.BUDGETS:
            return self._read_budgets(user_id)
        if collection == SnapshotCollection.GOALS:
            return self._read_goals(user_id)
        if collection == SnapshotCollection.INVESTMENTS:
            return self._read_investments(user_id)
        return self._read_preferences(user_id)

    def _publish(self, user_id: str, collection: SnapshotCollection) -> None:
        """Read the collection back and push it to listeners. Never raises."""
        if not self._hub.has_listeners(user_id, collection):
            return
        try:
            snapshot = self._snapshot(user_id, collection)
        except Exception as e:
            logger.warning(
                "snapshot_read_failed",
                user_id=user_id,
                collection=collection.value,
                error=str(e),
            )
            return
        self._hub.publish(user_id, collection, snapshot)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append(self, collection: SnapshotCollection, row: list) -> None:
        sheet = self._client.worksheet(collection)
        sheet.append_row(row, value_input_option="RAW")

    def _replace_row(self, collection: SnapshotCollection, row_number: int, values: list) -> None:
        sheet = self._client.worksheet(collection)
        for col_idx, value in enumerate(values, start=1):
            sheet.update_cell(row_number, col_idx, value)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def add_transaction(self, user_id: str, transaction: Transaction) -> Transaction:
        try:
            self._append(SnapshotCollection.TRANSACTIONS, self._transaction_to_row(user_id, transaction))
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")
        self._publish(user_id, SnapshotCollection.TRANSACTIONS)
        return transaction

    async def update_transaction(self, user_id: str, transaction: Transaction) -> Transaction:
        try:
            for idx, row in self._user_rows(SnapshotCollection.TRANSACTIONS, user_id):
                if row[0] == str(transaction.id):
                    self._replace_row(
                        SnapshotCollection.TRANSACTIONS,
                        idx,
                        self._transaction_to_row(user_id, transaction),
                    )
                    break
            else:
                raise NotFoundError(f"Transaction not found: {transaction.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")
        self._publish(user_id, SnapshotCollection.TRANSACTIONS)
        return transaction

    async def soft_delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        state_column = TRANSACTION_COLUMNS.index("state") + 1
        try:
            for idx, row in self._user_rows(SnapshotCollection.TRANSACTIONS, user_id):
                if row[0] == str(transaction_id):
                    sheet = self._client.worksheet(SnapshotCollection.TRANSACTIONS)
                    sheet.update_cell(idx, state_column, RecordState.DELETED.value)
                    break
            else:
                return False
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")
        self._publish(user_id, SnapshotCollection.TRANSACTIONS)
        return True

    async def list_transactions(
        self,
        user_id: str,
        include_deleted: bool = False,
    ) -> list[Transaction]:
        try:
            return self._read_transactions(user_id, include_deleted)
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

    # ------------------------------------------------------------------
    # Budgets, goals, investments, preferences
    # ------------------------------------------------------------------

    async def get_budgets(self, user_id: str) -> Budgets:
        try:
            return self._read_budgets(user_id)
        except Exception as e:
            raise StorageError(f"Failed to get budgets: {e}")

    async def save_budgets(self, user_id: str, budgets: Budgets) -> bool:
        try:
            sheet = self._client.worksheet(SnapshotCollection.BUDGETS)
            existing = self._user_rows(SnapshotCollection.BUDGETS, user_id)
            # Delete bottom-up so earlier row numbers stay valid
            for idx, _ in sorted(existing, reverse=True):
                sheet.delete_rows(idx)
            for category, limit in budgets.items():
                sheet.append_row([category, user_id, str(limit)], value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to save budgets: {e}")
        self._publish(user_id, SnapshotCollection.BUDGETS)
        return True

    async def add_goal(self, user_id: str, goal: Goal) -> Goal:
        try:
            self._append(SnapshotCollection.GOALS, self._goal_to_row(user_id, goal))
        except Exception as e:
            raise StorageError(f"Failed to save goal: {e}")
        self._publish(user_id, SnapshotCollection.GOALS)
        return goal

    async def list_goals(self, user_id: str) -> list[Goal]:
        try:
            return self._read_goals(user_id)
        except Exception as e:
            raise StorageError(f"Failed to list goals: {e}")

    async def add_investment(self, user_id: str, investment: Investment) -> Investment:
        try:
            self._append(SnapshotCollection.INVESTMENTS, self._investment_to_row(user_id, investment))
        except Exception as e:
            raise StorageError(f"Failed to save investment: {e}")
        self._publish(user_id, SnapshotCollection.INVESTMENTS)
        return investment

    async def list_investments(self, user_id: str) -> list[Investment]:
        try:
            return self._read_investments(user_id)
        except Exception as e:
            raise StorageError(f"Failed to list investments: {e}")

    async def get_preferences(self, user_id: str) -> Preferences:
        try:
            return self._read_preferences(user_id)
        except Exception as e:
            raise StorageError(f"Failed to get preferences: {e}")

    async def save_preferences(self, user_id: str, preferences: Preferences) -> bool:
        values = [
            "preferences",
            user_id,
            preferences.currency,
            preferences.theme.value,
            str(preferences.alerts_enabled),
        ]
        try:
            rows = self._user_rows(SnapshotCollection.PREFERENCES, user_id)
            if rows:
                self._replace_row(SnapshotCollection.PREFERENCES, rows[0][0], values)
            else:
                sheet = self._client.worksheet(SnapshotCollection.PREFERENCES)
                sheet.append_row(values, value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to save preferences: {e}")
        self._publish(user_id, SnapshotCollection.PREFERENCES)
        return True

    # ------------------------------------------------------------------
    # Real-time updates
    # ------------------------------------------------------------------

    def on_snapshot_change(
        self,
        user_id: str,
        collection: SnapshotCollection,
        callback: SnapshotCallback,
    ) -> Subscription:
        return self._hub.subscribe(user_id, collection, callback)

    async def refresh(self, user_id: str) -> None:
        """Re-read every collection and publish it to subscribers."""
        for collection in SnapshotCollection:
            self._publish(user_id, collection)


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            user_id=_safe_get(row, 4) or None,
            entity_type=_safe_get(row, 5) or None,
            entity_id=UUID(_safe_get(row, 6)) if _safe_get(row, 6) else None,
            correlation_id=UUID(_safe_get(row, 7)) if _safe_get(row, 7) else None,
            description=_safe_get(row, 8),
            details=json.loads(_safe_get(row, 9)) if _safe_get(row, 9) else {},
            error_message=_safe_get(row, 10) or None,
            is_user_action=_safe_get(row, 11).lower() == "true",
        )

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.audit_worksheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception as e:
                logger.warning("malformed_audit_row_skipped", error=str(e))
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.audit_worksheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = [
                e for e in self._read_events()
                if user_id is None or e.user_id == user_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
