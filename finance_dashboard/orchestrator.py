"""
Main Orchestrator for the Finance Dashboard

This module ties together storage, the computation engine and the
services, and defines the end-to-end flows for:
1. Writes (transactions, recurring occurrences, budgets, goals,
   investments, preferences, bank imports)
2. Reads (insights, budget alerts, summary, CSV export, report)
3. Live sync (snapshot subscriptions keep the dashboard current)

DESIGN DECISION: The orchestrator owns the clock. Engine functions are
pure and receive "today" as a parameter, so every windowed computation
is reproducible with a fixed clock.

Every write is audited. Storage errors are audited and then re-raised;
the caller decides how to show them.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from finance_dashboard.audit import AuditLogger, create_correlation_id
from finance_dashboard.config import AppSettings, get_settings
from finance_dashboard.engine import (
    compute_insights,
    due_alerts,
    next_occurrence,
    summarize,
)
from finance_dashboard.models.audit import AuditEventBuilder
from finance_dashboard.models.finance import (
    BudgetAlert,
    Budgets,
    DashboardSummary,
    ExchangeRates,
    Goal,
    Insight,
    Investment,
    Preferences,
    SnapshotCollection,
    Transaction,
    ValidationResult,
)
from finance_dashboard.services.bank_import import parse_bank_payload
from finance_dashboard.services.export import build_report, export_transactions_csv
from finance_dashboard.services.notifications import (
    BudgetAlertService,
    LoggingNotifier,
    NotifierInterface,
)
from finance_dashboard.services.rates import ExchangeRateService
from finance_dashboard.services.storage import (
    FinanceStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsFinanceStorage,
    InMemoryFinanceStorage,
    StorageError,
    Subscription,
)
from finance_dashboard.validation import TransactionValidator

logger = structlog.get_logger(__name__)


class FinanceDashboard:
    """
    One signed-in user's dashboard.

    Reads use the latest snapshots while sync is running and fall back to
    reading storage directly otherwise.
    """

    def __init__(
        self,
        user_id: str,
        storage: FinanceStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        notifier: Optional[NotifierInterface] = None,
        rate_service: Optional[ExchangeRateService] = None,
        clock: Optional[Callable[[], date]] = None,
        settings: Optional[AppSettings] = None,
        validator: Optional[TransactionValidator] = None,
    ):
        self._user_id = user_id
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._alert_service = BudgetAlertService(notifier or LoggingNotifier())
        self._rate_service = rate_service
        self._clock = clock or date.today
        self._settings = settings or get_settings().app
        self._validator = validator or TransactionValidator(self._settings.max_transaction_amount)

        self._subscriptions: list[Subscription] = []
        self._transactions: list[Transaction] = []
        self._budgets: Budgets = {}
        self._goals: list[Goal] = []
        self._investments: list[Investment] = []
        self._preferences = Preferences(currency=self._settings.default_currency)

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def is_syncing(self) -> bool:
        return bool(self._subscriptions)

    @property
    def rates(self) -> Optional[ExchangeRates]:
        return self._rate_service.rates if self._rate_service else None

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def _apply_snapshot(self, collection: SnapshotCollection) -> Callable[[object], None]:
        attribute = {
            SnapshotCollection.TRANSACTIONS: "_transactions",
            SnapshotCollection.BUDGETS: "_budgets",
            SnapshotCollection.GOALS: "_goals",
            SnapshotCollection.INVESTMENTS: "_investments",
            SnapshotCollection.PREFERENCES: "_preferences",
        }[collection]

        def apply(snapshot: object) -> None:
            setattr(self, attribute, snapshot)

        return apply

    async def start_sync(self) -> None:
        """Load every collection, then follow snapshot changes."""
        if self.is_syncing:
            return
        self._transactions = await self._storage.list_transactions(self._user_id)
        self._budgets = await self._storage.get_budgets(self._user_id)
        self._goals = await self._storage.list_goals(self._user_id)
        self._investments = await self._storage.list_investments(self._user_id)
        self._preferences = await self._storage.get_preferences(self._user_id)

        for collection in SnapshotCollection:
            self._subscriptions.append(self._storage.on_snapshot_change(
                self._user_id,
                collection,
                self._apply_snapshot(collection),
            ))
        logger.info("sync_started", user_id=self._user_id)

    def stop_sync(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        logger.info("sync_stopped", user_id=self._user_id)

    async def _current_transactions(self) -> list[Transaction]:
        if self.is_syncing:
            return list(self._transactions)
        return await self._storage.list_transactions(self._user_id)

    async def _current_budgets(self) -> Budgets:
        if self.is_syncing:
            return dict(self._budgets)
        return await self._storage.get_budgets(self._user_id)

    async def _current_goals(self) -> list[Goal]:
        if self.is_syncing:
            return list(self._goals)
        return await self._storage.list_goals(self._user_id)

    async def _current_investments(self) -> list[Investment]:
        if self.is_syncing:
            return list(self._investments)
        return await self._storage.list_investments(self._user_id)

    async def _current_preferences(self) -> Preferences:
        if self.is_syncing:
            return self._preferences
        return await self._storage.get_preferences(self._user_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_transaction(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
        source: str = "user",
    ) -> tuple[Transaction, Optional[Transaction]]:
        """
        Store a transaction and, when it recurs, its next occurrence.

        Only one occurrence is materialized per call. The occurrence
        carries the rule forward but is not itself expanded.

        Returns:
            (stored transaction, stored occurrence or None)

        Raises:
            StorageError: If either write fails
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            await self._storage.add_transaction(self._user_id, transaction)
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                user_id=self._user_id,
                entity_type="transaction",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_transaction_added(
            user_id=self._user_id,
            transaction=transaction,
            correlation_id=correlation_id,
            source=source,
        )

        if transaction.recurrence is None:
            return transaction, None

        occurrence = next_occurrence(transaction)
        if occurrence is None:
            await self._audit_logger.log_recurrence_ended(
                user_id=self._user_id,
                template=transaction,
                correlation_id=correlation_id,
            )
            return transaction, None

        try:
            await self._storage.add_transaction(self._user_id, occurrence)
        except StorageError as e:
            await self._audit_logger.log_save_failed(
                user_id=self._user_id,
                entity_type="transaction",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_occurrence_scheduled(
            user_id=self._user_id,
            template=transaction,
            occurrence=occurrence,
            correlation_id=correlation_id,
        )
        return transaction, occurrence

    async def submit_transaction_form(
        self,
        form: dict[str, Any],
    ) -> tuple[Optional[Transaction], ValidationResult]:
        """
        Validate raw form input and store it when valid.

        Returns:
            (stored transaction or None, validation result)
        """
        result = self._validator.validate(form, today=self._clock())
        if not result.is_valid:
            await self._audit_logger.log_transaction_rejected(
                user_id=self._user_id,
                issues=[issue.model_dump() for issue in result.issues],
            )
            return None, result

        preferences = await self._current_preferences()
        transaction = self._validator.to_transaction(form, default_currency=preferences.currency)
        stored, _ = await self.add_transaction(transaction)
        return stored, result

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        """
        Replace a stored transaction.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        await self._storage.update_transaction(self._user_id, transaction)
        await self._audit_logger.log_transaction_updated(
            user_id=self._user_id,
            transaction_id=transaction.id,
        )
        return transaction

    async def remove_transaction(self, transaction_id: UUID) -> bool:
        """Soft-delete a transaction. Returns False if it did not exist."""
        removed = await self._storage.soft_delete_transaction(self._user_id, transaction_id)
        if removed:
            await self._audit_logger.log_transaction_deleted(
                user_id=self._user_id,
                transaction_id=transaction_id,
            )
        return removed

    async def create_goal(self, goal: Goal) -> Goal:
        await self._storage.add_goal(self._user_id, goal)
        await self._audit_logger.log(AuditEventBuilder.goal_created(
            user_id=self._user_id,
            goal_id=goal.id,
            name=goal.name,
            target=str(goal.target),
        ))
        return goal

    async def add_investment(self, investment: Investment) -> Investment:
        await self._storage.add_investment(self._user_id, investment)
        await self._audit_logger.log(AuditEventBuilder.investment_added(
            user_id=self._user_id,
            investment_id=investment.id,
            symbol=investment.symbol,
            quantity=str(investment.quantity),
        ))
        return investment

    async def save_budgets(self, budgets: Budgets) -> Budgets:
        """
        Replace the whole budget mapping.

        Raises:
            ValueError: If any limit is negative (nothing is saved)
        """
        budgets = {category: Decimal(str(limit)) for category, limit in budgets.items()}
        negative = [category for category, limit in budgets.items() if limit < 0]
        if negative:
            raise ValueError(f"Budget limits cannot be negative: {', '.join(negative)}")

        await self._storage.save_budgets(self._user_id, budgets)
        await self._audit_logger.log(AuditEventBuilder.budgets_saved(
            user_id=self._user_id,
            categories=list(budgets),
        ))
        return budgets

    async def save_preferences(self, preferences: Preferences) -> Preferences:
        await self._storage.save_preferences(self._user_id, preferences)
        await self._audit_logger.log(AuditEventBuilder.preferences_updated(
            user_id=self._user_id,
            preferences=preferences.model_dump(mode="json"),
        ))
        return preferences

    async def import_bank_payload(self, payload: Any) -> list[Transaction]:
        """
        Store every transaction in a bank webhook body.

        Raises:
            BankImportError: If an entry is malformed (nothing is stored)
        """
        correlation_id = create_correlation_id()
        preferences = await self._current_preferences()
        imported = parse_bank_payload(payload, self._clock(), currency=preferences.currency)

        for transaction in imported:
            await self.add_transaction(
                transaction,
                correlation_id=correlation_id,
                source="bank_import",
            )

        await self._audit_logger.log(AuditEventBuilder.bank_import_completed(
            user_id=self._user_id,
            imported=len(imported),
            correlation_id=correlation_id,
        ))
        return imported

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def insights(self) -> list[Insight]:
        return compute_insights(
            await self._current_transactions(),
            await self._current_preferences(),
            self._clock(),
            window_days=self._settings.insight_window_days,
            overspend_ratio=self._settings.overspend_ratio,
        )

    async def budget_alerts(self) -> list[BudgetAlert]:
        """Alerts due right now, without notifying."""
        return due_alerts(
            await self._current_transactions(),
            await self._current_budgets(),
            self._clock(),
            threshold=self._settings.budget_alert_threshold,
        )

    async def check_budget_alerts(self) -> list[BudgetAlert]:
        """
        Evaluate alerts and notify once per alert.

        Nothing is sent when the user turned alerts off; the alerts are
        still returned.
        """
        alerts = await self.budget_alerts()
        preferences = await self._current_preferences()
        if not preferences.alerts_enabled:
            return alerts

        for alert, delivered in self._alert_service.send_all(alerts):
            await self._audit_logger.log_budget_alert(
                user_id=self._user_id,
                category=alert.category,
                percent_spent=alert.percent_spent,
                delivered=delivered,
            )
        return alerts

    async def summary(self) -> DashboardSummary:
        return summarize(
            await self._current_transactions(),
            await self._current_goals(),
            await self._current_investments(),
        )

    async def export_csv(self) -> str:
        transactions = await self._current_transactions()
        preferences = await self._current_preferences()
        csv_text = export_transactions_csv(transactions, preferences.currency)
        await self._audit_logger.log(AuditEventBuilder.export_generated(
            user_id=self._user_id,
            export_format="csv",
            row_count=len(transactions),
        ))
        return csv_text

    async def report(self, generated_at: Optional[datetime] = None) -> list[str]:
        """Lines of the printable finance report."""
        transactions = await self._current_transactions()
        lines = build_report(
            transactions,
            await self._current_preferences(),
            generated_at or datetime.now(),
            recent_count=self._settings.report_recent_transactions,
        )
        await self._audit_logger.log(AuditEventBuilder.export_generated(
            user_id=self._user_id,
            export_format="report",
            row_count=min(len(transactions), self._settings.report_recent_transactions),
        ))
        return lines

    async def refresh_rates(self, force: bool = False) -> Optional[ExchangeRates]:
        """
        Refresh exchange rates when the table is stale.

        A failed fetch is audited and the previous table is kept.
        """
        if self._rate_service is None:
            return None

        previous = self._rate_service.rates
        rates = self._rate_service.refresh(force=force)

        if self._rate_service.last_error is not None:
            await self._audit_logger.log(AuditEventBuilder.rates_refresh_failed(
                base=self._rate_service.base_currency,
                error_message=self._rate_service.last_error,
            ))
        elif rates is not None and rates is not previous:
            await self._audit_logger.log(AuditEventBuilder.rates_refreshed(
                base=rates.base,
                currency_count=len(rates.rates),
            ))
        return rates


def create_app_components(
    user_id: str,
    use_storage: bool = True,
) -> tuple[FinanceDashboard, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        user_id: The signed-in user's id
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage.

    Returns:
        (dashboard, sheets_client)
    """
    sheets_client = None
    storage: FinanceStorageInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            storage = GoogleSheetsFinanceStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            storage = InMemoryFinanceStorage()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        storage = InMemoryFinanceStorage()
        audit_logger = AuditLogger()  # Local-only logging

    dashboard = FinanceDashboard(
        user_id=user_id,
        storage=storage,
        audit_logger=audit_logger,
        rate_service=ExchangeRateService(),
    )

    return dashboard, sheets_client
