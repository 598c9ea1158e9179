"""Reserve fund ledger and the transfers that feed it.

Every transfer runs inside one serializable store transaction: the mirrored
operating-ledger entry, the reserve fund transaction and the balance change
either all commit or none do. Balances change through a server-side
increment so concurrent transfers cannot overwrite each other.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from treasury.core.clock import TodayProvider, first_day_of_month, format_br_date, local_today
from treasury.core.config import Settings, get_settings
from treasury.core.money import format_brl, parse_amount, to_amount
from treasury.core.tenancy import TenantContext
from treasury.db.transactions import serializable_transaction
from treasury.models import (
    AuditLog,
    Expense,
    ExpenseCategory,
    PaymentMethod,
    ReserveFund,
    ReserveFundTransaction,
    ReserveFundTransactionType,
    Revenue,
    RevenueCategory,
    Tenant,
    TenantStatus,
)
from treasury.obs import RESERVE_FUND_OPERATION_COUNTER
from treasury.services.balance import available_balance
from treasury.services.categories import get_reserve_fund_category
from treasury.services.errors import (
    AlreadyTransferredError,
    InsufficientFundsError,
    NotFoundError,
    NothingToTransferError,
    PersistenceError,
    TreasuryError,
    ValidationError,
)
from treasury.services.view_cache import (
    DASHBOARD_VIEW,
    EXPENSES_VIEW,
    REPORTS_VIEW,
    RESERVE_FUND_VIEW,
    REVENUES_VIEW,
    ViewCache,
    view_cache,
)

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

DEPOSIT_ENTRY_DESCRIPTION = "Depósito no fundo de reserva"
WITHDRAWAL_ENTRY_DESCRIPTION = "Retirada do fundo de reserva"
DEFAULT_DEPOSIT_DESCRIPTION = "Depósito manual"
DEFAULT_WITHDRAWAL_DESCRIPTION = "Retirada manual"
AUTO_TRANSFER_DESCRIPTION = "Transferência automática de {date}"
CRON_ACTOR = "system:auto-transfer"
MAX_HISTORY_LIMIT = 500


@dataclass(slots=True, frozen=True)
class TransferResult:
    """Outcome of a successful transfer."""

    operation: str
    amount: Decimal
    balance: Decimal
    transaction: ReserveFundTransaction
    ledger_entry: Revenue | Expense | None = None


@dataclass(slots=True, frozen=True)
class ReserveFundSummary:
    balance: Decimal
    last_transfer_date: date | None
    available_balance: Decimal


@dataclass(slots=True, frozen=True)
class ReconciliationReport:
    """Fund balance compared with the sum of its transaction history."""

    balance: Decimal
    deposits: Decimal
    auto_transfers: Decimal
    withdrawals: Decimal

    @property
    def expected_balance(self) -> Decimal:
        return self.deposits + self.auto_transfers - self.withdrawals

    @property
    def consistent(self) -> bool:
        return self.balance == self.expected_balance


@dataclass(slots=True)
class AutoTransferRunResult:
    tenant_id: str
    success: bool
    amount: Decimal | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"tenant_id": self.tenant_id, "success": self.success}
        if self.amount is not None:
            payload["amount"] = f"{self.amount:.2f}"
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(slots=True)
class AutoTransferRun:
    results: list[AutoTransferRunResult] = field(default_factory=list)

    @property
    def transferred_total(self) -> Decimal:
        return sum((item.amount or Decimal("0.00") for item in self.results if item.success), Decimal("0.00"))


class ReserveFundService:
    """Owns a tenant's reserve fund balance and its transaction history."""

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        cache: ViewCache | None = None,
        today_fn: TodayProvider | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._cache = cache or view_cache
        self._today_fn = today_fn or (lambda: local_today(self._settings.timezone))

    def get_or_create(self, context: TenantContext) -> ReserveFund:
        """Return the tenant's fund, creating an empty one on first access."""

        try:
            fund = self._get_or_create_fund(context.tenant_id)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistenceError(str(exc)) from exc
        return fund

    def list_transactions(
        self, context: TenantContext, *, limit: int | None = None
    ) -> list[ReserveFundTransaction]:
        """Return the most recent fund transactions, newest first."""

        size = self._settings.reserve_fund_history_limit if limit is None else limit
        if size < 1 or size > MAX_HISTORY_LIMIT:
            raise ValidationError(f"O limite deve estar entre 1 e {MAX_HISTORY_LIMIT}")

        try:
            fund = self._find_fund(context.tenant_id)
            if fund is None:
                raise NotFoundError("Fundo de reserva não encontrado")
            statement = (
                select(ReserveFundTransaction)
                .where(ReserveFundTransaction.reserve_fund_id == fund.id)
                .order_by(ReserveFundTransaction.created_at.desc())
                .limit(size)
            )
            return list(self._session.scalars(statement).all())
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def summary(self, context: TenantContext) -> ReserveFundSummary:
        """Fund balance alongside the operating balance available for deposits."""

        def compute() -> ReserveFundSummary:
            fund = self.get_or_create(context)
            return ReserveFundSummary(
                balance=to_amount(fund.balance),
                last_transfer_date=fund.last_transfer_date,
                available_balance=available_balance(self._session, context.tenant_id),
            )

        return self._cache.get_or_compute(context.tenant_id, RESERVE_FUND_VIEW, "summary", compute)

    def reconcile(self, context: TenantContext) -> ReconciliationReport:
        """Compare the stored balance with the transaction history."""

        try:
            fund = self._find_fund(context.tenant_id)
            if fund is None:
                raise NotFoundError("Fundo de reserva não encontrado")
            statement = (
                select(
                    ReserveFundTransaction.transaction_type,
                    func.coalesce(func.sum(ReserveFundTransaction.amount), 0),
                )
                .where(ReserveFundTransaction.reserve_fund_id == fund.id)
                .group_by(ReserveFundTransaction.transaction_type)
            )
            totals = {kind: to_amount(total) for kind, total in self._session.execute(statement)}
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

        zero = Decimal("0.00")
        return ReconciliationReport(
            balance=to_amount(fund.balance),
            deposits=totals.get(ReserveFundTransactionType.DEPOSIT, zero),
            auto_transfers=totals.get(ReserveFundTransactionType.AUTO_TRANSFER, zero),
            withdrawals=totals.get(ReserveFundTransactionType.WITHDRAWAL, zero),
        )

    def deposit(
        self, context: TenantContext, amount: Decimal, description: str | None = None
    ) -> TransferResult:
        """Move ``amount`` from the operating balance into the reserve fund."""

        return self._run("deposit", context, lambda: self._deposit(context, amount, description))

    def withdraw(
        self, context: TenantContext, amount: Decimal, description: str | None = None
    ) -> TransferResult:
        """Move ``amount`` from the reserve fund back into the operating balance."""

        return self._run("withdraw", context, lambda: self._withdraw(context, amount, description))

    def auto_transfer(self, context: TenantContext) -> TransferResult:
        """Sweep the whole operating balance into the fund, at most once a month."""

        return self._run("auto_transfer", context, lambda: self._auto_transfer(context))

    def _deposit(
        self, context: TenantContext, amount: Decimal, description: str | None
    ) -> TransferResult:
        normalized = self._validated_amount(amount)
        today = self._today_fn()

        with serializable_transaction(self._session):
            available = available_balance(self._session, context.tenant_id)
            if normalized > available:
                raise InsufficientFundsError(
                    f"Saldo disponível insuficiente para o depósito. Saldo atual: {format_brl(available)}"
                )

            fund = self._get_or_create_fund(context.tenant_id)
            category = get_reserve_fund_category(
                self._session, ExpenseCategory, tenant_id=context.tenant_id
            )
            expense = Expense(
                tenant_id=context.tenant_id,
                category_id=category.id,
                amount=normalized,
                description=_entry_description(DEPOSIT_ENTRY_DESCRIPTION, description),
                payment_method=PaymentMethod.CASH,
                transaction_date=today,
                created_by=context.actor,
                is_reserve_fund=True,
            )
            transaction = ReserveFundTransaction(
                tenant_id=context.tenant_id,
                reserve_fund_id=fund.id,
                transaction_type=ReserveFundTransactionType.DEPOSIT,
                amount=normalized,
                description=description or DEFAULT_DEPOSIT_DESCRIPTION,
                created_by=context.actor,
            )
            self._session.add_all([expense, transaction])
            self._session.flush()
            self._apply_balance_delta(fund, normalized)
            self._record_audit(context, "reserve_fund.deposit", transaction, entry_id=expense.id)

        self._cache.invalidate(
            context.tenant_id, RESERVE_FUND_VIEW, DASHBOARD_VIEW, EXPENSES_VIEW, REPORTS_VIEW
        )
        return self._result("deposit", fund, transaction, expense)

    def _withdraw(
        self, context: TenantContext, amount: Decimal, description: str | None
    ) -> TransferResult:
        normalized = self._validated_amount(amount)
        today = self._today_fn()

        with serializable_transaction(self._session):
            fund = self._get_or_create_fund(context.tenant_id)
            current = to_amount(fund.balance)
            if current < normalized:
                raise InsufficientFundsError(
                    f"Saldo insuficiente no fundo de reserva. Saldo atual: {format_brl(current)}"
                )

            category = get_reserve_fund_category(
                self._session, RevenueCategory, tenant_id=context.tenant_id
            )
            revenue = Revenue(
                tenant_id=context.tenant_id,
                category_id=category.id,
                amount=normalized,
                description=_entry_description(WITHDRAWAL_ENTRY_DESCRIPTION, description),
                payment_method=PaymentMethod.CASH,
                transaction_date=today,
                created_by=context.actor,
                is_reserve_fund=True,
            )
            transaction = ReserveFundTransaction(
                tenant_id=context.tenant_id,
                reserve_fund_id=fund.id,
                transaction_type=ReserveFundTransactionType.WITHDRAWAL,
                amount=normalized,
                description=description or DEFAULT_WITHDRAWAL_DESCRIPTION,
                created_by=context.actor,
            )
            self._session.add_all([revenue, transaction])
            self._session.flush()
            self._apply_balance_delta(fund, -normalized, required_balance=normalized)
            self._record_audit(context, "reserve_fund.withdraw", transaction, entry_id=revenue.id)

        self._cache.invalidate(
            context.tenant_id, RESERVE_FUND_VIEW, DASHBOARD_VIEW, REVENUES_VIEW, REPORTS_VIEW
        )
        return self._result("withdraw", fund, transaction, revenue)

    def _auto_transfer(self, context: TenantContext) -> TransferResult:
        today = self._today_fn()

        with serializable_transaction(self._session):
            fund = self._get_or_create_fund(context.tenant_id)
            if fund.last_transfer_date is not None and fund.last_transfer_date >= first_day_of_month(today):
                raise AlreadyTransferredError("Transferência automática já realizada este mês")

            cash_balance = available_balance(self._session, context.tenant_id)
            if cash_balance <= 0:
                raise NothingToTransferError("Não há saldo em caixa para transferir")

            transaction = ReserveFundTransaction(
                tenant_id=context.tenant_id,
                reserve_fund_id=fund.id,
                transaction_type=ReserveFundTransactionType.AUTO_TRANSFER,
                amount=cash_balance,
                description=AUTO_TRANSFER_DESCRIPTION.format(date=format_br_date(today)),
                created_by=context.actor,
            )
            self._session.add(transaction)
            self._session.flush()
            self._apply_balance_delta(fund, cash_balance, last_transfer_date=today)
            self._record_audit(context, "reserve_fund.auto_transfer", transaction, entry_id=None)

        self._cache.invalidate(context.tenant_id, RESERVE_FUND_VIEW, DASHBOARD_VIEW)
        return self._result("auto_transfer", fund, transaction, None)

    def _run(self, operation: str, context: TenantContext, action: Callable[[], T]) -> T:
        try:
            result = action()
        except TreasuryError as exc:
            RESERVE_FUND_OPERATION_COUNTER.labels(operation=operation, outcome=type(exc).__name__).inc()
            LOGGER.info(
                "reserve fund %s refused: %s",
                operation,
                exc,
                extra={"tenant_id": context.tenant_id, "error": type(exc).__name__},
            )
            raise
        except SQLAlchemyError as exc:
            self._session.rollback()
            RESERVE_FUND_OPERATION_COUNTER.labels(operation=operation, outcome="PersistenceError").inc()
            LOGGER.error(
                "reserve fund %s failed",
                operation,
                extra={"tenant_id": context.tenant_id, "error": str(exc)},
            )
            raise PersistenceError(str(exc)) from exc

        RESERVE_FUND_OPERATION_COUNTER.labels(operation=operation, outcome="success").inc()
        LOGGER.info(
            "reserve fund %s completed",
            operation,
            extra={"tenant_id": context.tenant_id, "actor": context.actor},
        )
        return result

    def _find_fund(self, tenant_id: str) -> ReserveFund | None:
        statement = (
            select(ReserveFund)
            .where(ReserveFund.tenant_id == tenant_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._session.scalars(statement).first()

    def _get_or_create_fund(self, tenant_id: str) -> ReserveFund:
        fund = self._find_fund(tenant_id)
        if fund is not None:
            return fund

        fund = ReserveFund(tenant_id=tenant_id, balance=Decimal("0.00"), last_transfer_date=None)
        try:
            with self._session.begin_nested():
                self._session.add(fund)
        except IntegrityError:
            LOGGER.info("reserve fund created concurrently", extra={"tenant_id": tenant_id})
            fund = self._find_fund(tenant_id)
            if fund is None:
                raise NotFoundError("Erro ao obter fundo de reserva") from None
        return fund

    def _apply_balance_delta(
        self,
        fund: ReserveFund,
        delta: Decimal,
        *,
        required_balance: Decimal | None = None,
        last_transfer_date: date | None = None,
    ) -> None:
        values: dict[str, object] = {"balance": ReserveFund.balance + delta}
        if last_transfer_date is not None:
            values["last_transfer_date"] = last_transfer_date

        statement = update(ReserveFund).where(ReserveFund.id == fund.id).values(**values)
        if required_balance is not None:
            statement = statement.where(ReserveFund.balance >= required_balance)

        result = self._session.execute(statement.execution_options(synchronize_session=False))
        if result.rowcount != 1:
            raise InsufficientFundsError("Saldo insuficiente no fundo de reserva")
        self._session.refresh(fund)

    def _record_audit(
        self,
        context: TenantContext,
        action: str,
        transaction: ReserveFundTransaction,
        *,
        entry_id: str | None,
    ) -> None:
        self._session.add(
            AuditLog(
                tenant_id=context.tenant_id,
                actor=context.actor,
                action=action,
                resource_type="ReserveFundTransaction",
                resource_id=transaction.id,
                payload={
                    "amount": f"{to_amount(transaction.amount):.2f}",
                    "transaction_type": transaction.transaction_type.value,
                    "ledger_entry_id": entry_id,
                },
            )
        )

    @staticmethod
    def _validated_amount(amount: Decimal | None) -> Decimal:
        try:
            return parse_amount(amount)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    @staticmethod
    def _result(
        operation: str,
        fund: ReserveFund,
        transaction: ReserveFundTransaction,
        entry: Revenue | Expense | None,
    ) -> TransferResult:
        return TransferResult(
            operation=operation,
            amount=to_amount(transaction.amount),
            balance=to_amount(fund.balance),
            transaction=transaction,
            ledger_entry=entry,
        )


def _entry_description(prefix: str, description: str | None) -> str:
    return f"{prefix}: {description}" if description else prefix


def auto_transfer_all_tenants(
    session: Session,
    *,
    settings: Settings | None = None,
    cache: ViewCache | None = None,
    today_fn: TodayProvider | None = None,
) -> AutoTransferRun:
    """Run the monthly sweep for every active church.

    Refusals (already transferred, nothing to transfer) are reported per
    tenant and do not stop the run.
    """

    service = ReserveFundService(session, settings=settings, cache=cache, today_fn=today_fn)
    tenant_ids = session.scalars(
        select(Tenant.id).where(Tenant.status == TenantStatus.ACTIVE).order_by(Tenant.id)
    ).all()

    run = AutoTransferRun()
    for tenant_id in tenant_ids:
        context = TenantContext(tenant_id=tenant_id, actor=CRON_ACTOR)
        try:
            result = service.auto_transfer(context)
        except TreasuryError as exc:
            run.results.append(AutoTransferRunResult(tenant_id=tenant_id, success=False, error=str(exc)))
            continue
        run.results.append(AutoTransferRunResult(tenant_id=tenant_id, success=True, amount=result.amount))

    LOGGER.info(
        "auto transfer run finished",
        extra={"tenants": len(run.results), "transferred_total": str(run.transferred_total)},
    )
    return run


__all__ = [
    "AutoTransferRun",
    "AutoTransferRunResult",
    "ReconciliationReport",
    "ReserveFundService",
    "ReserveFundSummary",
    "TransferResult",
    "auto_transfer_all_tenants",
]
