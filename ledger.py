"""
ledger.py
---------
Portfolios, transactions and debts, and the operations that change them.

Every mutation builds a new ``AppState`` by replacing only the active
portfolio, assigns it, then writes the whole snapshot to the injected store.
A failed write is logged and reported through ``OperationResult.persisted``;
the in-memory state stays the source of truth for the session.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Mapping, Optional, Tuple

from pydantic import ValidationError

from errors import FinanceError, FormValidationError
from forms import parse_amount, parse_date
from loans import EPSILON, generate_schedule
from schemas import (
    AppState,
    Debt,
    Notification,
    OperationResult,
    PaymentRecord,
    Portfolio,
    Transaction,
)
from storage import SnapshotStore

logger = logging.getLogger(__name__)

LEDGER_KEY = "financeos_portfolios"
DEFAULT_PORTFOLIO_NAME = "My Main Portfolio"
DEBT_CATEGORY = "Debts"
EXPENSE_CATEGORIES = ["Food", "Transport", "Health", "Entertainment", "Services", "Clothing", "Education", "Other"]
INCOME_CATEGORIES = ["Salary", "Freelance", "Investments", "Gifts", "Sales", "Other"]


def new_portfolio(name: str, today: date) -> Portfolio:
    return Portfolio(name=name, created_at=today)


def default_state(today: date) -> AppState:
    portfolio = new_portfolio(DEFAULT_PORTFOLIO_NAME, today)
    return AppState(portfolios=[portfolio], active_id=portfolio.id)


def parse_state(raw: Optional[str], today: date) -> AppState:
    """Decodes a ledger snapshot, falling back to defaults and repairing a stale active id."""
    if not raw:
        return default_state(today)
    try:
        state = AppState.model_validate_json(raw)
    except ValidationError:
        logger.warning("Ledger snapshot is corrupt, starting from defaults. Discarded payload: %s", raw, exc_info=True)
        return default_state(today)

    if not state.portfolios:
        return default_state(today)
    if state.active_portfolio is None:
        first = state.portfolios[0]
        logger.info("Active portfolio %r not found, selecting %r", state.active_id, first.id)
        state = state.model_copy(update={"active_id": first.id})
    return state


def dump_state(state: AppState) -> str:
    return state.model_dump_json(by_alias=True)


def apply_payment(debt: Debt, amount: float, today: date) -> Tuple[Debt, Transaction]:
    """
    Applies a payment to a debt and returns the updated debt together with
    the expense transaction recording it. Amounts above the remaining
    balance are clipped, and a balance left under EPSILON counts as paid off.
    """
    pay = min(amount, debt.remaining)
    remaining = debt.remaining - pay
    if remaining < EPSILON:
        remaining = 0.0
    paid = debt.total if remaining == 0 else debt.paid + pay
    updated = debt.model_copy(
        update={
            "remaining": remaining,
            "paid": paid,
            "payments": [*debt.payments, PaymentRecord(date=today, amount=pay)],
        }
    )
    tx = Transaction(
        type="expense",
        amount=pay,
        category=DEBT_CATEGORY,
        description=f"Payment: {debt.name}",
        date=today,
    )
    return updated, tx


def error_notification(exc: FinanceError) -> Notification:
    return Notification(message=str(exc), kind="error")


class LedgerStore:
    def __init__(self, store: SnapshotStore, today: Callable[[], date] = date.today):
        self.store = store
        self.today = today
        self.state = self.load()

    def load(self) -> AppState:
        try:
            raw = self.store.load(LEDGER_KEY)
        except Exception:
            logger.warning("Could not read ledger snapshot, starting from defaults", exc_info=True)
            raw = None
        return parse_state(raw, self.today())

    @property
    def active_portfolio(self) -> Portfolio:
        return self.state.active_portfolio

    # --- Persistence ---

    def _persist(self) -> bool:
        try:
            self.store.save(LEDGER_KEY, dump_state(self.state))
        except Exception:
            logger.warning("Ledger snapshot not persisted, keeping in-memory state", exc_info=True)
            return False
        return True

    def _commit(self, state: AppState, message: str) -> OperationResult:
        self.state = state
        persisted = self._persist()
        return OperationResult(value=state, notification=Notification(message=message), persisted=persisted)

    def _update_active(self, updater: Callable[[Portfolio], Portfolio], message: str) -> OperationResult:
        active_id = self.state.active_id
        portfolios = [updater(p) if p.id == active_id else p for p in self.state.portfolios]
        return self._commit(self.state.model_copy(update={"portfolios": portfolios}), message)

    # --- Transactions ---

    def add_transaction(self, form: Mapping[str, Any]) -> OperationResult:
        tx_type = form.get("type") or "expense"
        if tx_type not in ("income", "expense"):
            raise FormValidationError(f"Unknown transaction type: {tx_type}")
        amount = parse_amount(form.get("amount"), "Amount")

        tx = Transaction(
            type=tx_type,
            amount=amount,
            category=str(form.get("category") or "Other"),
            description=str(form.get("description") or ""),
            date=parse_date(form.get("date"), self.today()),
        )
        return self._update_active(
            lambda p: p.model_copy(update={"transactions": [tx, *p.transactions]}),
            "Transaction recorded",
        )

    def delete_transaction(self, tx_id: str) -> OperationResult:
        return self._update_active(
            lambda p: p.model_copy(update={"transactions": [t for t in p.transactions if t.id != tx_id]}),
            "Transaction deleted",
        )

    # --- Debts ---

    def add_debt(self, form: Mapping[str, Any]) -> OperationResult:
        name = str(form.get("name") or "").strip()
        if not name or not form.get("total") or not form.get("payment"):
            raise FormValidationError("Name, total and monthly payment are required")

        total = parse_amount(form["total"], "Total")
        payment = parse_amount(form["payment"], "Monthly payment")
        interest = parse_amount(form.get("interest") or 0, "Interest rate", allow_zero=True)
        plan = generate_schedule(total, interest, payment)

        debt = Debt(
            name=name,
            total=total,
            interest=interest,
            payment=payment,
            start_date=parse_date(form.get("start_date"), self.today()),
            notes=str(form.get("notes") or ""),
            remaining=total,
            paid=0.0,
            plan=plan,
            payments=[],
        )
        logger.info("Debt %s created with a %d month plan", debt.id, len(plan))
        return self._update_active(
            lambda p: p.model_copy(update={"debts": [*p.debts, debt]}),
            "Debt recorded",
        )

    def make_payment(self, debt_id: str, amount: Any) -> OperationResult:
        amount = parse_amount(amount, "Payment amount")
        debt = self.active_portfolio.find_debt(debt_id)
        if debt is None:
            raise FormValidationError("Debt not found")
        if debt.is_settled or debt.remaining < EPSILON:
            raise FormValidationError(f"{debt.name} is already paid off")

        updated, tx = apply_payment(debt, amount, self.today())

        def updater(p: Portfolio) -> Portfolio:
            return p.model_copy(
                update={
                    "debts": [updated if d.id == debt_id else d for d in p.debts],
                    "transactions": [tx, *p.transactions],
                }
            )

        return self._update_active(updater, f"Payment of {tx.amount:,.2f} applied to {debt.name}")

    def delete_debt(self, debt_id: str) -> OperationResult:
        # Transactions created by earlier payments stay in the ledger.
        return self._update_active(
            lambda p: p.model_copy(update={"debts": [d for d in p.debts if d.id != debt_id]}),
            "Debt deleted",
        )

    # --- Portfolios ---

    def create_portfolio(self, name: str) -> OperationResult:
        name = (name or "").strip()
        if not name:
            raise FormValidationError("Portfolio name is required")
        portfolio = new_portfolio(name, self.today())
        state = self.state.model_copy(
            update={"portfolios": [*self.state.portfolios, portfolio], "active_id": portfolio.id}
        )
        logger.info("Portfolio %s created", portfolio.id)
        return self._commit(state, f'Portfolio "{name}" created')

    def switch_portfolio(self, portfolio_id: str) -> OperationResult:
        target = next((p for p in self.state.portfolios if p.id == portfolio_id), None)
        if target is None:
            raise FormValidationError("Portfolio not found")
        return self._commit(self.state.model_copy(update={"active_id": portfolio_id}), f"Switched to {target.name}")
