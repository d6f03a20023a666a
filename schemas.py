"""Data model for portfolios, transactions, debts and payment reminders.

Every model is frozen: a change to a portfolio produces a new object that
replaces the old one in the ``AppState``.  Snapshots are serialized with
camelCase keys (``activeId``, ``startDate``, ``reminderDays``...) so data
written by the browser version of FinanceOS loads without conversion.
"""

from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

TransactionType = Literal["income", "expense"]
NotificationKind = Literal["success", "error"]


def new_id() -> str:
    return uuid.uuid4().hex


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class _Entity(_Model):
    id: str = Field(default_factory=new_id)

    @field_validator("id", mode="before")
    @classmethod
    def _legacy_numeric_id(cls, value: Any) -> Any:
        # Older snapshots used Date.now() integers as ids.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value


class Transaction(_Entity):
    type: TransactionType
    amount: float = Field(gt=0)
    category: str = "Other"
    description: str = ""
    date: dt.date


class PaymentRecord(_Model):
    date: dt.date
    amount: float


class ScheduleRow(_Model):
    month: int = Field(ge=1)
    interest: float
    principal: float
    payment: float
    remaining: float


class Debt(_Entity):
    name: str
    total: float = Field(gt=0)
    interest: float = Field(default=0.0, ge=0)
    payment: float = Field(gt=0)
    start_date: dt.date
    notes: str = ""
    remaining: float
    paid: float = 0.0
    plan: List[ScheduleRow] = Field(default_factory=list)
    payments: List[PaymentRecord] = Field(default_factory=list)

    @property
    def progress_pct(self) -> float:
        return self.paid / self.total * 100

    @property
    def is_settled(self) -> bool:
        return self.remaining <= 0


class Portfolio(_Entity):
    name: str
    created_at: dt.date = Field(default_factory=dt.date.today)
    transactions: List[Transaction] = Field(default_factory=list)
    debts: List[Debt] = Field(default_factory=list)

    def find_debt(self, debt_id: str) -> Optional[Debt]:
        return next((d for d in self.debts if d.id == debt_id), None)


class AppState(_Model):
    portfolios: List[Portfolio] = Field(default_factory=list)
    active_id: Optional[str] = None

    @field_validator("active_id", mode="before")
    @classmethod
    def _legacy_numeric_active_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value

    @property
    def active_portfolio(self) -> Optional[Portfolio]:
        return next((p for p in self.portfolios if p.id == self.active_id), None)


class UpcomingPayment(_Entity):
    name: str
    amount: Optional[float] = None
    due_date: dt.date
    type: str = "bill"
    reminder_days: int = Field(default=3, ge=0)
    notes: str = ""
    dismissed: bool = False


class Notification(_Model):
    message: str
    kind: NotificationKind = "success"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutation: the new snapshot, the user message, and whether
    the snapshot also reached the store."""

    value: Any
    notification: Notification
    persisted: bool = True
