"""Upcoming-payment reminders: when they are due, how urgent they are, and
the small book that stores them.

Reminders are independent of portfolios and debts and are persisted as their
own JSON array.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, List, Literal, Mapping, Optional, Union

from pydantic import TypeAdapter, ValidationError

from errors import FormValidationError
from forms import parse_amount, parse_date
from schemas import Notification, OperationResult, UpcomingPayment
from storage import SnapshotStore

logger = logging.getLogger(__name__)

REMINDERS_KEY = "financeos_reminders"
DEFAULT_REMINDER_DAYS = 3
PAYMENT_TYPES = ["bill", "card", "loan", "rent", "subscription", "other"]

Urgency = Literal["overdue", "urgent", "upcoming", "quiet"]

_reminder_list = TypeAdapter(List[UpcomingPayment])


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def days_until(due: Union[date, datetime], today: Union[date, datetime]) -> int:
    """Whole calendar days from today to the due date; negative once it has passed."""
    return (_as_date(due) - _as_date(today)).days


def urgency(reminder: UpcomingPayment, today: date) -> Urgency:
    if reminder.dismissed:
        return "quiet"
    diff = days_until(reminder.due_date, today)
    if diff < 0:
        return "overdue"
    if diff > reminder.reminder_days:
        return "quiet"
    if diff <= 1:
        return "urgent"
    return "upcoming"


def is_active(reminder: UpcomingPayment, today: date) -> bool:
    if reminder.dismissed:
        return False
    return 0 <= days_until(reminder.due_date, today) <= reminder.reminder_days


def active_reminders(reminders: List[UpcomingPayment], today: date) -> List[UpcomingPayment]:
    return sorted((r for r in reminders if is_active(r, today)), key=lambda r: r.due_date)


def payment_statuses(reminders: List[UpcomingPayment], today: date) -> List[dict]:
    """Every reminder with its countdown and urgency, soonest first. Overdue ones stay listed."""
    return [
        {
            "reminder": r,
            "days_until": days_until(r.due_date, today),
            "urgency": urgency(r, today),
        }
        for r in sorted(reminders, key=lambda r: r.due_date)
    ]


def parse_reminders(raw: Optional[str]) -> List[UpcomingPayment]:
    if not raw:
        return []
    try:
        return _reminder_list.validate_json(raw)
    except ValidationError:
        logger.warning("Reminders snapshot is corrupt, starting empty", exc_info=True)
        return []


def dump_reminders(reminders: List[UpcomingPayment]) -> str:
    return _reminder_list.dump_json(reminders, by_alias=True).decode()


class ReminderBook:
    def __init__(self, store: SnapshotStore, today: Callable[[], date] = date.today):
        self.store = store
        self.today = today
        self.reminders = self.load()

    def load(self) -> List[UpcomingPayment]:
        try:
            raw = self.store.load(REMINDERS_KEY)
        except Exception:
            logger.warning("Could not read reminders snapshot, starting empty", exc_info=True)
            raw = None
        return parse_reminders(raw)

    def _commit(self, reminders: List[UpcomingPayment], message: str) -> OperationResult:
        self.reminders = reminders
        try:
            self.store.save(REMINDERS_KEY, dump_reminders(reminders))
            persisted = True
        except Exception:
            logger.warning("Reminders snapshot not persisted, keeping in-memory list", exc_info=True)
            persisted = False
        return OperationResult(value=reminders, notification=Notification(message=message), persisted=persisted)

    def _set_dismissed(self, reminder_id: str, dismissed: bool, message: str) -> OperationResult:
        if not any(r.id == reminder_id for r in self.reminders):
            raise FormValidationError("Reminder not found")
        reminders = [
            r.model_copy(update={"dismissed": dismissed}) if r.id == reminder_id else r
            for r in self.reminders
        ]
        return self._commit(reminders, message)

    def add(self, form: Mapping[str, Any]) -> OperationResult:
        name = str(form.get("name") or "").strip()
        if not name or not form.get("due_date"):
            raise FormValidationError("Name and due date are required")

        amount = form.get("amount")
        if amount is not None and amount != "":
            amount = parse_amount(amount, "Amount")
        else:
            amount = None

        days = form.get("reminder_days")
        if days is None or days == "":
            days = DEFAULT_REMINDER_DAYS
        else:
            days = parse_amount(days, "Reminder days", allow_zero=True)
            if days != int(days):
                raise FormValidationError("Reminder days must be a whole number")

        reminder = UpcomingPayment(
            name=name,
            amount=amount,
            due_date=parse_date(form.get("due_date"), self.today()),
            type=str(form.get("type") or "bill"),
            reminder_days=int(days),
            notes=str(form.get("notes") or ""),
        )
        return self._commit([*self.reminders, reminder], "Reminder saved")

    def dismiss(self, reminder_id: str) -> OperationResult:
        return self._set_dismissed(reminder_id, True, "Reminder dismissed")

    def reactivate(self, reminder_id: str) -> OperationResult:
        return self._set_dismissed(reminder_id, False, "Reminder reactivated")

    def delete(self, reminder_id: str) -> OperationResult:
        return self._commit([r for r in self.reminders if r.id != reminder_id], "Reminder deleted")

    def active(self) -> List[UpcomingPayment]:
        return active_reminders(self.reminders, self.today())

    def statuses(self) -> List[dict]:
        return payment_statuses(self.reminders, self.today())
