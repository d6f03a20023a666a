import logging
import os
from datetime import date, timedelta
from typing import Optional

from ledger import LEDGER_KEY, LedgerStore
from reminders import ReminderBook
from storage import SnapshotStore, get_store

logger = logging.getLogger(__name__)


def seed_demo(store: SnapshotStore, today: Optional[date] = None) -> bool:
    """Writes a demo portfolio and two reminders unless a ledger already exists."""
    today = today or date.today()
    clock = lambda: today

    # Check if a ledger exists
    if store.load(LEDGER_KEY):
        logger.info("Ledger already exists. Skipping seed.")
        return False

    ledger = LedgerStore(store, today=clock)
    month_start = today.replace(day=1)
    ledger.add_transaction({"type": "income", "amount": 5000, "category": "Salary",
                            "description": "Monthly salary", "date": month_start})
    ledger.add_transaction({"type": "expense", "amount": 850, "category": "Food",
                            "description": "Groceries", "date": month_start + timedelta(days=2)})
    ledger.add_transaction({"type": "expense", "amount": 350, "category": "Transport",
                            "description": "Fuel and parking", "date": month_start + timedelta(days=4)})

    result = ledger.add_debt({"name": "Car loan", "total": 12000, "interest": 12,
                              "payment": 600, "start_date": month_start, "notes": "Demo debt"})
    car_loan = result.value.active_portfolio.debts[-1]
    ledger.make_payment(car_loan.id, 600)

    book = ReminderBook(store, today=clock)
    book.add({"name": "Credit card", "amount": 1200, "due_date": today + timedelta(days=2),
              "type": "card", "reminder_days": 5})
    book.add({"name": "Internet", "amount": 60, "due_date": today + timedelta(days=12),
              "type": "subscription", "reminder_days": 3})

    logger.info("Seeded demo portfolio %s.", ledger.state.active_id)
    return True


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    seed_demo(get_store())
