import pathlib
import sys
from datetime import date

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ledger import LedgerStore  # noqa: E402
from reminders import ReminderBook  # noqa: E402
from storage import MemoryStore  # noqa: E402

TODAY = date(2024, 3, 15)


class FailingStore(MemoryStore):
    """Reads work, every write fails."""

    def save(self, key: str, payload: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def ledger(store) -> LedgerStore:
    return LedgerStore(store, today=lambda: TODAY)


@pytest.fixture
def book(store) -> ReminderBook:
    return ReminderBook(store, today=lambda: TODAY)
