"""Snapshot store backends."""

from __future__ import annotations

import io

import pytest
from sqlalchemy.orm import sessionmaker

from database import SqlSnapshotStore, init_db, make_engine
from errors import PersistenceFailure
from ledger import LEDGER_KEY, LedgerStore
from storage import LocalFileStore, MemoryStore, S3Store, get_store


class _NoSuchKey(Exception):
    pass


class FakeS3Client:
    class exceptions:
        NoSuchKey = _NoSuchKey

    def __init__(self, fail_writes: bool = False):
        self.objects = {}
        self.fail_writes = fail_writes

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise _NoSuchKey(Key)
        return {"Body": io.BytesIO(self.objects[Key])}

    def put_object(self, Bucket, Key, Body, ContentType=None):
        if self.fail_writes:
            raise RuntimeError("AccessDenied")
        self.objects[Key] = Body


def test_memory_store_round_trip():
    store = MemoryStore({"a": "1"})
    store.save("b", "2")

    assert store.load("a") == "1"
    assert store.load("b") == "2"
    assert store.load("c") is None


def test_local_file_store(tmp_path):
    store = LocalFileStore(tmp_path / "snapshots")

    assert store.load(LEDGER_KEY) is None
    store.save(LEDGER_KEY, '{"portfolios": []}')

    assert (tmp_path / "snapshots" / f"{LEDGER_KEY}.json").exists()
    assert store.load(LEDGER_KEY) == '{"portfolios": []}'


def test_sql_store_inserts_then_updates(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'finance.db'}")
    init_db(bind=engine)
    store = SqlSnapshotStore(sessionmaker(bind=engine))

    assert store.load("k") is None
    store.save("k", "first")
    store.save("k", "second")

    assert store.load("k") == "second"


def test_sql_store_backs_a_ledger(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'finance.db'}")
    init_db(bind=engine)
    store = SqlSnapshotStore(sessionmaker(bind=engine))

    ledger = LedgerStore(store)
    ledger.add_transaction({"type": "income", "amount": 250})

    assert LedgerStore(store).state == ledger.state


def test_s3_store_round_trip():
    client = FakeS3Client()
    store = S3Store("bucket", prefix="financeos", client=client)

    assert store.load(LEDGER_KEY) is None
    store.save(LEDGER_KEY, "{}")

    assert f"financeos/{LEDGER_KEY}.json" in client.objects
    assert store.load(LEDGER_KEY) == "{}"


def test_s3_store_wraps_write_errors():
    store = S3Store("bucket", client=FakeS3Client(fail_writes=True))

    with pytest.raises(PersistenceFailure):
        store.save(LEDGER_KEY, "{}")


def test_s3_write_failure_does_not_break_ledger():
    ledger = LedgerStore(S3Store("bucket", client=FakeS3Client(fail_writes=True)))

    result = ledger.create_portfolio("Travel")

    assert result.persisted is False
    assert ledger.active_portfolio.name == "Travel"


def test_get_store_backends():
    assert isinstance(get_store("memory"), MemoryStore)
    assert isinstance(get_store("local"), LocalFileStore)
    with pytest.raises(ValueError):
        get_store("floppy")
