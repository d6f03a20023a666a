import logging
import os
from pathlib import Path
from typing import Dict, Optional, Protocol

import boto3
from dotenv import load_dotenv

from errors import PersistenceFailure

load_dotenv()

logger = logging.getLogger(__name__)

# Environment variables
FINANCE_STORE = os.environ.get("FINANCE_STORE")
S3_BUCKET = os.environ.get("S3_BUCKET")
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
S3_PREFIX = os.environ.get("S3_PREFIX", "financeos")
SNAPSHOT_DIR = os.environ.get("SNAPSHOT_DIR", "personal_finance_tracker/data")


class SnapshotStore(Protocol):
    """Key-value store holding opaque JSON snapshots."""

    def load(self, key: str) -> Optional[str]:
        ...

    def save(self, key: str, payload: str) -> None:
        ...


class MemoryStore:
    """Keeps snapshots in a dict. Used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.records: Dict[str, str] = dict(initial or {})

    def load(self, key: str) -> Optional[str]:
        return self.records.get(key)

    def save(self, key: str, payload: str) -> None:
        self.records[key] = payload


class LocalFileStore:
    """One ``<key>.json`` file per snapshot under a directory."""

    def __init__(self, directory: str | Path = SNAPSHOT_DIR):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceFailure(f"Could not read {path}: {e}") from e

    def save(self, key: str, payload: str) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise PersistenceFailure(f"Could not write {path}: {e}") from e


def get_s3_client():
    return boto3.client("s3", region_name=AWS_REGION)


class S3Store:
    """Snapshots stored as ``<prefix>/<key>.json`` objects in a bucket."""

    def __init__(self, bucket: str, prefix: str = S3_PREFIX, client=None):
        self.bucket = bucket
        self.prefix = prefix
        self.client = client or get_s3_client()

    def _key(self, key: str) -> str:
        return f"{self.prefix}/{key}.json"

    def load(self, key: str) -> Optional[str]:
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=self._key(key))
        except self.client.exceptions.NoSuchKey:
            return None
        except Exception as e:
            raise PersistenceFailure(f"S3 download error: {e}") from e
        return obj["Body"].read().decode("utf-8")

    def save(self, key: str, payload: str) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=self._key(key),
                Body=payload.encode("utf-8"),
                ContentType="application/json",
            )
        except Exception as e:
            raise PersistenceFailure(f"S3 upload error: {e}") from e


def get_store(backend: Optional[str] = None) -> SnapshotStore:
    """
    Builds the configured snapshot store.

    ``FINANCE_STORE`` picks the backend (``sql``, ``s3``, ``local``,
    ``memory``); without it, S3 is used when ``S3_BUCKET`` is set and the
    SQL database otherwise.
    """
    backend = (backend or FINANCE_STORE or ("s3" if S3_BUCKET else "sql")).lower()
    logger.info("Using %s snapshot store", backend)

    if backend == "s3":
        if not S3_BUCKET:
            raise ValueError("S3_BUCKET must be set for the s3 store")
        return S3Store(S3_BUCKET)
    if backend == "local":
        return LocalFileStore(SNAPSHOT_DIR)
    if backend == "memory":
        return MemoryStore()
    if backend == "sql":
        from database import SqlSnapshotStore, init_db

        init_db()
        return SqlSnapshotStore()
    raise ValueError(f"Unknown snapshot store: {backend}")
