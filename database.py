import os
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from errors import PersistenceFailure

# Load environment variables
load_dotenv()

# Database Setup
# Default to local SQLite, but allow override for AWS RDS (Postgres)
DB_URL = os.getenv("DATABASE_URL", "sqlite:///finance_tracker.db")


def make_engine(url: str = DB_URL):
    return create_engine(url, connect_args={"check_same_thread": False} if "sqlite" in url else {})


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# --- Models ---

class Snapshot(Base):
    __tablename__ = "snapshots"

    key = Column(String, primary_key=True)
    payload = Column(Text, nullable=False)  # JSON blob owned by the engine
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


class SqlSnapshotStore:
    """Snapshot store backed by the ``snapshots`` table."""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    def load(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            row = db.get(Snapshot, key)
            return row.payload if row else None
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Database read error: {e}") from e
        finally:
            db.close()

    def save(self, key: str, payload: str) -> None:
        db = self.session_factory()
        try:
            row = db.get(Snapshot, key)
            if row:
                row.payload = payload
                row.updated_at = datetime.now(timezone.utc)
            else:
                db.add(Snapshot(key=key, payload=payload))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceFailure(f"Database write error: {e}") from e
        finally:
            db.close()


# --- Init DB ---
def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
