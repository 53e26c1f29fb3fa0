"""
Database access for analysis records.

Two engines sit behind one interface:
- SQLite file (default, `SQLITE_PATH`)
- PostgreSQL when `DATABASE_URL` is set

Placeholder style differs per engine (`?` vs `%s`), so callers choose their SQL
from `db.is_postgres`. The flag is fixed at import time.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
APP_ENV = os.getenv("APP_ENV", "development")
SQLITE_PATH = os.getenv("SQLITE_PATH", "./analysis.db")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./temp_uploads")


class AnalysisStore(ABC):
    """run/all/get over driver-level SQL, shared by both engines."""

    is_postgres = False
    placeholder = "?"
    schema_sql = ""
    now_sql = "CURRENT_TIMESTAMP"

    def __init__(self, engine: Engine):
        self.engine = engine

    def init_schema(self) -> None:
        with self.engine.begin() as conn:
            conn.exec_driver_sql(self.schema_sql)

    @abstractmethod
    def _last_id(self, result) -> Optional[int]:
        """Id of the row just inserted."""

    def run(self, sql: str, params: Sequence[Any] = ()) -> Dict[str, Any]:
        """Execute a write statement. Returns {"lastID", "changes"}."""
        with self.engine.begin() as conn:
            result = conn.exec_driver_sql(sql, tuple(params))
            last_id = self._last_id(result)
            return {"lastID": last_id, "changes": result.rowcount}

    def all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        with self.engine.connect() as conn:
            result = conn.exec_driver_sql(sql, tuple(params))
            return [dict(row) for row in result.mappings().all()]

    def get(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        with self.engine.connect() as conn:
            result = conn.exec_driver_sql(sql, tuple(params))
            row = result.mappings().first()
            return dict(row) if row is not None else None


class SQLiteStore(AnalysisStore):
    placeholder = "?"
    # Millisecond timestamps so an edit is distinguishable from the insert.
    schema_sql = """CREATE TABLE IF NOT EXISTS analyses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        analysis_summary TEXT NOT NULL,
        content_text TEXT NOT NULL,
        created_at DATETIME DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
        updated_at DATETIME DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now'))
    )"""
    now_sql = "strftime('%Y-%m-%d %H:%M:%f', 'now')"

    def _last_id(self, result) -> Optional[int]:
        return result.lastrowid


class PostgresStore(AnalysisStore):
    is_postgres = True
    placeholder = "%s"
    schema_sql = """CREATE TABLE IF NOT EXISTS analyses (
        id SERIAL PRIMARY KEY,
        analysis_summary TEXT NOT NULL,
        content_text TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )"""
    now_sql = "CURRENT_TIMESTAMP"

    def _last_id(self, result) -> Optional[int]:
        # INSERT ... RETURNING id
        if not result.returns_rows:
            return None
        row = result.mappings().first()
        if row is None:
            return None
        return row.get("id")


def _normalize_postgres_url(url: str) -> str:
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def create_store(database_url: Optional[str] = None, sqlite_path: Optional[str] = None) -> AnalysisStore:
    """Pick the engine from configuration and make sure the table exists."""
    if database_url:
        sslmode = "require" if APP_ENV == "production" else "prefer"
        engine = create_engine(
            _normalize_postgres_url(database_url),
            connect_args={"sslmode": sslmode},
            pool_pre_ping=True,
        )
        store: AnalysisStore = PostgresStore(engine)
        logger.info(f"[DB] Using PostgreSQL (sslmode={sslmode})")
    else:
        path = sqlite_path or SQLITE_PATH
        engine = create_engine(
            f"sqlite:///{path}",
            connect_args={"check_same_thread": False},
        )
        store = SQLiteStore(engine)
        logger.info(f"[DB] Using SQLite: {path}")

    try:
        store.init_schema()
    except Exception as e:
        logger.error(f"[DB] Schema initialization failed: {e}")
    return store


db = create_store(DATABASE_URL, SQLITE_PATH)
