import logging
import sqlite3
from pathlib import Path
from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import QueuePool

logger = logging.getLogger("resume_api.database")


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(db_path: Path, pool_size: int = 10, pool_timeout: float = 2.0):
    # max_overflow=0: the pool never grows past pool_size, and a caller that
    # cannot get a connection within pool_timeout gets sqlalchemy TimeoutError.
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout,
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


class Database:
    """Owns the engine (and so the connection pool) for one application run."""

    def __init__(self, db_path: Path, pool_size: int = 10, pool_timeout: float = 2.0):
        self.db_path = db_path
        self.engine = get_engine(db_path, pool_size=pool_size, pool_timeout=pool_timeout)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

    def dispose(self):
        self.engine.dispose()
        logger.info("Connection pool for %s disposed.", self.db_path)


def get_db(request: Request):
    db = request.app.state.database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


SCHEMA_SQL = """\
-- ============================================================
-- USERS
-- ============================================================
CREATE TABLE IF NOT EXISTS users (
    id         TEXT PRIMARY KEY,
    email      TEXT NOT NULL,
    first_name TEXT,
    last_name  TEXT,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
);

-- ============================================================
-- RESUMES
-- ============================================================
-- owner_id has no foreign key: documents outlive their user row.
CREATE TABLE IF NOT EXISTS resumes (
    id         TEXT PRIMARY KEY,
    owner_id   TEXT NOT NULL,
    title      TEXT NOT NULL,
    data       TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_resumes_owner_updated ON resumes(owner_id, updated_at DESC);

-- ============================================================
-- COVER LETTERS
-- ============================================================
CREATE TABLE IF NOT EXISTS cover_letters (
    id         TEXT PRIMARY KEY,
    owner_id   TEXT NOT NULL,
    title      TEXT NOT NULL,
    data       TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_cover_letters_owner_updated ON cover_letters(owner_id, updated_at DESC);
"""


def init_db(db_path: Path):
    conn = sqlite3.connect(str(db_path))
    try:
        conn.executescript(SCHEMA_SQL)
    finally:
        conn.close()


def check_integrity(db_path: Path) -> bool:
    conn = sqlite3.connect(str(db_path))
    try:
        result = conn.execute("PRAGMA integrity_check").fetchone()
    finally:
        conn.close()
    if result and result[0] == "ok":
        logger.info("Database integrity check passed.")
        return True
    logger.error("DATABASE INTEGRITY CHECK FAILED: %s", result)
    return False
