"""Database access layer using psycopg2.

Provides:
- get_conn(): Open a connection for a DSN (or DATABASE_URL)
- txn(): Context manager for short, safe transactions
"""

import os
from contextlib import contextmanager
from typing import Iterator

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor


def get_conn(dsn: str | None = None) -> PgConnection:
    """Open a new database connection.

    Args:
        dsn: Connection string. Falls back to DATABASE_URL when omitted.

    Raises:
        RuntimeError: If no DSN is available.
        psycopg2.Error: On connection failure.
    """
    dsn = dsn or os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")
    return psycopg2.connect(dsn)


@contextmanager
def txn(conn: PgConnection | None = None, *, dsn: str | None = None) -> Iterator[PgCursor]:
    """Context manager for a short, safe transaction.

    If conn is None, opens a connection that is closed on exit.
    Commits on successful exit, rolls back on exception.

    Example:
        with txn(dsn=dsn) as cur:
            cur.execute("DELETE FROM reservations WHERE id = %s", (rid,))
    """
    owns_conn = conn is None
    if owns_conn:
        conn = get_conn(dsn)

    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if owns_conn:
            conn.close()


def sqlalchemy_url(dsn: str) -> str:
    """Rewrite a postgres URL for SQLAlchemy's psycopg2 driver.

    Alembic connects through SQLAlchemy, which needs an explicit driver in
    the scheme. URLs that already name one are returned unchanged.
    """
    if dsn.startswith("postgres://"):
        dsn = "postgresql://" + dsn[len("postgres://"):]
    if dsn.startswith("postgresql://"):
        dsn = "postgresql+psycopg2://" + dsn[len("postgresql://"):]
    return dsn
