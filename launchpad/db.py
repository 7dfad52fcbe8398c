"""Database layer for learner repertoires."""

import os
from contextlib import contextmanager

import psycopg
from psycopg.types.json import Jsonb

from errors import StaleSnapshotError
from models import RepertoireSnapshot
from repertoire import snapshot_from_dict, snapshot_to_dict

SCHEMA = """
CREATE TABLE IF NOT EXISTS repertoires (
    username TEXT PRIMARY KEY,
    data JSONB NOT NULL,
    version INTEGER NOT NULL DEFAULT 1,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


def get_connection_string() -> str:
    """Get database connection string from environment."""
    return os.environ.get(
        "DATABASE_URL",
        "postgresql://localhost:5432/chess_launchpad?user=postgres&password=postgres",
    )


@contextmanager
def get_connection():
    """Context manager for database connections."""
    conn = psycopg.connect(get_connection_string())
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def ensure_schema(conn: psycopg.Connection) -> None:
    with conn.cursor() as cur:
        cur.execute(SCHEMA)


def create_repertoire(conn: psycopg.Connection, username: str) -> None:
    """Create an empty repertoire. Existing repertoires are left alone."""
    with conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO repertoires (username, data)
            VALUES (%s, %s)
            ON CONFLICT (username) DO NOTHING
            """,
            (username, Jsonb(snapshot_to_dict(RepertoireSnapshot()))),
        )


def delete_repertoire(conn: psycopg.Connection, username: str) -> bool:
    with conn.cursor() as cur:
        cur.execute("DELETE FROM repertoires WHERE username = %s", (username,))
        return cur.rowcount > 0


def load_snapshot(conn: psycopg.Connection, username: str) -> tuple[RepertoireSnapshot, int] | None:
    """Fetch a learner's snapshot and its version, or None if the learner is unknown."""
    with conn.cursor() as cur:
        cur.execute(
            "SELECT data, version FROM repertoires WHERE username = %s",
            (username,),
        )
        row = cur.fetchone()
    if not row:
        return None
    return snapshot_from_dict(row[0]), row[1]


def store_snapshot(
    conn: psycopg.Connection,
    username: str,
    snapshot: RepertoireSnapshot,
    expected_version: int,
) -> int:
    """
    Overwrite the snapshot if nobody stored a newer one since it was loaded.
    Returns the new version; raises StaleSnapshotError otherwise.
    """
    with conn.cursor() as cur:
        cur.execute(
            """
            UPDATE repertoires
            SET data = %s, version = version + 1, updated_at = NOW()
            WHERE username = %s AND version = %s
            RETURNING version
            """,
            (Jsonb(snapshot_to_dict(snapshot)), username, expected_version),
        )
        row = cur.fetchone()
    if not row:
        raise StaleSnapshotError(username, expected_version)
    return row[0]
