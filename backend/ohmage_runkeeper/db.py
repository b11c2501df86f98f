import os
import sqlite3
from collections.abc import Generator
from pathlib import Path

DATABASE_PATH = os.getenv("DATABASE_PATH", "/data/ohmage_runkeeper.db")


def get_db(db_path: str | None = None) -> sqlite3.Connection:
    # FastAPI may resolve dependency lifecycle and endpoint execution on different threads.
    conn = sqlite3.connect(db_path or DATABASE_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def get_db_dependency() -> Generator[sqlite3.Connection, None, None]:
    conn = get_db()
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str | None = None):
    schema_path = Path(__file__).parent / "schema.sql"
    conn = get_db(db_path)
    with open(schema_path, "r") as f:
        conn.executescript(f.read())
    conn.commit()
    conn.close()


def get_credentials(conn: sqlite3.Connection, domain: str) -> dict[str, str]:
    rows = conn.execute(
        "SELECT key, value FROM omh_credentials WHERE domain=?",
        (domain,),
    ).fetchall()
    return {row["key"]: row["value"] for row in rows}


def set_credential(conn: sqlite3.Connection, domain: str, key: str, value: str):
    conn.execute(
        """INSERT INTO omh_credentials (domain, key, value)
           VALUES (?, ?, ?)
           ON CONFLICT(domain, key) DO UPDATE SET
             value=excluded.value,
             updated_at=datetime('now')""",
        (domain, key, value),
    )
    conn.commit()


def delete_credential(conn: sqlite3.Connection, domain: str, key: str) -> bool:
    cur = conn.execute(
        "DELETE FROM omh_credentials WHERE domain=? AND key=?",
        (domain, key),
    )
    conn.commit()
    return cur.rowcount > 0
