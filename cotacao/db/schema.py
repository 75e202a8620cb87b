"""Database schema DDL and one-time initialization.

Tables:
  - exchange_rate: append-only log of every quote served (one row per
    successful request), columns kept as text exactly as the feed sent them
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger("cotacao.db")

EXCHANGE_RATE_DDL = """
CREATE TABLE IF NOT EXISTS exchange_rate (
    code TEXT,
    name TEXT,
    bid TEXT,
    timestamp TEXT
);
"""

INSERT_EXCHANGE_RATE = (
    "INSERT INTO exchange_rate (code, name, bid, timestamp) VALUES (?, ?, ?, ?)"
)

ALL_DDL = (EXCHANGE_RATE_DDL,)


def init_db(db_path: Path) -> None:
    """Create tables if absent. Safe to call on every startup."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        for ddl in ALL_DDL:
            conn.execute(ddl)
        conn.commit()
    finally:
        conn.close()
    logger.info("database ready at %s", db_path)
