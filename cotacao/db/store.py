"""Append-only persistence of served quotes.

Each ``persist`` opens its own sqlite3 connection and runs a single insert in
a worker thread, so concurrent requests never share a handle. The stage
budget is enforced inside the engine (busy timeout plus a progress handler),
and the transaction only commits while the deadline still holds; any failure
leaves the table untouched.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import List, Optional

from cotacao.core.deadline import Deadline, stage_deadline
from cotacao.core.errors import (
    StageTimeoutError,
    StorageUnavailableError,
    StorageWriteError,
)
from cotacao.models import RateQuote

from .schema import INSERT_EXCHANGE_RATE

logger = logging.getLogger("cotacao.store")

# sqlite VM instructions between deadline checks
PROGRESS_CHECK_INTERVAL = 100


class RateStore:
    def __init__(self, db_path: Path, *, timeout: float = 0.01):
        self.db_path = Path(db_path)
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self, deadline: Optional[Deadline] = None) -> sqlite3.Connection:
        busy_timeout = deadline.remaining() if deadline is not None else 5.0
        try:
            conn = sqlite3.connect(self.db_path, timeout=busy_timeout)
        except sqlite3.Error as e:
            logger.error("cannot open database %s: %s", self.db_path, e)
            raise StorageUnavailableError(
                f"Failed to connect to database: {e}"
            ) from e
        return conn

    def _timeout(self) -> StageTimeoutError:
        err = StageTimeoutError("persist", self.timeout)
        logger.warning("%s", err)
        return err

    # ------------------------------------------------------------------
    # Writes
    async def persist(self, quote: RateQuote, deadline: Optional[Deadline] = None) -> None:
        stage = stage_deadline(self.timeout, deadline)
        await asyncio.to_thread(self._insert, quote, stage)

    def _insert(self, quote: RateQuote, deadline: Deadline) -> None:
        conn = self._connect(deadline)
        try:
            conn.set_progress_handler(deadline.expired, PROGRESS_CHECK_INTERVAL)
            try:
                if deadline.expired():
                    raise self._timeout()
                conn.execute(INSERT_EXCHANGE_RATE, quote.as_row())
                if deadline.expired():
                    self._rollback(conn)
                    raise self._timeout()
                # Last deadline check. A COMMIT that starts in budget runs to
                # completion (fsync included) and counts as a successful write.
                conn.commit()
            except sqlite3.Error as e:
                self._rollback(conn)
                if deadline.expired():
                    raise self._timeout() from e
                logger.error("insert into exchange_rate failed: %s", e)
                raise StorageWriteError(
                    f"Failed to insert exchange rate into database: {e}"
                ) from e
        finally:
            conn.close()
        logger.debug("stored quote bid=%s timestamp=%s", quote.bid, quote.timestamp)

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        # ROLLBACK itself must not be interrupted by the expired deadline
        conn.set_progress_handler(None, 0)
        conn.rollback()

    # ------------------------------------------------------------------
    # Reads
    def fetch_all(self) -> List[RateQuote]:
        conn = self._connect()
        try:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT code, name, bid, timestamp FROM exchange_rate ORDER BY rowid"
            ).fetchall()
        finally:
            conn.close()
        return [RateQuote(**dict(r)) for r in rows]
