import asyncio
import sqlite3
from pathlib import Path
from typing import Callable

import httpx

UPSTREAM_BODY = {
    "USDBRL": {
        "code": "USD",
        "codein": "BRL",
        "name": "Dolar/Real",
        "high": "5.47",
        "low": "5.40",
        "bid": "5.43",
        "ask": "5.44",
        "timestamp": "1700000000",
        "create_date": "2023-11-14 19:13:20",
    }
}

EXPECTED_QUOTE = {
    "code": "USD",
    "name": "Dolar/Real",
    "bid": "5.43",
    "timestamp": "1700000000",
}


def json_handler(body, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    return handler


def slow_handler(delay: float, body=UPSTREAM_BODY):
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(delay)
        return httpx.Response(200, json=body)

    return handler


def failing_handler(exc_type=httpx.ConnectError):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("connection refused", request=request)

    return handler


def row_count(db_path: Path) -> int:
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute("SELECT COUNT(*) FROM exchange_rate").fetchone()[0]
    finally:
        conn.close()


def reject_inserts(db_path: Path) -> None:
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(
            "CREATE TRIGGER reject_insert BEFORE INSERT ON exchange_rate "
            "BEGIN SELECT RAISE(ABORT, 'insert rejected'); END;"
        )
        conn.commit()
    finally:
        conn.close()
