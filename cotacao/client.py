"""One-shot quote client.

Asks the local service for the current quote under a single deadline and
appends ``Dólar: <bid>`` to a text file. Any failure ends the run with a
non-zero exit status; there is no retry.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import httpx

from cotacao.core.config import Settings
from cotacao.core.errors import (
    OutputWriteError,
    QuoteError,
    StageTimeoutError,
    TransportError,
)
from cotacao.core.logging import init_logging
from cotacao.models import RateQuote

logger = logging.getLogger("cotacao.client")

COTACAO_ENDPOINT = "cotacao"
LINE_TEMPLATE = "Dólar: {bid}\n"


def append_bid(path: Path, bid: str) -> None:
    try:
        with Path(path).open("a", encoding="utf-8") as handle:
            handle.write(LINE_TEMPLATE.format(bid=bid))
    except OSError as e:
        logger.error("error writing to file %s: %s", path, e)
        raise OutputWriteError(f"Failed to save to file {path}: {e}") from e


class QuoteClient:
    def __init__(
        self,
        *,
        service_url: str = "http://localhost:8080",
        timeout: float = 0.3,
        output_file: Path = Path("cotacao.txt"),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = f"{service_url.rstrip('/')}/{COTACAO_ENDPOINT}"
        self.timeout = timeout
        self.output_file = Path(output_file)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "QuoteClient":
        return cls(
            service_url=settings.service_url,
            timeout=settings.client_timeout_seconds,
            output_file=settings.output_file,
            **kwargs,
        )

    async def _request(self) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport) as client:
            return await client.get(self.url, timeout=self.timeout)

    async def run(self) -> str:
        """Fetch the quote, append its bid to the output file and return the bid."""
        try:
            response = await asyncio.wait_for(self._request(), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error("server request timeout exceeded (%.0fms)", self.timeout * 1000)
            raise StageTimeoutError("client", self.timeout) from e
        except httpx.HTTPError as e:
            logger.error("failed to fetch exchange rate from server: %s", e)
            raise TransportError(f"Failed to fetch exchange rate from server: {e}") from e

        if not response.is_success:
            logger.error(
                "server returned HTTP %s: %s", response.status_code, response.text
            )
            raise TransportError(
                f"Server returned HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        quote = RateQuote.from_service(response.content)
        append_bid(self.output_file, quote.bid)
        return quote.bid


def main() -> None:
    settings = Settings()
    init_logging(debug=settings.debug)
    client = QuoteClient.from_settings(settings)
    try:
        bid = asyncio.run(client.run())
    except QuoteError as e:
        logger.error("quote run failed: %s", e)
        sys.exit(1)
    logger.info("Dólar: %s saved to %s", bid, client.output_file)


if __name__ == "__main__":
    main()
