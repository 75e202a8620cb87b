from __future__ import annotations

"""Upstream USD-BRL feed client.

One GET per call, no retry and no cache. The call is bounded by its own
sub-budget, capped by whatever the caller has left, and every failure is
classified before it leaves this module:

    deadline expiry            -> StageTimeoutError("fetch")
    network error / non-2xx    -> TransportError
    body not matching the feed -> ParseError
"""
import asyncio
import logging
from typing import Optional

import httpx

from cotacao.core.deadline import Deadline, stage_deadline
from cotacao.core.errors import StageTimeoutError, TransportError
from cotacao.models import RateQuote

logger = logging.getLogger("cotacao.fetcher")

DEFAULT_UPSTREAM_URL = "https://economia.awesomeapi.com.br/json/last/USD-BRL"


class UpstreamFetcher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        url: str = DEFAULT_UPSTREAM_URL,
        timeout: float = 0.2,
    ):
        self._client = client
        self.url = url
        self.timeout = timeout

    async def fetch(self, deadline: Optional[Deadline] = None) -> RateQuote:
        stage = stage_deadline(self.timeout, deadline)
        budget = stage.remaining()
        try:
            response = await asyncio.wait_for(
                self._client.get(self.url, timeout=budget), timeout=budget
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning("upstream request timeout exceeded (%.0fms)", budget * 1000)
            raise StageTimeoutError("fetch", budget) from e
        except httpx.HTTPError as e:
            logger.error("failed to fetch exchange rate: %s", e)
            raise TransportError(f"Failed to fetch exchange rate: {e}") from e

        if not response.is_success:
            logger.error("upstream returned HTTP %s", response.status_code)
            raise TransportError(
                f"Upstream returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        quote = RateQuote.from_upstream(response.content)
        logger.debug("fetched quote bid=%s timestamp=%s", quote.bid, quote.timestamp)
        return quote
