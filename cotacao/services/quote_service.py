"""Request orchestration: fetch, then persist, then respond.

Stages run strictly in order and the first failure aborts the request.
Fetch timeouts surface as 408; every other failure, including any storage
failure after a successful fetch, surfaces as 500. A quote that cannot be
recorded is not served.
"""

from __future__ import annotations

import enum
import logging
from typing import Optional

from starlette import status

from cotacao.core.deadline import Deadline
from cotacao.core.errors import (
    ParseError,
    QuoteError,
    QuoteRequestError,
    StageTimeoutError,
    TransportError,
)
from cotacao.db.store import RateStore
from cotacao.models import RateQuote

from .fetcher import UpstreamFetcher

logger = logging.getLogger("cotacao.service")


class Stage(str, enum.Enum):
    RECEIVED = "received"
    FETCHING = "fetching"
    PERSISTING = "persisting"
    RESPONDING = "responding"


class QuoteService:
    def __init__(
        self,
        fetcher: UpstreamFetcher,
        store: RateStore,
        *,
        request_timeout: Optional[float] = None,
    ):
        self._fetcher = fetcher
        self._store = store
        self.request_timeout = request_timeout

    def _enter(self, stage: Stage) -> None:
        logger.debug("stage %s", stage.value, extra={"stage": stage.value})

    async def get_quote(self, deadline: Optional[Deadline] = None) -> RateQuote:
        self._enter(Stage.RECEIVED)
        if deadline is None and self.request_timeout is not None:
            deadline = Deadline.after(self.request_timeout)

        self._enter(Stage.FETCHING)
        try:
            quote = await self._fetcher.fetch(deadline)
        except StageTimeoutError as e:
            raise QuoteRequestError(
                status.HTTP_408_REQUEST_TIMEOUT, "API request timeout", stage=Stage.FETCHING.value
            ) from e
        except (TransportError, ParseError) as e:
            logger.error("fetch failed: %s", e, extra={"stage": Stage.FETCHING.value})
            detail = (
                "Failed to parse exchange rate response"
                if isinstance(e, ParseError)
                else "Failed to fetch exchange rate"
            )
            raise QuoteRequestError(
                status.HTTP_500_INTERNAL_SERVER_ERROR, detail, stage=Stage.FETCHING.value
            ) from e

        self._enter(Stage.PERSISTING)
        try:
            await self._store.persist(quote, deadline)
        except QuoteError as e:
            logger.error("persist failed: %s", e, extra={"stage": Stage.PERSISTING.value})
            raise QuoteRequestError(
                status.HTTP_500_INTERNAL_SERVER_ERROR, str(e), stage=Stage.PERSISTING.value
            ) from e

        self._enter(Stage.RESPONDING)
        return quote
