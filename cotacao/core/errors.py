from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette import status

from .logging import STAGE_HEADER

logger = logging.getLogger("cotacao.errors")


class QuoteError(Exception):
    """Base class for every classified pipeline failure."""


class StageTimeoutError(QuoteError):
    def __init__(self, stage: str, budget: float) -> None:
        super().__init__(f"{stage} deadline exceeded ({budget * 1000:.0f}ms)")
        self.stage = stage
        self.budget = budget


class TransportError(QuoteError):
    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(QuoteError):
    pass


class StorageUnavailableError(QuoteError):
    pass


class StorageWriteError(QuoteError):
    pass


class OutputWriteError(QuoteError):
    pass


class QuoteRequestError(QuoteError):
    """A request-fatal failure already mapped to the HTTP status the caller sees."""

    def __init__(self, status_code: int, detail: str, *, stage: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.stage = stage


def quote_request_error_handler(request: Request, exc: QuoteRequestError):  # type: ignore
    return PlainTextResponse(
        exc.detail, status_code=exc.status_code, headers={STAGE_HEADER: exc.stage}
    )


def not_found_handler(request: Request, exc):  # type: ignore
    code = getattr(exc, "status_code", status.HTTP_404_NOT_FOUND)
    if code == status.HTTP_404_NOT_FOUND:
        return PlainTextResponse(
            f"No route for {request.method} {request.url.path}", status_code=code
        )
    return PlainTextResponse(str(getattr(exc, "detail", "")), status_code=code)


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return PlainTextResponse(
        "An unexpected error occurred.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
