"""Quote router.

Endpoints:
    - GET /cotacao -> fresh USD-BRL quote, fetched and recorded per request

Failures are raised as QuoteRequestError and rendered as plain text by the
handler registered in the application factory.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from cotacao.services.quote_service import QuoteService

router = APIRouter(tags=["cotacao"])


def get_quote_service(request: Request) -> QuoteService:
    return request.app.state.quote_service


@router.get("/cotacao", summary="Current USD-BRL exchange rate")
async def get_cotacao(svc: QuoteService = Depends(get_quote_service)) -> Response:
    quote = await svc.get_quote()
    return Response(content=quote.to_json(), media_type="application/json")
