import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import errors
from .core.config import Settings, get_settings
from .core.logging import init_logging, request_context_middleware
from .db.schema import init_db
from .db.store import RateStore
from .routers import cotacao
from .services.fetcher import UpstreamFetcher
from .services.quote_service import QuoteService

WELCOME_TEXT = "Welcome to the Exchange Rate API!"


def create_app(
    settings_override: Settings | None = None,
    *,
    upstream_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB, tighter budgets). Falls back to
    cached get_settings().
    upstream_transport: optional httpx transport for the feed client, used by
    tests to stand in for the remote provider.
    """
    settings = settings_override or get_settings()
    if settings.db_path is None:
        settings.init_post_load()
    init_logging(debug=settings.debug)

    # Table creation happens once, before any request is accepted
    try:
        init_db(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        logging.getLogger("cotacao").exception("failed to initialize database")
        raise

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(transport=upstream_transport) as client:
            fetcher = UpstreamFetcher(
                client,
                url=settings.upstream_url,
                timeout=settings.upstream_timeout_seconds,
            )
            store = RateStore(
                settings.db_path,  # type: ignore[arg-type]
                timeout=settings.storage_timeout_seconds,
            )
            app.state.quote_service = QuoteService(
                fetcher, store, request_timeout=settings.request_timeout_seconds
            )
            yield

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.QuoteRequestError, errors.quote_request_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.not_found_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(cotacao.router)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return WELCOME_TEXT

    return app


def serve() -> None:
    settings = get_settings()
    uvicorn.run(
        "cotacao.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
