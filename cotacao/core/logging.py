import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        rid = request_id_ctx.get()
        record.request_id = rid or "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        base: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "request_id": getattr(record, "request_id", "-"),
        }
        stage = getattr(record, "stage", None)
        if stage is not None:
            base["stage"] = stage
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


def init_logging(debug: bool = False) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    level = logging.DEBUG if debug else logging.INFO
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


# Set by the QuoteRequestError handler; names the stage that aborted the request.
STAGE_HEADER = "X-Quote-Stage"


async def request_context_middleware(request, call_next):  # type: ignore
    rid = str(uuid.uuid4())
    token = request_id_ctx.set(rid)
    logger = logging.getLogger("cotacao.request")
    started = time.monotonic()
    logger.debug("request start %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        elapsed_ms = (time.monotonic() - started) * 1000
        failed_stage = response.headers.get(STAGE_HEADER)
        if failed_stage is None:
            logger.info(
                "%s %s -> %s in %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
        else:
            logger.warning(
                "%s %s aborted while %s -> %s in %.1fms",
                request.method,
                request.url.path,
                failed_stage,
                response.status_code,
                elapsed_ms,
                extra={"stage": failed_stage},
            )
        return response
    finally:
        request_id_ctx.reset(token)
