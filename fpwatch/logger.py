import json
import logging
import time
from typing import Callable
from fastapi import Request

from .config import settings

logger = logging.getLogger("fpwatch")
logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
_handler = logging.StreamHandler()
_formatter = logging.Formatter("%(message)s")
_handler.setFormatter(_formatter)
logger.addHandler(_handler)

def log_event(event: str, **fields) -> None:
    record = {"event": event}
    record.update(fields)
    logger.info(json.dumps(record, default=str))

async def log_middleware(request: Request, call_next: Callable):
    t0 = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - t0) * 1000
    log_event(
        "request",
        route=request.url.path,
        status=response.status_code,
        latency_ms=round(latency_ms, 2),
        method=request.method,
    )
    return response
