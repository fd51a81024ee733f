from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

import httpx

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")

HEADER = "X-Request-ID"


@contextmanager
def request_scope(cid: str | None = None) -> Iterator[str]:
    """Tag every request made inside the block with one request id."""
    cid = cid or uuid.uuid4().hex
    token = correlation_id_ctx.set(cid)
    try:
        yield cid
    finally:
        correlation_id_ctx.reset(token)


async def attach_correlation_id(request: httpx.Request) -> None:
    """httpx request hook: tag every outgoing request with a request id."""
    cid = correlation_id_ctx.get() or uuid.uuid4().hex
    request.headers[HEADER] = cid
