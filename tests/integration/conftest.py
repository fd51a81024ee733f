"""FastAPI stand-in for the platform REST API, served in-process over ASGI."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from chat_client.infrastructure.http.api_client import HttpMessagingApi, create_http_client

API_BASE = "http://testserver/api"
TOKEN = "session-token"


@dataclass
class StubBackend:
    conversations: list[dict[str, Any]] = field(default_factory=list)
    messages: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    forbidden: set[str] = field(default_factory=set)
    directories: dict[str, Any] = field(default_factory=dict)
    unread: int = 0
    notifications: list[dict[str, Any]] = field(default_factory=list)
    fail_status: int | None = None
    sent: list[dict[str, Any]] = field(default_factory=list)
    read: list[str] = field(default_factory=list)
    notifications_read: list[str] = field(default_factory=list)
    requests: list[dict[str, Any]] = field(default_factory=list)


def create_stub_app(backend: StubBackend) -> FastAPI:
    app = FastAPI(title="Platform API stub")
    router = APIRouter(prefix="/api")

    @app.middleware("http")
    async def _record(request: Request, call_next):
        backend.requests.append(
            {
                "method": request.method,
                "path": request.url.path,
                "query": dict(request.query_params),
                "headers": dict(request.headers),
                "cookies": dict(request.cookies),
            }
        )
        if backend.fail_status is not None:
            return JSONResponse({"message": "Server error"}, status_code=backend.fail_status)
        response = await call_next(request)
        if "x-request-id" in request.headers:
            response.headers["X-Request-ID"] = request.headers["x-request-id"]
        return response

    @router.get("/messages/conversations")
    async def conversations():
        return {"success": True, "conversations": backend.conversations}

    @router.get("/messages/conversation/{user_id}")
    async def conversation(user_id: str):
        if user_id in backend.forbidden:
            return JSONResponse(
                {"success": False, "message": "Not authorized to view this conversation"},
                status_code=403,
            )
        return {"success": True, "messages": backend.messages.get(user_id, [])}

    @router.post("/messages/send")
    async def send(request: Request):
        body = await request.json()
        backend.sent.append(body)
        if body["receiverId"] in backend.forbidden:
            return JSONResponse(
                {"success": False, "message": "Not authorized"}, status_code=403,
            )
        return {
            "success": True,
            "message": {
                "_id": f"m-{len(backend.sent)}",
                "sender": {"_id": "s-1", "name": "Sam"},
                "receiver": body["receiverId"],
                "content": body["content"],
                "createdAt": "2024-05-01T09:30:00Z",
                "isRead": False,
                "senderType": body["senderType"],
                "clientMsgId": body.get("clientMsgId"),
            },
        }

    @router.put("/messages/read/{user_id}")
    async def mark_read(user_id: str):
        backend.read.append(user_id)
        return {"success": True}

    @router.get("/tutor/public")
    async def public_tutors():
        return backend.directories.get("/tutor/public", {"tutors": []})

    @router.get("/student/assigned-tutors")
    async def assigned_tutors():
        return backend.directories.get("/student/assigned-tutors", [])

    @router.get("/tutor/assigned-students")
    async def assigned_students():
        return backend.directories.get("/tutor/assigned-students", {"students": []})

    @router.get("/notifications/unread/count")
    async def unread_count():
        return {"success": True, "data": {"unreadCount": backend.unread}}

    @router.get("/notifications")
    async def notifications(limit: int = 10):
        return {"success": True, "data": backend.notifications[:limit]}

    @router.put("/notifications/read-all")
    async def read_all():
        backend.notifications_read.append("*")
        return {"success": True}

    @router.put("/notifications/{notification_id}/read")
    async def read_one(notification_id: str):
        backend.notifications_read.append(notification_id)
        return {"success": True}

    app.include_router(router)
    return app


@pytest.fixture
def backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def stub_app(backend) -> FastAPI:
    return create_stub_app(backend)


@pytest.fixture
def http_transport(stub_app) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=stub_app)


@pytest_asyncio.fixture
async def http_api(http_transport):
    client = create_http_client(API_BASE, TOKEN, timeout=5, transport=http_transport)
    api = HttpMessagingApi(client, media_base_url="http://testserver")
    yield api
    await api.aclose()
