from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import httpx

from qbadmin.infra.gateway.client import ApiGateway, SessionExpiry
from qbadmin.infra.notify.interaction import RecordingNavigator
from qbadmin.infra.notify.recording import RecordingNotifier
from qbadmin.infra.tokens.memory import MemoryTokenStore

BASE_URL = "http://backend.test/api"

Reply = dict[str, Any] | httpx.Response | Callable[[httpx.Request], Any]


def ok(data: Any = None, message: str = "success") -> dict[str, Any]:
    return {"code": 200, "message": message, "data": data}


def fail(code: int, message: str) -> dict[str, Any]:
    return {"code": code, "message": message, "data": None}


class FakeBackend:
    """Routes ``(method, path)`` to canned envelopes and records every request."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Reply] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, reply: Reply) -> "FakeBackend":
        self.routes[(method.upper(), path)] = reply
        return self

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api") :]
        reply = self.routes.get((request.method, path))
        if reply is None:
            return httpx.Response(404, json={"code": 404, "message": f"no route {request.method} {path}"})
        if callable(reply):
            reply = reply(request)
            if asyncio.iscoroutine(reply):
                reply = await reply
        if isinstance(reply, httpx.Response):
            # Canned responses may be served more than once.
            return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)
        return httpx.Response(200, json=reply)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def calls(self, method: str | None = None, path: str | None = None) -> list[httpx.Request]:
        matched = []
        for request in self.requests:
            request_path = request.url.path[len("/api") :] if request.url.path.startswith("/api") else request.url.path
            if method is not None and request.method != method.upper():
                continue
            if path is not None and request_path != path:
                continue
            matched.append(request)
        return matched

    def mutations(self) -> list[httpx.Request]:
        return [request for request in self.requests if request.method != "GET"]


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content.decode("utf-8") or "null")


def make_gateway(
    backend: FakeBackend,
    *,
    token: str | None = "token-1",
    expiry: SessionExpiry | None = None,
) -> tuple[ApiGateway, RecordingNotifier, RecordingNavigator, MemoryTokenStore]:
    store = MemoryTokenStore({"wx_admin_token": token} if token else None)
    notifier = RecordingNotifier()
    navigator = RecordingNavigator()
    gateway = ApiGateway(
        base_url=BASE_URL,
        token_store=store,
        notifier=notifier,
        navigator=navigator,
        expiry=expiry,
        transport=backend.transport(),
    )
    return gateway, notifier, navigator, store
