"""Common test utilities: a scripted upstream server and a stdout stand-in."""

import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

UpstreamReply = httpx.Response | Exception | Callable[[httpx.Request], Awaitable[httpx.Response]]


class FakeUpstream:
    """Scripted upstream MCP server, used as an httpx.MockTransport handler.

    Replies are consumed in order, one per request. An exception is raised
    instead of answering; a coroutine function is awaited for the response.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.replies: list[UpstreamReply] = []

    def reply(self, *replies: UpstreamReply) -> "FakeUpstream":
        self.replies.extend(replies)
        return self

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected upstream request: {request.content!r}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return await reply(request)

    @property
    def bodies(self) -> list[Any]:
        return [json.loads(request.content) for request in self.requests]

    @property
    def session_headers(self) -> list[str | None]:
        return [request.headers.get("mcp-session-id") for request in self.requests]


class OutputCollector:
    """Stands in for stdout; records every line the bridge writes."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    async def __call__(self, line: str) -> None:
        assert "\n" not in line
        self.lines.append(line)

    @property
    def messages(self) -> list[Any]:
        return [json.loads(line) for line in self.lines]


def jsonrpc_result(request_id: Any, result: dict[str, Any] | None = None, **kwargs: Any) -> httpx.Response:
    """A 200 response carrying one JSON-RPC result, serialized compactly."""
    body = json.dumps({"jsonrpc": "2.0", "id": request_id, "result": result or {}}, separators=(",", ":"))
    return httpx.Response(200, content=body.encode(), **kwargs)


def request_line(request_id: Any, method: str = "tools/list", params: dict[str, Any] | None = None) -> str:
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return json.dumps(message)
