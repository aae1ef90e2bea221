"""
HTTP Transport Client

Sends one JSON-RPC message to the upstream server with a single HTTP POST and
turns whatever comes back into an `RpcOutcome`. There is no retry here; session
recovery is the orchestrator's job.
"""

import json
import logging
from typing import Any

import anyio
import httpx

from mcp_http_bridge.config import DEFAULT_TIMEOUT
from mcp_http_bridge.headers import MCP_SESSION_ID, redact_headers
from mcp_http_bridge.outcome import HttpError, NotFound, RpcOutcome, ServerRpcError, Success, TransportError
from mcp_http_bridge.types import loads_json

logger = logging.getLogger(__name__)

REST_FORBIDDEN = "rest_forbidden"
AUTHENTICATION_FAILED = "Authentication failed: the server rejected the supplied credentials"
MAX_BODY_EXCERPT = 200


def encode_body(payload: Any) -> bytes:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def parse_success_body(text: str) -> list[str]:
    """Split a 2xx body into its JSON lines.

    Lines that are not valid JSON are dropped. A body that only parses as a whole
    (pretty-printed JSON) is returned as a single compact line.
    """
    trimmed = text.strip()
    if not trimmed:
        return []

    messages: list[str] = []
    for raw_line in trimmed.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        try:
            loads_json(line)
        except ValueError as exc:
            logger.debug(f"Invalid JSON in response line: {line[:100]!r} ({exc})")
            continue
        messages.append(line)

    if not messages and "\n" in trimmed:
        try:
            whole = loads_json(trimmed)
        except ValueError:
            return messages
        messages.append(json.dumps(whole, separators=(",", ":"), ensure_ascii=False))
    return messages


def describe_http_error(status: int, text: str, session_id: str | None = None) -> ServerRpcError | HttpError:
    """Derive the best error we can from a non-2xx, non-404 response."""
    try:
        data = loads_json(text) if text.strip() else None
    except ValueError:
        data = None

    if not isinstance(data, dict):
        message = f"HTTP {status}"
        if text.strip():
            message += f": {text.strip()[:MAX_BODY_EXCERPT]}"
        return HttpError(status=status, message=message, session_id=session_id)

    outcome: ServerRpcError | HttpError
    error = data.get("error")
    if "code" in data and isinstance(data.get("message"), str):
        # REST-style error, e.g. {"code": "rest_forbidden", "message": "...", "data": {"status": 401}}
        if data["code"] == REST_FORBIDDEN:
            message = AUTHENTICATION_FAILED if status == 401 else f"Forbidden: {data['message']}"
        else:
            message = data["message"]
        outcome = HttpError(status=status, message=message, session_id=session_id)
    elif isinstance(error, dict):
        message = str(error.get("message") or f"HTTP {status}")
        code = error.get("code")
        if isinstance(code, int) and not isinstance(code, bool):
            outcome = ServerRpcError(status=status, code=code, message=message, session_id=session_id)
        else:
            outcome = HttpError(status=status, message=message, session_id=session_id)
    elif isinstance(data.get("message"), str):
        outcome = HttpError(status=status, message=data["message"], session_id=session_id)
    else:
        message = f"HTTP {status}: {text.strip()[:MAX_BODY_EXCERPT]}"
        outcome = HttpError(status=status, message=message, session_id=session_id)

    details = data.get("data")
    if isinstance(details, dict) and "status" in details:
        outcome.message += f" (status: {details['status']})"
    return outcome


class HttpTransport:
    """Single-attempt JSON-RPC over HTTP POST."""

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.url = url
        self.client = client
        self.timeout = timeout

    async def send(self, headers: dict[str, str], payload: Any) -> RpcOutcome:
        """POST `payload` and classify the response.

        The whole attempt, including reading the body, is bounded by `timeout`.
        Never raises for network or HTTP failures; they come back as outcomes.
        """
        body = encode_body(payload)
        logger.debug(f"HTTP Request: POST {self.url} headers={redact_headers(headers)}")

        try:
            with anyio.fail_after(self.timeout):
                response = await self.client.post(self.url, content=body, headers=headers)
        except TimeoutError:
            logger.debug(f"Request timed out after {self.timeout:g}s")
            return TransportError(message=f"Request timed out after {self.timeout:g}s")
        except httpx.TimeoutException as exc:
            logger.debug(f"Request timed out: {exc!r}")
            return TransportError(message=f"Request timed out after {self.timeout:g}s")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug(f"Request error: {exc!r}")
            return TransportError(message=f"Request error: {str(exc) or type(exc).__name__}")

        session_id = response.headers.get(MCP_SESSION_ID)
        text = response.text
        status = response.status_code
        logger.debug(f"HTTP Response: {status} {text[:MAX_BODY_EXCERPT]!r}")

        if 200 <= status < 300:
            return Success(messages=parse_success_body(text), session_id=session_id)
        if status == 404:
            return NotFound(body=text, session_id=session_id)
        return describe_http_error(status, text, session_id)
