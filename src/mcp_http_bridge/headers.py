"""Composition of the HTTP headers sent with every upstream call."""

from collections.abc import Mapping

from mcp_http_bridge.config import BridgeConfig
from mcp_http_bridge.session import SessionManager

MCP_SESSION_ID = "Mcp-Session-Id"
CONTENT_TYPE = "Content-Type"
ACCEPT = "Accept"
AUTHORIZATION = "Authorization"

JSON = "application/json"

_SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie", "x-api-key"})


def compose_headers(config: BridgeConfig, sessions: SessionManager, is_initialize: bool) -> dict[str, str]:
    """Build the header set for one upstream call.

    Custom headers override the defaults on an exact (case-sensitive) key match.
    The session header is added last and never on an `initialize` call, so a
    re-handshake always starts without a session.
    """
    headers = {
        CONTENT_TYPE: JSON,
        ACCEPT: JSON,
    }
    if config.auth_token:
        headers[AUTHORIZATION] = f"Bearer {config.auth_token}"

    headers.update(config.custom_headers)

    session_id = sessions.session_id
    if session_id is not None and sessions.should_attach_session(is_initialize):
        headers[MCP_SESSION_ID] = session_id
    return headers


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of `headers` safe to write to the diagnostic log."""
    return {key: "***" if key.lower() in _SENSITIVE_HEADERS else value for key, value in headers.items()}
