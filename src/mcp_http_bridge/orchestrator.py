"""
Request Orchestrator

Drives a single inbound JSON-RPC message through the transport and the session
manager and produces its output:

- requests get either the upstream's response line(s) or one JSON-RPC error
- notifications are forwarded and never answered, even when forwarding fails
- malformed input gets a -32700 or -32600 error without touching the network

When the upstream answers 404, the session is assumed to have expired and is
cleared, whatever the message was. For a request other than `initialize`, a
fresh `initialize` is then sent and the original request is retried once.
Failures during that recovery are reported with the original request's id.
"""

import logging
from collections.abc import Awaitable, Callable

from mcp_http_bridge import __version__
from mcp_http_bridge.config import BridgeConfig
from mcp_http_bridge.exceptions import BridgeError, InvalidRequestError, ParseError, SessionRecoveryError
from mcp_http_bridge.headers import compose_headers
from mcp_http_bridge.outcome import NotFound, RpcOutcome, Success
from mcp_http_bridge.session import SessionManager
from mcp_http_bridge.transport import HttpTransport
from mcp_http_bridge.types import (
    INITIALIZE_METHOD,
    INTERNAL_ERROR,
    ErrorData,
    Implementation,
    InitializeRequestParams,
    JSONRPCError,
    JSONRPCRequest,
    Malformed,
    Notification,
    Request,
    RequestId,
    RpcMessage,
    classify_message,
    loads_json,
)

logger = logging.getLogger(__name__)

OutputWriter = Callable[[str], Awaitable[None]]

BRIDGE_NAME = "mcp-http-bridge"
RECOVERY_REQUEST_ID = 0


def recovery_initialize_request() -> Request:
    """The `initialize` request sent on the client's behalf to re-establish a session."""
    message = JSONRPCRequest(
        id=RECOVERY_REQUEST_ID,
        method=INITIALIZE_METHOD,
        params=InitializeRequestParams(
            client_info=Implementation(name=BRIDGE_NAME, version=__version__),
        ).model_dump(by_alias=True, exclude_none=True),
    )
    payload = message.model_dump(by_alias=True, exclude_none=True)
    return Request(method=INITIALIZE_METHOD, id=RECOVERY_REQUEST_ID, payload=payload)


class RequestOrchestrator:
    """Turns inbound lines into upstream calls and upstream outcomes into output lines.

    Every call to `handle_line` is independent, so lines can be handled
    concurrently. The only state shared between them is the session held by
    `sessions`.
    """

    def __init__(
        self,
        config: BridgeConfig,
        transport: HttpTransport,
        write_line: OutputWriter,
        sessions: SessionManager | None = None,
    ) -> None:
        self.config = config
        self.transport = transport
        self.write_line = write_line
        self.sessions = sessions or SessionManager()

    async def handle_line(self, line: str) -> None:
        """Handle one line of input. Blank lines are ignored."""
        if not line.strip():
            return

        logger.debug(f"Received: {line.strip()}")
        try:
            data = loads_json(line)
        except ValueError as exc:
            # parse errors never carry an id
            await self._reply_error(ParseError(str(exc)).error, None)
            return

        await self.handle_message(classify_message(data))

    async def handle_message(self, message: RpcMessage) -> None:
        try:
            if isinstance(message, Malformed):
                await self._reply_error(InvalidRequestError(message.reason).error, message.id)
            elif isinstance(message, Notification):
                await self._forward_notification(message)
            else:
                await self._forward_request(message)
        except Exception:
            logger.exception("Unhandled error while processing message")
            if isinstance(message, Request):
                await self._reply_error(ErrorData(code=INTERNAL_ERROR, message="Internal error"), message.id)

    async def dispatch(self, request: Request) -> list[str]:
        """Forward `request` upstream and return the response lines.

        Recovers from an expired session exactly once.

        Raises:
            BridgeError: the upstream call, or the recovery, failed
        """
        outcome = await self._call(request)

        if isinstance(outcome, NotFound) and not request.is_initialize:
            logger.debug(f"Session not found for {request.method} (id={request.id!r}), re-initializing")
            outcome = await self._recover(request)

        if isinstance(outcome, Success):
            return outcome.messages
        raise BridgeError(outcome.to_error_data())

    async def _recover(self, request: Request) -> Success:
        init_outcome = await self._call(recovery_initialize_request())
        if not isinstance(init_outcome, Success):
            logger.debug(f"Re-initialization failed: {init_outcome}")
            raise SessionRecoveryError(init_outcome.to_error_data())
        logger.debug(f"Session re-established, retrying {request.method} (id={request.id!r})")

        retry_outcome = await self._call(request)
        if not isinstance(retry_outcome, Success):
            logger.debug(f"Retry after re-initialization failed: {retry_outcome}")
            raise SessionRecoveryError(retry_outcome.to_error_data())
        return retry_outcome

    async def _call(self, message: Request | Notification) -> RpcOutcome:
        is_initialize = message.is_initialize
        headers = compose_headers(self.config, self.sessions, is_initialize)
        outcome = await self.transport.send(headers, message.payload)
        if isinstance(outcome, Success):
            self.sessions.on_response(is_initialize, outcome.session_id)
        elif isinstance(outcome, NotFound):
            self.sessions.on_not_found()
        return outcome

    async def _forward_request(self, request: Request) -> None:
        try:
            messages = await self.dispatch(request)
        except BridgeError as exc:
            await self._reply_error(exc.error, request.id)
            return

        if not messages:
            logger.debug(f"Empty response for {request.method} (id={request.id!r})")
        for line in messages:
            await self.write_line(line)

    async def _forward_notification(self, notification: Notification) -> None:
        outcome = await self._call(notification)
        if not isinstance(outcome, Success):
            logger.debug(f"Notification {notification.method} failed: {outcome}")

    async def _reply_error(self, error: ErrorData, request_id: RequestId | None) -> None:
        line = JSONRPCError(error=error, id=request_id).to_line()
        logger.debug(f"Error response: {line}")
        await self.write_line(line)
