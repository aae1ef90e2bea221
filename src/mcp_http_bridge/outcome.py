"""Results of a single HTTP round trip to the upstream server."""

from dataclasses import dataclass, field

from mcp_http_bridge.types import SERVER_ERROR, ErrorData


@dataclass
class RpcOutcome:
    """Base class for every outcome.

    `session_id` is the session header found on the response, whatever its status.
    """

    session_id: str | None = field(default=None, kw_only=True)


@dataclass
class Success(RpcOutcome):
    """2xx response. `messages` holds each JSON line of the body, in order."""

    messages: list[str] = field(default_factory=list)


@dataclass
class ServerRpcError(RpcOutcome):
    """Non-2xx response whose body carried a JSON-RPC `error` object."""

    status: int
    code: int
    message: str

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.code, message=self.message)


@dataclass
class HttpError(RpcOutcome):
    """Non-2xx response (other than 404) without a usable JSON-RPC error."""

    status: int
    message: str
    code: int | None = None

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.code if self.code is not None else SERVER_ERROR, message=self.message)


@dataclass
class NotFound(RpcOutcome):
    """HTTP 404: the upstream no longer knows our session."""

    body: str = ""
    status: int = 404

    def to_error_data(self) -> ErrorData:
        message = f"HTTP {self.status}"
        if self.body.strip():
            message += f": {self.body.strip()[:200]}"
        return ErrorData(code=SERVER_ERROR, message=message)


@dataclass
class TransportError(RpcOutcome):
    """The request never produced a response (connection failure, timeout)."""

    message: str
    code: int | None = None

    def to_error_data(self) -> ErrorData:
        return ErrorData(code=self.code if self.code is not None else SERVER_ERROR, message=self.message)

