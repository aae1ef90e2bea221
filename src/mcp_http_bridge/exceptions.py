from mcp_http_bridge.types import (
    INVALID_REQUEST,
    PARSE_ERROR,
    SERVER_ERROR,
    ErrorData,
    JSONRPCError,
    RequestId,
)


class BridgeError(Exception):
    """Base exception for errors that are reported to the client as JSON-RPC errors.

    Attributes:
        error: The ErrorData (code and message) sent back to the client
    """

    error: ErrorData

    def __init__(self, error: ErrorData):
        super().__init__(error.message)
        self.error = error

    def to_jsonrpc(self, request_id: RequestId | None = None) -> JSONRPCError:
        return JSONRPCError(error=self.error, id=request_id)


class ConfigurationError(BridgeError):
    """Raised at startup when the bridge cannot be configured. Always fatal."""

    def __init__(self, message: str):
        super().__init__(ErrorData(code=SERVER_ERROR, message=message))


class ParseError(BridgeError):
    """An inbound line is not valid JSON."""

    def __init__(self, detail: str):
        super().__init__(ErrorData(code=PARSE_ERROR, message=f"Parse error: {detail}"))


class InvalidRequestError(BridgeError):
    """An inbound message is valid JSON but not a usable JSON-RPC message."""

    def __init__(self, detail: str):
        super().__init__(ErrorData(code=INVALID_REQUEST, message=f"Invalid Request: {detail}"))


class SessionRecoveryError(BridgeError):
    """Re-initializing an expired session, or the retry that follows it, failed."""

    def __init__(self, error: ErrorData):
        super().__init__(ErrorData(code=error.code, message=f"Session recovery failed: {error.message}"))
