"""JSON-RPC types used on both sides of the bridge.

Inbound lines are classified into `Request`, `Notification` or `Malformed`
without round-tripping them through a model, so unknown fields are forwarded
to the upstream server untouched. Locally generated messages (error replies and
the recovery `initialize` request) are pydantic models.
"""

import json
import math
from dataclasses import dataclass, field
from typing import Annotated, Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION: Final[str] = "2.0"
LATEST_PROTOCOL_VERSION: Final[str] = "2025-06-18"

PARSE_ERROR: Final[int] = -32700
INVALID_REQUEST: Final[int] = -32600
INTERNAL_ERROR: Final[int] = -32603
SERVER_ERROR: Final[int] = -32000

INITIALIZE_METHOD: Final[str] = "initialize"

RequestId = Annotated[int, Field(strict=True)] | float | str


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {text}")
    return value


def loads_json(text: str | bytes) -> Any:
    """Decode strict JSON.

    Unlike `json.loads`, the non-standard constants `NaN`, `Infinity` and
    `-Infinity` are rejected with a `ValueError`, as are numbers too large to
    be written back out as JSON (e.g. `1e400`).
    """
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


class ErrorData(BaseModel):
    """Error information in a JSON-RPC error response."""

    code: int
    message: str


class JSONRPCError(BaseModel):
    """A response to a request that indicates an error occurred.

    `id` is always serialized, as `null` when the request id is unknown.
    """

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    error: ErrorData
    id: RequestId | None = None

    def to_line(self) -> str:
        return self.model_dump_json()


class Implementation(BaseModel):
    """Name and version of an MCP implementation."""

    model_config = ConfigDict(extra="allow")

    name: str
    version: str


class InitializeRequestParams(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    protocol_version: str = Field(LATEST_PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    client_info: Implementation = Field(alias="clientInfo")


class JSONRPCRequest(BaseModel):
    """A request that expects a response."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId
    method: str
    params: dict[str, Any] | None = None


@dataclass(frozen=True)
class Request:
    """An inbound message carrying `method` and `id`.

    `id` may be `None` when the client sent an explicit `"id": null`.
    """

    method: str
    id: RequestId | None
    payload: dict[str, Any] = field(repr=False)

    @property
    def is_initialize(self) -> bool:
        return self.method == INITIALIZE_METHOD


@dataclass(frozen=True)
class Notification:
    """An inbound message carrying `method` but no `id`."""

    method: str
    payload: dict[str, Any] = field(repr=False)

    @property
    def is_initialize(self) -> bool:
        return False


@dataclass(frozen=True)
class Malformed:
    """Valid JSON that is not an acceptable JSON-RPC request or notification."""

    id: RequestId | None
    reason: str


RpcMessage = Request | Notification | Malformed


def _is_valid_id(value: Any) -> bool:
    # bool is a subclass of int but never a legal id
    return value is None or (isinstance(value, int | float | str) and not isinstance(value, bool))


def classify_message(data: Any) -> RpcMessage:
    """Sort a decoded JSON value into one of the `RpcMessage` variants."""
    if not isinstance(data, dict):
        return Malformed(id=None, reason="Message must be a JSON object")

    raw_id = data.get("id")
    echo_id = raw_id if "id" in data and _is_valid_id(raw_id) else None

    if data.get("jsonrpc") != JSONRPC_VERSION:
        return Malformed(id=echo_id, reason='"jsonrpc" must be "2.0"')

    method = data.get("method")
    if not isinstance(method, str) or not method:
        return Malformed(id=echo_id, reason='"method" must be a non-empty string')

    if "id" not in data:
        return Notification(method=method, payload=data)

    if not _is_valid_id(raw_id):
        return Malformed(id=None, reason='"id" must be a string, number or null')

    return Request(method=method, id=raw_id, payload=data)
