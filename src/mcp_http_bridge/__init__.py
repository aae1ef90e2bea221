"""Stdio-to-HTTP bridge for MCP servers with automatic session recovery."""

__version__ = "0.1.0"

from mcp_http_bridge.config import BridgeConfig, load_config  # noqa: E402
from mcp_http_bridge.exceptions import BridgeError, ConfigurationError  # noqa: E402
from mcp_http_bridge.orchestrator import RequestOrchestrator  # noqa: E402
from mcp_http_bridge.session import SessionManager, SessionState  # noqa: E402

__all__ = [
    "BridgeConfig",
    "BridgeError",
    "ConfigurationError",
    "RequestOrchestrator",
    "SessionManager",
    "SessionState",
    "__version__",
    "load_config",
]
