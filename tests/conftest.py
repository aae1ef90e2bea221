import httpx
import pytest

from mcp_http_bridge.config import BridgeConfig
from mcp_http_bridge.orchestrator import RequestOrchestrator
from mcp_http_bridge.session import SessionManager
from mcp_http_bridge.transport import HttpTransport
from tests.test_helpers import FakeUpstream, OutputCollector

ENDPOINT = "http://example.com/mcp"

BRIDGE_ENV_VARS = ("MCP_ENDPOINT", "WP_MCP_ENDPOINT", "MCP_AUTH_TOKEN", "CUSTOM_HEADERS", "MCP_DEBUG")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_bridge_env(monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's own MCP_* variables out of the tests."""
    for name in BRIDGE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def output() -> OutputCollector:
    return OutputCollector()


@pytest.fixture
def config() -> BridgeConfig:
    return BridgeConfig.model_validate({"endpoint": ENDPOINT})


@pytest.fixture
def http_client(upstream: FakeUpstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream))


@pytest.fixture
def transport(config: BridgeConfig, http_client: httpx.AsyncClient) -> HttpTransport:
    return HttpTransport(config.url, http_client, timeout=config.timeout)


@pytest.fixture
def sessions() -> SessionManager:
    return SessionManager()


@pytest.fixture
def orchestrator(
    config: BridgeConfig, transport: HttpTransport, output: OutputCollector, sessions: SessionManager
) -> RequestOrchestrator:
    return RequestOrchestrator(config, transport, output, sessions)
