"""Wires stdin, the orchestrator and the upstream HTTP client together."""

import logging
import signal
import sys
from collections.abc import AsyncIterable

import anyio
import httpx
from anyio import CancelScope

from mcp_http_bridge._httpx_utils import BridgeHttpClientFactory, create_bridge_http_client
from mcp_http_bridge.config import BridgeConfig
from mcp_http_bridge.headers import redact_headers
from mcp_http_bridge.orchestrator import RequestOrchestrator
from mcp_http_bridge.stdio import LineWriter, serve_lines, stdin_lines, stdout_file
from mcp_http_bridge.transport import HttpTransport

logger = logging.getLogger(__name__)


async def _cancel_on_signal(scope: CancelScope, interrupted: anyio.Event) -> None:
    with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
        async for signum in signals:
            logger.debug(f"Received {signal.Signals(signum).name}")
            interrupted.set()
            scope.cancel()
            return


async def run_bridge(
    config: BridgeConfig,
    stdin: AsyncIterable[str] | None = None,
    stdout: anyio.AsyncFile[str] | None = None,
    httpx_client_factory: BridgeHttpClientFactory = create_bridge_http_client,
    handle_signals: bool = True,
) -> bool:
    """Run the bridge until end of input or a termination signal.

    Returns:
        True if the bridge stopped because of SIGINT/SIGTERM, False on end of input
    """
    if stdin is None:
        stdin = stdin_lines()
    if stdout is None:
        stdout = stdout_file()

    logger.debug("Configuration:")
    logger.debug(f"  Endpoint: {config.url}")
    logger.debug(f"  HTTPS: {config.endpoint.scheme == 'https'}")
    logger.debug(f"  Custom Headers: {redact_headers(config.custom_headers)}")

    interrupted = anyio.Event()
    write_line = LineWriter(stdout)

    async with httpx_client_factory(timeout=httpx.Timeout(config.timeout)) as client:
        transport = HttpTransport(config.url, client, timeout=config.timeout)
        orchestrator = RequestOrchestrator(config, transport, write_line)

        async with anyio.create_task_group() as tg:
            if handle_signals and sys.platform != "win32":
                tg.start_soon(_cancel_on_signal, tg.cancel_scope, interrupted)
            await serve_lines(stdin, orchestrator.handle_line)
            tg.cancel_scope.cancel()

    return interrupted.is_set()
