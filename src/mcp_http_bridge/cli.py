"""Command-line entry point for the MCP stdio-to-HTTP bridge."""

import logging
import os
import sys

import anyio
import click

from mcp_http_bridge import __version__
from mcp_http_bridge.bridge import run_bridge
from mcp_http_bridge.config import load_config
from mcp_http_bridge.exceptions import ConfigurationError
from mcp_http_bridge.logging import configure_logging

logger = logging.getLogger(__name__)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--endpoint", default=None, help="HTTP(S) endpoint of the MCP server. Defaults to $MCP_ENDPOINT.")
@click.option("--token", "auth_token", default=None, help="Bearer token. Defaults to $MCP_AUTH_TOKEN.")
@click.option(
    "--headers",
    "custom_headers",
    default=None,
    help='Extra headers as JSON (\'{"X-API-Key": "abc"}\') or "Key:Value,Key2:Value2". Defaults to $CUSTOM_HEADERS.',
)
@click.option("--debug", is_flag=True, default=False, help="Log diagnostics to stderr. Defaults to $MCP_DEBUG.")
@click.version_option(__version__, prog_name="mcp-http-bridge")
def main(endpoint: str | None, auth_token: str | None, custom_headers: str | None, debug: bool) -> None:
    """Bridge a stdio MCP client to an HTTP MCP server.

    Reads one JSON-RPC message per line from stdin, POSTs it to the endpoint and
    writes the server's responses to stdout, one per line.
    """
    try:
        config = load_config(
            endpoint=endpoint,
            auth_token=auth_token,
            custom_headers=custom_headers,
            debug=True if debug else None,
        )
    except ConfigurationError as exc:
        click.echo(exc.to_jsonrpc().to_line())
        sys.exit(1)

    configure_logging("DEBUG" if config.debug else "ERROR")

    try:
        interrupted = anyio.run(run_bridge, config)
    except KeyboardInterrupt:
        logger.debug("Bridge interrupted")
        interrupted = True

    if interrupted:
        # A stdin read may still be blocked in a worker thread; do not wait for it.
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(0)
