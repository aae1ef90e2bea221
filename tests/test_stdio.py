import io
import json
from collections.abc import AsyncIterator
from typing import Any

import anyio
import httpx
import pytest

from mcp_http_bridge.bridge import run_bridge
from mcp_http_bridge.config import BridgeConfig
from mcp_http_bridge.stdio import LineWriter, read_lines, serve_lines
from tests.test_helpers import jsonrpc_result, request_line


async def lines_then_wait(lines: list[str], done: anyio.Event) -> AsyncIterator[str]:
    """Feed `lines`, then hold the input open until `done` is set."""
    for line in lines:
        yield line
    await done.wait()


@pytest.mark.anyio
async def test_read_lines():
    stream = io.StringIO('{"a":1}\n\n{"b":2}')

    lines = [line async for line in read_lines(stream)]

    assert lines == ['{"a":1}\n', "\n", '{"b":2}']


@pytest.mark.anyio
async def test_line_writer_appends_newline_and_flushes():
    stdout = io.StringIO()
    write_line = LineWriter(anyio.AsyncFile(stdout))

    await write_line('{"a":1}')
    await write_line('{"b":2}')

    assert stdout.getvalue() == '{"a":1}\n{"b":2}\n'


@pytest.mark.anyio
async def test_serve_lines_skips_blank_lines():
    handled: list[str] = []
    done = anyio.Event()

    async def handle(line: str) -> None:
        handled.append(line)
        if len(handled) == 2:
            done.set()

    with anyio.fail_after(5):
        await serve_lines(lines_then_wait(["one\n", "\n", "   \n", "two\n"], done), handle)

    assert handled == ["one\n", "two\n"]


@pytest.mark.anyio
async def test_serve_lines_does_not_wait_for_previous_line():
    """A slow handler must not hold up the lines behind it."""
    finished: list[str] = []
    release_slow = anyio.Event()
    done = anyio.Event()

    async def handle(line: str) -> None:
        if line == "slow":
            await release_slow.wait()
        finished.append(line)
        if line == "fast":
            release_slow.set()
        if len(finished) == 2:
            done.set()

    with anyio.fail_after(5):
        await serve_lines(lines_then_wait(["slow", "fast"], done), handle)

    assert finished == ["fast", "slow"]


@pytest.mark.anyio
async def test_serve_lines_cancels_in_flight_work_at_end_of_input():
    cancelled = False

    async def handle(line: str) -> None:
        nonlocal cancelled
        try:
            await anyio.sleep_forever()
        finally:
            cancelled = True

    async def one_line() -> AsyncIterator[str]:
        yield "line"
        await anyio.sleep(0.01)

    with anyio.fail_after(5):
        await serve_lines(one_line(), handle)

    assert cancelled


@pytest.mark.anyio
async def test_run_bridge_end_to_end():
    config = BridgeConfig.model_validate({"endpoint": "http://example.com/mcp", "custom_headers": {"X-A": "1"}})
    stdout = io.StringIO()
    requests: list[httpx.Request] = []

    async def upstream(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        body = json.loads(request.content)
        if "id" not in body:
            return httpx.Response(202)
        headers = {"Mcp-Session-Id": "S1"} if body["method"] == "initialize" else {}
        return jsonrpc_result(body["id"], headers=headers)

    async def stdin() -> AsyncIterator[str]:
        yield request_line(1, "initialize", {"protocolVersion": "2025-06-18", "capabilities": {}}) + "\n"
        yield '{"jsonrpc": "2.0", "method": "notifications/initialized"}\n'
        yield "\n"
        yield "garbage\n"
        yield request_line(2) + "\n"
        while stdout.getvalue().count("\n") < 3:
            await anyio.sleep(0.01)

    def client_factory(**kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(upstream), **kwargs)

    with anyio.fail_after(5):
        interrupted = await run_bridge(
            config,
            stdin=stdin(),
            stdout=anyio.AsyncFile(stdout),
            httpx_client_factory=client_factory,
            handle_signals=False,
        )

    assert interrupted is False
    messages = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert len(messages) == 3
    assert sorted(str(message["id"]) for message in messages) == ["1", "2", "None"]
    [parse_error] = [message for message in messages if message["id"] is None]
    assert parse_error["error"]["code"] == -32700
    assert len(requests) == 3
    assert all(request.headers["x-a"] == "1" for request in requests)
