"""Stdio Line Protocol Module

Reads newline-delimited JSON-RPC messages from stdin and writes
newline-delimited JSON-RPC messages to stdout. Every non-blank input line is
handled in its own task, so a slow upstream call never blocks reading.

Example:
    ```python
    async def echo(line: str) -> None:
        await write_line(line.strip())

    write_line = LineWriter(stdout_file())
    anyio.run(serve_lines, stdin_lines(), echo)
    ```
"""

import logging
import sys
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from io import TextIOWrapper
from typing import TextIO

import anyio
import anyio.to_thread

logger = logging.getLogger(__name__)

LineHandler = Callable[[str], Awaitable[None]]


class _NonClosingTextIOWrapper(TextIOWrapper):
    """Text wrapper that never closes the underlying binary stream.

    The bridge should not close the process' real stdin/stdout handles when its
    tasks wind down.
    """

    def close(self) -> None:
        if self.closed:
            return

        if self.writable():
            self.flush()


async def read_lines(stream: TextIO) -> AsyncIterator[str]:
    """Yield lines from a blocking text stream until end of input.

    Each read runs in a worker thread that is abandoned on cancellation, so a
    read blocked on an idle stdin never holds up shutdown.
    """
    while True:
        line = await anyio.to_thread.run_sync(stream.readline, abandon_on_cancel=True)
        if not line:
            return
        yield line


def stdin_lines() -> AsyncIterator[str]:
    # Re-wrap the binary stream so input is always read as UTF-8, whatever the platform default.
    return read_lines(_NonClosingTextIOWrapper(sys.stdin.buffer, encoding="utf-8", newline=""))


def stdout_file() -> anyio.AsyncFile[str]:
    return anyio.wrap_file(_NonClosingTextIOWrapper(sys.stdout.buffer, encoding="utf-8", newline=""))


class LineWriter:
    """Serializes writes so concurrent handlers never interleave partial lines."""

    def __init__(self, stdout: anyio.AsyncFile[str]) -> None:
        self._stdout = stdout
        self._lock = anyio.Lock()

    async def __call__(self, line: str) -> None:
        async with self._lock:
            await self._stdout.write(line + "\n")
            await self._stdout.flush()


async def serve_lines(stdin: AsyncIterable[str], handle_line: LineHandler) -> None:
    """Dispatch every non-blank input line to `handle_line` until end of input.

    At end of input, handlers still in flight are cancelled.
    """
    async with anyio.create_task_group() as tg:
        async for line in stdin:
            if not line.strip():
                continue
            tg.start_soon(handle_line, line)

        logger.debug("STDIO closed, exiting")
        tg.cancel_scope.cancel()
