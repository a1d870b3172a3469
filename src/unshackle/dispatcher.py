"""Input dispatcher - routes operator input to the armed prompt.

A single subscription reads the input source for the lifetime of an engine
and forwards every chunk to the InputGate. Prompts never attach listeners of
their own.
"""

import asyncio
import logging
import os
import stat
import sys
from collections.abc import AsyncIterator
from typing import Protocol, TextIO

from .console import OutputSink
from .errors import InputClosed
from .state import InputGate

logger = logging.getLogger(__name__)


class InputSource(Protocol):
    """Async iterator of raw operator input chunks."""

    def __aiter__(self) -> AsyncIterator[str]: ...


class StdinSource:
    """Reads operator input from stdin without blocking the event loop.

    Pipes, sockets and terminals are read through an asyncio pipe transport.
    Anything else (a redirected regular file, an in-memory stream) is read
    line by line on the default executor.
    """

    def __init__(self, stream: TextIO | None = None):
        """Initialize source.

        Args:
            stream: File to read from (defaults to sys.stdin)
        """
        self.stream = stream or sys.stdin

    def _is_pipe(self) -> bool:
        try:
            mode = os.fstat(self.stream.fileno()).st_mode
            tty = self.stream.isatty()
        except (AttributeError, OSError, ValueError):
            return False
        return stat.S_ISFIFO(mode) or stat.S_ISSOCK(mode) or tty

    async def __aiter__(self) -> AsyncIterator[str]:
        if self._is_pipe():
            lines = self._read_pipe()
        else:
            lines = self._read_file()
        async for line in lines:
            yield line
        # EOF - stdin closed
        logger.info("stdin closed")

    async def _read_pipe(self) -> AsyncIterator[str]:
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)

        loop = asyncio.get_running_loop()
        await loop.connect_read_pipe(lambda: protocol, self.stream)

        while True:
            line = await reader.readline()
            if not line:
                return
            yield line.decode("utf-8", errors="replace")

    async def _read_file(self) -> AsyncIterator[str]:
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, self.stream.readline)
            if not line:
                return
            if isinstance(line, bytes):
                line = line.decode("utf-8", errors="replace")
            yield line


class InputDispatcher:
    """Feeds normalized input chunks to the engine's InputGate."""

    def __init__(self, gate: InputGate, sink: OutputSink, source: InputSource | None = None):
        """Initialize dispatcher.

        Args:
            gate: Gate of the prompt currently waiting, if any
            sink: Where rejection hints are written
            source: Raw input chunks (defaults to stdin)
        """
        self.gate = gate
        self.sink = sink
        self.source = source if source is not None else StdinSource()
        self._task: asyncio.Task | None = None

    @property
    def attached(self) -> bool:
        """Whether the input source is being listened to."""
        return self._task is not None

    def attach(self) -> None:
        """Start listening to the input source. Idempotent."""
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._listen())
        logger.debug("Input dispatcher attached")

    async def close(self) -> None:
        """Stop listening to the input source."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def dispatch(self, chunk: str) -> bool:
        """Route one raw input chunk to the armed prompt.

        Args:
            chunk: Raw operator input, possibly with newline framing

        Returns:
            True if the chunk resolved a prompt
        """
        text = chunk.strip()

        if not self.gate.armed:
            logger.debug(f"Ignoring input with no prompt waiting: {text!r}")
            return False

        if self.gate.offer(text):
            return True

        self.sink.line(self.gate.hint())
        return False

    async def _listen(self) -> None:
        try:
            async for chunk in self.source:
                self.dispatch(chunk)
        except Exception as e:
            logger.error(f"Reading operator input failed: {e}")
            self.gate.close(InputClosed(f"Could not read operator input: {e}"))
            return
        logger.debug("Input source exhausted")
        self.gate.close()
