"""Command executor - runs shell steps and relays their output.

A CommandExecution is one run of one command line: an async iterator over
the lines the process writes, finished by the process exit status. The
CommandExecutor drives an execution, relays each line to the console and
returns the captured standard output.
"""

import asyncio
import codecs
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from .console import OutputSink
from .errors import CommandFailure

logger = logging.getLogger(__name__)

# StreamReader buffer limit for subprocess pipes; longer lines arrive in pieces
DEFAULT_STREAM_LIMIT = 1024 * 1024

ECHO_PREFIX = "$ "
NO_OUTPUT_MESSAGE = "no output"

STDOUT = "stdout"
STDERR = "stderr"


@dataclass(frozen=True)
class OutputLine:
    """One line written by a running command."""

    stream: str
    text: str


async def _read_chunk(stream: asyncio.StreamReader) -> bytes:
    """Read the next line, or a limit-sized piece of a line too long to buffer."""
    try:
        return await stream.readuntil(b"\n")
    except asyncio.IncompleteReadError as e:
        return e.partial
    except asyncio.LimitOverrunError as e:
        return await stream.read(e.consumed)


class CommandExecution:
    """A single run of a shell command line.

    Iterating starts the process and yields its stdout and stderr lines in
    arrival order. Once iteration finishes, ``returncode``, ``stdout`` and
    ``stderr`` hold the final status and the full captured streams.
    """

    def __init__(self, command: str, shell: str | None = None):
        """Initialize execution.

        Args:
            command: Command line, interpreted by the shell
            shell: Shell executable (defaults to the system shell)
        """
        self.command = command
        self.shell = shell
        self.returncode: int | None = None
        self.stdout = ""
        self.stderr = ""

    async def _spawn(self) -> asyncio.subprocess.Process:
        kwargs = {}
        if self.shell:
            kwargs["executable"] = self.shell
        return await asyncio.create_subprocess_shell(
            self.command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=DEFAULT_STREAM_LIMIT,
            **kwargs,
        )

    async def __aiter__(self) -> AsyncIterator[OutputLine]:
        self.returncode = None
        captured: dict[str, list[str]] = {STDOUT: [], STDERR: []}

        process = await self._spawn()
        logger.debug(f"Spawned pid={process.pid} for: {self.command}")

        queue: asyncio.Queue[OutputLine | None] = asyncio.Queue()

        async def pump(name: str, stream: asyncio.StreamReader) -> None:
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            try:
                while True:
                    raw = await _read_chunk(stream)
                    if not raw:
                        break
                    text = decoder.decode(raw)
                    if not text:
                        continue
                    captured[name].append(text)
                    await queue.put(OutputLine(name, text))
                tail = decoder.decode(b"", final=True)
                if tail:
                    captured[name].append(tail)
                    await queue.put(OutputLine(name, tail))
            finally:
                await queue.put(None)

        pumps = [
            asyncio.create_task(pump(STDOUT, process.stdout)),
            asyncio.create_task(pump(STDERR, process.stderr)),
        ]

        try:
            open_streams = len(pumps)
            while open_streams:
                item = await queue.get()
                if item is None:
                    open_streams -= 1
                    continue
                yield item
            await asyncio.gather(*pumps)
            self.returncode = await process.wait()
        finally:
            for task in pumps:
                task.cancel()
            if process.returncode is None:
                process.kill()
                await process.wait()

        self.stdout = "".join(captured[STDOUT])
        self.stderr = "".join(captured[STDERR])
        logger.debug(f"Command exited with code {self.returncode}: {self.command}")


class CommandExecutor:
    """Runs shell command steps, streaming their output to the console."""

    def __init__(self, sink: OutputSink, shell: str | None = None):
        """Initialize executor.

        Args:
            sink: Console the command line and its output are written to
            shell: Shell executable (defaults to the system shell)
        """
        self.sink = sink
        self.shell = shell

    async def execute(self, command: str) -> str:
        """Run ``command`` to completion.

        Args:
            command: Command line to run

        Returns:
            Captured standard output, stripped of surrounding whitespace

        Raises:
            CommandFailure: If the command exits nonzero or cannot be started
        """
        self.sink.line(f"{ECHO_PREFIX}{command}")

        execution = CommandExecution(command, shell=self.shell)
        try:
            async for output in execution:
                self._relay(output)
        except OSError as e:
            raise CommandFailure.from_spawn_error(command, e) from e

        if execution.returncode != 0:
            raise CommandFailure.from_exit(command, execution.returncode, execution.stderr)

        stdout = execution.stdout.strip()
        if not stdout:
            self.sink.line(NO_OUTPUT_MESSAGE)
        return stdout

    def _relay(self, output: OutputLine) -> None:
        text = output.text.rstrip()
        if not text:
            return
        if output.stream == STDERR:
            self.sink.error(text)
        else:
            self.sink.line(text)
