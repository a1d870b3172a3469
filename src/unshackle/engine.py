"""Release engine - sequencing of print, run and prompt steps.

A release script is a chain of steps built fluently from a Chain handle:

    release.start("Releasing 1.4.0", mark="publish")
        .run("git pull", required=True)
        .run("npm test", mark="test")
        .prompt("Publish to the registry?")
        .run("npm publish", mark="publish")
        .done("Released.")

Each step waits for the previous one. When ``start`` names a mark, every
skippable step before the step carrying that mark is fast-forwarded past,
which lets an operator resume an interrupted release. Required steps and
prompts always run.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Generator
from dataclasses import dataclass
from functools import partial
from typing import Any, NoReturn

from .config import UnshackleConfig, load_config
from .console import ConsoleSink, OutputSink, ProcessTerminator, Terminator
from .dispatcher import InputDispatcher, InputSource
from .errors import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    CommandFailure,
    LifecycleViolation,
)
from .executor import CommandExecutor
from .shared.logging import configure_logging
from .state import InputGate, SkipState

logger = logging.getLogger(__name__)

DEFAULT_CHOICES = ("y",)
INTERRUPTED_MESSAGE = "Release interrupted by operator."

StepBody = Callable[[Any], Any]


async def _ready(value: Any) -> Any:
    return value


class Pending:
    """Awaitable output of a chain so far.

    The step coroutine is scheduled as a task right away when an event loop
    is running, otherwise on first await. It runs once no matter how many
    times the Pending is awaited.
    """

    def __init__(
        self,
        factory: Callable[[], Awaitable[Any]] | None = None,
        value: Any = None,
    ):
        self._factory = factory
        self._value = value
        self._task: asyncio.Future | None = None

        if factory is not None:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                pass
            else:
                self._schedule()

    @classmethod
    def resolved(cls, value: Any = None) -> "Pending":
        """A Pending that is already settled with ``value``."""
        return cls(value=value)

    def _schedule(self) -> asyncio.Future:
        if self._task is None:
            self._task = asyncio.ensure_future(self._factory())
        return self._task

    def __await__(self) -> Generator[Any, None, Any]:
        if self._factory is None:
            return _ready(self._value).__await__()
        return self._schedule().__await__()


@dataclass
class Step:
    """One appended unit of work."""

    mark: str | None
    body: StepBody
    required: bool = False
    skipped: bool = False


class Engine:
    """Owns the state one release chain runs against.

    Holds the skip state, the input gate and its dispatcher, the command
    executor, and the lifecycle guard. Collaborators are injectable so tests
    can run chains against recorded output and scripted input.
    """

    def __init__(
        self,
        config: UnshackleConfig | None = None,
        sink: OutputSink | None = None,
        source: InputSource | None = None,
        terminator: Terminator | None = None,
    ):
        """Initialize engine.

        Args:
            config: Release configuration (loaded from file/env if omitted)
            sink: Output sink with line() and error() (defaults to console)
            source: Operator input chunks (defaults to stdin)
            terminator: Object whose halt(code) ends the process
        """
        self.config = config if config is not None else load_config()
        self.sink = sink if sink is not None else ConsoleSink()
        self.terminator = terminator if terminator is not None else ProcessTerminator()
        self.skip = SkipState()
        self.gate = InputGate()
        self.dispatcher = InputDispatcher(self.gate, self.sink, source)
        self.executor = CommandExecutor(self.sink, shell=self.config.shell)
        self.started = False
        self.steps: list[Step] = []

    def root(self) -> "Chain":
        """Chain handle over an empty, already settled computation."""
        return Chain(self, Pending.resolved())

    def wrap(
        self,
        mark: str | None,
        previous: Pending,
        body: StepBody,
        skippable: bool = True,
    ) -> Pending:
        """Schedule ``body`` after ``previous``, or skip it.

        Args:
            mark: Label and potential resume point of the step
            previous: Output of the chain so far
            body: Called with the previous output; may return an awaitable
            skippable: If False, the step runs even while fast-forwarding

        Returns:
            ``previous`` itself when the step is skipped, otherwise the
            pending output of the step
        """
        self.skip.reach(mark)
        step = Step(mark=mark, body=body, required=not skippable)
        self.steps.append(step)

        if self.skip.should_skip(mark, skippable):
            step.skipped = True
            logger.debug(f"Skipping step [{mark}] on the way to [{self.skip.target}]")
            return previous

        return Pending(partial(self._run_step, step, previous))

    async def _run_step(self, step: Step, previous: Pending) -> Any:
        result = await previous

        if step.mark:
            self.sink.line(f"[{step.mark}]")

        output = step.body(result)
        if inspect.isawaitable(output):
            output = await output

        self.sink.line("")
        return output

    def halt(self, code: int, message: str | None = None) -> NoReturn:
        """Print ``message`` to the matching stream and end the process."""
        if message:
            if code == EXIT_SUCCESS:
                self.sink.line(message)
            else:
                self.sink.error(message)
        logger.info(f"Halting with status {code}")
        self.terminator.halt(code)

    async def close(self) -> None:
        """Detach from the input source."""
        await self.dispatcher.close()


class Chain:
    """Fluent handle over the pending output of a release chain.

    Every appending call returns a new Chain; handles are never mutated.
    """

    def __init__(self, engine: Engine, promise: Pending):
        self._engine = engine
        self._promise = promise

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def promise(self) -> Pending:
        """Awaitable output of the chain so far."""
        return self._promise

    def _then(self, mark: str | None, body: StepBody, skippable: bool = True) -> "Chain":
        return Chain(self._engine, self._engine.wrap(mark, self._promise, body, skippable))

    def start(self, message: str | None = None, mark: str | None = None) -> "Chain":
        """Announce the release and choose where it resumes.

        May be called once per engine; a second call fails the release.

        Args:
            message: Announcement (defaults to the configured start message)
            mark: Resume point; steps before it are skipped unless required.
                Defaults to the configured resume mark.

        Returns:
            A fresh chain
        """
        engine = self._engine
        if engine.started:
            self.fail(LifecycleViolation().message)
        engine.started = True

        if mark is None:
            mark = engine.config.resume_from
        engine.skip.seek(mark)
        if mark:
            logger.info(f"Resuming release at [{mark}]")

        engine.sink.line(f"{message or engine.config.start_message}\n")
        return engine.root()

    def print(self, message: str, *, mark: str | None = None) -> "Chain":
        """Append a step printing ``message``."""
        sink = self._engine.sink

        def body(_previous: Any) -> None:
            sink.line(message)

        return self._then(mark, body)

    def run(
        self,
        command: str | StepBody,
        *,
        mark: str | None = None,
        required: bool = False,
    ) -> "Chain":
        """Append a shell command or a function step.

        A string runs in a shell; its stdout and stderr are streamed to the
        console and the stripped stdout becomes the step output. A failing
        command halts the release.

        A callable is called with the previous step's output and its return
        value (awaited if it is awaitable) becomes the step output.

        Args:
            command: Command line, or callable taking the previous output
            mark: Label and resume point of the step
            required: Run even when resuming from a later mark
        """
        if callable(command):
            body = command
        elif isinstance(command, str):
            body = partial(self._run_command, command)
        else:
            raise TypeError(
                f"run() expects a command line or a callable, got {type(command).__name__}"
            )

        return self._then(mark, body, skippable=not required)

    async def _run_command(self, command: str, _previous: Any) -> str:
        engine = self._engine
        try:
            return await engine.executor.execute(command)
        except CommandFailure as e:
            logger.error(f"Command failed: {command} (exit code {e.returncode})")
            engine.halt(EXIT_FAILURE, e.message)

    def prompt(
        self,
        message: str,
        *,
        mark: str | None = None,
        choices: list[str] | tuple[str, ...] | None = None,
    ) -> "Chain":
        """Append a step that waits for the operator to type one of ``choices``.

        Prompts always run, even when resuming from a later mark. Input that
        does not match re-prints the accepted choices. The typed choice
        becomes the step output.

        Args:
            message: Question shown to the operator
            mark: Label and resume point of the step
            choices: Accepted inputs (defaults to ["y"])
        """
        choices = tuple(choices) if choices is not None else DEFAULT_CHOICES
        if not choices:
            raise ValueError("prompt() needs at least one accepted choice")

        engine = self._engine

        async def body(_previous: Any) -> str:
            engine.dispatcher.attach()
            engine.sink.line(f"{message} [{', '.join(choices)}]")
            return await engine.gate.arm(choices)

        return self._then(mark, body, skippable=False)

    def done(self, message: str | None = None) -> "asyncio.Future | None":
        """Halt once the chain settles.

        Success halts with status 0 and the optional ``message``; a failure
        halts with status 1 and the failure's message. Outside an event loop
        this drives the chain to completion; inside one it returns the task
        doing so.
        """
        engine = self._engine

        async def finish() -> None:
            try:
                await self._promise
            except Exception as e:
                logger.debug(f"Release failed: {type(e).__name__}: {e}")
                self.fail(str(e) or type(e).__name__)
            else:
                engine.halt(EXIT_SUCCESS, message)
            finally:
                await engine.close()

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            try:
                asyncio.run(finish())
            except KeyboardInterrupt:
                engine.halt(EXIT_INTERRUPTED, INTERRUPTED_MESSAGE)
            return None

        return asyncio.ensure_future(finish())

    def fail(self, message: str) -> NoReturn:
        """Halt immediately with status 1 and ``message``."""
        self._engine.halt(EXIT_FAILURE, message)


_default_engine: Engine | None = None


def default_engine() -> Engine:
    """The process-wide engine release scripts share.

    Created on first use from the loaded configuration. Configures logging
    unless the host application already has.
    """
    global _default_engine
    if _default_engine is None:
        config = load_config()
        if not logging.getLogger().handlers:
            configure_logging(config.log_level)
        _default_engine = Engine(config=config)
    return _default_engine


def reset_default_engine() -> None:
    """Forget the process-wide engine (used between tests)."""
    global _default_engine
    _default_engine = None
