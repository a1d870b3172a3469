"""Console collaborators: the output sink and process termination."""

import sys
from typing import NoReturn, Protocol

import click


class OutputSink(Protocol):
    """Anything release output lines can be written to."""

    def line(self, text: str) -> None: ...

    def error(self, text: str) -> None: ...


class Terminator(Protocol):
    """Anything that can end the release with a status code."""

    def halt(self, code: int) -> None: ...


class ConsoleSink:
    """Writes release output lines to stdout and stderr."""

    def line(self, text: str) -> None:
        """Write a line to the normal output stream."""
        click.echo(text)

    def error(self, text: str) -> None:
        """Write a line to the error stream."""
        click.echo(text, err=True)


class ProcessTerminator:
    """Ends the process with a status code."""

    def halt(self, code: int) -> NoReturn:
        sys.exit(code)
