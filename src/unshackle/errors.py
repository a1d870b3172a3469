"""Error types raised by the release engine.

Every error carries a human-readable message and the exit status the process
halts with when the error ends a release.
"""

from dataclasses import dataclass

# Exit statuses
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


@dataclass
class UnshackleError(Exception):
    """Base error class for release engine errors."""

    message: str
    exit_code: int = EXIT_FAILURE

    def __str__(self) -> str:
        return self.message


@dataclass
class LifecycleViolation(UnshackleError):
    """The chain was explicitly started more than once."""

    message: str = "The start method should only be called once."


@dataclass
class CommandFailure(UnshackleError):
    """A shell command exited nonzero or could not be spawned."""

    command: str = ""
    returncode: int | None = None
    stderr: str = ""

    @classmethod
    def from_exit(cls, command: str, returncode: int, stderr: str) -> "CommandFailure":
        """Build the failure for a command that exited with a nonzero status."""
        detail = stderr.strip()
        message = f"Command failed with exit code {returncode}: {command}"
        if detail:
            message = f"{message}\n{detail}"
        return cls(message=message, command=command, returncode=returncode, stderr=stderr)

    @classmethod
    def from_spawn_error(cls, command: str, error: OSError) -> "CommandFailure":
        """Build the failure for a command whose process never started."""
        return cls(message=f"Could not start command: {command}\n{error}", command=command)


@dataclass
class GateBusy(UnshackleError):
    """A prompt was armed while another prompt is still waiting for input."""

    message: str = "Another prompt is already waiting for input."


@dataclass
class InputClosed(UnshackleError):
    """The input stream ended, so no prompt can be answered any more."""

    message: str = "Input closed while waiting for a prompt."
