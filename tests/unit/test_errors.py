"""Unit tests for release engine errors."""

from unshackle.errors import (
    EXIT_FAILURE,
    CommandFailure,
    GateBusy,
    InputClosed,
    LifecycleViolation,
    UnshackleError,
)


class TestUnshackleError:
    def test_str_is_message(self):
        error = UnshackleError(message="boom")

        assert str(error) == "boom"
        assert error.exit_code == EXIT_FAILURE

    def test_subclasses_have_default_messages(self):
        assert LifecycleViolation().message == "The start method should only be called once."
        assert GateBusy().message == "Another prompt is already waiting for input."
        assert InputClosed().message == "Input closed while waiting for a prompt."

    def test_all_errors_are_unshackle_errors(self):
        for error in (LifecycleViolation(), GateBusy(), InputClosed(), CommandFailure("x")):
            assert isinstance(error, UnshackleError)
            assert isinstance(error, Exception)


class TestCommandFailure:
    def test_from_exit_includes_stderr(self):
        failure = CommandFailure.from_exit("make dist", 2, "missing target\n")

        assert failure.command == "make dist"
        assert failure.returncode == 2
        assert failure.message == "Command failed with exit code 2: make dist\nmissing target"

    def test_from_exit_without_stderr(self):
        failure = CommandFailure.from_exit("false", 1, "")

        assert failure.message == "Command failed with exit code 1: false"

    def test_from_spawn_error(self):
        failure = CommandFailure.from_spawn_error("ls", OSError("no shell"))

        assert failure.returncode is None
        assert "Could not start command: ls" in failure.message
        assert "no shell" in failure.message
