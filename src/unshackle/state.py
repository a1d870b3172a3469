"""Process-scoped state shared by the steps of one release chain.

SkipState holds the mark the chain is fast-forwarding toward. InputGate is
the single slot pairing the inputs a prompt accepts with the future the prompt
is waiting on. Both live on an Engine so each engine (and each test) gets its
own.
"""

import asyncio
import logging

from .errors import GateBusy, InputClosed

logger = logging.getLogger(__name__)


class SkipState:
    """Fast-forward target of a release run.

    The target is set once by ``start``. It is cleared the first time a step
    carrying the same mark is appended, and never reactivates afterwards.
    """

    def __init__(self) -> None:
        self._target: str | None = None
        self._reached = False

    @property
    def target(self) -> str | None:
        """Mark being sought, or None when not fast-forwarding."""
        return self._target

    @property
    def active(self) -> bool:
        """Whether steps are currently being fast-forwarded."""
        return self._target is not None

    def seek(self, mark: str | None) -> None:
        """Start fast-forwarding toward ``mark`` (None disables skipping)."""
        if self._reached:
            logger.debug(f"Resume point already reached, ignoring seek to {mark!r}")
            return
        self._target = mark or None

    def reach(self, mark: str | None) -> bool:
        """Clear the target if ``mark`` is the one being sought.

        Returns:
            True if this call reached the resume point
        """
        if mark is None or self._target is None or mark != self._target:
            return False
        logger.info(f"Reached resume point [{mark}]")
        self._target = None
        self._reached = True
        return True

    def should_skip(self, mark: str | None, skippable: bool = True) -> bool:
        """Whether a step with ``mark`` is fast-forwarded past.

        Call after ``reach`` so that the marked step itself runs.
        """
        return skippable and self._target is not None and mark != self._target


class InputGate:
    """Single-slot gate between the input dispatcher and a waiting prompt."""

    def __init__(self) -> None:
        self._accepted: tuple[str, ...] = ()
        self._waiter: asyncio.Future[str] | None = None
        self._closed = False

    @property
    def accepted(self) -> tuple[str, ...]:
        """Inputs that resolve the armed prompt, in display order."""
        return self._accepted

    @property
    def armed(self) -> bool:
        """Whether a prompt is waiting for input."""
        return self._waiter is not None and not self._waiter.done()

    def arm(self, choices: list[str] | tuple[str, ...]) -> "asyncio.Future[str]":
        """Arm the gate for ``choices`` and return the future to wait on.

        Raises:
            GateBusy: If another prompt is still waiting
            InputClosed: If the input stream has ended
        """
        if self._closed:
            raise InputClosed()
        if self.armed:
            raise GateBusy()
        self._accepted = tuple(choices)
        self._waiter = asyncio.get_running_loop().create_future()
        logger.debug(f"Gate armed for {list(self._accepted)}")
        return self._waiter

    def offer(self, text: str) -> bool:
        """Offer normalized input to the armed prompt.

        Returns:
            True if the input matched and resolved the prompt
        """
        if not self.armed or text not in self._accepted:
            return False
        waiter = self._waiter
        self._waiter = None
        waiter.set_result(text)
        logger.debug(f"Gate resolved with {text!r}")
        return True

    def hint(self) -> str:
        """Message shown when input does not match the armed prompt."""
        return f"Choose from [{', '.join(self._accepted)}] to continue, or Ctrl+C to force-quit."

    def close(self, error: InputClosed | None = None) -> None:
        """Mark the input stream as ended, failing any waiting prompt.

        Args:
            error: Raised to the waiting prompt (defaults to InputClosed())
        """
        self._closed = True
        if self.armed:
            waiter = self._waiter
            self._waiter = None
            waiter.set_exception(error if error is not None else InputClosed())
            logger.warning("Input closed while a prompt was waiting")
