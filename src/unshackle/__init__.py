"""unshackle - scripted, resumable release chains.

Release scripts import the process-wide ``release`` handle:

    from unshackle import release

    release.start("Releasing").run("make dist").prompt("Upload?").run("make upload").done()
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("unshackle")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without metadata

from .engine import Chain, Engine, Pending, Step, default_engine, reset_default_engine
from .errors import (
    CommandFailure,
    GateBusy,
    InputClosed,
    LifecycleViolation,
    UnshackleError,
)


def __getattr__(name: str) -> Chain:
    if name == "release":
        return default_engine().root()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Chain",
    "Engine",
    "Pending",
    "Step",
    "default_engine",
    "reset_default_engine",
    "release",
    # Errors
    "UnshackleError",
    "LifecycleViolation",
    "CommandFailure",
    "GateBusy",
    "InputClosed",
    "__version__",
]
