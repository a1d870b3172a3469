"""Path management for unshackle.

Manages the ~/.unshackle/ directory holding the CLI config and run logs.
"""

from pathlib import Path

# Base directory for all unshackle data
UNSHACKLE_DIR = Path.home() / ".unshackle"

# Log directory (same as base for simplicity)
LOG_DIR = UNSHACKLE_DIR


def ensure_dirs() -> None:
    """Create the unshackle directory if missing (mode 0o700)."""
    UNSHACKLE_DIR.mkdir(mode=0o700, exist_ok=True)


def get_log_file(name: str = "release") -> Path:
    """Get path to a log file.

    Args:
        name: Log file name (without extension)

    Returns:
        Path to the log file
    """
    return LOG_DIR / f"{name}.log"
