"""Path utilities for gh-notify."""

from pathlib import Path


def get_state_dir() -> Path:
    """Get the gh-notify state directory (~/.local/state/gh-notify/)."""
    state_dir = Path.home() / ".local" / "state" / "gh-notify"
    state_dir.mkdir(parents=True, exist_ok=True)
    return state_dir


def get_log_dir() -> Path:
    """Get the directory for gh-notify logs.

    Uses XDG state directory: ~/.local/state/gh-notify/logs/
    """
    log_dir = get_state_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_log_path(name: str) -> Path:
    """Get the path to a specific log file.

    Args:
        name: Log file name (e.g., "gh-notify")

    Returns:
        Path to ~/.local/state/gh-notify/logs/{name}.log
    """
    return get_log_dir() / f"{name}.log"
