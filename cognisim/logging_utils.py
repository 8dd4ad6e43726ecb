"""Logging utilities for Cognisim.

Provides color-coded output to distinguish oracle traffic from
deterministic bookkeeping and failures.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"      # Deterministic operations (world store, merging)
    YELLOW = "\033[93m"    # Oracle calls
    RED = "\033[91m"       # Errors and fallbacks
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    BOLD = "\033[1m"
    RESET = "\033[0m"


# Markers for operation types (color-blind accessible)
TAG_DETERMINISTIC = "[•]"
TAG_LLM = "[AI]"
TAG_ERROR = "[!]"
TAG_SUCCESS = "[✓]"
TAG_INFO = "[i]"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if COGNISIM_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("COGNISIM_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def debug_enabled() -> bool:
    """Return True when verbose pipeline output is requested."""
    return os.getenv("COGNISIM_DEBUG", "").lower() in ("1", "true", "yes")


def log_deterministic(message: str) -> None:
    """Log a deterministic operation (blue)."""
    print(colored(f"{TAG_DETERMINISTIC} {message}", Color.BLUE))


def log_llm(message: str) -> None:
    """Log an oracle operation (yellow)."""
    print(colored(f"{TAG_LLM} {message}", Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error or fallback (red)."""
    print(colored(f"{TAG_ERROR} {message}", Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    print(colored(f"{TAG_SUCCESS} {message}", Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(f"{TAG_INFO} {message}", Color.CYAN))


def log_debug(message: str) -> None:
    """Log diagnostic detail, only when COGNISIM_DEBUG is set."""
    if debug_enabled():
        print(colored(f"{TAG_INFO} {message}", Color.CYAN))
