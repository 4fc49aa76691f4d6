"""User-facing console output, kept separate from logging.

Messages written here are for the person running the command; diagnostic
detail goes to the log file through ``setup_logger``.
"""

from __future__ import annotations

import sys
from typing import Optional, TextIO

import colorama

# Enable ANSI sequences on Windows consoles
colorama.just_fix_windows_console()


class PromptStyle:
    """Visual styling constants for consistent UI."""

    DOUBLE_LINE = "="
    SINGLE_LINE = "-"
    LIGHT_LINE = "."

    HEADER = "\033[1;36m"      # Cyan bold (headers, titles)
    INFO = "\033[0;36m"        # Cyan (informational messages)
    SUCCESS = "\033[1;32m"     # Green bold (success messages)
    WARNING = "\033[1;33m"     # Yellow bold (warnings)
    ERROR = "\033[1;31m"       # Red bold (errors)
    DIM = "\033[2;37m"         # Dimmed white (secondary text)
    HIGHLIGHT = "\033[1;35m"   # Magenta bold (highlights)
    RESET = "\033[0m"

    @staticmethod
    def supports_color(stream: Optional[TextIO] = None) -> bool:
        """Color only when writing to a terminal."""
        stream = stream or sys.stdout
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    @classmethod
    def colorize(cls, text: str, color: str, stream: Optional[TextIO] = None) -> str:
        if cls.supports_color(stream):
            return f"{color}{text}{cls.RESET}"
        return text


def ui_print(message: str, style: str = "", end: str = "\n", file: Optional[TextIO] = None) -> None:
    """Print a UI message (distinct from logging).

    Args:
        message: The message to display
        style: Optional style/color code
        end: String appended after the message (default: newline)
        file: Stream to write to (default: stdout)
    """
    stream = file or sys.stdout
    text = PromptStyle.colorize(message, style, stream) if style else message
    try:
        print(text, end=end, file=stream, flush=True)
    except UnicodeEncodeError:
        safe_text = text.encode("ascii", "replace").decode("ascii")
        print(safe_text, end=end, file=stream, flush=True)


def print_separator(char: str = PromptStyle.SINGLE_LINE, width: int = 80) -> None:
    ui_print(char * width, PromptStyle.DIM)


def print_success(message: str, prefix: str = "[SUCCESS]") -> None:
    ui_print(f"{prefix} {message}", PromptStyle.SUCCESS)


def print_warning(message: str, prefix: str = "[WARNING]") -> None:
    ui_print(f"{prefix} {message}", PromptStyle.WARNING, file=sys.stderr)


def print_error(message: str, prefix: str = "[ERROR]") -> None:
    """Print an error message to stderr."""
    ui_print(f"{prefix} {message}", PromptStyle.ERROR, file=sys.stderr)
