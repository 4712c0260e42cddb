"""Simple logger for MaintSight operations."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

DEBUG = 10
INFO = 20
WARNING = 30
ERROR = 40

_console = Console(stderr=True, soft_wrap=True)
_level = INFO


class Logger:
    """Simple logger with emoji support and colored output.

    Everything is written to stderr so stdout stays free for report output.
    """

    def __init__(self, name: str):
        """Initialize logger with a name.

        Args:
            name: Logger name (usually module or class name)
        """
        self.name = name
        self.console = _console

    @staticmethod
    def set_level(level: int) -> None:
        """Set the minimum level shown by every MaintSight logger."""
        global _level
        _level = level

    @staticmethod
    def get_level() -> int:
        return _level

    def _emit(self, level: int, prefix: str, message: str, style: str) -> None:
        if level < _level:
            return
        self.console.print(f"{prefix}{escape(message)}", style=style, highlight=False)

    def info(self, message: str, emoji: Optional[str] = None) -> None:
        """Log info message.

        Args:
            message: Message to log
            emoji: Optional emoji prefix
        """
        prefix = f"{emoji} " if emoji else ""
        self._emit(INFO, prefix, message, "blue")

    def warn(self, message: str, emoji: Optional[str] = None) -> None:
        prefix = f"{emoji} " if emoji else "⚠️  "
        self._emit(WARNING, prefix, message, "yellow")

    def error(self, message: str, emoji: Optional[str] = None) -> None:
        prefix = f"{emoji} " if emoji else "❌ "
        self._emit(ERROR, prefix, message, "bold red")

    def success(self, message: str, emoji: Optional[str] = None) -> None:
        prefix = f"{emoji} " if emoji else "✅ "
        self._emit(INFO, prefix, message, "green")

    def debug(self, message: str, emoji: Optional[str] = None) -> None:
        """Log debug message, tagged with the logger name."""
        prefix = f"{emoji} " if emoji else "🔍 "
        self._emit(DEBUG, prefix, f"[{self.name}] {message}", "dim")
