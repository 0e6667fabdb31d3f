"""
Logger interface for homelab backup workflows.

Abstract base class defining the logging contract that every component
receives from the entry point that constructed it.
"""

from abc import ABC, abstractmethod
from typing import Any


class Logger(ABC):
    """Abstract base class for logging interface.

    A single instance is created per run and handed to each component,
    so no component reads logging configuration on its own.

    Example:
        class MyLogger(Logger):
            def info(self, message: str, **kwargs: Any) -> None:
                print(f"INFO: {message}")
            # ... implement other methods
    """

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message.

        Args:
            message: The message to log
            **kwargs: Additional key-value pairs to include in the log
        """
        pass

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        pass

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error message."""
        pass

    @abstractmethod
    def get_session_id(self) -> str:
        """Get the current session ID.

        Returns:
            The unique session identifier for this logger instance.
        """
        pass

    def close(self) -> None:
        """Release any sinks held by the logger."""
