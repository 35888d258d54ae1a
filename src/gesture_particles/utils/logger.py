"""
Logging setup and gesture transition logging.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging for the application."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-35s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class GestureLogger:
    """Records gesture transitions as seen by the render loop."""

    def __init__(self, max_history=500):
        self.logger = logging.getLogger("gesture_events")
        self._history = []
        self._max_history = max_history
        self._current = None
        self._since = None

    def observe(self, gesture_name, displacement=None):
        """Log a gesture if it differs from the previous one.

        Returns:
            True if this call recorded a transition
        """
        if gesture_name == self._current:
            return False

        now = time.time()
        held_ms = (now - self._since) * 1000 if self._since else None
        entry = {
            "timestamp": now,
            "gesture": gesture_name,
            "previous": self._current,
            "previous_held_ms": held_ms,
            "displacement": displacement,
        }
        self._history.append(entry)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

        self.logger.info(
            "Gesture: %-9s <- %-9s | held %s",
            gesture_name,
            self._current or "-",
            f"{held_ms:.0f}ms" if held_ms is not None else "N/A",
        )
        self._current = gesture_name
        self._since = now
        return True

    def get_history(self, last_n=None):
        """Get recent gesture transitions."""
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    @property
    def total_transitions(self):
        return len(self._history)


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
