"""
Single-slot mailbox between the landmark callback and the render loop.

The landmark detector delivers results on its own thread at its own rate.
Each result replaces the previous one as a whole; the render loop takes
whatever is newest once per frame without ever blocking.
"""

import threading
import logging
from typing import Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Mailbox(Generic[T]):
    """Thread-safe latest-value slot.

    Example:
        >>> box = Mailbox(GestureState.idle())
        >>> box.post(state)            # landmark thread
        >>> current = box.latest()     # render thread, never blocks
    """

    def __init__(self, initial: T):
        self._lock = threading.Lock()
        self._value: T = initial
        self._fresh = False
        self._posted = 0
        self._overwritten = 0

    def post(self, value: T) -> None:
        """Replace the slot content with a complete new value."""
        with self._lock:
            if self._fresh:
                self._overwritten += 1
            self._value = value
            self._fresh = True
            self._posted += 1

    def take(self) -> Optional[T]:
        """Return the newest value if one arrived since the last take."""
        with self._lock:
            if not self._fresh:
                return None
            self._fresh = False
            return self._value

    def latest(self) -> T:
        """Return the newest value, or the previous one when nothing new arrived."""
        with self._lock:
            self._fresh = False
            return self._value

    @property
    def posted_count(self) -> int:
        return self._posted

    @property
    def overwritten_count(self) -> int:
        """Values replaced before the render loop ever saw them."""
        return self._overwritten
