"""
One-way cancellation flag shared by a playback session and its background threads.
"""

import threading
from enum import Enum
from typing import Optional


class CancelReason(str, Enum):
    USER = "user"        # stop key pressed
    STOP = "stop"        # PlaybackController.stop()
    EXITED = "exited"    # player exited on its own
    CLOSED = "closed"    # session cleanup


class CancellationSignal:
    """Idempotent flag. The first ``set`` wins and records its reason."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[CancelReason] = None

    def set(self, reason: CancelReason) -> bool:
        """Set the flag. Returns False if it was already set."""
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    @property
    def reason(self) -> Optional[CancelReason]:
        return self._reason

    @property
    def stop_requested(self) -> bool:
        return self._reason in (CancelReason.USER, CancelReason.STOP)
