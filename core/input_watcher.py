"""
Console keystroke watcher: turns the stop key into a cancellation request.
"""

import logging
import os
import sys
import threading
from typing import Callable, Optional

from core.cancellation import CancellationSignal, CancelReason

if os.name == "nt":
    import msvcrt
else:
    import select
    import termios
    import tty

logger = logging.getLogger(__name__)


class ConsoleKeyReader:
    """
    Non-blocking single-key reads from the terminal.

    On POSIX the terminal is switched to cbreak mode while the reader is
    entered, so keys arrive without Enter; the previous mode is restored on
    exit. When stdin is not a TTY the reader reports no keys at all.
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stdin
        self._saved_attrs = None
        self._enabled = False

    def __enter__(self):
        try:
            self._enabled = self.stream is not None and self.stream.isatty()
        except (AttributeError, ValueError):
            self._enabled = False

        if self._enabled and os.name != "nt":
            fd = self.stream.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._saved_attrs is not None:
            termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None
        self._enabled = False

    def key_available(self) -> bool:
        if not self._enabled:
            return False
        if os.name == "nt":
            return msvcrt.kbhit()
        readable, _, _ = select.select([self.stream], [], [], 0)
        return bool(readable)

    def read_key(self) -> str:
        if os.name == "nt":
            return msvcrt.getwch()
        return os.read(self.stream.fileno(), 1).decode(errors="ignore")


class InputWatcher:
    """
    Background thread polling for the stop key.

    It never owns the player: on the stop key it sets the shared signal and
    calls ``on_stop`` (a best-effort stop-command write), then ends.
    """

    def __init__(
            self,
            cancel: CancellationSignal,
            key_reader,
            on_stop: Optional[Callable[[], object]] = None,
            stop_key: str = "q",
            poll_interval: float = 0.1,
    ):
        self.cancel = cancel
        self.key_reader = key_reader
        self.on_stop = on_stop
        self.stop_key = stop_key.lower()
        self.poll_interval = poll_interval

        self.error: Optional[BaseException] = None
        self.triggered = False
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="InputWatcher", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------ internals ------------
    def _run(self) -> None:
        try:
            with self.key_reader:
                self._poll_loop()
        except Exception as e:
            # Input problems must never mask the playback outcome.
            self.error = e
            logger.debug(f"[INPUT] Input watcher stopped: {e}", exc_info=True)

    def _poll_loop(self) -> None:
        while not self.cancel.is_set():
            if self.key_reader.key_available():
                key = self.key_reader.read_key()
                if key and key.lower() == self.stop_key:
                    self._request_stop()
                    return
            self.cancel.wait(self.poll_interval)

    def _request_stop(self) -> None:
        logger.info("[INPUT] Stopping playback...")
        self.triggered = self.cancel.set(CancelReason.USER)
        if self.on_stop is None:
            return
        try:
            self.on_stop()
        except Exception as e:
            logger.debug(f"[INPUT] Stop command failed: {e}")
