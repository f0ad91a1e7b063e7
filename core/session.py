"""
Live state of one playback attempt: the owned player process and its cleanup.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from enum import Enum
from typing import Callable, List, Optional

from core.cancellation import CancellationSignal, CancelReason
from core.errors import CleanupWarning
from core.presenter import Presenter

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class PlaybackSession:
    """
    Owns exactly one player process. Background activities (input watcher,
    progress reporter) are registered here so cleanup can wait for them.

    Use as a context manager; leaving the block always runs close().
    """

    def __init__(
            self,
            cancel: CancellationSignal,
            presenter: Presenter,
            kill_tree: Callable[[subprocess.Popen], None],
            kill_timeout: float = 2.0,
            join_timeout: float = 2.0,
    ):
        self.cancel = cancel
        self.presenter = presenter
        self.kill_tree = kill_tree
        self.kill_timeout = kill_timeout
        self.join_timeout = join_timeout

        self.process: Optional[subprocess.Popen] = None
        self.started_at: Optional[float] = None
        self.state = SessionState.NOT_STARTED
        self.warnings: List[CleanupWarning] = []
        self.cleanup_runs = 0

        self._activities: list = []
        self._close_lock = threading.Lock()
        self._io_lock = threading.Lock()
        self._closing = False
        self._disposed = False
        self._killed = False
        self._stop_sent = False

    def __enter__(self) -> "PlaybackSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------ lifecycle ------------
    def attach(self, process: subprocess.Popen, started_at: float) -> bool:
        """
        Bind the freshly launched player. A session never takes a second one.

        Returns False when the session was closed while the player was starting;
        that player is killed and its pipes closed before returning.
        """
        with self._io_lock:
            if self.process is not None:
                raise RuntimeError("Session already owns a player process")
            self.process = process
            self.started_at = started_at
            if not self._closing:
                self.state = SessionState.RUNNING
                return True

        logger.info(f"[PLAY] Playback stopped while ffplay was starting (pid={process.pid})")
        self.force_stop()
        self._close_pipes(process)
        return False

    def add_activity(self, activity) -> None:
        """Register a background activity exposing join(timeout)."""
        self._activities.append(activity)

    def is_running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    @property
    def exit_code(self) -> Optional[int]:
        return self.process.returncode if self.process is not None else None

    # ------------ process control ------------
    def send_stop_command(self, command: str = "q") -> bool:
        """Best-effort write of the player's quit command to its stdin."""
        with self._io_lock:
            if self._stop_sent:
                return True
            proc = self.process
            if self._disposed or proc is None or proc.poll() is not None:
                return False
            if proc.stdin is None:
                return False
            try:
                proc.stdin.write(command.encode())
                proc.stdin.flush()
            except (OSError, ValueError) as e:
                # Player closed its end between the poll() and the write.
                logger.debug(f"[PLAY] Stop command not delivered: {e}")
                return False
            self._stop_sent = True
            logger.debug(f"[PLAY] Sent stop command to ffplay (pid={proc.pid})")
            return True

    def wait_for_exit(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds. True once the player has exited."""
        if self.process is None:
            return True
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return False
        return True

    def force_stop(self) -> None:
        """Kill the player and its children once; failures become warnings."""
        with self._io_lock:
            if self._killed or not self.is_running():
                return
            self._killed = True
            proc = self.process

        try:
            self.kill_tree(proc)
        except Exception as e:
            self._warn(f"Could not stop ffplay: {e}")
            return

        try:
            proc.wait(timeout=self.kill_timeout)
        except subprocess.TimeoutExpired:
            self._warn(
                f"ffplay (pid={proc.pid}) did not confirm termination "
                f"within {self.kill_timeout:.1f}s"
            )

    @property
    def force_stopped(self) -> bool:
        return self._killed

    # ------------ cleanup ------------
    def close(self) -> None:
        """Release everything. Safe to call any number of times, from any thread."""
        with self._close_lock:
            if self.state is SessionState.STOPPED:
                return
            self.state = SessionState.STOPPING
            self.cleanup_runs += 1

            self.cancel.set(CancelReason.CLOSED)
            with self._io_lock:
                self._closing = True

            try:
                self.force_stop()
            except Exception as e:
                self._warn(f"Could not clean up ffplay process: {e}")

            for activity in self._activities:
                try:
                    activity.join(self.join_timeout)
                except Exception as e:
                    logger.debug(f"[PLAY] Ignoring background activity error: {e}")

            self._dispose_process()
            self.state = SessionState.STOPPED

    def _dispose_process(self) -> None:
        with self._io_lock:
            self._disposed = True
            proc = self.process
        if proc is not None:
            self._close_pipes(proc)

    @staticmethod
    def _close_pipes(proc: subprocess.Popen) -> None:
        for stream in (proc.stdin, proc.stdout, proc.stderr):
            if stream is None:
                continue
            try:
                stream.close()
            except OSError as e:
                # Closing stdin flushes; a dead player raises BrokenPipeError.
                logger.debug(f"[PLAY] Ignoring pipe close error: {e}")

    def _warn(self, message: str) -> None:
        warning = CleanupWarning(message)
        self.warnings.append(warning)
        self.presenter.warning(message)
