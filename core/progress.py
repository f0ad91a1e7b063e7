"""
Wall-clock playback progress: elapsed time since launch versus known duration.
"""

import logging
import threading
import time
from typing import Callable, Optional

from core.cancellation import CancellationSignal
from core.models import PlaybackTarget, ProgressSnapshot
from core.presenter import Presenter

logger = logging.getLogger(__name__)


def format_time(seconds: float) -> str:
    """Format seconds as MM:SS, or HH:MM:SS from one hour up."""
    total = int(max(seconds or 0, 0))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class ProgressReporter:
    """
    Ticks while the session's cancellation signal is unset and pushes
    snapshots to the presenter. Never cancels playback itself.
    """

    def __init__(
            self,
            presenter: Presenter,
            target: PlaybackTarget,
            cancel: CancellationSignal,
            started_at: float,
            interval: float = 1.0,
            clock: Callable[[], float] = time.monotonic,
    ):
        self.presenter = presenter
        self.target = target
        self.cancel = cancel
        self.started_at = started_at
        self.interval = interval
        self.clock = clock
        self.total = float(target.duration or 0.0)

        self._last_elapsed = 0.0
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="ProgressReporter", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def snapshot(self) -> ProgressSnapshot:
        elapsed = min(max(self.clock() - self.started_at, 0.0), self.total)
        # Keep the bar from stepping backwards if the clock misbehaves.
        elapsed = max(elapsed, self._last_elapsed)
        self._last_elapsed = elapsed
        return self._make(elapsed)

    def _make(self, elapsed: float) -> ProgressSnapshot:
        return ProgressSnapshot(
            elapsed=elapsed,
            total=self.total,
            title=self.target.title,
            author=self.target.author,
        )

    def _run(self) -> None:
        self.presenter.progress_started(self.target)
        try:
            while not self.cancel.is_set():
                snap = self.snapshot()
                self.presenter.progress_updated(snap)
                if snap.elapsed >= self.total:
                    break
                self.cancel.wait(self.interval)
        except Exception as e:
            logger.debug(f"[PROGRESS] Progress display failed: {e}", exc_info=True)
        finally:
            self._last_elapsed = self.total
            self.presenter.progress_finished(self._make(self.total))
