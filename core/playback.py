"""
Playback controller for ffplay: launch, watch, stop gracefully, force-kill, clean up.

- The stop key is watched from before the player starts; a stop requested before launch
  means ffplay is never started.
- Stopping first asks ffplay to quit through its stdin; only then is the process tree killed.
- Every exit path goes through PlaybackSession.close(), exactly once.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from core.cancellation import CancellationSignal, CancelReason
from core.errors import InvalidInput, LaunchError, PlaybackError
from core.input_watcher import ConsoleKeyReader, InputWatcher
from core.models import PlaybackOutcome, PlaybackStatus, PlaybackTarget
from core.presenter import Presenter
from core.progress import ProgressReporter
from core.session import PlaybackSession

logger = logging.getLogger(__name__)

DEFAULT_ARGS = [
    "-loglevel", "error",
    "-autoexit",
    "-vn",
    "-nodisp",
]


TASKKILL_TIMEOUT = 5.0


def kill_process_tree(process: subprocess.Popen) -> None:
    """Force-kill the player together with anything it spawned."""
    if os.name == "nt":
        taskkill_tree(process)
        return

    # Launched with start_new_session=True, so the group id is the player's pid.
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def taskkill_tree(process: subprocess.Popen, timeout: float = TASKKILL_TIMEOUT) -> None:
    """
    Windows tree kill. A hung taskkill still falls back to killing the player
    itself, then re-raises so the caller records it as a cleanup warning.
    """
    timed_out = None
    try:
        subprocess.run(
            ["taskkill", "/F", "/T", "/PID", str(process.pid)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        timed_out = e
    if process.poll() is None:
        process.kill()
    if timed_out is not None:
        raise timed_out


def _platform_popen_kwargs() -> Dict[str, Any]:
    if os.name == "nt":
        return {"creationflags": subprocess.CREATE_NO_WINDOW}
    return {"start_new_session": True}


class PlaybackController:
    def __init__(
            self,
            presenter: Optional[Presenter] = None,
            ffplay_path: str = "ffplay",
            base_args: Optional[List[str]] = None,
            stop_key: str = "q",
            stop_command: str = "q",
            poll_interval: float = 0.1,
            graceful_timeout: float = 1.0,
            kill_timeout: float = 2.0,
            progress_interval: float = 1.0,
            key_reader_factory: Callable[[], Any] = ConsoleKeyReader,
            popen: Callable[..., subprocess.Popen] = subprocess.Popen,
            kill_tree: Callable[[subprocess.Popen], None] = kill_process_tree,
            clock: Callable[[], float] = time.monotonic,
    ):
        self.presenter = presenter or Presenter()
        self.ffplay_path = ffplay_path
        self.base_args = base_args if base_args is not None else list(DEFAULT_ARGS)
        self.stop_key = stop_key
        self.stop_command = stop_command
        self.poll_interval = poll_interval
        self.graceful_timeout = graceful_timeout
        self.kill_timeout = kill_timeout
        self.progress_interval = progress_interval
        self.key_reader_factory = key_reader_factory
        self.popen = popen
        self.kill_tree = kill_tree
        self.clock = clock

        self._lock = threading.RLock()
        self._session: Optional[PlaybackSession] = None

    @classmethod
    def from_config(cls, cfg: dict, presenter: Presenter, ffplay_path: str) -> "PlaybackController":
        player = cfg.get("player", {})
        return cls(
            presenter=presenter,
            ffplay_path=ffplay_path,
            base_args=player.get("args"),
            stop_key=player.get("stop_key", "q"),
            stop_command=player.get("stop_command", "q"),
            poll_interval=float(player.get("poll_interval", 0.1)),
            graceful_timeout=float(player.get("graceful_timeout", 1.0)),
            kill_timeout=float(player.get("kill_timeout", 2.0)),
            progress_interval=float(cfg.get("progress", {}).get("interval", 1.0)),
        )

    # ------------ public API ------------
    def play(self, target: PlaybackTarget) -> PlaybackOutcome:
        """Play ``target`` until it ends or the user stops it."""
        if target is None or not target.stream_url:
            raise InvalidInput("Stream URL cannot be null or empty")

        cancel = CancellationSignal()
        session = PlaybackSession(
            cancel,
            self.presenter,
            kill_tree=self.kill_tree,
            kill_timeout=self.kill_timeout,
        )
        with self._lock:
            self._session = session

        self.presenter.info(f"Press '{self.stop_key}' to stop playback")
        self.presenter.song_info(target)

        with session:
            watcher = InputWatcher(
                cancel,
                self.key_reader_factory(),
                on_stop=lambda: session.send_stop_command(self.stop_command),
                stop_key=self.stop_key,
                poll_interval=self.poll_interval,
            )
            session.add_activity(watcher)
            watcher.start()

            self.presenter.info("Starting audio playback...")
            status = self._run(session, target)

        outcome = self._outcome(status, session)
        if outcome.status is PlaybackStatus.FAILED:
            self.presenter.error(f"Playback failed: {outcome.reason}")
        elif outcome.status is PlaybackStatus.COMPLETED:
            self.presenter.success("Playback finished.")
        else:
            logger.info(f"[PLAY] Playback {outcome.reason}")
        return outcome

    def stop(self) -> None:
        """Stop the current playback, if any, and release its resources."""
        with self._lock:
            session = self._session
        if session is None:
            return
        session.cancel.set(CancelReason.STOP)
        if session.is_running():
            session.send_stop_command(self.stop_command)
            session.wait_for_exit(self.graceful_timeout)
        session.close()

    @property
    def session(self) -> Optional[PlaybackSession]:
        """The most recent playback session."""
        with self._lock:
            return self._session

    @property
    def is_playing(self) -> bool:
        with self._lock:
            return bool(self._session and self._session.is_running())

    @property
    def exit_code(self) -> Optional[int]:
        with self._lock:
            return self._session.exit_code if self._session else None

    # ------------ internals ------------
    def _launch(self, stream_url: str) -> subprocess.Popen:
        args = [self.ffplay_path, *self.base_args, "-i", stream_url]
        logger.info("[PLAY] Starting playback")
        logger.debug(f"[PLAY] ffplay cmd: {' '.join(args)}")
        try:
            return self.popen(
                args,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                **_platform_popen_kwargs(),
            )
        except FileNotFoundError as e:
            raise LaunchError(f"ffplay not found at '{self.ffplay_path}' (install FFmpeg)") from e
        except (OSError, ValueError) as e:
            raise LaunchError(f"Could not start ffplay: {e}") from e

    def _run(self, session: PlaybackSession, target: PlaybackTarget) -> PlaybackStatus:
        cancel = session.cancel
        if cancel.is_set():
            logger.info("[PLAY] Stop requested before launch, ffplay not started")
            return PlaybackStatus.CANCELLED

        if not session.attach(self._launch(target.stream_url), self.clock()):
            return PlaybackStatus.CANCELLED

        if target.has_duration:
            reporter = ProgressReporter(
                self.presenter,
                target,
                cancel,
                started_at=session.started_at,
                interval=self.progress_interval,
                clock=self.clock,
            )
            session.add_activity(reporter)
            reporter.start()

        try:
            return self._wait(session)
        except Exception as e:
            logger.debug("[PLAY] Monitor loop failed", exc_info=True)
            raise PlaybackError(f"Exception occurred in playback: {e}") from e

    def _wait(self, session: PlaybackSession) -> PlaybackStatus:
        proc = session.process
        cancel = session.cancel

        while proc.poll() is None and not cancel.is_set():
            cancel.wait(self.poll_interval)

        if proc.poll() is not None:
            cancel.set(CancelReason.EXITED)

        if not cancel.stop_requested:
            return PlaybackStatus.COMPLETED if proc.returncode == 0 else PlaybackStatus.FAILED

        if session.is_running():
            self.presenter.info("Waiting for ffplay to stop gracefully...")
            session.send_stop_command(self.stop_command)
            if not session.wait_for_exit(self.graceful_timeout):
                self.presenter.warning("Force stopping ffplay...")
                session.force_stop()
        return PlaybackStatus.CANCELLED

    @staticmethod
    def _outcome(status: PlaybackStatus, session: PlaybackSession) -> PlaybackOutcome:
        exit_code = session.exit_code
        reason = None
        if status is PlaybackStatus.CANCELLED:
            reason = "stopped by user" if session.cancel.reason is CancelReason.USER else "stopped"
        elif status is PlaybackStatus.FAILED:
            reason = f"ffplay exited with code {exit_code}"
        return PlaybackOutcome(
            status=status,
            reason=reason,
            exit_code=exit_code,
            warnings=tuple(session.warnings),
        )
