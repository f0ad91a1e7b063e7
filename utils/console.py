"""
Console presenter: log-style messages, a rich progress bar and tabulated stream lists.
"""

import logging
import threading
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from tabulate import tabulate

from core.models import AudioStream, PlaybackTarget, ProgressSnapshot
from core.presenter import Presenter
from core.progress import format_time

logger = logging.getLogger("yt_audio_streamer")


def format_size(size: Optional[int]) -> str:
    if not size:
        return "unknown"
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} GB"


def streams_table(streams: Sequence[AudioStream]) -> str:
    rows = [
        [s.container, s.codec or "", f"{s.bitrate} bps", format_size(s.size)]
        for s in sorted(streams, key=lambda s: s.bitrate, reverse=True)
    ]
    return tabulate(rows, headers=["Format", "Codec", "Bitrate", "Size"], tablefmt="fancy_grid")


class ConsolePresenter(Presenter):
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
        self._lock = threading.Lock()

    # ------------ messages ------------
    def info(self, message: str) -> None:
        logger.info(f"ℹ️  {message}")

    def warning(self, message: str) -> None:
        logger.warning(f"⚠️  {message}")

    def error(self, message: str) -> None:
        logger.error(f"❌ {message}")

    def success(self, message: str) -> None:
        logger.info(f"✅ {message}")

    def song_info(self, target: PlaybackTarget) -> None:
        self.console.print(f"[bold blue]Title:[/] {escape(target.title)}")
        self.console.print(f"[bold green]Author:[/] {escape(target.author)}")
        duration = format_time(target.duration) if target.duration else "unknown"
        self.console.print(f"[bold yellow]Duration:[/] {duration}")

    def audio_streams(self, streams: Sequence[AudioStream]) -> None:
        if not streams:
            self.console.print("No audio streams available for this video.")
            return
        self.console.print("\n🎧 Available audio streams\n" + streams_table(streams), markup=False)

    # ------------ progress ------------
    def progress_started(self, target: PlaybackTarget) -> None:
        with self._lock:
            self._progress = Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                TimeElapsedColumn(),
                SpinnerColumn(),
                console=self.console,
            )
            self._progress.start()
            self._task = self._progress.add_task(
                self._describe(target.title, target.author, 0, target.duration or 0),
                total=target.duration or None,
            )

    def progress_updated(self, snapshot: ProgressSnapshot) -> None:
        with self._lock:
            if self._progress is None:
                return
            self._progress.update(
                self._task,
                completed=snapshot.elapsed,
                description=self._describe(
                    snapshot.title, snapshot.author, snapshot.elapsed, snapshot.total
                ),
            )

    def progress_finished(self, snapshot: ProgressSnapshot) -> None:
        with self._lock:
            if self._progress is None:
                return
            self._progress.update(
                self._task,
                completed=snapshot.total,
                description=self._describe(
                    snapshot.title, snapshot.author, snapshot.total, snapshot.total
                ),
            )
            self._progress.stop_task(self._task)
            self._progress.stop()
            self._progress = None
            self._task = None

    @staticmethod
    def _describe(title: str, author: str, elapsed: float, total: float) -> str:
        return (
            f"[bold blue]{escape(title)}[/] - [bold green]{escape(author)}[/] "
            f"[bold yellow]{format_time(elapsed)} / {format_time(total)}[/]"
        )
