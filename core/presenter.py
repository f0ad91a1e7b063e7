"""
Presentation-layer interface consumed by the core.

The core never prints; it emits semantic events to a Presenter. The console
implementation lives in ``utils.console``.
"""

from typing import Sequence

from core.models import AudioStream, PlaybackTarget, ProgressSnapshot


class Presenter:
    """Base presenter. Every method is a no-op so subclasses override what they need."""

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def song_info(self, target: PlaybackTarget) -> None:
        pass

    def audio_streams(self, streams: Sequence[AudioStream]) -> None:
        pass

    def progress_started(self, target: PlaybackTarget) -> None:
        pass

    def progress_updated(self, snapshot: ProgressSnapshot) -> None:
        pass

    def progress_finished(self, snapshot: ProgressSnapshot) -> None:
        pass
