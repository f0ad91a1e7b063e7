"""
Value types shared by the resolver, the playback controller and the presenter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from core.errors import CleanupWarning, InvalidInput, YtStreamError

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Artist"


@dataclass(frozen=True)
class AudioStream:
    """One audio-only rendition offered by the provider."""

    url: str
    container: str
    bitrate: int  # bits per second
    size: Optional[int] = None  # bytes
    codec: Optional[str] = None
    format_id: Optional[str] = None


@dataclass(frozen=True)
class PlaybackTarget:
    stream_url: str
    title: str = UNKNOWN_TITLE
    author: str = UNKNOWN_AUTHOR
    duration: Optional[float] = None  # seconds
    video_id: Optional[str] = None

    def __post_init__(self):
        if self.duration is not None and self.duration < 0:
            raise InvalidInput(f"Duration cannot be negative: {self.duration}")

    @property
    def has_duration(self) -> bool:
        return bool(self.duration)


@dataclass(frozen=True)
class ProgressSnapshot:
    elapsed: float
    total: float
    title: str = UNKNOWN_TITLE
    author: str = UNKNOWN_AUTHOR

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(max(self.elapsed / self.total, 0.0), 1.0)


class PlaybackStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class PlaybackOutcome:
    status: PlaybackStatus
    reason: Optional[str] = None
    exit_code: Optional[int] = None
    warnings: tuple[CleanupWarning, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status is not PlaybackStatus.FAILED


@dataclass(frozen=True)
class ResolveRequest:
    """Either a direct video URL or a search term; never both."""

    url: Optional[str] = None
    search: Optional[str] = None

    def __post_init__(self):
        url = (self.url or "").strip()
        search = (self.search or "").strip()
        if url and search:
            raise InvalidInput("Use either --url or --search, not both")
        if not url and not search:
            raise InvalidInput("Invalid input: a video URL or a search term is required")
        object.__setattr__(self, "url", url or None)
        object.__setattr__(self, "search", search or None)

    @property
    def is_search(self) -> bool:
        return self.search is not None


@dataclass(frozen=True)
class Resolution:
    """Result of resolving a request: a playable target or an error."""

    target: Optional[PlaybackTarget] = None
    streams: tuple[AudioStream, ...] = field(default_factory=tuple)
    error: Optional[YtStreamError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.target is not None
