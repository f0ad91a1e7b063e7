"""Initialize the core package and expose key functionality."""

from .errors import (
    CleanupWarning,
    InvalidInput,
    LaunchError,
    MissingDependency,
    NoAudioStreamError,
    NotFoundError,
    PlaybackError,
    ResolutionError,
    YtStreamError,
)
from .models import (
    AudioStream,
    PlaybackOutcome,
    PlaybackStatus,
    PlaybackTarget,
    ProgressSnapshot,
    Resolution,
    ResolveRequest,
)
from .playback import PlaybackController
from .presenter import Presenter
from .resolver import StreamResolver

__all__ = [
    "AudioStream",
    "CleanupWarning",
    "InvalidInput",
    "LaunchError",
    "MissingDependency",
    "NoAudioStreamError",
    "NotFoundError",
    "PlaybackController",
    "PlaybackError",
    "PlaybackOutcome",
    "PlaybackStatus",
    "PlaybackTarget",
    "Presenter",
    "ProgressSnapshot",
    "Resolution",
    "ResolveRequest",
    "ResolutionError",
    "StreamResolver",
    "YtStreamError",
]
