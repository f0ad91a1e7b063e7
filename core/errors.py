"""
Error taxonomy for resolution and playback.
"""


class YtStreamError(Exception):
    """Base class for every error the streamer reports to the user."""

    kind = "error"


class MissingDependency(YtStreamError):
    """The external player binary could not be found."""

    kind = "missing-dependency"


class InvalidInput(YtStreamError, ValueError):
    """No usable URL / search term, or an unplayable target."""

    kind = "invalid-input"


class NotFoundError(YtStreamError):
    """A search returned no videos."""

    kind = "not-found"


class ResolutionError(YtStreamError):
    """Video metadata or the stream manifest could not be fetched."""

    kind = "resolution"


class NoAudioStreamError(YtStreamError):
    """The manifest has no audio-only stream."""

    kind = "no-audio-stream"


class LaunchError(YtStreamError):
    """The player process failed to start."""

    kind = "launch"


class PlaybackError(YtStreamError):
    """Unexpected failure while monitoring playback."""

    kind = "playback"


class CleanupWarning(Warning):
    """A cleanup step failed or could not be confirmed. Logged, never raised."""


RESOLUTION_ERRORS = (NotFoundError, ResolutionError, NoAudioStreamError)
