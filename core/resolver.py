"""
Resolve a YouTube URL or search term into a playable audio stream using yt-dlp.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import yt_dlp as ytdlp
from yt_dlp.utils import DownloadError

from core.errors import (
    RESOLUTION_ERRORS,
    NoAudioStreamError,
    NotFoundError,
    ResolutionError,
)
from core.models import (
    UNKNOWN_AUTHOR,
    UNKNOWN_TITLE,
    AudioStream,
    PlaybackTarget,
    Resolution,
    ResolveRequest,
)

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={id}"

BASE_YDL_OPTS = {
    "quiet": True,
    "no_warnings": True,
    "skip_download": True,
    "noplaylist": True,
}


class StreamResolver:
    """Wrapper for yt-dlp lookups. Performs network calls only."""

    def __init__(
            self,
            ydl_factory: Callable[[Dict[str, Any]], Any] = ytdlp.YoutubeDL,
            ydl_opts: Optional[Dict[str, Any]] = None,
    ):
        self.ydl_factory = ydl_factory
        self.ydl_opts = {**BASE_YDL_OPTS, **(ydl_opts or {})}

    # ------------ public API ------------
    def resolve(self, request: ResolveRequest) -> Resolution:
        """Resolve the request. Raises on resolution errors."""
        if request.is_search:
            video_url = self.search_first(request.search)
        else:
            video_url = request.url

        info = self.fetch_info(video_url)
        streams = self.audio_streams(info)
        best = self.best_audio_stream(streams)

        target = PlaybackTarget(
            stream_url=best.url,
            title=info.get("title") or UNKNOWN_TITLE,
            author=info.get("uploader") or info.get("channel") or UNKNOWN_AUTHOR,
            duration=_as_seconds(info.get("duration")),
            video_id=info.get("id"),
        )
        logger.info(
            f"[RESOLVE] Video: {target.title} | author={target.author} "
            f"| duration={target.duration}"
        )
        return Resolution(target=target, streams=tuple(streams))

    def try_resolve(self, request: ResolveRequest) -> Resolution:
        """Like resolve(), but expected failures come back as Resolution.error."""
        try:
            return self.resolve(request)
        except RESOLUTION_ERRORS as e:
            logger.warning(f"[RESOLVE] {e.kind}: {e}")
            return Resolution(error=e)

    def search_first(self, term: str) -> str:
        """Return the URL of the first search result, in provider order."""
        logger.info(f"[RESOLVE] Searching for: {term}")
        opts = {**self.ydl_opts, "extract_flat": "in_playlist"}

        try:
            with self.ydl_factory(opts) as ydl:
                result = ydl.extract_info(f"ytsearch1:{term}", download=False)
        except DownloadError as e:
            raise ResolutionError(f"Search failed for '{term}': {_clean(e)}") from e

        entries = (result or {}).get("entries") or []
        first = next(iter(entries), None)
        if not first:
            raise NotFoundError(f"No videos found for search term: {term}")

        url = first.get("webpage_url") or first.get("url")
        if not url and first.get("id"):
            url = WATCH_URL.format(id=first["id"])
        if not url:
            raise ResolutionError(f"Search result for '{term}' has no video URL")

        logger.info(f"[RESOLVE] Found video: {first.get('title') or url}")
        return url

    def fetch_info(self, url: str) -> Dict[str, Any]:
        """Fetch metadata and the format manifest in one extraction."""
        try:
            with self.ydl_factory(self.ydl_opts) as ydl:
                info = ydl.extract_info(url, download=False)
        except DownloadError as e:
            raise ResolutionError(f"Failed to initialize YouTube stream: {_clean(e)}") from e

        if not info:
            raise ResolutionError("Could not retrieve video information")
        if info.get("_type") == "playlist":
            raise ResolutionError("Playlists are not supported; pass a single video URL")
        if not info.get("formats"):
            raise ResolutionError("Could not retrieve stream manifest")
        return info

    @staticmethod
    def audio_streams(info: Dict[str, Any]) -> List[AudioStream]:
        """Audio-only formats, highest bitrate first."""
        streams = []
        for fmt in info.get("formats") or []:
            if fmt.get("vcodec") != "none":
                continue
            if fmt.get("acodec") in (None, "none") or not fmt.get("url"):
                continue

            kbps = fmt.get("abr") or fmt.get("tbr") or 0
            streams.append(AudioStream(
                url=fmt["url"],
                container=fmt.get("ext") or "unknown",
                bitrate=int(round(kbps * 1000)),
                size=fmt.get("filesize") or fmt.get("filesize_approx"),
                codec=fmt.get("acodec"),
                format_id=fmt.get("format_id"),
            ))

        streams.sort(key=lambda s: s.bitrate, reverse=True)
        return streams

    @staticmethod
    def best_audio_stream(streams: List[AudioStream]) -> AudioStream:
        if not streams:
            raise NoAudioStreamError("No audio stream available for this video")
        return max(streams, key=lambda s: s.bitrate)


def _as_seconds(value) -> Optional[float]:
    if value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


def _clean(error: Exception) -> str:
    # yt-dlp prefixes messages with "ERROR: "
    return str(error).replace("ERROR: ", "", 1)
