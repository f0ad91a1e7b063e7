import pytest

from core.errors import InvalidInput, YtStreamError
from core.models import PlaybackTarget, ProgressSnapshot, ResolveRequest


@pytest.mark.parametrize("url, search", [
    (None, None),
    ("", ""),
    ("  ", None),
    ("https://youtu.be/x", "also a search"),
])
def test_resolve_request_needs_exactly_one_input(url, search):
    with pytest.raises(InvalidInput):
        ResolveRequest(url=url, search=search)


def test_resolve_request_strips_values():
    request = ResolveRequest(search="  lofi beats ")
    assert request.is_search
    assert request.search == "lofi beats"
    assert request.url is None


def test_invalid_input_is_also_a_value_error():
    assert issubclass(InvalidInput, ValueError)
    assert issubclass(InvalidInput, YtStreamError)


def test_playback_target_rejects_negative_duration():
    with pytest.raises(InvalidInput):
        PlaybackTarget(stream_url="http://x", duration=-1)


def test_playback_target_is_immutable():
    target = PlaybackTarget(stream_url="http://x")
    with pytest.raises(AttributeError):
        target.stream_url = "http://y"


def test_snapshot_fraction():
    assert ProgressSnapshot(elapsed=5, total=10).fraction == 0.5
    assert ProgressSnapshot(elapsed=5, total=0).fraction == 0.0
