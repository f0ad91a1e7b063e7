import pytest

import main
from core.errors import LaunchError, MissingDependency
from core.models import PlaybackOutcome, PlaybackStatus
from core.resolver import StreamResolver
from tests.conftest import RecordingPresenter
from tests.test_resolver import FORMATS, INFO, VIDEO_URL, make_resolver


class FakeController:
    def __init__(self, outcome=None, error=None):
        self.outcome = outcome or PlaybackOutcome(PlaybackStatus.COMPLETED, exit_code=0)
        self.error = error
        self.played = []
        self.stopped = 0

    def play(self, target):
        self.played.append(target)
        if self.error is not None:
            raise self.error
        return self.outcome

    def stop(self):
        self.stopped += 1


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(f"logging:\n  dir: {tmp_path.as_posix()}/logs\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def player_found(monkeypatch):
    monkeypatch.setattr(main, "find_player", lambda name: "/usr/bin/ffplay")


def run_cli(argv, config_file, resolver=None, controller=None):
    presenter = RecordingPresenter()
    controller = controller or FakeController()
    code = main.run(
        argv + ["--config", config_file],
        presenter=presenter,
        resolver=resolver or make_resolver({VIDEO_URL: INFO})[0],
        controller_factory=lambda cfg, p, path: controller,
    )
    return code, presenter, controller


@pytest.mark.usefixtures("player_found", "restore_root_logging")
def test_url_playback_succeeds(config_file):
    code, presenter, controller = run_cli(["--url", VIDEO_URL], config_file)

    assert code == 0
    assert controller.played[0].stream_url == "https://cdn/251"
    assert presenter.streams == []


@pytest.mark.usefixtures("player_found", "restore_root_logging")
def test_verbose_lists_streams_before_playback(config_file):
    code, presenter, _ = run_cli(["--url", VIDEO_URL, "--verbose"], config_file)

    assert code == 0
    assert [s.format_id for s in presenter.streams[0]] == ["251", "140", "249"]


@pytest.mark.usefixtures("player_found", "restore_root_logging")
def test_user_stop_exits_zero(config_file):
    controller = FakeController(PlaybackOutcome(PlaybackStatus.CANCELLED, reason="stopped by user"))
    code, presenter, _ = run_cli(["--url", VIDEO_URL], config_file, controller=controller)

    assert code == 0
    assert "Playback stopped." in presenter.successes


@pytest.mark.usefixtures("player_found", "restore_root_logging")
def test_keyboard_interrupt_stops_and_exits_zero(config_file):
    controller = FakeController(error=KeyboardInterrupt())
    code, _, _ = run_cli(["--url", VIDEO_URL], config_file, controller=controller)

    assert code == 0
    assert controller.stopped == 1


@pytest.mark.usefixtures("player_found", "restore_root_logging")
@pytest.mark.parametrize("argv", [[], ["--url", ""], ["--search", "   "], ["--url", VIDEO_URL, "-s", "x"]])
def test_invalid_input_exits_one_without_network(config_file, argv):
    resolver, calls, _ = make_resolver({})
    code, presenter, controller = run_cli(argv, config_file, resolver=resolver)

    assert code == 1
    assert calls == []
    assert controller.played == []
    assert presenter.errors


@pytest.mark.usefixtures("restore_root_logging")
def test_missing_player_exits_one_before_resolution(config_file, monkeypatch):
    def missing(name):
        raise MissingDependency("ffplay not found!")

    monkeypatch.setattr(main, "find_player", missing)
    resolver, calls, _ = make_resolver({VIDEO_URL: INFO})

    code, presenter, _ = run_cli(["--url", VIDEO_URL], config_file, resolver=resolver)

    assert code == 1
    assert calls == []
    assert "ffplay not found!" in presenter.errors[0]


@pytest.mark.usefixtures("player_found", "restore_root_logging")
def test_no_audio_stream_never_plays(config_file):
    info = dict(INFO, formats=[f for f in FORMATS if f["format_id"] == "18"])
    resolver, _, _ = make_resolver({VIDEO_URL: info})

    code, presenter, controller = run_cli(["--url", VIDEO_URL], config_file, resolver=resolver)

    assert code == 1
    assert controller.played == []
    assert "No audio stream" in presenter.errors[0]


@pytest.mark.usefixtures("player_found", "restore_root_logging")
def test_search_without_results_exits_one(config_file):
    resolver, calls, _ = make_resolver({"ytsearch1:nothing here": {"entries": []}})

    code, presenter, _ = run_cli(["--search", "nothing here"], config_file, resolver=resolver)

    assert code == 1
    assert calls == ["ytsearch1:nothing here"]
    assert "No videos found" in presenter.errors[0]


@pytest.mark.usefixtures("player_found", "restore_root_logging")
def test_launch_error_exits_one(config_file):
    controller = FakeController(error=LaunchError("ffplay not found at 'ffplay'"))
    code, presenter, _ = run_cli(["--url", VIDEO_URL], config_file, controller=controller)

    assert code == 1
    assert presenter.errors


@pytest.mark.usefixtures("player_found", "restore_root_logging")
def test_failed_playback_exits_one(config_file):
    controller = FakeController(PlaybackOutcome(PlaybackStatus.FAILED, reason="ffplay exited with code 1"))
    code, _, _ = run_cli(["--url", VIDEO_URL], config_file, controller=controller)

    assert code == 1


def test_missing_config_file_exits_one(tmp_path):
    presenter = RecordingPresenter()
    code = main.run(["--url", VIDEO_URL, "--config", str(tmp_path / "absent.yml")],
                    presenter=presenter, resolver=StreamResolver())

    assert code == 1
    assert "Could not load configuration" in presenter.errors[0]
