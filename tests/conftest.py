import logging
import subprocess
import threading

import pytest

from core.presenter import Presenter


class RecordingPresenter(Presenter):
    def __init__(self):
        self.infos, self.warnings, self.errors, self.successes = [], [], [], []
        self.songs, self.streams = [], []
        self.started, self.updates, self.finished = [], [], []
        self._lock = threading.Lock()

    def info(self, message):
        self.infos.append(message)

    def warning(self, message):
        self.warnings.append(message)

    def error(self, message):
        self.errors.append(message)

    def success(self, message):
        self.successes.append(message)

    def song_info(self, target):
        self.songs.append(target)

    def audio_streams(self, streams):
        self.streams.append(list(streams))

    def progress_started(self, target):
        self.started.append(target)

    def progress_updated(self, snapshot):
        with self._lock:
            self.updates.append(snapshot)

    def progress_finished(self, snapshot):
        self.finished.append(snapshot)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            return self.now

    def advance(self, seconds):
        with self._lock:
            self.now += seconds


class FakeStdin:
    def __init__(self, broken=False):
        self.writes = []
        self.flushes = 0
        self.close_calls = 0
        self.closed = False
        self.broken = broken
        self.on_write = None

    def write(self, data):
        if self.closed:
            raise ValueError("write to closed file")
        if self.broken:
            raise BrokenPipeError("player went away")
        self.writes.append(data)
        if self.on_write:
            self.on_write(data)
        return len(data)

    def flush(self):
        self.flushes += 1

    def close(self):
        self.close_calls += 1
        self.closed = True


class FakeProcess:
    """
    Stand-in for subprocess.Popen.

    exit_at:        clock time at which the player ends on its own (code 0)
    exits_on_stop:  the "q" command makes it exit
    dies_on_kill:   kill() makes it exit
    tick:           clock advance per poll(), to drive simulated time
    """

    def __init__(self, clock=None, exit_at=None, exits_on_stop=True, dies_on_kill=True,
                 tick=0.0, exit_code=0, broken_stdin=False):
        self.pid = 4242
        self.returncode = None
        self.clock = clock
        self.exit_at = exit_at
        self.exits_on_stop = exits_on_stop
        self.dies_on_kill = dies_on_kill
        self.tick = tick
        self.exit_code = exit_code
        self.kill_calls = 0
        self.poll_error = None
        self.stdin = FakeStdin(broken=broken_stdin)
        self.stdin.on_write = self._on_write
        self.stdout = None
        self.stderr = None
        self._lock = threading.Lock()

    def _on_write(self, data):
        if self.exits_on_stop and data.strip().lower() == b"q":
            self._exit(0)

    def _exit(self, code):
        with self._lock:
            if self.returncode is None:
                self.returncode = code

    def poll(self):
        if self.poll_error is not None:
            error, self.poll_error = self.poll_error, None
            raise error
        if self.clock is not None and self.tick:
            self.clock.advance(self.tick)
        if (self.returncode is None and self.exit_at is not None
                and self.clock is not None and self.clock() >= self.exit_at):
            self._exit(self.exit_code)
        return self.returncode

    def wait(self, timeout=None):
        if self.poll() is None:
            raise subprocess.TimeoutExpired("ffplay", timeout)
        return self.returncode

    def kill(self):
        self.kill_calls += 1
        if self.dies_on_kill:
            self._exit(-9)

    def finish(self, code=0):
        self._exit(code)


class FakePopen:
    def __init__(self, process=None, error=None):
        self.process = process
        self.error = error
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        return self.process


class FakeKeyReader:
    """Delivers queued keys once ``ready()`` says so."""

    def __init__(self, keys=(), ready=None, error=None):
        self.keys = list(keys)
        self.ready = ready or (lambda: True)
        self.error = error
        self.entered = False
        self.exited = False
        self.reads = 0

    def __enter__(self):
        self.entered = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exited = True

    def key_available(self):
        if self.error is not None:
            raise self.error
        return bool(self.keys) and self.ready()

    def read_key(self):
        self.reads += 1
        return self.keys.pop(0)

    def press(self, key):
        self.keys.append(key)


def kill_via_process(process):
    process.kill()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
