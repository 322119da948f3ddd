"""Shared fixtures for the live server tests."""

import pytest

from livesync_config import build_config


class FakeLoop:
    """Deterministic stand-in for tornado's IOLoop timer API."""

    def __init__(self):
        self.now = 0.0
        self._timers = {}
        self._seq = 0

    def time(self):
        return self.now

    def call_later(self, delay, callback, *args):
        self._seq += 1
        self._timers[self._seq] = (self.now + delay, callback, args)
        return self._seq

    def remove_timeout(self, handle):
        self._timers.pop(handle, None)

    def add_callback(self, callback, *args):
        callback(*args)

    @property
    def scheduled(self):
        return len(self._timers)

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [(when, h) for h, (when, _, _) in self._timers.items() if when <= target]
            if not due:
                break
            when, handle = min(due)
            _, callback, args = self._timers.pop(handle)
            self.now = when
            callback(*args)
        self.now = target


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def site(tmp_path):
    """A small served tree."""
    (tmp_path / "index.html").write_text("<html><body>hi</body></html>")
    (tmp_path / "css").mkdir()
    (tmp_path / "css" / "site.css").write_text("body { color: red }")
    return tmp_path


@pytest.fixture
def config(site):
    return build_config(root=str(site))
