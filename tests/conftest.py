"""Shared fixtures for the cmdgroup test-suite.

Process tests run real POSIX children (sh, sleep, true, false) with short
delays, so they are skipped on platforms without process groups.
"""

import shutil
import sys
import threading
import time

import pytest


def pytest_collection_modifyitems(config, items):
    if sys.platform != "win32":
        return
    skip = pytest.mark.skip(reason="requires POSIX process groups")
    for item in items:
        if "posix" in item.keywords:
            item.add_marker(skip)


def pytest_configure(config):
    config.addinivalue_line("markers", "posix: test spawns POSIX child processes")


@pytest.fixture
def which():
    """Resolve an executable or skip the test when it is unavailable."""

    def _which(name):
        path = shutil.which(name)
        if path is None:
            pytest.skip(f"{name} not available")
        return path

    return _which


@pytest.fixture
def wait_for():
    """Poll a predicate until it holds or the timeout elapses."""

    def _wait_for(predicate, timeout=5.0, interval=0.02):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait_for


class BackgroundCall(threading.Thread):
    """Runs a callable in a thread and keeps its return value or exception."""

    def __init__(self, target, *args):
        super().__init__(daemon=True)
        self._target_fn = target
        self._args = args
        self.result = None
        self.error = None

    def run(self):
        try:
            self.result = self._target_fn(*self._args)
        except Exception as e:
            self.error = e


@pytest.fixture
def background():
    """Start a callable in a background thread; joined on teardown."""
    calls = []

    def _background(target, *args):
        call = BackgroundCall(target, *args)
        call.start()
        calls.append(call)
        return call

    yield _background

    for call in calls:
        call.join(timeout=15)
