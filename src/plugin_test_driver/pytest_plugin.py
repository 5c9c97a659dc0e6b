# src/plugin_test_driver/pytest_plugin.py
# Pytest plugin exposing test driver fixtures.

"""
Registered through the `pytest11` entry point, so any project that installs
plugin-test-driver gets these fixtures:

- ptd_driver: a fresh TestDriver, closed after the test
- ptd_capture: factory writing raw events to a capture file in tmp_path

Example:

    def test_countdown(ptd_driver, ptd_capture):
        path = ptd_capture([plugin_event(999, b"2 events remaining")])
        ptd_driver.open_capture_file(path)
        assert ptd_driver.next().ok
"""

from pathlib import Path
from typing import Callable, Iterable, Iterator

import pytest

from plugin_test_driver.driver import TestDriver
from plugin_test_driver.engine.capture import write_capture


@pytest.fixture
def ptd_driver() -> Iterator[TestDriver]:
    """A fresh test driver, closed when the test ends."""
    driver = TestDriver()
    yield driver
    driver.close()


@pytest.fixture
def ptd_capture(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing raw events to a new capture file."""
    counter = {"n": 0}

    def make(events: Iterable[bytes], name: str = "") -> Path:
        counter["n"] += 1
        filename = name or f"capture-{counter['n']}.ptd"
        return write_capture(tmp_path / filename, events)

    return make


def pytest_configure(config):
    """Register the plugin's markers."""
    config.addinivalue_line(
        "markers", "ptd_plugin(path): plugin descriptor exercised by the test"
    )
