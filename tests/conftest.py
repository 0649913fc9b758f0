"""Shared fixtures for statusline tests."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from watchdog.events import FileModifiedEvent

from statusline.config import StatusLineConfig
from statusline.models import StatusLineEvent
from statusline.watcher import StatusLineWatcher

TEAM = "teamA"


class FakeObserver:
    """Stands in for a watchdog observer without starting a thread.

    Tests call notify() to deliver a change notification synchronously.
    """

    def __init__(self) -> None:
        self.scheduled: list[tuple[object, str, bool]] = []
        self.started = False
        self.stopped = False

    def schedule(self, handler, path, recursive=False):
        self.scheduled.append((handler, path, recursive))
        return object()

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def is_alive(self) -> bool:
        return self.started and not self.stopped

    def join(self, timeout=None) -> None:
        pass

    def notify(self) -> None:
        for handler, _, _ in self.scheduled:
            handler.on_modified(FileModifiedEvent(str(handler.file_path)))


def append_text(path: Path, text: str) -> None:
    with path.open("ab") as f:
        f.write(text.encode("utf-8"))


@pytest.fixture(autouse=True)
def reset_statusline_logger() -> Iterator[None]:
    """Undo setup_logging() so caplog keeps seeing statusline records."""
    yield
    logger = logging.getLogger("statusline")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def clean_statusline_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "STATUSLINE_CONFIG",
        "STATUSLINE_TEAMS_DIR",
        "STATUSLINE_LOG_LEVEL",
        "STATUSLINE_LOG_DIR",
        "STATUSLINE_USE_POLLING",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def teams_dir(tmp_path: Path) -> Path:
    return tmp_path / "teams"


@pytest.fixture
def config(teams_dir: Path) -> StatusLineConfig:
    return StatusLineConfig(teams_dir=str(teams_dir), observer_join_timeout_seconds=1.0)


@pytest.fixture
def observers() -> list[FakeObserver]:
    return []


@pytest.fixture
def observer_factory(observers: list[FakeObserver]):
    def factory() -> FakeObserver:
        observer = FakeObserver()
        observers.append(observer)
        return observer

    return factory


@pytest.fixture
def watcher(config: StatusLineConfig, observer_factory) -> Iterator[StatusLineWatcher]:
    """Watcher for TEAM with its statusline directory created."""
    w = StatusLineWatcher(TEAM, config, observer_factory=observer_factory)
    w.ensure_dir()
    yield w
    w.stop()


@pytest.fixture
def updates(watcher: StatusLineWatcher) -> list[StatusLineEvent]:
    received: list[StatusLineEvent] = []
    watcher.on("update", received.append)
    return received


@pytest.fixture
def errors(watcher: StatusLineWatcher) -> list[Exception]:
    received: list[Exception] = []
    watcher.on("error", received.append)
    return received
