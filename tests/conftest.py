from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from src.adapters.memory_store import InMemoryEngagementStore
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class FakeClock:
    """Controllable clock shared by the test suite."""

    def __init__(self, fixed_time: datetime | None = None):
        self._now = fixed_time or datetime(2026, 1, 14, 12, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._now

    def advance(self, ms: float) -> None:
        self._now += timedelta(milliseconds=ms)


class ManualTimer:
    """Flush timer that never ticks on its own."""

    def __init__(self, callback: Callable[[], Any], interval_seconds: float):
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.running = False

    def start(self) -> None:
        self.running = True

    def stop(self) -> None:
        self.running = False

    @property
    def is_running(self) -> bool:
        return self.running


@pytest.fixture
def rules_path() -> Path:
    # Load REAL rules from project root
    path = PROJECT_ROOT / "rules.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Rules not found at {path}")
    return path


@pytest.fixture
def rules(rules_path: Path) -> Rules:
    return load_rules(rules_path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryEngagementStore:
    return InMemoryEngagementStore(clock=clock)


@pytest.fixture
def timer_factory() -> type[ManualTimer]:
    return ManualTimer
