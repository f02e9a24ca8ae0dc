from enum import Enum
from typing import Awaitable
from typing import Callable
from typing import List
from typing import TypedDict

import pytest

from emitron import Emitron
from emitron.config import reset_settings


class SampleEvents(TypedDict):
    simpleEvent: str
    multiArgsEvent: Callable[[str, int], None]
    arrayEvent: List[str]
    asyncEvent: Awaitable[str]


class EventType(str, Enum):
    """Enum keys resolve to the same buckets as their string values."""

    SIMPLE = "simpleEvent"
    MULTI_ARGS = "multiArgsEvent"
    ARRAY = "arrayEvent"


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Every test starts from default settings, unaffected by the caller's env."""
    for var in ("EMITRON_MAX_LISTENERS", "EMITRON_LOG_LEVEL", "EMITRON_TRACK_BACKGROUND_TASKS"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("EMITRON_ENV_FILE", "/nonexistent/.env")
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def emitron():
    return Emitron[SampleEvents](SampleEvents)


@pytest.fixture
def event_tracker():
    """Fixture to record every call a handler receives."""
    calls = []

    def track(*args):
        calls.append(args)

    return calls, track
