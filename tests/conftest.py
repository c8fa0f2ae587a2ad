from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from src.taskboard.board import TaskBoard
from src.taskboard.errors import StoreUnavailableError
from src.taskboard.stores import InMemoryStore, KeyValueStore
from src.taskboard.workflow import CLASSIC

TODAY = date(2025, 6, 15)
START = datetime(2025, 6, 15, 9, 0, 0, tzinfo=timezone.utc)


class TickingClock:
    """Deterministic clock; every call is one second after the previous one."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


class RecordingStore(InMemoryStore):
    """In-memory store that remembers every write and can be switched to failing."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        super().__init__(initial)
        self.writes: List[str] = []
        self.failing = False

    def get(self, key: str) -> Optional[str]:
        if self.failing:
            raise StoreUnavailableError(key, "simulated outage")
        return super().get(key)

    def set(self, key: str, value: str) -> None:
        if self.failing:
            raise StoreUnavailableError(key, "simulated outage")
        self.writes.append(key)
        super().set(key, value)

    def has(self, key: str) -> bool:
        if self.failing:
            raise StoreUnavailableError(key, "simulated outage")
        return super().has(key)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def make_board(clock):
    def _make(store: Optional[KeyValueStore] = None, config=CLASSIC) -> TaskBoard:
        return TaskBoard(store if store is not None else RecordingStore(), config=config, clock=clock, today=lambda: TODAY)

    return _make


@pytest.fixture
def board(make_board, store) -> TaskBoard:
    return make_board(store)
