"""Shared test fixtures."""

import itertools
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from bakery_ledger.config import Settings
from bakery_ledger.containers import AppContainer
from bakery_ledger.services.store import LedgerStore, StateRepository


@dataclass
class InMemoryStateRepository(StateRepository):
    """In-memory state repository that records every save."""

    data: dict[str, object] = field(default_factory=dict)
    saved_keys: list[str] = field(default_factory=list)

    def load(self) -> dict[str, object]:
        return dict(self.data)

    def save(self, key: str, value: object) -> None:
        self.data[key] = value
        self.saved_keys.append(key)


@dataclass
class FakeClock:
    """Wall clock that only moves when told to."""

    now: datetime = field(default_factory=lambda: datetime(2024, 5, 1, 9, 0, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakeMonotonic:
    """Monotonic clock in seconds, advanced manually."""

    value: float = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"id{next(counter)}"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        admin_token="admin-token",
        state_backend="file",
        state_file=tmp_path / "state.json",
        calculator_cooldown_ms=0,
    )


@pytest.fixture
def repository() -> InMemoryStateRepository:
    return InMemoryStateRepository()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def store(
    settings: Settings,
    repository: InMemoryStateRepository,
    clock: FakeClock,
    monotonic: FakeMonotonic,
) -> LedgerStore:
    ledger = LedgerStore.create(
        repository,
        undo_window_seconds=settings.undo_window_seconds,
        snapshot_limit=settings.snapshot_limit,
        calculator_save_limit=settings.calculator_save_limit,
        calculator_cooldown_ms=settings.calculator_cooldown_ms,
        purchase_save_limit=settings.purchase_save_limit,
        clock=clock,
        monotonic=monotonic,
        id_factory=sequential_ids(),
    )
    ledger.load()
    return ledger


@pytest.fixture
def container(settings: Settings, store: LedgerStore) -> AppContainer:
    return AppContainer(settings=settings, store=store)
