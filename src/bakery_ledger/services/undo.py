"""Timed undo slot for deleted records."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_UNDO_WINDOW_SECONDS = 10.0


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class PendingRemoval(Generic[T]):
    """A removed record and where it used to sit."""

    record: T
    index: int
    expires_at: datetime


@dataclass
class UndoSlot(Generic[T]):
    """Single pending-undo slot with an explicit expiry check.

    Arming the slot replaces whatever was pending before it. Once the
    window has elapsed the record is dropped and ``take`` returns ``None``.
    """

    window_seconds: float = DEFAULT_UNDO_WINDOW_SECONDS
    clock: Callable[[], datetime] = utc_now
    _pending: PendingRemoval[T] | None = field(default=None, repr=False)

    def arm(self, record: T, index: int) -> PendingRemoval[T]:
        """Hold a removed record until the window elapses."""
        self._pending = PendingRemoval(
            record=record,
            index=index,
            expires_at=self.clock() + timedelta(seconds=self.window_seconds),
        )
        return self._pending

    def tick(self) -> None:
        """Discard the pending record if its window has elapsed."""
        if self._pending is not None and self.clock() >= self._pending.expires_at:
            self._pending = None

    @property
    def pending(self) -> PendingRemoval[T] | None:
        self.tick()
        return self._pending

    def take(self) -> PendingRemoval[T] | None:
        """Return and clear the pending record if it is still recoverable."""
        pending = self.pending
        self._pending = None
        return pending

    def clear(self) -> None:
        self._pending = None
