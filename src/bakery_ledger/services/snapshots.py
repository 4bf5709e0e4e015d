"""Named point-in-time copies of the ledger with soft delete."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TypeVar

from bakery_ledger.domain.errors import (
    ConfirmationRequiredError,
    SnapshotNotFoundError,
    ValidationError,
)
from bakery_ledger.domain.money import new_id
from bakery_ledger.domain.snapshots import LedgerState, RestoreMode, Snapshot
from bakery_ledger.services.undo import utc_now

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_LIMIT = 5
CONFIRMATION_PHRASE = "DELETE"

R = TypeVar("R")


def union_names(current: Iterable[str], incoming: Iterable[str]) -> tuple[str, ...]:
    """Keep current order, then add unseen incoming names."""
    merged = list(current)
    for name in incoming:
        if name not in merged:
            merged.append(name)
    return tuple(merged)


def with_fresh_ids(
    current: Sequence[R], incoming: Sequence[R], id_factory: Callable[[], str]
) -> tuple[R, ...]:
    """Append ``incoming`` to ``current``, re-keying records whose id is taken."""
    taken = {record.id for record in current}
    appended = []
    for record in incoming:
        kept = replace(record, id=id_factory()) if record.id in taken else record
        taken.add(kept.id)
        appended.append(kept)
    return tuple(current) + tuple(appended)


def merge_state(
    current: LedgerState,
    saved: LedgerState,
    mode: RestoreMode,
    id_factory: Callable[[], str] = new_id,
) -> LedgerState:
    """Combine a saved state with the live one.

    ``replace`` takes the saved state wholesale. ``append`` concatenates
    records, unions the registries and keeps the live baseline. Appended
    records whose id is already live get a new id.
    """
    if mode == "replace":
        return saved
    return LedgerState(
        deliveries=with_fresh_ids(current.deliveries, saved.deliveries, id_factory),
        transactions=with_fresh_ids(
            current.transactions, saved.transactions, id_factory
        ),
        baseline=current.baseline,
        purchases=with_fresh_ids(current.purchases, saved.purchases, id_factory),
        purchase_items=union_names(current.purchase_items, saved.purchase_items),
        categories=union_names(current.categories, saved.categories),
    )


@dataclass
class SnapshotStore:
    """Snapshots newest first, capped at ``limit`` entries."""

    snapshots: list[Snapshot] = field(default_factory=list)
    limit: int = DEFAULT_SNAPSHOT_LIMIT
    clock: Callable[[], datetime] = utc_now
    id_factory: Callable[[], str] = new_id

    def create(self, name: str, state: LedgerState) -> Snapshot:
        snapshot = Snapshot(
            id=self.id_factory(),
            timestamp=self.clock().isoformat(),
            name=name.strip() or "Untitled",
            state=state,
        )
        self.snapshots.insert(0, snapshot)
        evicted = self.snapshots[self.limit :]
        del self.snapshots[self.limit :]
        for old in evicted:
            logger.info("Snapshot %s evicted", old.id)
        logger.info("Snapshot %s created: %s", snapshot.id, snapshot.name)
        return snapshot

    def get(self, snapshot_id: str) -> Snapshot:
        for snapshot in self.snapshots:
            if snapshot.id == snapshot_id:
                return snapshot
        raise SnapshotNotFoundError(snapshot_id)

    def restore(
        self, snapshot_id: str, mode: RestoreMode, current: LedgerState
    ) -> LedgerState:
        """Return the state the ledger should hold after restoring a snapshot.

        Deleted snapshots must be undeleted before their contents can be used.
        """
        if mode not in ("replace", "append"):
            raise ValidationError("mode", "Mode must be replace or append.")
        snapshot = self.get(snapshot_id)
        if snapshot.deleted:
            raise SnapshotNotFoundError(snapshot_id)
        logger.info("Snapshot %s restored (%s)", snapshot_id, mode)
        return merge_state(current, snapshot.state, mode, self.id_factory)

    def active(self) -> list[Snapshot]:
        return [s for s in self.snapshots if not s.deleted]

    def deleted(self) -> list[Snapshot]:
        return [s for s in self.snapshots if s.deleted]

    def delete(self, snapshot_id: str) -> Snapshot:
        index = self._index_of(snapshot_id)
        updated = replace(
            self.snapshots[index], deleted=True, deleted_at=self.clock().isoformat()
        )
        self.snapshots[index] = updated
        logger.info("Snapshot %s moved to deleted", snapshot_id)
        return updated

    def restore_deleted(self, snapshot_id: str) -> Snapshot:
        index = self._index_of(snapshot_id)
        current = self.snapshots[index]
        if not current.deleted:
            return current
        updated = replace(
            current,
            name=self.unique_name(current.name),
            deleted=False,
            deleted_at=None,
        )
        self.snapshots[index] = updated
        logger.info("Snapshot %s undeleted as %s", snapshot_id, updated.name)
        return updated

    def delete_permanently(self, snapshot_id: str, confirmation: str) -> None:
        if (confirmation or "").strip().upper() != CONFIRMATION_PHRASE:
            raise ConfirmationRequiredError(
                f"Type {CONFIRMATION_PHRASE} to permanently delete a snapshot."
            )
        del self.snapshots[self._index_of(snapshot_id)]
        logger.info("Snapshot %s permanently deleted", snapshot_id)

    def rename(self, snapshot_id: str, name: str) -> Snapshot:
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("name", "Please enter a name.")
        index = self._index_of(snapshot_id)
        updated = replace(self.snapshots[index], name=cleaned)
        self.snapshots[index] = updated
        return updated

    def unique_name(self, base: str) -> str:
        """Avoid case-insensitive collisions with active snapshot names."""
        taken = {s.name.strip().lower() for s in self.active()}
        name = base.strip() or "Untitled"
        candidate = name
        attempt = 1
        while candidate.strip().lower() in taken:
            suffix = "restored" if attempt == 1 else f"restored {attempt}"
            candidate = f"{name} ({suffix})"
            attempt += 1
        return candidate

    def _index_of(self, snapshot_id: str) -> int:
        for index, snapshot in enumerate(self.snapshots):
            if snapshot.id == snapshot_id:
                return index
        raise SnapshotNotFoundError(snapshot_id)
