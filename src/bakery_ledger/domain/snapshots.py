"""Domain models for saved ledger snapshots."""

from dataclasses import dataclass
from typing import Literal

from bakery_ledger.domain.deliveries import DeliveryRecord
from bakery_ledger.domain.purchases import PurchaseRecord
from bakery_ledger.domain.reconciliation import OverrideBaseline
from bakery_ledger.domain.transactions import TransactionRecord

RestoreMode = Literal["replace", "append"]


@dataclass(frozen=True)
class LedgerState:
    """Everything a snapshot captures.

    Lists are tuples of frozen records, so a captured state cannot be
    changed through a reference held by a live ledger.
    """

    deliveries: tuple[DeliveryRecord, ...]
    transactions: tuple[TransactionRecord, ...]
    baseline: OverrideBaseline
    purchases: tuple[PurchaseRecord, ...]
    purchase_items: tuple[str, ...]
    categories: tuple[str, ...]


@dataclass(frozen=True)
class Snapshot:
    """A named, timestamped copy of the ledger state."""

    id: str
    timestamp: str
    name: str
    state: LedgerState
    deleted: bool = False
    deleted_at: str | None = None

