"""Domain models for tabular delivery imports."""

from dataclasses import dataclass

from bakery_ledger.domain.deliveries import DeliveryRecord
from bakery_ledger.domain.reconciliation import OverrideBaseline
from bakery_ledger.domain.transactions import TransactionRecord

REQUIRED_IMPORT_FIELDS = ("date", "shop", "item", "quantity", "unit_price")
OPTIONAL_IMPORT_FIELDS = ("paid", "notes", "delivered_by")


@dataclass(frozen=True)
class ImportSummary:
    """Counts reported after an import."""

    added_count: int
    invalid_count: int
    duplicate_count: int


@dataclass(frozen=True)
class ImportUndo:
    """Ledger state captured immediately before an import."""

    deliveries: tuple[DeliveryRecord, ...]
    transactions: tuple[TransactionRecord, ...]
    baseline: OverrideBaseline
