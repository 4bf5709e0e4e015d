"""Domain models for manual payments and deductions."""

from dataclasses import dataclass
from typing import Literal

TransactionKind = Literal["payment", "deduction"]

PAYMENT: TransactionKind = "payment"
DEDUCTION: TransactionKind = "deduction"


@dataclass(frozen=True)
class TransactionDraft:
    """User-entered transaction fields."""

    date: str
    kind: TransactionKind
    amount_cents: int
    notes: str = ""


@dataclass(frozen=True)
class TransactionRecord:
    """A manual payment or deduction, immutable once created."""

    id: str
    date: str
    kind: TransactionKind
    amount_cents: int
    notes: str = ""


@dataclass(frozen=True)
class ActivityEntry:
    """One line of the payments feed."""

    id: str
    date: str
    kind: TransactionKind
    amount_cents: int
    notes: str
    automatic: bool
