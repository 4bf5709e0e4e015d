"""Transaction ledger for manual payments and deductions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from bakery_ledger.domain.deliveries import DeliveryRecord
from bakery_ledger.domain.errors import RecordNotFoundError, ValidationError
from bakery_ledger.domain.money import canonical_date, new_id, today_iso
from bakery_ledger.domain.transactions import (
    DEDUCTION,
    PAYMENT,
    ActivityEntry,
    TransactionDraft,
    TransactionRecord,
)
from bakery_ledger.services.undo import PendingRemoval, UndoSlot

logger = logging.getLogger(__name__)


@dataclass
class TransactionLedger:
    """Owns manual transactions in the order they were added.

    Transactions cannot be edited, only removed.
    """

    records: list[TransactionRecord] = field(default_factory=list)
    undo: UndoSlot[TransactionRecord] = field(default_factory=UndoSlot)
    id_factory: Callable[[], str] = new_id

    def add(self, draft: TransactionDraft) -> TransactionRecord:
        """Validate and append a transaction."""
        if draft.kind not in {PAYMENT, DEDUCTION}:
            raise ValidationError("kind", "Kind must be payment or deduction.")
        if draft.amount_cents <= 0:
            raise ValidationError("amount_cents", "Amount must be positive.")
        date = canonical_date(draft.date) if draft.date else today_iso()
        if date is None:
            raise ValidationError("date", "Date must be YYYY-MM-DD or MM/DD/YYYY.")
        record = TransactionRecord(
            id=self.id_factory(),
            date=date,
            kind=draft.kind,
            amount_cents=draft.amount_cents,
            notes=draft.notes.strip(),
        )
        self.records.append(record)
        logger.info(
            "Transaction %s added: %s %s cents",
            record.id,
            record.kind,
            record.amount_cents,
        )
        return record

    def remove(self, record_id: str) -> TransactionRecord:
        """Detach a transaction, keeping it recoverable for the undo window."""
        for index, record in enumerate(self.records):
            if record.id == record_id:
                removed = self.records.pop(index)
                self.undo.arm(removed, index)
                logger.info("Transaction %s removed", record_id)
                return removed
        raise RecordNotFoundError("transaction", record_id)

    def undo_remove(self) -> TransactionRecord | None:
        pending = self.undo.take()
        if pending is None:
            return None
        self.records.insert(min(pending.index, len(self.records)), pending.record)
        logger.info("Transaction %s restored", pending.record.id)
        return pending.record

    def pending_removal(self) -> PendingRemoval[TransactionRecord] | None:
        return self.undo.pending

    def list(self) -> list[TransactionRecord]:
        return list(self.records)

    def activity(self, deliveries: Iterable[DeliveryRecord]) -> list[ActivityEntry]:
        """Return a date-descending feed of payments.

        Deliveries with an amount paid appear as automatic payments next to
        the manual transactions; they cannot be removed from here.
        """
        entries = [
            ActivityEntry(
                id=f"auto-{d.id}",
                date=d.date,
                kind=PAYMENT,
                amount_cents=d.paid_cents,
                notes="",
                automatic=True,
            )
            for d in deliveries
            if d.paid_cents > 0
        ]
        entries.extend(
            ActivityEntry(
                id=t.id,
                date=t.date,
                kind=t.kind,
                amount_cents=t.amount_cents,
                notes=t.notes,
                automatic=False,
            )
            for t in self.records
            if t.amount_cents > 0
        )
        return sorted(entries, key=lambda entry: entry.date, reverse=True)

    def replace_all(self, records: list[TransactionRecord]) -> None:
        self.records = list(records)

    def extend(self, records: list[TransactionRecord]) -> None:
        self.records.extend(records)
