"""Bulk import of delivery rows from CSV-like tables."""

import csv
import io
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from bakery_ledger.domain.deliveries import DeliveryDraft, DeliveryRecord, build_delivery
from bakery_ledger.domain.errors import ValidationError
from bakery_ledger.domain.imports import (
    OPTIONAL_IMPORT_FIELDS,
    REQUIRED_IMPORT_FIELDS,
    ImportSummary,
    ImportUndo,
)
from bakery_ledger.domain.money import canonical_date, new_id, parse_cents, parse_quantity
from bakery_ledger.services.deliveries import DeliveryLedger
from bakery_ledger.services.reconciliation import AggregateReconciler
from bakery_ledger.services.transactions import TransactionLedger

logger = logging.getLogger(__name__)

_HAS_DIGIT = re.compile(r"\d")


def parse_csv_content(text: str) -> list[list[str]]:
    """Split CSV text into rows of cells, dropping blank lines."""
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    return [row for row in reader if any(cell.strip() for cell in row)]


def duplicate_key(date: str, shop: str, item: str, quantity: int) -> str:
    return f"{date}|{shop}|{item}|{quantity}"


@dataclass
class ImportReconciler:
    """Maps table rows onto the delivery ledger and keeps one undo step."""

    deliveries: DeliveryLedger
    transactions: TransactionLedger
    reconciler: AggregateReconciler
    id_factory: Callable[[], str] = new_id
    last_undo: ImportUndo | None = field(default=None, repr=False)

    def run(
        self,
        rows: Sequence[Sequence[str]],
        mapping: Mapping[str, int | None],
        has_header: bool,
        append: bool = True,
    ) -> ImportSummary:
        """Import mapped rows.

        Invalid rows are skipped and counted. Rows whose date, shop, item and
        quantity match an existing or earlier imported row are counted as
        duplicates but still imported.
        """
        missing = [name for name in REQUIRED_IMPORT_FIELDS if mapping.get(name) is None]
        if missing:
            raise ValidationError(missing[0], "Column mapping is required.")

        self.last_undo = ImportUndo(
            deliveries=tuple(self.deliveries.records),
            transactions=tuple(self.transactions.records),
            baseline=self.reconciler.baseline,
        )
        seen = {
            duplicate_key(r.date, r.shop, r.item, r.quantity)
            for r in self.deliveries.records
        }
        imported: list[DeliveryRecord] = []
        invalid = 0
        duplicates = 0
        for raw in rows[1:] if has_header else rows:
            if not raw:
                continue
            values = {
                name: _cell(raw, mapping.get(name))
                for name in REQUIRED_IMPORT_FIELDS + OPTIONAL_IMPORT_FIELDS
            }
            draft = _draft_from_cells(values)
            if draft is None:
                invalid += 1
                continue
            key = duplicate_key(draft.date, draft.shop, draft.item, draft.quantity)
            if key in seen:
                duplicates += 1
            else:
                seen.add(key)
            imported.append(build_delivery(self.id_factory(), draft))

        if append:
            self.deliveries.extend(imported)
        else:
            self.deliveries.replace_all(imported)
        summary = ImportSummary(
            added_count=len(imported),
            invalid_count=invalid,
            duplicate_count=duplicates,
        )
        logger.info(
            "Import finished: added=%s invalid=%s duplicates=%s append=%s",
            summary.added_count,
            summary.invalid_count,
            summary.duplicate_count,
            append,
        )
        return summary

    def undo_import(self) -> bool:
        """Put back the state captured before the last import, once."""
        if self.last_undo is None:
            return False
        self.deliveries.replace_all(list(self.last_undo.deliveries))
        self.transactions.replace_all(list(self.last_undo.transactions))
        self.reconciler.baseline = self.last_undo.baseline
        self.last_undo = None
        logger.info("Import undone")
        return True

    def discard_undo(self) -> None:
        self.last_undo = None


def _cell(raw: Sequence[str], index: int | None) -> str:
    if index is None or index < 0 or index >= len(raw):
        return ""
    return (raw[index] or "").strip()


def _draft_from_cells(values: Mapping[str, str]) -> DeliveryDraft | None:
    if any(not values[name] for name in REQUIRED_IMPORT_FIELDS):
        return None
    date = canonical_date(values["date"])
    if date is None:
        return None
    quantity = parse_quantity(values["quantity"])
    unit_price = parse_cents(values["unit_price"])
    if quantity <= 0 or unit_price <= 0:
        return None
    paid_text = values["paid"]
    if paid_text and not _HAS_DIGIT.search(paid_text):
        return None
    return DeliveryDraft(
        date=date,
        shop=values["shop"],
        item=values["item"],
        quantity=quantity,
        unit_price_cents=unit_price,
        paid_cents=parse_cents(paid_text),
        previous_balance_cents=0,
        delivered_by=values["delivered_by"],
        notes=values["notes"],
    )
