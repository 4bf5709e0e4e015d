"""Delivery ledger: ordered delivery records and their balances."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from bakery_ledger.domain.deliveries import (
    DeliveryDraft,
    DeliveryRecord,
    ShopBalance,
    balance_cents,
    build_delivery,
    profit_cents,
    total_cents,
)
from bakery_ledger.domain.errors import RecordNotFoundError, ValidationError
from bakery_ledger.domain.money import (
    canonical_date,
    format_display_date,
    new_id,
    parse_cents,
    parse_quantity,
    today_iso,
)
from bakery_ledger.services.undo import PendingRemoval, UndoSlot

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "date",
        "shop",
        "delivered_by",
        "item",
        "quantity",
        "unit_price_cents",
        "unit_cost_cents",
        "paid_cents",
        "notes",
    }
)


@dataclass
class DeliveryLedger:
    """Owns delivery records, most recent first."""

    records: list[DeliveryRecord] = field(default_factory=list)
    undo: UndoSlot[DeliveryRecord] = field(default_factory=UndoSlot)
    id_factory: Callable[[], str] = new_id

    def add(self, draft: DeliveryDraft) -> DeliveryRecord:
        """Validate a draft, derive its money fields and prepend it."""
        cleaned = _validate_draft(draft)
        record = build_delivery(self.id_factory(), cleaned)
        self.records.insert(0, record)
        logger.info("Delivery %s added for %s", record.id, record.shop)
        return record

    def get(self, record_id: str) -> DeliveryRecord:
        for record in self.records:
            if record.id == record_id:
                return record
        raise RecordNotFoundError("delivery", record_id)

    def update(self, record_id: str, field_name: str, value: object) -> DeliveryRecord:
        """Change one field and recompute only the fields derived from it."""
        if field_name not in EDITABLE_FIELDS:
            raise ValidationError(field_name, "Field cannot be edited.")
        index = self._index_of(record_id)
        updated = _apply_update(self.records[index], field_name, value)
        self.records[index] = updated
        logger.info("Delivery %s updated: %s", record_id, field_name)
        return updated

    def remove(self, record_id: str) -> DeliveryRecord:
        """Detach a record and keep it recoverable until the undo window ends."""
        index = self._index_of(record_id)
        removed = self.records.pop(index)
        self.undo.arm(removed, index)
        logger.info("Delivery %s removed", record_id)
        return removed

    def undo_remove(self) -> DeliveryRecord | None:
        """Reinsert the last removed record at its old position, if still pending."""
        pending = self.undo.take()
        if pending is None:
            return None
        self.records.insert(min(pending.index, len(self.records)), pending.record)
        logger.info("Delivery %s restored", pending.record.id)
        return pending.record

    def pending_removal(self) -> PendingRemoval[DeliveryRecord] | None:
        return self.undo.pending

    def list(
        self, shop: str | None = None, search: str | None = None
    ) -> list[DeliveryRecord]:
        """Return records for a shop and/or matching a free-text search."""
        rows = [r for r in self.records if shop is None or r.shop == shop]
        query = (search or "").strip().lower()
        if not query:
            return rows
        return [r for r in rows if _matches(r, query)]

    def shops(self) -> list[str]:
        """Return distinct shop names in first-seen order."""
        seen: dict[str, None] = {}
        for record in self.records:
            if record.shop:
                seen.setdefault(record.shop, None)
        return list(seen)

    def shop_balances(self) -> list[ShopBalance]:
        """Aggregate every row by shop, sorted by shop name."""
        totals: dict[str, dict[str, int]] = {}
        for r in self.records:
            agg = totals.setdefault(
                r.shop or "Unknown",
                {"pieces": 0, "value": 0, "paid": 0, "prev": 0, "current": 0, "profit": 0},
            )
            agg["pieces"] += r.quantity
            agg["value"] += r.total_cents
            agg["paid"] += r.paid_cents
            agg["prev"] += r.previous_balance_cents
            agg["current"] += r.balance_cents
            agg["profit"] += r.profit_cents
        return [
            ShopBalance(
                shop=shop,
                pieces=agg["pieces"],
                value_cents=agg["value"],
                paid_cents=agg["paid"],
                previous_balance_cents=agg["prev"],
                current_balance_cents=agg["current"],
                profit_cents=agg["profit"],
            )
            for shop, agg in sorted(totals.items(), key=lambda item: item[0].lower())
        ]

    def apply_shop_balance(
        self, shop: str, field_name: str, new_cents: int
    ) -> DeliveryRecord | None:
        """Set a shop's aggregate paid or previous balance.

        The difference is applied to a single row: paid goes to the most
        recent delivery, previous balance to the earliest one.
        """
        if field_name not in {"paid", "previous"}:
            raise ValidationError(field_name, "Only paid or previous can be set.")
        if new_cents < 0:
            raise ValidationError(field_name, "Amount cannot be negative.")
        indexes = [i for i, r in enumerate(self.records) if r.shop == shop]
        if not indexes:
            return None
        if field_name == "paid":
            current = sum(self.records[i].paid_cents for i in indexes)
            target_index = indexes[0]
        else:
            current = sum(self.records[i].previous_balance_cents for i in indexes)
            target_index = indexes[-1]
        diff = new_cents - current
        if diff == 0:
            return self.records[target_index]
        target = self.records[target_index]
        if field_name == "paid":
            paid = max(0, target.paid_cents + diff)
            updated = replace(
                target,
                paid_cents=paid,
                balance_cents=balance_cents(
                    target.previous_balance_cents, target.total_cents, paid
                ),
            )
        else:
            previous = max(0, target.previous_balance_cents + diff)
            updated = replace(
                target,
                previous_balance_cents=previous,
                balance_cents=balance_cents(
                    previous, target.total_cents, target.paid_cents
                ),
            )
        self.records[target_index] = updated
        logger.info("Shop %s %s set to %s cents", shop, field_name, new_cents)
        return updated

    def replace_all(self, records: list[DeliveryRecord]) -> None:
        self.records = list(records)

    def extend(self, records: list[DeliveryRecord]) -> None:
        self.records.extend(records)

    def _index_of(self, record_id: str) -> int:
        for index, record in enumerate(self.records):
            if record.id == record_id:
                return index
        raise RecordNotFoundError("delivery", record_id)


def _validate_draft(draft: DeliveryDraft) -> DeliveryDraft:
    shop = draft.shop.strip()
    item = draft.item.strip()
    if not shop:
        raise ValidationError("shop", "Please enter the shop name.")
    if not item:
        raise ValidationError("item", "Please select an item.")
    if draft.quantity <= 0:
        raise ValidationError("quantity", "Pieces must be at least 1.")
    if draft.unit_price_cents <= 0:
        raise ValidationError(
            "unit_price_cents", "Price per piece must be greater than 0."
        )
    if draft.unit_cost_cents < 0:
        raise ValidationError("unit_cost_cents", "Cost cannot be negative.")
    if draft.paid_cents < 0:
        raise ValidationError("paid_cents", "Paid amount cannot be negative.")
    date = canonical_date(draft.date) if draft.date else today_iso()
    if date is None:
        raise ValidationError("date", "Date must be YYYY-MM-DD or MM/DD/YYYY.")
    return replace(
        draft,
        date=date,
        shop=shop,
        item=item,
        delivered_by=draft.delivered_by.strip(),
        notes=draft.notes.strip(),
    )


def _coerce_cents(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return max(0, value)
    return parse_cents(value)


def _apply_update(  # noqa: PLR0911
    record: DeliveryRecord, field_name: str, value: object
) -> DeliveryRecord:
    if field_name == "date":
        text = str(value or "").strip()
        if not text:
            return record
        date = canonical_date(text)
        if date is None:
            raise ValidationError("date", "Date must be YYYY-MM-DD or MM/DD/YYYY.")
        return replace(record, date=date)
    if field_name in {"shop", "delivered_by", "item"}:
        return replace(record, **{field_name: str(value or "").strip()})
    if field_name == "notes":
        return replace(record, notes=str(value or ""))
    if field_name == "quantity":
        quantity = parse_quantity(value)
        return _with_price_inputs(record, quantity, record.unit_price_cents)
    if field_name == "unit_price_cents":
        return _with_price_inputs(record, record.quantity, _coerce_cents(value))
    if field_name == "paid_cents":
        paid = _coerce_cents(value)
        return replace(
            record,
            paid_cents=paid,
            balance_cents=balance_cents(
                record.previous_balance_cents, record.total_cents, paid
            ),
        )
    cost = _coerce_cents(value)
    return replace(
        record,
        unit_cost_cents=cost,
        profit_cents=profit_cents(record.quantity, record.unit_price_cents, cost),
    )


def _with_price_inputs(
    record: DeliveryRecord, quantity: int, unit_price_cents: int
) -> DeliveryRecord:
    total = total_cents(quantity, unit_price_cents)
    return replace(
        record,
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        total_cents=total,
        profit_cents=profit_cents(quantity, unit_price_cents, record.unit_cost_cents),
        balance_cents=balance_cents(
            record.previous_balance_cents, total, record.paid_cents
        ),
    )


def _matches(record: DeliveryRecord, query: str) -> bool:
    fields = (
        record.date,
        format_display_date(record.date),
        record.shop,
        record.delivered_by,
        record.item,
        record.notes,
    )
    return any(query in value.lower() for value in fields if value)
