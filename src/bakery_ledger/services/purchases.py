"""Raw-material purchases and the per-ingredient unit costs derived from them."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from bakery_ledger.domain.errors import RecordNotFoundError, ValidationError
from bakery_ledger.domain.money import (
    canonical_date,
    cents_to_decimal_str,
    format_cents,
    format_display_date,
    new_id,
    parse_cents,
    round_cents,
    today_iso,
)
from bakery_ledger.domain.purchases import (
    BaseConversion,
    PurchaseDraft,
    PurchaseExportTable,
    PurchaseRecord,
)
from bakery_ledger.services.undo import PendingRemoval, UndoSlot

logger = logging.getLogger(__name__)

PRESET_COSTS: dict[str, int] = {
    "sugar": 58,
    "flour": 56,
    "milk": 19,
    "eggs": 24,
    "oil": 71,
    "packaging": 5,
    "coconut": 308,
    "sesame": 121,
}

ALLOWED_UNITS: dict[str, tuple[str, ...]] = {
    "sugar": ("lb", "kg"),
    "flour": ("lb", "kg"),
    "coconut": ("lb", "kg"),
    "sesame": ("lb", "kg"),
    "milk": ("gallon", "liter"),
    "oil": ("gallon", "liter"),
    "eggs": ("dozen", "pack"),
    "packaging": ("unit",),
}

LB_PER_KG = 2.20462
CUPS_PER_GALLON = 16
CUPS_PER_LITER = 1000 / 236.588
EGGS_PER_UNIT = {"dozen": 12, "pack": 60}

_PREFIX_RULES = (
    ("egg", "eggs"),
    ("sugar", "sugar"),
    ("flour", "flour"),
    ("milk", "milk"),
    ("oil", "oil"),
    ("package", "packaging"),
    ("coconut", "coconut"),
    ("sesame", "sesame"),
)
_WEIGHED = frozenset({"sugar", "flour", "coconut", "sesame"})
_POURED = {"milk": (CUPS_PER_GALLON, "gal"), "oil": (CUPS_PER_LITER, "L")}

EDITABLE_FIELDS = frozenset({"date", "item", "quantity", "unit", "total_paid_cents"})
PURCHASE_EXPORT_HEADER = [
    "Date",
    "Item",
    "Qty",
    "Unit",
    "Unit Price",
    "Total Paid",
    "Derived Cost",
]


def normalize_item_name(name: str | None) -> str:
    """Map a free-text item name to its canonical ingredient key."""
    key = (name or "").strip().lower()
    for prefix, canonical in _PREFIX_RULES:
        if key.startswith(prefix):
            return canonical
    return key


def is_unit_allowed(item: str, unit: str) -> bool:
    """Known ingredients restrict their units; anything else accepts any unit."""
    allowed = ALLOWED_UNITS.get(normalize_item_name(item))
    return allowed is None or unit in allowed


def convert_to_base(
    item: str, quantity: float, unit: str, total_paid_cents: int
) -> BaseConversion:
    """Express a purchase in the ingredient's base unit with a cost per unit."""
    key = normalize_item_name(item)
    if key in _WEIGHED:
        base_quantity = quantity * LB_PER_KG if unit == "kg" else quantity
        base_unit = "lb"
    elif key in _POURED:
        if unit == "gallon":
            base_quantity = quantity * CUPS_PER_GALLON
        elif unit == "liter":
            base_quantity = quantity * CUPS_PER_LITER
        else:
            base_quantity = quantity
        base_unit = "cup"
    elif key == "eggs":
        base_quantity = quantity * EGGS_PER_UNIT.get(unit, 1)
        base_unit = "egg"
    else:
        base_quantity = quantity
        base_unit = "unit"

    if base_quantity <= 0 or total_paid_cents <= 0:
        return BaseConversion(
            base_quantity=max(0.0, base_quantity),
            base_unit=base_unit,
            base_cost_cents=None,
            cost_label="",
        )
    base_cost = round_cents(total_paid_cents / base_quantity)
    label = f"{format_cents(base_cost)}/{base_unit}"
    if key in _POURED:
        cups_per_secondary, secondary_unit = _POURED[key]
        secondary = round_cents(
            total_paid_cents / (base_quantity / cups_per_secondary)
        )
        label = f"{label} ({format_cents(secondary)}/{secondary_unit})"
    return BaseConversion(
        base_quantity=base_quantity,
        base_unit=base_unit,
        base_cost_cents=base_cost,
        cost_label=label,
    )


def build_purchase(record_id: str, draft: PurchaseDraft) -> PurchaseRecord:
    conversion = convert_to_base(
        draft.item, draft.quantity, draft.unit, draft.total_paid_cents
    )
    unit_price = (
        round_cents(draft.total_paid_cents / draft.quantity) if draft.quantity > 0 else 0
    )
    return PurchaseRecord(
        id=record_id,
        date=draft.date,
        item=draft.item,
        quantity=draft.quantity,
        unit=draft.unit,
        total_paid_cents=draft.total_paid_cents,
        unit_price_cents=unit_price,
        base_quantity=conversion.base_quantity,
        base_unit=conversion.base_unit,
        base_cost_cents=conversion.base_cost_cents,
        cost_label=conversion.cost_label,
    )


def export_purchases(records: list[PurchaseRecord]) -> PurchaseExportTable:
    """Lay purchases out in entry order for CSV rendering."""
    rows = [
        [
            format_display_date(p.date),
            p.item,
            f"{p.quantity:g}",
            p.unit,
            cents_to_decimal_str(p.unit_price_cents),
            cents_to_decimal_str(p.total_paid_cents),
            p.cost_label,
        ]
        for p in records
    ]
    return PurchaseExportTable(header=list(PURCHASE_EXPORT_HEADER), rows=rows)


@dataclass
class PurchaseCostModel:
    """Purchases in insertion order plus session-only cost overrides."""

    records: list[PurchaseRecord] = field(default_factory=list)
    undo: UndoSlot[PurchaseRecord] = field(default_factory=UndoSlot)
    overrides: dict[str, int] = field(default_factory=dict)
    id_factory: Callable[[], str] = new_id

    def add(self, draft: PurchaseDraft) -> PurchaseRecord:
        cleaned = _validate_draft(draft)
        record = build_purchase(self.id_factory(), cleaned)
        self.records.append(record)
        logger.info("Purchase %s added: %s %s", record.id, record.item, record.cost_label)
        return record

    def update(self, record_id: str, field_name: str, value: object) -> PurchaseRecord:
        """Edit one field and recompute every derived cost field."""
        if field_name not in EDITABLE_FIELDS:
            raise ValidationError(field_name, "Field cannot be edited.")
        index = self._index_of(record_id)
        current = self.records[index]
        draft = PurchaseDraft(
            date=current.date,
            item=current.item,
            quantity=current.quantity,
            unit=current.unit,
            total_paid_cents=current.total_paid_cents,
        )
        if field_name == "total_paid_cents":
            draft = replace(draft, total_paid_cents=_coerce_cents(value))
        elif field_name == "quantity":
            draft = replace(draft, quantity=_coerce_quantity(value))
        else:
            draft = replace(draft, **{field_name: str(value or "")})
        updated = build_purchase(record_id, _validate_draft(draft))
        self.records[index] = updated
        logger.info("Purchase %s updated: %s", record_id, field_name)
        return updated

    def remove(self, record_id: str) -> PurchaseRecord:
        index = self._index_of(record_id)
        removed = self.records.pop(index)
        self.undo.arm(removed, index)
        logger.info("Purchase %s removed", record_id)
        return removed

    def undo_remove(self) -> PurchaseRecord | None:
        pending = self.undo.take()
        if pending is None:
            return None
        self.records.insert(min(pending.index, len(self.records)), pending.record)
        logger.info("Purchase %s restored", pending.record.id)
        return pending.record

    def pending_removal(self) -> PendingRemoval[PurchaseRecord] | None:
        return self.undo.pending

    def list(self, search: str | None = None) -> list[PurchaseRecord]:
        query = (search or "").strip().lower()
        if not query:
            return list(self.records)
        return [
            p
            for p in self.records
            if query in p.date
            or query in format_display_date(p.date)
            or query in p.item.lower()
            or query in p.unit.lower()
        ]

    def latest_cost(self, item: str) -> int | None:
        """Cents per base unit: override, then latest purchase, then preset."""
        key = normalize_item_name(item)
        override = self.overrides.get(key)
        if override is not None and override > 0:
            return override
        latest: PurchaseRecord | None = None
        for purchase in self.records:
            if normalize_item_name(purchase.item) == key:
                latest = purchase
        if latest is not None and latest.base_cost_cents and latest.base_cost_cents > 0:
            return latest.base_cost_cents
        return PRESET_COSTS.get(key)

    def latest_costs(self) -> dict[str, int]:
        costs = {}
        for key in PRESET_COSTS:
            cost = self.latest_cost(key)
            if cost is not None:
                costs[key] = cost
        return costs

    def set_override(self, item: str, cents: int) -> None:
        key = normalize_item_name(item)
        if cents <= 0:
            self.overrides.pop(key, None)
            return
        self.overrides[key] = cents
        logger.info("Cost override for %s set to %s cents", key, cents)

    def clear_override(self, item: str) -> None:
        self.overrides.pop(normalize_item_name(item), None)

    def replace_all(self, records: list[PurchaseRecord]) -> None:
        self.records = list(records)

    def extend(self, records: list[PurchaseRecord]) -> None:
        self.records.extend(records)

    def _index_of(self, record_id: str) -> int:
        for index, record in enumerate(self.records):
            if record.id == record_id:
                return index
        raise RecordNotFoundError("purchase", record_id)


def _validate_draft(draft: PurchaseDraft) -> PurchaseDraft:
    item = draft.item.strip()
    unit = draft.unit.strip()
    if not item:
        raise ValidationError("item", "Please select an item.")
    if not math.isfinite(draft.quantity) or draft.quantity <= 0:
        raise ValidationError("quantity", "Quantity must be positive.")
    if draft.total_paid_cents <= 0:
        raise ValidationError("total_paid_cents", "Total paid must be positive.")
    if not is_unit_allowed(item, unit):
        raise ValidationError("unit", f"Invalid unit: {item} cannot be measured in {unit}")
    date = canonical_date(draft.date) if draft.date else today_iso()
    if date is None:
        raise ValidationError("date", "Date must be YYYY-MM-DD or MM/DD/YYYY.")
    return replace(draft, date=date, item=item, unit=unit)


def _coerce_cents(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return parse_cents(value)


def _coerce_quantity(value: object) -> float:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return 0.0
