"""Domain models for shop deliveries."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DeliveryDraft:
    """User-entered delivery fields before an id is assigned."""

    date: str
    shop: str
    item: str
    quantity: int
    unit_price_cents: int
    unit_cost_cents: int = 0
    paid_cents: int = 0
    previous_balance_cents: int = 0
    delivered_by: str = ""
    notes: str = ""


@dataclass(frozen=True)
class DeliveryRecord:
    """A delivery to a shop with its derived money fields."""

    id: str
    date: str
    shop: str
    item: str
    quantity: int
    unit_price_cents: int
    unit_cost_cents: int
    paid_cents: int
    previous_balance_cents: int
    total_cents: int
    profit_cents: int
    balance_cents: int
    delivered_by: str = ""
    notes: str = ""


@dataclass(frozen=True)
class ShopBalance:
    """Per-shop aggregate of delivery rows."""

    shop: str
    pieces: int
    value_cents: int
    paid_cents: int
    previous_balance_cents: int
    current_balance_cents: int
    profit_cents: int


def total_cents(quantity: int, unit_price_cents: int) -> int:
    return quantity * unit_price_cents


def profit_cents(quantity: int, unit_price_cents: int, unit_cost_cents: int) -> int:
    return quantity * (unit_price_cents - unit_cost_cents)


def balance_cents(previous_balance: int, total: int, paid: int) -> int:
    return previous_balance + total - paid


def build_delivery(record_id: str, draft: DeliveryDraft) -> DeliveryRecord:
    """Create a delivery record with all derived fields computed."""
    total = total_cents(draft.quantity, draft.unit_price_cents)
    return DeliveryRecord(
        id=record_id,
        date=draft.date,
        shop=draft.shop,
        item=draft.item,
        quantity=draft.quantity,
        unit_price_cents=draft.unit_price_cents,
        unit_cost_cents=draft.unit_cost_cents,
        paid_cents=draft.paid_cents,
        previous_balance_cents=draft.previous_balance_cents,
        total_cents=total,
        profit_cents=profit_cents(
            draft.quantity, draft.unit_price_cents, draft.unit_cost_cents
        ),
        balance_cents=balance_cents(
            draft.previous_balance_cents, total, draft.paid_cents
        ),
        delivered_by=draft.delivered_by,
        notes=draft.notes,
    )
