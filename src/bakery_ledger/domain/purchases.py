"""Domain models for raw-material purchases."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PurchaseDraft:
    """User-entered purchase fields."""

    date: str
    item: str
    quantity: float
    unit: str
    total_paid_cents: int


@dataclass(frozen=True)
class BaseConversion:
    """A purchase expressed in the ingredient's base unit.

    ``base_cost_cents`` is ``None`` when the purchase has no quantity or no
    amount paid, so a cost per unit cannot be derived.
    """

    base_quantity: float
    base_unit: str
    base_cost_cents: int | None
    cost_label: str


@dataclass(frozen=True)
class PurchaseRecord:
    """A purchase with derived base-unit cost fields."""

    id: str
    date: str
    item: str
    quantity: float
    unit: str
    total_paid_cents: int
    unit_price_cents: int
    base_quantity: float
    base_unit: str
    base_cost_cents: int | None
    cost_label: str


@dataclass(frozen=True)
class PurchaseSave:
    """Named copy of the purchase list and purchase item names."""

    id: str
    timestamp: str
    name: str
    purchases: tuple[PurchaseRecord, ...]
    purchase_items: tuple[str, ...]


@dataclass(frozen=True)
class PurchaseExportTable:
    """Purchases laid out for CSV rendering; no totals row."""

    header: list[str]
    rows: list[list[str]]
