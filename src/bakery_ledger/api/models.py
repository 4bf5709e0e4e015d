"""Pydantic request bodies for the ledger API."""

from typing import Literal

from pydantic import BaseModel, Field, FiniteFloat


class DeliveryIn(BaseModel):
    """New delivery payload."""

    date: str = ""
    shop: str
    item: str
    quantity: int
    unit_price_cents: int
    unit_cost_cents: int = 0
    paid_cents: int = 0
    previous_balance_cents: int = 0
    delivered_by: str = ""
    notes: str = ""


class FieldUpdate(BaseModel):
    """Single-field edit of an existing record."""

    field: str
    value: str | int | FiniteFloat | None = None


class ShopBalanceIn(BaseModel):
    """Target aggregate for one shop."""

    field: Literal["paid", "previous"]
    cents: int = Field(ge=0)


class TransactionIn(BaseModel):
    """New manual payment or deduction."""

    date: str = ""
    kind: Literal["payment", "deduction"] = "payment"
    amount_cents: int
    notes: str = ""


class TotalsIn(BaseModel):
    """Override baseline values; null leaves a figure computed."""

    paid_cents: int | None = None
    previous_cents: int | None = None
    paid: str | None = None
    previous: str | None = None


class PurchaseIn(BaseModel):
    """New raw-material purchase."""

    date: str = ""
    item: str
    quantity: FiniteFloat
    unit: str
    total_paid_cents: int


class CostOverrideIn(BaseModel):
    """Session-only unit cost for an ingredient."""

    cents: int


class CalculatorIn(BaseModel):
    """Calculator inputs; costs in cents, quantities in base units."""

    ingredient_quantities: dict[str, FiniteFloat] = Field(default_factory=dict)
    packaging_cost_cents: FiniteFloat = 0.0
    electricity_kwh: FiniteFloat = 0.0
    electricity_rate_cents: FiniteFloat | None = None
    pieces: FiniteFloat = 0.0
    price_per_piece_cents: FiniteFloat = 0.0


class CalculatorSaveIn(CalculatorIn):
    """Calculator inputs stored under a name."""

    name: str = ""


class SnapshotIn(BaseModel):
    """Name for a new snapshot or a rename."""

    name: str = ""


class SnapshotRestoreIn(BaseModel):
    """How a snapshot is combined with the live ledger."""

    mode: Literal["replace", "append"] = "replace"


class PermanentDeleteIn(BaseModel):
    """Typed confirmation for destructive deletes."""

    confirmation: str = ""


class ImportIn(BaseModel):
    """Rows to import, either pre-split or as CSV text."""

    rows: list[list[str]] | None = None
    csv_text: str | None = None
    mapping: dict[str, int | None]
    has_header: bool = True
    append: bool = True


class NameIn(BaseModel):
    """Registry entry."""

    name: str
