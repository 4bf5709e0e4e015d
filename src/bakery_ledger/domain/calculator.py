"""Domain models for the batch cost calculator."""

from dataclasses import dataclass, field
from typing import Literal

CalculatorStatus = Literal[
    "ok", "nothing_to_calculate", "pieces_required", "throttled"
]


@dataclass(frozen=True)
class CalculatorInputs:
    """Recipe quantities and per-batch costs.

    Ingredient quantities are expressed in each ingredient's base unit
    (lb, cup, egg, piece) and keyed by canonical ingredient name.
    """

    ingredient_quantities: dict[str, float] = field(default_factory=dict)
    packaging_cost_cents: float = 0.0
    electricity_kwh: float = 0.0
    electricity_rate_cents: float = 0.0
    pieces: float = 0.0
    price_per_piece_cents: float = 0.0


@dataclass(frozen=True)
class CalculatorResult:
    """Computed batch figures in cents."""

    total_cost_cents: int
    cost_per_piece_cents: int
    profit_per_piece_cents: int
    total_profit_cents: int


@dataclass(frozen=True)
class CalculatorOutcome:
    """Result of a calculate request; ``result`` is set only when status is ok."""

    status: CalculatorStatus
    message: str
    result: CalculatorResult | None = None


@dataclass(frozen=True)
class CalculatorSave:
    """Frozen audit record of a calculation."""

    id: str
    timestamp: str
    name: str
    inputs: CalculatorInputs
    unit_costs: dict[str, int]
    result: CalculatorResult
    deleted: bool = False
    deleted_at: str | None = None
