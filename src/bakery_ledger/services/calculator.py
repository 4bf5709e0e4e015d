"""Batch cost calculator built on the latest ingredient unit costs."""

import copy
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from bakery_ledger.domain.calculator import (
    CalculatorInputs,
    CalculatorOutcome,
    CalculatorResult,
    CalculatorSave,
)
from bakery_ledger.domain.errors import RecordNotFoundError, ValidationError
from bakery_ledger.domain.money import new_id, round_cents
from bakery_ledger.services.purchases import PurchaseCostModel, normalize_item_name
from bakery_ledger.services.undo import utc_now

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_MS = 150
DEFAULT_SAVE_LIMIT = 10

NOTHING_TO_CALCULATE = "Enter at least one input to calculate."
PIECES_REQUIRED = "Please enter pieces produced"


def calculate(inputs: CalculatorInputs, unit_costs: dict[str, int]) -> CalculatorResult:
    """Compute batch cost and profit; per-piece figures are 0 without pieces."""
    _require_finite(inputs)
    total_cost = sum(
        quantity * unit_costs.get(normalize_item_name(item), 0)
        for item, quantity in inputs.ingredient_quantities.items()
    )
    total_cost += inputs.packaging_cost_cents * inputs.pieces
    total_cost += inputs.electricity_kwh * inputs.electricity_rate_cents
    cost_per_piece = total_cost / inputs.pieces if inputs.pieces > 0 else 0.0
    profit_per_piece = inputs.price_per_piece_cents - cost_per_piece
    total_profit = profit_per_piece * inputs.pieces
    if not (math.isfinite(total_cost) and math.isfinite(total_profit)):
        raise ValidationError("inputs", "Inputs are too large to calculate.")
    return CalculatorResult(
        total_cost_cents=round_cents(total_cost),
        cost_per_piece_cents=round_cents(cost_per_piece),
        profit_per_piece_cents=round_cents(profit_per_piece),
        total_profit_cents=round_cents(total_profit),
    )


def _require_finite(inputs: CalculatorInputs) -> None:
    fields = {
        f"ingredient_quantities.{item}": quantity
        for item, quantity in inputs.ingredient_quantities.items()
    }
    fields.update(
        packaging_cost_cents=inputs.packaging_cost_cents,
        electricity_kwh=inputs.electricity_kwh,
        electricity_rate_cents=inputs.electricity_rate_cents,
        pieces=inputs.pieces,
        price_per_piece_cents=inputs.price_per_piece_cents,
    )
    for name, value in fields.items():
        if not math.isfinite(value):
            raise ValidationError(name, "Please enter a valid number.")


def _has_input(inputs: CalculatorInputs) -> bool:
    return (
        any(q for q in inputs.ingredient_quantities.values())
        or bool(inputs.packaging_cost_cents)
        or bool(inputs.electricity_kwh)
        or bool(inputs.electricity_rate_cents)
        or bool(inputs.pieces)
        or bool(inputs.price_per_piece_cents)
    )


@dataclass
class CostCalculator:
    """Debounced calculator plus a capped list of saved results."""

    costs: PurchaseCostModel
    saves: list[CalculatorSave] = field(default_factory=list)
    cooldown_ms: int = DEFAULT_COOLDOWN_MS
    save_limit: int = DEFAULT_SAVE_LIMIT
    monotonic: Callable[[], float] = time.monotonic
    id_factory: Callable[[], str] = new_id
    _last_run: float | None = field(default=None, repr=False)

    def compute(self, inputs: CalculatorInputs) -> CalculatorOutcome:
        now = self.monotonic()
        if self._last_run is not None and (now - self._last_run) * 1000 < self.cooldown_ms:
            return CalculatorOutcome(status="throttled", message="")
        self._last_run = now
        _require_finite(inputs)
        if not _has_input(inputs):
            return CalculatorOutcome(
                status="nothing_to_calculate", message=NOTHING_TO_CALCULATE
            )
        if inputs.pieces <= 0:
            return CalculatorOutcome(status="pieces_required", message=PIECES_REQUIRED)
        result = calculate(inputs, self.costs.latest_costs())
        return CalculatorOutcome(status="ok", message="", result=result)

    def save(self, name: str, inputs: CalculatorInputs) -> CalculatorSave:
        """Freeze inputs, unit costs and results under a name; newest first."""
        unit_costs = self.costs.latest_costs()
        entry = CalculatorSave(
            id=self.id_factory(),
            timestamp=utc_now().isoformat(),
            name=name.strip(),
            inputs=copy.deepcopy(inputs),
            unit_costs=dict(unit_costs),
            result=calculate(inputs, unit_costs),
        )
        self.saves.insert(0, entry)
        del self.saves[self.save_limit :]
        logger.info("Calculator result saved: %s", entry.name or entry.id)
        return entry

    def active_saves(self) -> list[CalculatorSave]:
        return [s for s in self.saves if not s.deleted]

    def deleted_saves(self) -> list[CalculatorSave]:
        return [s for s in self.saves if s.deleted]

    def delete_save(self, save_id: str) -> CalculatorSave:
        index = self._index_of(save_id)
        entry = replace(
            self.saves[index], deleted=True, deleted_at=utc_now().isoformat()
        )
        self.saves[index] = entry
        return entry

    def restore_save(self, save_id: str) -> CalculatorSave:
        """Undelete a save, numbering its name if an active save already uses it."""
        index = self._index_of(save_id)
        entry = self.saves[index]
        if not entry.deleted:
            return entry
        active = {s.name for s in self.active_saves()}
        base = entry.name.strip() or "Unnamed"
        name = base
        suffix = 1
        while name in active:
            name = f"{base} ({suffix})"
            suffix += 1
        restored = replace(entry, name=name, deleted=False, deleted_at=None)
        self.saves[index] = restored
        return restored

    def delete_save_permanently(self, save_id: str) -> None:
        del self.saves[self._index_of(save_id)]
        logger.info("Calculator save %s permanently deleted", save_id)

    def _index_of(self, save_id: str) -> int:
        for index, entry in enumerate(self.saves):
            if entry.id == save_id:
                return index
        raise RecordNotFoundError("calculator save", save_id)
