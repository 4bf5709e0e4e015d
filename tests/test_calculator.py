"""Tests for the batch cost calculator and its saved results."""

import math

import pytest

from bakery_ledger.domain.calculator import CalculatorInputs
from bakery_ledger.domain.errors import RecordNotFoundError, ValidationError
from bakery_ledger.domain.purchases import PurchaseDraft
from bakery_ledger.services.calculator import CostCalculator, calculate
from bakery_ledger.services.purchases import PurchaseCostModel


@pytest.fixture
def calculator(monotonic) -> CostCalculator:
    ids = iter(f"c{n}" for n in range(1, 100))
    return CostCalculator(
        costs=PurchaseCostModel(),
        cooldown_ms=150,
        save_limit=10,
        monotonic=monotonic,
        id_factory=lambda: next(ids),
    )


def _inputs(**overrides) -> CalculatorInputs:
    values = {
        "ingredient_quantities": {"sugar": 2, "eggs": 12},
        "packaging_cost_cents": 5,
        "electricity_kwh": 3,
        "electricity_rate_cents": 17,
        "pieces": 40,
        "price_per_piece_cents": 50,
    }
    values.update(overrides)
    return CalculatorInputs(**values)


def test_calculate_uses_unit_costs() -> None:
    result = calculate(_inputs(), {"sugar": 58, "eggs": 24})

    total = 2 * 58 + 12 * 24 + 5 * 40 + 3 * 17
    assert result.total_cost_cents == total
    assert result.cost_per_piece_cents == round(total / 40)
    assert result.profit_per_piece_cents == round(50 - total / 40)
    assert result.total_profit_cents == 50 * 40 - total


def test_compute_reports_nothing_to_calculate(calculator) -> None:
    outcome = calculator.compute(CalculatorInputs())

    assert outcome.status == "nothing_to_calculate"
    assert outcome.message == "Enter at least one input to calculate."
    assert outcome.result is None


def test_electricity_rate_alone_counts_as_input(calculator) -> None:
    outcome = calculator.compute(CalculatorInputs(electricity_rate_cents=17))

    assert outcome.status == "pieces_required"


@pytest.mark.parametrize(
    "inputs",
    [
        CalculatorInputs(ingredient_quantities={"sugar": math.nan}, pieces=2),
        CalculatorInputs(electricity_kwh=math.inf, electricity_rate_cents=17, pieces=2),
        CalculatorInputs(pieces=math.nan),
    ],
)
def test_compute_rejects_non_finite_inputs(calculator, inputs) -> None:
    with pytest.raises(ValidationError):
        calculator.compute(inputs)


def test_save_rejects_non_finite_inputs(calculator) -> None:
    with pytest.raises(ValidationError) as exc_info:
        calculator.save("Batch", _inputs(price_per_piece_cents=math.inf))

    assert exc_info.value.field == "price_per_piece_cents"
    assert calculator.saves == []


def test_compute_requires_pieces(calculator) -> None:
    outcome = calculator.compute(_inputs(pieces=0))

    assert outcome.status == "pieces_required"
    assert outcome.message == "Please enter pieces produced"
    assert outcome.result is None


def test_compute_is_throttled_inside_cooldown(calculator, monotonic) -> None:
    assert calculator.compute(_inputs()).status == "ok"

    monotonic.advance(0.1)
    assert calculator.compute(_inputs()).status == "throttled"

    monotonic.advance(0.2)
    outcome = calculator.compute(_inputs())
    assert outcome.status == "ok"
    assert outcome.result is not None


def test_compute_uses_latest_purchase_costs(calculator) -> None:
    calculator.costs.add(
        PurchaseDraft(date="2024-05-01", item="Sugar", quantity=10, unit="lb", total_paid_cents=1000)
    )

    outcome = calculator.compute(
        _inputs(
            ingredient_quantities={"Sugar": 1},
            pieces=1,
            packaging_cost_cents=0,
            electricity_kwh=0,
        )
    )

    assert outcome.result.total_cost_cents == 100


def test_save_freezes_inputs_and_costs(calculator) -> None:
    quantities = {"sugar": 2.0}
    entry = calculator.save("Morning batch", _inputs(ingredient_quantities=quantities))

    quantities["sugar"] = 99.0
    calculator.costs.set_override("sugar", 500)

    assert entry.inputs.ingredient_quantities == {"sugar": 2.0}
    assert entry.unit_costs["sugar"] == 58
    assert calculator.active_saves() == [entry]


def test_save_ignores_cooldown(calculator) -> None:
    calculator.compute(_inputs())
    entry = calculator.save("Right away", _inputs())

    assert entry.result.total_cost_cents > 0


def test_saves_are_capped_newest_first(calculator) -> None:
    for n in range(12):
        calculator.save(f"Batch {n}", _inputs())

    assert len(calculator.saves) == 10
    assert calculator.saves[0].name == "Batch 11"
    assert calculator.saves[-1].name == "Batch 2"


def test_soft_delete_restore_and_purge(calculator) -> None:
    first = calculator.save("Batch", _inputs())
    calculator.delete_save(first.id)
    second = calculator.save("Batch", _inputs())

    assert calculator.deleted_saves()[0].id == first.id

    restored = calculator.restore_save(first.id)
    assert restored.name == "Batch (1)"
    assert restored.deleted is False
    assert {s.id for s in calculator.active_saves()} == {first.id, second.id}

    calculator.delete_save_permanently(first.id)
    with pytest.raises(RecordNotFoundError):
        calculator.restore_save(first.id)


def test_restore_blank_name_becomes_unnamed(calculator) -> None:
    entry = calculator.save("  ", _inputs())
    calculator.delete_save(entry.id)

    assert calculator.restore_save(entry.id).name == "Unnamed"


def test_restore_active_save_keeps_its_name(calculator) -> None:
    entry = calculator.save("Batch", _inputs())

    assert calculator.restore_save(entry.id) == entry
    assert [s.name for s in calculator.active_saves()] == ["Batch"]
