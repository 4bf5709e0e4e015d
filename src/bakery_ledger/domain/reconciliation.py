"""Domain models for aggregate totals."""

from dataclasses import dataclass
from typing import Literal

BalanceState = Literal["settled", "owed", "overpaid"]


@dataclass(frozen=True)
class OverrideBaseline:
    """Manual corrections added on top of computed paid and previous balance."""

    paid_baseline_cents: int | None = None
    previous_balance_baseline_cents: int | None = None


@dataclass(frozen=True)
class AggregateTotals:
    """Headline figures for a set of deliveries plus manual transactions."""

    pieces: int
    total_value_cents: int
    auto_paid_cents: int
    manual_paid_cents: int
    manual_deduct_cents: int
    combined_paid_cents: int
    computed_previous_cents: int
    display_paid_cents: int
    display_previous_cents: int
    remaining_cents: int
    total_profit_cents: int
    state: BalanceState


@dataclass(frozen=True)
class ExportTable:
    """Tabular view for an external CSV/Excel formatter."""

    header: list[str]
    rows: list[list[str]]
    totals_row: list[str]
    totals: AggregateTotals


def classify_balance(remaining_cents: int) -> BalanceState:
    """Classify a remaining balance for display."""
    if remaining_cents == 0:
        return "settled"
    if remaining_cents > 0:
        return "owed"
    return "overpaid"
