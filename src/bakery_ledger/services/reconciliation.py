"""Aggregate totals over deliveries and manual transactions."""

import csv
import io
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from bakery_ledger.domain.deliveries import DeliveryRecord
from bakery_ledger.domain.money import cents_to_decimal_str, format_display_date
from bakery_ledger.domain.reconciliation import (
    AggregateTotals,
    ExportTable,
    OverrideBaseline,
    classify_balance,
)
from bakery_ledger.domain.transactions import DEDUCTION, PAYMENT, TransactionRecord

logger = logging.getLogger(__name__)

EXPORT_HEADER = [
    "No.",
    "Date",
    "Shop",
    "Item",
    "Qty",
    "Price Per piece",
    "Total ($)",
    "Paid Amount",
    "Prev Balance ($)",
    "Current Balance ($)",
]


def compute_totals(
    deliveries: Iterable[DeliveryRecord],
    transactions: Iterable[TransactionRecord],
    baseline: OverrideBaseline,
) -> AggregateTotals:
    """Reconcile delivery rows, manual transactions and the override baseline.

    Baseline values are added to the computed figures, never substituted
    for them. Transactions carry no shop, so callers pass the full list
    even when deliveries are filtered.
    """
    pieces = 0
    value = 0
    auto_paid = 0
    computed_prev = 0
    profit = 0
    for row in deliveries:
        pieces += row.quantity
        value += row.total_cents
        auto_paid += row.paid_cents
        computed_prev += row.previous_balance_cents
        profit += row.profit_cents

    manual_paid = 0
    manual_deduct = 0
    for txn in transactions:
        if txn.kind == PAYMENT:
            manual_paid += txn.amount_cents
        elif txn.kind == DEDUCTION:
            manual_deduct += txn.amount_cents

    combined_paid = auto_paid + manual_paid + manual_deduct
    display_paid = combined_paid
    if baseline.paid_baseline_cents is not None:
        display_paid = baseline.paid_baseline_cents + combined_paid
    display_prev = computed_prev
    if baseline.previous_balance_baseline_cents is not None:
        display_prev = baseline.previous_balance_baseline_cents + computed_prev
    remaining = display_prev + (value - display_paid)

    return AggregateTotals(
        pieces=pieces,
        total_value_cents=value,
        auto_paid_cents=auto_paid,
        manual_paid_cents=manual_paid,
        manual_deduct_cents=manual_deduct,
        combined_paid_cents=combined_paid,
        computed_previous_cents=computed_prev,
        display_paid_cents=display_paid,
        display_previous_cents=display_prev,
        remaining_cents=remaining,
        total_profit_cents=profit,
        state=classify_balance(remaining),
    )


@dataclass
class AggregateReconciler:
    """Holds the override baseline and derives totals from the ledgers."""

    baseline: OverrideBaseline = field(default_factory=OverrideBaseline)

    def compute(
        self,
        deliveries: Sequence[DeliveryRecord],
        transactions: Sequence[TransactionRecord],
        shop: str | None = None,
    ) -> AggregateTotals:
        return compute_totals(_for_shop(deliveries, shop), transactions, self.baseline)

    def set_totals(self, paid_cents: int | None, previous_cents: int | None) -> None:
        """Replace the baseline values themselves."""
        self.baseline = OverrideBaseline(
            paid_baseline_cents=paid_cents,
            previous_balance_baseline_cents=previous_cents,
        )
        logger.info(
            "Override baseline set: paid=%s previous=%s", paid_cents, previous_cents
        )

    def clear_totals(self) -> None:
        self.baseline = OverrideBaseline()
        logger.info("Override baseline cleared")

    def totals_prefill(
        self,
        deliveries: Sequence[DeliveryRecord],
        transactions: Sequence[TransactionRecord],
    ) -> tuple[int, int]:
        """Values for the "set totals" editor: the baseline if set, else computed."""
        totals = compute_totals(deliveries, transactions, OverrideBaseline())
        paid = self.baseline.paid_baseline_cents
        prev = self.baseline.previous_balance_baseline_cents
        return (
            totals.combined_paid_cents if paid is None else paid,
            totals.computed_previous_cents if prev is None else prev,
        )

    def export_table(
        self,
        deliveries: Sequence[DeliveryRecord],
        transactions: Sequence[TransactionRecord],
        shop: str | None = None,
    ) -> ExportTable:
        """Build export rows (oldest first) and a totals row.

        The totals row reuses ``compute`` so it always matches the summary
        for the same filter.
        """
        rows_newest_first = _for_shop(deliveries, shop)
        totals = self.compute(deliveries, transactions, shop)
        count = len(rows_newest_first)
        rows = [
            [
                str(count - offset),
                format_display_date(r.date),
                r.shop,
                r.item,
                str(r.quantity),
                cents_to_decimal_str(r.unit_price_cents),
                cents_to_decimal_str(r.total_cents),
                cents_to_decimal_str(r.paid_cents),
                cents_to_decimal_str(r.previous_balance_cents),
                cents_to_decimal_str(r.balance_cents),
            ]
            for offset, r in enumerate(reversed(rows_newest_first))
        ]
        totals_row = [
            "Totals",
            "",
            "",
            "",
            str(totals.pieces),
            "",
            cents_to_decimal_str(totals.total_value_cents),
            cents_to_decimal_str(totals.display_paid_cents),
            cents_to_decimal_str(totals.display_previous_cents),
            cents_to_decimal_str(totals.remaining_cents),
        ]
        return ExportTable(
            header=list(EXPORT_HEADER), rows=rows, totals_row=totals_row, totals=totals
        )


def render_csv(table: ExportTable) -> str:
    """Render an export table as CSV text with every cell quoted."""
    return csv_text([table.header, *table.rows, table.totals_row])


def csv_text(rows: Iterable[Sequence[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def _for_shop(
    deliveries: Sequence[DeliveryRecord], shop: str | None
) -> list[DeliveryRecord]:
    if shop is None:
        return list(deliveries)
    return [r for r in deliveries if r.shop == shop]
