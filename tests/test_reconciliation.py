"""Tests for aggregate totals and export."""

import csv
import io

from bakery_ledger.domain.deliveries import DeliveryDraft, build_delivery
from bakery_ledger.domain.reconciliation import OverrideBaseline
from bakery_ledger.domain.transactions import TransactionRecord
from bakery_ledger.services.reconciliation import (
    EXPORT_HEADER,
    AggregateReconciler,
    compute_totals,
    render_csv,
)


def _delivery(record_id: str, shop: str, quantity: int, price: int, **extra):
    return build_delivery(
        record_id,
        DeliveryDraft(
            date=extra.pop("date", "2024-05-01"),
            shop=shop,
            item="Sisin",
            quantity=quantity,
            unit_price_cents=price,
            **extra,
        ),
    )


DELIVERIES = [
    _delivery("d3", "Bakaaro", 5, 200, paid_cents=300, date="2024-05-03"),
    _delivery("d2", "Hodan", 10, 100, previous_balance_cents=400, date="2024-05-02"),
    _delivery("d1", "Bakaaro", 2, 250, unit_cost_cents=100, date="2024-05-01"),
]
TRANSACTIONS = [
    TransactionRecord(id="t1", date="2024-05-04", kind="payment", amount_cents=200),
    TransactionRecord(id="t2", date="2024-05-05", kind="deduction", amount_cents=50),
]


def test_compute_totals_without_baseline() -> None:
    totals = compute_totals(DELIVERIES, TRANSACTIONS, OverrideBaseline())

    assert totals.pieces == 17
    assert totals.total_value_cents == 1000 + 1000 + 500
    assert totals.auto_paid_cents == 300
    assert totals.manual_paid_cents == 200
    assert totals.manual_deduct_cents == 50
    assert totals.combined_paid_cents == 550
    assert totals.computed_previous_cents == 400
    assert totals.display_paid_cents == 550
    assert totals.remaining_cents == 400 + 2500 - 550
    assert totals.state == "owed"


def test_baseline_is_added_not_substituted() -> None:
    plain = compute_totals(DELIVERIES, TRANSACTIONS, OverrideBaseline())
    adjusted = compute_totals(
        DELIVERIES,
        TRANSACTIONS,
        OverrideBaseline(paid_baseline_cents=1000, previous_balance_baseline_cents=-200),
    )

    assert adjusted.display_paid_cents == plain.combined_paid_cents + 1000
    assert adjusted.display_previous_cents == plain.computed_previous_cents - 200
    assert adjusted.remaining_cents == plain.remaining_cents - 1000 - 200


def test_compute_is_idempotent() -> None:
    reconciler = AggregateReconciler()
    reconciler.set_totals(100, None)

    first = reconciler.compute(DELIVERIES, TRANSACTIONS)
    second = reconciler.compute(DELIVERIES, TRANSACTIONS)

    assert first == second


def test_shop_filter_keeps_global_transactions() -> None:
    totals = AggregateReconciler().compute(DELIVERIES, TRANSACTIONS, shop="Bakaaro")

    assert totals.total_value_cents == 1500
    assert totals.combined_paid_cents == 300 + 200 + 50
    assert totals.total_profit_cents == 1000 + 300


def test_state_classification() -> None:
    reconciler = AggregateReconciler()
    reconciler.set_totals(paid_cents=2500 - 550 + 400, previous_cents=None)
    assert reconciler.compute(DELIVERIES, TRANSACTIONS).state == "settled"

    reconciler.set_totals(paid_cents=5000, previous_cents=None)
    totals = reconciler.compute(DELIVERIES, TRANSACTIONS)
    assert totals.state == "overpaid"
    assert totals.remaining_cents < 0


def test_clear_totals_resets_baseline() -> None:
    reconciler = AggregateReconciler()
    reconciler.set_totals(100, 200)
    reconciler.clear_totals()

    assert reconciler.baseline == OverrideBaseline()


def test_totals_prefill_prefers_baseline() -> None:
    reconciler = AggregateReconciler()
    assert reconciler.totals_prefill(DELIVERIES, TRANSACTIONS) == (550, 400)

    reconciler.set_totals(75, None)
    assert reconciler.totals_prefill(DELIVERIES, TRANSACTIONS) == (75, 400)


def test_export_totals_match_summary() -> None:
    reconciler = AggregateReconciler()
    reconciler.set_totals(120, 30)

    for shop in (None, "Bakaaro", "Hodan"):
        table = reconciler.export_table(DELIVERIES, TRANSACTIONS, shop)
        summary = reconciler.compute(DELIVERIES, TRANSACTIONS, shop)
        assert table.totals == summary
        assert table.totals_row[4] == str(summary.pieces)
        assert table.totals_row[-1] == f"{summary.remaining_cents / 100:.2f}"


def test_export_rows_are_oldest_first() -> None:
    table = AggregateReconciler().export_table(DELIVERIES, TRANSACTIONS)

    assert table.header == EXPORT_HEADER
    assert [row[1] for row in table.rows] == ["05/01/2024", "05/02/2024", "05/03/2024"]
    assert table.rows[0][5] == "2.50"
    assert table.totals_row[0] == "Totals"


def test_render_csv_quotes_every_cell() -> None:
    table = AggregateReconciler().export_table(DELIVERIES, TRANSACTIONS, "Hodan")

    text = render_csv(table)
    parsed = list(csv.reader(io.StringIO(text)))

    assert text.splitlines()[0].startswith('"No.","Date"')
    assert parsed[1][2] == "Hodan"
    assert parsed[-1][0] == "Totals"
    assert len(parsed) == 3
