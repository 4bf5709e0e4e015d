"""Tests for the delivery ledger."""

import pytest

from bakery_ledger.domain.deliveries import DeliveryDraft
from bakery_ledger.domain.errors import RecordNotFoundError, ValidationError
from bakery_ledger.services.deliveries import DeliveryLedger
from bakery_ledger.services.undo import UndoSlot


def _draft(**overrides) -> DeliveryDraft:
    values = {
        "date": "2024-05-01",
        "shop": "Hodan Market",
        "item": "Sisin",
        "quantity": 10,
        "unit_price_cents": 150,
    }
    values.update(overrides)
    return DeliveryDraft(**values)


@pytest.fixture
def ledger(clock) -> DeliveryLedger:
    ids = iter(f"d{n}" for n in range(1, 100))
    return DeliveryLedger(
        undo=UndoSlot(window_seconds=10, clock=clock), id_factory=lambda: next(ids)
    )


def test_add_derives_money_fields_and_prepends(ledger) -> None:
    first = ledger.add(_draft(paid_cents=500, previous_balance_cents=200, unit_cost_cents=90))
    second = ledger.add(_draft(shop="Bakaaro"))

    assert first.total_cents == 1500
    assert first.profit_cents == 600
    assert first.balance_cents == 200 + 1500 - 500
    assert [r.id for r in ledger.list()] == [second.id, first.id]


@pytest.mark.parametrize(
    ("overrides", "field", "message"),
    [
        ({"shop": "  "}, "shop", "Please enter the shop name."),
        ({"item": ""}, "item", "Please select an item."),
        ({"quantity": 0}, "quantity", "Pieces must be at least 1."),
        ({"unit_price_cents": 0}, "unit_price_cents", "Price per piece must be greater than 0."),
        ({"date": "not a date"}, "date", "Date must be YYYY-MM-DD or MM/DD/YYYY."),
    ],
)
def test_add_rejects_invalid_drafts(ledger, overrides, field, message) -> None:
    with pytest.raises(ValidationError) as exc_info:
        ledger.add(_draft(**overrides))

    assert exc_info.value.field == field
    assert exc_info.value.message == message
    assert ledger.list() == []


def test_add_defaults_blank_date_to_today(ledger) -> None:
    record = ledger.add(_draft(date=""))
    assert len(record.date) == 10


def test_balance_stays_consistent_after_every_edit(ledger) -> None:
    record = ledger.add(_draft(previous_balance_cents=-300, paid_cents=100))
    for field_name, value in [
        ("quantity", "12"),
        ("unit_price_cents", "2.25"),
        ("paid_cents", 400),
        ("unit_cost_cents", 100),
        ("shop", "Bakaaro"),
    ]:
        record = ledger.update(record.id, field_name, value)
        assert record.total_cents == record.quantity * record.unit_price_cents
        assert record.balance_cents == (
            record.previous_balance_cents + record.total_cents - record.paid_cents
        )
        assert record.profit_cents == record.quantity * (
            record.unit_price_cents - record.unit_cost_cents
        )

    assert record.quantity == 12
    assert record.unit_price_cents == 225
    assert record.balance_cents == -300 + 2700 - 400


def test_update_rejects_unknown_field(ledger) -> None:
    record = ledger.add(_draft())
    with pytest.raises(ValidationError):
        ledger.update(record.id, "balance_cents", 0)


def test_update_unknown_id(ledger) -> None:
    with pytest.raises(RecordNotFoundError):
        ledger.update("missing", "notes", "x")


def test_remove_and_undo_restores_position(ledger) -> None:
    a = ledger.add(_draft(item="A"))
    b = ledger.add(_draft(item="B"))
    c = ledger.add(_draft(item="C"))

    ledger.remove(b.id)
    assert [r.id for r in ledger.list()] == [c.id, a.id]

    restored = ledger.undo_remove()

    assert restored == b
    assert [r.id for r in ledger.list()] == [c.id, b.id, a.id]
    assert ledger.undo_remove() is None


def test_undo_expires_after_window(ledger, clock) -> None:
    record = ledger.add(_draft())
    ledger.remove(record.id)

    clock.advance(10)

    assert ledger.pending_removal() is None
    assert ledger.undo_remove() is None
    assert ledger.list() == []


def test_new_removal_replaces_pending_undo(ledger) -> None:
    a = ledger.add(_draft(item="A"))
    b = ledger.add(_draft(item="B"))
    ledger.remove(a.id)
    ledger.remove(b.id)

    assert ledger.undo_remove() == b
    assert ledger.undo_remove() is None


def test_list_filters_by_shop_and_search(ledger) -> None:
    ledger.add(_draft(shop="Hodan Market", notes="early drop"))
    ledger.add(_draft(shop="Bakaaro", delivered_by="Ayaan", date="2024-06-02"))

    assert len(ledger.list(shop="Bakaaro")) == 1
    assert len(ledger.list(search="EARLY")) == 1
    assert len(ledger.list(search="ayaan")) == 1
    assert len(ledger.list(search="06/02/2024")) == 1
    assert ledger.list(shop="Bakaaro", search="early") == []


def test_shop_balances_aggregate_rows(ledger) -> None:
    ledger.add(_draft(shop="Bakaaro", paid_cents=500))
    ledger.add(_draft(shop="Bakaaro", quantity=4, previous_balance_cents=100))
    ledger.add(_draft(shop="Hodan Market"))

    balances = {b.shop: b for b in ledger.shop_balances()}

    assert list(balances) == ["Bakaaro", "Hodan Market"]
    bakaaro = balances["Bakaaro"]
    assert bakaaro.pieces == 14
    assert bakaaro.value_cents == 2100
    assert bakaaro.paid_cents == 500
    assert bakaaro.previous_balance_cents == 100
    assert bakaaro.current_balance_cents == 100 + 2100 - 500
    assert ledger.shops() == ["Hodan Market", "Bakaaro"]


def test_apply_shop_balance_targets_latest_and_earliest_rows(ledger) -> None:
    earliest = ledger.add(_draft(shop="Bakaaro", paid_cents=300))
    latest = ledger.add(_draft(shop="Bakaaro", paid_cents=200))

    updated = ledger.apply_shop_balance("Bakaaro", "paid", 1000)
    assert updated.id == latest.id
    assert updated.paid_cents == 700
    assert sum(r.paid_cents for r in ledger.list(shop="Bakaaro")) == 1000

    updated = ledger.apply_shop_balance("Bakaaro", "previous", 250)
    assert updated.id == earliest.id
    assert updated.previous_balance_cents == 250
    assert updated.balance_cents == 250 + 1500 - 300


def test_apply_shop_balance_clamps_at_zero(ledger) -> None:
    ledger.add(_draft(shop="Bakaaro", paid_cents=300))
    ledger.add(_draft(shop="Bakaaro", paid_cents=100))

    updated = ledger.apply_shop_balance("Bakaaro", "paid", 0)

    assert updated.paid_cents == 0


def test_apply_shop_balance_unknown_shop(ledger) -> None:
    assert ledger.apply_shop_balance("Nobody", "paid", 100) is None
