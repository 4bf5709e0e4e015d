"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from bakery_ledger.api.app import create_app

DELIVERY = {
    "date": "2024-05-01",
    "shop": "Bakaaro",
    "item": "Sisin",
    "quantity": 20,
    "unit_price_cents": 125,
    "paid_cents": 1000,
}


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_delivery_flow_to_settled(container) -> None:
    client = TestClient(create_app(container))

    created = client.post("/deliveries", json=DELIVERY)
    assert created.status_code == 201
    assert created.json()["balance_cents"] == 1500

    totals = client.get("/totals").json()
    assert totals["state"] == "owed"

    client.post(
        "/transactions",
        json={"date": "2024-05-02", "kind": "payment", "amount_cents": 1500},
    )

    totals = client.get("/totals").json()
    assert totals["remaining_cents"] == 0
    assert totals["state"] == "settled"

    activity = client.get("/activity").json()["activity"]
    assert [a["automatic"] for a in activity] == [False, True]


def test_validation_error_maps_to_422(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/deliveries", json={**DELIVERY, "shop": " "})

    assert response.status_code == 422
    assert response.json() == {"field": "shop", "message": "Please enter the shop name."}


def test_unknown_record_maps_to_404(container) -> None:
    client = TestClient(create_app(container))

    response = client.delete("/deliveries/missing")

    assert response.status_code == 404


def test_remove_and_undo_delivery(container) -> None:
    client = TestClient(create_app(container))
    record_id = client.post("/deliveries", json=DELIVERY).json()["id"]

    removed = client.delete(f"/deliveries/{record_id}").json()
    assert removed["undo_expires_at"] is not None

    restored = client.post("/deliveries/undo").json()
    assert restored["restored"]["id"] == record_id


def test_update_delivery_field(container) -> None:
    client = TestClient(create_app(container))
    record_id = client.post("/deliveries", json=DELIVERY).json()["id"]

    response = client.patch(
        f"/deliveries/{record_id}", json={"field": "paid_cents", "value": 2500}
    )

    assert response.json()["balance_cents"] == 0


def test_set_and_clear_totals(container) -> None:
    client = TestClient(create_app(container))
    client.post("/deliveries", json=DELIVERY)

    adjusted = client.put("/totals", json={"paid_cents": 500}).json()
    assert adjusted["display_paid_cents"] == 1500
    assert client.get("/totals/prefill").json() == {"paid_cents": 500, "previous_cents": 0}

    cleared = client.delete("/totals").json()
    assert cleared["display_paid_cents"] == 1000


def test_set_totals_from_money_text(container) -> None:
    client = TestClient(create_app(container))
    client.post("/deliveries", json=DELIVERY)

    client.put("/totals", json={"paid": "-$2.50", "previous": "(3.00)"})

    assert client.get("/totals/prefill").json() == {
        "paid_cents": -250,
        "previous_cents": -300,
    }


def test_get_single_delivery(container) -> None:
    client = TestClient(create_app(container))
    record_id = client.post("/deliveries", json=DELIVERY).json()["id"]

    assert client.get(f"/deliveries/{record_id}").json()["id"] == record_id
    assert client.get("/deliveries/missing").status_code == 404


def test_export_endpoints(container) -> None:
    client = TestClient(create_app(container))
    client.post("/deliveries", json=DELIVERY)

    table = client.get("/export").json()
    assert table["totals_row"][0] == "Totals"
    assert table["totals"] == client.get("/totals").json()

    csv_response = client.get("/export.csv", params={"shop": "Bakaaro"})
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert csv_response.text.splitlines()[-1].startswith('"Totals"')


def test_purchases_and_costs(container) -> None:
    client = TestClient(create_app(container))

    bad = client.post(
        "/purchases",
        json={"item": "Sugar", "quantity": 1, "unit": "gallon", "total_paid_cents": 100},
    )
    assert bad.status_code == 422
    assert bad.json()["field"] == "unit"

    client.post(
        "/purchases",
        json={"item": "Milk", "quantity": 1, "unit": "gallon", "total_paid_cents": 312},
    )
    assert client.get("/costs").json()["milk"] == 20

    overridden = client.put("/costs/milk", json={"cents": 30}).json()
    assert overridden["milk"] == 30
    assert client.delete("/costs/milk").json()["milk"] == 20


def test_calculator_endpoints(container) -> None:
    client = TestClient(create_app(container))

    empty = client.post("/calculator", json={"electricity_rate_cents": 0}).json()
    assert empty["status"] == "nothing_to_calculate"

    ok = client.post(
        "/calculator",
        json={"ingredient_quantities": {"sugar": 1}, "electricity_kwh": 1, "pieces": 1},
    ).json()
    assert ok["status"] == "ok"
    assert ok["result"]["total_cost_cents"] == 58 + 17

    saved = client.post("/calculator/saves", json={"name": "Batch", "pieces": 2})
    assert saved.status_code == 201
    save_id = saved.json()["id"]

    client.delete(f"/calculator/saves/{save_id}")
    listing = client.get("/calculator/saves").json()
    assert listing["active"] == []
    assert listing["deleted"][0]["id"] == save_id


def test_snapshot_endpoints(container) -> None:
    client = TestClient(create_app(container))
    client.post("/deliveries", json=DELIVERY)
    snapshot_id = client.post("/snapshots", json={"name": "Morning"}).json()["id"]

    client.post("/deliveries", json={**DELIVERY, "shop": "Hodan"})
    restored = client.post(
        f"/snapshots/{snapshot_id}/restore", json={"mode": "replace"}
    ).json()
    assert restored["pieces"] == 20

    refused = client.post(f"/snapshots/{snapshot_id}/purge", json={"confirmation": "no"})
    assert refused.status_code == 400

    client.delete(f"/snapshots/{snapshot_id}")
    missing = client.post(f"/snapshots/{snapshot_id}/restore", json={"mode": "append"})
    assert missing.status_code == 404

    undeleted = client.post(f"/snapshots/{snapshot_id}/undelete").json()
    assert undeleted["deleted"] is False

    purged = client.post(
        f"/snapshots/{snapshot_id}/purge", json={"confirmation": "delete"}
    )
    assert purged.status_code == 200
    assert client.get("/snapshots").json() == {"active": [], "deleted": []}


def test_import_endpoint_with_csv_text(container) -> None:
    client = TestClient(create_app(container))

    summary = client.post(
        "/import",
        json={
            "csv_text": "Date,Shop,Item,Qty,Price\n2024-05-01,Bakaaro,Sisin,3,1.00\n",
            "mapping": {"date": 0, "shop": 1, "item": 2, "quantity": 3, "unit_price": 4},
            "has_header": True,
        },
    ).json()

    assert summary == {"added_count": 1, "invalid_count": 0, "duplicate_count": 0}
    assert client.post("/import/undo").json() == {"undone": True}
    assert client.get("/deliveries").json() == {"deliveries": []}


def test_registry_duplicate_maps_to_409(container) -> None:
    client = TestClient(create_app(container))

    assert client.post("/categories", json={"name": "Halwo"}).status_code == 201
    duplicate = client.post("/purchase-items", json={"name": "Sugar"})

    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "That item already exists."
    assert "Halwo" in client.get("/categories").json()["categories"]


def test_admin_clear_requires_token(container) -> None:
    client = TestClient(create_app(container))
    client.post("/deliveries", json=DELIVERY)

    denied = client.post("/admin/clear")
    assert denied.status_code == 401
    wrong = client.post("/admin/clear", headers={"X-Admin-Token": "nope"})
    assert wrong.status_code == 401

    response = client.post("/admin/clear", headers={"X-Admin-Token": "admin-token"})
    assert response.status_code == 200
    assert client.get("/deliveries").json() == {"deliveries": []}

    summary = client.get("/admin/summary", headers={"X-Admin-Token": "admin-token"})
    assert summary.json()["deliveries"] == 0
    assert summary.json()["backend"] == "file"


def test_non_finite_numbers_are_rejected(container) -> None:
    client = TestClient(create_app(container))
    headers = {"Content-Type": "application/json"}

    purchase = client.post(
        "/purchases",
        content='{"item": "Sugar", "quantity": NaN, "unit": "lb", "total_paid_cents": 60}',
        headers=headers,
    )
    calculator = client.post(
        "/calculator", content='{"pieces": 2, "electricity_kwh": Infinity}', headers=headers
    )

    assert purchase.status_code == 422
    assert calculator.status_code == 422
    assert client.get("/purchases").json() == {"purchases": []}


def test_purchase_saves_and_export(container) -> None:
    client = TestClient(create_app(container))
    client.post(
        "/purchases",
        json={"item": "Sugar", "quantity": 2, "unit": "lb", "total_paid_cents": 120},
    )
    save = client.post("/purchase-saves", json={"name": "Week 1"})
    assert save.status_code == 201
    save_id = save.json()["id"]
    assert save.json()["purchases"] == 1

    client.post(
        "/purchases",
        json={"item": "Flour", "quantity": 1, "unit": "lb", "total_paid_cents": 56},
    )
    appended = client.post(
        f"/purchase-saves/{save_id}/restore", json={"mode": "append"}
    ).json()
    assert [p["item"] for p in appended["purchases"]] == ["Sugar", "Flour", "Sugar"]

    table = client.get("/purchases/export").json()
    assert len(table["rows"]) == 3
    csv_text = client.get("/purchases/export.csv").text
    assert csv_text.startswith('"Date","Item","Qty"')

    denied = client.post(f"/purchase-saves/{save_id}/purge", json={"confirmation": ""})
    assert denied.status_code == 400
    client.post(f"/purchase-saves/{save_id}/purge", json={"confirmation": "DELETE"})
    assert client.get("/purchase-saves").json() == {"saves": []}
