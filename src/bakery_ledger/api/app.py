"""FastAPI application factory."""

import logging
from dataclasses import asdict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from bakery_ledger.api.admin import router as admin_router
from bakery_ledger.api.models import (
    CalculatorIn,
    CalculatorSaveIn,
    CostOverrideIn,
    DeliveryIn,
    FieldUpdate,
    ImportIn,
    NameIn,
    PermanentDeleteIn,
    PurchaseIn,
    ShopBalanceIn,
    SnapshotIn,
    SnapshotRestoreIn,
    TotalsIn,
    TransactionIn,
)
from bakery_ledger.app_logging import configure_logging
from bakery_ledger.containers import AppContainer
from bakery_ledger.domain.calculator import CalculatorInputs
from bakery_ledger.domain.deliveries import DeliveryDraft
from bakery_ledger.domain.errors import (
    ConfirmationRequiredError,
    DuplicateNameError,
    RecordNotFoundError,
    ValidationError,
)
from bakery_ledger.domain.money import parse_signed_cents
from bakery_ledger.domain.purchases import PurchaseDraft, PurchaseSave
from bakery_ledger.domain.snapshots import Snapshot
from bakery_ledger.domain.transactions import TransactionDraft
from bakery_ledger.services.imports import parse_csv_content
from bakery_ledger.services.store import LedgerStore


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    default_rate = container.settings.default_electricity_rate_cents

    app = FastAPI()
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(ValidationError)
    async def validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422, content={"field": exc.field, "message": exc.message}
        )

    @app.exception_handler(DuplicateNameError)
    async def duplicate_name(_: Request, exc: DuplicateNameError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"message": str(exc)})

    @app.exception_handler(RecordNotFoundError)
    async def not_found(_: Request, exc: RecordNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(ConfirmationRequiredError)
    async def confirmation_required(
        _: Request, exc: ConfirmationRequiredError
    ) -> JSONResponse:
        logger.info("Permanent delete refused without confirmation")
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    # Deliveries

    @app.get("/deliveries")
    async def list_deliveries(
        request: Request, shop: str | None = None, search: str | None = None
    ) -> dict[str, object]:
        store = _store(request)
        rows = store.list_deliveries(shop=shop, search=search)
        return {"deliveries": [asdict(r) for r in rows]}

    @app.post("/deliveries", status_code=201)
    async def add_delivery(body: DeliveryIn, request: Request) -> dict[str, object]:
        record = _store(request).add_delivery(DeliveryDraft(**body.model_dump()))
        return asdict(record)

    @app.get("/deliveries/{record_id}")
    async def get_delivery(record_id: str, request: Request) -> dict[str, object]:
        return asdict(_store(request).deliveries.get(record_id))

    @app.patch("/deliveries/{record_id}")
    async def update_delivery(
        record_id: str, body: FieldUpdate, request: Request
    ) -> dict[str, object]:
        record = _store(request).update_delivery(record_id, body.field, body.value)
        return asdict(record)

    @app.delete("/deliveries/{record_id}")
    async def remove_delivery(record_id: str, request: Request) -> dict[str, object]:
        store = _store(request)
        record = store.remove_delivery(record_id)
        pending = store.deliveries.pending_removal()
        return {
            "removed": asdict(record),
            "undo_expires_at": pending.expires_at.isoformat() if pending else None,
        }

    @app.post("/deliveries/undo")
    async def undo_delivery(request: Request) -> dict[str, object]:
        record = _store(request).undo_delivery_removal()
        return {"restored": asdict(record) if record else None}

    @app.get("/shops")
    async def shop_balances(request: Request) -> dict[str, object]:
        store = _store(request)
        return {"shops": [asdict(b) for b in store.shop_balances()]}

    @app.put("/shops/{shop}/balance")
    async def set_shop_balance(
        shop: str, body: ShopBalanceIn, request: Request
    ) -> dict[str, object]:
        record = _store(request).apply_shop_balance(shop, body.field, body.cents)
        if record is None:
            raise RecordNotFoundError("shop", shop)
        return asdict(record)

    # Transactions

    @app.get("/transactions")
    async def list_transactions(request: Request) -> dict[str, object]:
        rows = _store(request).list_transactions()
        return {"transactions": [asdict(t) for t in rows]}

    @app.post("/transactions", status_code=201)
    async def add_transaction(
        body: TransactionIn, request: Request
    ) -> dict[str, object]:
        record = _store(request).add_transaction(
            TransactionDraft(**body.model_dump())
        )
        return asdict(record)

    @app.delete("/transactions/{record_id}")
    async def remove_transaction(
        record_id: str, request: Request
    ) -> dict[str, object]:
        return {"removed": asdict(_store(request).remove_transaction(record_id))}

    @app.post("/transactions/undo")
    async def undo_transaction(request: Request) -> dict[str, object]:
        record = _store(request).undo_transaction_removal()
        return {"restored": asdict(record) if record else None}

    @app.get("/activity")
    async def activity(request: Request) -> dict[str, object]:
        return {"activity": [asdict(a) for a in _store(request).activity()]}

    # Totals and export

    @app.get("/totals")
    async def totals(request: Request, shop: str | None = None) -> dict[str, object]:
        return asdict(_store(request).totals(shop))

    @app.get("/totals/prefill")
    async def totals_prefill(request: Request) -> dict[str, int]:
        paid, previous = _store(request).totals_prefill()
        return {"paid_cents": paid, "previous_cents": previous}

    @app.put("/totals")
    async def set_totals(body: TotalsIn, request: Request) -> dict[str, object]:
        store = _store(request)
        store.set_totals(
            _signed_or(body.paid, body.paid_cents),
            _signed_or(body.previous, body.previous_cents),
        )
        return asdict(store.totals())

    @app.delete("/totals")
    async def clear_totals(request: Request) -> dict[str, object]:
        store = _store(request)
        store.clear_totals()
        return asdict(store.totals())

    @app.get("/export")
    async def export_table(
        request: Request, shop: str | None = None
    ) -> dict[str, object]:
        return asdict(_store(request).export_table(shop))

    @app.get("/export.csv")
    async def export_csv(request: Request, shop: str | None = None) -> PlainTextResponse:
        return PlainTextResponse(
            _store(request).export_csv(shop), media_type="text/csv"
        )

    # Purchases and unit costs

    @app.get("/purchases")
    async def list_purchases(
        request: Request, search: str | None = None
    ) -> dict[str, object]:
        rows = _store(request).list_purchases(search)
        return {"purchases": [asdict(p) for p in rows]}

    @app.get("/purchases/export")
    async def export_purchases(request: Request) -> dict[str, object]:
        return asdict(_store(request).export_purchases_table())

    @app.get("/purchases/export.csv")
    async def export_purchases_csv(request: Request) -> PlainTextResponse:
        return PlainTextResponse(
            _store(request).export_purchases_csv(), media_type="text/csv"
        )

    @app.post("/purchases", status_code=201)
    async def add_purchase(body: PurchaseIn, request: Request) -> dict[str, object]:
        record = _store(request).add_purchase(PurchaseDraft(**body.model_dump()))
        return asdict(record)

    @app.patch("/purchases/{record_id}")
    async def update_purchase(
        record_id: str, body: FieldUpdate, request: Request
    ) -> dict[str, object]:
        record = _store(request).update_purchase(record_id, body.field, body.value)
        return asdict(record)

    @app.delete("/purchases/{record_id}")
    async def remove_purchase(record_id: str, request: Request) -> dict[str, object]:
        return {"removed": asdict(_store(request).remove_purchase(record_id))}

    @app.post("/purchases/undo")
    async def undo_purchase(request: Request) -> dict[str, object]:
        record = _store(request).undo_purchase_removal()
        return {"restored": asdict(record) if record else None}

    @app.get("/costs")
    async def costs(request: Request) -> dict[str, int]:
        return _store(request).latest_costs()

    @app.put("/costs/{item}")
    async def set_cost(
        item: str, body: CostOverrideIn, request: Request
    ) -> dict[str, int]:
        store = _store(request)
        store.set_cost_override(item, body.cents)
        return store.latest_costs()

    @app.delete("/costs/{item}")
    async def clear_cost(item: str, request: Request) -> dict[str, int]:
        store = _store(request)
        store.clear_cost_override(item)
        return store.latest_costs()

    # Purchase saves

    @app.get("/purchase-saves")
    async def list_purchase_saves(request: Request) -> dict[str, object]:
        saves = _store(request).list_purchase_saves()
        return {"saves": [_purchase_save_summary(s) for s in saves]}

    @app.post("/purchase-saves", status_code=201)
    async def create_purchase_save(
        body: SnapshotIn, request: Request
    ) -> dict[str, object]:
        return _purchase_save_summary(_store(request).create_purchase_save(body.name))

    @app.post("/purchase-saves/{save_id}/restore")
    async def restore_purchase_save(
        save_id: str, body: SnapshotRestoreIn, request: Request
    ) -> dict[str, object]:
        purchases = _store(request).restore_purchase_save(save_id, body.mode)
        return {"purchases": [asdict(p) for p in purchases]}

    @app.post("/purchase-saves/{save_id}/purge")
    async def purge_purchase_save(
        save_id: str, body: PermanentDeleteIn, request: Request
    ) -> dict[str, str]:
        _store(request).delete_purchase_save(save_id, body.confirmation)
        return {"status": "deleted"}

    # Calculator

    @app.post("/calculator")
    async def calculate(body: CalculatorIn, request: Request) -> dict[str, object]:
        outcome = _store(request).calculate(_calculator_inputs(body, default_rate))
        return asdict(outcome)

    @app.get("/calculator/saves")
    async def calculator_saves(request: Request) -> dict[str, object]:
        calculator = _store(request).calculator
        return {
            "active": [asdict(s) for s in calculator.active_saves()],
            "deleted": [asdict(s) for s in calculator.deleted_saves()],
        }

    @app.post("/calculator/saves", status_code=201)
    async def save_calculation(
        body: CalculatorSaveIn, request: Request
    ) -> dict[str, object]:
        entry = _store(request).save_calculation(
            body.name, _calculator_inputs(body, default_rate)
        )
        return asdict(entry)

    @app.delete("/calculator/saves/{save_id}")
    async def delete_calculation(save_id: str, request: Request) -> dict[str, object]:
        return asdict(_store(request).delete_calculation(save_id))

    @app.post("/calculator/saves/{save_id}/restore")
    async def restore_calculation(
        save_id: str, request: Request
    ) -> dict[str, object]:
        return asdict(_store(request).restore_calculation(save_id))

    @app.post("/calculator/saves/{save_id}/purge")
    async def purge_calculation(save_id: str, request: Request) -> dict[str, str]:
        _store(request).delete_calculation_permanently(save_id)
        return {"status": "deleted"}

    # Snapshots

    @app.get("/snapshots")
    async def list_snapshots(request: Request) -> dict[str, object]:
        snapshots = _store(request).snapshots
        return {
            "active": [_snapshot_summary(s) for s in snapshots.active()],
            "deleted": [_snapshot_summary(s) for s in snapshots.deleted()],
        }

    @app.post("/snapshots", status_code=201)
    async def create_snapshot(body: SnapshotIn, request: Request) -> dict[str, object]:
        return _snapshot_summary(_store(request).create_snapshot(body.name))

    @app.patch("/snapshots/{snapshot_id}")
    async def rename_snapshot(
        snapshot_id: str, body: SnapshotIn, request: Request
    ) -> dict[str, object]:
        return _snapshot_summary(_store(request).rename_snapshot(snapshot_id, body.name))

    @app.post("/snapshots/{snapshot_id}/restore")
    async def restore_snapshot(
        snapshot_id: str, body: SnapshotRestoreIn, request: Request
    ) -> dict[str, object]:
        store = _store(request)
        store.restore_snapshot(snapshot_id, body.mode)
        return asdict(store.totals())

    @app.delete("/snapshots/{snapshot_id}")
    async def delete_snapshot(snapshot_id: str, request: Request) -> dict[str, object]:
        return _snapshot_summary(_store(request).delete_snapshot(snapshot_id))

    @app.post("/snapshots/{snapshot_id}/undelete")
    async def undelete_snapshot(
        snapshot_id: str, request: Request
    ) -> dict[str, object]:
        return _snapshot_summary(_store(request).restore_deleted_snapshot(snapshot_id))

    @app.post("/snapshots/{snapshot_id}/purge")
    async def purge_snapshot(
        snapshot_id: str, body: PermanentDeleteIn, request: Request
    ) -> dict[str, str]:
        _store(request).delete_snapshot_permanently(snapshot_id, body.confirmation)
        return {"status": "deleted"}

    # Imports

    @app.post("/import")
    async def run_import(body: ImportIn, request: Request) -> dict[str, object]:
        if body.rows is not None:
            rows = body.rows
        else:
            rows = parse_csv_content(body.csv_text or "")
        summary = _store(request).run_import(
            rows, body.mapping, body.has_header, append=body.append
        )
        return asdict(summary)

    @app.post("/import/undo")
    async def undo_import(request: Request) -> dict[str, bool]:
        return {"undone": _store(request).undo_import()}

    # Registries

    @app.get("/categories")
    async def categories(request: Request) -> dict[str, list[str]]:
        return {"categories": list(_store(request).categories.names)}

    @app.post("/categories", status_code=201)
    async def add_category(body: NameIn, request: Request) -> dict[str, str]:
        return {"name": _store(request).add_category(body.name)}

    @app.get("/purchase-items")
    async def purchase_items(request: Request) -> dict[str, list[str]]:
        return {"purchase_items": list(_store(request).purchase_items.names)}

    @app.post("/purchase-items", status_code=201)
    async def add_purchase_item(body: NameIn, request: Request) -> dict[str, str]:
        return {"name": _store(request).add_purchase_item(body.name)}

    return app


def _store(request: Request) -> LedgerStore:
    container: AppContainer = request.app.state.container
    return container.store


def _signed_or(text: str | None, cents: int | None) -> int | None:
    """Typed money text wins over raw cents; blank text clears the figure."""
    if text is None:
        return cents
    if not text.strip():
        return None
    return parse_signed_cents(text)


def _calculator_inputs(body: CalculatorIn, default_rate: int) -> CalculatorInputs:
    rate = body.electricity_rate_cents
    return CalculatorInputs(
        ingredient_quantities=dict(body.ingredient_quantities),
        packaging_cost_cents=body.packaging_cost_cents,
        electricity_kwh=body.electricity_kwh,
        electricity_rate_cents=float(default_rate) if rate is None else rate,
        pieces=body.pieces,
        price_per_piece_cents=body.price_per_piece_cents,
    )


def _snapshot_summary(snapshot: Snapshot) -> dict[str, object]:
    return {
        "id": snapshot.id,
        "timestamp": snapshot.timestamp,
        "name": snapshot.name,
        "deleted": snapshot.deleted,
        "deleted_at": snapshot.deleted_at,
        "deliveries": len(snapshot.state.deliveries),
        "transactions": len(snapshot.state.transactions),
        "purchases": len(snapshot.state.purchases),
    }


def _purchase_save_summary(entry: PurchaseSave) -> dict[str, object]:
    return {
        "id": entry.id,
        "timestamp": entry.timestamp,
        "name": entry.name,
        "purchases": len(entry.purchases),
        "purchase_items": list(entry.purchase_items),
    }
