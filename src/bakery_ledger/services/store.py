"""Ledger store: owns every ledger and persists after each mutation."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from bakery_ledger.domain.calculator import (
    CalculatorInputs,
    CalculatorOutcome,
    CalculatorSave,
)
from bakery_ledger.domain.deliveries import DeliveryDraft, DeliveryRecord, ShopBalance
from bakery_ledger.domain.imports import ImportSummary
from bakery_ledger.domain.money import new_id
from bakery_ledger.domain.purchases import (
    PurchaseDraft,
    PurchaseExportTable,
    PurchaseRecord,
    PurchaseSave,
)
from bakery_ledger.domain.reconciliation import AggregateTotals, ExportTable
from bakery_ledger.domain.snapshots import LedgerState, RestoreMode, Snapshot
from bakery_ledger.domain.transactions import (
    ActivityEntry,
    TransactionDraft,
    TransactionRecord,
)
from bakery_ledger.services import state_codec
from bakery_ledger.services.calculator import CostCalculator
from bakery_ledger.services.deliveries import DeliveryLedger
from bakery_ledger.services.imports import ImportReconciler
from bakery_ledger.services.purchase_saves import PurchaseSaveStore
from bakery_ledger.services.purchases import PurchaseCostModel, export_purchases
from bakery_ledger.services.reconciliation import (
    AggregateReconciler,
    csv_text,
    render_csv,
)
from bakery_ledger.services.registries import (
    DEFAULT_CATEGORIES,
    DEFAULT_PURCHASE_ITEMS,
    NameRegistry,
)
from bakery_ledger.services.snapshots import SnapshotStore
from bakery_ledger.services.transactions import TransactionLedger
from bakery_ledger.services.undo import UndoSlot, utc_now

logger = logging.getLogger(__name__)

DELIVERIES = "deliveries"
TRANSACTIONS = "transactions"
PURCHASES = "purchases"
PURCHASE_ITEMS = "purchase_items"
CATEGORIES = "categories"
OVERRIDE_BASELINE = "override_baseline"
SNAPSHOTS = "snapshots"
CALCULATOR_SAVES = "calculator_saves"
PURCHASE_SAVES = "purchase_saves"


class StateRepository(Protocol):
    """Persistence interface for the ledger's logical state."""

    def load(self) -> dict[str, object]:
        """Return every stored key and its JSON value."""

    def save(self, key: str, value: object) -> None:
        """Persist one key."""


@dataclass
class LedgerStore:
    """Single owner of ledger state.

    Read operations go straight to the ledgers; every mutating operation
    writes the keys it touched back to the repository.
    """

    repository: StateRepository
    deliveries: DeliveryLedger
    transactions: TransactionLedger
    reconciler: AggregateReconciler
    purchases: PurchaseCostModel
    calculator: CostCalculator
    snapshots: SnapshotStore
    imports: ImportReconciler
    categories: NameRegistry = field(
        default_factory=lambda: NameRegistry(DEFAULT_CATEGORIES)
    )
    purchase_items: NameRegistry = field(
        default_factory=lambda: NameRegistry(DEFAULT_PURCHASE_ITEMS, noun="item")
    )
    purchase_saves: PurchaseSaveStore = field(default_factory=PurchaseSaveStore)

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        repository: StateRepository,
        *,
        undo_window_seconds: float = 10.0,
        snapshot_limit: int = 5,
        calculator_save_limit: int = 10,
        calculator_cooldown_ms: int = 150,
        purchase_save_limit: int = 5,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = new_id,
    ) -> LedgerStore:
        """Wire the ledgers together with shared clock and limits."""
        deliveries = DeliveryLedger(
            undo=UndoSlot(window_seconds=undo_window_seconds, clock=clock),
            id_factory=id_factory,
        )
        transactions = TransactionLedger(
            undo=UndoSlot(window_seconds=undo_window_seconds, clock=clock),
            id_factory=id_factory,
        )
        purchases = PurchaseCostModel(
            undo=UndoSlot(window_seconds=undo_window_seconds, clock=clock),
            id_factory=id_factory,
        )
        reconciler = AggregateReconciler()
        return cls(
            repository=repository,
            deliveries=deliveries,
            transactions=transactions,
            reconciler=reconciler,
            purchases=purchases,
            calculator=CostCalculator(
                costs=purchases,
                cooldown_ms=calculator_cooldown_ms,
                save_limit=calculator_save_limit,
                monotonic=monotonic,
                id_factory=id_factory,
            ),
            snapshots=SnapshotStore(
                limit=snapshot_limit, clock=clock, id_factory=id_factory
            ),
            imports=ImportReconciler(
                deliveries=deliveries,
                transactions=transactions,
                reconciler=reconciler,
                id_factory=id_factory,
            ),
            purchase_saves=PurchaseSaveStore(
                limit=purchase_save_limit, clock=clock, id_factory=id_factory
            ),
        )

    def load(self) -> None:
        """Replace in-memory state with whatever the repository holds."""
        raw = self.repository.load()
        self.deliveries.replace_all(
            state_codec.parse_list(
                DELIVERIES, raw.get(DELIVERIES), state_codec.parse_delivery
            )
        )
        self.transactions.replace_all(
            state_codec.parse_list(
                TRANSACTIONS, raw.get(TRANSACTIONS), state_codec.parse_transaction
            )
        )
        self.purchases.replace_all(
            state_codec.parse_list(
                PURCHASES, raw.get(PURCHASES), state_codec.parse_purchase
            )
        )
        self.reconciler.baseline = state_codec.parse_baseline(
            raw.get(OVERRIDE_BASELINE)
        )
        self.categories.replace_all(
            state_codec.parse_names(CATEGORIES, raw.get(CATEGORIES))
        )
        self.purchase_items.replace_all(
            state_codec.parse_names(PURCHASE_ITEMS, raw.get(PURCHASE_ITEMS))
        )
        self.snapshots.snapshots = state_codec.parse_list(
            SNAPSHOTS, raw.get(SNAPSHOTS), state_codec.parse_snapshot
        )[: self.snapshots.limit]
        self.calculator.saves = state_codec.parse_list(
            CALCULATOR_SAVES, raw.get(CALCULATOR_SAVES), state_codec.parse_calculator_save
        )[: self.calculator.save_limit]
        self.purchase_saves.saves = state_codec.parse_list(
            PURCHASE_SAVES, raw.get(PURCHASE_SAVES), state_codec.parse_purchase_save
        )[: self.purchase_saves.limit]
        logger.info(
            "Ledger loaded: %s deliveries, %s transactions, %s purchases",
            len(self.deliveries.records),
            len(self.transactions.records),
            len(self.purchases.records),
        )

    # Deliveries

    def add_delivery(self, draft: DeliveryDraft) -> DeliveryRecord:
        record = self.deliveries.add(draft)
        self._persist(DELIVERIES)
        return record

    def update_delivery(
        self, record_id: str, field_name: str, value: object
    ) -> DeliveryRecord:
        record = self.deliveries.update(record_id, field_name, value)
        self._persist(DELIVERIES)
        return record

    def remove_delivery(self, record_id: str) -> DeliveryRecord:
        record = self.deliveries.remove(record_id)
        self._persist(DELIVERIES)
        return record

    def undo_delivery_removal(self) -> DeliveryRecord | None:
        record = self.deliveries.undo_remove()
        if record is not None:
            self._persist(DELIVERIES)
        return record

    def list_deliveries(
        self, shop: str | None = None, search: str | None = None
    ) -> list[DeliveryRecord]:
        return self.deliveries.list(shop=shop, search=search)

    def shops(self) -> list[str]:
        return self.deliveries.shops()

    def shop_balances(self) -> list[ShopBalance]:
        return self.deliveries.shop_balances()

    def apply_shop_balance(
        self, shop: str, field_name: str, new_cents: int
    ) -> DeliveryRecord | None:
        record = self.deliveries.apply_shop_balance(shop, field_name, new_cents)
        if record is not None:
            self._persist(DELIVERIES)
        return record

    # Transactions

    def add_transaction(self, draft: TransactionDraft) -> TransactionRecord:
        record = self.transactions.add(draft)
        self._persist(TRANSACTIONS)
        return record

    def remove_transaction(self, record_id: str) -> TransactionRecord:
        record = self.transactions.remove(record_id)
        self._persist(TRANSACTIONS)
        return record

    def undo_transaction_removal(self) -> TransactionRecord | None:
        record = self.transactions.undo_remove()
        if record is not None:
            self._persist(TRANSACTIONS)
        return record

    def list_transactions(self) -> list[TransactionRecord]:
        return self.transactions.list()

    def activity(self) -> list[ActivityEntry]:
        return self.transactions.activity(self.deliveries.records)

    # Totals and export

    def totals(self, shop: str | None = None) -> AggregateTotals:
        return self.reconciler.compute(
            self.deliveries.records, self.transactions.records, shop
        )

    def set_totals(self, paid_cents: int | None, previous_cents: int | None) -> None:
        self.reconciler.set_totals(paid_cents, previous_cents)
        self._persist(OVERRIDE_BASELINE)

    def clear_totals(self) -> None:
        self.reconciler.clear_totals()
        self._persist(OVERRIDE_BASELINE)

    def totals_prefill(self) -> tuple[int, int]:
        return self.reconciler.totals_prefill(
            self.deliveries.records, self.transactions.records
        )

    def export_table(self, shop: str | None = None) -> ExportTable:
        return self.reconciler.export_table(
            self.deliveries.records, self.transactions.records, shop
        )

    def export_csv(self, shop: str | None = None) -> str:
        return render_csv(self.export_table(shop))

    # Purchases and unit costs

    def add_purchase(self, draft: PurchaseDraft) -> PurchaseRecord:
        record = self.purchases.add(draft)
        self._persist(PURCHASES)
        return record

    def update_purchase(
        self, record_id: str, field_name: str, value: object
    ) -> PurchaseRecord:
        record = self.purchases.update(record_id, field_name, value)
        self._persist(PURCHASES)
        return record

    def remove_purchase(self, record_id: str) -> PurchaseRecord:
        record = self.purchases.remove(record_id)
        self._persist(PURCHASES)
        return record

    def undo_purchase_removal(self) -> PurchaseRecord | None:
        record = self.purchases.undo_remove()
        if record is not None:
            self._persist(PURCHASES)
        return record

    def list_purchases(self, search: str | None = None) -> list[PurchaseRecord]:
        return self.purchases.list(search=search)

    def latest_costs(self) -> dict[str, int]:
        return self.purchases.latest_costs()

    def set_cost_override(self, item: str, cents: int) -> None:
        self.purchases.set_override(item, cents)

    def clear_cost_override(self, item: str) -> None:
        self.purchases.clear_override(item)

    def export_purchases_table(self) -> PurchaseExportTable:
        return export_purchases(self.purchases.records)

    def export_purchases_csv(self) -> str:
        table = self.export_purchases_table()
        return csv_text([table.header, *table.rows])

    # Purchase saves

    def create_purchase_save(self, name: str) -> PurchaseSave:
        entry = self.purchase_saves.create(
            name, self.purchases.records, self.purchase_items.names
        )
        self._persist(PURCHASE_SAVES)
        return entry

    def list_purchase_saves(self) -> list[PurchaseSave]:
        return self.purchase_saves.list()

    def restore_purchase_save(
        self, save_id: str, mode: RestoreMode
    ) -> tuple[PurchaseRecord, ...]:
        purchases, items = self.purchase_saves.restore(
            save_id, mode, self.purchases.records, self.purchase_items.names
        )
        self.purchases.replace_all(list(purchases))
        self.purchase_items.replace_all(items)
        self._persist(PURCHASES, PURCHASE_ITEMS)
        return purchases

    def delete_purchase_save(self, save_id: str, confirmation: str) -> None:
        self.purchase_saves.delete(save_id, confirmation)
        self._persist(PURCHASE_SAVES)

    # Calculator

    def calculate(self, inputs: CalculatorInputs) -> CalculatorOutcome:
        return self.calculator.compute(inputs)

    def save_calculation(self, name: str, inputs: CalculatorInputs) -> CalculatorSave:
        entry = self.calculator.save(name, inputs)
        self._persist(CALCULATOR_SAVES)
        return entry

    def delete_calculation(self, save_id: str) -> CalculatorSave:
        entry = self.calculator.delete_save(save_id)
        self._persist(CALCULATOR_SAVES)
        return entry

    def restore_calculation(self, save_id: str) -> CalculatorSave:
        entry = self.calculator.restore_save(save_id)
        self._persist(CALCULATOR_SAVES)
        return entry

    def delete_calculation_permanently(self, save_id: str) -> None:
        self.calculator.delete_save_permanently(save_id)
        self._persist(CALCULATOR_SAVES)

    # Snapshots

    def current_state(self) -> LedgerState:
        return LedgerState(
            deliveries=tuple(self.deliveries.records),
            transactions=tuple(self.transactions.records),
            baseline=self.reconciler.baseline,
            purchases=tuple(self.purchases.records),
            purchase_items=self.purchase_items.as_tuple(),
            categories=self.categories.as_tuple(),
        )

    def create_snapshot(self, name: str) -> Snapshot:
        snapshot = self.snapshots.create(name, self.current_state())
        self._persist(SNAPSHOTS)
        return snapshot

    def restore_snapshot(self, snapshot_id: str, mode: RestoreMode) -> LedgerState:
        state = self.snapshots.restore(snapshot_id, mode, self.current_state())
        self.deliveries.replace_all(list(state.deliveries))
        self.transactions.replace_all(list(state.transactions))
        self.reconciler.baseline = state.baseline
        self.purchases.replace_all(list(state.purchases))
        self.purchase_items.replace_all(state.purchase_items)
        self.categories.replace_all(state.categories)
        self.imports.discard_undo()
        self._persist(
            DELIVERIES,
            TRANSACTIONS,
            OVERRIDE_BASELINE,
            PURCHASES,
            PURCHASE_ITEMS,
            CATEGORIES,
        )
        return state

    def delete_snapshot(self, snapshot_id: str) -> Snapshot:
        snapshot = self.snapshots.delete(snapshot_id)
        self._persist(SNAPSHOTS)
        return snapshot

    def restore_deleted_snapshot(self, snapshot_id: str) -> Snapshot:
        snapshot = self.snapshots.restore_deleted(snapshot_id)
        self._persist(SNAPSHOTS)
        return snapshot

    def delete_snapshot_permanently(self, snapshot_id: str, confirmation: str) -> None:
        self.snapshots.delete_permanently(snapshot_id, confirmation)
        self._persist(SNAPSHOTS)

    def rename_snapshot(self, snapshot_id: str, name: str) -> Snapshot:
        snapshot = self.snapshots.rename(snapshot_id, name)
        self._persist(SNAPSHOTS)
        return snapshot

    # Imports

    def run_import(
        self,
        rows: Sequence[Sequence[str]],
        mapping: Mapping[str, int | None],
        has_header: bool,
        append: bool = True,
    ) -> ImportSummary:
        summary = self.imports.run(rows, mapping, has_header, append=append)
        self._persist(DELIVERIES)
        return summary

    def undo_import(self) -> bool:
        undone = self.imports.undo_import()
        if undone:
            self._persist(DELIVERIES, TRANSACTIONS, OVERRIDE_BASELINE)
        return undone

    # Registries

    def add_category(self, name: str) -> str:
        added = self.categories.add(name)
        self._persist(CATEGORIES)
        return added

    def add_purchase_item(self, name: str) -> str:
        added = self.purchase_items.add(name)
        self._persist(PURCHASE_ITEMS)
        return added

    def clear_all(self) -> None:
        """Empty deliveries, transactions, the baseline and calculator saves."""
        self.deliveries.replace_all([])
        self.deliveries.undo.clear()
        self.transactions.replace_all([])
        self.transactions.undo.clear()
        self.reconciler.clear_totals()
        self.calculator.saves = []
        self.imports.discard_undo()
        self._persist(DELIVERIES, TRANSACTIONS, OVERRIDE_BASELINE, CALCULATOR_SAVES)
        logger.warning("All ledger data cleared")

    def _persist(self, *keys: str) -> None:
        for key in keys:
            self.repository.save(key, self._dump(key))

    def _dump(self, key: str) -> object:  # noqa: PLR0911
        if key == DELIVERIES:
            return state_codec.dump_records(self.deliveries.records)
        if key == TRANSACTIONS:
            return state_codec.dump_records(self.transactions.records)
        if key == PURCHASES:
            return state_codec.dump_records(self.purchases.records)
        if key == PURCHASE_ITEMS:
            return list(self.purchase_items.names)
        if key == CATEGORIES:
            return list(self.categories.names)
        if key == OVERRIDE_BASELINE:
            baseline = self.reconciler.baseline
            return {
                "paid_baseline_cents": baseline.paid_baseline_cents,
                "previous_balance_baseline_cents": (
                    baseline.previous_balance_baseline_cents
                ),
            }
        if key == SNAPSHOTS:
            return state_codec.dump_records(self.snapshots.snapshots)
        if key == PURCHASE_SAVES:
            return state_codec.dump_records(self.purchase_saves.saves)
        return state_codec.dump_records(self.calculator.saves)
