"""Conversion between ledger records and persisted JSON values.

Parsers are tolerant: a malformed row is skipped with a warning and a
malformed collection falls back to its default, so loading never fails.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import asdict
from typing import TypeVar

from bakery_ledger.domain.calculator import (
    CalculatorInputs,
    CalculatorResult,
    CalculatorSave,
)
from bakery_ledger.domain.deliveries import DeliveryDraft, DeliveryRecord, build_delivery
from bakery_ledger.domain.money import canonical_date, today_iso
from bakery_ledger.domain.purchases import PurchaseDraft, PurchaseRecord, PurchaseSave
from bakery_ledger.domain.reconciliation import OverrideBaseline
from bakery_ledger.domain.snapshots import LedgerState, Snapshot
from bakery_ledger.domain.transactions import DEDUCTION, PAYMENT, TransactionRecord
from bakery_ledger.services.purchases import build_purchase

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ROW_ERRORS = (KeyError, TypeError, ValueError, AttributeError, OverflowError)


def parse_list(key: str, raw: object, parser: Callable[[dict], T]) -> list[T]:
    """Parse a stored list, skipping rows that cannot be read."""
    if raw is None:
        return []
    if not isinstance(raw, list | tuple):
        logger.warning("Ignoring malformed %s: expected a list", key)
        return []
    parsed: list[T] = []
    for row in raw:
        try:
            parsed.append(parser(row))
        except _ROW_ERRORS:
            logger.warning("Skipping malformed %s row: %r", key, row)
    return parsed


def parse_names(key: str, raw: object) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list | tuple):
        logger.warning("Ignoring malformed %s: expected a list", key)
        return []
    return [str(name).strip() for name in raw if isinstance(name, str) and name.strip()]


def _int(row: dict, key: str, default: int = 0) -> int:
    value = row.get(key, default)
    if value is None:
        return default
    return int(value)


def _finite(value: object) -> float:
    number = float(value or 0)
    if not math.isfinite(number):
        raise ValueError(f"non-finite number: {value!r}")
    return number


def _optional_int(value: object) -> int | None:
    if value is None:
        return None
    return int(value)


def _date(row: dict) -> str:
    return canonical_date(str(row.get("date") or "")) or today_iso()


def parse_delivery(row: dict) -> DeliveryRecord:
    """Rebuild a delivery from its inputs so derived fields always agree."""
    draft = DeliveryDraft(
        date=_date(row),
        shop=str(row.get("shop") or ""),
        item=str(row.get("item") or ""),
        quantity=max(0, _int(row, "quantity")),
        unit_price_cents=max(0, _int(row, "unit_price_cents")),
        unit_cost_cents=max(0, _int(row, "unit_cost_cents")),
        paid_cents=max(0, _int(row, "paid_cents")),
        previous_balance_cents=_int(row, "previous_balance_cents"),
        delivered_by=str(row.get("delivered_by") or ""),
        notes=str(row.get("notes") or ""),
    )
    return build_delivery(str(row["id"]), draft)


def parse_transaction(row: dict) -> TransactionRecord:
    kind = row.get("kind")
    return TransactionRecord(
        id=str(row["id"]),
        date=_date(row),
        kind=DEDUCTION if kind == DEDUCTION else PAYMENT,
        amount_cents=max(0, _int(row, "amount_cents")),
        notes=str(row.get("notes") or ""),
    )


def parse_purchase(row: dict) -> PurchaseRecord:
    """Rebuild a purchase from its inputs, recomputing base-unit costs."""
    draft = PurchaseDraft(
        date=_date(row),
        item=str(row.get("item") or ""),
        quantity=max(0.0, _finite(row.get("quantity"))),
        unit=str(row.get("unit") or ""),
        total_paid_cents=max(0, _int(row, "total_paid_cents")),
    )
    return build_purchase(str(row["id"]), draft)


def parse_baseline(raw: object) -> OverrideBaseline:
    if raw is None:
        return OverrideBaseline()
    if not isinstance(raw, dict):
        logger.warning("Ignoring malformed override_baseline")
        return OverrideBaseline()
    try:
        return OverrideBaseline(
            paid_baseline_cents=_optional_int(raw.get("paid_baseline_cents")),
            previous_balance_baseline_cents=_optional_int(
                raw.get("previous_balance_baseline_cents")
            ),
        )
    except _ROW_ERRORS:
        logger.warning("Ignoring malformed override_baseline: %r", raw)
        return OverrideBaseline()


def parse_state(row: dict) -> LedgerState:
    return LedgerState(
        deliveries=tuple(parse_list("deliveries", row.get("deliveries"), parse_delivery)),
        transactions=tuple(
            parse_list("transactions", row.get("transactions"), parse_transaction)
        ),
        baseline=parse_baseline(row.get("baseline")),
        purchases=tuple(parse_list("purchases", row.get("purchases"), parse_purchase)),
        purchase_items=tuple(parse_names("purchase_items", row.get("purchase_items"))),
        categories=tuple(parse_names("categories", row.get("categories"))),
    )


def parse_snapshot(row: dict) -> Snapshot:
    state = row["state"]
    if not isinstance(state, dict):
        raise TypeError("snapshot state must be an object")
    return Snapshot(
        id=str(row["id"]),
        timestamp=str(row.get("timestamp") or ""),
        name=str(row.get("name") or ""),
        state=parse_state(state),
        deleted=bool(row.get("deleted", False)),
        deleted_at=row.get("deleted_at"),
    )


def parse_purchase_save(row: dict) -> PurchaseSave:
    return PurchaseSave(
        id=str(row["id"]),
        timestamp=str(row.get("timestamp") or ""),
        name=str(row.get("name") or ""),
        purchases=tuple(parse_list("purchases", row.get("purchases"), parse_purchase)),
        purchase_items=tuple(parse_names("purchase_items", row.get("purchase_items"))),
    )


def parse_calculator_save(row: dict) -> CalculatorSave:
    inputs = row.get("inputs") or {}
    result = row["result"]
    return CalculatorSave(
        id=str(row["id"]),
        timestamp=str(row.get("timestamp") or ""),
        name=str(row.get("name") or ""),
        inputs=CalculatorInputs(
            ingredient_quantities={
                str(k): _finite(v)
                for k, v in (inputs.get("ingredient_quantities") or {}).items()
            },
            packaging_cost_cents=_finite(inputs.get("packaging_cost_cents")),
            electricity_kwh=_finite(inputs.get("electricity_kwh")),
            electricity_rate_cents=_finite(inputs.get("electricity_rate_cents")),
            pieces=_finite(inputs.get("pieces")),
            price_per_piece_cents=_finite(inputs.get("price_per_piece_cents")),
        ),
        unit_costs={
            str(k): int(v) for k, v in (row.get("unit_costs") or {}).items()
        },
        result=CalculatorResult(
            total_cost_cents=_int(result, "total_cost_cents"),
            cost_per_piece_cents=_int(result, "cost_per_piece_cents"),
            profit_per_piece_cents=_int(result, "profit_per_piece_cents"),
            total_profit_cents=_int(result, "total_profit_cents"),
        ),
        deleted=bool(row.get("deleted", False)),
        deleted_at=row.get("deleted_at"),
    )


def dump_records(records: list) -> list[dict[str, object]]:
    return [asdict(record) for record in records]
