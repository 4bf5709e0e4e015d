"""Admin endpoints guarded by the ``X-Admin-Token`` header."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from bakery_ledger.domain.reconciliation import OverrideBaseline

if TYPE_CHECKING:
    from bakery_ledger.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def require_admin(
    request: Request, x_admin_token: str | None = Header(default=None)
) -> None:
    """Reject requests whose token does not match ``ADMIN_TOKEN``."""
    expected = _container(request).settings.admin_token
    if not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health(request: Request) -> dict[str, str]:
    return {"status": "ok", "backend": _container(request).settings.state_backend}


@router.get("/summary", dependencies=[Depends(require_admin)])
async def summary(request: Request) -> dict[str, object]:
    """Record counts per persisted collection."""
    container = _container(request)
    store = container.store
    return {
        "deliveries": len(store.deliveries.records),
        "transactions": len(store.transactions.records),
        "purchases": len(store.purchases.records),
        "snapshots": len(store.snapshots.snapshots),
        "calculator_saves": len(store.calculator.saves),
        "purchase_saves": len(store.purchase_saves.saves),
        "baseline_set": store.reconciler.baseline != OverrideBaseline(),
        "backend": container.settings.state_backend,
        "environment": container.settings.environment,
    }


@router.post("/clear", dependencies=[Depends(require_admin)])
async def clear_all(request: Request) -> dict[str, str]:
    """Empty deliveries, transactions, the totals baseline and calculator saves."""
    _container(request).store.clear_all()
    return {"status": "cleared"}
