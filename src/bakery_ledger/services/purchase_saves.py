"""Named copies of just the purchase list, independent of full snapshots."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from bakery_ledger.domain.errors import (
    ConfirmationRequiredError,
    RecordNotFoundError,
    ValidationError,
)
from bakery_ledger.domain.money import new_id
from bakery_ledger.domain.purchases import PurchaseRecord, PurchaseSave
from bakery_ledger.domain.snapshots import RestoreMode
from bakery_ledger.services.snapshots import (
    CONFIRMATION_PHRASE,
    union_names,
    with_fresh_ids,
)
from bakery_ledger.services.undo import utc_now

logger = logging.getLogger(__name__)

DEFAULT_PURCHASE_SAVE_LIMIT = 5


@dataclass
class PurchaseSaveStore:
    """Purchase saves newest first, capped at ``limit``.

    Unlike snapshots there is no soft delete: deleting a purchase save
    removes it once the confirmation phrase is typed.
    """

    saves: list[PurchaseSave] = field(default_factory=list)
    limit: int = DEFAULT_PURCHASE_SAVE_LIMIT
    clock: Callable[[], datetime] = utc_now
    id_factory: Callable[[], str] = new_id

    def create(
        self,
        name: str,
        purchases: Sequence[PurchaseRecord],
        purchase_items: Sequence[str],
    ) -> PurchaseSave:
        entry = PurchaseSave(
            id=self.id_factory(),
            timestamp=self.clock().isoformat(),
            name=name.strip(),
            purchases=tuple(purchases),
            purchase_items=tuple(purchase_items),
        )
        self.saves.insert(0, entry)
        del self.saves[self.limit :]
        logger.info("Purchase save %s created: %s", entry.id, entry.name or "-")
        return entry

    def get(self, save_id: str) -> PurchaseSave:
        return self.saves[self._index_of(save_id)]

    def list(self) -> list[PurchaseSave]:
        return list(self.saves)

    def restore(
        self,
        save_id: str,
        mode: RestoreMode,
        purchases: Sequence[PurchaseRecord],
        purchase_items: Sequence[str],
    ) -> tuple[tuple[PurchaseRecord, ...], tuple[str, ...]]:
        """Return the purchases and item names to hold after restoring.

        ``replace`` takes the saved lists. ``append`` adds the saved purchases
        after the current ones, re-keying any whose id is live, and unions the
        item names.
        """
        if mode not in ("replace", "append"):
            raise ValidationError("mode", "Mode must be replace or append.")
        entry = self.get(save_id)
        logger.info("Purchase save %s restored (%s)", save_id, mode)
        if mode == "replace":
            return entry.purchases, entry.purchase_items
        return (
            with_fresh_ids(purchases, entry.purchases, self.id_factory),
            union_names(purchase_items, entry.purchase_items),
        )

    def delete(self, save_id: str, confirmation: str) -> None:
        if (confirmation or "").strip().upper() != CONFIRMATION_PHRASE:
            raise ConfirmationRequiredError(
                f"Type {CONFIRMATION_PHRASE} to delete a purchase save."
            )
        del self.saves[self._index_of(save_id)]
        logger.info("Purchase save %s deleted", save_id)

    def _index_of(self, save_id: str) -> int:
        for index, entry in enumerate(self.saves):
            if entry.id == save_id:
                return index
        raise RecordNotFoundError("purchase save", save_id)
