"""Supabase-backed ledger state repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from bakery_ledger.services.store import StateRepository


@dataclass
class SupabaseStateRepository(StateRepository):
    """Stores each state key as one row of a ``(key, value)`` table."""

    client: Client
    table: str = "ledger_state"

    def load(self) -> dict[str, object]:
        """Return every stored key and its value."""
        response = self.client.table(self.table).select("key, value").execute()
        return {
            str(row["key"]): row.get("value")
            for row in response.data or []
            if row.get("key")
        }

    def save(self, key: str, value: object) -> None:
        """Insert or replace a single key."""
        self.client.table(self.table).upsert(
            {
                "key": key,
                "value": value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="key",
        ).execute()
