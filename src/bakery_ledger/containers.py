"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from bakery_ledger.adapters.json_file_state_repository import JsonFileStateRepository
from bakery_ledger.adapters.supabase_state_repository import SupabaseStateRepository
from bakery_ledger.config import Settings
from bakery_ledger.services.store import LedgerStore, StateRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: LedgerStore


def build_repository(settings: Settings) -> StateRepository:
    """Pick the state backend named in settings."""
    if settings.state_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase backend requires SUPABASE_URL and key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseStateRepository(client, table=settings.state_table)
    return JsonFileStateRepository(settings.state_file)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = LedgerStore.create(
        build_repository(resolved_settings),
        undo_window_seconds=resolved_settings.undo_window_seconds,
        snapshot_limit=resolved_settings.snapshot_limit,
        calculator_save_limit=resolved_settings.calculator_save_limit,
        calculator_cooldown_ms=resolved_settings.calculator_cooldown_ms,
        purchase_save_limit=resolved_settings.purchase_save_limit,
    )
    store.load()
    return AppContainer(settings=resolved_settings, store=store)
