"""ASGI entrypoint for the bakery ledger API."""

from bakery_ledger.api.app import create_app
from bakery_ledger.containers import build_container

app = create_app(build_container())
