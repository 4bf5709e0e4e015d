"""Tests for category and purchase-item registries."""

import pytest

from bakery_ledger.domain.errors import DuplicateNameError, ValidationError
from bakery_ledger.services.registries import (
    DEFAULT_CATEGORIES,
    DEFAULT_PURCHASE_ITEMS,
    NameRegistry,
)


def test_defaults_when_empty() -> None:
    assert NameRegistry(DEFAULT_CATEGORIES).names == list(DEFAULT_CATEGORIES)
    assert NameRegistry(DEFAULT_PURCHASE_ITEMS, names=[]).names[0] == "Sugar"


def test_add_trims_and_appends() -> None:
    registry = NameRegistry(DEFAULT_CATEGORIES)

    assert registry.add("  Halwo ") == "Halwo"
    assert registry.names[-1] == "Halwo"


def test_add_rejects_blank_and_duplicates() -> None:
    registry = NameRegistry(DEFAULT_PURCHASE_ITEMS, noun="item")

    with pytest.raises(ValidationError):
        registry.add("   ")
    with pytest.raises(DuplicateNameError, match="That item already exists."):
        registry.add("Sugar")


def test_replace_all_falls_back_to_defaults() -> None:
    registry = NameRegistry(DEFAULT_CATEGORIES, names=["Mix"])
    registry.replace_all([])

    assert registry.names == list(DEFAULT_CATEGORIES)
