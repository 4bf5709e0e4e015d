"""Ordered name lists for delivery categories and purchase items."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from bakery_ledger.domain.errors import DuplicateNameError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    "Doolsho",
    "Sisin",
    "Kac Kac",
    "Ninac Loos",
    "Kashaato",
    "Buskut",
    "Icun",
    "Shushumoow",
    "Mix",
)
DEFAULT_PURCHASE_ITEMS = (
    "Sugar",
    "Milk",
    "Eggs",
    "Flour",
    "Oil",
    "Packaging",
    "Coconut",
    "Sesame",
)


@dataclass
class NameRegistry:
    """Unique names in insertion order, falling back to defaults when empty."""

    defaults: tuple[str, ...]
    names: list[str] = field(default_factory=list)
    noun: str = "name"

    def __post_init__(self) -> None:
        if not self.names:
            self.names = list(self.defaults)

    def add(self, name: str) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("name", "Please enter a name.")
        if cleaned in self.names:
            raise DuplicateNameError(cleaned, self.noun)
        self.names.append(cleaned)
        logger.info("Registry entry added: %s", cleaned)
        return cleaned

    def replace_all(self, names: Iterable[str]) -> None:
        self.names = [n for n in names if n] or list(self.defaults)

    def as_tuple(self) -> tuple[str, ...]:
        return tuple(self.names)
