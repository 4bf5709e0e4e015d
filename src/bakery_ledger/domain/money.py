"""Integer-cents arithmetic and parsing of user-entered values."""

import math
import re
import secrets
import string
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ISO_DATE = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_CENT = Decimal("0.01")


def new_id(length: int = 7) -> str:
    """Return a short random identifier."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def today_iso() -> str:
    """Return the local calendar day as YYYY-MM-DD."""
    return date.today().isoformat()


def parse_cents(value: object) -> int:
    """Parse a currency amount into non-negative cents.

    Everything except digits and the decimal point is discarded, so
    ``"$1,234.5"`` becomes ``123450``. Empty or unparseable input is 0.
    """
    if isinstance(value, bool):
        return 0
    cleaned = re.sub(r"[^\d.]", "", str(value if value is not None else ""))
    return max(0, _to_cents(cleaned))


def parse_signed_cents(value: object) -> int:
    """Parse a currency amount into cents, keeping a leading minus sign."""
    text = str(value if value is not None else "").strip()
    negative = text.startswith("-") or text.startswith("(")
    cents = parse_cents(text)
    return -cents if negative else cents


def _to_cents(cleaned: str) -> int:
    if not cleaned or cleaned == ".":
        return 0
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return 0
    return int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def round_cents(value: float) -> int:
    """Round a fractional cents value half-up to an integer."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_cents(cents: int) -> str:
    """Format cents as ``-$1,234.56``."""
    sign = "-" if cents < 0 else ""
    dollars = (Decimal(abs(cents)) / 100).quantize(_CENT)
    return f"{sign}${dollars:,.2f}"


def cents_to_decimal_str(cents: int) -> str:
    """Format cents as a plain two-decimal number, e.g. ``12.34``."""
    return f"{(Decimal(cents) / 100).quantize(_CENT)}"


def parse_quantity(value: object) -> int:
    """Parse a piece count; anything that is not a digit is ignored."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return max(0, int(value)) if math.isfinite(value) else 0
    digits = re.sub(r"[^\d]", "", str(value if value is not None else ""))
    return int(digits) if digits else 0


def canonical_date(value: str | None) -> str | None:
    """Return YYYY-MM-DD for ISO-like or MM/DD/YYYY input, else None."""
    text = (value or "").strip()
    iso = _ISO_DATE.match(text)
    if iso:
        year, month, day = iso.groups()
    else:
        us = _US_DATE.match(text)
        if not us:
            return None
        month, day, year = us.groups()
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def format_display_date(iso: str) -> str:
    """Format a YYYY-MM-DD string as MM/DD/YYYY."""
    parts = iso.split("-")
    if len(parts) != 3:  # noqa: PLR2004
        return iso
    year, month, day = parts
    return f"{month.zfill(2)}/{day.zfill(2)}/{year}"
