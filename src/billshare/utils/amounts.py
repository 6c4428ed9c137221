"""Rupiah amount normalization and display formatting."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CURRENCY_SYMBOL = "Rp"

# Currency symbol, unit-price marker, sign and thousand separators.
_STRIP_RE = re.compile(r"Rp|[@\-.,]", re.IGNORECASE)
_DIGITS_RE = re.compile(r"\d+")


class AmountParseError(ValueError):
    pass


def normalize_amount(text: str) -> int:
    """Convert a currency substring such as ``"-Rp10.000"`` into ``10000``.

    The result is always a non-negative magnitude: the minus sign is
    stripped together with the other punctuation and callers re-apply
    the sign where it carries meaning.

    Raises:
        AmountParseError: If no well-formed integer remains after stripping.
    """
    cleaned = _STRIP_RE.sub("", text).strip()
    if not _DIGITS_RE.fullmatch(cleaned):
        raise AmountParseError(f"Not an amount: {text!r}")
    return int(cleaned)


def format_amount(value: Union[int, Decimal]) -> str:
    """Render an amount in the id-ID rupiah style with zero decimals."""
    rounded = int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    digits = f"{abs(rounded):,}".replace(",", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL} {digits}"
