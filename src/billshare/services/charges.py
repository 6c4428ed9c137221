from __future__ import annotations

import re
from typing import Optional

from billshare.models import AdditionalCharge
from billshare.utils.amounts import AmountParseError, normalize_amount

FEE_KEYWORDS: tuple[str, ...] = (
    "biaya penanganan",
    "biaya lainnya",
    "handling and delivery fee",
)
DISCOUNT_KEYWORDS: tuple[str, ...] = ("diskon", "discount")

# Indonesian fee lines keep their own label.
LOCAL_FEE_MARKER = "biaya"
DEFAULT_FEE_NAME = "Handling and Delivery Fee"
DISCOUNT_NAME = "Discount"

_FEE_AMOUNT_RE = re.compile(r"Rp\s*([\d.,]+)")
_DISCOUNT_AMOUNT_RE = re.compile(r"-?\s*Rp\s*([\d.,]+)")


def _first_amount(pattern: re.Pattern[str], line: str) -> Optional[int]:
    match = pattern.search(line)
    if not match:
        return None
    try:
        return normalize_amount(match.group(1))
    except AmountParseError:
        return None


def _fee_name(line: str) -> str:
    if LOCAL_FEE_MARKER in line.lower():
        label = line.split("Rp", 1)[0].strip()
        if label:
            return label
    return DEFAULT_FEE_NAME


def extract_charge(line: str) -> Optional[AdditionalCharge]:
    """Recognize a fee or discount line from the totals section.

    Discounts are always emitted as negative amounts whatever sign the
    receipt prints.
    """
    lowered = line.lower()
    if any(keyword in lowered for keyword in FEE_KEYWORDS):
        amount = _first_amount(_FEE_AMOUNT_RE, line)
        if amount is None:
            return None
        return AdditionalCharge(name=_fee_name(line), amount=amount)

    if any(keyword in lowered for keyword in DISCOUNT_KEYWORDS):
        amount = _first_amount(_DISCOUNT_AMOUNT_RE, line)
        if amount is None:
            return None
        return AdditionalCharge(name=DISCOUNT_NAME, amount=-amount)

    return None
