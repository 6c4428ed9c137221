from __future__ import annotations

import re
from typing import Optional

from billshare.models import Item
from billshare.services.classifier import is_totals_marker
from billshare.utils.amounts import AmountParseError, normalize_amount

ITEM_LINE_RE = re.compile(r"^(\d+)\s+(.+?)\s+@\s*Rp\s*([\d.,]+)", re.IGNORECASE)

# A following line that looks like any of these starts a new record.
_RECORD_START_RE = re.compile(
    r"^\d+\s+|\bRp\s*\d|total|handling|discount|diskon|biaya",
    re.IGNORECASE,
)

_NOTICE_KEYWORDS: tuple[str, ...] = ("cutlery", "straws", "tanpa alat")

# Utensil opt-out notices printed under items.
NOTICE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"No cutlery/straws.+?waste!?", re.IGNORECASE),
    re.compile(r"Tanpa alat makan/sedotan.+?sekali!?", re.IGNORECASE),
)


def is_continuation(line: str) -> bool:
    if _RECORD_START_RE.search(line) or is_totals_marker(line):
        return False
    lowered = line.lower()
    return not any(keyword in lowered for keyword in _NOTICE_KEYWORDS)


def clean_item_name(name: str) -> str:
    for pattern in NOTICE_PATTERNS:
        name = pattern.sub("", name)
    return " ".join(name.split())


def match_item(line: str, next_line: Optional[str], item_id: str) -> tuple[Optional[Item], bool]:
    """Match a ``"<qty> <name> @Rp<price>"`` line.

    Returns the item (or ``None``) and whether ``next_line`` was merged
    into its name and must be skipped by the caller.
    """
    match = ITEM_LINE_RE.match(line)
    if not match:
        return None, False

    quantity_text, name, price_text = match.groups()
    try:
        price = normalize_amount(price_text)
    except AmountParseError:
        return None, False
    quantity = int(quantity_text)
    if quantity <= 0:
        return None, False

    consumed = False
    if next_line is not None and is_continuation(next_line):
        name = f"{name} {next_line.strip()}"
        consumed = True

    item = Item(id=item_id, name=clean_item_name(name), quantity=quantity, price=price)
    return item, consumed
