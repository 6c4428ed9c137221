from __future__ import annotations

from typing import Iterable, Optional

from billshare.logging import get_logger
from billshare.models import CUSTOM_ITEM_PREFIX, AdditionalCharge, Bill, ChargeCategory, Item, ManualEntry
from billshare.services.charges import extract_charge
from billshare.services.classifier import LineAction, ParserState, step
from billshare.services.items import match_item

log = get_logger(__name__)


class InvalidEntryError(ValueError):
    pass


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def assemble_bill(items: Iterable[Item], charges: Iterable[AdditionalCharge]) -> Bill:
    return Bill(items=tuple(items), additional_charges=tuple(charges))


def parse_receipt_text(text: str) -> Bill:
    """Extract items, fees and discounts from an OCR transcript.

    Never raises on malformed input: lines that cannot be read confidently
    are dropped and the bill holds whatever was recognized.
    """
    lines = split_lines(text)
    items: list[Item] = []
    charges: list[AdditionalCharge] = []
    state = ParserState.SKIP_HEADER
    dropped = 0

    i = 0
    while i < len(lines):
        line = lines[i]
        state, action = step(state, line)

        if action is LineAction.ITEM:
            next_line = lines[i + 1] if i + 1 < len(lines) else None
            item, consumed = match_item(line, next_line, str(len(items) + 1))
            if item is not None:
                items.append(item)
                if consumed:
                    i += 1
            else:
                dropped += 1
        elif action is LineAction.FEE:
            charge = extract_charge(line)
            if charge is not None:
                charges.append(charge)
            else:
                dropped += 1

        i += 1

    bill = assemble_bill(items, charges)
    log.debug(
        "receipt.parsed",
        lines=len(lines),
        items=len(bill.items),
        charges=len(bill.additional_charges),
        dropped=dropped,
        total=bill.total_after_charges,
    )
    return bill


def next_custom_item_id(items: Iterable[Item]) -> str:
    highest = 0
    for item in items:
        if not item.is_custom:
            continue
        suffix = item.id[len(CUSTOM_ITEM_PREFIX):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{CUSTOM_ITEM_PREFIX}{highest + 1}"


def add_manual_entry(bill: Optional[Bill], entry: ManualEntry) -> Bill:
    """Append a manually entered menu item or shared fee.

    Menu items become claimable items; fees join the shared charges and
    ignore the quantity. Totals are re-derived from the full collections.
    """
    name = entry.name.strip()
    if not name:
        raise InvalidEntryError("Entry name cannot be empty")

    base = bill if bill is not None else Bill()
    category = ChargeCategory(entry.category)

    if category is ChargeCategory.MENU:
        if entry.quantity < 1:
            raise InvalidEntryError("Menu item quantity must be at least 1")
        if entry.price < 0:
            raise InvalidEntryError("Menu item price cannot be negative")
        item = Item(
            id=next_custom_item_id(base.items),
            name=name,
            quantity=entry.quantity,
            price=entry.price,
        )
        return assemble_bill([*base.items, item], base.additional_charges)

    charge = AdditionalCharge(name=name, amount=entry.price)
    return assemble_bill(base.items, [*base.additional_charges, charge])
