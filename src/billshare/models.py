from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional


CUSTOM_ITEM_PREFIX = "custom-"


class ChargeCategory(str, Enum):
    MENU = "menu"
    FEE = "fee"


@dataclass(frozen=True, slots=True)
class Item:
    id: str
    name: str
    quantity: int
    price: int

    @property
    def total_price(self) -> int:
        return self.quantity * self.price

    @property
    def is_custom(self) -> bool:
        return self.id.startswith(CUSTOM_ITEM_PREFIX)


@dataclass(frozen=True, slots=True)
class AdditionalCharge:
    name: str
    amount: int

    @property
    def is_discount(self) -> bool:
        return self.amount < 0


@dataclass(frozen=True, slots=True)
class Bill:
    """Parsed receipt. Totals are always derived from items and charges."""

    items: tuple[Item, ...] = ()
    additional_charges: tuple[AdditionalCharge, ...] = ()

    @property
    def total_before_charges(self) -> int:
        return sum(item.total_price for item in self.items)

    @property
    def total_charges(self) -> int:
        return sum(charge.amount for charge in self.additional_charges)

    @property
    def total_after_charges(self) -> int:
        return self.total_before_charges + self.total_charges

    def get_item(self, item_id: str) -> Optional[Item]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


@dataclass(frozen=True, slots=True)
class Participant:
    id: str
    name: str
    claims: Mapping[str, int] = field(default_factory=dict, hash=False)

    @property
    def is_active(self) -> bool:
        return any(quantity > 0 for quantity in self.claims.values())

    def claimed(self, item_id: str) -> int:
        return self.claims.get(item_id, 0)


@dataclass(frozen=True, slots=True)
class ManualEntry:
    name: str
    quantity: int
    price: int
    category: ChargeCategory = ChargeCategory.MENU


@dataclass(frozen=True, slots=True)
class Snapshot:
    id: str
    date: datetime
    bill: Bill
    participants: tuple[Participant, ...]
    image_preview: Optional[str] = None
