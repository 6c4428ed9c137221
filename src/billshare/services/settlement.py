from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Sequence

from billshare.models import Bill, Participant
from billshare.services.split import split_amount, split_evenly


class RoundingPolicy(str, Enum):
    # Exact shares; rounding happens only when amounts are displayed.
    DISPLAY = "display"
    # Integer shares that add up to the total charges.
    RECONCILE = "reconcile"


@dataclass(frozen=True, slots=True)
class SettlementLine:
    item_id: str
    name: str
    quantity: int
    price: int

    @property
    def total_price(self) -> int:
        return self.quantity * self.price


@dataclass(frozen=True, slots=True)
class ParticipantSettlement:
    participant_id: str
    name: str
    subtotal: int
    charge_share: Decimal
    total: Decimal
    lines: tuple[SettlementLine, ...] = ()

    @property
    def is_active(self) -> bool:
        return bool(self.lines)


def _claimed_lines(bill: Bill, participant: Participant) -> tuple[SettlementLine, ...]:
    lines = []
    for item in bill.items:
        quantity = participant.claimed(item.id)
        if quantity > 0:
            lines.append(SettlementLine(item.id, item.name, quantity, item.price))
    return tuple(lines)


def calculate_settlement(
    bill: Bill,
    participants: Sequence[Participant],
    rounding: RoundingPolicy = RoundingPolicy.DISPLAY,
) -> list[ParticipantSettlement]:
    """Compute what each participant owes.

    Shared charges (fees minus discounts) are divided equally among the
    participants holding at least one claim. Participants without claims
    pay nothing and are left out of the division.
    """
    lines = {p.id: _claimed_lines(bill, p) for p in participants}
    active = [p.id for p in participants if lines[p.id]]

    shares: dict[str, Decimal] = {}
    if active:
        if RoundingPolicy(rounding) is RoundingPolicy.RECONCILE:
            shares = {k: Decimal(v) for k, v in split_amount(bill.total_charges, active).items()}
        else:
            shares = split_evenly(bill.total_charges, active)

    result: list[ParticipantSettlement] = []
    for participant in participants:
        own_lines = lines[participant.id]
        subtotal = sum(line.total_price for line in own_lines)
        share = shares.get(participant.id, Decimal(0))
        total = subtotal + share if own_lines else Decimal(0)
        result.append(
            ParticipantSettlement(
                participant_id=participant.id,
                name=participant.name,
                subtotal=subtotal,
                charge_share=share,
                total=total,
                lines=own_lines,
            )
        )
    return result


def round_display(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def display_residual(bill: Bill, settlements: Sequence[ParticipantSettlement]) -> int:
    """Difference between the total charges and the sum of displayed shares."""
    displayed = sum(round_display(s.charge_share) for s in settlements if s.is_active)
    return bill.total_charges - displayed
