from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Optional, Sequence

from billshare.models import Bill, Item, Participant


class AllocationError(ValueError):
    pass


class InvalidParticipantNameError(AllocationError):
    pass


class DuplicateParticipantNameError(AllocationError):
    def __init__(self, name: str) -> None:
        super().__init__(f"A participant named {name!r} already exists")
        self.name = name


class DuplicateParticipantIdError(AllocationError):
    def __init__(self, participant_id: str) -> None:
        super().__init__(f"A participant with id {participant_id!r} already exists")
        self.participant_id = participant_id


class UnknownParticipantError(AllocationError):
    pass


class UnknownItemError(AllocationError):
    pass


class InvalidQuantityError(AllocationError):
    pass


class CapacityExceededError(AllocationError):
    def __init__(self, item_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Cannot claim {requested} of item {item_id}: only {available} available"
        )
        self.item_id = item_id
        self.requested = requested
        self.available = available


class AllocationIncompleteError(AllocationError):
    pass


def _clean_name(name: str) -> str:
    clean = name.strip()
    if not clean:
        raise InvalidParticipantNameError("Participant name cannot be empty")
    return clean


def _ensure_unique(participants: Sequence[Participant], name: str, exclude_id: Optional[str] = None) -> None:
    lowered = name.lower()
    for participant in participants:
        if participant.id != exclude_id and participant.name.lower() == lowered:
            raise DuplicateParticipantNameError(name)


def _find(participants: Sequence[Participant], participant_id: str) -> Participant:
    for participant in participants:
        if participant.id == participant_id:
            return participant
    raise UnknownParticipantError(f"Unknown participant {participant_id}")


def add_participant(
    participants: Sequence[Participant],
    name: str,
    participant_id: Optional[str] = None,
) -> tuple[tuple[Participant, ...], str]:
    clean = _clean_name(name)
    _ensure_unique(participants, clean)
    taken = {p.id for p in participants}
    if participant_id and participant_id in taken:
        raise DuplicateParticipantIdError(participant_id)
    new_id = participant_id or uuid.uuid4().hex
    while new_id in taken:
        new_id = uuid.uuid4().hex
    return (*participants, Participant(id=new_id, name=clean)), new_id


def rename_participant(
    participants: Sequence[Participant],
    participant_id: str,
    new_name: str,
) -> tuple[Participant, ...]:
    clean = _clean_name(new_name)
    _find(participants, participant_id)
    _ensure_unique(participants, clean, exclude_id=participant_id)
    return tuple(
        replace(p, name=clean) if p.id == participant_id else p for p in participants
    )


def delete_participant(participants: Sequence[Participant], participant_id: str) -> tuple[Participant, ...]:
    """Drop a participant and their claims; freed quantity is not reassigned."""
    _find(participants, participant_id)
    return tuple(p for p in participants if p.id != participant_id)


def claimed_quantity(participants: Sequence[Participant], item_id: str, exclude_id: Optional[str] = None) -> int:
    return sum(p.claimed(item_id) for p in participants if p.id != exclude_id)


def remaining_capacity(item: Item, participants: Sequence[Participant]) -> int:
    return item.quantity - claimed_quantity(participants, item.id)


def set_allocation(
    bill: Bill,
    participants: Sequence[Participant],
    participant_id: str,
    item_id: str,
    quantity: int,
) -> tuple[Participant, ...]:
    """Replace one participant's claim on one item.

    Quantity 0 removes the claim. Requests that would push the item's
    claimed total above its quantity raise ``CapacityExceededError``.
    """
    item = bill.get_item(item_id)
    if item is None:
        raise UnknownItemError(f"Unknown item {item_id}")
    participant = _find(participants, participant_id)
    if quantity < 0:
        raise InvalidQuantityError("Quantity cannot be negative")

    available = item.quantity - claimed_quantity(participants, item_id, exclude_id=participant_id)
    if quantity > available:
        raise CapacityExceededError(item_id, quantity, available)

    claims = {key: value for key, value in participant.claims.items() if key != item_id}
    if quantity > 0:
        claims[item_id] = quantity
    updated = replace(participant, claims=claims)
    return tuple(updated if p.id == participant_id else p for p in participants)


def is_fully_allocated(bill: Bill, participants: Sequence[Participant]) -> bool:
    return all(claimed_quantity(participants, item.id) == item.quantity for item in bill.items)
