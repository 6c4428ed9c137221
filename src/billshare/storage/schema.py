"""Wire format of saved bills.

Field names follow the camelCase layout of the stored JSON
(``additionalCharges``, ``totalBeforeCharges``, ``imagePreview``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from billshare.models import AdditionalCharge, Bill, Item, Participant, Snapshot


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ItemRecord(_WireModel):
    id: str
    name: str
    quantity: int = Field(gt=0)
    price: int = Field(ge=0)
    total_price: int


class ChargeRecord(_WireModel):
    name: str
    amount: int


class BillRecord(_WireModel):
    items: list[ItemRecord] = []
    additional_charges: list[ChargeRecord] = []
    total_before_charges: int = 0
    total_after_charges: int = 0


class ClaimRecord(_WireModel):
    item_id: str
    quantity: int = Field(gt=0)


class ParticipantRecord(_WireModel):
    id: str
    name: str
    items: list[ClaimRecord] = []


class SnapshotRecord(_WireModel):
    id: str
    date: datetime
    bill: BillRecord
    participants: list[ParticipantRecord] = []
    image_preview: Optional[str] = None


snapshot_list_adapter = TypeAdapter(list[SnapshotRecord])


def bill_to_record(bill: Bill) -> BillRecord:
    return BillRecord(
        items=[
            ItemRecord(
                id=item.id,
                name=item.name,
                quantity=item.quantity,
                price=item.price,
                total_price=item.total_price,
            )
            for item in bill.items
        ],
        additional_charges=[ChargeRecord(name=c.name, amount=c.amount) for c in bill.additional_charges],
        total_before_charges=bill.total_before_charges,
        total_after_charges=bill.total_after_charges,
    )


def bill_from_record(record: BillRecord) -> Bill:
    # Stored totals are ignored; Bill derives them from its items and charges.
    return Bill(
        items=tuple(Item(id=i.id, name=i.name, quantity=i.quantity, price=i.price) for i in record.items),
        additional_charges=tuple(AdditionalCharge(name=c.name, amount=c.amount) for c in record.additional_charges),
    )


def participant_to_record(participant: Participant) -> ParticipantRecord:
    return ParticipantRecord(
        id=participant.id,
        name=participant.name,
        items=[ClaimRecord(item_id=k, quantity=v) for k, v in participant.claims.items() if v > 0],
    )


def participant_from_record(record: ParticipantRecord) -> Participant:
    return Participant(
        id=record.id,
        name=record.name,
        claims={claim.item_id: claim.quantity for claim in record.items},
    )


def snapshot_to_record(snapshot: Snapshot) -> SnapshotRecord:
    return SnapshotRecord(
        id=snapshot.id,
        date=snapshot.date,
        bill=bill_to_record(snapshot.bill),
        participants=[participant_to_record(p) for p in snapshot.participants],
        image_preview=snapshot.image_preview,
    )


def snapshot_from_record(record: SnapshotRecord) -> Snapshot:
    return Snapshot(
        id=record.id,
        date=record.date,
        bill=bill_from_record(record.bill),
        participants=tuple(participant_from_record(p) for p in record.participants),
        image_preview=record.image_preview,
    )


def bill_to_json(bill: Bill) -> dict[str, Any]:
    return bill_to_record(bill).model_dump(mode="json", by_alias=True)


def dump_snapshots(snapshots: list[Snapshot]) -> str:
    records = [snapshot_to_record(s) for s in snapshots]
    return snapshot_list_adapter.dump_json(records, by_alias=True).decode("utf-8")


def load_snapshots(raw: str) -> list[Snapshot]:
    records = snapshot_list_adapter.validate_json(raw)
    return [snapshot_from_record(r) for r in records]
