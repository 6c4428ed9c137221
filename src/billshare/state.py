"""Session state for one bill-splitting flow.

The state is an immutable value. Every user action is a small dataclass
and ``apply(state, action)`` returns the next state; a rejected action
raises and leaves the caller holding the previous state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Callable, Optional

from billshare.logging import get_logger
from billshare.models import Bill, ManualEntry, Participant, Snapshot
from billshare.services import allocation
from billshare.services.receipt import InvalidEntryError, add_manual_entry

log = get_logger(__name__)


class Step(IntEnum):
    UPLOAD = 1
    ASSIGN = 2
    SUMMARY = 3


@dataclass(frozen=True, slots=True)
class SessionState:
    bill: Optional[Bill] = None
    participants: tuple[Participant, ...] = ()
    step: Step = Step.UPLOAD
    current_snapshot_id: Optional[str] = None
    image_preview: Optional[str] = None
    last_participant_id: Optional[str] = None

    @property
    def can_proceed(self) -> bool:
        return self.bill is not None and allocation.is_fully_allocated(self.bill, self.participants)


@dataclass(frozen=True, slots=True)
class BillParsed:
    bill: Bill
    image_preview: Optional[str] = None


@dataclass(frozen=True, slots=True)
class AddParticipant:
    name: str
    participant_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RenameParticipant:
    participant_id: str
    new_name: str


@dataclass(frozen=True, slots=True)
class DeleteParticipant:
    participant_id: str


@dataclass(frozen=True, slots=True)
class SetAllocation:
    participant_id: str
    item_id: str
    quantity: int


@dataclass(frozen=True, slots=True)
class AddManualEntry:
    entry: ManualEntry


@dataclass(frozen=True, slots=True)
class ProceedToSummary:
    pass


@dataclass(frozen=True, slots=True)
class EditSplit:
    pass


@dataclass(frozen=True, slots=True)
class LoadSnapshot:
    snapshot: Snapshot


@dataclass(frozen=True, slots=True)
class SnapshotSaved:
    snapshot_id: str


@dataclass(frozen=True, slots=True)
class SnapshotDeleted:
    snapshot_id: str


@dataclass(frozen=True, slots=True)
class Reset:
    pass


def _require_bill(state: SessionState) -> Bill:
    if state.bill is None:
        raise allocation.UnknownItemError("No bill has been loaded")
    return state.bill


def _bill_parsed(state: SessionState, action: BillParsed) -> SessionState:
    return SessionState(
        bill=action.bill,
        step=Step.ASSIGN,
        image_preview=action.image_preview,
    )


def _add_participant(state: SessionState, action: AddParticipant) -> SessionState:
    participants, participant_id = allocation.add_participant(
        state.participants, action.name, action.participant_id
    )
    return replace(state, participants=participants, last_participant_id=participant_id)


def _rename_participant(state: SessionState, action: RenameParticipant) -> SessionState:
    participants = allocation.rename_participant(state.participants, action.participant_id, action.new_name)
    return replace(state, participants=participants)


def _delete_participant(state: SessionState, action: DeleteParticipant) -> SessionState:
    participants = allocation.delete_participant(state.participants, action.participant_id)
    return replace(state, participants=participants)


def _set_allocation(state: SessionState, action: SetAllocation) -> SessionState:
    participants = allocation.set_allocation(
        _require_bill(state),
        state.participants,
        action.participant_id,
        action.item_id,
        action.quantity,
    )
    return replace(state, participants=participants)


def _add_manual_entry(state: SessionState, action: AddManualEntry) -> SessionState:
    bill = add_manual_entry(state.bill, action.entry)
    step = Step.ASSIGN if state.step is Step.UPLOAD else state.step
    return replace(state, bill=bill, step=step)


def _proceed(state: SessionState, action: ProceedToSummary) -> SessionState:
    if not state.can_proceed:
        raise allocation.AllocationIncompleteError("Every item must be fully assigned before continuing")
    return replace(state, step=Step.SUMMARY)


def _edit_split(state: SessionState, action: EditSplit) -> SessionState:
    return replace(state, step=Step.ASSIGN)


def _load_snapshot(state: SessionState, action: LoadSnapshot) -> SessionState:
    snapshot = action.snapshot
    return SessionState(
        bill=snapshot.bill,
        participants=snapshot.participants,
        step=Step.SUMMARY,
        current_snapshot_id=snapshot.id,
        image_preview=snapshot.image_preview,
    )


def _snapshot_saved(state: SessionState, action: SnapshotSaved) -> SessionState:
    return SessionState()


def _snapshot_deleted(state: SessionState, action: SnapshotDeleted) -> SessionState:
    if state.current_snapshot_id == action.snapshot_id:
        return SessionState()
    return state


def _reset(state: SessionState, action: Reset) -> SessionState:
    return SessionState()


_HANDLERS: dict[type, Callable[[SessionState, object], SessionState]] = {
    BillParsed: _bill_parsed,
    AddParticipant: _add_participant,
    RenameParticipant: _rename_participant,
    DeleteParticipant: _delete_participant,
    SetAllocation: _set_allocation,
    AddManualEntry: _add_manual_entry,
    ProceedToSummary: _proceed,
    EditSplit: _edit_split,
    LoadSnapshot: _load_snapshot,
    SnapshotSaved: _snapshot_saved,
    SnapshotDeleted: _snapshot_deleted,
    Reset: _reset,
}


def apply(state: SessionState, action: object) -> SessionState:
    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unsupported action: {type(action).__name__}")
    try:
        new_state = handler(state, action)
    except (allocation.AllocationError, InvalidEntryError) as exc:
        log.info("state.rejected", action=type(action).__name__, reason=str(exc))
        raise
    log.debug("state.applied", action=type(action).__name__, step=int(new_state.step))
    return new_state
