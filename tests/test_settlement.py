from decimal import Decimal

from billshare.models import AdditionalCharge, Bill, Item, Participant
from billshare.services.settlement import (
    RoundingPolicy,
    SettlementLine,
    calculate_settlement,
    display_residual,
    round_display,
)

BILL = Bill(
    items=(Item(id="1", name="Kopi", quantity=3, price=1000),),
    additional_charges=(AdditionalCharge(name="Biaya lainnya", amount=300),),
)


def test_two_participants_share_fee():
    participants = [
        Participant(id="a", name="Ani", claims={"1": 2}),
        Participant(id="b", name="Budi", claims={"1": 1}),
    ]

    a, b = calculate_settlement(BILL, participants)

    assert (a.subtotal, a.charge_share, a.total) == (2000, Decimal(150), Decimal(2150))
    assert (b.subtotal, b.charge_share, b.total) == (1000, Decimal(150), Decimal(1150))
    assert a.total + b.total == BILL.total_after_charges == 3300
    assert a.lines == (SettlementLine(item_id="1", name="Kopi", quantity=2, price=1000),)


def test_inactive_participant_excluded_from_split():
    participants = [
        Participant(id="a", name="Ani", claims={"1": 2}),
        Participant(id="b", name="Budi", claims={"1": 1}),
        Participant(id="c", name="Citra"),
    ]

    settlements = calculate_settlement(BILL, participants)

    assert [s.charge_share for s in settlements] == [Decimal(150), Decimal(150), Decimal(0)]
    assert settlements[2].total == 0
    assert not settlements[2].is_active


def test_subtotals_match_bill_when_fully_allocated():
    participants = [
        Participant(id="a", name="Ani", claims={"1": 2}),
        Participant(id="b", name="Budi", claims={"1": 1}),
    ]
    settlements = calculate_settlement(BILL, participants)
    assert sum(s.subtotal for s in settlements) == BILL.total_before_charges


def test_subtotals_fall_short_with_unclaimed_quantity():
    participants = [Participant(id="a", name="Ani", claims={"1": 2})]
    settlements = calculate_settlement(BILL, participants)
    assert sum(s.subtotal for s in settlements) == 2000
    assert sum(s.subtotal for s in settlements) != BILL.total_before_charges


def test_no_active_participants():
    settlements = calculate_settlement(BILL, [Participant(id="a", name="Ani")])
    assert settlements[0].charge_share == 0
    assert settlements[0].total == 0


def test_discounts_reduce_shares():
    bill = Bill(
        items=(Item(id="1", name="Kopi", quantity=2, price=10000),),
        additional_charges=(
            AdditionalCharge(name="Biaya lainnya", amount=2000),
            AdditionalCharge(name="Discount", amount=-6000),
        ),
    )
    participants = [
        Participant(id="a", name="Ani", claims={"1": 1}),
        Participant(id="b", name="Budi", claims={"1": 1}),
    ]
    a, b = calculate_settlement(bill, participants)
    assert a.total == b.total == Decimal(8000)


def test_display_rounding_leaves_residual():
    bill = Bill(
        items=(Item(id="1", name="Kopi", quantity=3, price=1000),),
        additional_charges=(AdditionalCharge(name="Biaya lainnya", amount=1000),),
    )
    participants = [Participant(id=pid, name=pid, claims={"1": 1}) for pid in ("a", "b", "c")]

    settlements = calculate_settlement(bill, participants, RoundingPolicy.DISPLAY)

    assert [round_display(s.charge_share) for s in settlements] == [333, 333, 333]
    assert display_residual(bill, settlements) == 1


def test_reconcile_rounding_sums_exactly():
    bill = Bill(
        items=(Item(id="1", name="Kopi", quantity=3, price=1000),),
        additional_charges=(AdditionalCharge(name="Biaya lainnya", amount=1000),),
    )
    participants = [Participant(id=pid, name=pid, claims={"1": 1}) for pid in ("a", "b", "c")]

    settlements = calculate_settlement(bill, participants, RoundingPolicy.RECONCILE)

    assert [s.charge_share for s in settlements] == [334, 333, 333]
    assert display_residual(bill, settlements) == 0
    assert sum(s.total for s in settlements) == bill.total_after_charges
