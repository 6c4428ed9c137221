import pytest

from billshare.models import AdditionalCharge, Bill, ChargeCategory, Item, ManualEntry
from billshare.services.receipt import InvalidEntryError, add_manual_entry, parse_receipt_text

RECEIPT = """
Hai Budi, makasih udah pakai GoFood
Total dibayar Rp83.000
Rincian transaksi
2 Iced Latte @Rp25.000
Rp50.000
1 Nasi Goreng Spesial @Rp30.000
dengan telur
Tanpa alat makan/sedotan, kurangi plastik sekali!
Pasal harga
Harga Rp80.000
Biaya penanganan dan pengiriman Rp10.000
Biaya lainnya Rp3.000
Diskon -Rp10.000
Bayar pakai GoPay
"""


def test_parse_full_receipt():
    bill = parse_receipt_text(RECEIPT)

    assert bill.items == (
        Item(id="1", name="Iced Latte", quantity=2, price=25000),
        Item(id="2", name="Nasi Goreng Spesial dengan telur", quantity=1, price=30000),
    )
    assert bill.additional_charges == (
        AdditionalCharge(name="Biaya penanganan dan pengiriman", amount=10000),
        AdditionalCharge(name="Biaya lainnya", amount=3000),
        AdditionalCharge(name="Discount", amount=-10000),
    )
    assert bill.total_before_charges == 80000
    assert bill.total_after_charges == 83000


def test_parsed_items_are_consistent():
    bill = parse_receipt_text(RECEIPT)
    for item in bill.items:
        assert item.quantity > 0
        assert item.price >= 0
        assert item.total_price == item.quantity * item.price
    assert bill.total_after_charges == bill.total_before_charges + sum(c.amount for c in bill.additional_charges)


def test_single_item_line():
    bill = parse_receipt_text("2 Iced Latte @Rp25.000\nTotal price\n")
    assert len(bill.items) == 1
    item = bill.items[0]
    assert (item.quantity, item.price, item.total_price) == (2, 25000, 50000)


def test_english_receipt_with_discount():
    text = "\n".join(
        [
            "Transaction details",
            "1 Chicken Rice @Rp32.000",
            "Total price",
            "Handling and delivery fee Rp12.000",
            "Discount Rp5.000",
            "Paid with card",
        ]
    )
    bill = parse_receipt_text(text)
    assert [c.amount for c in bill.additional_charges] == [12000, -5000]
    assert bill.total_after_charges == 32000 + 12000 - 5000


def test_unparseable_text_gives_empty_bill():
    bill = parse_receipt_text("@@@\n???\n")
    assert bill == Bill()
    assert bill.total_after_charges == 0


def test_item_ids_are_sequential_over_matched_lines():
    text = "noise\n1 A @Rp1.000\nRp1.000\n2 B @Rp2.000\n"
    bill = parse_receipt_text(text)
    assert [item.id for item in bill.items] == ["1", "2"]


def test_add_manual_menu_item():
    bill = parse_receipt_text("2 Iced Latte @Rp25.000\nTotal price\nBiaya lainnya Rp3.000")
    updated = add_manual_entry(bill, ManualEntry(name="Extra Rice", quantity=2, price=5000))

    assert updated.items[-1] == Item(id="custom-1", name="Extra Rice", quantity=2, price=5000)
    assert updated.items[-1].is_custom
    assert updated.total_before_charges == 60000
    assert updated.total_after_charges == 63000
    assert bill.total_before_charges == 50000

    again = add_manual_entry(updated, ManualEntry(name="Kerupuk", quantity=1, price=2000))
    assert again.items[-1].id == "custom-2"


def test_add_manual_fee_ignores_quantity():
    bill = parse_receipt_text("2 Iced Latte @Rp25.000")
    updated = add_manual_entry(bill, ManualEntry(name="Service", quantity=3, price=4000, category=ChargeCategory.FEE))

    assert updated.items == bill.items
    assert updated.additional_charges == (AdditionalCharge(name="Service", amount=4000),)
    assert updated.total_after_charges == updated.total_before_charges + 4000


def test_add_manual_entry_without_bill():
    bill = add_manual_entry(None, ManualEntry(name="Es Teh", quantity=1, price=5000))
    assert bill.total_after_charges == 5000


@pytest.mark.parametrize(
    "entry",
    [
        ManualEntry(name="  ", quantity=1, price=1000),
        ManualEntry(name="Rice", quantity=0, price=1000),
        ManualEntry(name="Rice", quantity=1, price=-1),
    ],
)
def test_add_manual_entry_rejects_invalid(entry):
    with pytest.raises(InvalidEntryError):
        add_manual_entry(Bill(), entry)
