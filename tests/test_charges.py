from billshare.models import AdditionalCharge
from billshare.services.charges import extract_charge


def test_indonesian_fee_keeps_label():
    assert extract_charge("Biaya Penanganan Rp3.000") == AdditionalCharge(name="Biaya Penanganan", amount=3000)
    assert extract_charge("Biaya lainnya Rp1.500") == AdditionalCharge(name="Biaya lainnya", amount=1500)


def test_english_fee_uses_canonical_label():
    charge = extract_charge("Handling and delivery fee Rp12.000")
    assert charge == AdditionalCharge(name="Handling and Delivery Fee", amount=12000)


def test_discount_is_always_negative():
    assert extract_charge("Discount Rp10.000") == AdditionalCharge(name="Discount", amount=-10000)
    assert extract_charge("Discount -Rp10.000") == AdditionalCharge(name="Discount", amount=-10000)
    assert extract_charge("Diskon -Rp10.000") == AdditionalCharge(name="Discount", amount=-10000)


def test_lines_without_amount_yield_nothing():
    assert extract_charge("Biaya lainnya") is None
    assert extract_charge("Biaya lainnya Rp.") is None
    assert extract_charge("Diskon") is None


def test_unrelated_lines_yield_nothing():
    assert extract_charge("Harga Rp80.000") is None
    assert extract_charge("Total Rp83.000") is None
