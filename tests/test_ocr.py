import io

import pytest
import pytesseract
from PIL import Image

from billshare import ocr
from billshare.ocr import OCR_FAILURE_MESSAGE, OCRError, process_image, recognize_text, to_data_url


def _png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (40, 20), color="white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.mark.asyncio
async def test_process_image_parses_recognized_text(monkeypatch):
    calls = {}

    def fake_image_to_string(image, lang):
        calls["mode"] = image.mode
        calls["lang"] = lang
        return "2 Iced Latte @Rp25.000\nTotal price\nBiaya lainnya Rp2.000\n"

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", fake_image_to_string)

    bill = await process_image(_png_bytes(), "ind")

    assert calls == {"mode": "L", "lang": "ind"}
    assert bill.total_before_charges == 50000
    assert bill.total_after_charges == 52000


@pytest.mark.asyncio
async def test_recognize_text_rejects_non_image():
    with pytest.raises(OCRError) as excinfo:
        await recognize_text(b"not an image", "ind")
    assert str(excinfo.value) == OCR_FAILURE_MESSAGE


@pytest.mark.asyncio
async def test_recognize_text_wraps_tesseract_failure(monkeypatch):
    def broken(image, lang):
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", broken)

    with pytest.raises(OCRError) as excinfo:
        await recognize_text(_png_bytes(), "eng")
    assert isinstance(excinfo.value.__cause__, pytesseract.TesseractNotFoundError)


@pytest.mark.asyncio
async def test_recognize_text_wraps_timeout(monkeypatch):
    def slow(image, lang):
        raise RuntimeError("Tesseract process timeout")

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", slow)

    with pytest.raises(OCRError) as excinfo:
        await recognize_text(_png_bytes(), "ind")
    assert str(excinfo.value) == OCR_FAILURE_MESSAGE
    assert str(excinfo.value.__cause__) == "Tesseract process timeout"


@pytest.mark.asyncio
async def test_recognize_text_wraps_decompression_bomb(monkeypatch):
    def bomb(image, lang):
        raise Image.DecompressionBombError("image too large")

    monkeypatch.setattr(ocr.pytesseract, "image_to_string", bomb)

    with pytest.raises(OCRError):
        await recognize_text(_png_bytes(), "ind")


def test_to_data_url():
    assert to_data_url(b"abc", "image/png") == "data:image/png;base64,YWJj"
    assert to_data_url(b"abc", filename="receipt.jpg") == "data:image/jpeg;base64,YWJj"
