"""Tesseract OCR for receipt photos."""

from __future__ import annotations

import asyncio
import base64
import io
import mimetypes
from typing import Optional

import pytesseract
from PIL import Image, ImageEnhance

from billshare.logging import get_logger
from billshare.models import Bill
from billshare.services.receipt import parse_receipt_text

OCR_FAILURE_MESSAGE = "Failed to process the bill image. Please try again."

log = get_logger(__name__)


class OCRError(RuntimeError):
    def __init__(self, message: str = OCR_FAILURE_MESSAGE) -> None:
        super().__init__(message)


def preprocess_image(image: Image.Image) -> Image.Image:
    """Grayscale and boost contrast before recognition."""
    if image.mode != "L":
        image = image.convert("L")
    return ImageEnhance.Contrast(image).enhance(2.0)


def _recognize(image_bytes: bytes, language: str) -> str:
    with Image.open(io.BytesIO(image_bytes)) as image:
        prepared = preprocess_image(image)
        return pytesseract.image_to_string(prepared, lang=language)


async def recognize_text(image_bytes: bytes, language: str = "ind") -> str:
    """Run OCR in a worker thread. Any failure is final for this attempt."""
    try:
        text = await asyncio.to_thread(_recognize, image_bytes, language)
    except Exception as exc:
        log.warning("ocr.failed", language=language, error=str(exc))
        raise OCRError() from exc
    log.info("ocr.done", language=language, chars=len(text))
    return text


async def process_image(image_bytes: bytes, language: str = "ind") -> Bill:
    text = await recognize_text(image_bytes, language)
    return parse_receipt_text(text)


def to_data_url(image_bytes: bytes, mime: Optional[str] = None, filename: Optional[str] = None) -> str:
    if mime is None and filename:
        mime, _ = mimetypes.guess_type(filename)
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{encoded}"
