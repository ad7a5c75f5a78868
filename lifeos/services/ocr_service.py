"""
Image text extraction service.

Uses Tesseract (via pytesseract) on images opened with Pillow.
Recognition is CPU-bound; it runs in a thread pool so the event loop stays free.
"""

import asyncio
import io
import logging
import re
from typing import Optional

import pytesseract
from PIL import Image

from lifeos.config import Settings, get_settings
from lifeos.exceptions import ExtractionFailed
from lifeos.services.storage_service import LocalFileStore

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim the ends."""
    return _WHITESPACE.sub(" ", text or "").strip()


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    """Point pytesseract at a Tesseract binary. Process-wide; call once at startup."""
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        logger.info("Using Tesseract binary at %s", tesseract_cmd)


def recognize(content: bytes, language: str = "eng") -> str:
    """
    Run OCR over raw image bytes and return Tesseract's text as-is.
    Blocking; call via asyncio.to_thread.
    """
    with Image.open(io.BytesIO(content)) as image:
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        return pytesseract.image_to_string(image, lang=language)


class TextExtractor:
    """Turns a stored image into cleaned text, or raises ExtractionFailed."""

    def __init__(
        self,
        file_store: LocalFileStore,
        language: str = "eng",
        min_text_length: int = 10,
    ) -> None:
        self.file_store = file_store
        self.language = language
        self.min_text_length = min_text_length

    async def extract(self, file_reference: str) -> str:
        if not self.file_store.exists(file_reference):
            raise ExtractionFailed(f"Image file not found at path: {file_reference}")

        logger.info("Starting OCR on %s (lang=%s)", file_reference, self.language)
        try:
            content = self.file_store.read(file_reference)
            raw = await asyncio.to_thread(recognize, content, self.language)
        except Exception as e:
            logger.error("OCR error for %s: %s", file_reference, e)
            raise ExtractionFailed(f"Failed to extract text from image: {e}") from e

        text = clean_text(raw)
        logger.info("OCR completed for %s; %d characters after cleanup", file_reference, len(text))
        if len(text) < self.min_text_length:
            logger.warning("OCR returned %d characters for %s; low-quality image?", len(text), file_reference)
            raise ExtractionFailed("Insufficient text extracted from image")
        return text


def build_text_extractor(file_store: LocalFileStore, settings: Optional[Settings] = None) -> TextExtractor:
    settings = settings or get_settings()
    return TextExtractor(
        file_store,
        language=settings.ocr_language,
        min_text_length=settings.min_text_length,
    )
