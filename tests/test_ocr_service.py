"""Tests for the OCR text extractor. Tesseract itself is patched out."""

from unittest.mock import patch

import pytest
import pytesseract

from conftest import png_bytes
from lifeos.exceptions import ExtractionFailed
from lifeos.config import Settings
from lifeos.services.ocr_service import (
    TextExtractor,
    build_text_extractor,
    clean_text,
    configure_tesseract,
    recognize,
)


@pytest.fixture
def image_ref(file_store) -> str:
    return file_store.store(png_bytes(), "scan.png")


class TestCleanText:
    def test_collapses_whitespace(self):
        assert clean_text("  Electricity\n\nBill \t Due:\r\n2025-01-10  ") == "Electricity Bill Due: 2025-01-10"

    def test_empty(self):
        assert clean_text("") == ""
        assert clean_text(None) == ""


class TestRecognize:
    def test_passes_language_to_tesseract(self):
        with patch("pytesseract.image_to_string", return_value="hello") as mock_ocr:
            assert recognize(png_bytes(), "eng") == "hello"
        assert mock_ocr.call_args.kwargs["lang"] == "eng"


class TestTextExtractor:
    async def test_returns_cleaned_text(self, file_store, image_ref):
        extractor = TextExtractor(file_store)
        with patch("lifeos.services.ocr_service.recognize", return_value="Electricity   Bill\nDue 2025-01-10\n"):
            text = await extractor.extract(image_ref)
        assert text == "Electricity Bill Due 2025-01-10"

    async def test_missing_file(self, file_store):
        extractor = TextExtractor(file_store)
        with pytest.raises(ExtractionFailed) as exc_info:
            await extractor.extract(str(file_store.root / "nope.png"))
        assert "not found" in exc_info.value.detail

    @pytest.mark.parametrize("raw", ["", "   \n\t ", "short   txt", "123456789"])
    async def test_insufficient_text(self, file_store, image_ref, raw):
        extractor = TextExtractor(file_store)
        with patch("lifeos.services.ocr_service.recognize", return_value=raw):
            with pytest.raises(ExtractionFailed) as exc_info:
                await extractor.extract(image_ref)
        assert exc_info.value.detail == "Insufficient text extracted from image"
        assert exc_info.value.status_code == 400

    async def test_ten_characters_is_enough(self, file_store, image_ref):
        extractor = TextExtractor(file_store)
        with patch("lifeos.services.ocr_service.recognize", return_value=" 0123456789 "):
            assert await extractor.extract(image_ref) == "0123456789"

    async def test_recognizer_error(self, file_store, image_ref):
        extractor = TextExtractor(file_store)
        error = pytesseract.TesseractNotFoundError()
        with patch("lifeos.services.ocr_service.recognize", side_effect=error):
            with pytest.raises(ExtractionFailed) as exc_info:
                await extractor.extract(image_ref)
        assert exc_info.value.detail.startswith("Failed to extract text from image")

    async def test_not_an_image(self, file_store):
        ref = file_store.store(b"definitely not a png", "fake.png")
        with pytest.raises(ExtractionFailed):
            await TextExtractor(file_store).extract(ref)


class TestTesseractBinary:
    def test_building_extractor_leaves_binary_alone(self, file_store):
        with patch.object(pytesseract.pytesseract, "tesseract_cmd", "tesseract"):
            build_text_extractor(file_store, Settings(tesseract_cmd="/opt/tesseract/bin/tesseract"))
            assert pytesseract.pytesseract.tesseract_cmd == "tesseract"

    def test_configure_sets_binary(self):
        with patch.object(pytesseract.pytesseract, "tesseract_cmd", "tesseract"):
            configure_tesseract("/opt/tesseract/bin/tesseract")
            assert pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract/bin/tesseract"

    def test_configure_without_path_keeps_default(self):
        with patch.object(pytesseract.pytesseract, "tesseract_cmd", "tesseract"):
            configure_tesseract(None)
            assert pytesseract.pytesseract.tesseract_cmd == "tesseract"
