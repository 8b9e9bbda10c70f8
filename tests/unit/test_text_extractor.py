from unittest.mock import MagicMock

import pytest

from notary.extraction.exceptions import ExtractionError
from notary.extraction.pdf_adapters import (
    PdfExtractorFactory,
    PdfPlumberAdapter,
    PyMuPdfAdapter,
)
from notary.extraction.text import TextExtractor


class TestTextExtractor:
    def test_pdf_files_use_pdf_adapter(self) -> None:
        pdf = MagicMock()
        pdf.extract.return_value = "pdf text"
        assert TextExtractor(pdf).extract(b"%PDF", "Scan.PDF") == "pdf text"
        pdf.extract.assert_called_once_with(b"%PDF")

    def test_other_files_decoded_as_utf8(self) -> None:
        pdf = MagicMock()
        assert TextExtractor(pdf).extract("héllo".encode(), "note.txt") == "héllo"
        pdf.extract.assert_not_called()

    def test_invalid_utf8_is_replaced(self) -> None:
        text = TextExtractor(MagicMock()).extract(b"ok \xff\xfe end", "blob.bin")
        assert text.startswith("ok ")
        assert text.endswith(" end")
        assert "�" in text

    def test_output_is_truncated(self) -> None:
        assert TextExtractor(MagicMock(), max_chars=4).extract(b"abcdefgh", "a.txt") == "abcd"

    def test_pdf_errors_propagate(self) -> None:
        pdf = MagicMock()
        pdf.extract.side_effect = ExtractionError("broken")
        with pytest.raises(ExtractionError):
            TextExtractor(pdf).extract(b"junk", "a.pdf")


class TestPdfAdapters:
    @pytest.mark.parametrize("adapter_cls", [PdfPlumberAdapter, PyMuPdfAdapter])
    def test_extracts_text_from_pdf(self, adapter_cls, sample_pdf_bytes: bytes) -> None:
        text = adapter_cls().extract(sample_pdf_bytes)
        assert "Invoice" in text
        assert "1,250.00" in text

    @pytest.mark.parametrize("adapter_cls", [PdfPlumberAdapter, PyMuPdfAdapter])
    def test_invalid_bytes_raise_extraction_error(self, adapter_cls) -> None:
        with pytest.raises(ExtractionError):
            adapter_cls().extract(b"not a pdf")


class TestPdfExtractorFactory:
    def test_creates_named_engine(self) -> None:
        assert isinstance(PdfExtractorFactory.create("pdfplumber"), PdfPlumberAdapter)
        assert isinstance(PdfExtractorFactory.create("PyMuPDF"), PyMuPdfAdapter)

    def test_unknown_engine_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown PDF engine"):
            PdfExtractorFactory.create("tesseract")
