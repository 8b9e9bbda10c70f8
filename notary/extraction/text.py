from notary.extraction.pdf_adapters import BasePdfExtractor


class TextExtractor:
    """Turns uploaded bytes into plain text.

    Files named ``*.pdf`` go through the PDF adapter; anything else is decoded
    as UTF-8 with undecodable bytes replaced. Output is capped at ``max_chars``.
    """

    def __init__(self, pdf_extractor: BasePdfExtractor, max_chars: int = 20000) -> None:
        self._pdf_extractor = pdf_extractor
        self._max_chars = max_chars

    def extract(self, data: bytes, filename: str) -> str:
        """Raises ExtractionError if a PDF cannot be parsed."""
        if filename.lower().endswith(".pdf"):
            text = self._pdf_extractor.extract(data)
        else:
            text = data.decode("utf-8", errors="replace")
        return text[: self._max_chars]
