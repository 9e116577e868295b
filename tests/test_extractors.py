"""
tests/test_extractors.py
PDF and plain-text extractors.
"""

import io

import pytest
from pypdf import PdfWriter

from sentiscope.extractors.base import ExtractionOptions
from sentiscope.extractors.pdf_extractor import PdfTextExtractor, clean_text
from sentiscope.extractors.plain_text import PlainTextExtractor


def _blank_pdf(pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


class TestCleanText:
    def test_collapses_whitespace_keeps_paragraphs(self):
        raw = "Hola   mundo\r\n\r\n\r\n\r\nSegundo\t\tpárrafo\x00"
        assert clean_text(raw) == "Hola mundo\n\nSegundo párrafo"

    def test_leader_dots_and_rules(self):
        assert clean_text("Total........ 10\n--------") == "Total... 10\n---"


class TestPdfExtractor:
    def test_signature(self):
        ex = PdfTextExtractor()
        assert ex.is_supported(b"%PDF-1.7 ...")
        assert not ex.is_supported(b"PK\x03\x04zipfile")
        assert not ex.is_supported(b"%PD")
        assert not ex.is_supported(b"")

    def test_blank_pdf_yields_empty_text(self):
        data = _blank_pdf(pages=2)
        out = PdfTextExtractor().extract(data)
        assert out.text == ""
        assert out.metadata.page_count == 2
        assert out.metadata.file_size == len(data)

    def test_corrupt_pdf_raises_value_error(self):
        with pytest.raises(ValueError):
            PdfTextExtractor().extract(b"%PDF-1.4\nthis is not really a pdf")

    def test_wrong_signature_raises_value_error(self):
        with pytest.raises(ValueError, match="Invalid PDF"):
            PdfTextExtractor().extract(b"hello world")

    def test_oversized_raises_value_error(self):
        with pytest.raises(ValueError, match="maximum limit"):
            PdfTextExtractor(max_size=8).extract(b"%PDF-1.4 too big")

    def test_max_size_reported(self):
        assert PdfTextExtractor(max_size=123).max_size() == 123


class TestPlainTextExtractor:
    def test_utf8_text(self):
        ex = PlainTextExtractor()
        data = "Muchas   gracias,\r\nseñor.".encode("utf-8")
        assert ex.is_supported(data)
        assert ex.extract(data).text == "Muchas gracias,\nseñor."

    def test_bom_stripped(self):
        data = "\ufeffHola".encode("utf-8")
        assert PlainTextExtractor().extract(data).text == "Hola"

    def test_preserve_formatting(self):
        data = b"a   b"
        out = PlainTextExtractor().extract(data, ExtractionOptions(preserve_formatting=True))
        assert out.text == "a   b"

    @pytest.mark.parametrize("data", [b"", b"\xff\xfe\x00h\x00i", b"bin\x00ary", _blank_pdf()])
    def test_rejects_binary(self, data):
        assert not PlainTextExtractor().is_supported(data)
